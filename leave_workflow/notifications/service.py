"""Notification dispatcher — in-app rows plus an email fan-out for leave events."""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.constants import (
    DEFAULT_LEAVE_LINK,
    NOTIFICATION_CATEGORY_APPROVALS,
    NOTIFICATION_ENTITY_LEAVE_REQUEST,
    NOTIFICATION_PRIORITY_HIGH,
    NOTIFICATION_TYPE_APPROVAL_REQUEST,
)
from leave_workflow.common.exceptions import StoreException
from leave_workflow.config import settings
from leave_workflow.core_hr.models import Profile
from leave_workflow.notifications.mailer import (
    LeaveMailer,
    LeaveWorkflowEmail,
    send_leave_workflow_email,
)
from leave_workflow.notifications.models import Notification

logger = logging.getLogger(__name__)


def build_notification_rows(
    user_ids: list[uuid.UUID],
    *,
    title: str,
    message: str,
    actor_id: Optional[uuid.UUID] = None,
    link_url: Optional[str] = None,
    entity_id: Optional[uuid.UUID] = None,
) -> list[Notification]:
    return [
        Notification(
            user_id=user_id,
            type=NOTIFICATION_TYPE_APPROVAL_REQUEST,
            category=NOTIFICATION_CATEGORY_APPROVALS,
            title=title,
            message=message,
            priority=NOTIFICATION_PRIORITY_HIGH,
            link_url=link_url or DEFAULT_LEAVE_LINK,
            actor_id=actor_id,
            entity_type=NOTIFICATION_ENTITY_LEAVE_REQUEST,
            entity_id=entity_id,
        )
        for user_id in user_ids
    ]


async def _recipient_emails(db: AsyncSession, user_ids: list[uuid.UUID]) -> list[str]:
    result = await db.execute(
        select(Profile.company_email, Profile.additional_email).where(Profile.id.in_(user_ids))
    )
    emails: dict[str, None] = {}
    for company_email, additional_email in result.all():
        for email in (company_email, additional_email):
            if isinstance(email, str) and email:
                emails.setdefault(email, None)
    return list(emails)


async def notify_users(
    db: AsyncSession,
    *,
    user_ids: Iterable[Optional[uuid.UUID]],
    title: str,
    message: str,
    actor_id: Optional[uuid.UUID] = None,
    link_url: Optional[str] = None,
    entity_id: Optional[uuid.UUID] = None,
    email_subject: Optional[str] = None,
    email_title: Optional[str] = None,
    email_message: Optional[str] = None,
    mailer: Optional[LeaveMailer] = None,
) -> list[Notification]:
    """Create one in-app notification per distinct recipient and email them.

    By default a single email lists every resolved address as a joint
    recipient. With ``LEAVE_EMAIL_PER_RECIPIENT`` each address gets its own
    send.
    """
    unique_ids = list(dict.fromkeys(uid for uid in user_ids if uid))
    if not unique_ids:
        return []

    rows = build_notification_rows(
        unique_ids,
        title=title,
        message=message,
        actor_id=actor_id,
        link_url=link_url,
        entity_id=entity_id,
    )
    try:
        db.add_all(rows)
        await db.flush()
        emails = await _recipient_emails(db, unique_ids)
    except SQLAlchemyError as exc:
        raise StoreException("Failed to create leave notifications") from exc

    if not emails:
        return rows

    send = mailer or send_leave_workflow_email
    subject = email_subject or title
    heading = email_title or title
    body = email_message or message

    if settings.LEAVE_EMAIL_PER_RECIPIENT:
        batches = [[email] for email in emails]
    else:
        batches = [emails]

    for batch in batches:
        await send(LeaveWorkflowEmail(
            to=batch,
            subject=subject,
            title=heading,
            message=body,
            cta_path=link_url,
        ))
    logger.info(
        "Sent leave notification '%s' to %d user(s), %d email(s)",
        title, len(unique_ids), len(emails),
    )
    return rows
