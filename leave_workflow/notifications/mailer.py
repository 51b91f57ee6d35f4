"""Transactional email for leave workflow events, sent through the Resend API.

Delivery is fire-and-forget: a missing API key or an HTTP failure is logged
and swallowed so that a workflow decision never fails because of email.
"""

from __future__ import annotations

import html
import logging
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from leave_workflow.common.constants import DEFAULT_LEAVE_LINK
from leave_workflow.config import settings

logger = logging.getLogger(__name__)


class LeaveWorkflowEmail(BaseModel):
    to: list[str] = Field(default_factory=list)
    subject: str
    title: str
    message: str
    cta_path: Optional[str] = None


class LeaveMailer(Protocol):
    async def __call__(self, payload: LeaveWorkflowEmail) -> None: ...


def normalize_recipients(addresses: list[str]) -> list[str]:
    """Trim, lower-case and de-duplicate addresses, preserving order."""
    cleaned = (address.strip().lower() for address in addresses if address)
    return list(dict.fromkeys(address for address in cleaned if address))


def build_email_html(title: str, message: str, cta_path: Optional[str] = None) -> str:
    cta_url = f"{settings.SITE_URL}{cta_path or DEFAULT_LEAVE_LINK}"
    return (
        '<div style="font-family:Arial,sans-serif;max-width:620px;margin:0 auto;'
        'padding:24px;border:1px solid #e5e7eb;border-radius:10px;">'
        f'<h2 style="margin:0 0 12px;color:#0f172a;">{html.escape(title)}</h2>'
        f'<p style="margin:0 0 16px;color:#334155;line-height:1.6;">{html.escape(message)}</p>'
        f'<a href="{html.escape(cta_url, quote=True)}" style="display:inline-block;'
        'background:#166534;color:#fff;padding:10px 14px;text-decoration:none;'
        'border-radius:8px;">Open Leave Portal</a>'
        "</div>"
    )


async def send_leave_workflow_email(
    payload: LeaveWorkflowEmail,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> None:
    """Send one email to every address in ``payload.to``."""
    if not settings.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not set; skipping leave email '%s'", payload.subject)
        return

    recipients = normalize_recipients(payload.to)
    if not recipients:
        return

    body = {
        "from": settings.EMAIL_FROM,
        "to": recipients,
        "subject": payload.subject,
        "html": build_email_html(payload.title, payload.message, payload.cta_path),
    }
    headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS)
    try:
        response = await http.post(settings.RESEND_API_URL, json=body, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning(
            "Leave email '%s' to %d recipient(s) failed: %s",
            payload.subject, len(recipients), exc,
        )
    finally:
        if owns_client:
            await http.aclose()
