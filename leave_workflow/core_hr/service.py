"""Profile lookups used by the leave workflow: identifier resolution,
supervisor mapping and requester snapshots."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_workflow.common.dates import is_valid_uuid
from leave_workflow.common.exceptions import (
    NotFoundException,
    StoreException,
    ValidationException,
)
from leave_workflow.config import settings
from leave_workflow.core_hr.models import Profile


async def _profiles_where(db: AsyncSession, label: str, *criteria) -> list[Profile]:
    try:
        result = await db.execute(select(Profile).where(*criteria).limit(2))
    except SQLAlchemyError as exc:
        raise StoreException(f"Failed to resolve {label}") from exc
    return list(result.scalars().all())


async def resolve_profile_by_identifier(
    db: AsyncSession,
    identifier: str,
    label: str,
) -> Profile:
    """Resolve a profile from an id, a company email or a full name.

    Email and name matching is case-insensitive and must be unambiguous.
    """
    value = (identifier or "").strip()
    if not value:
        raise ValidationException({label.lower(): [f"{label} is required"]})

    if is_valid_uuid(value):
        matches = await _profiles_where(db, label, Profile.id == uuid.UUID(value))
        if not matches:
            raise NotFoundException(label, value, detail=f"{label} not found")
        return matches[0]

    if "@" in value:
        matches = await _profiles_where(
            db, label, func.lower(Profile.company_email) == value.lower(),
        )
        if not matches:
            raise NotFoundException(label, value, detail=f"{label} email not found")
        if len(matches) > 1:
            raise ValidationException(
                {label.lower(): [f"{label} email resolved to multiple records"]}
            )
        return matches[0]

    matches = await _profiles_where(db, label, func.lower(Profile.full_name) == value.lower())
    if not matches:
        raise NotFoundException(label, value, detail=f"{label} name not found")
    if len(matches) > 1:
        raise ValidationException(
            {label.lower(): [f"{label} name is ambiguous. Use email or ID."]}
        )
    return matches[0]


async def get_supervisor_for_user(db: AsyncSession, user_id: uuid.UUID) -> Profile:
    """Return the department lead of the user's department."""
    try:
        result = await db.execute(select(Profile.department_id).where(Profile.id == user_id))
        department_id = result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StoreException("Failed to resolve supervisor") from exc

    if department_id is None:
        raise ValidationException(
            {"supervisor": ["Cannot determine your department for supervisor mapping"]}
        )

    try:
        result = await db.execute(
            select(Profile)
            .where(
                Profile.department_id == department_id,
                Profile.is_department_lead.is_(True),
            )
            .order_by(Profile.created_at)
            .limit(1)
        )
        supervisor = result.scalars().first()
    except SQLAlchemyError as exc:
        raise StoreException("Failed to resolve supervisor") from exc

    if supervisor is None:
        raise ValidationException(
            {"supervisor": ["No department lead configured for your department"]}
        )
    return supervisor


async def get_hr_profile_ids(db: AsyncSession) -> list[uuid.UUID]:
    """Ids of every profile holding an HR approver role."""
    try:
        result = await db.execute(
            select(Profile.id).where(Profile.role.in_(settings.hr_roles_list))
        )
    except SQLAlchemyError as exc:
        raise StoreException("Failed to resolve HR approvers") from exc
    return list(result.scalars().all())


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile:
    try:
        profile = await db.get(Profile, user_id)
    except SQLAlchemyError as exc:
        raise StoreException("Failed to load requester profile") from exc
    if profile is None:
        raise NotFoundException("Profile", user_id, detail="Profile not found")
    return profile
