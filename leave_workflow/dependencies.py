"""Shared FastAPI dependencies."""

import uuid

from fastapi import Header

from leave_workflow.common.exceptions import ForbiddenException


async def get_actor_id(x_actor_id: str = Header(..., alias="X-Actor-Id")) -> uuid.UUID:
    """Return the acting user's id.

    Authentication happens upstream (gateway / session middleware), which
    forwards the authenticated profile id in the ``X-Actor-Id`` header.
    """
    try:
        return uuid.UUID(x_actor_id)
    except ValueError:
        raise ForbiddenException("A valid acting user is required.") from None
