"""Per-client request limits for the leave API (slowapi).

The limiter is attached to ``app.state`` in main.py; the decision route
applies the tighter ``RATE_LIMIT_DECISIONS`` limit on top of the default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leave_workflow.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)


def decision_limit() -> str:
    return settings.RATE_LIMIT_DECISIONS
