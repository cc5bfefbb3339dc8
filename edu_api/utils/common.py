"""
Common helpers shared by the services.
"""

from datetime import datetime, timezone
from uuid import uuid4


def utcnow() -> datetime:
    """Current UTC instant (timezone-aware)."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def unique_in_order(values) -> list:
    """Drop repeated values, keeping the first occurrence of each."""
    return list(dict.fromkeys(values))
