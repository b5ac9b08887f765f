from datetime import UTC, datetime
from typing import Callable

# Source of "now" for entities and use cases; swapped out in tests
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the form SQLite hands back)."""
    return datetime.now(UTC).replace(tzinfo=None)
