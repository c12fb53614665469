from datetime import datetime, timezone
from typing import Callable

# Services take the current time from an injected clock so tests can pin it.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
