"""Process-wide clock used for timestamps and "today" boundaries."""

import os
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

_TZ_NAME = os.getenv("ASSISTANT_TIMEZONE", "").strip()
TIMEZONE: tzinfo | None = ZoneInfo(_TZ_NAME) if _TZ_NAME else None


def now() -> datetime:
    """Timezone-aware current time, in ASSISTANT_TIMEZONE or the process local zone."""
    if TIMEZONE is not None:
        return datetime.now(TIMEZONE)
    return datetime.now().astimezone()


def start_of_day(ref: datetime | None = None) -> datetime:
    ref = ref or now()
    return ref.replace(hour=0, minute=0, second=0, microsecond=0)
