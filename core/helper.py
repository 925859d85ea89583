import uuid
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def get_current_time_in_timezone(timezone_str: str = "Asia/Jerusalem") -> datetime:
    """Get Current Time in Specified Timezone

    Args:
        timezone_str (str): Timezone string (e.g., "Asia/Jerusalem")

    Returns:
        datetime: Current datetime in the specified timezone
    """
    try:
        tz = ZoneInfo(timezone_str)
    except ZoneInfoNotFoundError:
        tz = ZoneInfo("UTC")
    return datetime.now(tz)


def parse_uuid(value) -> Optional[uuid.UUID]:
    """Return value as a UUID, or None when it is not a valid one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None
