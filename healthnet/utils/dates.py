# healthnet/utils/dates.py
from datetime import datetime
from typing import Optional

import pytz

from healthnet.config import settings


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an incoming datetime to naive UTC; naive input is taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def format_local(value: datetime) -> str:
    """Render a stored (naive UTC) timestamp in the configured local timezone."""
    local_tz = pytz.timezone(settings.TIMEZONE)
    return pytz.utc.localize(value).astimezone(local_tz).strftime("%d %b %Y %H:%M")
