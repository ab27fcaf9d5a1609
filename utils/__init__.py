"""Utility modules for cross-cutting concerns."""

from utils.timezone import (
    now_utc,
    to_utc,
    to_local,
    parse_iso,
    ceil_days,
    days_until,
    format_display_date,
)
from utils.models import CamelModel
