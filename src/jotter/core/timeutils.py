"""Epoch-millisecond clock and local calendar helpers."""

import time
from datetime import date, datetime

MS_PER_DAY = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return time.time_ns() // 1_000_000


def local_date(epoch_ms: int) -> date:
    """Calendar date of *epoch_ms* in the local time zone."""
    return datetime.fromtimestamp(epoch_ms / 1000).date()


def local_year(epoch_ms: int) -> int:
    return local_date(epoch_ms).year
