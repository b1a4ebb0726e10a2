"""Date manipulation utilities"""

import time
from datetime import datetime


def now_epoch() -> int:
    """Current time in epoch seconds"""
    return int(time.time())


def format_timestamp(timestamp: int, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format epoch seconds in local time"""
    return datetime.fromtimestamp(timestamp).strftime(fmt)


def format_date(timestamp: int) -> str:
    return format_timestamp(timestamp, "%Y-%m-%d")
