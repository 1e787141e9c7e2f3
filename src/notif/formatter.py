# -*- coding: utf-8 -*-
"""
Formatting utilities for notifications.
Handles timezone conversion and price display.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union
import pytz


def format_price(price: Union[Decimal, float]) -> str:
    """
    Format price with thousands separator: 67,420.50
    Keeps extra precision for sub-unit prices (e.g. 0.00001234).
    """
    value = Decimal(str(price))
    if value != 0 and abs(value) < 1:
        return f"{value.normalize():f}"
    return f"{value:,.2f}"


def format_datetime_local(dt: Optional[datetime] = None, tz_name: Optional[str] = None) -> str:
    """
    Format datetime in the configured timezone: 2025-11-11 11:30 UTC

    Args:
        dt: datetime object (if None, uses current time); naive values are assumed UTC
        tz_name: IANA timezone name (defaults to bot.timezone from config)
    """
    if tz_name is None:
        from src.config import get_timezone
        tz_name = get_timezone()
    tz = pytz.timezone(tz_name)

    if dt is None:
        dt = datetime.now(tz)
    else:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        dt = dt.astimezone(tz)

    return dt.strftime("%Y-%m-%d %H:%M %Z")
