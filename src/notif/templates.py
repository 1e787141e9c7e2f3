# -*- coding: utf-8 -*-
"""
Message templates for event notifications and admin messages.
"""
from html import escape
from typing import List
from src.notif.formatter import format_datetime_local
from src.config import get_bot_name, get_bot_version


def template_event_triggered(event) -> str:
    """
    Template for a triggered price event.

    Example:
        "Event triggered: If the BTCUSDT PRICE on Binance is > 100 then SMS,ALL."
    """
    return f"Event triggered: {event.describe()}"


def template_startup(exchanges: List[str], total_events: int) -> str:
    """
    Template for bot startup message.

    Args:
        exchanges: Names of enabled exchanges
        total_events: Number of events registered at startup
    """
    bot_name = get_bot_name()
    version = get_bot_version()
    timestamp = format_datetime_local()

    exchanges_display = ", ".join(exchanges) if exchanges else "none"

    return f"""✅ {bot_name} started (v{version})

📊 Exchanges: {exchanges_display}
🔔 Events registered: {total_events}

⏰ {timestamp}"""


def template_shutdown(total_events: int, executed_events: int) -> str:
    """Template for bot shutdown message."""
    bot_name = get_bot_name()
    timestamp = format_datetime_local()

    return f"""🛑 {bot_name} stopped

🔔 Events: {executed_events}/{total_events} triggered

⏰ {timestamp}"""


def template_error_admin(error_type: str, error_msg: str, context: str = "") -> str:
    """
    Template for admin channel error alerts.

    Args:
        error_type: Type of error (e.g., "PriceFeed", "Telegram API", "Startup")
        error_msg: Error message
        context: Additional context (optional)
    """
    bot_name = get_bot_name()
    timestamp = format_datetime_local()

    msg = f"""❌ CRITICAL ERROR - {error_type}

Bot: {bot_name}
Error: {escape(error_msg, quote=False)}"""

    if context:
        msg += f"\nContext: {escape(context, quote=False)}"

    msg += f"\n\n⏰ {timestamp}"

    return msg
