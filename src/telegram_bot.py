from typing import Optional
from loguru import logger
from telegram import Bot
from src.config import BOT_TOKEN, ADMIN_CHANNEL_ID

import asyncio

async def _send_message_async(text: str, chat_id: str) -> None:
    """Send message to specific chat."""
    bot = Bot(BOT_TOKEN)
    await bot.send_message(chat_id=chat_id, text=text, parse_mode='HTML')

def _run(coro):
    """Run the coroutine, even if an event loop is already running."""
    try:
        loop = asyncio.get_running_loop()
        # Already in async context, create task
        return loop.create_task(coro)
    except RuntimeError:
        # No running loop, use asyncio.run()
        return asyncio.run(coro)

_dry_run = False

def set_dry_run(enabled: bool = True) -> None:
    """Log messages instead of sending them (--dry-run)."""
    global _dry_run
    _dry_run = enabled

def _is_dry_run(chat_id: Optional[str]) -> bool:
    return _dry_run or not BOT_TOKEN or not chat_id

async def send_message_async(text: str, chat_id: Optional[str] = None, to_admin: bool = False) -> bool:
    """
    Send message to Telegram (async version).

    Args:
        text: Message text
        chat_id: Destination chat; defaults to the admin channel
        to_admin: Force delivery to the admin channel

    Returns:
        True if sent successfully, False otherwise
    """
    target_chat_id = ADMIN_CHANNEL_ID if to_admin or not chat_id else chat_id

    if _is_dry_run(target_chat_id):
        prefix = "[admin]" if target_chat_id == ADMIN_CHANNEL_ID else f"[{target_chat_id}]"
        logger.info(f"[dry-run] {prefix} MSG -> {text}")
        return True

    try:
        await _send_message_async(text, target_chat_id)
        return True
    except Exception as e:
        logger.exception(f"Failed to send message to {target_chat_id}: {e}")
        return False

def send_message(text: str, chat_id: Optional[str] = None, to_admin: bool = False) -> bool:
    """
    Send message to Telegram (sync wrapper for CLI commands).

    Returns:
        True if sent (or scheduled) successfully, False otherwise
    """
    target_chat_id = ADMIN_CHANNEL_ID if to_admin or not chat_id else chat_id

    if _is_dry_run(target_chat_id):
        prefix = "[admin]" if target_chat_id == ADMIN_CHANNEL_ID else f"[{target_chat_id}]"
        logger.info(f"[dry-run] {prefix} MSG -> {text}")
        return True

    try:
        _run(_send_message_async(text, target_chat_id))
        return True
    except Exception as e:
        logger.exception(f"Failed to send message to {target_chat_id}: {e}")
        return False

def send_error_to_admin(error_type: str, error_msg: str, context: str = "") -> bool:
    """
    Send error alert to admin channel.

    Args:
        error_type: Type of error (e.g., "PriceFeed", "Startup")
        error_msg: Error message
        context: Additional context

    Returns:
        True if sent successfully
    """
    from src.notif.templates import template_error_admin

    message = template_error_admin(error_type, error_msg, context)
    return send_message(message, to_admin=True)
