"""
Action dispatcher - delivers the message for a triggered event.
"""
from html import escape
from loguru import logger

from src.events.grammar import ActionKind
from src.events.models import Event
from src.notif.templates import template_event_triggered


class ActionDispatcher:
    """
    Routes a triggered event's action:
      SMS,ALL     -> broadcast to every contact
      SMS,<name>  -> single contact
      CONSOLE_PRINT -> log sink

    Args:
        contacts: ContactDirectory-like (resolve_contact, send_to, broadcast_all)
    """

    def __init__(self, contacts):
        self.contacts = contacts

    async def dispatch(self, event: Event) -> bool:
        """Deliver the trigger message. Returns True if delivery succeeded."""
        message = template_event_triggered(event)
        action = event.action

        try:
            if action.kind == ActionKind.CONSOLE_PRINT:
                logger.info(message)
                return True

            # Telegram parses HTML; operators like "<=" must be escaped
            message = escape(message, quote=False)

            if action.is_broadcast:
                return await self.contacts.broadcast_all(message)

            address = self.contacts.resolve_contact(action.target)
            if address is None:
                # Validated at registration; the contact disappeared since
                logger.error(f"Event {event.id}: contact {action.target!r} not found, message dropped")
                return False
            return await self.contacts.send_to(address, message)

        except Exception as e:
            logger.exception(f"Event {event.id}: action {action} failed: {e}")
            return False
