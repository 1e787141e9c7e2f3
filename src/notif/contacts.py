"""
Contact directory for messenger notifications.
Maps contact names (used in "SMS,<name>" actions) to Telegram chat ids.
"""
import asyncio
from typing import Dict, List, Optional
from loguru import logger

from src.telegram_bot import send_message_async


class ContactDirectory:
    """Known notification contacts and delivery helpers."""

    def __init__(self, contacts: Optional[Dict[str, str]] = None):
        self._contacts: Dict[str, str] = dict(contacts or {})

    def resolve_contact(self, name: str) -> Optional[str]:
        """Return the chat id for `name`, or None if unknown."""
        return self._contacts.get(name)

    def names(self) -> List[str]:
        return list(self._contacts)

    def addresses(self) -> List[str]:
        return list(self._contacts.values())

    async def send_to(self, address: str, message: str) -> bool:
        return await send_message_async(message, chat_id=address)

    async def broadcast_all(self, message: str) -> bool:
        """
        Send `message` to every known contact.

        Returns:
            True if every delivery succeeded (vacuously True with no contacts)
        """
        addresses = self.addresses()
        if not addresses:
            logger.warning("Broadcast requested but no contacts are configured")
            return True

        results = await asyncio.gather(
            *(self.send_to(address, message) for address in addresses)
        )
        failed = sum(1 for ok in results if not ok)
        if failed:
            logger.error(f"Broadcast failed for {failed}/{len(addresses)} contacts")
        return failed == 0


# Global directory instance
_directory_instance: Optional[ContactDirectory] = None


def get_contact_directory() -> ContactDirectory:
    """Get global contact directory (singleton), loaded from config."""
    global _directory_instance
    if _directory_instance is None:
        from src.config import get_contacts_config
        _directory_instance = ContactDirectory(get_contacts_config())
    return _directory_instance
