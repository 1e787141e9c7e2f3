"""
Event registry - owns all registered price events.

All access goes through a single lock so the evaluation loop, HTTP handlers
and any caller thread see consistent state. Ids come from a monotonic
counter and are never reused, even after removals.
"""
import itertools
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from loguru import logger

from src.events.grammar import (
    parse_action,
    parse_condition,
    validate_action,
    validate_exchange,
    validate_item
)
from src.events.models import Event


class EventRegistry:
    """
    Thread-safe collection of price events.

    Args:
        exchanges: object exposing is_known_and_enabled(name) -> bool
        contacts: object exposing resolve_contact(name) -> Optional[str]
        first_id: first id handed out by add()
    """

    def __init__(self, exchanges, contacts, first_id: int = 0):
        self.exchanges = exchanges
        self.contacts = contacts
        self._lock = threading.Lock()
        self._events: Dict[int, Event] = {}  # insertion order == registration order
        self._ids = itertools.count(first_id)

    def add(
        self,
        exchange: str,
        item: str,
        condition: str,
        base_currency: str,
        quote_currency: str,
        action: str
    ) -> int:
        """
        Validate and register a new event.

        Returns:
            The new event id.

        Raises:
            ExchangeDisabled, InvalidItem, InvalidCondition, InvalidAction
            (nothing is stored when validation fails)
        """
        validate_exchange(exchange, self.exchanges)
        validate_item(item)
        parsed_condition = parse_condition(condition)
        parsed_action = parse_action(action)
        validate_action(parsed_action, self.contacts)

        with self._lock:
            event_id = next(self._ids)
            event = Event(
                id=event_id,
                exchange=exchange,
                item=item,
                condition=parsed_condition,
                base_currency=base_currency,
                quote_currency=quote_currency,
                action=parsed_action
            )
            self._events[event_id] = event

        logger.info(f"Event {event_id} added: {event.describe()}")
        return event_id

    def remove(self, event_id: int) -> bool:
        """Remove an event by id. Returns False if no such event exists."""
        with self._lock:
            removed = self._events.pop(event_id, None) is not None

        if removed:
            logger.info(f"Event {event_id} removed")
        else:
            logger.debug(f"Event {event_id} not found, nothing removed")
        return removed

    def counts(self) -> Tuple[int, int]:
        """Atomic (total, executed) snapshot."""
        with self._lock:
            total = len(self._events)
            executed = sum(1 for e in self._events.values() if e.executed)
        return total, executed

    def pending(self) -> List[Event]:
        """Snapshots of non-executed events, in registration order."""
        with self._lock:
            return [e.snapshot() for e in self._events.values() if not e.executed]

    def mark_executed(self, event_id: int) -> bool:
        """
        Transition a live event from pending to executed.

        Returns True only for the caller that performed the transition;
        False if the event was removed meanwhile or had already fired.
        """
        with self._lock:
            event = self._events.get(event_id)
            if event is None or event.executed:
                return False
            event.executed = True
            event.executed_at = datetime.now(timezone.utc)
            return True

    def get(self, event_id: int) -> Optional[Event]:
        with self._lock:
            event = self._events.get(event_id)
            return event.snapshot() if event else None

    def list_events(self) -> List[Event]:
        with self._lock:
            return [e.snapshot() for e in self._events.values()]

    def describe(self, event_id: int) -> Optional[str]:
        """Human-readable description of an event, or None if it does not exist."""
        event = self.get(event_id)
        return event.describe() if event else None

    def last_executed_at(self) -> Optional[datetime]:
        with self._lock:
            stamps = [e.executed_at for e in self._events.values() if e.executed_at]
        return max(stamps) if stamps else None


# Global registry instance
_registry_instance: Optional[EventRegistry] = None


def get_event_registry() -> EventRegistry:
    """Get global event registry (singleton), wired to the configured directories."""
    global _registry_instance
    if _registry_instance is None:
        from src.datafeeds.exchanges import get_exchange_directory
        from src.notif.contacts import get_contact_directory

        _registry_instance = EventRegistry(
            exchanges=get_exchange_directory(),
            contacts=get_contact_directory()
        )
    return _registry_instance
