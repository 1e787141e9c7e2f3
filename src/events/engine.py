"""
Event Engine - polls prices for pending events and fires their actions.
Each event fires at most once; fired events stay in the registry as executed.
"""
import asyncio
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple
from loguru import logger

from src.events.grammar import Condition
from src.events.models import Event

PriceKey = Tuple[str, str, str]  # (exchange, base, quote)


def evaluate_condition(condition: Condition, price) -> bool:
    """Compare a live price against the condition. Non-numeric prices never match."""
    try:
        value = price if isinstance(price, Decimal) else Decimal(str(price))
    except (InvalidOperation, ValueError, TypeError):
        return False
    if not value.is_finite():
        return False
    return condition.is_met(value)


class EventEngine:
    """
    Evaluates pending events on a fixed tick.

    Args:
        registry: EventRegistry
        price_feed: PriceFeed
        dispatcher: ActionDispatcher
        check_interval: Seconds between evaluation cycles
        lookup_timeout: Max seconds to wait for a single price lookup
    """

    def __init__(self, registry, price_feed, dispatcher,
                 check_interval: float = 5, lookup_timeout: float = 3.0):
        self.registry = registry
        self.price_feed = price_feed
        self.dispatcher = dispatcher
        self.check_interval = check_interval
        self.lookup_timeout = lookup_timeout
        self.running = False
        self.cycles = 0
        self._stop_requested = asyncio.Event()

    @staticmethod
    def _price_key(event: Event) -> PriceKey:
        return event.exchange, event.base_currency, event.quote_currency

    async def _lookup(self, key: PriceKey) -> Optional[Decimal]:
        """Single bounded price lookup. Any failure means 'not yet decidable'."""
        exchange, base, quote = key
        try:
            price = await asyncio.wait_for(
                self.price_feed.last_price(exchange, base, quote),
                timeout=self.lookup_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Price lookup timed out after {self.lookup_timeout}s: {base}{quote} on {exchange}")
            return None
        except Exception as e:
            logger.warning(f"Price lookup failed for {base}{quote} on {exchange}: {e}")
            return None

        if price is None or price == 0:
            logger.debug(f"No price available for {base}{quote} on {exchange}")
            return None
        return price

    async def _fetch_prices(self, events: List[Event]) -> Dict[PriceKey, Optional[Decimal]]:
        """Fetch each distinct (exchange, pair) once, all lookups concurrently."""
        keys = list(dict.fromkeys(self._price_key(e) for e in events))
        prices = await asyncio.gather(*(self._lookup(key) for key in keys))
        return dict(zip(keys, prices))

    async def run_cycle(self) -> List[int]:
        """
        One evaluation pass over all pending events, in registration order.

        Returns:
            Ids of events fired during this cycle
        """
        pending = self.registry.pending()
        self.cycles += 1
        if not pending:
            return []

        prices = await self._fetch_prices(pending)
        fired: List[int] = []

        for event in pending:
            price = prices.get(self._price_key(event))
            if price is None or not evaluate_condition(event.condition, price):
                continue

            # Removal or a concurrent fire since the snapshot wins
            if not self.registry.mark_executed(event.id):
                logger.debug(f"Event {event.id} no longer pending, skipping action")
                continue

            fired.append(event.id)
            logger.info(f"Event {event.id} triggered on {event.exchange} successfully.")

            delivered = await self.dispatcher.dispatch(event)
            if not delivered:
                logger.error(f"Event {event.id}: action {event.action} could not be delivered (not retried)")

        return fired

    async def run(self):
        """Main loop: evaluate, then wait check_interval (or until stopped)."""
        self._stop_requested.clear()
        self.running = True
        total, executed = self.registry.counts()
        logger.info(
            f"Event engine started: {total} events ({executed} executed), "
            f"interval={self.check_interval}s, lookup_timeout={self.lookup_timeout}s"
        )

        try:
            while not self._stop_requested.is_set():
                try:
                    await self.run_cycle()
                except Exception as e:
                    logger.exception(f"Error in event engine loop: {e}")

                try:
                    await asyncio.wait_for(self._stop_requested.wait(), timeout=self.check_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self.running = False
            total, executed = self.registry.counts()
            logger.info(f"Event engine stopped after {self.cycles} cycles ({executed}/{total} events executed)")

    async def stop(self):
        """Stop the engine gracefully; an in-flight cycle is allowed to finish."""
        logger.info("Stopping event engine...")
        self._stop_requested.set()


# Global engine instance
_engine_instance: Optional[EventEngine] = None


def get_event_engine() -> EventEngine:
    """Get global event engine instance (singleton)."""
    global _engine_instance
    if _engine_instance is None:
        from src.config import get_events_config
        from src.datafeeds.exchanges import get_price_feed
        from src.events.dispatcher import ActionDispatcher
        from src.events.registry import get_event_registry
        from src.notif.contacts import get_contact_directory

        events_config = get_events_config()
        _engine_instance = EventEngine(
            registry=get_event_registry(),
            price_feed=get_price_feed(),
            dispatcher=ActionDispatcher(get_contact_directory()),
            check_interval=events_config['check_interval'],
            lookup_timeout=events_config['lookup_timeout']
        )
    return _engine_instance
