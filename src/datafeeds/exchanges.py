"""
Exchange directory and the REST-backed price feed.
"""
import asyncio
from decimal import Decimal
from typing import Dict, List, Optional
from loguru import logger

from src.datafeeds.base import PriceFeed
from src.datafeeds.binance_rest import BinanceRESTClient


class ExchangeDirectory:
    """
    Known exchanges and their enabled state.

    Args:
        exchanges: entries like {"name": "Binance", "enabled": True, "api_base": "..."}
    """

    def __init__(self, exchanges: Optional[List[Dict]] = None):
        self._exchanges: Dict[str, Dict] = {}
        for entry in exchanges or []:
            self._exchanges[entry["name"]] = {
                "name": entry["name"],
                "enabled": bool(entry.get("enabled", True)),
                "api_base": entry.get("api_base"),
            }

    def is_known_and_enabled(self, name: str) -> bool:
        entry = self._exchanges.get(name)
        return bool(entry and entry["enabled"])

    def enable(self, name: str) -> bool:
        return self._set_enabled(name, True)

    def disable(self, name: str) -> bool:
        return self._set_enabled(name, False)

    def _set_enabled(self, name: str, enabled: bool) -> bool:
        entry = self._exchanges.get(name)
        if entry is None:
            return False
        entry["enabled"] = enabled
        logger.info(f"Exchange {name} {'enabled' if enabled else 'disabled'}")
        return True

    def get(self, name: str) -> Optional[Dict]:
        entry = self._exchanges.get(name)
        return dict(entry) if entry else None

    def names(self) -> List[str]:
        return list(self._exchanges)


class ExchangePriceFeed(PriceFeed):
    """
    Price feed backed by one Binance-compatible REST client per exchange.
    Blocking HTTP calls run in a worker thread.
    """

    def __init__(self, directory: ExchangeDirectory, max_retries: int = 1, timeout: float = 10):
        self.directory = directory
        self.max_retries = max_retries
        self.timeout = timeout
        self._clients: Dict[str, BinanceRESTClient] = {}

    def _client_for(self, exchange: str) -> Optional[BinanceRESTClient]:
        client = self._clients.get(exchange)
        if client is None:
            entry = self.directory.get(exchange)
            if entry is None or not entry.get("api_base"):
                return None
            client = BinanceRESTClient(
                api_base=entry["api_base"],
                max_retries=self.max_retries,
                timeout=self.timeout
            )
            self._clients[exchange] = client
        return client

    async def last_price(self, exchange: str, base: str, quote: str) -> Optional[Decimal]:
        if not self.directory.is_known_and_enabled(exchange):
            logger.debug(f"Exchange {exchange} unavailable, no price for {base}{quote}")
            return None

        client = self._client_for(exchange)
        if client is None:
            logger.warning(f"No price source configured for exchange {exchange}")
            return None

        return await asyncio.to_thread(client.get_ticker_price, f"{base}{quote}")


# Global instances
_directory_instance: Optional[ExchangeDirectory] = None
_feed_instance: Optional[ExchangePriceFeed] = None


def get_exchange_directory() -> ExchangeDirectory:
    """Get global exchange directory (singleton), loaded from config."""
    global _directory_instance
    if _directory_instance is None:
        from src.config import get_exchanges_config
        _directory_instance = ExchangeDirectory(get_exchanges_config())
    return _directory_instance


def get_price_feed() -> ExchangePriceFeed:
    """Get global price feed (singleton)."""
    global _feed_instance
    if _feed_instance is None:
        from src.config import get_events_config
        events_config = get_events_config()
        # HTTP timeout never outlives a single lookup
        _feed_instance = ExchangePriceFeed(
            get_exchange_directory(),
            max_retries=events_config['max_retries'],
            timeout=events_config['lookup_timeout']
        )
    return _feed_instance
