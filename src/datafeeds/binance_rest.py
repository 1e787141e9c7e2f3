"""
Binance REST API client for last-traded prices.
Implements retry logic with exponential backoff for resilience.
Works against any Binance-compatible API base (binance.com, binance.us).
"""
import time
from decimal import Decimal, InvalidOperation
from typing import Optional
import requests
from loguru import logger

BINANCE_API_BASE = "https://api.binance.com"


class BinanceRESTClient:
    """Client for Binance REST API with retry logic."""

    def __init__(self, api_base: str = BINANCE_API_BASE, max_retries: int = 3, timeout: float = 10):
        self.api_base = api_base.rstrip("/")
        self.max_retries = max_retries
        self.timeout = timeout
        self.session = requests.Session()

    def _retry_with_backoff(self, func, *args, **kwargs):
        """Execute function with exponential backoff on failure."""
        for attempt in range(self.max_retries):
            try:
                return func(*args, **kwargs)
            except (requests.exceptions.RequestException, requests.exceptions.Timeout) as e:
                if attempt == self.max_retries - 1:
                    # Final attempt failed
                    logger.error(f"Binance REST API failed after {self.max_retries} attempts: {e}")
                    raise

                # Exponential backoff: 1s, 2s, 4s
                backoff = 2 ** attempt
                logger.warning(f"Binance REST API attempt {attempt + 1} failed, retrying in {backoff}s: {e}")
                time.sleep(backoff)

    def get_ticker_price(self, symbol: str) -> Optional[Decimal]:
        """
        Fetch the latest traded price for a symbol.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")

        Returns:
            Last price as Decimal, or None if the payload has no usable price.
            Binance format: {"symbol": "BTCUSDT", "price": "67420.50000000"}
        """
        def _fetch():
            url = f"{self.api_base}/api/v3/ticker/price"
            response = self.session.get(url, params={"symbol": symbol.upper()}, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        payload = self._retry_with_backoff(_fetch)
        return parse_ticker_price(payload)


def parse_ticker_price(payload) -> Optional[Decimal]:
    """Extract the price from a ticker payload, keeping full decimal precision."""
    if not isinstance(payload, dict) or "price" not in payload:
        return None
    try:
        return Decimal(str(payload["price"]))
    except InvalidOperation:
        logger.warning(f"Unparseable ticker price in payload: {payload}")
        return None
