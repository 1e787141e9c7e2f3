"""Price feed interface consumed by the event engine."""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional


class PriceFeed(ABC):
    """Source of last-traded prices per exchange and currency pair."""

    @abstractmethod
    async def last_price(self, exchange: str, base: str, quote: str) -> Optional[Decimal]:
        """
        Current last-traded price, or None when no price is available now.
        A zero price is also treated as unavailable by callers.
        May raise on transport errors; callers treat that as unavailable too.
        """
