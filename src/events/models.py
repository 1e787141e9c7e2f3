from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from src.events.grammar import Action, Condition


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Event:
    """A registered price condition and the action to run once it holds."""
    id: int
    exchange: str
    item: str
    condition: Condition
    base_currency: str
    quote_currency: str
    action: Action
    executed: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    executed_at: Optional[datetime] = None

    @property
    def pair(self) -> str:
        return f"{self.base_currency}{self.quote_currency}"

    def describe(self) -> str:
        """Natural-language form, e.g. 'If the BTCUSDT PRICE on Binance is > 100 then SMS,ALL.'"""
        return (
            f"If the {self.pair} {self.item} on {self.exchange} "
            f"is {self.condition} then {self.action}."
        )

    def snapshot(self) -> "Event":
        """Detached copy for readers outside the registry lock."""
        return replace(self)
