"""
Condition grammar for price events.

Parses the compact string forms used when registering events:
    condition: "<operator>,<threshold>"   e.g. ">=,67000.50"
    action:    "SMS,<contact|ALL>" or "CONSOLE_PRINT"

Strings are parsed once into typed Condition/Action values and never
re-parsed after registration.
"""
import operator as _op
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from src.events.errors import (
    InvalidItem,
    InvalidCondition,
    InvalidAction,
    ExchangeDisabled
)

ITEM_PRICE = "PRICE"
BROADCAST_TARGET = "ALL"


class Operator(str, Enum):
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    IS_EQUAL = "=="

    def compare(self, price: Decimal, threshold: Decimal) -> bool:
        """Return True if `price <op> threshold` holds."""
        return _COMPARATORS[self](price, threshold)


_COMPARATORS = {
    Operator.GREATER_THAN: _op.gt,
    Operator.GREATER_THAN_OR_EQUAL: _op.ge,
    Operator.LESS_THAN: _op.lt,
    Operator.LESS_THAN_OR_EQUAL: _op.le,
    Operator.IS_EQUAL: _op.eq,
}


class ActionKind(str, Enum):
    SMS = "SMS"
    CONSOLE_PRINT = "CONSOLE_PRINT"


@dataclass(frozen=True)
class Condition:
    operator: Operator
    threshold: Decimal

    def is_met(self, price: Decimal) -> bool:
        return self.operator.compare(price, self.threshold)

    def __str__(self) -> str:
        return f"{self.operator.value} {self.threshold}"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    target: Optional[str] = None

    @property
    def is_broadcast(self) -> bool:
        return self.kind == ActionKind.SMS and self.target == BROADCAST_TARGET

    def __str__(self) -> str:
        if self.target is None:
            return self.kind.value
        return f"{self.kind.value},{self.target}"


def parse_condition(condition: str) -> Condition:
    """
    Parse "<operator>,<threshold>" into a Condition.

    Raises:
        InvalidCondition: missing separator, unknown operator, or an empty
            or non-numeric threshold.
    """
    if not isinstance(condition, str) or "," not in condition:
        raise InvalidCondition()

    op_token, threshold_token = (part.strip() for part in condition.split(",", 1))

    try:
        op = Operator(op_token)
    except ValueError:
        raise InvalidCondition(f"Invalid conditional option: {op_token!r}")

    if not threshold_token:
        raise InvalidCondition("Invalid conditional option: missing threshold")

    try:
        threshold = Decimal(threshold_token)
    except InvalidOperation:
        raise InvalidCondition(f"Invalid conditional option: threshold {threshold_token!r}")

    # Decimal accepts "NaN"/"Infinity", which can never be compared meaningfully
    if not threshold.is_finite():
        raise InvalidCondition(f"Invalid conditional option: threshold {threshold_token!r}")

    return Condition(operator=op, threshold=threshold)


def parse_action(action: str) -> Action:
    """
    Parse "SMS,<target>" or "CONSOLE_PRINT" into an Action.
    Does not check that a named target exists; see validate_action().
    """
    if not isinstance(action, str):
        raise InvalidAction()

    if "," in action:
        kind_token, target = (part.strip() for part in action.split(",", 1))
        if kind_token != ActionKind.SMS.value or not target:
            raise InvalidAction(f"Invalid action: {action!r}")
        return Action(kind=ActionKind.SMS, target=target)

    if action.strip() != ActionKind.CONSOLE_PRINT.value:
        raise InvalidAction(f"Invalid action: {action!r}")
    return Action(kind=ActionKind.CONSOLE_PRINT)


def validate_action(action: Action, contacts) -> None:
    """Raise InvalidAction if a named notification target is unknown to `contacts`."""
    if action.kind != ActionKind.SMS or action.is_broadcast:
        return
    if contacts.resolve_contact(action.target) is None:
        raise InvalidAction(f"Invalid action: contact {action.target!r} not found")


def validate_item(item: str) -> None:
    if item != ITEM_PRICE:
        raise InvalidItem(f"Invalid item: {item!r}")


def validate_exchange(exchange: str, exchanges) -> None:
    if not exchanges.is_known_and_enabled(exchange):
        raise ExchangeDisabled(f"Desired exchange is disabled: {exchange!r}")
