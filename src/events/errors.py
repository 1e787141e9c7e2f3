"""
Event registration errors.
Raised by EventRegistry.add() when an event fails validation; never raised
from inside the evaluation loop.
"""


class EventError(Exception):
    """Base class for event validation errors."""

    default_message = "Invalid event."

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class InvalidItem(EventError):
    """Item kind is not a supported monitored quantity."""

    default_message = "Invalid item."


class InvalidCondition(EventError):
    """Operator unrecognized or threshold missing/unparseable."""

    default_message = "Invalid conditional option."


class InvalidAction(EventError):
    """Action shape unrecognized or notification target not resolvable."""

    default_message = "Invalid action."


class ExchangeDisabled(EventError):
    """Exchange unknown or currently disabled."""

    default_message = "Desired exchange is disabled."
