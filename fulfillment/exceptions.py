"""
Exceptions raised by the fulfillment rules.

Incompleteness is never an error: the evaluators answer "not complete"
instead. Only operations that change an aggregate raise.
"""


class FulfillmentError(Exception):
    """Base class for every fulfillment error."""


class ValidationError(FulfillmentError, ValueError):
    """The requested change breaks a business constraint."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvariantViolation(FulfillmentError):
    """Stored data already breaks an invariant (e.g. a PO paid beyond its price)."""


class InvalidTransition(FulfillmentError):
    """An invoice cannot move from its current status to the requested one."""

    def __init__(self, current: str, target: str, message: str | None = None):
        super().__init__(message or f"Cannot move invoice from {current} to {target}")
        self.current = current
        self.target = target


class NotFound(FulfillmentError, KeyError):
    """An invoice, purchase order, line item or rep does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""
