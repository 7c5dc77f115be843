from .exceptions import (
    FulfillmentError, ValidationError, InvariantViolation, InvalidTransition, NotFound,
)
from .evaluator import FulfillmentEvaluator, is_complete, summarize
from .reconciler import PaymentReconciler, record_payment, derive_status
from .store import FulfillmentStore

__all__ = [
    "FulfillmentError", "ValidationError", "InvariantViolation", "InvalidTransition", "NotFound",
    "FulfillmentEvaluator", "is_complete", "summarize",
    "PaymentReconciler", "record_payment", "derive_status",
    "FulfillmentStore",
]
