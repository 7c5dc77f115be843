"""
Invoice lifecycle.

  AWAITING_FULFILLMENT -> ASSIGNED -> DISPATCHED -> COMPLETED

The only backward move is rejecting an assignment at dispatch approval,
which returns the invoice to AWAITING_FULFILLMENT so it can be edited again.
"""
import logging

from models.invoice import (
    Invoice,
    STATUS_ASSIGNED,
    STATUS_AWAITING_FULFILLMENT,
    STATUS_COMPLETED,
    STATUS_DISPATCHED,
)

from .evaluator import is_complete, missing_requirements
from .exceptions import InvalidTransition, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_AWAITING_FULFILLMENT: frozenset({STATUS_ASSIGNED}),
    STATUS_ASSIGNED:             frozenset({STATUS_DISPATCHED, STATUS_AWAITING_FULFILLMENT}),
    STATUS_DISPATCHED:           frozenset({STATUS_COMPLETED}),
    STATUS_COMPLETED:            frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_editable(invoice: Invoice) -> None:
    """Assignments can only be changed before the invoice is submitted."""
    if invoice.status != STATUS_AWAITING_FULFILLMENT:
        raise InvalidTransition(
            invoice.status,
            STATUS_AWAITING_FULFILLMENT,
            f"Invoice {invoice.invoice_id} is {invoice.status}; assignments can no longer be edited",
        )


def _ensure_ready(invoice: Invoice) -> None:
    if not invoice.line_items:
        raise ValidationError(f"Invoice {invoice.invoice_id} has no line items", field="line_items")
    problems = [
        f"{li.product_name or li.id}: {'; '.join(missing_requirements(li))}"
        for li in invoice.line_items
        if not is_complete(li)
    ]
    if problems:
        raise ValidationError(
            "Not every line item is ready for dispatch: " + " | ".join(problems),
            field="line_items",
        )


def _move(invoice: Invoice, target: str) -> Invoice:
    if not can_transition(invoice.status, target):
        raise InvalidTransition(invoice.status, target)
    logger.info("Invoice %s: %s -> %s", invoice.invoice_id, invoice.status, target)
    return invoice.model_copy(update={"status": target})


def submit_assignment(invoice: Invoice) -> Invoice:
    _ensure_ready(invoice)
    return _move(invoice, STATUS_ASSIGNED)


def approve_dispatch(invoice: Invoice) -> Invoice:
    if invoice.status == STATUS_ASSIGNED:
        _ensure_ready(invoice)
    return _move(invoice, STATUS_DISPATCHED)


def reject_dispatch(invoice: Invoice) -> Invoice:
    return _move(invoice, STATUS_AWAITING_FULFILLMENT)


def mark_completed(invoice: Invoice) -> Invoice:
    return _move(invoice, STATUS_COMPLETED)
