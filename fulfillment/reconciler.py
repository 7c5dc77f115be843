"""
Supplier payment reconciliation for purchase orders.

Payment status is never stored; it is derived from the payment history:
  total paid == 0              -> UNPAID
  0 < total paid < price       -> PARTIAL
  total paid >= price          -> PAID

Recording a payment returns a new PurchaseOrder. The PO passed in, and its
payment tuple, are left as they were.
"""
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from models.purchase_order import (
    PAYMENT_PAID,
    PAYMENT_PARTIAL,
    PAYMENT_UNPAID,
    PaymentDetail,
    PaymentStatus,
    PurchaseOrder,
)
from models.result import PurchaseOrderSummary

from .exceptions import InvariantViolation, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "KSh"
ZERO = Decimal("0")


# ------------------------------------------------------------------
# Balances
# ------------------------------------------------------------------

def total_paid(po: PurchaseOrder) -> Decimal:
    return sum((p.amount_paid for p in po.payments), ZERO)


def outstanding(po: PurchaseOrder) -> Decimal:
    """
    Purchase price minus everything paid so far.

    Not clamped: a negative value means the history is already over-paid
    (see check_invariants). Treat anything <= 0 as fully paid.
    """
    return po.purchase_price - total_paid(po)


def derive_status(po: PurchaseOrder) -> PaymentStatus:
    paid = total_paid(po)
    if paid == ZERO:
        return PAYMENT_UNPAID
    if paid < po.purchase_price:
        return PAYMENT_PARTIAL
    return PAYMENT_PAID


def check_invariants(po: PurchaseOrder) -> None:
    """Raise InvariantViolation if payments add up to more than the purchase price."""
    paid = total_paid(po)
    if paid > po.purchase_price:
        raise InvariantViolation(
            f"Purchase order {po.po_id} has payments totalling {paid} "
            f"against a purchase price of {po.purchase_price}"
        )


# ------------------------------------------------------------------
# Recording payments
# ------------------------------------------------------------------

def record_payment(
    po: PurchaseOrder,
    amount,
    reference: str,
    proof_ref: Optional[str] = None,
    payment_date: Optional[date] = None,
    currency: str = DEFAULT_CURRENCY,
) -> PurchaseOrder:
    """
    Append a supplier payment and return the updated purchase order.

    Raises ValidationError for a non-positive amount, an amount above the
    outstanding balance, or a blank payment reference.
    """
    check_invariants(po)

    amount = _to_decimal(amount)
    if amount <= ZERO:
        raise ValidationError("Payment amount must be greater than zero", field="amount")

    balance = outstanding(po)
    if amount > balance:
        raise ValidationError(
            f"Amount exceeds outstanding balance of {format_amount(balance, currency)}",
            field="amount",
        )

    reference = (reference or "").strip()
    if not reference:
        raise ValidationError("Payment reference is required", field="reference")

    payment = PaymentDetail(
        amount_paid=amount,
        reference=reference,
        proof_of_payment=proof_ref or None,
        payment_date=payment_date or date.today(),
    )
    updated = po.model_copy(update={"payments": po.payments + (payment,)})

    logger.info(
        "Payment recorded: %s  amount=%s  ref=%s  status=%s -> %s",
        po.po_id, amount, reference, derive_status(po), derive_status(updated),
    )
    return updated


# ------------------------------------------------------------------
# Profit
# ------------------------------------------------------------------

def profit(po: PurchaseOrder) -> Decimal:
    return po.selling_price - po.purchase_price


def profit_percent(po: PurchaseOrder) -> Decimal:
    """Profit as a percentage of the selling price; 0 when the selling price is 0."""
    if po.selling_price == ZERO:
        return ZERO
    return profit(po) / po.selling_price * 100


# ------------------------------------------------------------------
# Hub totals
# ------------------------------------------------------------------

def summarize_purchase_orders(pos: Iterable[PurchaseOrder]) -> PurchaseOrderSummary:
    """
    Totals across purchase orders. Over-paid POs are listed in
    overpaid_po_ids rather than silently clamped.
    """
    summary = PurchaseOrderSummary()
    counts = {PAYMENT_UNPAID: 0, PAYMENT_PARTIAL: 0, PAYMENT_PAID: 0}
    for po in pos:
        paid = total_paid(po)
        counts[derive_status(po)] += 1
        summary.total_orders += 1
        summary.total_purchase_value += po.purchase_price
        summary.total_paid += paid
        summary.total_outstanding += outstanding(po)
        summary.total_profit += profit(po)
        if paid > po.purchase_price:
            logger.warning("Purchase order %s is over-paid (%s > %s)", po.po_id, paid, po.purchase_price)
            summary.overpaid_po_ids.append(po.po_id)

    summary.unpaid = counts[PAYMENT_UNPAID]
    summary.partial = counts[PAYMENT_PARTIAL]
    summary.paid = counts[PAYMENT_PAID]
    return summary


class PaymentReconciler:
    """
    Object wrapper around the payment rules, bound to a display currency.

    Usage:
        reconciler = PaymentReconciler(currency="KSh")
        po = reconciler.record_payment(po, "6000", "QK12AB34CD")
    """

    def __init__(self, currency: str = DEFAULT_CURRENCY):
        self.currency = currency

    def total_paid(self, po: PurchaseOrder) -> Decimal:
        return total_paid(po)

    def outstanding(self, po: PurchaseOrder) -> Decimal:
        return outstanding(po)

    def derive_status(self, po: PurchaseOrder) -> PaymentStatus:
        return derive_status(po)

    def record_payment(
        self,
        po: PurchaseOrder,
        amount,
        reference: str,
        proof_ref: Optional[str] = None,
        payment_date: Optional[date] = None,
    ) -> PurchaseOrder:
        return record_payment(po, amount, reference, proof_ref, payment_date, currency=self.currency)

    def summarize(self, pos: Iterable[PurchaseOrder]) -> PurchaseOrderSummary:
        return summarize_purchase_orders(pos)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def format_amount(amount: Decimal, currency: str = DEFAULT_CURRENCY) -> str:
    return f"{currency} {amount:,.2f}"


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid payment amount: {value!r}", field="amount")
    if not result.is_finite():
        raise ValidationError(f"Invalid payment amount: {value!r}", field="amount")
    return result
