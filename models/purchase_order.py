from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


PaymentStatus = Literal["UNPAID", "PARTIAL", "PAID"]

PAYMENT_UNPAID  = "UNPAID"
PAYMENT_PARTIAL = "PARTIAL"
PAYMENT_PAID    = "PAID"
ALL_PAYMENT_STATUSES = (PAYMENT_UNPAID, PAYMENT_PARTIAL, PAYMENT_PAID)


class PaymentDetail(BaseModel):
    """A single payment made to the supplier. Never edited once recorded."""
    model_config = ConfigDict(frozen=True)

    amount_paid: Decimal = Field(gt=0)
    reference: str                          # external payment code, e.g. M-PESA
    proof_of_payment: Optional[str] = None  # stored receipt image name
    payment_date: date = Field(default_factory=date.today)


class PurchaseOrder(BaseModel):
    """
    An outsourced purchase from a supplier for one invoice line item.
    payment_status is derived from the payment history and cannot be set.
    """
    model_config = ConfigDict(frozen=True)

    po_id: str
    related_invoice_id: str
    product_id: str
    supplier_name: str = ""
    supplier_phone: str = ""
    purchase_price: Decimal = Field(ge=0)
    selling_price: Decimal = Field(ge=0)
    payments: tuple[PaymentDetail, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def payment_status(self) -> PaymentStatus:
        from fulfillment.reconciler import derive_status
        return derive_status(self)
