"""
Purchase order creation for outsourced line items, and proof-of-payment
upload checks.
"""
import logging
import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from models.invoice import Invoice, LineItem
from models.purchase_order import PurchaseOrder

from .exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)

MAX_PROOF_BYTES = 5 * 1024 * 1024   # 5 MB
DEFAULT_PROOF_SUFFIX = ".jpg"
PROOF_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"}


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def new_po_id() -> str:
    return f"PO-{_epoch_ms()}"


def create_purchase_order(
    invoice: Invoice,
    item: LineItem,
    supplier_name: str,
    supplier_phone: str,
    purchase_price,
    po_id: Optional[str] = None,
) -> PurchaseOrder:
    """
    Build an UNPAID purchase order for an outsourced line item.

    The selling price is taken from the line item's unit price so the
    profit margin can be shown against it.
    """
    current = invoice.get_line_item(item.id)
    if current is None:
        raise NotFound(f"Line item {item.id} not found on invoice {invoice.invoice_id}")
    if current.po_id:
        raise ValidationError(
            f"Line item {item.id} already has purchase order {current.po_id}",
            field="po_id",
        )

    supplier_name = (supplier_name or "").strip()
    supplier_phone = (supplier_phone or "").strip()
    if not supplier_name:
        raise ValidationError("Supplier name is required", field="supplier_name")
    if not supplier_phone:
        raise ValidationError("Supplier phone is required", field="supplier_phone")

    try:
        price = Decimal(str(purchase_price).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid purchase price: {purchase_price!r}", field="purchase_price")
    if not price.is_finite() or price <= 0:
        raise ValidationError("Purchase price must be greater than zero", field="purchase_price")

    po = PurchaseOrder(
        po_id=po_id or new_po_id(),
        related_invoice_id=invoice.invoice_id,
        product_id=item.product_id,
        supplier_name=supplier_name,
        supplier_phone=supplier_phone,
        purchase_price=price,
        selling_price=item.unit_price,
    )
    logger.info(
        "Purchase order created: %s  invoice=%s  product=%s  supplier=%s",
        po.po_id, invoice.invoice_id, item.product_id, supplier_name,
    )
    return po


def check_proof_of_payment(
    filename: str,
    content_type: Optional[str],
    size: int,
    max_bytes: int = MAX_PROOF_BYTES,
) -> str:
    """
    Validate an uploaded receipt image and return the name to store it under.

    Only images are accepted, up to *max_bytes*. A filename suffix that is
    not an image extension is replaced with .jpg.
    """
    if not (content_type or "").startswith("image/"):
        raise ValidationError(
            "Please select an image file for proof of payment",
            field="proof_of_payment",
        )
    if size > max_bytes:
        raise ValidationError(
            f"Proof of payment must be smaller than {max_bytes // (1024 * 1024)}MB",
            field="proof_of_payment",
        )
    suffix = Path(filename or "").suffix.lower()
    if suffix not in PROOF_SUFFIXES:
        suffix = DEFAULT_PROOF_SUFFIX
    return f"proof_{_epoch_ms()}{suffix}"
