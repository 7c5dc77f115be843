"""
Line item assignment edits.

Every function returns a new LineItem / Invoice; nothing is modified in
place, so a view holding the previous value keeps seeing it unchanged.
"""
import logging
from typing import Callable, Iterable, Optional, Union

from models.field_rep import FieldRep
from models.invoice import (
    ALL_SOURCES,
    FIXED_LOCATION_SOURCES,
    FieldRepAssignment,
    Invoice,
    LineItem,
    OutsourceAssignment,
    SOURCE_FIELD_REP,
    SOURCE_OUTSOURCE,
    WarehouseAssignment,
)

from .exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)


def parse_serial_numbers(serials: Union[str, Iterable[str], None]) -> tuple[str, ...]:
    """
    Normalise serial input into a tuple.

    Accepts newline-separated text (one serial per line, as typed into the
    dashboard) or any iterable of strings. Blank entries are dropped.
    """
    if serials is None:
        return ()
    if isinstance(serials, str):
        serials = serials.splitlines()
    return tuple(s.strip() for s in serials if s and s.strip())


def choose_source(item: LineItem, source: str) -> LineItem:
    """Switch the item to *source*, discarding any previous source-specific data."""
    if source in FIXED_LOCATION_SOURCES:
        assignment = WarehouseAssignment(source=source)
    elif source == SOURCE_FIELD_REP:
        assignment = FieldRepAssignment()
    elif source == SOURCE_OUTSOURCE:
        assignment = OutsourceAssignment()
    else:
        raise ValidationError(
            f"Unknown fulfillment source '{source}' (expected one of {', '.join(ALL_SOURCES)})",
            field="fulfillment_source",
        )
    logger.debug("Line item %s: source %s -> %s", item.id, item.fulfillment_source, source)
    return item.model_copy(update={"assignment": assignment})


def clear_assignment(item: LineItem) -> LineItem:
    return item.model_copy(update={"assignment": None})


def set_serial_numbers(item: LineItem, serials: Union[str, Iterable[str], None]) -> LineItem:
    assignment = item.assignment
    if not isinstance(assignment, (WarehouseAssignment, FieldRepAssignment)):
        raise ValidationError(
            f"Serial numbers only apply to warehouse or field rep stock "
            f"(line item {item.id} is {item.fulfillment_source or 'unassigned'})",
            field="serial_numbers",
        )
    updated = assignment.model_copy(update={"serial_numbers": parse_serial_numbers(serials)})
    return item.model_copy(update={"assignment": updated})


def assign_rep(
    item: LineItem,
    rep_id: Optional[str],
    roster: Optional[Iterable[FieldRep]] = None,
) -> LineItem:
    """Set the field rep. When *roster* is given the rep must be on it."""
    assignment = item.assignment
    if not isinstance(assignment, FieldRepAssignment):
        raise ValidationError(
            f"Line item {item.id} is not assigned to a field rep",
            field="assigned_rep",
        )
    rep_id = (rep_id or "").strip() or None
    if rep_id and roster is not None and rep_id not in {r.id for r in roster}:
        raise NotFound(f"Field rep not found: {rep_id}")
    return item.model_copy(update={"assignment": assignment.model_copy(update={"rep_id": rep_id})})


def attach_purchase_order(item: LineItem, po_id: Optional[str]) -> LineItem:
    assignment = item.assignment
    if not isinstance(assignment, OutsourceAssignment):
        raise ValidationError(
            f"Line item {item.id} is not outsourced",
            field="po_id",
        )
    po_id = (po_id or "").strip() or None
    return item.model_copy(update={"assignment": assignment.model_copy(update={"po_id": po_id})})


# ------------------------------------------------------------------
# Invoice-level edits
# ------------------------------------------------------------------

def replace_line_item(invoice: Invoice, item: LineItem) -> Invoice:
    """Return *invoice* with the line item of the same id swapped for *item*."""
    if invoice.get_line_item(item.id) is None:
        raise NotFound(f"Line item {item.id} not found on invoice {invoice.invoice_id}")
    items = tuple(item if li.id == item.id else li for li in invoice.line_items)
    return invoice.model_copy(update={"line_items": items})


def update_line_item(
    invoice: Invoice,
    item_id: str,
    change: Callable[[LineItem], LineItem],
) -> Invoice:
    """Apply *change* to one line item and return the new invoice."""
    item = invoice.get_line_item(item_id)
    if item is None:
        raise NotFound(f"Line item {item_id} not found on invoice {invoice.invoice_id}")
    return replace_line_item(invoice, change(item))


def bulk_assign(invoice: Invoice, item_ids: Iterable[str], source: str) -> Invoice:
    """Switch every selected line item to *source* in one go."""
    selected = set(item_ids)
    if not selected:
        raise ValidationError("No line items selected", field="item_ids")
    unknown = selected - {li.id for li in invoice.line_items}
    if unknown:
        raise ValidationError(
            f"Line items not on invoice {invoice.invoice_id}: {', '.join(sorted(unknown))}",
            field="item_ids",
        )
    items = tuple(
        choose_source(li, source) if li.id in selected else li
        for li in invoice.line_items
    )
    logger.info("Bulk assigned %d item(s) on %s to %s", len(selected), invoice.invoice_id, source)
    return invoice.model_copy(update={"line_items": items})
