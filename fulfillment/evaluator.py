"""
Fulfillment completeness rules.

A line item is ready for dispatch when its assignment carries everything the
chosen source needs:
  MAIN_HQ / NYAMIRA:  at least `quantity` serial numbers
  FIELD_REP:          a rep and at least `quantity` serial numbers
  OUTSOURCE:          a purchase order reference

Completeness is recomputed from the current fields on every call; nothing is
cached on the item.
"""
import logging
from typing import Iterable, Optional

from models.invoice import (
    FieldRepAssignment,
    LineItem,
    OutsourceAssignment,
    SOURCE_FIELD_REP,
    SOURCE_MAIN_HQ,
    SOURCE_NYAMIRA,
    SOURCE_OUTSOURCE,
    WarehouseAssignment,
)
from models.result import FulfillmentSummary

logger = logging.getLogger(__name__)

_BUCKETS = {
    SOURCE_MAIN_HQ:   "main_hq",
    SOURCE_NYAMIRA:   "nyamira",
    SOURCE_FIELD_REP: "field_rep",
    SOURCE_OUTSOURCE: "outsource",
}


def _serials_cover(serials: Optional[tuple[str, ...]], quantity: int) -> bool:
    # Extra serials are accepted; the list is never trimmed.
    return serials is not None and len(serials) >= quantity


def is_complete(item: LineItem) -> bool:
    """Return True when the line item's assignment is ready for dispatch."""
    assignment = item.assignment
    if assignment is None:
        return False
    if isinstance(assignment, WarehouseAssignment):
        return _serials_cover(assignment.serial_numbers, item.quantity)
    if isinstance(assignment, FieldRepAssignment):
        return bool(assignment.rep_id) and _serials_cover(assignment.serial_numbers, item.quantity)
    if isinstance(assignment, OutsourceAssignment):
        return bool(assignment.po_id)
    logger.warning("Line item %s has unrecognised source %r", item.id, getattr(assignment, "source", None))
    return False


def missing_requirements(item: LineItem) -> list[str]:
    """Human-readable reasons why *item* is not complete (empty when it is)."""
    assignment = item.assignment
    if assignment is None:
        return ["No fulfillment source selected"]

    reasons = []
    if isinstance(assignment, FieldRepAssignment) and not assignment.rep_id:
        reasons.append("No field rep selected")
    if isinstance(assignment, (WarehouseAssignment, FieldRepAssignment)):
        have = len(assignment.serial_numbers)
        if have < item.quantity:
            reasons.append(f"{have} of {item.quantity} serial numbers entered")
    elif isinstance(assignment, OutsourceAssignment):
        if not assignment.po_id:
            reasons.append("No purchase order created")
    else:
        reasons.append(f"Unrecognised fulfillment source {getattr(assignment, 'source', None)!r}")
    return reasons


def all_complete(items: Iterable[LineItem]) -> bool:
    """True when there is at least one item and every item is complete."""
    items = list(items)
    return bool(items) and all(is_complete(li) for li in items)


def summarize(items: Iterable[LineItem]) -> FulfillmentSummary:
    """Count items per source bucket and how many are complete, in one pass."""
    counts = {bucket: 0 for bucket in (*_BUCKETS.values(), "unassigned")}
    complete = 0
    total = 0

    for item in items:
        total += 1
        bucket = _BUCKETS.get(item.fulfillment_source or "", "unassigned")
        counts[bucket] += 1
        if is_complete(item):
            complete += 1

    summary = FulfillmentSummary(**counts, complete=complete, total_items=total)
    logger.debug(
        "Summarised %d line items: %d complete (%.0f%%)",
        total, complete, summary.completion_percent,
    )
    return summary


class FulfillmentEvaluator:
    """
    Object wrapper around the completeness rules.

    Usage:
        evaluator = FulfillmentEvaluator()
        if evaluator.ready_for_dispatch(invoice.line_items): ...
    """

    def is_complete(self, item: LineItem) -> bool:
        return is_complete(item)

    def missing_requirements(self, item: LineItem) -> list[str]:
        return missing_requirements(item)

    def ready_for_dispatch(self, items: Iterable[LineItem]) -> bool:
        return all_complete(items)

    def incomplete_items(self, items: Iterable[LineItem]) -> list[LineItem]:
        return [li for li in items if not is_complete(li)]

    def summarize(self, items: Iterable[LineItem]) -> FulfillmentSummary:
        return summarize(items)
