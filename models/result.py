from decimal import Decimal

from pydantic import BaseModel, Field, computed_field


class FulfillmentSummary(BaseModel):
    """Assignment progress across the line items of one invoice."""
    # --- Per-source buckets (each item lands in exactly one) ---
    main_hq: int = 0
    nyamira: int = 0
    field_rep: int = 0
    outsource: int = 0
    unassigned: int = 0

    # --- Completeness ---
    complete: int = 0
    total_items: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completion_rate(self) -> float:
        """Fraction of items ready for dispatch; 0 for an empty invoice."""
        if self.total_items == 0:
            return 0.0
        return self.complete / self.total_items

    @property
    def completion_percent(self) -> float:
        return self.completion_rate * 100

    @property
    def bucket_total(self) -> int:
        return self.main_hq + self.nyamira + self.field_rep + self.outsource + self.unassigned


class PurchaseOrderSummary(BaseModel):
    """Totals shown on the outsourced items hub."""
    total_orders: int = 0
    unpaid: int = 0
    partial: int = 0
    paid: int = 0

    total_purchase_value: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_outstanding: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")

    overpaid_po_ids: list[str] = Field(default_factory=list)
