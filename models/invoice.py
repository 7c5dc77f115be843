from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


FulfillmentSource = Literal["MAIN_HQ", "NYAMIRA", "FIELD_REP", "OUTSOURCE"]

SOURCE_MAIN_HQ   = "MAIN_HQ"
SOURCE_NYAMIRA   = "NYAMIRA"
SOURCE_FIELD_REP = "FIELD_REP"
SOURCE_OUTSOURCE = "OUTSOURCE"

FIXED_LOCATION_SOURCES = (SOURCE_MAIN_HQ, SOURCE_NYAMIRA)
ALL_SOURCES = (SOURCE_MAIN_HQ, SOURCE_NYAMIRA, SOURCE_FIELD_REP, SOURCE_OUTSOURCE)

SOURCE_LABELS = {
    SOURCE_MAIN_HQ:   "Main HQ",
    SOURCE_NYAMIRA:   "Nyamira",
    SOURCE_FIELD_REP: "Field Rep",
    SOURCE_OUTSOURCE: "Outsourced",
}


InvoiceStatus = Literal["AWAITING_FULFILLMENT", "ASSIGNED", "DISPATCHED", "COMPLETED"]

STATUS_AWAITING_FULFILLMENT = "AWAITING_FULFILLMENT"
STATUS_ASSIGNED             = "ASSIGNED"
STATUS_DISPATCHED           = "DISPATCHED"
STATUS_COMPLETED            = "COMPLETED"
ALL_STATUSES = (
    STATUS_AWAITING_FULFILLMENT,
    STATUS_ASSIGNED,
    STATUS_DISPATCHED,
    STATUS_COMPLETED,
)


class WarehouseAssignment(BaseModel):
    """Stock drawn from one of the two fixed warehouse locations."""
    model_config = ConfigDict(frozen=True)

    source: Literal["MAIN_HQ", "NYAMIRA"]
    serial_numbers: tuple[str, ...] = ()

    @property
    def location(self) -> str:
        return SOURCE_LABELS[self.source]


class FieldRepAssignment(BaseModel):
    """Stock held by a field representative."""
    model_config = ConfigDict(frozen=True)

    source: Literal["FIELD_REP"] = SOURCE_FIELD_REP
    rep_id: Optional[str] = None
    serial_numbers: tuple[str, ...] = ()


class OutsourceAssignment(BaseModel):
    """Item bought in from a supplier against a purchase order."""
    model_config = ConfigDict(frozen=True)

    source: Literal["OUTSOURCE"] = SOURCE_OUTSOURCE
    po_id: Optional[str] = None


Assignment = Annotated[
    Union[WarehouseAssignment, FieldRepAssignment, OutsourceAssignment],
    Field(discriminator="source"),
]


class LineItem(BaseModel):
    """
    One product line on an invoice together with its fulfillment assignment.

    The assignment is a tagged variant: each source carries exactly the
    fields that make sense for it, so a line item can never hold both a rep
    and a PO reference at the same time.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    product_id: str
    product_name: str = ""
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    assignment: Optional[Assignment] = None

    @property
    def fulfillment_source(self) -> Optional[str]:
        return self.assignment.source if self.assignment else None

    @property
    def serial_numbers(self) -> Optional[tuple[str, ...]]:
        """Serials for warehouse / field-rep assignments, None otherwise."""
        if isinstance(self.assignment, (WarehouseAssignment, FieldRepAssignment)):
            return self.assignment.serial_numbers
        return None

    @property
    def assigned_rep(self) -> Optional[str]:
        if isinstance(self.assignment, FieldRepAssignment):
            return self.assignment.rep_id
        return None

    @property
    def po_id(self) -> Optional[str]:
        if isinstance(self.assignment, OutsourceAssignment):
            return self.assignment.po_id
        return None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Invoice(BaseModel):
    """
    A customer invoice awaiting (or past) fulfillment.
    Dates are ISO 8601 strings (YYYY-MM-DD).
    """
    model_config = ConfigDict(frozen=True)

    invoice_id: str
    customer_name: str = ""
    customer_phone: Optional[str] = None
    invoice_date: Optional[str] = None
    status: InvoiceStatus = STATUS_AWAITING_FULFILLMENT
    line_items: tuple[LineItem, ...] = ()

    @property
    def total_amount(self) -> Decimal:
        return sum((li.line_total for li in self.line_items), Decimal("0"))

    @property
    def total_quantity(self) -> int:
        return sum(li.quantity for li in self.line_items)

    def get_line_item(self, item_id: str) -> Optional[LineItem]:
        return next((li for li in self.line_items if li.id == item_id), None)
