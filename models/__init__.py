from .invoice import (
    Invoice, LineItem, Assignment,
    WarehouseAssignment, FieldRepAssignment, OutsourceAssignment,
)
from .purchase_order import PurchaseOrder, PaymentDetail
from .field_rep import FieldRep
from .result import FulfillmentSummary, PurchaseOrderSummary

__all__ = [
    "Invoice", "LineItem", "Assignment",
    "WarehouseAssignment", "FieldRepAssignment", "OutsourceAssignment",
    "PurchaseOrder", "PaymentDetail",
    "FieldRep",
    "FulfillmentSummary", "PurchaseOrderSummary",
]
