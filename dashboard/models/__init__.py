"""
Pydantic models for dashboard API requests.
"""
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel


class SourceUpdate(BaseModel):
    source: str   # MAIN_HQ | NYAMIRA | FIELD_REP | OUTSOURCE


class SerialsUpdate(BaseModel):
    serial_numbers: Union[list[str], str]   # list, or one serial per line


class RepUpdate(BaseModel):
    rep_id: Optional[str] = None


class BulkAssign(BaseModel):
    item_ids: list[str]
    source: str


class PurchaseOrderCreate(BaseModel):
    supplier_name: str
    supplier_phone: str
    purchase_price: Decimal


class PaymentCreate(BaseModel):
    amount: Decimal
    reference: str                          # M-PESA code
    proof_of_payment: Optional[str] = None  # name returned by the proof upload
    payment_date: Optional[date] = None
