"""
Fulfillment Desk Dashboard — FastAPI backend.

Serves the JSON API behind the fulfillment dashboard: assigning invoice line
items to fulfillment sources, approving dispatch, and logging supplier
payments against purchase orders. All rules live in the fulfillment package;
the routes only load the current aggregate, apply a rule and store the new
value.

Endpoints
---------
  GET  /api/health                                          → liveness probe
  GET  /api/field-reps                                      → rep roster
  GET  /api/invoices                                        → list (supports ?status=)
  GET  /api/invoices/{id}                                   → invoice + per-line completeness
  PUT  /api/invoices/{id}/lines/{item}/source               → choose fulfillment source
  PUT  /api/invoices/{id}/lines/{item}/serials              → set serial numbers
  PUT  /api/invoices/{id}/lines/{item}/rep                  → choose field rep
  POST /api/invoices/{id}/lines/{item}/purchase-order       → create + attach PO
  POST /api/invoices/{id}/bulk-assign                       → set source on many lines
  POST /api/invoices/{id}/submit|approve|reject|complete    → lifecycle moves
  GET  /api/purchase-orders                                 → outsourced hub
  GET  /api/purchase-orders/{po_id}                         → one PO with balances
  POST /api/purchase-orders/{po_id}/payments                → log a supplier payment
  POST /api/purchase-orders/{po_id}/proof                   → upload proof of payment image
"""
import logging
from typing import Callable, Optional

from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from config import Config
from dashboard.models import (
    BulkAssign,
    PaymentCreate,
    PurchaseOrderCreate,
    RepUpdate,
    SerialsUpdate,
    SourceUpdate,
)
from fulfillment import assignment, purchasing, reconciler, workflow
from fulfillment.evaluator import is_complete, missing_requirements, summarize
from fulfillment.exceptions import (
    FulfillmentError,
    InvalidTransition,
    InvariantViolation,
    NotFound,
    ValidationError,
)
from fulfillment.store import FulfillmentStore
from models.invoice import ALL_STATUSES, Invoice, LineItem, SOURCE_LABELS, WarehouseAssignment
from models.purchase_order import PurchaseOrder

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config and store (lazy: created on first request so startup doesn't fail
# before the data directory has been seeded)
# ---------------------------------------------------------------------------
_config: Optional[Config] = None
_store: Optional[FulfillmentStore] = None


def get_config() -> Config:
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_store() -> FulfillmentStore:
    global _store
    if _store is None:
        _store = FulfillmentStore.from_config(get_config())
    return _store


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Fulfillment Desk Dashboard", docs_url=None, redoc_url=None)


_ERROR_STATUS = {
    NotFound:           404,
    ValidationError:    400,
    InvalidTransition:  409,
    InvariantViolation: 409,
}


@app.exception_handler(FulfillmentError)
async def fulfillment_error_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    status = next((code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    body = {"detail": str(exc)}
    if isinstance(exc, ValidationError) and exc.field:
        body["field"] = exc.field
    if status >= 409:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=body)


# ── Serialisation helpers ────────────────────────────────────────────────────

def _line_payload(li: LineItem) -> dict:
    data = li.model_dump(mode="json")
    data.update({
        "fulfillment_source": li.fulfillment_source,
        "source_label": SOURCE_LABELS.get(li.fulfillment_source or "", "Not assigned"),
        "location": li.assignment.location if isinstance(li.assignment, WarehouseAssignment) else None,
        "line_total": str(li.line_total),
        "complete": is_complete(li),
        "missing": missing_requirements(li),
    })
    return data


def _invoice_payload(inv: Invoice) -> dict:
    data = inv.model_dump(mode="json")
    data.update({
        "total_amount": str(inv.total_amount),
        "total_quantity": inv.total_quantity,
        "line_items": [_line_payload(li) for li in inv.line_items],
        "summary": summarize(inv.line_items).model_dump(mode="json"),
        "editable": inv.status == "AWAITING_FULFILLMENT",
    })
    return data


def _po_payload(po: PurchaseOrder) -> dict:
    data = po.model_dump(mode="json")
    data.update({
        "total_paid": str(reconciler.total_paid(po)),
        "outstanding": str(reconciler.outstanding(po)),
        "profit": str(reconciler.profit(po)),
        "profit_percent": round(float(reconciler.profit_percent(po)), 1),
    })
    return data


def _edit_line(invoice_id: str, item_id: str, change: Callable[[LineItem], LineItem]) -> dict:
    def _apply(inv: Invoice) -> Invoice:
        workflow.ensure_editable(inv)
        return assignment.update_line_item(inv, item_id, change)

    return _invoice_payload(get_store().update_invoice(invoice_id, _apply))


# ── Routes ───────────────────────────────────────────────────────────────────

@app.get("/api/health")
def health():
    config = get_config()
    return {
        "status": "ok",
        "data_dir":      str(config.data_dir),
        "invoices_json": str(config.invoices_json),
        "data_exists":   config.invoices_json.exists(),
    }


@app.get("/api/field-reps")
def list_field_reps():
    return [rep.model_dump() | {"display_name": rep.display_name} for rep in get_store().field_reps]


@app.get("/api/invoices")
def list_invoices(status: Optional[str] = Query(default=None)):
    if status and status not in ALL_STATUSES:
        raise ValidationError(f"Unknown status '{status}'", field="status")
    rows = []
    for inv in get_store().list_invoices(status=status or None):
        s = summarize(inv.line_items)
        rows.append({
            "invoice_id": inv.invoice_id,
            "customer_name": inv.customer_name,
            "invoice_date": inv.invoice_date,
            "status": inv.status,
            "total_amount": str(inv.total_amount),
            "item_count": s.total_items,
            "complete_count": s.complete,
        })
    return rows


@app.get("/api/invoices/{invoice_id}")
def get_invoice(invoice_id: str):
    return _invoice_payload(get_store().get_invoice(invoice_id))


@app.put("/api/invoices/{invoice_id}/lines/{item_id}/source")
def set_line_source(invoice_id: str, item_id: str, body: SourceUpdate):
    return _edit_line(invoice_id, item_id, lambda li: assignment.choose_source(li, body.source))


@app.put("/api/invoices/{invoice_id}/lines/{item_id}/serials")
def set_line_serials(invoice_id: str, item_id: str, body: SerialsUpdate):
    return _edit_line(
        invoice_id, item_id,
        lambda li: assignment.set_serial_numbers(li, body.serial_numbers),
    )


@app.put("/api/invoices/{invoice_id}/lines/{item_id}/rep")
def set_line_rep(invoice_id: str, item_id: str, body: RepUpdate):
    roster = get_store().field_reps
    return _edit_line(
        invoice_id, item_id,
        lambda li: assignment.assign_rep(li, body.rep_id, roster=roster),
    )


@app.post("/api/invoices/{invoice_id}/lines/{item_id}/purchase-order")
def create_line_purchase_order(invoice_id: str, item_id: str, body: PurchaseOrderCreate):
    """
    Create a purchase order for an outsourced line and attach it.

    The line must already be switched to OUTSOURCE.
    """
    store = get_store()

    def _attach(inv: Invoice) -> Invoice:
        workflow.ensure_editable(inv)
        item = inv.get_line_item(item_id)
        if item is None:
            raise NotFound(f"Line item {item_id} not found on invoice {invoice_id}")
        po = purchasing.create_purchase_order(
            inv, item, body.supplier_name, body.supplier_phone, body.purchase_price,
        )
        updated = assignment.replace_line_item(inv, assignment.attach_purchase_order(item, po.po_id))
        store.put_purchase_order(po)
        return updated

    inv = store.update_invoice(invoice_id, _attach)
    po = store.get_purchase_order(inv.get_line_item(item_id).po_id)
    return {"purchase_order": _po_payload(po), "invoice": _invoice_payload(inv)}


@app.post("/api/invoices/{invoice_id}/bulk-assign")
def bulk_assign(invoice_id: str, body: BulkAssign):
    def _apply(inv: Invoice) -> Invoice:
        workflow.ensure_editable(inv)
        return assignment.bulk_assign(inv, body.item_ids, body.source)

    return _invoice_payload(get_store().update_invoice(invoice_id, _apply))


def _transition(invoice_id: str, move: Callable[[Invoice], Invoice]) -> dict:
    return _invoice_payload(get_store().update_invoice(invoice_id, move))


@app.post("/api/invoices/{invoice_id}/submit")
def submit_invoice(invoice_id: str):
    return _transition(invoice_id, workflow.submit_assignment)


@app.post("/api/invoices/{invoice_id}/approve")
def approve_invoice(invoice_id: str):
    return _transition(invoice_id, workflow.approve_dispatch)


@app.post("/api/invoices/{invoice_id}/reject")
def reject_invoice(invoice_id: str):
    return _transition(invoice_id, workflow.reject_dispatch)


@app.post("/api/invoices/{invoice_id}/complete")
def complete_invoice(invoice_id: str):
    return _transition(invoice_id, workflow.mark_completed)


@app.get("/api/purchase-orders")
def list_purchase_orders(invoice_id: Optional[str] = Query(default=None)):
    pos = get_store().list_purchase_orders(invoice_id=invoice_id or None)
    return {
        "purchase_orders": [_po_payload(po) for po in pos],
        "summary": reconciler.summarize_purchase_orders(pos).model_dump(mode="json"),
    }


@app.get("/api/purchase-orders/{po_id}")
def get_purchase_order(po_id: str):
    return _po_payload(get_store().get_purchase_order(po_id))


@app.post("/api/purchase-orders/{po_id}/payments")
def log_payment(po_id: str, body: PaymentCreate):
    currency = get_config().currency
    po = get_store().update_purchase_order(
        po_id,
        lambda current: reconciler.record_payment(
            current,
            body.amount,
            body.reference,
            proof_ref=body.proof_of_payment,
            payment_date=body.payment_date,
            currency=currency,
        ),
    )
    return _po_payload(po)


@app.post("/api/purchase-orders/{po_id}/proof")
async def upload_proof(po_id: str, file: UploadFile = File(...)):
    """
    Upload a proof-of-payment image for a purchase order.

    The image is saved to the proof directory and the stored name is
    returned; pass it as proof_of_payment when logging the payment.
    """
    get_store().get_purchase_order(po_id)
    config = get_config()
    # One byte past the limit is enough to reject an oversized upload.
    content = await file.read(config.max_proof_bytes + 1)
    name = purchasing.check_proof_of_payment(
        file.filename or "", file.content_type, len(content), max_bytes=config.max_proof_bytes,
    )
    config.proof_dir.mkdir(parents=True, exist_ok=True)
    (config.proof_dir / name).write_bytes(content)
    logger.info("Proof of payment saved for %s: %s (%d bytes)", po_id, name, len(content))
    return {"proof_of_payment": name}
