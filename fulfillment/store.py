"""
File-backed store for invoices, purchase orders and field reps.

Invoices and purchase orders live in JSON files (a list of objects each);
field reps come from a CSV master list. Everything is loaded into memory on
start-up. put_* replaces the held aggregate with the new value returned by
the rules and writes the file back; update_* does the read, change and
write as one step under the store lock.

CSV format (field_reps.csv):
  id, name, phone, location
"""
import csv
import json
import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from models.field_rep import FieldRep
from models.invoice import Invoice
from models.purchase_order import PurchaseOrder

from .exceptions import NotFound

logger = logging.getLogger(__name__)


class FulfillmentStore:
    """In-memory aggregates with JSON write-back."""

    def __init__(
        self,
        invoices_json: str | Path,
        purchase_orders_json: str | Path,
        field_reps_csv: str | Path,
        pretty_json: bool = True,
    ):
        self.invoices_path = Path(invoices_json)
        self.purchase_orders_path = Path(purchase_orders_json)
        self.field_reps_path = Path(field_reps_csv)
        self.pretty_json = pretty_json

        self._lock = threading.RLock()
        self._invoices: dict[str, Invoice] = {}
        self._purchase_orders: dict[str, PurchaseOrder] = {}
        self.field_reps: list[FieldRep] = []

        self._load()

    @classmethod
    def from_config(cls, config) -> "FulfillmentStore":
        return cls(
            config.invoices_json,
            config.purchase_orders_json,
            config.field_reps_csv,
            pretty_json=config.pretty_json,
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> None:
        for raw in self._read_json(self.invoices_path):
            inv = Invoice.model_validate(raw)
            self._invoices[inv.invoice_id] = inv
        for raw in self._read_json(self.purchase_orders_path):
            po = PurchaseOrder.model_validate(raw)
            self._purchase_orders[po.po_id] = po
        self._load_field_reps()

        logger.info(
            "Loaded %d invoices, %d purchase orders, %d field reps",
            len(self._invoices), len(self._purchase_orders), len(self.field_reps),
        )

    @staticmethod
    def _read_json(path: Path) -> list:
        if not path.exists():
            logger.warning("Data file not found: %s — starting empty", path)
            return []
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path.name} must contain a JSON list")
        return data

    def _load_field_reps(self) -> None:
        path = self.field_reps_path
        if not path.exists():
            logger.warning("Field reps CSV not found: %s — rep selection disabled", path)
            return
        with open(path, newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                self.field_reps.append(FieldRep(
                    id=row["id"].strip(),
                    name=row["name"].strip(),
                    phone=(row.get("phone") or "").strip(),
                    location=(row.get("location") or "").strip(),
                ))

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def list_invoices(self, status: Optional[str] = None) -> list[Invoice]:
        invoices = list(self._invoices.values())
        if status:
            invoices = [inv for inv in invoices if inv.status == status]
        return invoices

    def get_invoice(self, invoice_id: str) -> Invoice:
        inv = self._invoices.get(invoice_id)
        if inv is None:
            raise NotFound(f"Invoice not found: {invoice_id}")
        return inv

    def list_purchase_orders(self, invoice_id: Optional[str] = None) -> list[PurchaseOrder]:
        pos = list(self._purchase_orders.values())
        if invoice_id:
            pos = [po for po in pos if po.related_invoice_id == invoice_id]
        return pos

    def get_purchase_order(self, po_id: str) -> PurchaseOrder:
        po = self._purchase_orders.get(po_id)
        if po is None:
            raise NotFound(f"Purchase order not found: {po_id}")
        return po

    def get_field_rep(self, rep_id: str) -> FieldRep:
        rep = next((r for r in self.field_reps if r.id == rep_id), None)
        if rep is None:
            raise NotFound(f"Field rep not found: {rep_id}")
        return rep

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def put_invoice(self, invoice: Invoice) -> Invoice:
        with self._lock:
            self._invoices[invoice.invoice_id] = invoice
            self._write_json(self.invoices_path, list(self._invoices.values()))
        logger.debug("Saved invoice %s  status=%s", invoice.invoice_id, invoice.status)
        return invoice

    def put_purchase_order(self, po: PurchaseOrder) -> PurchaseOrder:
        with self._lock:
            self._purchase_orders[po.po_id] = po
            self._write_json(self.purchase_orders_path, list(self._purchase_orders.values()))
        logger.debug("Saved purchase order %s  status=%s", po.po_id, po.payment_status)
        return po

    def update_invoice(self, invoice_id: str, change: Callable[[Invoice], Invoice]) -> Invoice:
        """
        Load, change and save one invoice while holding the store lock.

        *change* receives the current invoice and returns the new one. It may
        call put_purchase_order (the lock is re-entrant). If it raises, nothing
        is saved.
        """
        with self._lock:
            return self.put_invoice(change(self.get_invoice(invoice_id)))

    def update_purchase_order(
        self,
        po_id: str,
        change: Callable[[PurchaseOrder], PurchaseOrder],
    ) -> PurchaseOrder:
        """Load, change and save one purchase order while holding the store lock."""
        with self._lock:
            return self.put_purchase_order(change(self.get_purchase_order(po_id)))

    def _write_json(self, path: Path, records: list) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in records]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2 if self.pretty_json else None, ensure_ascii=False)
