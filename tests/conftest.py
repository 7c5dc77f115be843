"""
Pytest configuration and shared fixtures for the Fulfillment Desk test suite.
"""
import json
import os
import shutil
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest

from models.invoice import (
    FieldRepAssignment,
    Invoice,
    LineItem,
    OutsourceAssignment,
    WarehouseAssignment,
)
from models.purchase_order import PaymentDetail, PurchaseOrder

PROJECT_ROOT = Path(__file__).parent.parent
os.chdir(PROJECT_ROOT)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    tmp_path = tempfile.mkdtemp(prefix="fulfillment_test_")
    yield Path(tmp_path)
    shutil.rmtree(tmp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path, monkeypatch) -> "Config":
    """Provide a configuration pointing at an isolated data directory."""
    monkeypatch.setenv("CONFIG_DIR", str(temp_dir / "config"))
    monkeypatch.delenv("PROOF_DIR", raising=False)
    from config import Config

    config = Config(data_dir=temp_dir / "data")
    config.currency = "KSh"
    config.ensure_data_dir()
    return config


@pytest.fixture
def sample_invoices() -> list[dict]:
    """Invoices as stored on disk."""
    return [
        {
            "invoice_id": "INV-001",
            "customer_name": "Acme Corp",
            "customer_phone": "+254712345678",
            "invoice_date": "2024-01-15",
            "status": "AWAITING_FULFILLMENT",
            "line_items": [
                {"id": "1", "product_id": "PROD-001", "product_name": "Laptop Dell XPS 13",
                 "quantity": 2, "unit_price": "65000"},
                {"id": "2", "product_id": "PROD-002", "product_name": "Wireless Mouse",
                 "quantity": 3, "unit_price": "2500"},
            ],
        },
        {
            "invoice_id": "INV-002",
            "customer_name": "Tech Solutions Ltd",
            "invoice_date": "2024-01-16",
            "status": "ASSIGNED",
            "line_items": [
                {"id": "3", "product_id": "PROD-003", "product_name": "Office Chair",
                 "quantity": 5, "unit_price": "5000",
                 "assignment": {"source": "OUTSOURCE", "po_id": "PO-1705123457"}},
            ],
        },
    ]


@pytest.fixture
def sample_purchase_orders() -> list[dict]:
    """Purchase orders as stored on disk."""
    return [
        {
            "po_id": "PO-1705123457",
            "related_invoice_id": "INV-002",
            "product_id": "PROD-003",
            "supplier_name": "Office Furniture Co",
            "supplier_phone": "+254723456789",
            "purchase_price": "4000",
            "selling_price": "5000",
            "payments": [
                {"amount_paid": "4000", "reference": "RBK1234567", "payment_date": "2024-01-18"},
            ],
        },
        {
            "po_id": "PO-1705123458",
            "related_invoice_id": "INV-003",
            "product_id": "PROD-004",
            "supplier_name": "Electronics Hub",
            "supplier_phone": "+254734567890",
            "purchase_price": "12000",
            "selling_price": "15000",
            "payments": [
                {"amount_paid": "6000", "reference": "RBK2345678", "payment_date": "2024-01-17"},
            ],
        },
    ]


@pytest.fixture
def sample_data_files(test_config, sample_invoices, sample_purchase_orders) -> "Config":
    """Write the sample invoices, POs and reps into the test data directory."""
    test_config.invoices_json.write_text(json.dumps(sample_invoices), encoding="utf-8")
    test_config.purchase_orders_json.write_text(json.dumps(sample_purchase_orders), encoding="utf-8")
    test_config.field_reps_csv.write_text(
        "id,name,phone,location\n"
        "rep1,John Doe,+254712345678,Nairobi CBD\n"
        "rep2,Jane Smith,+254723456789,Westlands\n",
        encoding="utf-8",
    )
    return test_config


@pytest.fixture
def test_store(sample_data_files) -> "FulfillmentStore":
    """Provide a store loaded from the sample data files."""
    from fulfillment.store import FulfillmentStore
    return FulfillmentStore.from_config(sample_data_files)


# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------

@pytest.fixture
def make_line_item():
    """Build a LineItem with sensible defaults."""
    def _make(item_id="1", quantity=2, unit_price="1000", assignment=None, product_name=None):
        return LineItem(
            id=item_id,
            product_id=f"PROD-{item_id}",
            product_name=product_name or f"Product {item_id}",
            quantity=quantity,
            unit_price=Decimal(unit_price),
            assignment=assignment,
        )
    return _make


@pytest.fixture
def make_purchase_order():
    """Build a PurchaseOrder with optional prior payments (amounts only)."""
    def _make(purchase_price="12000", selling_price="15000", paid=(), po_id="PO-1"):
        return PurchaseOrder(
            po_id=po_id,
            related_invoice_id="INV-001",
            product_id="PROD-001",
            supplier_name="Electronics Hub",
            supplier_phone="+254734567890",
            purchase_price=Decimal(purchase_price),
            selling_price=Decimal(selling_price),
            payments=tuple(
                PaymentDetail(amount_paid=Decimal(str(a)), reference=f"REF{i}")
                for i, a in enumerate(paid)
            ),
        )
    return _make


@pytest.fixture
def ready_invoice(make_line_item) -> Invoice:
    """An awaiting invoice whose every line is complete."""
    return Invoice(
        invoice_id="INV-100",
        customer_name="Ready Ltd",
        line_items=(
            make_line_item("1", 2, assignment=WarehouseAssignment(source="MAIN_HQ", serial_numbers=("A", "B"))),
            make_line_item("2", 1, assignment=FieldRepAssignment(rep_id="rep1", serial_numbers=("C",))),
            make_line_item("3", 4, assignment=OutsourceAssignment(po_id="PO-9")),
        ),
    )


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API tests")
