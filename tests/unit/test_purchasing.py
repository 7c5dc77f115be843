"""
Unit tests for purchase order creation and proof-of-payment checks.
"""
from decimal import Decimal

import pytest

from fulfillment.exceptions import NotFound, ValidationError
from fulfillment.purchasing import check_proof_of_payment, create_purchase_order
from models.invoice import Invoice, OutsourceAssignment


@pytest.mark.unit
class TestCreatePurchaseOrder:

    @pytest.fixture
    def invoice(self, make_line_item):
        return Invoice(
            invoice_id="INV-001",
            line_items=(make_line_item("1", 2, unit_price="65000"),),
        )

    def test_creates_unpaid_po(self, invoice):
        item = invoice.line_items[0]
        po = create_purchase_order(invoice, item, "Tech Supplies Ltd", "+254712345678", "55000")

        assert po.po_id.startswith("PO-")
        assert po.related_invoice_id == "INV-001"
        assert po.product_id == item.product_id
        assert po.purchase_price == Decimal("55000")
        assert po.selling_price == Decimal("65000")
        assert po.payments == ()
        assert po.payment_status == "UNPAID"

    def test_explicit_po_id(self, invoice):
        po = create_purchase_order(invoice, invoice.line_items[0], "S", "1", 10, po_id="PO-42")
        assert po.po_id == "PO-42"

    @pytest.mark.parametrize("name,phone", [("", "+2547"), ("Supplier", "  ")])
    def test_supplier_details_required(self, invoice, name, phone):
        with pytest.raises(ValidationError):
            create_purchase_order(invoice, invoice.line_items[0], name, phone, "100")

    @pytest.mark.parametrize("price", ["0", "-5", "abc"])
    def test_purchase_price_must_be_positive(self, invoice, price):
        with pytest.raises(ValidationError) as exc:
            create_purchase_order(invoice, invoice.line_items[0], "S", "1", price)
        assert exc.value.field == "purchase_price"

    def test_item_must_belong_to_invoice(self, invoice, make_line_item):
        with pytest.raises(NotFound):
            create_purchase_order(invoice, make_line_item("77"), "S", "1", "100")

    def test_line_with_po_cannot_get_a_second_one(self, make_line_item):
        invoice = Invoice(
            invoice_id="INV-001",
            line_items=(make_line_item("1", assignment=OutsourceAssignment(po_id="PO-1")),),
        )
        with pytest.raises(ValidationError) as exc:
            create_purchase_order(invoice, invoice.line_items[0], "S", "1", "100")
        assert exc.value.field == "po_id"
        assert "PO-1" in str(exc.value)


@pytest.mark.unit
class TestProofOfPayment:

    def test_accepts_image(self):
        name = check_proof_of_payment("receipt.PNG", "image/png", 1024)
        assert name.startswith("proof_")
        assert name.endswith(".png")

    def test_defaults_suffix(self):
        assert check_proof_of_payment("", "image/jpeg", 10).endswith(".jpg")

    def test_rejects_non_image(self):
        with pytest.raises(ValidationError, match="image"):
            check_proof_of_payment("receipt.pdf", "application/pdf", 1024)

    def test_rejects_large_file(self):
        with pytest.raises(ValidationError, match="5MB"):
            check_proof_of_payment("big.jpg", "image/jpeg", 5 * 1024 * 1024 + 1)

    def test_custom_limit(self):
        with pytest.raises(ValidationError):
            check_proof_of_payment("a.jpg", "image/jpeg", 2048, max_bytes=1024)

    @pytest.mark.parametrize("filename", ["x.html", "receipt.php", "noext"])
    def test_non_image_suffix_replaced(self, filename):
        name = check_proof_of_payment(filename, "image/png", 10)
        assert name.endswith(".jpg")
