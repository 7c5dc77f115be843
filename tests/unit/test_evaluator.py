"""
Unit tests for fulfillment completeness rules.
"""
from decimal import Decimal
from types import SimpleNamespace

import pytest

from fulfillment.evaluator import (
    FulfillmentEvaluator,
    all_complete,
    is_complete,
    missing_requirements,
    summarize,
)
from models.invoice import FieldRepAssignment, LineItem, OutsourceAssignment, WarehouseAssignment


@pytest.mark.unit
class TestIsComplete:
    """Tests for the per-line completeness predicate."""

    def test_unassigned_is_not_complete(self, make_line_item):
        assert is_complete(make_line_item(quantity=1)) is False

    @pytest.mark.parametrize("source", ["MAIN_HQ", "NYAMIRA"])
    def test_fixed_location_needs_serials_for_quantity(self, make_line_item, source):
        short = make_line_item(quantity=3, assignment=WarehouseAssignment(source=source, serial_numbers=("A", "B")))
        exact = make_line_item(quantity=3, assignment=WarehouseAssignment(source=source, serial_numbers=("A", "B", "C")))

        assert is_complete(short) is False
        assert is_complete(exact) is True

    def test_fixed_location_without_serials(self, make_line_item):
        item = make_line_item(quantity=1, assignment=WarehouseAssignment(source="MAIN_HQ"))
        assert is_complete(item) is False

    def test_extra_serials_are_tolerated_and_kept(self, make_line_item):
        item = make_line_item(
            quantity=2,
            assignment=WarehouseAssignment(source="NYAMIRA", serial_numbers=("A", "B", "C", "D")),
        )
        assert is_complete(item) is True
        assert item.serial_numbers == ("A", "B", "C", "D")

    def test_field_rep_needs_rep_and_serials(self, make_line_item):
        rep_only = make_line_item(quantity=1, assignment=FieldRepAssignment(rep_id="rep1"))
        serials_only = make_line_item(quantity=1, assignment=FieldRepAssignment(serial_numbers=("A",)))
        both = make_line_item(quantity=1, assignment=FieldRepAssignment(rep_id="rep1", serial_numbers=("A",)))

        assert is_complete(rep_only) is False
        assert is_complete(serials_only) is False
        assert is_complete(both) is True

    def test_field_rep_example_three_of_five_serials(self, make_line_item):
        """quantity=5 with 3 serials is incomplete; adding 2 more completes it."""
        item = make_line_item(
            quantity=5,
            assignment=FieldRepAssignment(rep_id="rep1", serial_numbers=("A", "B", "C")),
        )
        assert is_complete(item) is False

        item = item.model_copy(update={
            "assignment": item.assignment.model_copy(update={"serial_numbers": ("A", "B", "C", "D", "E")}),
        })
        assert is_complete(item) is True

    def test_outsource_needs_only_po(self, make_line_item):
        without_po = make_line_item(quantity=50, assignment=OutsourceAssignment())
        with_po = make_line_item(quantity=50, assignment=OutsourceAssignment(po_id="PO-1"))

        assert is_complete(without_po) is False
        assert is_complete(with_po) is True


@pytest.mark.unit
class TestMissingRequirements:

    def test_complete_item_has_no_reasons(self, make_line_item):
        item = make_line_item(quantity=1, assignment=OutsourceAssignment(po_id="PO-1"))
        assert missing_requirements(item) == []

    def test_reasons_for_field_rep(self, make_line_item):
        item = make_line_item(quantity=3, assignment=FieldRepAssignment(serial_numbers=("A",)))
        reasons = missing_requirements(item)

        assert "No field rep selected" in reasons
        assert "1 of 3 serial numbers entered" in reasons

    def test_reason_for_unassigned(self, make_line_item):
        assert missing_requirements(make_line_item()) == ["No fulfillment source selected"]


@pytest.mark.unit
class TestSummarize:

    def test_each_item_in_exactly_one_bucket(self, make_line_item):
        items = [
            make_line_item("1", 1, assignment=WarehouseAssignment(source="MAIN_HQ", serial_numbers=("A",))),
            make_line_item("2", 2, assignment=WarehouseAssignment(source="NYAMIRA")),
            make_line_item("3", 1, assignment=FieldRepAssignment(rep_id="rep1", serial_numbers=("B",))),
            make_line_item("4", 1, assignment=OutsourceAssignment()),
            make_line_item("5", 1),
            make_line_item("6", 1),
        ]

        s = summarize(items)

        assert (s.main_hq, s.nyamira, s.field_rep, s.outsource, s.unassigned) == (1, 1, 1, 1, 2)
        assert s.bucket_total == len(items)
        assert s.total_items == 6
        assert s.complete == 2
        assert s.complete <= s.total_items
        assert s.completion_rate == pytest.approx(2 / 6)
        assert s.completion_percent == pytest.approx(100 * 2 / 6)

    def test_empty_has_zero_rate(self):
        s = summarize([])
        assert s.total_items == 0
        assert s.completion_rate == 0.0

    def test_accepts_generator(self, make_line_item):
        s = summarize(make_line_item(str(i), 1) for i in range(3))
        assert s.unassigned == 3


@pytest.mark.unit
class TestUnrecognisedSource:
    """Items whose source tag is none of the four known ones (e.g. hand-edited data)."""

    @pytest.fixture
    def drone_item(self):
        return LineItem.model_construct(
            id="9",
            product_id="PROD-9",
            product_name="Drone",
            quantity=1,
            unit_price=Decimal("100"),
            assignment=SimpleNamespace(source="DRONE"),
        )

    def test_is_not_complete(self, drone_item):
        assert is_complete(drone_item) is False

    def test_reason_names_the_source(self, drone_item):
        assert missing_requirements(drone_item) == ["Unrecognised fulfillment source 'DRONE'"]

    def test_counted_as_unassigned(self, drone_item, make_line_item):
        s = summarize([drone_item, make_line_item("1", 1)])
        assert s.unassigned == 2
        assert s.complete == 0
        assert s.bucket_total == s.total_items == 2


@pytest.mark.unit
class TestFulfillmentEvaluator:

    def test_ready_for_dispatch(self, ready_invoice):
        evaluator = FulfillmentEvaluator()
        assert evaluator.ready_for_dispatch(ready_invoice.line_items) is True
        assert evaluator.incomplete_items(ready_invoice.line_items) == []

    def test_one_incomplete_item_blocks_dispatch(self, ready_invoice, make_line_item):
        items = ready_invoice.line_items + (make_line_item("9", 1),)
        evaluator = FulfillmentEvaluator()

        assert evaluator.ready_for_dispatch(items) is False
        assert [li.id for li in evaluator.incomplete_items(items)] == ["9"]

    def test_empty_invoice_is_not_ready(self):
        assert all_complete([]) is False
