from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from stockledger.extensions import db
from stockledger.models import Item, SaleRecord
from stockledger.services import catalog_service, sales_service
from stockledger.services.sales_service import (
    InsufficientStock,
    InvalidQuantity,
    ItemNotFound,
    TransactionFailed,
    parse_quantity,
)


def _reload(item_id):
    item = db.session.get(Item, item_id)
    db.session.refresh(item)
    return item


def test_sale_decrements_stock_and_appends_record(make_item, admin):
    item = make_item(quantity=5, selling_price_cents=150, original_price_cents=200, cost_price_cents=100)

    record = sales_service.record_sale(
        item.id,
        3,
        {"customer_name": "  Asha ", "customer_phone": "", "notes": None},
        recorded_by_user_id=admin.id,
    )

    assert record.quantity == 3
    assert record.unit_price_cents == 150
    assert record.total_price_cents == 450
    assert record.total_cost_cents == 300
    assert record.profit_cents == 150
    assert record.customer_name == "Asha"
    assert record.customer_phone is None
    assert record.recorded_by_user_id == admin.id
    assert record.product_name == item.name

    item = _reload(item.id)
    assert item.quantity == 2
    assert item.sold_quantity == 3
    assert item.status == "available"


def test_selling_last_units_marks_sold_out(make_item):
    item = make_item(quantity=2)
    sales_service.record_sale(item.id, 2)
    item = _reload(item.id)
    assert item.quantity == 0
    assert item.status == "sold_out"


def test_sold_out_overrides_hidden(make_item):
    item = make_item(quantity=1, status="hidden")
    sales_service.record_sale(item.id, 1)
    assert _reload(item.id).status == "sold_out"


def test_hidden_item_with_remaining_stock_stays_hidden(make_item):
    item = make_item(quantity=3, status="hidden")
    sales_service.record_sale(item.id, 1)
    assert _reload(item.id).status == "hidden"


def test_insufficient_stock_leaves_state_untouched(make_item, db_session):
    item = make_item(quantity=5)

    with pytest.raises(InsufficientStock) as exc_info:
        sales_service.record_sale(item.id, 6)

    assert exc_info.value.details["on_hand"] == 5
    assert exc_info.value.details["requested_quantity"] == 6
    item = _reload(item.id)
    assert item.quantity == 5
    assert item.sold_quantity == 0
    assert db_session.query(SaleRecord).count() == 0


def test_unknown_item(db_session):
    with pytest.raises(ItemNotFound):
        sales_service.record_sale(424242, 1)


def test_unknown_item_reported_before_bad_quantity(db_session):
    with pytest.raises(ItemNotFound):
        sales_service.record_sale(424242, 0)


def test_item_id_beyond_integer_column_is_not_found(db_session):
    with pytest.raises(ItemNotFound):
        sales_service.record_sale(2**70, 1)


def test_quantity_beyond_integer_column_rejected(make_item):
    item = make_item(quantity=5)
    with pytest.raises(InvalidQuantity):
        sales_service.record_sale(item.id, 2**70)
    assert _reload(item.id).quantity == 5


@pytest.mark.parametrize("quantity", [0, -1, None, 2.5, "2.5", "1e3", True, "abc"])
def test_invalid_quantity(make_item, db_session, quantity):
    item = make_item(quantity=5)
    with pytest.raises(InvalidQuantity):
        sales_service.record_sale(item.id, quantity)
    assert _reload(item.id).quantity == 5
    assert db_session.query(SaleRecord).count() == 0


def test_parse_quantity_accepts_digit_strings():
    assert parse_quantity("3") == 3
    assert parse_quantity(" 7 ") == 7


def test_ledger_failure_rolls_back_decrement(make_item, db_session, monkeypatch):
    item = make_item(quantity=5)

    def broken_append(**kwargs):
        raise OperationalError("INSERT INTO sales", {}, Exception("disk I/O error"))

    monkeypatch.setattr(sales_service, "append_sale_record", broken_append)

    with pytest.raises(TransactionFailed) as exc_info:
        sales_service.record_sale(item.id, 2)

    assert exc_info.value.details["reason"] == "OperationalError"
    item = _reload(item.id)
    assert item.quantity == 5
    assert item.sold_quantity == 0
    assert db_session.query(SaleRecord).count() == 0


def test_record_snapshots_price_at_sale_time(make_item):
    item = make_item(quantity=5, original_price_cents=1000, selling_price_cents=1000, cost_price_cents=600)
    first = sales_service.record_sale(item.id, 1)

    catalog_service.update_item(item_id=item.id, patch={"selling_price_cents": 1500, "cost_price_cents": 700})
    second = sales_service.record_sale(item.id, 1)

    db.session.refresh(first)
    assert first.unit_price_cents == 1000
    assert first.profit_cents == 400
    assert second.unit_price_cents == 1500
    assert second.profit_cents == 800


def test_sold_at_can_be_pinned(make_item):
    item = make_item(quantity=5)
    when = datetime(2025, 3, 1, 9, 30)
    record = sales_service.record_sale(item.id, 1, sold_at=when)
    assert record.to_dict()["sold_at"] == "2025-03-01T09:30:00Z"


def test_sequential_sales_never_oversell(make_item, db_session):
    item = make_item(quantity=4)
    sold = 0
    for _ in range(6):
        try:
            sales_service.record_sale(item.id, 1)
            sold += 1
        except InsufficientStock:
            pass

    item = _reload(item.id)
    assert sold == 4
    assert item.quantity == 0
    assert item.sold_quantity == 4
    assert db_session.query(SaleRecord).count() == 4
