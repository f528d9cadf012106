"""Tests for decoding raw booking-store rows."""

from __future__ import annotations

import json
from datetime import date

import pytest

from rental_engine.config import Settings, get_settings, update_settings
from rental_engine.domain.errors import (
    BookingStoreError,
    CatalogUnavailable,
    MalformedOrderRecord,
)
from rental_engine.domain.models import OrderStatus
from rental_engine.repos.memory import (
    OrderRepository,
    ProductCatalog,
    create_repositories,
    decode_images,
    decode_line_items,
    decode_order_record,
)


@pytest.fixture()
def settings():
    previous = get_settings()
    fresh = Settings()
    update_settings(fresh)
    yield fresh
    update_settings(previous)


def test_line_items_from_json_string(settings):
    raw = json.dumps(
        [
            {"product_id": "4", "name": "Compactor", "quantity": "2"},
            {"product_id": 9},
        ]
    )

    items = decode_line_items(raw, order_id=1)

    assert [(i.product_id, i.product_name, i.quantity) for i in items] == [
        (4, "Compactor", 2),
        (9, settings.engine.unnamed_product, 1),
    ]


def test_line_items_without_product_id_are_dropped(settings):
    items = decode_line_items(
        [{"name": "Gift card"}, {"product_id": 0}, "junk", {"product_id": 3}], order_id=1
    )
    assert [i.product_id for i in items] == [3]


def test_invalid_line_items_raise():
    with pytest.raises(MalformedOrderRecord):
        decode_line_items("{broken", order_id=5)
    with pytest.raises(MalformedOrderRecord):
        decode_line_items({"product_id": 1}, order_id=5)


def test_order_record_fallbacks(settings):
    order = decode_order_record({"id": "12", "status": "on-hold"})

    assert order.id == 12
    assert order.status == OrderStatus.ON_HOLD
    assert order.date_range is None
    assert order.reserved_items == []
    assert order.project_name == settings.engine.unnamed_project
    assert order.customer_name == settings.engine.unnamed_customer
    assert order.customer_email == settings.engine.missing_email
    assert order.currency == settings.engine.default_currency


def test_timestamps_normalised_in_reference_timezone(settings):
    settings.engine.reference_timezone = "America/Santiago"

    order = decode_order_record(
        {
            "id": 1,
            "status": "processing",
            "start_date": "2024-06-10T02:00:00+00:00",
            "end_date": "2024-06-15",
        }
    )

    # 02:00 UTC is still the previous evening in Santiago
    assert order.start_date == date(2024, 6, 9)
    assert order.end_date == date(2024, 6, 15)


@pytest.mark.parametrize(
    "record",
    [
        {"status": "processing"},
        {"id": 1, "status": "shipped"},
        {"id": 1, "status": "processing", "start_date": "soon"},
        {"id": 1, "status": "processing", "start_date": "2024-06-10", "end_date": "2024-06-01"},
        {"id": 1, "status": "processing", "project": 123},
        {"id": 1, "status": "processing", "billing_first_name": 5},
        {"id": 1, "status": "processing", "billing_email": ["a@b.c"]},
        {"id": 1, "status": "processing", "line_items": [{"product_id": 1, "name": 5}]},
    ],
)
def test_malformed_order_records(record):
    with pytest.raises(MalformedOrderRecord):
        decode_order_record(record)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, []),
        (["https://a.png", "", "https://b.png"], ["https://a.png", "https://b.png"]),
        ([{"src": "https://a.png"}, {"url": "https://b.png"}, {}], ["https://a.png", "https://b.png"]),
        ({"url": "https://c.png"}, ["https://c.png"]),
        ('[{"src": "https://d.png"}]', ["https://d.png"]),
        ("not json", []),
    ],
)
def test_decode_images(raw, expected):
    assert decode_images(raw) == expected


def test_list_active_orders_filters_rows(settings):
    repo = OrderRepository()
    repo.upsert({"id": 1, "status": "processing", "start_date": "2024-06-01", "end_date": "2024-06-05"})
    repo.upsert({"id": 2, "status": "pending", "start_date": "2024-06-01", "end_date": "2024-06-05"})
    repo.upsert({"id": 3, "status": "completed", "end_date": "2024-06-05"})
    repo.upsert({"id": 4, "status": "on-hold", "start_date": "2024-06-01", "end_date": "2024-06-30"})

    active = repo.list_active_orders(["processing", "on-hold", "completed"])
    assert sorted(o.id for o in active) == [1, 4]

    assert [o.id for o in repo.list_active_orders(["processing", "on-hold"], exclude_order_id=1)] == [4]
    assert [
        o.id
        for o in repo.list_active_orders(
            ["processing", "on-hold"], ends_on_or_after=date(2024, 6, 10)
        )
    ] == [4]


def test_unavailable_store_and_catalog():
    repo = OrderRepository()
    repo.available = False
    with pytest.raises(BookingStoreError):
        repo.list_active_orders(["processing"])

    catalog = ProductCatalog()
    catalog.available = False
    with pytest.raises(CatalogUnavailable):
        catalog.get_many([1])


def test_catalog_returns_only_known_products():
    catalog = ProductCatalog()
    catalog.upsert({"id": 1, "name": "Drill", "short_description": "Cordless"})

    found = catalog.get_many([1, 2])

    assert list(found) == [1]
    assert found[1].description == "Cordless"
    assert found[1].stock_status == "unknown"


def test_undecodable_catalog_row_reports_unavailable():
    catalog = ProductCatalog()
    catalog.upsert({"id": 1, "name": "Drill"})
    catalog._store[1]["price"] = "call us"

    with pytest.raises(CatalogUnavailable):
        catalog.get_many([1])


def test_seed_data(settings):
    orders, catalog = create_repositories(date(2024, 6, 10))

    assert len(orders.list_all()) == 3
    assert set(catalog.get_many([1, 2, 3])) == {1, 2, 3}
    lift_order = orders.get(102)
    assert [i.product_id for i in lift_order.reserved_items] == [2, 3]
