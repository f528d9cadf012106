"""Tests for the equipment-in-field tracker."""

from __future__ import annotations

from datetime import date

import pytest

from rental_engine.config import Settings, get_settings, update_settings
from rental_engine.domain.errors import BookingStoreError
from rental_engine.domain.models import ReturnBucket
from rental_engine.repos.memory import OrderRepository
from rental_engine.services.availability import currently_rented, field_stats

_AS_OF = date(2024, 6, 10)


@pytest.fixture()
def orders() -> OrderRepository:
    return OrderRepository()


@pytest.fixture()
def settings():
    """Fresh default settings, restored afterwards."""
    previous = get_settings()
    fresh = Settings()
    update_settings(fresh)
    yield fresh
    update_settings(previous)


def _order(order_id: int, end: str, items=None, status: str = "processing") -> dict:
    return {
        "id": order_id,
        "project": f"Project {order_id}",
        "status": status,
        "start_date": "2024-05-01",
        "end_date": end,
        "line_items": items
        if items is not None
        else [{"product_id": order_id, "name": f"Product {order_id}", "quantity": 1}],
    }


@pytest.mark.parametrize(
    "days, bucket",
    [
        (-1, ReturnBucket.EXPIRED),
        (0, ReturnBucket.CRITICAL),
        (3, ReturnBucket.CRITICAL),
        (4, ReturnBucket.WARNING),
        (7, ReturnBucket.WARNING),
        (8, ReturnBucket.ACTIVE),
    ],
)
def test_bucket_boundaries(days, bucket):
    assert ReturnBucket.for_days(days) == bucket


def test_rows_sorted_most_urgent_first(orders, settings):
    settings.engine.overdue_lookback_days = 7
    orders.upsert(_order(1, "2024-06-18"))  # 8 days
    orders.upsert(_order(2, "2024-06-13"))  # 3 days
    orders.upsert(_order(3, "2024-06-17"))  # 7 days
    orders.upsert(_order(4, "2024-06-09"))  # overdue by one day

    rows = currently_rented(_AS_OF, orders)

    assert [(r.order_id, r.days_remaining) for r in rows] == [
        (4, -1),
        (2, 3),
        (3, 7),
        (1, 8),
    ]
    assert [r.bucket for r in rows] == [
        ReturnBucket.EXPIRED,
        ReturnBucket.CRITICAL,
        ReturnBucket.WARNING,
        ReturnBucket.ACTIVE,
    ]


def test_each_line_item_becomes_a_row(orders, settings):
    orders.upsert(
        _order(
            1,
            "2024-06-20",
            items=[
                {"product_id": 5, "name": "Lift", "quantity": 2, "image": "https://img/lift.png"},
                {"product_id": 6, "quantity": 1},
            ],
        )
    )

    rows = currently_rented(_AS_OF, orders)

    assert len(rows) == 2
    lift, unnamed = rows
    assert lift.product_name == "Lift"
    assert lift.product_image == "https://img/lift.png"
    assert lift.quantity == 2
    assert unnamed.product_name == settings.engine.unnamed_product
    assert unnamed.product_image == settings.engine.placeholder_image
    assert {r.order_project for r in rows} == {"Project 1"}


def test_inactive_and_long_finished_orders_are_excluded(orders, settings):
    orders.upsert(_order(1, "2024-06-20", status="pending"))
    orders.upsert(_order(2, "2024-06-20", status="cancelled"))
    orders.upsert(_order(3, "2024-06-01"))  # ended 9 days ago
    orders.upsert(_order(4, "2024-06-20", status="on-hold"))

    rows = currently_rented(_AS_OF, orders)

    assert [r.order_id for r in rows] == [4]


def test_overdue_orders_excluded_by_default(orders, settings):
    orders.upsert(_order(1, "2024-06-09"))
    orders.upsert(_order(2, "2024-06-10"))

    rows = currently_rented(_AS_OF, orders)

    assert settings.engine.overdue_lookback_days == 0
    assert [(r.order_id, r.days_remaining) for r in rows] == [(2, 0)]


def test_overdue_lookback_is_configurable(orders, settings):
    orders.upsert(_order(1, "2024-06-09"))
    orders.upsert(_order(2, "2024-06-10"))
    orders.upsert(_order(3, "2024-06-01"))  # ended 9 days ago

    settings.engine.overdue_lookback_days = 7
    rows = currently_rented(_AS_OF, orders)

    assert [(r.order_id, r.days_remaining) for r in rows] == [(1, -1), (2, 0)]


def test_field_stats(orders, settings):
    settings.engine.overdue_lookback_days = 7
    for order_id, end in [(1, "2024-06-09"), (2, "2024-06-10"), (3, "2024-06-17"), (4, "2024-06-30")]:
        orders.upsert(_order(order_id, end))

    stats = field_stats(currently_rented(_AS_OF, orders))

    assert stats.total == 4
    assert stats.expired == 1
    assert stats.expiring == 2
    assert stats.active == 1


def test_store_failure_propagates(orders, settings):
    orders.available = False
    with pytest.raises(BookingStoreError):
        currently_rented(_AS_OF, orders)
