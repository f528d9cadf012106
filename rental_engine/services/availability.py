"""Service for tracking equipment currently out on rental."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from rental_engine.config import get_settings
from rental_engine.domain.errors import BookingStoreError
from rental_engine.domain.models import EquipmentInFieldRow, FieldStats, ReturnBucket
from rental_engine.repos.memory import OrderRepository

logger = logging.getLogger(__name__)


def currently_rented(as_of: date, orders: OrderRepository) -> list[EquipmentInFieldRow]:
    """Expand active orders into one row per reserved line item.

    Orders whose end date is on or after *as_of* are included, plus those
    that ended within the configured overdue lookback, which come back
    with a negative ``days_remaining``. Rows are sorted most urgent first.
    """
    cfg = get_settings().engine
    cutoff = as_of - timedelta(days=max(cfg.overdue_lookback_days, 0))

    try:
        active = orders.list_active_orders(cfg.active_statuses, ends_on_or_after=cutoff)
    except BookingStoreError:
        logger.exception("Booking store failed while listing rented equipment")
        raise

    rows: list[EquipmentInFieldRow] = []
    for order in active:
        days_remaining = (order.end_date - as_of).days
        for item in order.reserved_items:
            rows.append(
                EquipmentInFieldRow(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_image=item.image or cfg.placeholder_image,
                    quantity=item.quantity,
                    order_id=order.id,
                    order_project=order.project_name,
                    end_date=order.end_date,
                    status=order.status,
                    days_remaining=days_remaining,
                )
            )

    rows.sort(key=lambda r: (r.days_remaining, r.order_id))
    return rows


def field_stats(rows: list[EquipmentInFieldRow]) -> FieldStats:
    """Dashboard counters: expiring covers 0 to 7 days remaining."""
    buckets = [row.bucket for row in rows]
    return FieldStats(
        total=len(rows),
        expiring=sum(b in (ReturnBucket.CRITICAL, ReturnBucket.WARNING) for b in buckets),
        expired=buckets.count(ReturnBucket.EXPIRED),
        active=buckets.count(ReturnBucket.ACTIVE),
    )
