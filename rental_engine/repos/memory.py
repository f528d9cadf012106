"""In-memory booking store and product catalog.

Both repositories keep raw rows, shaped the way the hosted store returns
them, and decode them into typed models on read. Decoding happens here and
nowhere else.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any, Iterable

from rental_engine.config import get_settings
from rental_engine.domain.dates import to_calendar_date
from rental_engine.domain.errors import (
    BookingStoreError,
    CatalogUnavailable,
    MalformedOrderRecord,
)
from rental_engine.domain.models import Order, OrderStatus, ProductInfo, ReservedItem

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Record decoding
# ---------------------------------------------------------------------------


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def decode_line_items(raw: Any, order_id: object) -> list[ReservedItem]:
    """Turn a stored ``line_items`` value (list or JSON string) into items.

    Items without a usable product id are dropped.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedOrderRecord(order_id, f"line_items is not valid JSON ({exc})")
    if not isinstance(raw, list):
        raise MalformedOrderRecord(order_id, "line_items must be a list")

    cfg = get_settings().engine
    items: list[ReservedItem] = []
    for entry in raw:
        if not isinstance(entry, dict):
            logger.debug("Order %s: skipping non-object line item %r", order_id, entry)
            continue
        product_id = _positive_int(entry.get("product_id"))
        if product_id is None:
            logger.debug("Order %s: skipping line item without product id", order_id)
            continue
        items.append(
            ReservedItem(
                product_id=product_id,
                product_name=entry.get("name") or cfg.unnamed_product,
                quantity=_positive_int(entry.get("quantity")) or 1,
                image=entry.get("image") or None,
            )
        )
    return items


def _amount(value: Any, order_id: object) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        raise MalformedOrderRecord(order_id, f"total is not a number: {value!r}")


def _decode_date(record: dict, key: str, order_id: object) -> date | None:
    value = record.get(key)
    if value is None or value == "":
        return None
    try:
        return to_calendar_date(value, get_settings().engine.reference_timezone)
    except (TypeError, ValueError) as exc:
        raise MalformedOrderRecord(order_id, f"{key} is not a date ({exc})")


def decode_order_record(record: dict) -> Order:
    """Decode one raw order row into an ``Order``."""
    order_id = _positive_int(record.get("id"))
    if order_id is None:
        raise MalformedOrderRecord(record.get("id"), "missing or invalid id")

    try:
        status = OrderStatus(record.get("status"))
    except ValueError:
        raise MalformedOrderRecord(order_id, f"unknown status {record.get('status')!r}")

    start_date = _decode_date(record, "start_date", order_id)
    end_date = _decode_date(record, "end_date", order_id)
    if start_date and end_date and end_date < start_date:
        raise MalformedOrderRecord(order_id, "end_date is before start_date")

    cfg = get_settings().engine
    try:
        customer = " ".join(
            part
            for part in (record.get("billing_first_name"), record.get("billing_last_name"))
            if part
        ).strip()
        return Order(
            id=order_id,
            project_name=record.get("project") or cfg.unnamed_project,
            status=status,
            start_date=start_date,
            end_date=end_date,
            reserved_items=decode_line_items(record.get("line_items"), order_id),
            customer_name=customer or cfg.unnamed_customer,
            customer_email=record.get("billing_email") or cfg.missing_email,
            total=_amount(record.get("total"), order_id),
            currency=record.get("currency") or cfg.default_currency,
            created_at=str(record.get("date_created") or ""),
            modified_at=str(record.get("date_modified") or ""),
        )
    except (TypeError, ValueError) as exc:
        raise MalformedOrderRecord(order_id, f"undecodable field ({exc})")


def decode_images(raw: Any) -> list[str]:
    """Normalise a product ``images`` value to a list of URLs."""
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Could not parse product images %r", raw)
            return []
    if isinstance(raw, dict):
        url = raw.get("src") or raw.get("url")
        return [url] if url else []
    if not isinstance(raw, list):
        return []

    urls = []
    for image in raw:
        if isinstance(image, str):
            url = image
        elif isinstance(image, dict):
            url = image.get("src") or image.get("url") or ""
        else:
            url = ""
        if url:
            urls.append(url)
    return urls


def decode_product_record(record: dict) -> ProductInfo:
    return ProductInfo(
        id=int(record["id"]),
        name=record.get("name") or "",
        sku=record.get("sku") or "",
        images=decode_images(record.get("images")),
        description=record.get("description") or record.get("short_description") or "",
        stock_status=record.get("stock_status") or "unknown",
        price=float(record.get("price") or 0),
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class OrderRepository:
    """Dict-backed store of raw order rows, keyed by id.

    Set ``available`` to False to simulate an unreachable store.
    """

    def __init__(self) -> None:
        self._store: dict[int, dict] = {}
        self.available = True

    def _check_available(self) -> None:
        if not self.available:
            raise BookingStoreError("booking store is unavailable")

    def upsert(self, record: dict) -> Order:
        """Validate and store a raw order row. Returns the decoded order."""
        self._check_available()
        order = decode_order_record(record)
        self._store[order.id] = dict(record, id=order.id)
        return order

    def get(self, order_id: int) -> Order | None:
        self._check_available()
        record = self._store.get(order_id)
        return decode_order_record(record) if record is not None else None

    def list_all(self) -> list[Order]:
        self._check_available()
        return [decode_order_record(r) for r in self._store.values()]

    def list_active_orders(
        self,
        statuses: Iterable[str],
        exclude_order_id: int | None = None,
        ends_on_or_after: date | None = None,
    ) -> list[Order]:
        """Return orders in *statuses* that have both a start and an end date."""
        self._check_available()
        wanted = {str(s) for s in statuses}
        orders = []
        for order_id, record in self._store.items():
            if order_id == exclude_order_id or record.get("status") not in wanted:
                continue
            if not record.get("start_date") or not record.get("end_date"):
                continue
            order = decode_order_record(record)
            if ends_on_or_after is not None and order.end_date < ends_on_or_after:
                continue
            orders.append(order)
        return orders


class ProductCatalog:
    """Dict-backed product metadata lookup, keyed by product id."""

    def __init__(self) -> None:
        self._store: dict[int, dict] = {}
        self.available = True

    def upsert(self, record: dict) -> ProductInfo:
        product = decode_product_record(record)
        self._store[product.id] = dict(record, id=product.id)
        return product

    def get_many(self, product_ids: Iterable[int]) -> dict[int, ProductInfo]:
        if not self.available:
            raise CatalogUnavailable("product catalog is unavailable")
        found = {}
        for product_id in product_ids:
            record = self._store.get(product_id)
            if record is None:
                continue
            try:
                found[product_id] = decode_product_record(record)
            except (KeyError, TypeError, ValueError) as exc:
                raise CatalogUnavailable(f"product {product_id} is undecodable ({exc})")
        return found


# ---------------------------------------------------------------------------
# Seed data - a few rentals around today useful for the dashboard
# ---------------------------------------------------------------------------


def _seed(orders: OrderRepository, catalog: ProductCatalog, today: date) -> None:
    for product in (
        {"id": 1, "name": "Excavator 3T", "sku": "EXC-3T", "price": 120000},
        {"id": 2, "name": "Scissor lift 8m", "sku": "LFT-8M", "price": 65000},
        {"id": 3, "name": "Generator 20kVA", "sku": "GEN-20", "price": 40000},
    ):
        catalog.upsert(product)

    def _days(n: int) -> str:
        return (today + timedelta(days=n)).isoformat()

    orders.upsert(
        {
            "id": 101,
            "project": "North warehouse slab",
            "status": "processing",
            "start_date": _days(-5),
            "end_date": _days(2),
            "line_items": [{"product_id": 1, "name": "Excavator 3T", "quantity": 1}],
            "billing_first_name": "Ana",
            "billing_last_name": "Rojas",
            "billing_email": "ana@example.com",
        }
    )
    orders.upsert(
        {
            "id": 102,
            "project": "Mall facade",
            "status": "on-hold",
            "start_date": _days(1),
            "end_date": _days(20),
            "line_items": json.dumps(
                [
                    {"product_id": 2, "name": "Scissor lift 8m", "quantity": 2},
                    {"product_id": 3, "name": "Generator 20kVA", "quantity": 1},
                ]
            ),
        }
    )
    orders.upsert(
        {
            "id": 103,
            "project": "Street festival",
            "status": "completed",
            "start_date": _days(-10),
            "end_date": _days(-1),
            "line_items": [{"product_id": 3, "name": "Generator 20kVA", "quantity": 2}],
        }
    )


def create_repositories(today: date) -> tuple[OrderRepository, ProductCatalog]:
    """Return an order store and catalog pre-loaded with sample data."""
    orders = OrderRepository()
    catalog = ProductCatalog()
    _seed(orders, catalog, today)
    return orders, catalog
