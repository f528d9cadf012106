"""Service for detecting equipment double-bookings between rental orders."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable

from pydantic import ValidationError

from rental_engine.config import get_settings
from rental_engine.domain.errors import (
    BookingStoreError,
    CatalogUnavailable,
    InvalidConflictRequest,
)
from rental_engine.domain.models import (
    ConflictCheckRequest,
    ConflictingProduct,
    ConflictRecord,
    DateRange,
    Order,
    OrderDetails,
    ProductInfo,
)
from rental_engine.repos.memory import OrderRepository, ProductCatalog
from rental_engine.services.classifier import (
    classify_product,
    classify_severity,
    suggest_resolutions,
)
from rental_engine.services.overlap import calculate_overlap

logger = logging.getLogger(__name__)


def _format_error(error: dict) -> str:
    loc = ".".join(str(part) for part in error["loc"])
    msg = error["msg"].removeprefix("Value error, ")
    return f"{loc}: {msg}" if loc else msg


def parse_conflict_request(payload: Any) -> ConflictCheckRequest:
    """Validate a raw conflict-check body, reporting every problem at once."""
    try:
        return ConflictCheckRequest.model_validate(payload)
    except ValidationError as exc:
        errors = [_format_error(e) for e in exc.errors()]
        logger.info("Rejected conflict check: %s", errors)
        raise InvalidConflictRequest(errors)


def check_preconditions(
    exclude_order_id: Any,
    product_ids: Iterable[Any],
    start_date: date | None,
    end_date: date | None,
) -> None:
    errors = []
    if isinstance(exclude_order_id, bool) or not isinstance(exclude_order_id, int):
        errors.append("currentOrderId must be an integer")
    elif exclude_order_id <= 0:
        errors.append("currentOrderId must be positive")

    ids = list(product_ids or [])
    if not ids:
        errors.append("productIds must be a non-empty list")
    else:
        bad = [p for p in ids if isinstance(p, bool) or not isinstance(p, int) or p <= 0]
        if bad:
            errors.append(f"productIds contains invalid ids: {bad!r}")

    if start_date is None:
        errors.append("startDate is required")
    if end_date is None:
        errors.append("endDate is required")
    if start_date is not None and end_date is not None and start_date > end_date:
        errors.append("startDate must be on or before endDate")

    if errors:
        raise InvalidConflictRequest(errors)


def _fetch_product_info(
    catalog: ProductCatalog | None, product_ids: set[int]
) -> dict[int, ProductInfo]:
    """Best-effort metadata lookup. Failures degrade to no metadata."""
    if catalog is None or not product_ids:
        return {}
    try:
        return catalog.get_many(sorted(product_ids))
    except CatalogUnavailable as exc:
        logger.warning("Could not fetch product details for %s: %s", sorted(product_ids), exc)
        return {}


def _contested_items(order: Order, wanted: set[int]) -> dict[int, tuple[str, int]]:
    """Products of *order* that are also in *wanted*, quantities merged per product."""
    contested: dict[int, tuple[str, int]] = {}
    for item in order.reserved_items:
        if item.product_id not in wanted:
            continue
        name, quantity = contested.get(item.product_id, (item.product_name, 0))
        contested[item.product_id] = (name, quantity + item.quantity)
    return contested


def _build_record(
    order: Order,
    requested: DateRange,
    overlap_days: int,
    overlap_percentage: int,
    contested: dict[int, tuple[str, int]],
    products: dict[int, ProductInfo],
) -> ConflictRecord:
    settings = get_settings()
    conflict_type, availability = classify_product(overlap_percentage)

    conflicting_products = []
    for product_id, (name, quantity) in contested.items():
        info = products.get(product_id)
        conflicting_products.append(
            ConflictingProduct(
                product_id=product_id,
                product_name=name,
                quantity=quantity,
                conflict_type=conflict_type,
                availability_status=availability,
                product_sku=info.sku if info else "",
                product_images=list(info.images) if info else [],
                product_description=info.description if info else "",
                product_stock_status=info.stock_status if info else "unknown",
                product_price=info.price if info else 0,
            )
        )

    conflicting_range = order.date_range
    return ConflictRecord(
        order_id=order.id,
        order_project=order.project_name,
        status=order.status,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        candidate_range=requested,
        conflicting_range=conflicting_range,
        work_days=conflicting_range.days,
        overlap_days=overlap_days,
        overlap_percentage=overlap_percentage,
        conflict_severity=classify_severity(overlap_percentage),
        conflicting_products=conflicting_products,
        resolution_suggestions=suggest_resolutions(
            overlap_percentage,
            len(conflicting_products),
            requested,
            settings.engine.alternative_date_offset_days,
        ),
        order_details=OrderDetails(
            total_value=order.total,
            currency=order.currency or settings.engine.default_currency,
            created_date=order.created_at,
            last_modified=order.modified_at,
            order_url=f"/orders/{order.id}",
        ),
    )


def detect_conflicts(
    exclude_order_id: int,
    product_ids: Iterable[int],
    start_date: date,
    end_date: date,
    orders: OrderRepository,
    catalog: ProductCatalog | None = None,
) -> list[ConflictRecord]:
    """Return one conflict record per active order that blocks the request.

    An order conflicts when its date range overlaps [start_date, end_date]
    (inclusive) and it reserves at least one of *product_ids*. The order
    being edited (*exclude_order_id*) is never compared with itself.
    Records come back most severe first, then by order id.
    """
    product_ids = list(product_ids or [])
    check_preconditions(exclude_order_id, product_ids, start_date, end_date)

    wanted = set(product_ids)
    requested = DateRange(start=start_date, end=end_date)

    try:
        candidates = orders.list_active_orders(
            get_settings().engine.active_statuses,
            exclude_order_id=exclude_order_id,
        )
    except BookingStoreError:
        logger.exception("Booking store failed during conflict check")
        raise

    matches = []
    for order in candidates:
        overlap = calculate_overlap(start_date, end_date, order.start_date, order.end_date)
        if overlap.days == 0:
            continue
        contested = _contested_items(order, wanted)
        if not contested:
            continue
        matches.append((order, overlap, contested))

    products = _fetch_product_info(
        catalog, {pid for _, _, contested in matches for pid in contested}
    )

    records = [
        _build_record(order, requested, overlap.days, overlap.percentage, contested, products)
        for order, overlap, contested in matches
    ]
    records.sort(key=lambda r: (-r.conflict_severity.rank, r.order_id))
    return records


def check_request(
    request: ConflictCheckRequest,
    orders: OrderRepository,
    catalog: ProductCatalog | None = None,
) -> list[ConflictRecord]:
    """Run ``detect_conflicts`` for an already-validated request."""
    return detect_conflicts(
        request.current_order_id,
        request.product_ids,
        request.start_date,
        request.end_date,
        orders,
        catalog,
    )
