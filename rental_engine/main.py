"""FastAPI application - entry point for the rental conflict engine."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from rental_engine.config import init_settings
from rental_engine.domain.dates import today_in
from rental_engine.domain.errors import (
    BookingStoreError,
    InvalidConflictRequest,
    MalformedOrderRecord,
)
from rental_engine.domain.models import (
    ConflictCheckResponse,
    Order,
    ProductInfo,
    RentedEquipmentResponse,
    RequestInfo,
)
from rental_engine.logging_config import setup_logging
from rental_engine.repos.memory import OrderRepository, ProductCatalog, create_repositories
from rental_engine.services.availability import currently_rented, field_stats
from rental_engine.services.conflicts import check_request, parse_conflict_request
from rental_engine.services.summary import summarize_conflicts, summary_message

settings = init_settings()
setup_logging(settings.app.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app.name)

# ── Singletons (created at import time for simplicity) ────────────────
if settings.seed.demo_data:
    order_repo, product_catalog = create_repositories(
        today_in(settings.engine.reference_timezone)
    )
else:
    order_repo, product_catalog = OrderRepository(), ProductCatalog()


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(InvalidConflictRequest)
async def invalid_request_handler(request: Request, exc: InvalidConflictRequest):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Invalid conflict check parameters",
            "errors": exc.errors,
            "data": [],
        },
    )


@app.exception_handler(BookingStoreError)
async def store_error_handler(request: Request, exc: BookingStoreError):
    detail = {"detail": str(exc)} if settings.app.debug else {}
    return JSONResponse(
        status_code=503,
        content={
            "success": False,
            "message": "Booking data is temporarily unavailable, please retry",
            "data": [],
            **detail,
        },
    )


# ── Routes ────────────────────────────────────────────────────────────


@app.post(
    "/orders/check-conflicts",
    response_model=ConflictCheckResponse,
    response_model_exclude_none=True,
)
def check_conflicts(payload: Any = Body(None)) -> ConflictCheckResponse:
    """Check whether a booking request double-books equipment held by other orders."""
    request = parse_conflict_request(payload)
    conflicts = check_request(request, order_repo, product_catalog)
    summary = summarize_conflicts(conflicts, request.date_range, request.product_ids)

    logger.info(
        "Conflict check for order %s on %s..%s: %d conflict(s), severity %s",
        request.current_order_id,
        request.start_date,
        request.end_date,
        summary.total_conflicts,
        summary.severity_level,
    )

    return ConflictCheckResponse(
        data=conflicts,
        summary=summary,
        message=summary_message(summary),
        timestamp=datetime.now(timezone.utc),
        request_info=RequestInfo(
            current_order_id=request.current_order_id,
            product_ids=request.product_ids,
            date_range=request.date_range,
        ),
    )


@app.get("/orders/check-conflicts", status_code=405)
def check_conflicts_usage() -> dict:
    """Describe the POST body this endpoint expects."""
    return {
        "success": False,
        "message": "This endpoint expects a POST with conflict check parameters",
        "requiredParameters": {
            "currentOrderId": "number - id of the order being created or edited",
            "productIds": "number[] - products to check",
            "startDate": "string - ISO start date",
            "endDate": "string - ISO end date",
        },
    }


@app.get("/dashboard/rented-equipment", response_model=RentedEquipmentResponse)
def rented_equipment(as_of: date | None = None) -> RentedEquipmentResponse:
    """Equipment currently in the field, most urgent return first.

    Pass *as_of* to control the reference day. Defaults to today in the
    configured reference timezone.
    """
    reference_day = as_of or today_in(settings.engine.reference_timezone)
    rows = currently_rented(reference_day, order_repo)
    return RentedEquipmentResponse(as_of=reference_day, rows=rows, stats=field_stats(rows))


@app.get("/orders", response_model=list[Order])
def list_orders() -> list[Order]:
    """Return all stored orders."""
    return order_repo.list_all()


@app.get("/orders/{order_id}", response_model=Order)
def get_order(order_id: int) -> Order:
    """Return a single order by id."""
    order = order_repo.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@app.put("/orders/{order_id}", response_model=Order)
def put_order(order_id: int, record: dict = Body(...)) -> Order:
    """Store a raw order row as the booking store would hold it."""
    try:
        return order_repo.upsert(dict(record, id=order_id))
    except MalformedOrderRecord as exc:
        raise HTTPException(status_code=400, detail=exc.reason)


@app.put("/products/{product_id}", response_model=ProductInfo)
def put_product(product_id: int, record: dict = Body(...)) -> ProductInfo:
    """Store product metadata used to decorate conflict records."""
    try:
        return product_catalog.upsert(dict(record, id=product_id))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.get("/health")
def health() -> dict:
    return {"status": "healthy"}
