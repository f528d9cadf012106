"""Severity tiers and resolution hints for booking conflicts."""

from __future__ import annotations

from datetime import timedelta

from rental_engine.domain.models import (
    AvailabilityStatus,
    ConflictSeverity,
    ConflictType,
    DateRange,
    Priority,
    ResolutionSuggestions,
)


def classify_product(overlap_percentage: int) -> tuple[ConflictType, AvailabilityStatus]:
    """Tag one contested product by how much of the requested window is blocked."""
    if overlap_percentage >= 100:
        return ConflictType.FULL, AvailabilityStatus.UNAVAILABLE
    if overlap_percentage > 50:
        return ConflictType.PARTIAL, AvailabilityStatus.REQUIRES_COORDINATION
    return ConflictType.PARTIAL, AvailabilityStatus.PARTIALLY_AVAILABLE


def classify_severity(overlap_percentage: int) -> ConflictSeverity:
    if overlap_percentage >= 100:
        return ConflictSeverity.CRITICAL
    if overlap_percentage > 75:
        return ConflictSeverity.HIGH
    if overlap_percentage > 50:
        return ConflictSeverity.MEDIUM
    return ConflictSeverity.LOW


def _priority(overlap_percentage: int) -> Priority:
    if overlap_percentage > 75:
        return Priority.HIGH
    if overlap_percentage > 50:
        return Priority.MEDIUM
    return Priority.LOW


def alternative_windows(requested: DateRange, offset_days: int = 7) -> list[DateRange]:
    """Two windows of the requested length, clear of it by *offset_days*.

    One ends *offset_days* before the requested start, the other begins
    *offset_days* after the requested end. They are not checked for
    conflicts of their own.
    """
    span = timedelta(days=requested.days - 1)
    offset = timedelta(days=offset_days)

    before_end = requested.start - offset
    after_start = requested.end + offset
    return [
        DateRange(start=before_end - span, end=before_end),
        DateRange(start=after_start, end=after_start + span),
    ]


def suggest_resolutions(
    overlap_percentage: int,
    conflicting_product_count: int,
    requested: DateRange,
    offset_days: int = 7,
) -> ResolutionSuggestions:
    return ResolutionSuggestions(
        can_reschedule=overlap_percentage < 100,
        can_share_equipment=overlap_percentage < 50 and conflicting_product_count == 1,
        contact_required=overlap_percentage > 25,
        priority=_priority(overlap_percentage),
        alternative_dates=(
            alternative_windows(requested, offset_days) if overlap_percentage > 50 else None
        ),
    )
