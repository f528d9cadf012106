"""Inclusive calendar-date overlap between two rental windows."""

from __future__ import annotations

from datetime import date
from typing import NamedTuple

from rental_engine.domain.dates import round_half_up


class Overlap(NamedTuple):
    days: int
    percentage: int


NO_OVERLAP = Overlap(days=0, percentage=0)


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days in [start, end], both ends included."""
    return (end - start).days + 1


def calculate_overlap(start1: date, end1: date, start2: date, end2: date) -> Overlap:
    """Return the shared day count and its share of the *first* range.

    The percentage is relative to range 1 only, so swapping the arguments
    changes it whenever the ranges differ in length. Callers pass plain
    calendar dates already normalised to one timezone.
    """
    overlap_start = max(start1, start2)
    overlap_end = min(end1, end2)
    if overlap_start > overlap_end:
        return NO_OVERLAP

    overlap_days = inclusive_days(overlap_start, overlap_end)
    total_days = inclusive_days(start1, end1)
    return Overlap(
        days=overlap_days,
        percentage=round_half_up(overlap_days / total_days * 100),
    )
