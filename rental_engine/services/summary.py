"""Roll a list of conflict records up into one verdict for the caller."""

from __future__ import annotations

from rental_engine.domain.dates import round_half_up
from rental_engine.domain.models import (
    ConflictRecord,
    ConflictSeverity,
    ConflictSummary,
    DateRange,
    ImpactAnalysis,
    PrimaryAction,
    Recommendations,
    RequestedRange,
    UrgencyLevel,
)


def _unique(values) -> list:
    return list(dict.fromkeys(values))


def summarize_conflicts(
    conflicts: list[ConflictRecord],
    requested: DateRange,
    requested_product_ids: list[int],
) -> ConflictSummary:
    order_ids = _unique(c.order_id for c in conflicts)
    product_ids = _unique(
        p.product_id for c in conflicts for p in c.conflicting_products
    )
    date_range = RequestedRange(requested=requested, work_days=requested.days)

    if not conflicts:
        return ConflictSummary(
            total_conflicts=0,
            conflicting_orders=[],
            conflicting_products=[],
            date_range=date_range,
            severity_level="none",
            impact_analysis=ImpactAnalysis(),
            recommendations=Recommendations(),
        )

    severities = [c.conflict_severity for c in conflicts]
    highest = ConflictSeverity.highest(severities)
    critical = severities.count(ConflictSeverity.CRITICAL)
    high = severities.count(ConflictSeverity.HIGH)

    if critical:
        action, urgency = PrimaryAction.RESCHEDULE_REQUIRED, UrgencyLevel.IMMEDIATE
    elif high:
        action, urgency = PrimaryAction.COORDINATION_REQUIRED, UrgencyLevel.HIGH
    else:
        action, urgency = PrimaryAction.MONITORING_RECOMMENDED, UrgencyLevel.NORMAL

    return ConflictSummary(
        total_conflicts=len(conflicts),
        conflicting_orders=order_ids,
        conflicting_products=product_ids,
        date_range=date_range,
        severity_level=highest,
        impact_analysis=ImpactAnalysis(
            total_affected_products=len(product_ids),
            total_affected_orders=len(order_ids),
            critical_conflicts=critical,
            high_priority_conflicts=high,
            average_overlap_percentage=round_half_up(
                sum(c.overlap_percentage for c in conflicts) / len(conflicts)
            ),
            requires_immediate_attention=bool(critical or high),
            can_be_resolved=all(
                c.resolution_suggestions.can_reschedule
                or c.resolution_suggestions.can_share_equipment
                for c in conflicts
            ),
        ),
        recommendations=Recommendations(
            primary_action=action,
            urgency_level=urgency,
            contact_customers=[
                c.order_id for c in conflicts if c.resolution_suggestions.contact_required
            ],
            alternative_products=len(product_ids) < len(set(requested_product_ids)),
        ),
    )


def summary_message(summary: ConflictSummary) -> str:
    if summary.total_conflicts == 0:
        return "No availability conflicts found for these products in the requested dates"
    plural = "" if summary.total_conflicts == 1 else "s"
    return (
        f"Found {summary.total_conflicts} availability conflict{plural}. "
        f"Severity level: {str(summary.severity_level).upper()}"
    )
