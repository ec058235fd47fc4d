"""Violation aggregation: per-entity violations → per-rule summaries and report counts."""

import logging

from schema_compliance.models import RuleId, Severity
from schema_compliance.schemas import (
    AttributeLocus,
    EntityValidationResult,
    ReportStatistics,
    ReportSummary,
    Violation,
    ViolationSummaryByRule,
)

logger = logging.getLogger(__name__)

_SEVERITY_RANK: dict[Severity, int] = {Severity.MUST: 0, Severity.SHOULD: 1}


def build_violations_summary(
    entities: list[EntityValidationResult],
) -> list[ViolationSummaryByRule]:
    """
    Group every violation by rule and list what each rule affects.

    This function performs the following operations:
    1. Groups violations by rule id in first-seen order across entities
    2. Splits each group into entity-level and column-level violations
    3. Builds unique affected_entities and affected_columns lists
       ("entity.attribute"), preserving first-seen order
    4. Copies severity, action and recommendation from the group's first
       violation
    5. Sorts MUST before SHOULD, then by total_count descending; the sort is
       stable so ties keep first-seen order

    Args:
        entities: Per-entity results of a run.

    Returns:
        list[ViolationSummaryByRule]: One entry per rule that has violations.
    """
    grouped: dict[RuleId, list[Violation]] = {}
    for entity in entities:
        for violation in entity.violations:
            grouped.setdefault(violation.rule_id, []).append(violation)

    summary: list[ViolationSummaryByRule] = []
    for rule_id, items in grouped.items():
        if not items:
            continue

        # dict keys keep insertion order and drop duplicates
        affected_entities: dict[str, None] = {}
        affected_columns: dict[str, None] = {}
        for violation in items:
            if isinstance(violation.locus, AttributeLocus):
                affected_columns[violation.locus.column] = None
            else:
                affected_entities[violation.locus.entity] = None

        first = items[0]
        summary.append(
            ViolationSummaryByRule(
                rule_id=rule_id,
                rule=first.rule,
                severity=first.severity,
                total_count=len(items),
                affected_entities=list(affected_entities),
                affected_columns=list(affected_columns),
                action=first.action,
                recommendation=first.recommendation,
            )
        )

    summary.sort(key=lambda entry: (_SEVERITY_RANK[entry.severity], -entry.total_count))
    return summary


def build_summary(entities: list[EntityValidationResult]) -> ReportSummary:
    """Compute report-level counts from per-entity results."""
    summary = ReportSummary(entities_checked=len(entities))
    for entity in entities:
        summary.attributes_checked += entity.attributes_checked
        summary.total_violations += len(entity.violations)
        for violation in entity.violations:
            if violation.severity == Severity.MUST:
                summary.critical_violations += 1
            else:
                summary.warnings += 1
        if entity.is_compliant:
            summary.compliant_entities += 1

    logger.info(
        "Aggregated %d violations (%d critical, %d warnings) across %d entities",
        summary.total_violations,
        summary.critical_violations,
        summary.warnings,
        summary.entities_checked,
    )
    return summary


def build_statistics(
    entities: list[EntityValidationResult],
    system_columns_excluded: int,
    old_columns_excluded: int,
) -> ReportStatistics:
    """
    Assemble exclusion statistics.

    `ref_data_tables_skipped` counts validated ref-data entities, i.e. the
    entities the required-column rule does not apply to.
    """
    return ReportStatistics(
        system_columns_excluded=system_columns_excluded,
        old_columns_excluded=old_columns_excluded,
        ref_data_tables_skipped=sum(1 for entity in entities if entity.is_ref_data),
    )
