"""Rule catalogue keyed by rule id."""

import logging

from schema_compliance.models import RuleId
from schema_compliance.rules.base import Rule, RuleContext
from schema_compliance.rules.entity import check_entity_icon, check_required_columns
from schema_compliance.rules.naming import (
    check_lookup_naming,
    check_lowercase_schema_name,
    check_publisher_prefix,
)
from schema_compliance.rules.optionset import check_option_set_scope
from schema_compliance.schemas import Violation

logger = logging.getLogger(__name__)

# Evaluation order; also the first-seen order the aggregator breaks ties with.
RULE_CATALOGUE: dict[RuleId, Rule] = {
    RuleId.ENTITY_ICON: check_entity_icon,
    RuleId.PUBLISHER_PREFIX: check_publisher_prefix,
    RuleId.LOWERCASE_SCHEMA_NAME: check_lowercase_schema_name,
    RuleId.LOOKUP_NAMING: check_lookup_naming,
    RuleId.OPTION_SET_SCOPE: check_option_set_scope,
    RuleId.REQUIRED_COLUMN: check_required_columns,
}


async def run_rules(context: RuleContext, selected_rules: list[RuleId]) -> list[Violation]:
    """
    Run the selected rules against one entity in catalogue order.

    Args:
        context: Entity, attribute sets and repository for the rules.
        selected_rules: Rule ids to run; others are skipped.

    Returns:
        list[Violation]: Violations from all selected rules.
    """
    selected = set(selected_rules)
    violations: list[Violation] = []
    for rule_id, rule in RULE_CATALOGUE.items():
        if rule_id not in selected:
            continue
        found = await rule(context)
        if found:
            logger.debug(
                "%s: rule '%s' found %d violations",
                context.entity.logical_name,
                rule_id,
                len(found),
            )
        violations.extend(found)
    return violations


__all__ = ["RULE_CATALOGUE", "Rule", "RuleContext", "run_rules"]
