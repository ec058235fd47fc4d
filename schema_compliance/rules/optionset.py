"""Option set scope rule."""

import logging

from schema_compliance.models import AttributeType, RuleId
from schema_compliance.repository.base import Err
from schema_compliance.rules.base import RuleContext, attribute_violation
from schema_compliance.schemas import Violation

logger = logging.getLogger(__name__)


async def check_option_set_scope(context: RuleContext) -> list[Violation]:
    """
    Flag picklist columns backed by a local option set.

    Each retained picklist costs one metadata fetch, awaited in order. A
    failed fetch is logged and produces no violation for that column.
    """
    violations: list[Violation] = []
    entity = context.entity
    for attribute in context.retained:
        if attribute.attribute_type != AttributeType.PICKLIST:
            continue

        result = await context.repository.get_option_set_global_flag(
            entity.logical_name, attribute.logical_name
        )
        if isinstance(result, Err):
            logger.warning(
                "Could not check option set for %s.%s: %s",
                entity.logical_name,
                attribute.logical_name,
                result.message,
            )
            continue

        if result.value is False:
            violations.append(
                attribute_violation(
                    RuleId.OPTION_SET_SCOPE,
                    entity,
                    attribute,
                    message=f'Option set "{attribute.logical_name}" is local, should be global',
                    current_value="Local Option Set",
                    expected_value="Global Option Set",
                    action="Convert to global option set for reusability",
                    recommendation=(
                        "Use global option sets to enable reuse across entities "
                        "and reduce maintenance"
                    ),
                )
            )
    return violations
