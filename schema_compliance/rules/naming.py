"""Column naming rules: publisher prefix, lowercase, lookup suffix."""

from schema_compliance.models import AttributeType, RuleId
from schema_compliance.rules.base import RuleContext, attribute_violation
from schema_compliance.schemas import Violation

LOOKUP_SUFFIX = "id"


async def check_publisher_prefix(context: RuleContext) -> list[Violation]:
    """Flag retained columns that lack the publisher prefix."""
    prefix = context.publisher_prefix
    return [
        attribute_violation(
            RuleId.PUBLISHER_PREFIX,
            context.entity,
            attribute,
            message=f'Column "{attribute.logical_name}" does not have required prefix "{prefix}"',
            current_value=attribute.logical_name,
            expected_value=f"{prefix}{attribute.logical_name}",
            action=f'Rename column to add "{prefix}" prefix',
        )
        for attribute in context.retained
        if not attribute.logical_name.startswith(prefix)
    ]


async def check_lowercase_schema_name(context: RuleContext) -> list[Violation]:
    """Flag retained columns whose names contain uppercase letters."""
    violations: list[Violation] = []
    for attribute in context.retained:
        name = attribute.logical_name
        if name == name.lower():
            continue
        violations.append(
            attribute_violation(
                RuleId.LOWERCASE_SCHEMA_NAME,
                context.entity,
                attribute,
                message=f'Column "{name}" contains uppercase letters',
                current_value=name,
                expected_value=name.lower(),
                action=f"Rename column to use all lowercase: {name.lower()}",
            )
        )
    return violations


async def check_lookup_naming(context: RuleContext) -> list[Violation]:
    """Flag lookup columns not ending in 'id' (case-sensitive)."""
    violations: list[Violation] = []
    for attribute in context.retained:
        if attribute.attribute_type != AttributeType.LOOKUP:
            continue
        name = attribute.logical_name
        if name.endswith(LOOKUP_SUFFIX):
            continue
        violations.append(
            attribute_violation(
                RuleId.LOOKUP_NAMING,
                context.entity,
                attribute,
                message=f'Lookup column "{name}" does not end with "{LOOKUP_SUFFIX}"',
                current_value=name,
                expected_value=f"{name}{LOOKUP_SUFFIX}",
                action=f'Rename column to add "{LOOKUP_SUFFIX}" suffix: {name}{LOOKUP_SUFFIX}',
            )
        )
    return violations
