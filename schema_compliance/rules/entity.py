"""Entity-level rules: required columns and icon presence."""

from schema_compliance.models import AttributeType, RuleId
from schema_compliance.policy import RequiredColumn, required_column_definitions
from schema_compliance.rules.base import RuleContext, entity_violation
from schema_compliance.schemas import Violation


def _type_label(column: RequiredColumn) -> str:
    if column.max_length is None:
        if column.format:
            return f"{column.type} ({column.format})"
        return str(column.type)
    if column.type == AttributeType.MEMO:
        return f"Multiline Text ({column.max_length} chars)"
    return f"Text ({column.max_length} chars)"


def _required_column_expectation(column: str, prefix: str) -> tuple[str, str]:
    """Return (expected_value, action) text for a missing required column."""
    known = {
        definition.schema_name: definition
        for definition in required_column_definitions(prefix, is_ref_data=True)
    }
    definition = known.get(column)
    if definition is None:
        return f'Column "{column}"', f'Create column with Schema Name "{column}"'

    type_label = _type_label(definition)
    return (
        f'Column "{column}" of type {type_label}',
        f'Create column with Display Name "{definition.display_name}", '
        f'Schema Name "{column}", Type: {type_label}, '
        f'Description: "{definition.description}"',
    )


async def check_required_columns(context: RuleContext) -> list[Violation]:
    """
    Flag each required column missing from the entity.

    Looks at every attribute, not just the retained ones, and never applies
    to ref-data tables.
    """
    if context.is_ref_data:
        return []

    entity = context.entity
    existing = {attribute.logical_name for attribute in context.all_attributes}
    violations: list[Violation] = []
    for column in context.required_columns:
        if column in existing:
            continue
        expected_value, action = _required_column_expectation(
            column, context.publisher_prefix
        )
        violations.append(
            entity_violation(
                RuleId.REQUIRED_COLUMN,
                entity,
                message=f'Entity "{entity.logical_name}" is missing required column "{column}"',
                current_value="Missing",
                expected_value=expected_value,
                action=action,
            )
        )
    return violations


async def check_entity_icon(context: RuleContext) -> list[Violation]:
    """Flag custom entities without an icon."""
    entity = context.entity
    if not entity.is_custom_entity or entity.has_icon:
        return []
    return [
        entity_violation(
            RuleId.ENTITY_ICON,
            entity,
            message=f'Entity "{entity.logical_name}" does not have a custom icon assigned',
            current_value="No icon",
            expected_value="Custom icon (SVG web resource)",
            action=(
                "Assign a Fluent UI icon to the entity. "
                f'Example: set the icon for entityLogicalName="{entity.logical_name}" '
                "from an appropriate SVG web resource."
            ),
            recommendation=(
                "Custom icons improve entity recognition in Model-Driven Apps and enhance "
                "user experience. Use Fluent UI System Icons for consistency with "
                "Microsoft design language."
            ),
        )
    ]
