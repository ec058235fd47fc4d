"""Shared rule context and violation construction."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from schema_compliance.models import RULE_NAMES, RULE_SEVERITIES, RuleId
from schema_compliance.repository.base import MetadataRepository
from schema_compliance.schemas import (
    AttributeDescriptor,
    AttributeLocus,
    EntityDescriptor,
    EntityLocus,
    Violation,
)


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at for one entity."""

    entity: EntityDescriptor
    retained: list[AttributeDescriptor]
    all_attributes: list[AttributeDescriptor]
    publisher_prefix: str
    required_columns: list[str]
    repository: MetadataRepository

    @property
    def is_ref_data(self) -> bool:
        return self.entity.is_ref_data(self.publisher_prefix)


Rule = Callable[[RuleContext], Awaitable[list[Violation]]]


def entity_violation(
    rule_id: RuleId,
    entity: EntityDescriptor,
    message: str,
    current_value: str,
    expected_value: str,
    action: str,
    recommendation: str | None = None,
) -> Violation:
    return Violation(
        rule_id=rule_id,
        rule=RULE_NAMES[rule_id],
        severity=RULE_SEVERITIES[rule_id],
        locus=EntityLocus(entity=entity.logical_name),
        message=message,
        current_value=current_value,
        expected_value=expected_value,
        action=action,
        recommendation=recommendation,
    )


def attribute_violation(
    rule_id: RuleId,
    entity: EntityDescriptor,
    attribute: AttributeDescriptor,
    message: str,
    current_value: str,
    expected_value: str,
    action: str,
    recommendation: str | None = None,
) -> Violation:
    return Violation(
        rule_id=rule_id,
        rule=RULE_NAMES[rule_id],
        severity=RULE_SEVERITIES[rule_id],
        locus=AttributeLocus(entity=entity.logical_name, attribute=attribute.logical_name),
        message=message,
        current_value=current_value,
        expected_value=expected_value,
        action=action,
        recommendation=recommendation,
        attribute_type=attribute.attribute_type,
        created_on=attribute.created_on,
    )
