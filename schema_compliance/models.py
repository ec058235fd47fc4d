from enum import StrEnum


class Severity(StrEnum):
    MUST = "MUST"
    SHOULD = "SHOULD"


class RuleId(StrEnum):
    ENTITY_ICON = "entity-icon"
    PUBLISHER_PREFIX = "prefix"
    LOWERCASE_SCHEMA_NAME = "lowercase"
    LOOKUP_NAMING = "lookup"
    OPTION_SET_SCOPE = "optionset"
    REQUIRED_COLUMN = "required-column"


class AttributeType(StrEnum):
    """Dataverse attribute types the rules care about, plus a catch-all."""

    BIG_INT = "BigInt"
    BOOLEAN = "Boolean"
    CUSTOMER = "Customer"
    DATE_TIME = "DateTime"
    DECIMAL = "Decimal"
    DOUBLE = "Double"
    INTEGER = "Integer"
    LOOKUP = "Lookup"
    MEMO = "Memo"
    MONEY = "Money"
    OWNER = "Owner"
    PICKLIST = "Picklist"
    STATE = "State"
    STATUS = "Status"
    STRING = "String"
    UNIQUEIDENTIFIER = "Uniqueidentifier"
    VIRTUAL = "Virtual"
    OTHER = "Other"


# Dataverse reports some types through AttributeTypeName.Value instead.
_TYPE_NAME_ALIASES: dict[str, AttributeType] = {
    "LookupType": AttributeType.LOOKUP,
    "PicklistType": AttributeType.PICKLIST,
    "StringType": AttributeType.STRING,
    "MemoType": AttributeType.MEMO,
    "DateTimeType": AttributeType.DATE_TIME,
    "BooleanType": AttributeType.BOOLEAN,
}

RULE_NAMES: dict[RuleId, str] = {
    RuleId.ENTITY_ICON: "Entity Icon",
    RuleId.PUBLISHER_PREFIX: "Publisher Prefix",
    RuleId.LOWERCASE_SCHEMA_NAME: "Schema Name Lowercase",
    RuleId.LOOKUP_NAMING: "Lookup Naming Convention",
    RuleId.OPTION_SET_SCOPE: "Option Set Scope",
    RuleId.REQUIRED_COLUMN: "Required Column Existence",
}

RULE_SEVERITIES: dict[RuleId, Severity] = {
    RuleId.ENTITY_ICON: Severity.SHOULD,
    RuleId.PUBLISHER_PREFIX: Severity.MUST,
    RuleId.LOWERCASE_SCHEMA_NAME: Severity.MUST,
    RuleId.LOOKUP_NAMING: Severity.MUST,
    RuleId.OPTION_SET_SCOPE: Severity.SHOULD,
    RuleId.REQUIRED_COLUMN: Severity.MUST,
}


def get_all_rules() -> list[RuleId]:
    """Get all rule ids in catalogue order."""
    return list(RuleId)


def parse_attribute_type(
    attribute_type: str | None, attribute_type_name: str | None = None
) -> AttributeType:
    """
    Map raw Dataverse type strings onto an AttributeType.

    Args:
        attribute_type: Value of the AttributeType property.
        attribute_type_name: Value of AttributeTypeName.Value, if present.

    Returns:
        AttributeType enum value, OTHER when nothing matches.
    """
    if attribute_type_name and attribute_type_name in _TYPE_NAME_ALIASES:
        return _TYPE_NAME_ALIASES[attribute_type_name]

    if attribute_type:
        try:
            return AttributeType(attribute_type)
        except ValueError:
            pass

    return AttributeType.OTHER
