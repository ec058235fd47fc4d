"""Naming policy checks for entities and attributes before they are created or updated."""

from pydantic import BaseModel, Field

from schema_compliance.models import AttributeType
from schema_compliance.schemas import REF_DATA_INFIX


class RequiredColumn(BaseModel):
    """A column every table of a kind is expected to carry."""

    schema_name: str
    display_name: str
    description: str
    type: AttributeType
    max_length: int | None = None
    format: str | None = None
    behavior: str | None = None


class PolicyCheck(BaseModel):
    """Outcome of one or more policy checks. Warnings never affect is_valid."""

    is_valid: bool = True
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    missing_columns: list[RequiredColumn] | None = None

    def merge(self, other: "PolicyCheck") -> None:
        self.issues.extend(other.issues)
        self.warnings.extend(other.warnings)
        self.is_valid = not self.issues


DEFAULT_DATETIME_BEHAVIOR = "TimeZoneIndependent"


def required_column_definitions(
    prefix: str,
    is_ref_data: bool,
    datetime_behavior: str = DEFAULT_DATETIME_BEHAVIOR,
) -> list[RequiredColumn]:
    """
    Columns a table must carry.

    Args:
        prefix: Publisher prefix of the column schema names.
        is_ref_data: Whether the table holds reference data.
        datetime_behavior: Behavior for the reference data date columns.

    Returns:
        list[RequiredColumn]: Columns for all tables, followed by the
            reference data columns when `is_ref_data` is set.
    """
    columns = [
        RequiredColumn(
            schema_name=f"{prefix}updatedbyprocess",
            display_name="Updated by process",
            description=(
                "This field is updated, each time an automated process "
                "updates this record."
            ),
            type=AttributeType.STRING,
            max_length=4000,
        )
    ]
    if not is_ref_data:
        return columns

    columns.extend(
        [
            RequiredColumn(
                schema_name=f"{prefix}startdate",
                display_name="Start Date",
                description="The date this reference data record started being used.",
                type=AttributeType.DATE_TIME,
                format="DateOnly",
                behavior=datetime_behavior,
            ),
            RequiredColumn(
                schema_name=f"{prefix}enddate",
                display_name="End Date",
                description="The date this reference data record stopped being used.",
                type=AttributeType.DATE_TIME,
                format="DateOnly",
                behavior=datetime_behavior,
            ),
            RequiredColumn(
                schema_name=f"{prefix}description",
                display_name="Description",
                description="Useful information about this reference data record.",
                type=AttributeType.MEMO,
                max_length=20000,
            ),
            RequiredColumn(
                schema_name=f"{prefix}code",
                display_name="Code",
                description="Code to identify the record, instead of GUID",
                type=AttributeType.STRING,
                max_length=100,
            ),
        ]
    )
    return columns


class NamingPolicy(BaseModel):
    """
    Customization conventions for one publisher.

    Entity names are `<prefix><name>` for business tables and
    `<prefix>ref_<name>` for reference data tables. Option set values start
    with the publisher's option value prefix.
    """

    prefix: str = Field(..., min_length=1)
    option_value_prefix: int = Field(..., gt=0)
    ref_data_infix: str = REF_DATA_INFIX
    lookup_suffix: str = "id"
    allowed_ownership_types: list[str] = Field(
        default_factory=lambda: ["UserOwned", "TeamOwned"]
    )
    forbidden_ownership_types: list[str] = Field(
        default_factory=lambda: ["OrganizationOwned"]
    )
    default_ownership_type: str = "UserOwned"
    avoid_booleans: bool = True
    datetime_behavior: str = DEFAULT_DATETIME_BEHAVIOR

    def check_entity_name(self, schema_name: str, is_ref_data: bool) -> PolicyCheck:
        result = PolicyCheck()
        if schema_name != schema_name.lower():
            result.issues.append(
                f'Entity schema name must be all lowercase. Got: "{schema_name}"'
            )

        if not schema_name.startswith(self.prefix):
            result.issues.append(
                f'Entity schema name must start with publisher prefix "{self.prefix}". '
                f'Got: "{schema_name}"'
            )
        elif is_ref_data:
            expected = f"{self.prefix}{self.ref_data_infix}"
            if not schema_name.startswith(expected):
                result.issues.append(
                    f'RefData entity schema name must follow pattern "{expected}<tablename>". '
                    f'Example: {expected}cancellationreason. Got: "{schema_name}"'
                )

        result.is_valid = not result.issues
        return result

    def check_attribute_name(self, schema_name: str, is_lookup: bool) -> PolicyCheck:
        """Lowercase and prefix problems are issues; a missing lookup suffix is a warning."""
        result = PolicyCheck()
        if schema_name != schema_name.lower():
            result.issues.append(
                f'Attribute schema name must be all lowercase. Got: "{schema_name}"'
            )
        if not schema_name.startswith(self.prefix):
            result.issues.append(
                f'Attribute schema name must start with "{self.prefix}". Got: "{schema_name}"'
            )
        if is_lookup and not schema_name.endswith(self.lookup_suffix):
            result.warnings.append(
                f'Lookup attribute should end with "{self.lookup_suffix}". Got: "{schema_name}"'
            )
        result.is_valid = not result.issues
        return result

    def check_ownership_type(self, ownership_type: str) -> PolicyCheck:
        result = PolicyCheck()
        if ownership_type in self.forbidden_ownership_types:
            result.issues.append(
                f'Ownership type "{ownership_type}" is forbidden. '
                f'Use "{self.default_ownership_type}" instead.'
            )
        if ownership_type not in self.allowed_ownership_types:
            result.issues.append(
                f'Ownership type "{ownership_type}" is not in allowed list: '
                f"{', '.join(self.allowed_ownership_types)}"
            )
        result.is_valid = not result.issues
        return result

    def required_columns(self, is_ref_data: bool) -> list[RequiredColumn]:
        return required_column_definitions(self.prefix, is_ref_data, self.datetime_behavior)

    def check_required_columns(
        self, existing_columns: list[str], is_ref_data: bool
    ) -> PolicyCheck:
        existing = set(existing_columns)
        result = PolicyCheck(missing_columns=[])
        all_tables = len(self.required_columns(is_ref_data=False))
        for index, column in enumerate(self.required_columns(is_ref_data)):
            if column.schema_name in existing:
                continue
            result.missing_columns.append(column)
            label = "required column" if index < all_tables else "required RefData column"
            result.issues.append(
                f"Missing {label}: {column.schema_name} ({column.display_name})"
            )
        result.is_valid = not result.issues
        return result

    def check_boolean_usage(self, attribute_type: str, schema_name: str) -> PolicyCheck:
        result = PolicyCheck()
        if attribute_type == AttributeType.BOOLEAN and self.avoid_booleans:
            result.warnings.append(
                f'Boolean attribute "{schema_name}" should be avoided. '
                "Consider using a picklist with explicit values instead for better clarity."
            )
        return result

    def check_datetime_behavior(self, behavior: str | None) -> PolicyCheck:
        result = PolicyCheck()
        if behavior and behavior != self.datetime_behavior:
            result.warnings.append(
                f'DateTime behavior "{behavior}" differs from recommended '
                f'"{self.datetime_behavior}". Consider using "{self.datetime_behavior}" '
                "for consistency."
            )
        return result

    def check_option_value_prefix(self, value: int) -> PolicyCheck:
        result = PolicyCheck()
        expected = str(self.option_value_prefix)
        if not str(value).startswith(expected):
            result.warnings.append(
                f"Option set value {value} does not start with publisher prefix "
                f"{self.option_value_prefix}. Values should start with {expected} "
                "for consistency."
            )
        return result

    def next_option_value(self, existing_values: list[int]) -> int:
        """
        Pick the next option set value under the publisher's prefix.

        Args:
            existing_values: Values already used by the option set.

        Returns:
            int: One above the highest prefixed value, or `<prefix>0001` when
                no value carries the prefix yet.
        """
        expected = str(self.option_value_prefix)
        ours = [value for value in existing_values if str(value).startswith(expected)]
        if not ours:
            return self.option_value_prefix * 10000 + 1
        return max(ours) + 1

    def check_entity(
        self,
        schema_name: str,
        ownership_type: str,
        is_ref_data: bool,
        existing_columns: list[str] | None = None,
    ) -> PolicyCheck:
        """
        Run every entity-level check.

        Required columns are only checked when `existing_columns` is given,
        i.e. for an entity that already exists.
        """
        result = PolicyCheck()
        result.merge(self.check_entity_name(schema_name, is_ref_data))
        result.merge(self.check_ownership_type(ownership_type))
        if existing_columns is not None:
            columns = self.check_required_columns(existing_columns, is_ref_data)
            result.merge(columns)
            result.missing_columns = columns.missing_columns
        return result

    def check_attribute(
        self,
        schema_name: str,
        attribute_type: str,
        datetime_behavior: str | None = None,
    ) -> PolicyCheck:
        """Run every attribute-level check."""
        is_lookup = attribute_type in (AttributeType.LOOKUP, AttributeType.CUSTOMER)
        result = PolicyCheck()
        result.merge(self.check_attribute_name(schema_name, is_lookup))
        result.merge(self.check_boolean_usage(attribute_type, schema_name))
        if attribute_type == AttributeType.DATE_TIME and datetime_behavior:
            result.merge(self.check_datetime_behavior(datetime_behavior))
        return result
