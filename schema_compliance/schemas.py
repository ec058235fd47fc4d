"""Pydantic schemas for validation requests, metadata descriptors, and reports."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_serializer

from schema_compliance.errors import InvalidRequestError
from schema_compliance.models import AttributeType, RuleId, Severity, get_all_rules

PREFIX_PLACEHOLDER = "{prefix}"
DEFAULT_REQUIRED_COLUMN_TEMPLATE = f"{PREFIX_PLACEHOLDER}updatedbyprocess"
REF_DATA_INFIX = "ref_"


class SolutionScope(BaseModel):
    """Validate the entities that belong to a named solution."""

    kind: Literal["solution"] = "solution"
    name: str


class ExplicitScope(BaseModel):
    """Validate a caller-supplied list of entity logical names."""

    kind: Literal["explicit"] = "explicit"
    logical_names: list[str] = Field(default_factory=list)


class ValidationRequest(BaseModel):
    """Inputs for a single validation run."""

    solution_unique_name: str | None = Field(
        default=None,
        description="Solution unique name. Mutually exclusive with entity_logical_names.",
    )
    entity_logical_names: list[str] | None = Field(
        default=None,
        description="Explicit entity list. Mutually exclusive with solution_unique_name.",
    )
    publisher_prefix: str = Field(..., min_length=1)
    recent_days: int = Field(
        default=30,
        ge=0,
        description="Only validate columns created in the last N days (0 = all columns).",
    )
    include_ref_data_tables: bool = True
    selected_rules: list[RuleId] = Field(default_factory=get_all_rules)
    max_entities: int = Field(
        default=0, ge=0, description="Maximum entities to validate (0 = unlimited)."
    )
    required_column_templates: list[str] = Field(
        default_factory=lambda: [DEFAULT_REQUIRED_COLUMN_TEMPLATE],
        description="Column names every non-ref-data entity must have; '{prefix}' is substituted.",
    )

    def resolve_scope(self) -> SolutionScope | ExplicitScope:
        """
        Pick the one scope this request names.

        Returns:
            SolutionScope | ExplicitScope: The requested scope.

        Raises:
            InvalidRequestError: If neither or both scopes are supplied.
        """
        has_solution = bool(self.solution_unique_name)
        has_entities = self.entity_logical_names is not None
        if has_solution and has_entities:
            raise InvalidRequestError(
                "Provide either solution_unique_name or entity_logical_names, not both"
            )
        if has_solution:
            return SolutionScope(name=self.solution_unique_name)
        if has_entities:
            return ExplicitScope(logical_names=list(self.entity_logical_names))
        raise InvalidRequestError(
            "Either solution_unique_name or entity_logical_names must be provided"
        )

    def ref_data_prefix(self) -> str:
        return f"{self.publisher_prefix}{REF_DATA_INFIX}"

    def required_columns(self) -> list[str]:
        """Expand the required-column templates with the publisher prefix."""
        return [
            template.replace(PREFIX_PLACEHOLDER, self.publisher_prefix)
            for template in self.required_column_templates
        ]


class SolutionRef(BaseModel):
    """A solution resolved from its unique name."""

    id: str
    unique_name: str
    friendly_name: str | None = None


class EntityDescriptor(BaseModel):
    """Entity-level metadata needed by the rules."""

    logical_name: str
    schema_name: str
    display_name: str
    metadata_id: str | None = None
    is_custom_entity: bool = True
    has_icon: bool = False

    def is_ref_data(self, publisher_prefix: str) -> bool:
        return self.logical_name.startswith(f"{publisher_prefix}{REF_DATA_INFIX}")


class AttributeDescriptor(BaseModel):
    """Attribute-level metadata needed by the filter and the rules."""

    logical_name: str
    attribute_type: AttributeType = AttributeType.OTHER
    is_custom_attribute: bool = True
    created_on: datetime | None = None


class EntityLocus(BaseModel):
    kind: Literal["entity"] = "entity"
    entity: str


class AttributeLocus(BaseModel):
    kind: Literal["attribute"] = "attribute"
    entity: str
    attribute: str

    @property
    def column(self) -> str:
        return f"{self.entity}.{self.attribute}"


Locus = Annotated[EntityLocus | AttributeLocus, Field(discriminator="kind")]


class Violation(BaseModel):
    """A single rule violation attached to an entity or one of its attributes."""

    rule_id: RuleId
    rule: str
    severity: Severity
    locus: Locus
    message: str
    current_value: str
    expected_value: str
    action: str
    recommendation: str | None = None
    attribute_type: AttributeType | None = None
    created_on: datetime | None = None

    @property
    def attribute_logical_name(self) -> str | None:
        if isinstance(self.locus, AttributeLocus):
            return self.locus.attribute
        return None

    @field_serializer("created_on")
    def serialize_created_on(self, value: datetime | None, _info) -> str | None:
        """Serialize datetime to ISO format string."""
        return value.isoformat() if value else None


class EntityValidationResult(BaseModel):
    """Per-entity outcome of a validation run."""

    logical_name: str
    schema_name: str
    display_name: str
    is_ref_data: bool
    attributes_checked: int
    violations: list[Violation] = Field(default_factory=list)
    is_compliant: bool


class ViolationSummaryByRule(BaseModel):
    """All violations of one rule with complete lists of what they affect."""

    rule_id: RuleId
    rule: str
    severity: Severity
    total_count: int
    affected_entities: list[str] = Field(
        default_factory=list,
        description="Unique entity logical names with entity-level violations.",
    )
    affected_columns: list[str] = Field(
        default_factory=list,
        description="Unique 'entity.attribute' pairs with column-level violations.",
    )
    action: str
    recommendation: str | None = None


class ReportMetadata(BaseModel):
    """Metadata for the validation report."""

    generated_at: datetime
    scope_description: str
    solution_name: str | None = None
    solution_unique_name: str | None = None
    publisher_prefix: str
    recent_days: int
    execution_time_ms: int

    @field_serializer("generated_at")
    def serialize_datetime(self, value: datetime, _info) -> str:
        """Serialize datetime to ISO format string."""
        return value.isoformat()


class ReportSummary(BaseModel):
    entities_checked: int = 0
    attributes_checked: int = 0
    total_violations: int = 0
    critical_violations: int = 0
    warnings: int = 0
    compliant_entities: int = 0


class ReportStatistics(BaseModel):
    system_columns_excluded: int = 0
    old_columns_excluded: int = 0
    ref_data_tables_skipped: int = 0


class ValidationResult(BaseModel):
    """Root model for a compliance report."""

    metadata: ReportMetadata
    summary: ReportSummary
    violations_summary: list[ViolationSummaryByRule] = Field(default_factory=list)
    entities: list[EntityValidationResult] = Field(default_factory=list)
    statistics: ReportStatistics
