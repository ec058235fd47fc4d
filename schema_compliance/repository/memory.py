"""Dictionary-backed metadata repository."""

from pydantic import BaseModel, Field

from schema_compliance.repository.base import Err, Ok
from schema_compliance.schemas import AttributeDescriptor, EntityDescriptor, SolutionRef


class MetadataSnapshot(BaseModel):
    """Serializable copy of the metadata a validation run reads."""

    solutions: list[SolutionRef] = Field(default_factory=list)
    solution_components: dict[str, list[str]] = Field(
        default_factory=dict, description="Solution id → entity component ids."
    )
    component_logical_names: dict[str, str] = Field(
        default_factory=dict, description="Component id → entity logical name."
    )
    entities: list[EntityDescriptor] = Field(default_factory=list)
    attributes: dict[str, list[AttributeDescriptor]] = Field(
        default_factory=dict, description="Entity logical name → attributes."
    )
    option_set_global_flags: dict[str, bool] = Field(
        default_factory=dict, description="'entity.attribute' → option set IsGlobal."
    )


class InMemoryMetadataRepository:
    """
    Serves metadata from a MetadataSnapshot.

    Calls can be forced to fail through `fail_entities` (descriptor and
    attribute fetches) and `fail_option_sets` ('entity.attribute' keys).
    Every call is recorded in `calls` as (method, argument) tuples.
    """

    def __init__(
        self,
        snapshot: MetadataSnapshot | None = None,
        fail_entities: set[str] | None = None,
        fail_option_sets: set[str] | None = None,
    ):
        self.snapshot = snapshot or MetadataSnapshot()
        self.fail_entities = fail_entities or set()
        self.fail_option_sets = fail_option_sets or set()
        self.calls: list[tuple[str, str]] = []
        self._entities = {entity.logical_name: entity for entity in self.snapshot.entities}

    async def resolve_solution(self, unique_name: str) -> Ok[SolutionRef] | Err:
        self.calls.append(("resolve_solution", unique_name))
        for solution in self.snapshot.solutions:
            if solution.unique_name == unique_name:
                return Ok[SolutionRef](value=solution)
        return Err(message=f"Solution not found: {unique_name}", not_found=True)

    async def list_entity_component_ids(self, solution_id: str) -> Ok[list[str]] | Err:
        self.calls.append(("list_entity_component_ids", solution_id))
        return Ok[list[str]](
            value=list(self.snapshot.solution_components.get(solution_id, []))
        )

    async def resolve_entity_logical_name(self, component_id: str) -> Ok[str] | Err:
        self.calls.append(("resolve_entity_logical_name", component_id))
        logical_name = self.snapshot.component_logical_names.get(component_id)
        if logical_name is None:
            return Err(message=f"Unknown component: {component_id}", not_found=True)
        return Ok[str](value=logical_name)

    async def get_entity_descriptor(self, logical_name: str) -> Ok[EntityDescriptor] | Err:
        self.calls.append(("get_entity_descriptor", logical_name))
        if logical_name in self.fail_entities:
            return Err(message=f"Forced failure for entity {logical_name}")
        entity = self._entities.get(logical_name)
        if entity is None:
            return Err(message=f"Entity not found: {logical_name}", not_found=True)
        return Ok[EntityDescriptor](value=entity)

    async def list_attributes(self, logical_name: str) -> Ok[list[AttributeDescriptor]] | Err:
        self.calls.append(("list_attributes", logical_name))
        if logical_name in self.fail_entities:
            return Err(message=f"Forced failure for entity {logical_name}")
        if logical_name not in self._entities:
            return Err(message=f"Entity not found: {logical_name}", not_found=True)
        return Ok[list[AttributeDescriptor]](
            value=list(self.snapshot.attributes.get(logical_name, []))
        )

    async def get_option_set_global_flag(
        self, logical_name: str, attribute_logical_name: str
    ) -> Ok[bool | None] | Err:
        key = f"{logical_name}.{attribute_logical_name}"
        self.calls.append(("get_option_set_global_flag", key))
        if key in self.fail_option_sets:
            return Err(message=f"Forced option set failure for {key}")
        return Ok[bool | None](value=self.snapshot.option_set_global_flags.get(key))
