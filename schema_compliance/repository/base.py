"""Read-only metadata repository contract."""

from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel

from schema_compliance.schemas import AttributeDescriptor, EntityDescriptor, SolutionRef

T = TypeVar("T")


class Ok(BaseModel, Generic[T]):
    """Successful fetch carrying its value."""

    value: T


class Err(BaseModel):
    """Failed fetch. `not_found` separates a missing object from a transport failure."""

    message: str
    not_found: bool = False


class MetadataRepository(Protocol):
    """
    Accessor for solution, entity, attribute and option-set metadata.

    Implementations report failures as `Err` values rather than raising, so
    callers decide per call whether a failure is fatal or recoverable.
    """

    async def resolve_solution(self, unique_name: str) -> Ok[SolutionRef] | Err: ...

    async def list_entity_component_ids(
        self, solution_id: str
    ) -> Ok[list[str]] | Err: ...

    async def resolve_entity_logical_name(self, component_id: str) -> Ok[str] | Err: ...

    async def get_entity_descriptor(
        self, logical_name: str
    ) -> Ok[EntityDescriptor] | Err: ...

    async def list_attributes(
        self, logical_name: str
    ) -> Ok[list[AttributeDescriptor]] | Err: ...

    async def get_option_set_global_flag(
        self, logical_name: str, attribute_logical_name: str
    ) -> Ok[bool | None] | Err: ...
