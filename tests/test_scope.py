"""Tests for turning request scopes into candidate entity lists."""

import pytest

from schema_compliance.errors import MetadataUnavailableError, ScopeNotFoundError
from schema_compliance.pipeline.scope import (
    EXPLICIT_SCOPE_DESCRIPTION,
    describe_scope,
    resolve_entity_scope,
)
from schema_compliance.repository import Err, InMemoryMetadataRepository, MetadataSnapshot
from schema_compliance.schemas import (
    EntityDescriptor,
    ExplicitScope,
    SolutionRef,
    SolutionScope,
    ValidationRequest,
)


def _solution_repository(logical_names: list[str]) -> InMemoryMetadataRepository:
    component_ids = [f"c{index}" for index in range(len(logical_names))]
    return InMemoryMetadataRepository(
        MetadataSnapshot(
            solutions=[SolutionRef(id="s1", unique_name="core", friendly_name="Core")],
            solution_components={"s1": component_ids},
            component_logical_names=dict(zip(component_ids, logical_names)),
            entities=[
                EntityDescriptor(
                    logical_name=name, schema_name=name, display_name=name
                )
                for name in logical_names
            ],
        )
    )


async def test_solution_scope_keeps_prefixed_entities_in_order() -> None:
    """Keeps only prefixed names, in component order."""
    repository = _solution_repository(["sic_b", "account", "sic_a", "contact"])
    request = ValidationRequest(solution_unique_name="core", publisher_prefix="sic_")

    resolved = await resolve_entity_scope(repository, request.resolve_scope(), request)

    assert resolved.candidates == ["sic_b", "sic_a"]
    assert resolved.description == "core"
    assert resolved.solution_name == "Core"
    assert resolved.solution_unique_name == "core"


async def test_solution_scope_drops_ref_data_when_excluded() -> None:
    """Drops prefix+ref_ tables unless ref-data tables are requested."""
    names = ["sic_project", "sic_ref_country", "sic_task"]
    request = ValidationRequest(
        solution_unique_name="core",
        publisher_prefix="sic_",
        include_ref_data_tables=False,
    )

    resolved = await resolve_entity_scope(
        _solution_repository(names), request.resolve_scope(), request
    )

    assert resolved.candidates == ["sic_project", "sic_task"]


async def test_solution_scope_truncates_to_max_entities() -> None:
    """Keeps the first max_entities candidates after filtering."""
    names = ["account", "sic_a", "sic_b", "sic_c", "sic_d", "sic_e"]
    request = ValidationRequest(
        solution_unique_name="core", publisher_prefix="sic_", max_entities=2
    )

    resolved = await resolve_entity_scope(
        _solution_repository(names), request.resolve_scope(), request
    )

    assert resolved.candidates == ["sic_a", "sic_b"]


async def test_unresolvable_component_is_skipped() -> None:
    """Skips components whose logical name cannot be resolved."""
    repository = _solution_repository(["sic_a", "sic_b"])
    repository.snapshot.solution_components["s1"].insert(1, "ghost")
    request = ValidationRequest(solution_unique_name="core", publisher_prefix="sic_")

    resolved = await resolve_entity_scope(repository, request.resolve_scope(), request)

    assert resolved.candidates == ["sic_a", "sic_b"]
    assert ("resolve_entity_logical_name", "ghost") in repository.calls


async def test_missing_solution_raises_scope_not_found() -> None:
    """Raises ScopeNotFoundError for an unknown solution."""
    request = ValidationRequest(solution_unique_name="missing", publisher_prefix="sic_")

    with pytest.raises(ScopeNotFoundError, match="Solution not found: missing"):
        await resolve_entity_scope(
            InMemoryMetadataRepository(), request.resolve_scope(), request
        )


async def test_solution_transport_failure_raises_metadata_unavailable() -> None:
    """A failure other than not-found on the solution lookup is fatal."""

    class _BrokenRepository(InMemoryMetadataRepository):
        async def resolve_solution(self, unique_name: str) -> Err:
            return Err(message="connection reset")

    request = ValidationRequest(solution_unique_name="core", publisher_prefix="sic_")

    with pytest.raises(MetadataUnavailableError, match="connection reset"):
        await resolve_entity_scope(_BrokenRepository(), request.resolve_scope(), request)


async def test_explicit_scope_only_filters_by_prefix() -> None:
    """Explicit names are prefix-filtered without any metadata fetch."""
    repository = InMemoryMetadataRepository()
    request = ValidationRequest(
        entity_logical_names=["sic_ref_country", "account", "sic_missing"],
        publisher_prefix="sic_",
        include_ref_data_tables=False,
        max_entities=1,
    )

    resolved = await resolve_entity_scope(repository, request.resolve_scope(), request)

    assert resolved.candidates == ["sic_ref_country", "sic_missing"]
    assert resolved.description == EXPLICIT_SCOPE_DESCRIPTION
    assert resolved.solution_name is None
    assert repository.calls == []


def test_describe_scope() -> None:
    """Names solution scopes by unique name."""
    assert describe_scope(SolutionScope(name="core")) == "core"
    assert describe_scope(ExplicitScope(logical_names=["sic_a"])) == "Custom Entities"
