"""Entity scope resolution: request scope → ordered candidate entity names."""

import logging

from pydantic import BaseModel, Field

from schema_compliance.errors import MetadataUnavailableError, ScopeNotFoundError
from schema_compliance.repository.base import Err, MetadataRepository
from schema_compliance.schemas import ExplicitScope, SolutionScope, ValidationRequest

logger = logging.getLogger(__name__)

EXPLICIT_SCOPE_DESCRIPTION = "Custom Entities"


class ResolvedScope(BaseModel):
    """Candidate entities for a run, plus how the scope should be described."""

    candidates: list[str] = Field(default_factory=list)
    description: str
    solution_name: str | None = None
    solution_unique_name: str | None = None


def describe_scope(scope: SolutionScope | ExplicitScope) -> str:
    if isinstance(scope, SolutionScope):
        return scope.name
    return EXPLICIT_SCOPE_DESCRIPTION


async def resolve_entity_scope(
    repository: MetadataRepository,
    scope: SolutionScope | ExplicitScope,
    request: ValidationRequest,
) -> ResolvedScope:
    """
    Turn a validation scope into the ordered list of entities to check.

    Solution scopes are expanded through the solution's entity components;
    components whose logical name cannot be resolved are logged and skipped.
    Only prefix-matching names survive, ref-data tables are dropped unless
    requested, and the list is truncated to `max_entities` when it is set.
    Explicit scopes are only prefix-filtered; names that do not exist are
    left for the orchestrator to discover.

    Args:
        repository: Metadata source.
        scope: Scope picked from the request.
        request: Request carrying prefix, ref-data and limit settings.

    Returns:
        ResolvedScope: Candidates in discovery order.

    Raises:
        ScopeNotFoundError: If the named solution does not exist.
        MetadataUnavailableError: If the solution or its components cannot be read.
    """
    prefix = request.publisher_prefix

    if isinstance(scope, ExplicitScope):
        candidates = [name for name in scope.logical_names if name.startswith(prefix)]
        logger.info(
            "Explicit scope: %d of %d entities match prefix '%s'",
            len(candidates),
            len(scope.logical_names),
            prefix,
        )
        return ResolvedScope(candidates=candidates, description=describe_scope(scope))

    solution_result = await repository.resolve_solution(scope.name)
    if isinstance(solution_result, Err):
        if solution_result.not_found:
            raise ScopeNotFoundError(scope.name)
        raise MetadataUnavailableError(solution_result.message)
    solution = solution_result.value

    components_result = await repository.list_entity_component_ids(solution.id)
    if isinstance(components_result, Err):
        raise MetadataUnavailableError(components_result.message)

    ref_data_prefix = request.ref_data_prefix()
    candidates: list[str] = []
    for component_id in components_result.value:
        name_result = await repository.resolve_entity_logical_name(component_id)
        if isinstance(name_result, Err):
            # Managed/system entities often cannot be queried by metadata id.
            logger.warning(
                "Could not query entity with MetadataId %s: %s",
                component_id,
                name_result.message,
            )
            continue

        logical_name = name_result.value
        if not logical_name.startswith(prefix):
            continue
        if not request.include_ref_data_tables and logical_name.startswith(ref_data_prefix):
            continue
        candidates.append(logical_name)

    if request.max_entities > 0 and len(candidates) > request.max_entities:
        logger.info(
            "Limiting solution '%s' from %d to %d entities",
            scope.name,
            len(candidates),
            request.max_entities,
        )
        candidates = candidates[: request.max_entities]

    logger.info(
        "Solution '%s' resolved to %d candidate entities", scope.name, len(candidates)
    )
    return ResolvedScope(
        candidates=candidates,
        description=describe_scope(scope),
        solution_name=solution.friendly_name,
        solution_unique_name=solution.unique_name,
    )
