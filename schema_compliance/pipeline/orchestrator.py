"""Validation run orchestration."""

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from schema_compliance.audit import AuditLogger, AuditRecord, AuditSink, start_timer
from schema_compliance.pipeline.aggregator import (
    build_statistics,
    build_summary,
    build_violations_summary,
)
from schema_compliance.pipeline.attributes import filter_attributes
from schema_compliance.pipeline.scope import (
    EXPLICIT_SCOPE_DESCRIPTION,
    describe_scope,
    resolve_entity_scope,
)
from schema_compliance.repository.base import Err, MetadataRepository
from schema_compliance.rules import RuleContext, run_rules
from schema_compliance.schemas import (
    EntityValidationResult,
    ReportMetadata,
    ValidationRequest,
    ValidationResult,
)

logger = logging.getLogger(__name__)

OPERATION_NAME = "validate-best-practices"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _run_in_new_loop(coro: Any) -> ValidationResult:
    """
    Runs a coroutine in a dedicated event loop from a worker thread.

    Args:
        coro (Any): Coroutine to execute.

    Returns:
        ValidationResult: Result returned by the coroutine.
    """
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()


class ValidationOrchestrator:
    """
    Runs best-practice validation for one request at a time.

    The orchestrator keeps no state between calls: every run builds its own
    counters and results, so one instance may serve concurrent runs when the
    repository allows it. Metadata is fetched strictly sequentially.

    Args:
        repository: Metadata source.
        audit_sink: Receives exactly one record per call.
        clock: Returns the current time; stamps generated_at and drives the
            recent-days window.
    """

    def __init__(
        self,
        repository: MetadataRepository,
        audit_sink: AuditSink | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.repository = repository
        self.audit_sink = audit_sink if audit_sink is not None else AuditLogger()
        self.clock = clock

    def _audit(
        self,
        request: ValidationRequest,
        component_name: str,
        entity_count: int,
        execution_time_ms: int,
        total_violations: int | None = None,
        error: Exception | None = None,
    ) -> None:
        parameters: dict[str, Any] = {
            "solution_unique_name": request.solution_unique_name,
            "entity_count": entity_count,
            "publisher_prefix": request.publisher_prefix,
            "recent_days": request.recent_days,
        }
        if total_violations is not None:
            parameters["total_violations"] = total_violations
        self.audit_sink.record(
            AuditRecord(
                operation=OPERATION_NAME,
                operation_type="READ",
                component_type="Solution",
                component_name=component_name,
                success=error is None,
                parameters=parameters,
                error=str(error) if error is not None else None,
                execution_time_ms=execution_time_ms,
            )
        )

    async def _validate_entity(
        self,
        logical_name: str,
        request: ValidationRequest,
        required_columns: list[str],
        now: datetime,
    ) -> tuple[EntityValidationResult, int, int] | None:
        """
        Fetch, filter and check one entity.

        Returns:
            (result, system columns excluded, old columns excluded), or None
            when the entity's metadata could not be fetched.
        """
        entity_result = await self.repository.get_entity_descriptor(logical_name)
        if isinstance(entity_result, Err):
            logger.warning("Skipping entity %s: %s", logical_name, entity_result.message)
            return None
        attributes_result = await self.repository.list_attributes(logical_name)
        if isinstance(attributes_result, Err):
            logger.warning(
                "Skipping entity %s: %s", logical_name, attributes_result.message
            )
            return None

        entity = entity_result.value
        filtered = filter_attributes(
            attributes_result.value,
            request.publisher_prefix,
            request.recent_days,
            now,
        )
        violations = await run_rules(
            RuleContext(
                entity=entity,
                retained=filtered.retained,
                all_attributes=filtered.all_attributes,
                publisher_prefix=request.publisher_prefix,
                required_columns=required_columns,
                repository=self.repository,
            ),
            request.selected_rules,
        )
        result = EntityValidationResult(
            logical_name=entity.logical_name,
            schema_name=entity.schema_name,
            display_name=entity.display_name,
            is_ref_data=entity.is_ref_data(request.publisher_prefix),
            attributes_checked=len(filtered.retained),
            violations=violations,
            is_compliant=not violations,
        )
        return result, filtered.system_excluded, filtered.old_excluded

    async def validate_async(self, request: ValidationRequest) -> ValidationResult:
        """
        Validate the entities a request names and build the compliance report.

        Entities whose metadata cannot be fetched are logged and left out of
        the report entirely. Any exception escaping the run is audited once
        and re-raised.

        Args:
            request: Validation inputs.

        Returns:
            ValidationResult: Report for every entity whose metadata could be read.

        Raises:
            InvalidRequestError: If neither or both scopes are supplied.
            ScopeNotFoundError: If the named solution does not exist.
            MetadataUnavailableError: If solution metadata cannot be read.
        """
        timer = start_timer()
        component_name = request.solution_unique_name or EXPLICIT_SCOPE_DESCRIPTION
        entity_count = 0
        system_excluded = 0
        old_excluded = 0
        results: list[EntityValidationResult] = []

        try:
            scope = request.resolve_scope()
            component_name = describe_scope(scope)
            logger.info(
                "Starting validation: scope=%s, prefix=%s, recent_days=%d, rules=%s",
                component_name,
                request.publisher_prefix,
                request.recent_days,
                [str(rule) for rule in request.selected_rules],
            )
            resolved = await resolve_entity_scope(self.repository, scope, request)
            entity_count = len(resolved.candidates)

            now = self.clock()
            required_columns = request.required_columns()
            for logical_name in resolved.candidates:
                outcome = await self._validate_entity(
                    logical_name, request, required_columns, now
                )
                if outcome is None:
                    continue
                entity_result, system_count, old_count = outcome
                results.append(entity_result)
                system_excluded += system_count
                old_excluded += old_count
        except Exception as exc:
            logger.error("Validation failed for %s: %s", component_name, exc)
            self._audit(request, component_name, entity_count, timer(), error=exc)
            raise

        summary = build_summary(results)
        violations_summary = build_violations_summary(results)
        statistics = build_statistics(results, system_excluded, old_excluded)
        execution_time_ms = timer()
        self._audit(
            request,
            resolved.description,
            entity_count,
            execution_time_ms,
            total_violations=summary.total_violations,
        )

        return ValidationResult(
            metadata=ReportMetadata(
                generated_at=self.clock(),
                scope_description=resolved.description,
                solution_name=resolved.solution_name,
                solution_unique_name=resolved.solution_unique_name,
                publisher_prefix=request.publisher_prefix,
                recent_days=request.recent_days,
                execution_time_ms=execution_time_ms,
            ),
            summary=summary,
            violations_summary=violations_summary,
            entities=results,
            statistics=statistics,
        )

    def validate(self, request: ValidationRequest) -> ValidationResult:
        """
        Synchronous wrapper around validate_async.

        Uses asyncio.run when no loop is running, otherwise runs the coroutine
        in a dedicated loop on a worker thread.
        """
        coro = self.validate_async(request)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)
        return _run_in_new_loop(coro)
