"""Audit trail for validation runs."""

import json
import logging
import time
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field, field_serializer

from schema_compliance.config import AuditConfig

logger = logging.getLogger(__name__)

OperationType = Literal["CREATE", "UPDATE", "DELETE", "PUBLISH", "READ"]


class AuditRecord(BaseModel):
    """One audited operation."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str
    operation_type: OperationType
    component_type: str
    component_name: str | None = None
    success: bool
    parameters: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    execution_time_ms: int | None = None

    @field_serializer("timestamp")
    def serialize_datetime(self, value: datetime, _info) -> str:
        """Serialize datetime to ISO format string."""
        return value.isoformat()


class AuditStats(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0
    by_operation: dict[str, int] = Field(default_factory=dict)
    average_execution_time_ms: float = 0.0


class AuditSink(Protocol):
    def record(self, entry: AuditRecord) -> None: ...


def start_timer() -> Callable[[], int]:
    """
    Start timing an operation.

    Returns:
        Callable[[], int]: Returns elapsed milliseconds each time it is called.
    """
    started = time.perf_counter()
    return lambda: int((time.perf_counter() - started) * 1000)


class AuditLogger:
    """
    Keeps a bounded in-memory audit history and mirrors it to logs.

    With `file_path` set, every record is also appended to that file as one
    JSON line. File write failures are logged and never interrupt the
    operation being audited.
    """

    def __init__(self, config: AuditConfig | None = None):
        self.config = config or AuditConfig()
        self._records: deque[AuditRecord] = deque(maxlen=self.config.max_entries)
        self.enabled = True

    def record(self, entry: AuditRecord) -> None:
        if not self.enabled:
            return

        self._records.append(entry)

        if self.config.log_to_console:
            self._log(entry)
        if self.config.file_path is not None:
            self._append_to_file(entry, self.config.file_path)

    def _log(self, entry: AuditRecord) -> None:
        status = "SUCCESS" if entry.success else "FAILED"
        time_label = (
            f" ({entry.execution_time_ms}ms)" if entry.execution_time_ms is not None else ""
        )
        message = (
            f"[AUDIT] {entry.operation_type} {entry.component_type} "
            f"{entry.operation} - {status}{time_label}"
        )
        if entry.component_name:
            message += f" | Name: {entry.component_name}"
        if entry.error:
            message += f" | Error: {entry.error}"
        logger.log(logging.INFO if entry.success else logging.WARNING, message)

    def _append_to_file(self, entry: AuditRecord, file_path: Path) -> None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with file_path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry.model_dump(), default=str) + "\n")
        except OSError as exc:
            logger.error("Failed to write audit log to %s: %s", file_path, exc)

    def get_logs(self) -> list[AuditRecord]:
        return list(self._records)

    def get_filtered_logs(
        self,
        operation: str | None = None,
        operation_type: OperationType | None = None,
        success: bool | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AuditRecord]:
        """
        Get records matching every given criterion.

        Args:
            operation: Exact operation name.
            operation_type: Operation type.
            success: Outcome.
            start: Earliest timestamp, inclusive.
            end: Latest timestamp, inclusive.

        Returns:
            list[AuditRecord]: Matching records, oldest first.
        """
        records = []
        for entry in self._records:
            if operation is not None and entry.operation != operation:
                continue
            if operation_type is not None and entry.operation_type != operation_type:
                continue
            if success is not None and entry.success != success:
                continue
            if start is not None and entry.timestamp < start:
                continue
            if end is not None and entry.timestamp > end:
                continue
            records.append(entry)
        return records

    def get_stats(self) -> AuditStats:
        stats = AuditStats(total=len(self._records))
        timed: list[int] = []
        for entry in self._records:
            if entry.success:
                stats.successful += 1
            else:
                stats.failed += 1
            stats.by_operation[entry.operation] = stats.by_operation.get(entry.operation, 0) + 1
            if entry.execution_time_ms is not None:
                timed.append(entry.execution_time_ms)
        if timed:
            stats.average_execution_time_ms = round(sum(timed) / len(timed), 2)
        return stats

    def clear(self) -> None:
        self._records.clear()
