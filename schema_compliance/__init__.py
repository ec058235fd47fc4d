from schema_compliance.audit import AuditLogger, AuditRecord
from schema_compliance.errors import (
    InvalidRequestError,
    MetadataUnavailableError,
    SchemaComplianceError,
    ScopeNotFoundError,
)
from schema_compliance.models import RuleId, Severity
from schema_compliance.pipeline.orchestrator import ValidationOrchestrator
from schema_compliance.policy import NamingPolicy, PolicyCheck
from schema_compliance.schemas import ValidationRequest, ValidationResult

__all__ = [
    "AuditLogger",
    "AuditRecord",
    "InvalidRequestError",
    "MetadataUnavailableError",
    "NamingPolicy",
    "PolicyCheck",
    "RuleId",
    "SchemaComplianceError",
    "ScopeNotFoundError",
    "Severity",
    "ValidationOrchestrator",
    "ValidationRequest",
    "ValidationResult",
]
