"""Exceptions raised by validation runs."""


class SchemaComplianceError(Exception):
    """Base class for fatal validation errors."""


class InvalidRequestError(SchemaComplianceError, ValueError):
    """Raised when a request names neither or both validation scopes."""


class ScopeNotFoundError(SchemaComplianceError, LookupError):
    """Raised when the named solution does not exist."""

    def __init__(self, solution_unique_name: str):
        super().__init__(f"Solution not found: {solution_unique_name}")
        self.solution_unique_name = solution_unique_name


class MetadataUnavailableError(SchemaComplianceError, RuntimeError):
    """Raised when solution-level metadata cannot be read at all."""
