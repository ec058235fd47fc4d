"""Metadata repository contract and implementations."""

from .base import Err, MetadataRepository, Ok
from .dataverse import DataverseMetadataRepository
from .memory import InMemoryMetadataRepository, MetadataSnapshot

__all__ = [
    "DataverseMetadataRepository",
    "Err",
    "InMemoryMetadataRepository",
    "MetadataRepository",
    "MetadataSnapshot",
    "Ok",
]
