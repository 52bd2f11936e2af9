"""Entity keys, deduplication tables, errors and configuration."""

from partmesh.core.entities import EntityType
from partmesh.core.keys import ABSENT, edge_key, face_key, orientation_of
from partmesh.core.table import EntityNotFoundError, EntityTable, edge_table, face_table
from partmesh.core.errors import (
    ConversionError,
    ErrorCategory,
    ErrorCode,
    InternalConsistencyError,
    InvalidInputError,
    UnsupportedAttributeError,
    UnsupportedBasisError,
    UnsupportedEntityError,
    UnsupportedMetadataError,
)
from partmesh.core.config import ConversionConfig

__all__ = [
    "EntityType", "ABSENT", "edge_key", "face_key", "orientation_of",
    "EntityNotFoundError", "EntityTable", "edge_table", "face_table",
    "ConversionError", "ErrorCategory", "ErrorCode", "InternalConsistencyError",
    "InvalidInputError", "UnsupportedAttributeError", "UnsupportedBasisError",
    "UnsupportedEntityError", "UnsupportedMetadataError", "ConversionConfig",
]
