"""
Error taxonomy for mesh conversion.

Every rejectable condition has its own stable ErrorCode so callers and tests
can tell them apart. Codes are grouped into categories, and each category has
an exception class; conversion steps raise the category exception carrying the
code, and the driver turns it into the integer status.
"""

from enum import Enum, IntEnum, auto
from typing import Dict


class ErrorCategory(Enum):
    """Broad classes of conversion failures."""
    INVALID_INPUT = auto()
    UNSUPPORTED_ATTRIBUTE = auto()
    UNSUPPORTED_ENTITY = auto()
    UNSUPPORTED_METADATA = auto()
    UNSUPPORTED_BASIS = auto()
    INTERNAL_CONSISTENCY = auto()


class ErrorCode(IntEnum):
    """Status codes returned by the conversion entry points."""
    SUCCESS = 0
    MISSING_COORDINATES = 1
    ELEMENT_TAG_TYPE = 2
    BOUNDARY_TAG_TYPE = 3
    ELEMENT_TAG_LENGTH = 4
    BOUNDARY_TAG_LENGTH = 5
    ELEMENT_ID_TYPE = 6
    ELEMENT_ORIENTATION = 7
    EDGE_AS_CELL = 8
    VERTEX_AS_CELL = 9
    BOUNDARY_ID_TYPE = 10
    BOUNDARY_ORIENTATION = 11
    VERTEX_AS_BOUNDARY = 12
    UNKNOWN_DOMAIN = 13
    ENTITY_ID_OUT_OF_RANGE = 14
    VERTEX_OUT_OF_RANGE = 15
    SCALAR_TYPE = 16
    DESCRIPTOR_TYPE = 17
    FIELD_TYPE = 18
    BASIS_TYPE = 19
    INVALID_ORDER = 20
    FIELD_DATA_LENGTH = 21
    DOF_COUNT_MISMATCH = 22
    EDGE_NUMBERING = 23
    FACE_NUMBERING = 24
    NODE_ID_TYPE = 25
    NODE_ORIENTATION = 26
    EDGE_NOT_FOUND = 27
    TRIANGLE_NOT_FOUND = 28
    QUADRILATERAL_NOT_FOUND = 29
    DOF_OFFSET_MISMATCH = 30
    UNSUPPORTED_NODE_ENTITY = 31
    INVALID_DIMENSION = 32
    SPACE_DIMENSION = 33
    FACE_VERTEX_ORDER = 34

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]


_CATEGORIES: Dict[ErrorCode, ErrorCategory] = {
    ErrorCode.MISSING_COORDINATES: ErrorCategory.INVALID_INPUT,
    ErrorCode.ELEMENT_TAG_TYPE: ErrorCategory.UNSUPPORTED_ATTRIBUTE,
    ErrorCode.BOUNDARY_TAG_TYPE: ErrorCategory.UNSUPPORTED_ATTRIBUTE,
    ErrorCode.ELEMENT_TAG_LENGTH: ErrorCategory.UNSUPPORTED_ATTRIBUTE,
    ErrorCode.BOUNDARY_TAG_LENGTH: ErrorCategory.UNSUPPORTED_ATTRIBUTE,
    ErrorCode.ELEMENT_ID_TYPE: ErrorCategory.UNSUPPORTED_METADATA,
    ErrorCode.ELEMENT_ORIENTATION: ErrorCategory.UNSUPPORTED_METADATA,
    ErrorCode.EDGE_AS_CELL: ErrorCategory.UNSUPPORTED_ENTITY,
    ErrorCode.VERTEX_AS_CELL: ErrorCategory.UNSUPPORTED_ENTITY,
    ErrorCode.BOUNDARY_ID_TYPE: ErrorCategory.UNSUPPORTED_METADATA,
    ErrorCode.BOUNDARY_ORIENTATION: ErrorCategory.UNSUPPORTED_METADATA,
    ErrorCode.VERTEX_AS_BOUNDARY: ErrorCategory.UNSUPPORTED_ENTITY,
    ErrorCode.UNKNOWN_DOMAIN: ErrorCategory.INVALID_INPUT,
    ErrorCode.ENTITY_ID_OUT_OF_RANGE: ErrorCategory.INVALID_INPUT,
    ErrorCode.VERTEX_OUT_OF_RANGE: ErrorCategory.INVALID_INPUT,
    ErrorCode.SCALAR_TYPE: ErrorCategory.UNSUPPORTED_BASIS,
    ErrorCode.DESCRIPTOR_TYPE: ErrorCategory.UNSUPPORTED_BASIS,
    ErrorCode.FIELD_TYPE: ErrorCategory.UNSUPPORTED_BASIS,
    ErrorCode.BASIS_TYPE: ErrorCategory.UNSUPPORTED_BASIS,
    ErrorCode.INVALID_ORDER: ErrorCategory.UNSUPPORTED_BASIS,
    ErrorCode.FIELD_DATA_LENGTH: ErrorCategory.INVALID_INPUT,
    ErrorCode.DOF_COUNT_MISMATCH: ErrorCategory.INTERNAL_CONSISTENCY,
    ErrorCode.EDGE_NUMBERING: ErrorCategory.INTERNAL_CONSISTENCY,
    ErrorCode.FACE_NUMBERING: ErrorCategory.INTERNAL_CONSISTENCY,
    ErrorCode.NODE_ID_TYPE: ErrorCategory.UNSUPPORTED_METADATA,
    ErrorCode.NODE_ORIENTATION: ErrorCategory.UNSUPPORTED_METADATA,
    ErrorCode.EDGE_NOT_FOUND: ErrorCategory.INTERNAL_CONSISTENCY,
    ErrorCode.TRIANGLE_NOT_FOUND: ErrorCategory.INTERNAL_CONSISTENCY,
    ErrorCode.QUADRILATERAL_NOT_FOUND: ErrorCategory.INTERNAL_CONSISTENCY,
    ErrorCode.DOF_OFFSET_MISMATCH: ErrorCategory.INTERNAL_CONSISTENCY,
    ErrorCode.UNSUPPORTED_NODE_ENTITY: ErrorCategory.UNSUPPORTED_ENTITY,
    ErrorCode.INVALID_DIMENSION: ErrorCategory.INVALID_INPUT,
    ErrorCode.SPACE_DIMENSION: ErrorCategory.INVALID_INPUT,
    ErrorCode.FACE_VERTEX_ORDER: ErrorCategory.INVALID_INPUT,
}


class ConversionError(Exception):
    """Base class of all conversion failures.

    Attributes:
        code: The ErrorCode identifying the failed condition
        message: Human readable description
    """

    def __init__(self, code: ErrorCode, message: str = ""):
        self.code = ErrorCode(code)
        self.message = message or self.code.name
        super().__init__(f"[{int(self.code)} {self.code.name}] {self.message}")

    @property
    def category(self) -> ErrorCategory:
        return self.code.category


class InvalidInputError(ConversionError):
    """The description is malformed or internally inconsistent."""


class UnsupportedAttributeError(ConversionError):
    """A tag cannot be used as element or boundary attributes."""


class UnsupportedEntityError(ConversionError):
    """An entity type appears where the converter cannot place it."""


class UnsupportedMetadataError(ConversionError):
    """Id or orientation metadata uses a feature the converter does not model."""


class UnsupportedBasisError(ConversionError):
    """The coordinate field uses a representation other than the supported one."""


class InternalConsistencyError(ConversionError):
    """The two conversion passes disagree about the topology."""
