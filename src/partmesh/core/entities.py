"""
Entity types shared by the partitioned description and the target mesh.

Local vertex numbering, edge tables and face tables follow the usual
finite-element reference conventions: quadrilateral and hexahedron vertices
are numbered counter-clockwise, bottom layer first.
"""

from enum import Enum
from typing import Dict, List, Tuple


class EntityType(Enum):
    """Geometric entity types, in the order parts are traversed."""
    VERTEX = 0
    EDGE = 1
    TRIANGLE = 2
    QUADRILATERAL = 3
    TETRAHEDRON = 4
    HEXAHEDRON = 5

    @property
    def dimension(self) -> int:
        """Topological dimension of the entity."""
        return _DIMENSIONS[self]

    @property
    def num_vertices(self) -> int:
        """Number of vertices defining the entity."""
        return _NUM_VERTICES[self]

    @property
    def edges(self) -> List[Tuple[int, int]]:
        """Local edges as pairs of local vertex indices."""
        return _LOCAL_EDGES[self]

    @property
    def faces(self) -> List[Tuple[int, ...]]:
        """Local faces as tuples of local vertex indices (3D cells only)."""
        return _LOCAL_FACES[self]

    @property
    def is_face(self) -> bool:
        return self in (EntityType.TRIANGLE, EntityType.QUADRILATERAL)

    @classmethod
    def from_string(cls, value: str) -> 'EntityType':
        """Convert a string to an EntityType enum value.

        Args:
            value: Entity type name or common alias

        Returns:
            EntityType enum value

        Raises:
            ValueError: If the name is not recognised
        """
        mapping = {
            'vertex': cls.VERTEX,
            'point': cls.VERTEX,
            'edge': cls.EDGE,
            'line': cls.EDGE,
            'segment': cls.EDGE,
            'triangle': cls.TRIANGLE,
            'tri': cls.TRIANGLE,
            'quadrilateral': cls.QUADRILATERAL,
            'quad': cls.QUADRILATERAL,
            'tetrahedron': cls.TETRAHEDRON,
            'tet': cls.TETRAHEDRON,
            'tetra': cls.TETRAHEDRON,
            'hexahedron': cls.HEXAHEDRON,
            'hex': cls.HEXAHEDRON,
        }
        key = value.lower().strip()
        if key not in mapping:
            raise ValueError(f"Unknown entity type: {value}")
        return mapping[key]


_DIMENSIONS: Dict[EntityType, int] = {
    EntityType.VERTEX: 0,
    EntityType.EDGE: 1,
    EntityType.TRIANGLE: 2,
    EntityType.QUADRILATERAL: 2,
    EntityType.TETRAHEDRON: 3,
    EntityType.HEXAHEDRON: 3,
}

_NUM_VERTICES: Dict[EntityType, int] = {
    EntityType.VERTEX: 1,
    EntityType.EDGE: 2,
    EntityType.TRIANGLE: 3,
    EntityType.QUADRILATERAL: 4,
    EntityType.TETRAHEDRON: 4,
    EntityType.HEXAHEDRON: 8,
}

_LOCAL_EDGES: Dict[EntityType, List[Tuple[int, int]]] = {
    EntityType.VERTEX: [],
    EntityType.EDGE: [(0, 1)],
    EntityType.TRIANGLE: [(0, 1), (1, 2), (2, 0)],
    EntityType.QUADRILATERAL: [(0, 1), (1, 2), (2, 3), (3, 0)],
    EntityType.TETRAHEDRON: [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)],
    EntityType.HEXAHEDRON: [
        (0, 1), (1, 2), (3, 2), (0, 3),
        (4, 5), (5, 6), (7, 6), (4, 7),
        (0, 4), (1, 5), (2, 6), (3, 7),
    ],
}

_LOCAL_FACES: Dict[EntityType, List[Tuple[int, ...]]] = {
    EntityType.VERTEX: [],
    EntityType.EDGE: [],
    EntityType.TRIANGLE: [],
    EntityType.QUADRILATERAL: [],
    EntityType.TETRAHEDRON: [(1, 2, 3), (0, 3, 2), (0, 1, 3), (0, 2, 1)],
    EntityType.HEXAHEDRON: [
        (3, 2, 1, 0), (0, 1, 5, 4), (1, 2, 6, 5),
        (2, 3, 7, 6), (3, 0, 4, 7), (4, 5, 6, 7),
    ],
}


def face_type(num_vertices: int) -> EntityType:
    """Return the face entity type with the given vertex count."""
    if num_vertices == 3:
        return EntityType.TRIANGLE
    if num_vertices == 4:
        return EntityType.QUADRILATERAL
    raise ValueError(f"Faces have 3 or 4 vertices, got {num_vertices}")
