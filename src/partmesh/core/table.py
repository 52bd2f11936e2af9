"""
Insertion-ordered deduplication tables for edges and faces.

An EntityTable maps the canonical key of an entity to a dense integer id,
allocated in strict first-seen order starting at 0. The vertex order of the
first insertion is kept as the canonical order of that entity. Edge and face
tables are separate instances, so their id spaces never mix.
"""

from typing import Callable, Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

from partmesh.core.keys import edge_key, face_key


class EntityNotFoundError(KeyError):
    """Raised when a lookup does not match any inserted entity."""


class EntityTable:
    """Dense id table keyed by an order independent entity key.

    Args:
        name: Label used in error messages ('edge', 'face')
        key_function: Builds the hashable key from a vertex sequence
        max_vertices: Largest vertex count accepted per entity
    """

    def __init__(self, name: str, key_function: Callable[[Sequence[int]], Hashable], max_vertices: int):
        self.name = name
        self._key_function = key_function
        self._max_vertices = max_vertices
        self._ids: Dict[Hashable, int] = {}
        self._vertices: List[Tuple[int, ...]] = []

    def __len__(self) -> int:
        return len(self._vertices)

    def __contains__(self, vertices: Sequence[int]) -> bool:
        return self.key(vertices) in self._ids

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        return iter(self._vertices)

    def key(self, vertices: Sequence[int]) -> Hashable:
        if len(vertices) > self._max_vertices:
            raise ValueError(
                f"A {self.name} has at most {self._max_vertices} vertices, got {len(vertices)}"
            )
        return self._key_function(vertices)

    def insert_or_get(self, vertices: Sequence[int]) -> int:
        """Return the id of the entity, allocating the next id if it is new."""
        key = self.key(vertices)
        entity_id = self._ids.get(key)
        if entity_id is None:
            entity_id = len(self._vertices)
            self._ids[key] = entity_id
            self._vertices.append(tuple(int(v) for v in vertices))
        return entity_id

    def find(self, vertices: Sequence[int]) -> Optional[int]:
        """Return the id of the entity or None when it was never inserted."""
        return self._ids.get(self.key(vertices))

    def find_or_fail(self, vertices: Sequence[int]) -> int:
        entity_id = self.find(vertices)
        if entity_id is None:
            raise EntityNotFoundError(f"No {self.name} with vertices {list(vertices)}")
        return entity_id

    def canonical_vertices(self, entity_id: int) -> Tuple[int, ...]:
        """Vertex order fixed at the first insertion of the entity."""
        return self._vertices[entity_id]


def edge_table() -> EntityTable:
    return EntityTable("edge", lambda verts: edge_key(verts[0], verts[1]), 2)


def face_table() -> EntityTable:
    """Table accepting triangles and quadrilaterals under one key scheme."""
    return EntityTable("face", face_key, 4)
