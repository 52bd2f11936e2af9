"""
Canonical keys and orientation codes for edges and faces.

Keys are order independent so that every occurrence of the same entity hashes
to the same slot. Orientation codes describe how an occurrence's vertex order
relates to the canonical order stored at first insertion:

- edges: 0 when both run in the same direction, 1 when reversed
- faces with n vertices: a code in [0, 2n). With r the position of the
  canonical first vertex inside the occurrence, the code is 2r when the
  occurrence continues forward through the canonical second vertex and
  2r + 1 when it runs the other way
"""

import sys
from typing import Sequence, Tuple

# Fills the fourth slot of a triangle key; sorts after every real vertex id.
ABSENT = sys.maxsize

EdgeKey = Tuple[int, int]
FaceKey = Tuple[int, int, int, int]


def edge_key(v0: int, v1: int) -> EdgeKey:
    """Order independent key of the edge (v0, v1)."""
    v0, v1 = int(v0), int(v1)
    return (v0, v1) if v0 < v1 else (v1, v0)


def face_key(vertices: Sequence[int]) -> FaceKey:
    """Order independent key of a triangle or quadrilateral.

    Args:
        vertices: Three or four vertex ids in any order

    Returns:
        The sorted vertex ids, padded with ABSENT for triangles
    """
    verts = [int(v) for v in vertices]
    if len(verts) == 3:
        verts.append(ABSENT)
    elif len(verts) != 4:
        raise ValueError(f"Faces have 3 or 4 vertices, got {len(verts)}")
    return tuple(sorted(verts))


def edge_orientation(occurrence: Sequence[int], canonical: Sequence[int]) -> int:
    """Orientation code of an edge occurrence relative to its canonical order."""
    return 0 if int(occurrence[0]) == int(canonical[0]) else 1


def face_orientation(occurrence: Sequence[int], canonical: Sequence[int]) -> int:
    """Orientation code of a face occurrence relative to its canonical order.

    Args:
        occurrence: Vertex ids as listed by the occurrence
        canonical: Vertex ids in canonical order (same vertex set)

    Returns:
        Orientation code in [0, 2n)

    Raises:
        ValueError: If the two sequences do not describe the same face
    """
    n = len(canonical)
    if len(occurrence) != n:
        raise ValueError(f"Occurrence has {len(occurrence)} vertices, canonical face has {n}")
    occ = [int(v) for v in occurrence]
    first = int(canonical[0])
    if first not in occ:
        raise ValueError(f"Vertex {first} of the canonical face is not in {occ}")
    r = occ.index(first)
    if occ[(r + 1) % n] == int(canonical[1]):
        code = 2 * r
    elif occ[(r - 1) % n] == int(canonical[1]):
        code = 2 * r + 1
    else:
        code = None
    if code is None or any(
        occ[m] != int(canonical[c]) for m, c in enumerate(vertex_correspondence(n, code))
    ):
        raise ValueError(f"Occurrence {occ} is not a rotation or reflection of {list(canonical)}")
    return code


def orientation_of(occurrence: Sequence[int], canonical: Sequence[int]) -> int:
    """Orientation code of any edge or face occurrence."""
    if len(canonical) == 2:
        return edge_orientation(occurrence, canonical)
    return face_orientation(occurrence, canonical)


def vertex_correspondence(num_vertices: int, code: int) -> Tuple[int, ...]:
    """Map occurrence-local vertex positions to canonical vertex positions.

    Entry m of the result is the canonical position of the occurrence's m-th
    vertex for the given orientation code.
    """
    n = num_vertices
    if n == 2:
        if code not in (0, 1):
            raise ValueError(f"Edge orientation must be 0 or 1, got {code}")
        return (0, 1) if code == 0 else (1, 0)
    if not 0 <= code < 2 * n:
        raise ValueError(f"Orientation of a {n}-vertex face must be in [0, {2 * n}), got {code}")
    r, reflected = divmod(code, 2)
    if reflected:
        return tuple((r - m) % n for m in range(n))
    return tuple((m - r) % n for m in range(n))
