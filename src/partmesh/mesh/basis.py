"""
Nodal basis helpers for continuous closed Gauss-Lobatto elements.

Interior nodes of every entity are addressed through an integer lattice: node
(i, j, ...) of an order p entity sits at lattice position (i, j, ...) with
0 < i, j, ... < p. The position of each lattice node in reference
coordinates comes from the 1D closed Gauss-Lobatto points; simplices use
the barycentric blend of those points.

The orientation tables map the interior nodes of a canonical edge or face to
the interior nodes of an occurrence that lists the same vertices in another
order. Only the lattice enters that mapping, so the tables do not depend on
where the nodes sit.
"""

from functools import lru_cache
from typing import List, Sequence, Tuple

import numpy as np

from partmesh.core.entities import EntityType
from partmesh.core.keys import vertex_correspondence

LatticeNode = Tuple[int, ...]


@lru_cache(maxsize=None)
def _gauss_lobatto_points(order: int) -> Tuple[float, ...]:
    if order == 1:
        return (0.0, 1.0)
    interior = np.sort(np.polynomial.legendre.Legendre.basis(order).deriv().roots().real)
    points = np.concatenate(([-1.0], interior, [1.0]))
    return tuple(0.5 * (points + 1.0))


def gauss_lobatto_points(order: int) -> np.ndarray:
    """Closed Gauss-Lobatto points of the given order on [0, 1].

    Args:
        order: Polynomial order (at least 1)

    Returns:
        Array of order + 1 increasing points including both end points
    """
    if order < 1:
        raise ValueError(f"Polynomial order must be at least 1, got {order}")
    return np.array(_gauss_lobatto_points(order))


def interior_dof_count(entity_type: EntityType, order: int) -> int:
    """Number of continuous-space DOFs owned by the interior of an entity."""
    if order < 1:
        raise ValueError(f"Polynomial order must be at least 1, got {order}")
    p = order
    if entity_type is EntityType.VERTEX:
        return 1
    if entity_type is EntityType.EDGE:
        return p - 1
    if entity_type is EntityType.TRIANGLE:
        return (p - 1) * (p - 2) // 2
    if entity_type is EntityType.QUADRILATERAL:
        return (p - 1) ** 2
    if entity_type is EntityType.TETRAHEDRON:
        return (p - 1) * (p - 2) * (p - 3) // 6
    return (p - 1) ** 3


def element_dof_count(entity_type: EntityType, order: int) -> int:
    """Number of DOFs of a whole element including its boundary.

    Used for discontinuous fields, where every DOF belongs to the element.
    """
    p = order
    if entity_type is EntityType.VERTEX:
        return 1
    if entity_type is EntityType.EDGE:
        return p + 1
    if entity_type is EntityType.TRIANGLE:
        return (p + 1) * (p + 2) // 2
    if entity_type is EntityType.QUADRILATERAL:
        return (p + 1) ** 2
    if entity_type is EntityType.TETRAHEDRON:
        return (p + 1) * (p + 2) * (p + 3) // 6
    return (p + 1) ** 3


def interior_lattice(entity_type: EntityType, order: int) -> List[LatticeNode]:
    """Interior lattice nodes of an entity in local DOF order.

    The first lattice index runs fastest.
    """
    p = order
    inner = range(1, p)
    if entity_type is EntityType.VERTEX:
        return [()]
    if entity_type is EntityType.EDGE:
        return [(i,) for i in inner]
    if entity_type is EntityType.TRIANGLE:
        return [(i, j) for j in inner for i in inner if i + j < p]
    if entity_type is EntityType.QUADRILATERAL:
        return [(i, j) for j in inner for i in inner]
    if entity_type is EntityType.TETRAHEDRON:
        return [(i, j, k) for k in inner for j in inner for i in inner if i + j + k < p]
    return [(i, j, k) for k in inner for j in inner for i in inner]


def _lattice_vertices(entity_type: EntityType, order: int) -> np.ndarray:
    """Vertex positions of an edge or face in lattice units."""
    p = order
    if entity_type is EntityType.EDGE:
        return np.array([[0], [p]], dtype=float)
    if entity_type is EntityType.TRIANGLE:
        return np.array([[0, 0], [p, 0], [0, p]], dtype=float)
    if entity_type is EntityType.QUADRILATERAL:
        return np.array([[0, 0], [p, 0], [p, p], [0, p]], dtype=float)
    raise ValueError(f"Orientation tables exist for edges and faces only, not {entity_type.name}")


def reference_nodes(entity_type: EntityType, order: int) -> np.ndarray:
    """Reference coordinates of the interior nodes of an entity.

    Returns:
        Array of shape (n_interior, dimension), in the order of interior_lattice
    """
    op = gauss_lobatto_points(order)
    p = order
    nodes = []
    for node in interior_lattice(entity_type, order):
        if entity_type in (EntityType.EDGE, EntityType.QUADRILATERAL, EntityType.HEXAHEDRON):
            nodes.append([op[i] for i in node])
        elif entity_type is EntityType.TRIANGLE:
            i, j = node
            k = p - i - j
            nodes.append([
                (1.0 + 2.0 * op[i] - op[j] - op[k]) / 3.0,
                (1.0 + 2.0 * op[j] - op[i] - op[k]) / 3.0,
            ])
        elif entity_type is EntityType.TETRAHEDRON:
            i, j, k = node
            m = p - i - j - k
            nodes.append([
                (1.0 + 3.0 * op[i] - op[j] - op[k] - op[m]) / 4.0,
                (1.0 + 3.0 * op[j] - op[i] - op[k] - op[m]) / 4.0,
                (1.0 + 3.0 * op[k] - op[i] - op[j] - op[m]) / 4.0,
            ])
        else:
            nodes.append([])
    return np.array(nodes, dtype=float).reshape(len(nodes), entity_type.dimension)


def linear_shape(entity_type: EntityType, xi: Sequence[float]) -> np.ndarray:
    """Values of the vertex (linear or multilinear) shape functions at xi."""
    if entity_type is EntityType.VERTEX:
        return np.ones(1)
    if entity_type is EntityType.EDGE:
        x, = xi
        return np.array([1.0 - x, x])
    if entity_type is EntityType.TRIANGLE:
        x, y = xi
        return np.array([1.0 - x - y, x, y])
    if entity_type is EntityType.QUADRILATERAL:
        x, y = xi
        return np.array([(1.0 - x) * (1.0 - y), x * (1.0 - y), x * y, (1.0 - x) * y])
    if entity_type is EntityType.TETRAHEDRON:
        x, y, z = xi
        return np.array([1.0 - x - y - z, x, y, z])
    x, y, z = xi
    return np.array([
        (1.0 - x) * (1.0 - y) * (1.0 - z), x * (1.0 - y) * (1.0 - z),
        x * y * (1.0 - z), (1.0 - x) * y * (1.0 - z),
        (1.0 - x) * (1.0 - y) * z, x * (1.0 - y) * z,
        x * y * z, (1.0 - x) * y * z,
    ])


@lru_cache(maxsize=None)
def _permutation(entity_type: EntityType, order: int, code: int) -> Tuple[int, ...]:
    lattice = interior_lattice(entity_type, order)
    index = {node: k for k, node in enumerate(lattice)}
    n = entity_type.num_vertices
    sigma = vertex_correspondence(n, code)
    vertices = _lattice_vertices(entity_type, order)

    # Occurrence frame: origin at its first vertex, axes towards its second
    # and last vertices, expressed in canonical lattice coordinates.
    origin = vertices[sigma[0]]
    axes = [vertices[sigma[1]] - origin]
    if entity_type is not EntityType.EDGE:
        axes.append(vertices[sigma[n - 1]] - origin)
    frame = np.array(axes).T / order

    perm = []
    for node in lattice:
        local = np.linalg.solve(frame, np.array(node, dtype=float) - origin)
        perm.append(index[tuple(int(v) for v in np.rint(local))])
    return tuple(perm)


def dof_order_for_orientation(entity_type: EntityType, order: int, code: int) -> np.ndarray:
    """Permutation from canonical interior slots to occurrence interior slots.

    Args:
        entity_type: EDGE, TRIANGLE or QUADRILATERAL
        order: Polynomial order of the nodal basis
        code: Orientation code of the occurrence (see partmesh.core.keys)

    Returns:
        Integer array perm where perm[k] is the occurrence-local interior slot
        holding the node that is canonical interior slot k
    """
    return np.array(_permutation(entity_type, order, code), dtype=np.int64)
