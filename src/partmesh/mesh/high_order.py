"""
High-order unstructured mesh with a nodal geometry field.

The mesh is built in stages: entities are inserted first, then the topology
is finalized (edges and faces numbered), then the mesh is promoted to a
curved representation by allocating a nodal field of the requested order.
Node data can only be written once that field exists.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from partmesh.core.entities import EntityType, face_type
from partmesh.core.keys import edge_orientation, face_orientation
from partmesh.core.table import EntityTable, edge_table, face_table
from partmesh.mesh.basis import (
    dof_order_for_orientation,
    interior_dof_count,
    linear_shape,
    reference_nodes,
)

logger = logging.getLogger(__name__)

EntityRef = Tuple[int, int]  # (entity id, orientation code)


class Ordering(Enum):
    """Ordering of vector components in a nodal field."""
    BY_NODES = "by_nodes"  # all DOFs of component 0, then component 1, ...
    BY_VDIM = "by_vdim"    # all components of DOF 0, then DOF 1, ...


class NodalSpace:
    """DOF layout of a continuous nodal field on a finalized mesh.

    DOFs are numbered vertices first, then edge interiors, then face interiors
    (3D meshes only), then element interiors. Each entity's interior DOFs are
    contiguous and follow the entity's canonical vertex order.

    Args:
        mesh: Mesh with finalized topology
        order: Polynomial order (at least 1)
        vdim: Number of vector components
        ordering: Component ordering of the vector DOFs
    """

    def __init__(self, mesh: 'HighOrderMesh', order: int, vdim: int, ordering: Ordering = Ordering.BY_NODES):
        if order < 1:
            raise ValueError(f"Polynomial order must be at least 1, got {order}")
        self.mesh = mesh
        self.order = order
        self.vdim = vdim
        self.ordering = ordering
        self.dofs_per_entity = {et: interior_dof_count(et, order) for et in EntityType}

        vertex_dofs = mesh.num_vertices * self.dofs_per_entity[EntityType.VERTEX]
        edge_dofs = mesh.num_edges * self.dofs_per_entity[EntityType.EDGE]
        self._edge_offset = vertex_dofs

        face_counts = [
            self.dofs_per_entity[face_type(len(mesh.get_face_vertices(i)))]
            for i in range(mesh.num_faces)
        ]
        self._face_offsets = vertex_dofs + edge_dofs + np.concatenate(([0], np.cumsum(face_counts, dtype=np.int64)))

        element_counts = [self.dofs_per_entity[mesh.get_element_type(i)] for i in range(mesh.num_elements)]
        self._element_offsets = self._face_offsets[-1] + np.concatenate(
            ([0], np.cumsum(element_counts, dtype=np.int64))
        )
        self.num_dofs = int(self._element_offsets[-1])

    @property
    def entity_stride(self) -> int:
        """Distance between consecutive DOFs of one component."""
        return self.vdim if self.ordering is Ordering.BY_VDIM else 1

    @property
    def component_stride(self) -> int:
        """Distance between the components of one DOF."""
        return 1 if self.ordering is Ordering.BY_VDIM else self.num_dofs

    @property
    def num_vdofs(self) -> int:
        return self.num_dofs * self.vdim

    def vertex_dofs(self, vertex: int) -> np.ndarray:
        n = self.dofs_per_entity[EntityType.VERTEX]
        return np.arange(vertex * n, (vertex + 1) * n, dtype=np.int64)

    def edge_interior_dofs(self, edge: int) -> np.ndarray:
        n = self.dofs_per_entity[EntityType.EDGE]
        start = self._edge_offset + edge * n
        return np.arange(start, start + n, dtype=np.int64)

    def face_interior_dofs(self, face: int) -> np.ndarray:
        return np.arange(self._face_offsets[face], self._face_offsets[face + 1], dtype=np.int64)

    def element_interior_dofs(self, element: int) -> np.ndarray:
        return np.arange(self._element_offsets[element], self._element_offsets[element + 1], dtype=np.int64)

    def dof_to_vdof(self, dof: int, component: int) -> int:
        return dof * self.entity_stride + component * self.component_stride

    def vdofs(self, dofs: Sequence[int]) -> np.ndarray:
        """Vector DOF indices, shape (len(dofs), vdim)."""
        dofs = np.asarray(dofs, dtype=np.int64)
        components = np.arange(self.vdim, dtype=np.int64)
        return dofs[:, None] * self.entity_stride + components[None, :] * self.component_stride

    def dof_order_for_orientation(self, entity_type: EntityType, code: int) -> np.ndarray:
        return dof_order_for_orientation(entity_type, self.order, code)


class NodalField:
    """Values of a NodalSpace, stored flat in the space's ordering."""

    def __init__(self, space: NodalSpace, data: Optional[np.ndarray] = None):
        self.space = space
        if data is None:
            data = np.zeros(space.num_vdofs)
        data = np.asarray(data, dtype=np.float64)
        if data.shape != (space.num_vdofs,):
            raise ValueError(f"Nodal data must have shape ({space.num_vdofs},), got {data.shape}")
        self.data = data

    def __len__(self) -> int:
        return self.data.size

    @property
    def size(self) -> int:
        return self.data.size

    def get_values(self, dof: int) -> np.ndarray:
        """All components of one DOF."""
        return self.data[self.space.vdofs([dof])[0]]

    def set_values(self, dofs: Sequence[int], values: np.ndarray) -> None:
        """Write values of shape (len(dofs), vdim) to the given DOFs."""
        self.data[self.space.vdofs(dofs)] = values

    def vertex_coordinates(self) -> np.ndarray:
        """Values at the mesh vertices, shape (num_vertices, vdim)."""
        dofs = np.arange(self.space.mesh.num_vertices, dtype=np.int64)
        return self.data[self.space.vdofs(dofs)]


class HighOrderMesh:
    """Unstructured mesh of a single topological dimension with optional curved geometry.

    Args:
        dim: Topological dimension of the elements
        num_vertices: Number of vertices that will be added
        num_elements: Number of elements that will be added
        num_boundary_elements: Number of boundary elements that will be added
        space_dim: Dimension of the embedding space
    """

    def __init__(self, dim: int, num_vertices: int, num_elements: int,
                 num_boundary_elements: int, space_dim: int):
        if dim not in (1, 2, 3):
            raise ValueError(f"Mesh dimension must be 1, 2 or 3, got {dim}")
        if space_dim < dim:
            raise ValueError(f"Space dimension {space_dim} is smaller than mesh dimension {dim}")
        self.dim = dim
        self.space_dim = space_dim
        self._capacity = (num_vertices, num_elements, num_boundary_elements)

        self._vertices: List[np.ndarray] = []
        self._element_types: List[EntityType] = []
        self._element_vertices: List[Tuple[int, ...]] = []
        self._element_attributes: List[int] = []
        self._boundary_types: List[EntityType] = []
        self._boundary_vertices: List[Tuple[int, ...]] = []
        self._boundary_attributes: List[int] = []

        self.edge_table: Optional[EntityTable] = None
        self.face_table: Optional[EntityTable] = None
        self._element_edges: List[List[EntityRef]] = []
        self._element_faces: List[List[EntityRef]] = []
        self._boundary_entities: List[EntityRef] = []

        self.space: Optional[NodalSpace] = None
        self.nodes: Optional[NodalField] = None
        self._topology_finalized = False
        self._finalized = False

    # Construction

    def add_vertex(self, coords: Sequence[float]) -> int:
        if len(self._vertices) >= self._capacity[0]:
            raise ValueError(f"Mesh was sized for {self._capacity[0]} vertices")
        point = np.zeros(self.space_dim)
        values = np.asarray(coords, dtype=np.float64)[:self.space_dim]
        point[:values.size] = values
        self._vertices.append(point)
        return len(self._vertices) - 1

    def _check_entity(self, entity_type: EntityType, vertices: Sequence[int], dimension: int) -> Tuple[int, ...]:
        if self._topology_finalized:
            raise RuntimeError("Entities cannot be added after the topology is finalized")
        if entity_type.dimension != dimension:
            raise ValueError(f"{entity_type.name} has dimension {entity_type.dimension}, expected {dimension}")
        verts = tuple(int(v) for v in vertices)
        if len(verts) != entity_type.num_vertices:
            raise ValueError(f"{entity_type.name} needs {entity_type.num_vertices} vertices, got {len(verts)}")
        return verts

    def add_element(self, entity_type: EntityType, vertices: Sequence[int], attribute: int = 1) -> int:
        verts = self._check_entity(entity_type, vertices, self.dim)
        if len(self._element_types) >= self._capacity[1]:
            raise ValueError(f"Mesh was sized for {self._capacity[1]} elements")
        self._element_types.append(entity_type)
        self._element_vertices.append(verts)
        self._element_attributes.append(int(attribute))
        return len(self._element_types) - 1

    def add_boundary_element(self, entity_type: EntityType, vertices: Sequence[int], attribute: int = 1) -> int:
        verts = self._check_entity(entity_type, vertices, self.dim - 1)
        if len(self._boundary_types) >= self._capacity[2]:
            raise ValueError(f"Mesh was sized for {self._capacity[2]} boundary elements")
        self._boundary_types.append(entity_type)
        self._boundary_vertices.append(verts)
        self._boundary_attributes.append(int(attribute))
        return len(self._boundary_types) - 1

    # Topology

    def finalize_topology(self) -> None:
        """Number edges and faces in first-seen order over elements, then boundary elements.

        The vertex order of the first occurrence becomes the canonical order
        of each edge and face. Every element records the ids and orientation
        codes of its edges and faces.

        Raises:
            RuntimeError: If not all vertices have been added
            ValueError: If an element references a vertex that does not exist
                or a face occurrence is not a rotation or reflection of its
                canonical face
        """
        if self._topology_finalized:
            return
        num_vertices = self._capacity[0]
        if len(self._vertices) != num_vertices:
            raise RuntimeError(
                f"All {num_vertices} vertices must be added before finalizing topology, "
                f"got {len(self._vertices)}"
            )
        for verts in self._element_vertices + self._boundary_vertices:
            if min(verts) < 0 or max(verts) >= num_vertices:
                raise ValueError(f"Entity {verts} references a vertex outside [0, {num_vertices})")

        if self.dim >= 2:
            self.edge_table = edge_table()
            self._element_edges = [
                self._register_edges(et, verts)
                for et, verts in zip(self._element_types, self._element_vertices)
            ]
        if self.dim == 3:
            self.face_table = face_table()
            self._element_faces = [
                self._register_faces(et, verts)
                for et, verts in zip(self._element_types, self._element_vertices)
            ]

        self._boundary_entities = []
        for et, verts in zip(self._boundary_types, self._boundary_vertices):
            if et is EntityType.EDGE:
                edge = self.edge_table.insert_or_get(verts)
                self._boundary_entities.append(
                    (edge, edge_orientation(verts, self.edge_table.canonical_vertices(edge)))
                )
            elif et.is_face:
                self._register_edges(et, verts)
                face = self.face_table.insert_or_get(verts)
                self._boundary_entities.append(
                    (face, face_orientation(verts, self.face_table.canonical_vertices(face)))
                )
            else:
                self._boundary_entities.append((int(verts[0]), 0))

        self._topology_finalized = True
        logger.info(
            f"Topology finalized: {self.num_vertices} vertices, {self.num_edges} edges, "
            f"{self.num_faces} faces, {self.num_elements} elements, "
            f"{self.num_boundary_elements} boundary elements"
        )

    def _register_edges(self, entity_type: EntityType, verts: Tuple[int, ...]) -> List[EntityRef]:
        refs = []
        for a, b in entity_type.edges:
            pair = (verts[a], verts[b])
            edge = self.edge_table.insert_or_get(pair)
            refs.append((edge, edge_orientation(pair, self.edge_table.canonical_vertices(edge))))
        return refs

    def _register_faces(self, entity_type: EntityType, verts: Tuple[int, ...]) -> List[EntityRef]:
        refs = []
        for local in entity_type.faces:
            face_verts = tuple(verts[k] for k in local)
            face = self.face_table.insert_or_get(face_verts)
            refs.append((face, face_orientation(face_verts, self.face_table.canonical_vertices(face))))
        return refs

    # Curvature

    def set_curvature(self, order: int, ordering: Ordering = Ordering.BY_NODES) -> NodalField:
        """Promote the mesh to a nodal geometry field of the given order.

        The current vertex positions are interpolated linearly onto all nodes.

        Args:
            order: Polynomial order of the geometry field
            ordering: Component ordering of the node data

        Returns:
            The newly allocated node field

        Raises:
            RuntimeError: If the topology has not been finalized
        """
        if not self._topology_finalized:
            raise RuntimeError("Topology must be finalized before setting the curvature")
        self.space = NodalSpace(self, order, self.space_dim, ordering)
        self.nodes = NodalField(self.space)

        coords = np.array(self._vertices).reshape(-1, self.space_dim)
        self.nodes.set_values(np.arange(self.num_vertices), coords)
        for i in range(self.num_edges):
            self._interpolate(EntityType.EDGE, self.get_edge_vertices(i), self.space.edge_interior_dofs(i), coords)
        for i in range(self.num_faces):
            verts = self.get_face_vertices(i)
            self._interpolate(face_type(len(verts)), verts, self.space.face_interior_dofs(i), coords)
        for i in range(self.num_elements):
            self._interpolate(
                self._element_types[i], self._element_vertices[i], self.space.element_interior_dofs(i), coords
            )

        logger.info(
            f"Curvature set to order {order} ({ordering.name}): "
            f"{self.space.num_dofs} nodes x {self.space_dim} components"
        )
        return self.nodes

    def _interpolate(self, entity_type: EntityType, verts: Sequence[int], dofs: np.ndarray,
                     coords: np.ndarray) -> None:
        if dofs.size == 0:
            return
        corner = coords[list(verts)]
        weights = np.array([linear_shape(entity_type, xi) for xi in reference_nodes(entity_type, self.space.order)])
        self.nodes.set_values(dofs, weights @ corner)

    def finalize(self) -> None:
        """Check that the mesh received everything it was sized for."""
        num_vertices, num_elements, num_boundary = self._capacity
        if not self._topology_finalized:
            raise RuntimeError("Topology must be finalized before the mesh")
        if self.num_elements != num_elements or self.num_boundary_elements != num_boundary:
            raise RuntimeError(
                f"Mesh was sized for {num_elements} elements and {num_boundary} boundary elements, "
                f"got {self.num_elements} and {self.num_boundary_elements}"
            )
        self._finalized = True

    # Queries

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    @property
    def num_vertices(self) -> int:
        return len(self._vertices)

    @property
    def num_elements(self) -> int:
        return len(self._element_types)

    @property
    def num_boundary_elements(self) -> int:
        return len(self._boundary_types)

    @property
    def num_edges(self) -> int:
        return len(self.edge_table) if self.edge_table is not None else 0

    @property
    def num_faces(self) -> int:
        """Number of 2D faces; zero unless the mesh is three-dimensional."""
        return len(self.face_table) if self.face_table is not None else 0

    @property
    def element_attributes(self) -> np.ndarray:
        return np.array(self._element_attributes, dtype=np.int64)

    @property
    def boundary_attributes(self) -> np.ndarray:
        return np.array(self._boundary_attributes, dtype=np.int64)

    def get_vertex(self, i: int) -> np.ndarray:
        return self._vertices[i].copy()

    def get_element_type(self, i: int) -> EntityType:
        return self._element_types[i]

    def get_element_vertices(self, i: int) -> Tuple[int, ...]:
        return self._element_vertices[i]

    def get_boundary_element_type(self, i: int) -> EntityType:
        return self._boundary_types[i]

    def get_boundary_element_vertices(self, i: int) -> Tuple[int, ...]:
        return self._boundary_vertices[i]

    def get_edge_vertices(self, i: int) -> Tuple[int, ...]:
        return self.edge_table.canonical_vertices(i)

    def get_face_vertices(self, i: int) -> Tuple[int, ...]:
        return self.face_table.canonical_vertices(i)

    def get_element_edges(self, i: int) -> Tuple[List[int], List[int]]:
        """Edge ids and orientation codes of an element, in local edge order."""
        refs = self._element_edges[i]
        return [r[0] for r in refs], [r[1] for r in refs]

    def get_element_faces(self, i: int) -> Tuple[List[int], List[int]]:
        """Face ids and orientation codes of a 3D element, in local face order."""
        refs = self._element_faces[i]
        return [r[0] for r in refs], [r[1] for r in refs]

    def get_boundary_entity(self, i: int) -> EntityRef:
        """Edge (2D) or face (3D) id and orientation code of a boundary element."""
        return self._boundary_entities[i]

    def vertex_coordinates(self) -> np.ndarray:
        """Vertex positions, read from the node field once it exists."""
        if self.nodes is not None:
            return self.nodes.vertex_coordinates()
        return np.array(self._vertices).reshape(-1, self.space_dim)
