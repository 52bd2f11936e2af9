"""
Transfer of high-order node coordinates onto a finalized mesh.

The partitioned description is walked a second time in the same order used
to build the topology. The source buffer is read strictly sequentially: every
entity occurrence consumes exactly its DOF count, and differences between
the occurrence's vertex order and the mesh's canonical order are absorbed by
permuting where each value is written, never by moving the read offset.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from partmesh.core.config import ConversionConfig
from partmesh.core.entities import EntityType
from partmesh.core.errors import (
    ErrorCode,
    InternalConsistencyError,
    InvalidInputError,
    UnsupportedBasisError,
    UnsupportedEntityError,
)
from partmesh.core.keys import orientation_of
from partmesh.core.table import EntityNotFoundError, EntityTable, edge_table, face_table
from partmesh.convert.topology import ComponentSelection, check_part_metadata, part_vertices
from partmesh.mesh.high_order import HighOrderMesh, Ordering
from partmesh.source.description import (
    BasisType,
    Field,
    FieldDescriptorType,
    FieldType,
    LayoutType,
    ScalarType,
)

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {
    EntityType.EDGE: ErrorCode.EDGE_NOT_FOUND,
    EntityType.TRIANGLE: ErrorCode.TRIANGLE_NOT_FOUND,
    EntityType.QUADRILATERAL: ErrorCode.QUADRILATERAL_NOT_FOUND,
}


@dataclass
class CoordinateLayout:
    """Validated view of the source coordinate buffer.

    Attributes:
        order: Polynomial order of the coordinate field
        num_components: Number of vector components (space dimension)
        ordering: Component ordering shared by source and target
        num_dofs: DOFs per component declared by the source descriptor
        data: Flat double precision source buffer
    """
    order: int
    num_components: int
    ordering: Ordering
    num_dofs: int
    data: np.ndarray

    @property
    def entity_stride(self) -> int:
        return self.num_components if self.ordering is Ordering.BY_VDIM else 1

    @property
    def component_stride(self) -> int:
        return 1 if self.ordering is Ordering.BY_VDIM else self.num_dofs

    def source_indices(self, slots: np.ndarray) -> np.ndarray:
        """Buffer indices of all components of the given DOF slots."""
        components = np.arange(self.num_components, dtype=np.int64)
        return slots[:, None] * self.entity_stride + components[None, :] * self.component_stride


def validate_coordinate_field(coords: Field) -> CoordinateLayout:
    """Check that the coordinate field uses the supported representation.

    Only double precision, fixed order, continuous fields with a closed
    Gauss-Lobatto nodal basis are accepted.

    Raises:
        UnsupportedBasisError: On any other scalar type, descriptor, field type,
            basis or an order below 1
        InvalidInputError: If the data buffer is shorter than the declared DOFs
    """
    if coords.scalar_type is not ScalarType.DOUBLE:
        raise UnsupportedBasisError(
            ErrorCode.SCALAR_TYPE, f"Coordinates must be double precision, got {coords.scalar_type.name}"
        )
    descriptor = coords.descriptor
    if descriptor.descriptor_type is not FieldDescriptorType.FIXED_ORDER:
        raise UnsupportedBasisError(
            ErrorCode.DESCRIPTOR_TYPE, f"Unsupported field descriptor type {descriptor.descriptor_type.name}"
        )
    if descriptor.field_type is not FieldType.CONTINUOUS:
        raise UnsupportedBasisError(
            ErrorCode.FIELD_TYPE, f"Coordinates must be continuous, got {descriptor.field_type.name}"
        )
    if descriptor.basis_type is not BasisType.NODAL_GAUSS_CLOSED:
        raise UnsupportedBasisError(
            ErrorCode.BASIS_TYPE, f"Unsupported basis {descriptor.basis_type.name}"
        )
    if descriptor.order < 1:
        raise UnsupportedBasisError(
            ErrorCode.INVALID_ORDER, f"Coordinate order must be at least 1, got {descriptor.order}"
        )

    num_dofs = descriptor.num_dofs
    data = np.asarray(coords.data, dtype=np.float64).ravel()
    expected = num_dofs * coords.num_components
    if data.size < expected:
        raise InvalidInputError(
            ErrorCode.FIELD_DATA_LENGTH,
            f"Coordinate buffer holds {data.size} values, descriptor needs {expected}"
        )
    ordering = Ordering.BY_VDIM if coords.layout is LayoutType.BY_VDIM else Ordering.BY_NODES
    return CoordinateLayout(descriptor.order, coords.num_components, ordering, num_dofs, data)


@dataclass
class TransferSummary:
    """Counters reported by a node transfer."""
    dofs_transferred: int = 0
    edges_resolved: int = 0
    faces_resolved: int = 0
    reoriented: int = 0


class NodeFieldTransfer:
    """Scatter source coordinates into the node field of a finalized mesh.

    Args:
        mesh: Mesh whose topology and curvature are finalized
        selection: Components the mesh was built from
        layout: Validated source coordinate buffer
        config: Conversion options
    """

    def __init__(self, mesh: HighOrderMesh, selection: ComponentSelection, layout: CoordinateLayout,
                 config: Optional[ConversionConfig] = None):
        if mesh.nodes is None:
            raise RuntimeError("The mesh has no node field; set its curvature first")
        self.mesh = mesh
        self.selection = selection
        self.layout = layout
        self.config = config or ConversionConfig()
        self.space = mesh.space

    def canonical_tables(self) -> Tuple[Optional[EntityTable], Optional[EntityTable]]:
        """Edge and face tables used to resolve occurrences.

        With numbering verification enabled the tables are rebuilt from the
        mesh's edges and faces and every rebuilt id must equal the mesh's
        own index.

        Raises:
            InternalConsistencyError: If a rebuilt id differs from the mesh index
        """
        dim = self.mesh.dim
        dofs = self.space.dofs_per_entity
        count = self.selection.main.count

        edges = faces = None
        if dim >= 2 and dofs[EntityType.EDGE] > 0:
            edges = self._rebuild(
                self.mesh.edge_table, edge_table(), self.mesh.num_edges,
                self.mesh.get_edge_vertices, ErrorCode.EDGE_NUMBERING,
            )
        if dim >= 3 and (
            (count(EntityType.TRIANGLE) > 0 and dofs[EntityType.TRIANGLE] > 0)
            or (count(EntityType.QUADRILATERAL) > 0 and dofs[EntityType.QUADRILATERAL] > 0)
        ):
            faces = self._rebuild(
                self.mesh.face_table, face_table(), self.mesh.num_faces,
                self.mesh.get_face_vertices, ErrorCode.FACE_NUMBERING,
            )
        if not self.config.verify_numbering and (edges is not None or faces is not None):
            logger.warning("Numbering verification disabled: using the mesh edge and face tables unchecked")
        return edges, faces

    def _rebuild(self, existing: EntityTable, table: EntityTable, size: int, vertices_of,
                 code: ErrorCode) -> EntityTable:
        if not self.config.verify_numbering:
            return existing
        for i in range(size):
            entity_id = table.insert_or_get(vertices_of(i))
            if entity_id != i:
                raise InternalConsistencyError(
                    code, f"Rebuilt {table.name} id {entity_id} differs from mesh index {i}"
                )
        return table

    def run(self) -> TransferSummary:
        """Walk the main component and write every DOF of the node field.

        Returns:
            Counters of the transfer

        Raises:
            ConversionError: On DOF count mismatches, unsupported metadata or
                occurrences the mesh does not know
        """
        layout = self.layout
        nodes = self.mesh.nodes
        if nodes.size != layout.num_dofs * layout.num_components:
            raise InternalConsistencyError(
                ErrorCode.DOF_COUNT_MISMATCH,
                f"Mesh node field has {nodes.size} values, source declares "
                f"{layout.num_dofs} x {layout.num_components}"
            )

        edges, faces = self.canonical_tables()
        dim = self.mesh.dim
        dofs_per_entity = self.space.dofs_per_entity
        summary = TransferSummary()
        consumed = [0, 0, 0, 0]
        offset = 0

        for part_id, part in enumerate(self.selection.main.parts):
            for entity_type in EntityType:
                entries = part.get(entity_type)
                if entries.count == 0:
                    continue
                ndofs = dofs_per_entity[entity_type]
                if ndofs == 0:
                    consumed[entity_type.dimension] += entries.count
                    continue
                check_part_metadata(entries, entity_type, ErrorCode.NODE_ID_TYPE, ErrorCode.NODE_ORIENTATION)

                if entity_type is EntityType.VERTEX:
                    first = consumed[0] * ndofs
                    count = entries.count * ndofs
                    self._scatter(np.arange(first, first + count), offset + np.arange(count))
                    offset += count
                elif entity_type.dimension == dim:
                    for e in range(entries.count):
                        dofs = self.space.element_interior_dofs(consumed[dim] + e)
                        self._scatter(dofs, offset + np.arange(ndofs))
                        offset += ndofs
                elif entity_type.dimension > dim:
                    raise UnsupportedEntityError(
                        ErrorCode.UNSUPPORTED_NODE_ENTITY,
                        f"{entity_type.name} entities exceed the mesh dimension {dim}"
                    )
                else:
                    table = edges if entity_type is EntityType.EDGE else faces
                    for verts in part_vertices(self.selection, part, entity_type, entries):
                        reoriented = self._scatter_oriented(entity_type, table, verts, offset)
                        offset += ndofs
                        summary.reoriented += int(reoriented)
                        if entity_type is EntityType.EDGE:
                            summary.edges_resolved += 1
                        else:
                            summary.faces_resolved += 1

                consumed[entity_type.dimension] += entries.count
                logger.debug(f"Part {part_id}: transferred {entity_type.name} DOFs, source offset {offset}")

        if offset != layout.num_dofs:
            raise InternalConsistencyError(
                ErrorCode.DOF_OFFSET_MISMATCH,
                f"Consumed {offset} source DOFs, descriptor declares {layout.num_dofs}"
            )
        summary.dofs_transferred = offset
        logger.info(
            f"Transferred {offset} DOFs ({summary.edges_resolved} edges, "
            f"{summary.faces_resolved} faces, {summary.reoriented} reoriented)"
        )
        return summary

    def _scatter(self, dofs: np.ndarray, slots: np.ndarray) -> None:
        self.mesh.nodes.data[self.space.vdofs(dofs)] = self.layout.data[self.layout.source_indices(slots)]

    def _scatter_oriented(self, entity_type: EntityType, table: EntityTable, verts: np.ndarray,
                          offset: int) -> bool:
        try:
            entity_id = table.find_or_fail(verts)
        except EntityNotFoundError as e:
            raise InternalConsistencyError(_NOT_FOUND_CODES[entity_type], str(e)) from e

        if entity_type is EntityType.EDGE:
            canonical = self.mesh.get_edge_vertices(entity_id)
            dofs = self.space.edge_interior_dofs(entity_id)
        else:
            canonical = self.mesh.get_face_vertices(entity_id)
            dofs = self.space.face_interior_dofs(entity_id)
        try:
            code = orientation_of(verts, canonical)
        except ValueError as e:
            raise InvalidInputError(ErrorCode.FACE_VERTEX_ORDER, f"{entity_type.name} {entity_id}: {e}") from e
        perm = self.space.dof_order_for_orientation(entity_type, code)
        self._scatter(dofs, offset + perm)
        return code != 0
