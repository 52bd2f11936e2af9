"""
Topology construction from a partitioned mesh description.

The main component's top-dimensional entities become mesh elements and the
boundary component's entities become boundary elements, in part order and
then entity-type order. That same order is used later to match node data to
the elements, so it must not change between the two passes.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from partmesh.core.config import ConversionConfig
from partmesh.core.entities import EntityType
from partmesh.core.errors import (
    ErrorCode,
    InvalidInputError,
    UnsupportedAttributeError,
    UnsupportedEntityError,
    UnsupportedMetadataError,
)
from partmesh.mesh.high_order import HighOrderMesh, Ordering
from partmesh.source.description import (
    Component,
    Domain,
    Field,
    IntType,
    MeshDescription,
    Part,
    PartEntities,
    Tag,
)

logger = logging.getLogger(__name__)

SUPPORTED_ID_TYPES = (IntType.INT32, IntType.UINT32)
SUPPORTED_TAG_TYPES = (IntType.UINT8, IntType.INT32, IntType.UINT32)


@dataclass
class ComponentSelection:
    """The components, tags and vertex numbering a conversion works from.

    Attributes:
        main: First component carrying coordinates
        coordinates: The main component's coordinate field
        boundary: First related component of dimension main - 1, if any
        element_tag: First tag owned by the main component
        boundary_tag: First tag owned by the boundary component
        vertex_offsets: Global id of the first vertex of each domain
    """
    main: Component
    coordinates: Field
    boundary: Optional[Component] = None
    element_tag: Optional[Tag] = None
    boundary_tag: Optional[Tag] = None
    vertex_offsets: Dict[Domain, int] = field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return self.main.dimension

    @property
    def space_dim(self) -> int:
        return self.coordinates.num_components

    @property
    def num_vertices(self) -> int:
        return self.main.count(EntityType.VERTEX)

    @property
    def num_elements(self) -> int:
        return self.main.num_entities

    @property
    def num_boundary_elements(self) -> int:
        return self.boundary.num_entities if self.boundary is not None else 0


def select_components(description: MeshDescription) -> ComponentSelection:
    """Locate the main and boundary components and their tags.

    Raises:
        InvalidInputError: If no component has coordinates
    """
    main = next((comp for comp in description.components if comp.coordinates is not None), None)
    if main is None:
        raise InvalidInputError(
            ErrorCode.MISSING_COORDINATES, f"No component of mesh '{description.name}' has coordinates"
        )

    boundary = None
    for index in main.relations:
        candidate = description.components[index]
        if candidate.dimension == main.dimension - 1:
            boundary = candidate
            break

    element_tag = boundary_tag = None
    for tag in description.tags:
        if element_tag is None and tag.component is main:
            element_tag = tag
        elif boundary_tag is None and boundary is not None and tag.component is boundary:
            boundary_tag = tag

    vertex_offsets: Dict[Domain, int] = {}
    running = 0
    for part in main.parts:
        count = part.count(EntityType.VERTEX)
        if count > 0:
            vertex_offsets.setdefault(part.domain, running)
        running += count

    selection = ComponentSelection(main, main.coordinates, boundary, element_tag, boundary_tag, vertex_offsets)
    logger.info(
        f"Main component '{main.name}' (dim {main.dimension}): {selection.num_vertices} vertices, "
        f"{selection.num_elements} elements; boundary component: "
        f"{boundary.name if boundary is not None else 'none'}"
    )
    return selection


def check_part_metadata(entries: PartEntities, entity_type: EntityType,
                        id_code: ErrorCode, orientation_code: ErrorCode) -> None:
    """Reject id buffers of unsupported width and explicit orientations."""
    if entries.ids is not None and entries.id_type not in SUPPORTED_ID_TYPES:
        raise UnsupportedMetadataError(
            id_code, f"{entity_type.name} ids use unsupported integer type {entries.id_type.name}"
        )
    if entries.orientations is not None:
        raise UnsupportedMetadataError(
            orientation_code, f"{entity_type.name} entities carry explicit orientations"
        )


def part_vertices(selection: ComponentSelection, part: Part, entity_type: EntityType,
                  entries: PartEntities) -> np.ndarray:
    """Global vertex ids of the entities a part selects.

    Returns:
        Array of shape (entries.count, entity_type.num_vertices)

    Raises:
        InvalidInputError: If the part's domain contributes no vertices, or an
            entity or vertex id falls outside its range
    """
    domain = part.domain
    offset = selection.vertex_offsets.get(domain)
    if offset is None:
        raise InvalidInputError(
            ErrorCode.UNKNOWN_DOMAIN,
            f"Domain '{domain.name}' contributes no vertices to component '{selection.main.name}'"
        )

    table = domain.entity_vertices(entity_type)
    available = len(table)
    if entries.ids is None:
        if entries.count > available:
            raise InvalidInputError(
                ErrorCode.ENTITY_ID_OUT_OF_RANGE,
                f"Part selects {entries.count} {entity_type.name} entities, "
                f"domain '{domain.name}' defines {available}"
            )
        local = table[:entries.count]
    else:
        ids = entries.ids.astype(np.int64)
        if ids.size and (ids.min() < 0 or ids.max() >= available):
            raise InvalidInputError(
                ErrorCode.ENTITY_ID_OUT_OF_RANGE,
                f"{entity_type.name} ids must lie in [0, {available}) for domain '{domain.name}'"
            )
        local = table[ids]

    if local.size and (local.min() < 0 or local.max() >= domain.num_vertices):
        raise InvalidInputError(
            ErrorCode.VERTEX_OUT_OF_RANGE,
            f"{entity_type.name} entities of domain '{domain.name}' reference vertices "
            f"outside [0, {domain.num_vertices})"
        )
    verts = local + offset
    if verts.size and verts.max() >= selection.num_vertices:
        raise InvalidInputError(
            ErrorCode.VERTEX_OUT_OF_RANGE,
            f"{entity_type.name} entities reference vertex {int(verts.max())}, "
            f"mesh has {selection.num_vertices} vertices"
        )
    return verts


class TopologyBuilder:
    """Build the element and boundary topology of a mesh.

    Args:
        selection: Components and tags to read from
        config: Conversion options
    """

    def __init__(self, selection: ComponentSelection, config: Optional[ConversionConfig] = None):
        self.selection = selection
        self.config = config or ConversionConfig()

    def build(self) -> HighOrderMesh:
        """Allocate the mesh and insert all elements and boundary elements.

        Raises:
            ConversionError: On unsupported tags, entity types or metadata
        """
        sel = self.selection
        attributes = self._attributes(
            sel.element_tag, sel.num_elements, ErrorCode.ELEMENT_TAG_TYPE, ErrorCode.ELEMENT_TAG_LENGTH
        )
        boundary_attributes = self._attributes(
            sel.boundary_tag, sel.num_boundary_elements, ErrorCode.BOUNDARY_TAG_TYPE, ErrorCode.BOUNDARY_TAG_LENGTH
        )

        if sel.dimension == 0:
            raise UnsupportedEntityError(ErrorCode.VERTEX_AS_CELL, "Vertices cannot be mesh elements")
        if not 1 <= sel.dimension <= 3:
            raise InvalidInputError(
                ErrorCode.INVALID_DIMENSION,
                f"Component '{sel.main.name}' has dimension {sel.dimension}, expected 1, 2 or 3"
            )
        if sel.space_dim < sel.dimension:
            raise InvalidInputError(
                ErrorCode.SPACE_DIMENSION,
                f"Coordinates have {sel.space_dim} components, component '{sel.main.name}' "
                f"has dimension {sel.dimension}"
            )

        mesh = HighOrderMesh(sel.dimension, sel.num_vertices, sel.num_elements,
                             sel.num_boundary_elements, sel.space_dim)
        self._add_elements(mesh, attributes)
        if sel.boundary is not None and sel.num_boundary_elements > 0:
            self._add_boundary_elements(mesh, boundary_attributes)

        logger.info(f"Inserted {mesh.num_elements} elements and {mesh.num_boundary_elements} boundary elements")
        return mesh

    def finalize(self, mesh: HighOrderMesh, order: int, ordering: Ordering) -> HighOrderMesh:
        """Add placeholder vertices, finalize the topology and allocate the node field.

        The topology must be finalized before the curvature is set: edge and
        face numbering only exists afterwards, and the node field is sized
        from it.
        """
        origin = np.zeros(mesh.space_dim)
        for _ in range(self.selection.num_vertices):
            mesh.add_vertex(origin)
        try:
            mesh.finalize_topology()
        except ValueError as e:
            # every vertex id was range checked on insertion
            raise InvalidInputError(ErrorCode.FACE_VERTEX_ORDER, str(e)) from e
        mesh.set_curvature(order, ordering)
        mesh.finalize()
        return mesh

    def _attributes(self, tag: Optional[Tag], count: int, type_code: ErrorCode,
                    length_code: ErrorCode) -> Optional[np.ndarray]:
        if tag is None:
            return None
        if tag.int_type not in SUPPORTED_TAG_TYPES:
            raise UnsupportedAttributeError(
                type_code, f"Tag '{tag.name}' uses unsupported integer type {tag.int_type.name}"
            )
        if len(tag.values) < count:
            raise UnsupportedAttributeError(
                length_code, f"Tag '{tag.name}' has {len(tag.values)} values for {count} entities"
            )
        return tag.values.astype(np.int64)

    def _add_elements(self, mesh: HighOrderMesh, attributes: Optional[np.ndarray]) -> None:
        dim = self.selection.dimension
        for part_id, part in enumerate(self.selection.main.parts):
            for entity_type in EntityType:
                if entity_type.dimension != dim:
                    continue
                entries = part.get(entity_type)
                if entries.count == 0:
                    continue
                check_part_metadata(entries, entity_type, ErrorCode.ELEMENT_ID_TYPE, ErrorCode.ELEMENT_ORIENTATION)
                if entity_type is EntityType.EDGE:
                    raise UnsupportedEntityError(ErrorCode.EDGE_AS_CELL, "Edges cannot be mesh elements")

                verts = part_vertices(self.selection, part, entity_type, entries)
                offset = mesh.num_elements
                for i, row in enumerate(verts):
                    attribute = attributes[offset + i] if attributes is not None else self.config.default_attribute
                    mesh.add_element(entity_type, row, attribute)
                logger.debug(f"Part {part_id}: added {entries.count} {entity_type.name} elements")

    def _add_boundary_elements(self, mesh: HighOrderMesh, attributes: Optional[np.ndarray]) -> None:
        dim = self.selection.dimension - 1
        for part_id, part in enumerate(self.selection.boundary.parts):
            for entity_type in EntityType:
                if entity_type.dimension != dim:
                    continue
                entries = part.get(entity_type)
                if entries.count == 0:
                    continue
                check_part_metadata(entries, entity_type, ErrorCode.BOUNDARY_ID_TYPE, ErrorCode.BOUNDARY_ORIENTATION)
                if entity_type is EntityType.VERTEX:
                    raise UnsupportedEntityError(
                        ErrorCode.VERTEX_AS_BOUNDARY, "Vertices cannot be boundary elements"
                    )

                verts = part_vertices(self.selection, part, entity_type, entries)
                offset = mesh.num_boundary_elements
                for i, row in enumerate(verts):
                    attribute = attributes[offset + i] if attributes is not None else self.config.default_attribute
                    mesh.add_boundary_element(entity_type, row, attribute)
                logger.debug(f"Boundary part {part_id}: added {entries.count} {entity_type.name} elements")
