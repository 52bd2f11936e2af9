"""
Partitioned external mesh description.

A description is made of domains holding entity definitions, components
grouping parts of those domains, integer tags attached to components and
fields sampled on components. The converter only reads these objects.

Each domain stores, per entity type, the vertex ids of its entities as an
(n, num_vertices) array of domain-local vertex ids. A part selects entities
of its domain either implicitly (the first `count` entities of each type) or
through an explicit id buffer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np

from partmesh.core.entities import EntityType
from partmesh.mesh.basis import element_dof_count, interior_dof_count


class _NamedEnum(Enum):
    """Enum that can be parsed from a case-insensitive member name."""

    @classmethod
    def from_string(cls, value: str):
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown {cls.__name__}: {value}") from None


class IntType(_NamedEnum):
    """Integer widths of id and tag buffers."""
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @classmethod
    def from_dtype(cls, dtype) -> 'IntType':
        dtype = np.dtype(dtype)
        for member in cls:
            if member.dtype == dtype:
                return member
        raise ValueError(f"No integer type matches dtype {dtype}")


class ScalarType(_NamedEnum):
    """Scalar types of field data buffers."""
    FLOAT = "float32"
    DOUBLE = "float64"
    COMPLEX_FLOAT = "complex64"
    COMPLEX_DOUBLE = "complex128"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @classmethod
    def from_dtype(cls, dtype) -> 'ScalarType':
        dtype = np.dtype(dtype)
        for member in cls:
            if member.dtype == dtype:
                return member
        raise ValueError(f"No scalar type matches dtype {dtype}")


class LayoutType(_NamedEnum):
    """Ordering of vector components in a field data buffer."""
    BY_NODES = "by_nodes"
    BY_VDIM = "by_vdim"


class FieldDescriptorType(_NamedEnum):
    FIXED_ORDER = "fixed_order"
    VARIABLE_ORDER = "variable_order"


class FieldType(_NamedEnum):
    CONTINUOUS = "continuous"
    DISCONTINUOUS = "discontinuous"


class BasisType(_NamedEnum):
    NODAL_GAUSS_OPEN = "nodal_gauss_open"
    NODAL_GAUSS_CLOSED = "nodal_gauss_closed"
    NODAL_UNIFORM = "nodal_uniform"


def _as_int_buffer(values, int_type: Optional[IntType]):
    """Convert an id or tag buffer to an array and resolve its integer type."""
    if int_type is not None:
        return np.asarray(values, dtype=int_type.dtype).ravel(), int_type
    if isinstance(values, np.ndarray):
        return values.ravel(), IntType.from_dtype(values.dtype)
    return np.asarray(values, dtype=np.int32).ravel(), IntType.INT32


@dataclass(eq=False)
class Domain:
    """Entity definitions sharing one local vertex numbering.

    Attributes:
        name: Domain name
        num_vertices: Number of domain-local vertices
        entities: Vertex ids of the domain's entities, per entity type
    """
    name: str
    num_vertices: int
    entities: Dict[EntityType, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        converted = {}
        for entity_type, verts in self.entities.items():
            if entity_type is EntityType.VERTEX:
                raise ValueError("Vertices are counted by num_vertices, not listed")
            array = np.asarray(verts, dtype=np.int64).reshape(-1, entity_type.num_vertices)
            converted[entity_type] = array
        self.entities = converted

    def num_entities(self, entity_type: EntityType) -> int:
        if entity_type is EntityType.VERTEX:
            return self.num_vertices
        return len(self.entity_vertices(entity_type))

    def entity_vertices(self, entity_type: EntityType) -> np.ndarray:
        """Vertex ids of all entities of a type, shape (n, num_vertices)."""
        if entity_type is EntityType.VERTEX:
            return np.arange(self.num_vertices, dtype=np.int64).reshape(-1, 1)
        empty = np.empty((0, entity_type.num_vertices), dtype=np.int64)
        return self.entities.get(entity_type, empty)


@dataclass
class PartEntities:
    """Entities of one type selected by a part.

    Attributes:
        count: Number of entities
        ids: Explicit domain entity ids, or None for the first `count` entities
        id_type: Integer width of the id buffer
        orientations: Explicit orientation metadata, if the source has any
    """
    count: Optional[int] = None
    ids: Optional[np.ndarray] = None
    id_type: Optional[IntType] = None
    orientations: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.ids is not None:
            self.ids, self.id_type = _as_int_buffer(self.ids, self.id_type)
            if self.count is None:
                self.count = len(self.ids)
            elif self.count != len(self.ids):
                raise ValueError(f"Part declares {self.count} entities but lists {len(self.ids)} ids")
        if self.count is None:
            self.count = 0
        if self.orientations is not None:
            self.orientations = np.asarray(self.orientations)


@dataclass(eq=False)
class Part:
    """A block of a component, drawn from one domain."""
    domain: Domain
    entities: Dict[EntityType, PartEntities] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.entities = {
            entity_type: value if isinstance(value, PartEntities) else PartEntities(count=int(value))
            for entity_type, value in self.entities.items()
        }

    def get(self, entity_type: EntityType) -> PartEntities:
        """Entities of a type in this part (empty when the part has none)."""
        return self.entities.get(entity_type, PartEntities(count=0))

    def count(self, entity_type: EntityType) -> int:
        return self.get(entity_type).count


@dataclass(eq=False)
class Component:
    """Named grouping of parts of one topological dimension.

    Attributes:
        name: Component name
        dimension: Topological dimension of the component's top entities
        parts: Parts in traversal order
        coordinates: Coordinate field, present on the main component
        relations: Indices of related components in the owning description
    """
    name: str
    dimension: int
    parts: List[Part] = field(default_factory=list)
    coordinates: Optional['Field'] = None
    relations: List[int] = field(default_factory=list)

    def add_part(self, domain: Domain,
                 entities: Optional[Dict[EntityType, Union[int, PartEntities]]] = None) -> Part:
        part = Part(domain, dict(entities or {}))
        self.parts.append(part)
        return part

    def count(self, entity_type: EntityType) -> int:
        """Number of entities of a type over all parts."""
        return sum(part.count(entity_type) for part in self.parts)

    @property
    def num_entities(self) -> int:
        """Number of entities of the component's own dimension."""
        return sum(self.count(et) for et in EntityType if et.dimension == self.dimension)


@dataclass(eq=False)
class Tag:
    """Integer values attached to the entities of a component, in insertion order."""
    name: str
    component: Component
    values: np.ndarray
    int_type: Optional[IntType] = None

    def __post_init__(self) -> None:
        self.values, self.int_type = _as_int_buffer(self.values, self.int_type)


@dataclass(eq=False)
class FieldDescriptor:
    """Discretization of a field over a component."""
    name: str
    component: Component
    order: int = 1
    descriptor_type: FieldDescriptorType = FieldDescriptorType.FIXED_ORDER
    field_type: FieldType = FieldType.CONTINUOUS
    basis_type: BasisType = BasisType.NODAL_GAUSS_CLOSED

    @property
    def num_dofs(self) -> int:
        """Number of DOFs per vector component implied by the component's entities."""
        if self.field_type is FieldType.DISCONTINUOUS:
            return sum(
                self.component.count(et) * element_dof_count(et, self.order)
                for et in EntityType if et.dimension == self.component.dimension
            )
        return sum(self.component.count(et) * interior_dof_count(et, self.order) for et in EntityType)


@dataclass(eq=False)
class Field:
    """Field data sampled on the DOFs of a descriptor.

    Attributes:
        name: Field name
        descriptor: The field's discretization
        num_components: Number of vector components (space dimension for coordinates)
        data: Flat data buffer
        layout: Component ordering of the buffer
        scalar_type: Declared scalar type; inferred from the buffer when omitted
    """
    name: str
    descriptor: FieldDescriptor
    num_components: int
    data: np.ndarray
    layout: LayoutType = LayoutType.BY_VDIM
    scalar_type: Optional[ScalarType] = None

    def __post_init__(self) -> None:
        if self.scalar_type is not None:
            self.data = np.asarray(self.data, dtype=self.scalar_type.dtype).ravel()
        elif isinstance(self.data, np.ndarray):
            self.data = self.data.ravel()
            self.scalar_type = ScalarType.from_dtype(self.data.dtype)
        else:
            self.data = np.asarray(self.data, dtype=np.float64).ravel()
            self.scalar_type = ScalarType.DOUBLE

    @property
    def component(self) -> Component:
        return self.descriptor.component


@dataclass
class MeshDescription:
    """A complete partitioned mesh: domains, components and tags."""
    name: str = "mesh"
    domains: List[Domain] = field(default_factory=list)
    components: List[Component] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)

    def add_domain(self, name: str, num_vertices: int,
                   entities: Optional[Dict[EntityType, np.ndarray]] = None) -> Domain:
        domain = Domain(name, num_vertices, dict(entities or {}))
        self.domains.append(domain)
        return domain

    def add_component(self, name: str, dimension: int) -> Component:
        component = Component(name, dimension)
        self.components.append(component)
        return component

    def relate(self, component: Component, other: Component) -> None:
        """Record `other` as related to `component`."""
        component.relations.append(self.component_index(other))

    def component_index(self, component: Component) -> int:
        for index, candidate in enumerate(self.components):
            if candidate is component:
                return index
        raise ValueError(f"Component '{component.name}' does not belong to mesh '{self.name}'")

    def add_tag(self, name: str, component: Component, values,
                int_type: Optional[IntType] = None) -> Tag:
        tag = Tag(name, component, values, int_type)
        self.tags.append(tag)
        return tag

    def set_coordinates(self, component: Component, data, num_components: int, order: int = 1,
                        layout: LayoutType = LayoutType.BY_VDIM, **descriptor_options) -> Field:
        """Attach a coordinate field to a component and return it."""
        descriptor = FieldDescriptor(f"{component.name}_coords_fd", component, order, **descriptor_options)
        coords = Field(f"{component.name}_coords", descriptor, num_components, data, layout)
        component.coordinates = coords
        return coords


@dataclass
class DataCollectionDescription:
    """A mesh description together with the fields defined on it."""
    name: str
    mesh: MeshDescription
    fields: List[Field] = field(default_factory=list)
