"""Partitioned external mesh description."""

from partmesh.source.description import (
    BasisType,
    Component,
    DataCollectionDescription,
    Domain,
    Field,
    FieldDescriptor,
    FieldDescriptorType,
    FieldType,
    IntType,
    LayoutType,
    MeshDescription,
    Part,
    PartEntities,
    ScalarType,
    Tag,
)

__all__ = [
    "BasisType", "Component", "DataCollectionDescription", "Domain", "Field",
    "FieldDescriptor", "FieldDescriptorType", "FieldType", "IntType", "LayoutType",
    "MeshDescription", "Part", "PartEntities", "ScalarType", "Tag",
]
