"""Conversion of partitioned descriptions into high-order meshes."""

from partmesh.convert.topology import ComponentSelection, TopologyBuilder, select_components
from partmesh.convert.nodes import (
    CoordinateLayout,
    NodeFieldTransfer,
    TransferSummary,
    validate_coordinate_field,
)
from partmesh.convert.driver import build_high_order_mesh, convert_data_collection, convert_mesh

__all__ = [
    "ComponentSelection", "TopologyBuilder", "select_components",
    "CoordinateLayout", "NodeFieldTransfer", "TransferSummary", "validate_coordinate_field",
    "build_high_order_mesh", "convert_data_collection", "convert_mesh",
]
