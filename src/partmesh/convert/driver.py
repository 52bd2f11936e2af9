"""
Conversion entry points.

`build_high_order_mesh` runs the whole conversion and raises on the first
failure. `convert_mesh` and `convert_data_collection` wrap it and report an
integer status instead: 0 on success, the ErrorCode value otherwise, in
which case no mesh is returned.
"""

import logging
from typing import Optional, Tuple

from partmesh.core.config import ConversionConfig
from partmesh.core.errors import ConversionError, ErrorCode
from partmesh.convert.nodes import NodeFieldTransfer, validate_coordinate_field
from partmesh.convert.topology import TopologyBuilder, select_components
from partmesh.mesh.collection import DataCollection
from partmesh.mesh.high_order import HighOrderMesh
from partmesh.source.description import DataCollectionDescription, MeshDescription

logger = logging.getLogger(__name__)


def build_high_order_mesh(description: MeshDescription,
                          config: Optional[ConversionConfig] = None) -> HighOrderMesh:
    """Convert a partitioned mesh description into a high-order mesh.

    Args:
        description: The partitioned mesh to convert
        config: Conversion options

    Returns:
        The finalized mesh with its node field populated

    Raises:
        ConversionError: On the first malformed or unsupported input, or if
            the two passes disagree about the topology
    """
    config = config or ConversionConfig()
    logger.info(f"Converting mesh '{description.name}'")

    selection = select_components(description)
    builder = TopologyBuilder(selection, config)
    mesh = builder.build()

    layout = validate_coordinate_field(selection.coordinates)
    builder.finalize(mesh, layout.order, layout.ordering)

    NodeFieldTransfer(mesh, selection, layout, config).run()
    return mesh


def convert_mesh(description: MeshDescription,
                 config: Optional[ConversionConfig] = None) -> Tuple[int, Optional[HighOrderMesh]]:
    """Convert a description and report an integer status.

    Returns:
        (0, mesh) on success, (error code, None) on failure
    """
    try:
        mesh = build_high_order_mesh(description, config)
    except ConversionError as e:
        logger.error(f"Conversion of mesh '{description.name}' failed: {e}")
        return int(e.code), None
    return int(ErrorCode.SUCCESS), mesh


def convert_data_collection(collection: DataCollectionDescription,
                            config: Optional[ConversionConfig] = None) -> Tuple[int, Optional[DataCollection]]:
    """Convert the mesh of a data collection and wrap it in a DataCollection.

    Only the mesh is converted; the collection's other fields are not transferred.
    """
    status, mesh = convert_mesh(collection.mesh, config)
    if status != ErrorCode.SUCCESS:
        return status, None
    if collection.fields:
        logger.warning(f"Collection '{collection.name}': {len(collection.fields)} fields not transferred")
    return status, DataCollection(collection.name, mesh)
