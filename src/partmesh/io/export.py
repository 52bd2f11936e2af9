"""
Export of converted meshes through meshio.

Only the linear part of the geometry is exported: vertex positions are read
back from the node field and every element is written with its vertices.
"""

import logging
import os
from typing import Any, Dict, List

import numpy as np

from partmesh.core.entities import EntityType
from partmesh.mesh.high_order import HighOrderMesh

logger = logging.getLogger(__name__)

# Check for meshio availability
try:
    import meshio
    MESHIO_AVAILABLE = True
except ImportError:
    MESHIO_AVAILABLE = False

MESHIO_CELL_TYPES = {
    EntityType.VERTEX: "vertex",
    EntityType.EDGE: "line",
    EntityType.TRIANGLE: "triangle",
    EntityType.QUADRILATERAL: "quad",
    EntityType.TETRAHEDRON: "tetra",
    EntityType.HEXAHEDRON: "hexahedron",
}


def _group_blocks(types: List[EntityType], vertices: List[tuple], attributes: np.ndarray,
                  blocks: Dict[EntityType, Dict[str, list]]) -> None:
    for entity_type, verts, attribute in zip(types, vertices, attributes):
        block = blocks.setdefault(entity_type, {"cells": [], "attribute": []})
        block["cells"].append(verts)
        block["attribute"].append(int(attribute))


def to_meshio(mesh: HighOrderMesh, include_boundary: bool = False) -> Any:
    """Convert a mesh to a meshio.Mesh.

    Args:
        mesh: Mesh to export
        include_boundary: Also export boundary elements as separate cell blocks

    Returns:
        meshio.Mesh with one cell block per entity type and an "attribute"
        cell data array

    Raises:
        ImportError: If meshio is not available
    """
    if not MESHIO_AVAILABLE:
        raise ImportError("meshio is required to export meshes. Install it with 'pip install meshio'")

    element_blocks: Dict[EntityType, Dict[str, list]] = {}
    _group_blocks(
        [mesh.get_element_type(i) for i in range(mesh.num_elements)],
        [mesh.get_element_vertices(i) for i in range(mesh.num_elements)],
        mesh.element_attributes, element_blocks,
    )
    blocks = list(element_blocks.items())
    if include_boundary:
        boundary_blocks: Dict[EntityType, Dict[str, list]] = {}
        _group_blocks(
            [mesh.get_boundary_element_type(i) for i in range(mesh.num_boundary_elements)],
            [mesh.get_boundary_element_vertices(i) for i in range(mesh.num_boundary_elements)],
            mesh.boundary_attributes, boundary_blocks,
        )
        blocks.extend(boundary_blocks.items())

    cells = [
        meshio.CellBlock(MESHIO_CELL_TYPES[entity_type], np.array(block["cells"], dtype=np.int64))
        for entity_type, block in blocks
    ]
    cell_data = {"attribute": [np.array(block["attribute"], dtype=np.int64) for _, block in blocks]}
    return meshio.Mesh(points=mesh.vertex_coordinates(), cells=cells, cell_data=cell_data)


def write_mesh(mesh: HighOrderMesh, filename: str, include_boundary: bool = False, **kwargs) -> None:
    """Write a mesh to any format meshio supports.

    Args:
        mesh: Mesh to export
        filename: Output file; the format follows from the extension unless
            file_format is passed through kwargs
        include_boundary: Also export boundary elements
        **kwargs: Passed on to meshio.write
    """
    exported = to_meshio(mesh, include_boundary)

    output_dir = os.path.dirname(os.path.abspath(filename))
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir, exist_ok=True)
        logger.info(f"Created output directory: {output_dir}")

    logger.info(f"Writing mesh to {filename}")
    meshio.write(filename, exported, **kwargs)
    logger.info(f"Wrote {mesh.num_vertices} vertices and {mesh.num_elements} elements to {filename}")
