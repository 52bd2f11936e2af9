"""
partmesh - conversion of partitioned mesh descriptions into high-order meshes.

A partitioned description declares vertices, edges, faces and cells part by
part, possibly more than once and in part-local order. partmesh rebuilds a
single indexed topology from it, deduplicating shared edges and faces, and
transfers the high-order node coordinates into the resulting mesh with the
orientation of every occurrence taken into account.
"""

__author__ = "partmesh developers"

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "0.1.0"

from partmesh.core.config import ConversionConfig
from partmesh.core.entities import EntityType
from partmesh.core.errors import ConversionError, ErrorCategory, ErrorCode
from partmesh.convert.driver import build_high_order_mesh, convert_data_collection, convert_mesh
from partmesh.mesh.collection import DataCollection
from partmesh.mesh.high_order import HighOrderMesh, Ordering
from partmesh.source.description import DataCollectionDescription, MeshDescription

__all__ = [
    "ConversionConfig", "EntityType", "ConversionError", "ErrorCategory", "ErrorCode",
    "build_high_order_mesh", "convert_mesh", "convert_data_collection",
    "DataCollection", "HighOrderMesh", "Ordering",
    "DataCollectionDescription", "MeshDescription",
]
