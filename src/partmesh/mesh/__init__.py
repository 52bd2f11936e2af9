"""Target high-order mesh, its nodal space and data collections."""

from partmesh.mesh.high_order import HighOrderMesh, NodalField, NodalSpace, Ordering
from partmesh.mesh.collection import DataCollection

__all__ = ["HighOrderMesh", "NodalField", "NodalSpace", "Ordering", "DataCollection"]
