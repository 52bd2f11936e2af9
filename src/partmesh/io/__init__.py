"""I/O utilities for partitioned descriptions and converted meshes."""

from partmesh.io.description import description_from_dict, read_description
from partmesh.io.export import to_meshio, write_mesh

__all__ = ["description_from_dict", "read_description", "to_meshio", "write_mesh"]
