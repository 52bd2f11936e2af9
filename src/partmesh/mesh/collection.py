"""Named container for a converted mesh and the fields defined on it."""

from typing import Dict, List

from partmesh.mesh.high_order import HighOrderMesh, NodalField


class DataCollection:
    """A mesh plus named nodal fields.

    Args:
        name: Collection name
        mesh: The mesh the fields live on
    """

    def __init__(self, name: str, mesh: HighOrderMesh):
        self.name = name
        self.mesh = mesh
        self.fields: Dict[str, NodalField] = {}

    def register_field(self, name: str, field: NodalField) -> None:
        if field.space.mesh is not self.mesh:
            raise ValueError(f"Field '{name}' is not defined on the mesh of collection '{self.name}'")
        self.fields[name] = field

    def get_field(self, name: str) -> NodalField:
        if name not in self.fields:
            raise KeyError(f"No field '{name}' in collection '{self.name}'")
        return self.fields[name]

    @property
    def field_names(self) -> List[str]:
        return list(self.fields)
