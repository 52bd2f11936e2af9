"""
Reading partitioned mesh descriptions from YAML or JSON documents.

Document layout::

    name: two_quads
    domains:
      - name: d0
        num_vertices: 6
        entities:
          quadrilateral: [[0, 1, 4, 3], [1, 2, 5, 4]]
    components:
      - name: volume
        dimension: 2
        parts:
          - domain: d0
            entities:
              vertex: 6
              quadrilateral: {count: 2, ids: [0, 1], id_type: int32}
        relations: [boundary]
        coordinates:
          order: 1
          num_components: 2
          layout: by_vdim
          data: [...]
    tags:
      - name: material
        component: volume
        int_type: int32
        values: [1, 2]

Domains and components are referenced by name.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np

from partmesh.core.entities import EntityType
from partmesh.source.description import (
    BasisType,
    Component,
    Domain,
    FieldDescriptorType,
    FieldType,
    IntType,
    LayoutType,
    MeshDescription,
    PartEntities,
    ScalarType,
)

logger = logging.getLogger(__name__)

# Optional YAML support
try:
    import yaml
    HAS_YAML = True
except ImportError:
    yaml = None
    HAS_YAML = False


def _lookup(items: Dict[str, Any], name: str, kind: str) -> Any:
    if name not in items:
        raise ValueError(f"Unknown {kind} '{name}'. Available: {list(items)}")
    return items[name]


def _part_entities(value: Union[int, Dict[str, Any]]) -> PartEntities:
    if isinstance(value, int):
        return PartEntities(count=value)
    id_type = value.get('id_type')
    return PartEntities(
        count=value.get('count'),
        ids=value.get('ids'),
        id_type=IntType.from_string(id_type) if id_type else None,
        orientations=value.get('orientations'),
    )


def _set_coordinates(description: MeshDescription, component: Component, data: Dict[str, Any]) -> None:
    scalar_type = data.get('scalar_type', 'double')
    description.set_coordinates(
        component,
        np.asarray(data['data'], dtype=ScalarType.from_string(scalar_type).dtype),
        num_components=data['num_components'],
        order=data.get('order', 1),
        layout=LayoutType.from_string(data.get('layout', 'by_vdim')),
        descriptor_type=FieldDescriptorType.from_string(data.get('descriptor_type', 'fixed_order')),
        field_type=FieldType.from_string(data.get('field_type', 'continuous')),
        basis_type=BasisType.from_string(data.get('basis', 'nodal_gauss_closed')),
    )


def description_from_dict(data: Dict[str, Any]) -> MeshDescription:
    """Build a MeshDescription from a plain mapping.

    Args:
        data: Mapping in the document layout described in this module

    Returns:
        The mesh description

    Raises:
        ValueError: On unknown references, entity types or enum names
        KeyError: If a required key is missing
    """
    description = MeshDescription(name=data.get('name', 'mesh'))

    domains: Dict[str, Domain] = {}
    for entry in data.get('domains', []):
        entities = {
            EntityType.from_string(name): np.asarray(verts, dtype=np.int64)
            for name, verts in entry.get('entities', {}).items()
        }
        domains[entry['name']] = description.add_domain(entry['name'], entry['num_vertices'], entities)

    components: Dict[str, Component] = {}
    for entry in data.get('components', []):
        component = description.add_component(entry['name'], entry['dimension'])
        for part in entry.get('parts', []):
            entities = {
                EntityType.from_string(name): _part_entities(value)
                for name, value in part.get('entities', {}).items()
            }
            component.add_part(_lookup(domains, part['domain'], 'domain'), entities)
        components[entry['name']] = component

    for entry in data.get('components', []):
        component = components[entry['name']]
        for related in entry.get('relations', []):
            description.relate(component, _lookup(components, related, 'component'))
        if entry.get('coordinates') is not None:
            _set_coordinates(description, component, entry['coordinates'])

    for entry in data.get('tags', []):
        int_type = entry.get('int_type')
        description.add_tag(
            entry['name'],
            _lookup(components, entry['component'], 'component'),
            entry['values'],
            IntType.from_string(int_type) if int_type else None,
        )

    logger.debug(
        f"Loaded description '{description.name}': {len(description.domains)} domains, "
        f"{len(description.components)} components, {len(description.tags)} tags"
    )
    return description


def read_description(path: Union[str, Path]) -> MeshDescription:
    """Load a mesh description from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ImportError: If a YAML file is given and PyYAML is not installed
        ValueError: If the suffix is not supported or the document is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Description file not found: {path}")

    logger.info(f"Reading mesh description from {path}")
    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            if not HAS_YAML:
                raise ImportError(
                    "YAML support not available. Install PyYAML with: pip install PyYAML\n"
                    "Or convert the description to JSON format."
                )
            data = yaml.safe_load(f)
        elif path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported description file format: {path.suffix}")

    return description_from_dict(data)
