#!/usr/bin/env python
"""
End-to-end tests for the conversion entry points.

Converted node fields are compared against meshes built directly from the
true vertex positions: for straight-sided geometry both must agree at every
node once the orientation of each occurrence has been accounted for.
"""

import os
import sys
import unittest
from unittest import mock

import numpy as np

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import partmesh
from partmesh import (
    ConversionConfig,
    ConversionError,
    DataCollectionDescription,
    EntityType,
    ErrorCategory,
    ErrorCode,
    build_high_order_mesh,
    convert_data_collection,
    convert_mesh,
)
from partmesh.convert.nodes import NodeFieldTransfer
from partmesh.core.keys import edge_key, face_key
from partmesh.mesh.high_order import Ordering
from partmesh.source.description import FieldType, LayoutType, MeshDescription, PartEntities

from mesh_fixtures import (
    TWO_HEX_CELLS,
    TWO_HEX_POINTS,
    TWO_QUAD_BOUNDARY,
    TWO_QUAD_CELLS,
    TWO_QUAD_POINTS,
    TWO_TET_CELLS,
    TWO_TET_POINTS,
    listed_edges,
    listed_faces,
    make_description,
    nodal_values,
    reference_mesh,
    two_hexes,
    two_quads,
    two_tets,
)


class TestTwoQuadScenario(unittest.TestCase):
    """Two quads sharing one edge, linear geometry."""

    def setUp(self):
        status, self.mesh = convert_mesh(two_quads(order=1))
        self.assertEqual(status, ErrorCode.SUCCESS)

    def test_sizes(self):
        self.assertEqual(self.mesh.num_elements, 2)
        self.assertEqual(self.mesh.num_vertices, 6)
        self.assertEqual(self.mesh.num_edges, 7)
        self.assertEqual(self.mesh.nodes.size, 6 * 2)

    def test_shared_edge(self):
        ids0, oris0 = self.mesh.get_element_edges(0)
        ids1, oris1 = self.mesh.get_element_edges(1)
        shared = set(ids0) & set(ids1)
        self.assertEqual(len(shared), 1)
        edge = shared.pop()
        self.assertEqual((oris0[ids0.index(edge)] + oris1[ids1.index(edge)]) % 2, 1)

    def test_geometry(self):
        np.testing.assert_allclose(self.mesh.vertex_coordinates(), TWO_QUAD_POINTS)

    def test_status_is_plain_zero(self):
        status, _ = convert_mesh(two_quads())
        self.assertEqual(status, 0)


class TestAgainstReference(unittest.TestCase):
    """Converted node fields equal directly interpolated ones."""

    def check(self, description, points, cell_type, cells, order, ordering):
        mesh = build_high_order_mesh(description)
        expected = reference_mesh(points, cell_type, cells, order, ordering)
        self.assertEqual(mesh.num_edges, expected.num_edges)
        self.assertEqual(mesh.num_faces, expected.num_faces)
        np.testing.assert_allclose(mesh.nodes.data, expected.nodes.data, atol=1e-12)

    def test_quads(self):
        for order in range(1, 5):
            for layout, ordering in ((LayoutType.BY_VDIM, Ordering.BY_VDIM), (LayoutType.BY_NODES, Ordering.BY_NODES)):
                with self.subTest(order=order, layout=layout):
                    self.check(two_quads(order=order, layout=layout),
                               TWO_QUAD_POINTS, EntityType.QUADRILATERAL, TWO_QUAD_CELLS, order, ordering)

    def test_quads_with_boundary(self):
        description = two_quads(order=3, boundary=TWO_QUAD_BOUNDARY)
        self.check(description, TWO_QUAD_POINTS, EntityType.QUADRILATERAL, TWO_QUAD_CELLS, 3, Ordering.BY_VDIM)

    def test_tets(self):
        for order in (2, 4, 5):
            with self.subTest(order=order):
                self.check(two_tets(order=order), TWO_TET_POINTS, EntityType.TETRAHEDRON, TWO_TET_CELLS,
                           order, Ordering.BY_VDIM)

    def test_hexes(self):
        for order in (2, 3):
            with self.subTest(order=order):
                self.check(two_hexes(order=order, layout=LayoutType.BY_NODES), TWO_HEX_POINTS,
                           EntityType.HEXAHEDRON, TWO_HEX_CELLS, order, Ordering.BY_NODES)

    def test_entities_split_across_parts(self):
        order = 3
        edges = listed_edges(EntityType.QUADRILATERAL, TWO_QUAD_CELLS)
        description = MeshDescription(name="split")
        domain = description.add_domain("domain", 6, {
            EntityType.EDGE: edges,
            EntityType.QUADRILATERAL: TWO_QUAD_CELLS,
        })
        main = description.add_component("volume", 2)
        main.add_part(domain, {
            EntityType.VERTEX: 6,
            EntityType.QUADRILATERAL: PartEntities(ids=np.array([0], dtype=np.int32)),
        })
        main.add_part(domain, {
            EntityType.EDGE: len(edges),
            EntityType.QUADRILATERAL: PartEntities(ids=np.array([1], dtype=np.uint32)),
        })
        first = nodal_values(TWO_QUAD_POINTS, {EntityType.QUADRILATERAL: [TWO_QUAD_CELLS[0]]}, order)
        second = nodal_values(TWO_QUAD_POINTS, {
            EntityType.EDGE: edges,
            EntityType.QUADRILATERAL: [TWO_QUAD_CELLS[1]],
        }, order)[len(TWO_QUAD_POINTS):]
        description.set_coordinates(main, np.vstack([first, second]).ravel(), 2, order=order)

        self.check(description, TWO_QUAD_POINTS, EntityType.QUADRILATERAL, TWO_QUAD_CELLS, order, Ordering.BY_VDIM)

    def test_separate_domains(self):
        left = TWO_QUAD_POINTS[[0, 1, 4, 3]]
        right = left + [3.0, 0.0]
        description = MeshDescription(name="islands")
        main = description.add_component("volume", 2)
        for name in ("left", "right"):
            domain = description.add_domain(name, 4, {EntityType.QUADRILATERAL: [[0, 1, 2, 3]]})
            main.add_part(domain, {EntityType.VERTEX: 4, EntityType.QUADRILATERAL: 1})
        description.set_coordinates(main, np.vstack([left, right]).ravel(), 2)

        mesh = build_high_order_mesh(description)
        self.assertEqual(mesh.num_edges, 8)
        self.assertEqual(mesh.get_element_vertices(1), (4, 5, 6, 7))
        np.testing.assert_allclose(mesh.vertex_coordinates(), np.vstack([left, right]))


class TestDeterminism(unittest.TestCase):

    def test_repeated_conversions_agree(self):
        first = build_high_order_mesh(two_tets(order=4))
        second = build_high_order_mesh(two_tets(order=4))
        self.assertEqual(list(first.edge_table), list(second.edge_table))
        self.assertEqual(list(first.face_table), list(second.face_table))
        self.assertEqual(first.nodes.data.tobytes(), second.nodes.data.tobytes())

    def test_numbering_check_can_be_skipped(self):
        checked = build_high_order_mesh(two_hexes(order=3))
        with self.assertLogs('partmesh.convert.nodes', level='WARNING') as logs:
            unchecked = build_high_order_mesh(two_hexes(order=3), ConversionConfig(verify_numbering=False))
        self.assertIn('verification disabled', logs.output[0])
        np.testing.assert_array_equal(checked.nodes.data, unchecked.nodes.data)


class TestVisitOrder(unittest.TestCase):
    """Shared entities get one id whichever cell is visited first."""

    @staticmethod
    def edge_keys(mesh):
        return {edge_key(*mesh.get_edge_vertices(i)) for i in range(mesh.num_edges)}

    @staticmethod
    def face_keys(mesh):
        return {face_key(mesh.get_face_vertices(i)) for i in range(mesh.num_faces)}

    def test_reversed_quads(self):
        order = 3
        cells = TWO_QUAD_CELLS[::-1]
        mesh = build_high_order_mesh(make_description(
            TWO_QUAD_POINTS, EntityType.QUADRILATERAL, cells, order=order,
            edges=listed_edges(EntityType.QUADRILATERAL, cells),
        ))
        forward = build_high_order_mesh(two_quads(order=order))

        self.assertEqual(mesh.num_edges, 7)
        self.assertEqual(self.edge_keys(mesh), self.edge_keys(forward))
        ids0, _ = mesh.get_element_edges(0)
        ids1, _ = mesh.get_element_edges(1)
        self.assertEqual(len(set(ids0) & set(ids1)), 1)

        expected = reference_mesh(TWO_QUAD_POINTS, EntityType.QUADRILATERAL, cells, order)
        np.testing.assert_allclose(mesh.nodes.data, expected.nodes.data, atol=1e-12)

    def test_reversed_tets(self):
        order = 4
        cells = TWO_TET_CELLS[::-1]
        mesh = build_high_order_mesh(make_description(
            TWO_TET_POINTS, EntityType.TETRAHEDRON, cells, order=order,
            edges=listed_edges(EntityType.TETRAHEDRON, cells),
            faces=listed_faces(EntityType.TETRAHEDRON, cells),
        ))
        forward = build_high_order_mesh(two_tets(order=order))

        self.assertEqual(mesh.num_edges, 9)
        self.assertEqual(mesh.num_faces, 7)
        self.assertEqual(self.edge_keys(mesh), self.edge_keys(forward))
        self.assertEqual(self.face_keys(mesh), self.face_keys(forward))
        faces0, _ = mesh.get_element_faces(0)
        faces1, _ = mesh.get_element_faces(1)
        self.assertEqual(len(set(faces0) & set(faces1)), 1)
        edges0, _ = mesh.get_element_edges(0)
        edges1, _ = mesh.get_element_edges(1)
        self.assertEqual(len(set(edges0) & set(edges1)), 3)

        expected = reference_mesh(TWO_TET_POINTS, EntityType.TETRAHEDRON, cells, order)
        np.testing.assert_allclose(mesh.nodes.data, expected.nodes.data, atol=1e-12)


class TestStatusCodes(unittest.TestCase):
    """convert_mesh reports every failure as its integer code and no mesh."""

    def assertStatus(self, description, code):
        status, mesh = convert_mesh(description)
        self.assertEqual(status, int(code))
        self.assertIsNone(mesh)

    def test_missing_coordinates(self):
        description = MeshDescription()
        description.add_component("volume", 2)
        self.assertStatus(description, ErrorCode.MISSING_COORDINATES)

    def test_short_tag(self):
        self.assertStatus(two_quads(element_tag=[4]), ErrorCode.ELEMENT_TAG_LENGTH)

    def test_discontinuous_field_rejected_before_scatter(self):
        description = two_quads(order=2)
        description.components[0].coordinates.descriptor.field_type = FieldType.DISCONTINUOUS
        with mock.patch.object(NodeFieldTransfer, 'run') as run:
            self.assertStatus(description, ErrorCode.FIELD_TYPE)
        run.assert_not_called()

    def test_dof_count_mismatch(self):
        self.assertStatus(two_quads(order=2, with_edges=False), ErrorCode.DOF_COUNT_MISMATCH)

    def test_unsupported_node_entity(self):
        order = 4
        edges = listed_edges(EntityType.QUADRILATERAL, TWO_QUAD_CELLS)[1:]
        entities = {
            EntityType.EDGE: edges,
            EntityType.QUADRILATERAL: TWO_QUAD_CELLS,
            EntityType.TETRAHEDRON: [[0, 1, 3, 4]] * 3,
        }
        description = MeshDescription(name="mixed")
        domain = description.add_domain("domain", 6, entities)
        main = description.add_component("volume", 2)
        main.add_part(domain, {
            EntityType.VERTEX: 6, EntityType.EDGE: len(edges),
            EntityType.QUADRILATERAL: 2, EntityType.TETRAHEDRON: 3,
        })
        description.set_coordinates(main, nodal_values(TWO_QUAD_POINTS, entities, order).ravel(), 2, order=order)
        self.assertStatus(description, ErrorCode.UNSUPPORTED_NODE_ENTITY)

    def test_too_few_coordinate_components(self):
        description = make_description(TWO_QUAD_POINTS[:, :1], EntityType.QUADRILATERAL, TWO_QUAD_CELLS)
        self.assertStatus(description, ErrorCode.SPACE_DIMENSION)

    def test_component_dimension_out_of_range(self):
        description = two_quads()
        description.components[0].dimension = 4
        self.assertStatus(description, ErrorCode.INVALID_DIMENSION)

    def test_twisted_face_occurrence(self):
        description = two_hexes(order=2)
        quads = description.domains[0].entities[EntityType.QUADRILATERAL]
        a, b, c, d = quads[0]
        quads[0] = [a, c, b, d]
        self.assertStatus(description, ErrorCode.FACE_VERTEX_ORDER)

    def test_twisted_boundary_face(self):
        description = two_hexes(boundary=[(0, 1, 2, 3)])
        quads = description.domains[0].entities[EntityType.QUADRILATERAL]
        row = next(i for i, face in enumerate(quads) if face_key(face) == face_key((0, 1, 2, 3)))
        a, b, c, d = quads[row]
        quads[row] = [a, c, b, d]
        self.assertStatus(description, ErrorCode.FACE_VERTEX_ORDER)

    def test_failure_is_logged(self):
        with self.assertLogs('partmesh.convert.driver', level='ERROR') as logs:
            convert_mesh(two_quads(element_tag=[4]))
        self.assertIn('ELEMENT_TAG_LENGTH', logs.output[0])

    def test_build_raises_with_category(self):
        with self.assertRaises(ConversionError) as ctx:
            build_high_order_mesh(two_quads(element_tag=[4]))
        self.assertEqual(ctx.exception.category, ErrorCategory.UNSUPPORTED_ATTRIBUTE)
        self.assertIn('[4 ELEMENT_TAG_LENGTH]', str(ctx.exception))

    def test_codes_are_distinct(self):
        values = [int(code) for code in ErrorCode]
        self.assertEqual(len(values), len(set(values)))
        self.assertEqual(values, list(range(len(values))))
        for code in ErrorCode:
            if code is not ErrorCode.SUCCESS:
                self.assertIsInstance(code.category, ErrorCategory)


class TestPackage(unittest.TestCase):

    def test_version_matches_setup(self):
        self.assertEqual(partmesh.__version__, "0.1.0")


class TestDataCollection(unittest.TestCase):

    def test_success(self):
        collection = DataCollectionDescription("flow", two_quads(order=2))
        status, converted = convert_data_collection(collection)
        self.assertEqual(status, 0)
        self.assertEqual(converted.name, "flow")
        self.assertEqual(converted.mesh.num_edges, 7)
        self.assertEqual(converted.field_names, [])

    def test_fields_are_not_transferred(self):
        description = two_quads()
        pressure = description.components[0].coordinates
        collection = DataCollectionDescription("flow", description, [pressure])
        with self.assertLogs('partmesh.convert.driver', level='WARNING'):
            status, converted = convert_data_collection(collection)
        self.assertEqual(status, 0)
        self.assertEqual(converted.field_names, [])

    def test_failure(self):
        collection = DataCollectionDescription("flow", two_quads(element_tag=[1]))
        status, converted = convert_data_collection(collection)
        self.assertEqual(status, ErrorCode.ELEMENT_TAG_LENGTH)
        self.assertIsNone(converted)


if __name__ == '__main__':
    unittest.main()
