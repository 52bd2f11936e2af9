#!/usr/bin/env python
"""
Test suite for the node coordinate transfer.

These tests drive the transfer step by step: component selection, topology
construction, coordinate validation, finalization and then the scatter pass.
"""

import os
import sys
import unittest
from unittest import mock

import numpy as np

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from partmesh.core.config import ConversionConfig
from partmesh.core.entities import EntityType
from partmesh.core.errors import ConversionError, ErrorCategory, ErrorCode, UnsupportedBasisError
from partmesh.convert.nodes import NodeFieldTransfer, validate_coordinate_field
from partmesh.convert.topology import TopologyBuilder, select_components
from partmesh.mesh.high_order import Ordering
from partmesh.source.description import (
    BasisType,
    FieldDescriptorType,
    FieldType,
    LayoutType,
    PartEntities,
)

from mesh_fixtures import two_hexes, two_quads, two_tets


def prepare(description, config=None):
    """Run everything up to, but not including, the scatter pass."""
    selection = select_components(description)
    builder = TopologyBuilder(selection, config)
    mesh = builder.build()
    layout = validate_coordinate_field(selection.coordinates)
    builder.finalize(mesh, layout.order, layout.ordering)
    return NodeFieldTransfer(mesh, selection, layout, config)


class TestCoordinateValidation(unittest.TestCase):
    """Only continuous fixed-order closed Gauss-Lobatto double fields pass."""

    def assertRejected(self, description, code):
        coords = select_components(description).coordinates
        with self.assertRaises(UnsupportedBasisError) as ctx:
            validate_coordinate_field(coords)
        self.assertEqual(ctx.exception.code, code)
        self.assertEqual(ctx.exception.category, ErrorCategory.UNSUPPORTED_BASIS)

    def test_layout(self):
        layout = validate_coordinate_field(select_components(two_quads(order=3)).coordinates)
        self.assertEqual(layout.order, 3)
        self.assertEqual(layout.num_dofs, 6 + 7 * 2 + 2 * 4)
        self.assertEqual(layout.ordering, Ordering.BY_VDIM)
        self.assertEqual(layout.entity_stride, 2)
        self.assertEqual(layout.component_stride, 1)

    def test_blocked_layout(self):
        description = two_quads(order=2, layout=LayoutType.BY_NODES)
        layout = validate_coordinate_field(select_components(description).coordinates)
        self.assertEqual(layout.ordering, Ordering.BY_NODES)
        self.assertEqual(layout.entity_stride, 1)
        self.assertEqual(layout.component_stride, 15)
        np.testing.assert_array_equal(layout.source_indices(np.array([4])), [[4, 19]])

    def test_single_precision(self):
        description = two_quads()
        coords = description.components[0].coordinates
        coords.data = coords.data.astype(np.float32)
        coords.scalar_type = coords.scalar_type.from_dtype(np.float32)
        self.assertRejected(description, ErrorCode.SCALAR_TYPE)

    def test_variable_order(self):
        description = two_quads()
        description.components[0].coordinates.descriptor.descriptor_type = FieldDescriptorType.VARIABLE_ORDER
        self.assertRejected(description, ErrorCode.DESCRIPTOR_TYPE)

    def test_discontinuous(self):
        description = two_quads()
        description.components[0].coordinates.descriptor.field_type = FieldType.DISCONTINUOUS
        self.assertRejected(description, ErrorCode.FIELD_TYPE)

    def test_other_basis(self):
        for basis in (BasisType.NODAL_GAUSS_OPEN, BasisType.NODAL_UNIFORM):
            description = two_quads()
            description.components[0].coordinates.descriptor.basis_type = basis
            self.assertRejected(description, ErrorCode.BASIS_TYPE)

    def test_order_zero(self):
        description = two_quads()
        description.components[0].coordinates.descriptor.order = 0
        self.assertRejected(description, ErrorCode.INVALID_ORDER)

    def test_short_buffer(self):
        description = two_quads(order=2)
        coords = description.components[0].coordinates
        coords.data = coords.data[:-1]
        with self.assertRaises(ConversionError) as ctx:
            validate_coordinate_field(coords)
        self.assertEqual(ctx.exception.code, ErrorCode.FIELD_DATA_LENGTH)


class TestCanonicalTables(unittest.TestCase):
    """Rebuilding the edge and face tables from the finalized mesh."""

    def test_rebuilt_ids_match_mesh(self):
        transfer = prepare(two_tets(order=3))
        edges, faces = transfer.canonical_tables()
        mesh = transfer.mesh
        self.assertIsNot(edges, mesh.edge_table)
        self.assertEqual(list(edges), [mesh.get_edge_vertices(i) for i in range(mesh.num_edges)])
        self.assertEqual(len(faces), mesh.num_faces)

    def test_no_tables_without_interior_dofs(self):
        edges, faces = prepare(two_quads(order=1)).canonical_tables()
        self.assertIsNone(edges)
        self.assertIsNone(faces)

    def test_mesh_tables_when_not_verifying(self):
        transfer = prepare(two_quads(order=2), ConversionConfig(verify_numbering=False))
        edges, faces = transfer.canonical_tables()
        self.assertIs(edges, transfer.mesh.edge_table)
        self.assertIsNone(faces)

    def test_edge_numbering_mismatch(self):
        transfer = prepare(two_quads(order=2))
        with mock.patch.object(transfer.mesh, 'get_edge_vertices', return_value=(0, 1)):
            with self.assertRaises(ConversionError) as ctx:
                transfer.canonical_tables()
        self.assertEqual(ctx.exception.code, ErrorCode.EDGE_NUMBERING)
        self.assertEqual(ctx.exception.category, ErrorCategory.INTERNAL_CONSISTENCY)

    def test_face_numbering_mismatch(self):
        transfer = prepare(two_tets(order=3))
        with mock.patch.object(transfer.mesh, 'get_face_vertices', return_value=(1, 2, 3)):
            with self.assertRaises(ConversionError) as ctx:
                transfer.canonical_tables()
        self.assertEqual(ctx.exception.code, ErrorCode.FACE_NUMBERING)


class TestScatter(unittest.TestCase):
    """The scatter pass and its bookkeeping."""

    def test_summary_two_quads(self):
        summary = prepare(two_quads(order=3)).run()
        self.assertEqual(summary.dofs_transferred, 6 + 7 * 2 + 2 * 4)
        self.assertEqual(summary.edges_resolved, 7)
        self.assertEqual(summary.faces_resolved, 0)
        # every edge is listed against its canonical direction
        self.assertEqual(summary.reoriented, 7)

    def test_summary_two_tets(self):
        summary = prepare(two_tets(order=4)).run()
        self.assertEqual(summary.dofs_transferred, 5 + 9 * 3 + 7 * 3 + 2)
        self.assertEqual(summary.edges_resolved, 9)
        self.assertEqual(summary.faces_resolved, 7)
        self.assertEqual(summary.reoriented, 16)

    def test_reversed_edge_dofs(self):
        transfer = prepare(two_quads(order=3))
        transfer.run()
        mesh = transfer.mesh
        # edge (1, 4) runs from (1, 0) to (1, 1); its first interior node is nearer (1, 0)
        first, second = mesh.space.edge_interior_dofs(1)
        self.assertEqual(mesh.get_edge_vertices(1), (1, 4))
        self.assertLess(mesh.nodes.get_values(first)[1], mesh.nodes.get_values(second)[1])
        np.testing.assert_allclose(mesh.nodes.get_values(first)[0], 1.0)

    def test_vertex_positions(self):
        transfer = prepare(two_quads(order=2))
        transfer.run()
        np.testing.assert_allclose(
            transfer.mesh.vertex_coordinates(),
            [[0, 0], [1, 0], [2, 0], [0, 1], [1, 1], [2, 1]],
        )

    def test_dof_count_mismatch(self):
        transfer = prepare(two_quads(order=2, with_edges=False))
        with self.assertRaises(ConversionError) as ctx:
            transfer.run()
        self.assertEqual(ctx.exception.code, ErrorCode.DOF_COUNT_MISMATCH)

    def test_offset_mismatch(self):
        transfer = prepare(two_quads(order=2))
        transfer.space.dofs_per_entity[EntityType.EDGE] = 0
        with self.assertRaises(ConversionError) as ctx:
            transfer.run()
        self.assertEqual(ctx.exception.code, ErrorCode.DOF_OFFSET_MISMATCH)

    def test_node_id_type(self):
        description = two_quads(order=2)
        part = description.components[0].parts[0]
        part.entities[EntityType.EDGE] = PartEntities(ids=np.arange(7, dtype=np.int64))
        with self.assertRaises(ConversionError) as ctx:
            prepare(description).run()
        self.assertEqual(ctx.exception.code, ErrorCode.NODE_ID_TYPE)

    def test_node_orientation(self):
        description = two_quads(order=2)
        part = description.components[0].parts[0]
        part.entities[EntityType.EDGE] = PartEntities(count=7, orientations=np.zeros(7))
        with self.assertRaises(ConversionError) as ctx:
            prepare(description).run()
        self.assertEqual(ctx.exception.code, ErrorCode.NODE_ORIENTATION)

    def test_explicit_edge_ids(self):
        description = two_quads(order=2)
        part = description.components[0].parts[0]
        part.entities[EntityType.EDGE] = PartEntities(ids=np.arange(7, dtype=np.int32))
        self.assertEqual(prepare(description).run().edges_resolved, 7)

    def test_unknown_edge(self):
        description = two_quads(order=2)
        description.domains[0].entities[EntityType.EDGE][0] = [0, 4]
        with self.assertRaises(ConversionError) as ctx:
            prepare(description).run()
        self.assertEqual(ctx.exception.code, ErrorCode.EDGE_NOT_FOUND)

    def test_unknown_triangle(self):
        description = two_tets(order=3)
        description.domains[0].entities[EntityType.TRIANGLE][0] = [0, 1, 4]
        with self.assertRaises(ConversionError) as ctx:
            prepare(description).run()
        self.assertEqual(ctx.exception.code, ErrorCode.TRIANGLE_NOT_FOUND)

    def test_unknown_quadrilateral(self):
        description = two_hexes(order=2)
        description.domains[0].entities[EntityType.QUADRILATERAL][0] = [0, 8, 10, 4]
        with self.assertRaises(ConversionError) as ctx:
            prepare(description).run()
        self.assertEqual(ctx.exception.code, ErrorCode.QUADRILATERAL_NOT_FOUND)

    def test_requires_node_field(self):
        selection = select_components(two_quads())
        mesh = TopologyBuilder(selection).build()
        layout = validate_coordinate_field(selection.coordinates)
        with self.assertRaises(RuntimeError):
            NodeFieldTransfer(mesh, selection, layout)


if __name__ == '__main__':
    unittest.main()
