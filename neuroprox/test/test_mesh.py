####################################################################################################
# neuroprox/test/test_mesh.py
# Tests for the neuroprox library's triangle-mesh utilities.

import unittest, logging
import numpy      as np
import pyrsistent as pyr

from neuroprox.geometry import (to_mesh_data, mesh_edges, face_areas, mesh_metrics, merge_meshes,
                                random_surface_points)

class TestNeuroproxMesh(unittest.TestCase):

    def setUp(self):
        # a unit right triangle and a unit square (two triangles)
        self.tri = (np.array([[0,0,0], [1,0,0], [0,1,0]], dtype=float), np.array([[0,1,2]]))
        self.square = {'vertices': np.array([[0,0,1], [1,0,1], [1,1,1], [0,1,1]], dtype=float),
                       'faces':    np.array([[0,1,2], [0,2,3]])}

    def test_mesh_data(self):
        (v, f) = to_mesh_data(self.tri)
        self.assertEqual(v.shape, (3, 3))
        self.assertEqual(f.dtype, np.int64)
        (v, f) = to_mesh_data(self.square)
        self.assertEqual(f.shape, (2, 3))
        (v, f) = to_mesh_data(pyr.m(vert=self.square['vertices'], tri=self.square['faces'].T))
        self.assertEqual(f.shape, (2, 3))
        (v, f) = to_mesh_data(self.square['vertices'], self.square['faces'].astype(float))
        self.assertEqual(f.dtype, np.int64)
        with self.assertRaises(ValueError): to_mesh_data({'vertices': v})
        with self.assertRaises(ValueError): to_mesh_data(v, [[0, 1, 4]])
        with self.assertRaises(ValueError): to_mesh_data(v, [[0, 1, 1.5]])
        with self.assertRaises(ValueError): to_mesh_data(v, [[0, 1], [1, 2]])

    def test_metrics(self):
        logging.info('neuroprox: Testing mesh metrics...')
        m = mesh_metrics(self.tri)
        self.assertAlmostEqual(m['total_area'], 0.5)
        self.assertTrue(np.allclose(m['face_areas'], [0.5]))
        self.assertEqual(len(m['edges']), 3)
        self.assertAlmostEqual(m['min_edge_length'], 1)
        self.assertAlmostEqual(m['max_edge_length'], np.sqrt(2))
        self.assertAlmostEqual(m['mean_edge_length'], (2 + np.sqrt(2)) / 3)
        m = mesh_metrics(self.square)
        # the shared diagonal is only counted once
        self.assertEqual(mesh_edges(self.square['faces']).tolist(),
                         [[0,1], [0,2], [0,3], [1,2], [2,3]])
        self.assertEqual(len(m['edge_lengths']), 5)
        self.assertAlmostEqual(m['total_area'], 1)
        self.assertAlmostEqual(m['mean_face_area'], 0.5)
        self.assertAlmostEqual(m['min_face_area'], 0.5)
        self.assertAlmostEqual(m['max_face_area'], 0.5)
        self.assertTrue(np.allclose(face_areas(*to_mesh_data(self.square)), [0.5, 0.5]))
        # empty meshes
        m = mesh_metrics(np.zeros((0, 3)), np.zeros((0, 3), dtype=int))
        self.assertEqual(m['total_area'], 0)
        self.assertTrue(np.isnan(m['mean_edge_length']))

    def test_merge(self):
        logging.info('neuroprox: Testing mesh merging...')
        (v, f) = merge_meshes(self.tri, self.square, self.tri)
        self.assertEqual(v.shape, (10, 3))
        self.assertEqual(f.tolist(), [[0,1,2], [3,4,5], [3,5,6], [7,8,9]])
        self.assertTrue(np.array_equal(v[3:7], self.square['vertices']))
        self.assertAlmostEqual(mesh_metrics(v, f)['total_area'], 2)
        (v2, f2) = merge_meshes([self.tri, self.square, self.tri])
        self.assertTrue(np.array_equal(f, f2))
        with self.assertRaises(ValueError): merge_meshes(self.tri)
        with self.assertRaises(ValueError): merge_meshes()

    def test_random_points(self):
        logging.info('neuroprox: Testing random surface points...')
        (v, f) = merge_meshes(self.tri, self.square)
        (pts, fids) = random_surface_points(v, 2000, f, rng=1204)
        self.assertEqual(pts.shape, (2000, 3))
        self.assertEqual(fids.shape, (2000,))
        self.assertTrue(np.all((fids >= 0) & (fids < len(f))))
        # every point lies within its face
        for (p, k) in zip(pts, fids):
            (a, b, c) = v[f[k]]
            sub = [(a, b, p), (b, c, p), (c, a, p)]
            area = face_areas(np.array([x for s in sub for x in s]),
                              np.arange(9).reshape((3, 3)))
            self.assertAlmostEqual(np.sum(area), face_areas(v, f[[k]])[0])
        # faces are chosen in proportion to their area (the triangle has a third of the area)
        self.assertGreater(np.mean(fids == 0), 0.25)
        self.assertLess(np.mean(fids == 0), 0.42)
        # seeded generation is reproducible
        (pts2, _) = random_surface_points((v, f), 2000, rng=1204)
        self.assertTrue(np.array_equal(pts, pts2))
        self.assertEqual(random_surface_points(self.tri, 0)[0].shape, (0, 3))
        with self.assertRaises(ValueError): random_surface_points(self.tri, -1)
        degenerate = (np.zeros((3, 3)), np.array([[0, 1, 2]]))
        with self.assertRaises(ValueError): random_surface_points(degenerate, 10)
