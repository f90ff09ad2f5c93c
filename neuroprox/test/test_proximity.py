####################################################################################################
# neuroprox/test/test_proximity.py
# Tests for the neuroprox library's radial and cylindrical proximity queries.

import unittest, logging
import numpy     as np
import neuroprox as nprox

from neuroprox.geometry import (RadialProximity, CylindricalProximity, radial_proximate_points,
                                cylindrical_proximate_points, radial_proximate_points_split,
                                cylindrical_proximate_points_split)
from neuroprox.split    import WorkerPool

class TestNeuroproxProximity(unittest.TestCase):

    def setUp(self):
        rng = np.random.default_rng(1204)
        self.points = rng.uniform(-10, 10, size=(500, 3))
        self.queries = rng.uniform(-10, 10, size=(57, 3))
        self.cylinders = np.hstack([self.queries, self.queries + rng.normal(0, 4, size=(57, 3))])
        # include a couple of zero-length cylinders
        self.cylinders[[3, 40], 3:6] = self.cylinders[[3, 40], 0:3]

    def reference_radial(self, pts, qs, r):
        return [np.flatnonzero(np.sqrt(np.sum((pts - q)**2, axis=1)) < r) for q in qs]

    def assertSameResults(self, a, b):
        self.assertEqual(len(a), len(b))
        for (u,v) in zip(a.indices, b.indices):
            self.assertTrue(np.array_equal(u, v))
        if isinstance(a, CylindricalProximity):
            for (u,v) in zip(a.axial_distances, b.axial_distances):
                self.assertTrue(np.allclose(u, v, rtol=0, atol=1e-12))
            for (u,v) in zip(a.radial_distances, b.radial_distances):
                self.assertTrue(np.allclose(u, v, rtol=0, atol=1e-12))

    def test_radial(self):
        logging.info('neuroprox: Testing radial proximity...')
        pts = [(0,0,0), (1,0,0), (2,0,0)]
        for method in ['kdtree', 'brute']:
            res = radial_proximate_points(pts, [(0,0,0)], 1, method=method)
            self.assertIsInstance(res, RadialProximity)
            self.assertTrue(res.success)
            self.assertEqual(len(res), 1)
            self.assertEqual(res[0].tolist(), [0])
            # points exactly on the radius are excluded, those barely inside are not
            res = radial_proximate_points(pts, [(0,0,0), (1,0,0)], 1.0000001, method=method)
            self.assertEqual(res[0].tolist(), [0, 1])
            self.assertEqual(res[1].tolist(), [0, 1, 2])
            self.assertEqual(res.counts.tolist(), [2, 3])
        # both methods agree with each other and with a direct computation
        for r in [0.5, 2.0, 6.5]:
            ref = self.reference_radial(self.points, self.queries, r)
            kdt = radial_proximate_points(self.points, self.queries, r, method='kdtree')
            bru = radial_proximate_points(self.points, self.queries, r, method='brute')
            self.assertSameResults(kdt, bru)
            for (u,v) in zip(ref, kdt):
                self.assertTrue(np.array_equal(u, v))
            for u in kdt:
                self.assertTrue(np.all(np.diff(u) > 0))
        # (3 x n) matrices are also understood
        res = radial_proximate_points(self.points.T, self.queries.T, 3)
        self.assertSameResults(res, radial_proximate_points(self.points, self.queries, 3))
        with self.assertRaises(ValueError): radial_proximate_points(pts, pts, -1)
        with self.assertRaises(ValueError): radial_proximate_points(pts, pts, np.nan)
        with self.assertRaises(ValueError): radial_proximate_points(pts, pts, 1, method='octree')
        with self.assertRaises(ValueError): radial_proximate_points(np.zeros((4,4)), pts, 1)

    def test_radial_empty(self):
        logging.info('neuroprox: Testing radial proximity with empty inputs...')
        res = radial_proximate_points(self.points, np.zeros((0, 3)), 1)
        self.assertTrue(res.success)
        self.assertEqual(len(res), 0)
        res = radial_proximate_points(np.zeros((0, 3)), self.queries, 1)
        self.assertEqual(len(res), len(self.queries))
        self.assertTrue(all(len(u) == 0 for u in res))
        res = radial_proximate_points(self.points, self.points, 0)
        self.assertTrue(all(len(u) == 0 for u in res))
        res = radial_proximate_points_split(self.points, [], 1, {'num_sets': 3, 'silent': True})
        self.assertTrue(res.success)
        self.assertEqual(len(res), 0)

    def test_results(self):
        res = radial_proximate_points(self.points, self.queries, 4)
        with self.assertRaises(ValueError): res[0][...] = 0
        with self.assertRaises(TypeError): res.indices[0] = None
        # results own their arrays
        ii = np.array([3, 1, 2])
        res = RadialProximity([ii])
        ii[0] = 100
        self.assertEqual(res[0].tolist(), [3, 1, 2])
        with self.assertRaises(ValueError): CylindricalProximity([[0, 1]], [[0.5]], [[0.1, 0.2]])
        with self.assertRaises(ValueError): CylindricalProximity([[0, 1]], [], [])

    def test_cylindrical(self):
        logging.info('neuroprox: Testing cylindrical proximity...')
        cyl = [(0, 0, 0, 10, 0, 0)]
        pts = [(15, 0, 0),   # beyond the end cap
               (5, 0.5, 0),  # inside
               (0, 0.5, 0),  # on the start cap
               (10, 0, 0),   # on the end cap
               (-0.1, 0, 0), # before the start cap
               (5, 1, 0),    # exactly on the radius
               (7, 0, -0.9)] # inside
        for pre in [True, False]:
            res = cylindrical_proximate_points(pts, cyl, 1, use_pre_exclusion=pre)
            self.assertIsInstance(res, CylindricalProximity)
            self.assertTrue(res.success)
            self.assertEqual(res[0].tolist(), [1, 2, 3, 6])
            self.assertTrue(np.allclose(res.axial_distances[0], [5, 0, 10, 7]))
            self.assertTrue(np.allclose(res.radial_distances[0], [0.5, 0.5, 0, 0.9]))
        # cylinders given as (6 x n) matrices
        res = cylindrical_proximate_points(pts, np.transpose(cyl * 7), 1)
        self.assertEqual(len(res), 7)
        self.assertEqual(res[6].tolist(), [1, 2, 3, 6])
        # zero-length cylinders behave as spheres
        res = cylindrical_proximate_points([(1, 1, 1.5), (1, 1, 2.5), (1.2, 1, 1)],
                                           [(1, 1, 1, 1, 1, 1)], 1)
        self.assertEqual(res[0].tolist(), [0, 2])
        self.assertTrue(np.array_equal(res.axial_distances[0], [0, 0]))
        self.assertTrue(np.allclose(res.radial_distances[0], [0.5, 0.2]))
        self.assertTrue(all(np.all(np.isfinite(u)) for u in res.radial_distances))
        with self.assertRaises(ValueError): cylindrical_proximate_points(pts, [(0, 0, 0)], 1)

    def test_pre_exclusion(self):
        logging.info('neuroprox: Testing cylindrical pre-exclusion...')
        for r in [0.5, 2.0, 5.0]:
            a = cylindrical_proximate_points(self.points, self.cylinders, r, use_pre_exclusion=True)
            b = cylindrical_proximate_points(self.points, self.cylinders, r, use_pre_exclusion=False)
            self.assertSameResults(a, b)
            self.assertGreater(np.sum(a.counts), 0)
            for (ax, rd, c) in zip(a.axial_distances, a.radial_distances, self.cylinders):
                self.assertTrue(np.all(ax >= 0))
                self.assertTrue(np.all(ax <= np.sqrt(np.sum((c[3:] - c[:3])**2)) + 1e-9))
                self.assertTrue(np.all(rd <= r))

    def test_cylindrical_empty(self):
        res = cylindrical_proximate_points(self.points, np.zeros((0, 6)), 1)
        self.assertEqual(len(res), 0)
        res = cylindrical_proximate_points(np.zeros((0, 3)), self.cylinders, 1)
        self.assertEqual(len(res), len(self.cylinders))
        self.assertTrue(all(len(u) == 0 for u in res.radial_distances))
        res = cylindrical_proximate_points_split(self.points, [], 1, {'num_points': 5})
        self.assertTrue(res.success)
        self.assertEqual(len(res), 0)

    def test_split_queries(self):
        logging.info('neuroprox: Testing split proximity queries...')
        rad = radial_proximate_points(self.points, self.queries, 3)
        cyl = cylindrical_proximate_points(self.points, self.cylinders, 2)
        with WorkerPool() as pool:
            for cfg in [{'num_sets': 4, 'threads': 1}, {'num_sets': 4, 'threads': 3},
                        {'num_points': 10, 'threads': 2}, {'threads': 2}, None]:
                res = radial_proximate_points_split(self.points, self.queries, 3, cfg,
                                                    pool=pool, silent=True)
                self.assertTrue(res.success)
                self.assertSameResults(res, rad)
                res = cylindrical_proximate_points_split(self.points, self.cylinders, 2, cfg,
                                                         pool=pool, silent=True)
                self.assertTrue(res.success)
                self.assertSameResults(res, cyl)
        # an invalid split configuration is reported through success
        bad = {'num_sets': 2, 'num_points': 2, 'silent': True}
        with self.assertLogs(level='ERROR'):
            res = radial_proximate_points_split(self.points, self.queries, 3, bad)
        self.assertFalse(res.success)
        self.assertEqual(len(res), len(self.queries))
        self.assertTrue(all(len(u) == 0 for u in res))
        with self.assertLogs(level='ERROR'):
            res = cylindrical_proximate_points_split(self.points, self.cylinders, 2, bad)
        self.assertFalse(res.success)
        self.assertEqual(len(res), len(self.cylinders))
        self.assertTrue(all(len(u) == 0 for u in res.axial_distances))
        # the top-level namespace exposes the queries
        self.assertIs(nprox.radial_proximate_points_split, radial_proximate_points_split)
