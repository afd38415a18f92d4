import unittest

import numpy as np
from numpy import testing
import pytest

from skcollision.coordinates import Coordinates
from skcollision.exceptions import GeometryError
from skcollision.sdf import DistanceField
from skcollision.sdf import DistanceFieldCache
from skcollision.sdf import signed_distance_transform
from skcollision.shapes import Box
from skcollision.shapes import Sphere


class TestDistanceField(unittest.TestCase):

    @classmethod
    def setup_class(cls):
        cls.resolution = 0.01
        cls.box = Box([0.2, 0.2, 0.2])
        cls.field = DistanceField.from_shape(
            cls.box, resolution=cls.resolution)
        cls.sphere = Sphere(0.1)
        cls.sphere_pose = Coordinates(pos=[0.5, 0.0, 0.0])
        cls.union = DistanceField.from_shapes(
            [cls.box, cls.sphere], [None, cls.sphere_pose],
            resolution=cls.resolution)

    def test_layout(self):
        field = self.field
        # 0.2 box + 2 * 4 voxels padding + 2
        testing.assert_array_equal(field.dims, [30, 30, 30])
        self.assertEqual(field.num_voxels, 30 ** 3)
        self.assertEqual(field.resolution, self.resolution)
        testing.assert_almost_equal(field.origin, [-0.145] * 3)
        testing.assert_almost_equal(field.bounds[1], [0.145] * 3)
        self.assertEqual(field.grid_points().shape, (30 ** 3, 3))

    def test_read_only(self):
        with self.assertRaises(ValueError):
            self.field.data[0, 0, 0] = 0.0
        with self.assertRaises(ValueError):
            self.field.gradients[0, 0, 0] = 0.0

    def test_signed_distance(self):
        points = np.array([[0.0, 0.0, 0.0],
                           [0.12, 0.0, 0.0],
                           [0.0, -0.13, 0.0]])
        dists, grads = self.field.signed_distance(points)
        self.assertLess(dists[0], -0.08)
        testing.assert_almost_equal(dists[1:], [0.02, 0.03], decimal=3)
        testing.assert_almost_equal(grads[1], [1.0, 0.0, 0.0], decimal=3)
        testing.assert_almost_equal(grads[2], [0.0, -1.0, 0.0], decimal=3)

    def test_surface_is_zero_level(self):
        points = self.box.surface_points(0.05)
        dists, _ = self.field.signed_distance(points)
        self.assertLess(np.max(np.abs(dists)), self.resolution)

    def test_out_of_bounds(self):
        points = np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
        testing.assert_array_equal(
            self.field.is_out_of_bounds(points), [True, False])
        dists, grads = self.field.signed_distance(points)
        self.assertAlmostEqual(dists[0], 0.9, delta=self.resolution)
        testing.assert_almost_equal(grads[0], [1.0, 0.0, 0.0])
        self.assertTrue(np.all(np.isfinite(dists)))

    def test_union(self):
        dists, _ = self.union.signed_distance(
            [[0.0, 0.0, 0.0], [0.5, 0.0, 0.0], [0.3, 0.0, 0.0]])
        self.assertLess(dists[0], 0.0)
        self.assertLess(dists[1], 0.0)
        self.assertAlmostEqual(dists[2], 0.1, delta=self.resolution)

    def test_geometry_error(self):
        with pytest.raises(GeometryError):
            DistanceField.from_shape(Box([0.0, 0.1, 0.1]))
        with pytest.raises(GeometryError):
            DistanceField.from_shape(self.box, resolution=-0.1)
        with pytest.raises(GeometryError):
            DistanceField.from_shape(self.box, resolution=float('nan'))
        with pytest.raises(GeometryError):
            DistanceField.from_shapes([])
        # a thin plate is missed by voxel centers
        with pytest.raises(GeometryError):
            DistanceField.from_shape(
                Box([0.001, 1.0, 1.0]), resolution=0.1, padding=0.0)

    def test_max_dims(self):
        field = DistanceField.from_shape(
            Box([1.0, 0.1, 0.1]), resolution=0.01, max_dims=32)
        self.assertTrue(np.all(field.dims <= 32))
        self.assertGreater(field.resolution, 0.01)

    def test_signed_distance_transform(self):
        occupancy = np.zeros((5, 5, 5), dtype=bool)
        occupancy[2, 2, 2] = True
        data = signed_distance_transform(occupancy, 0.1)
        self.assertAlmostEqual(data[2, 2, 2], -0.05)
        self.assertAlmostEqual(data[3, 2, 2], 0.05)
        self.assertAlmostEqual(data[4, 2, 2], 0.15)


class TestDistanceFieldCache(unittest.TestCase):

    def test_acquire_release(self):
        cache = DistanceFieldCache()
        box = Box([0.1, 0.1, 0.1])
        field_1, key_1 = cache.acquire([box], resolution=0.02)
        field_2, key_2 = cache.acquire([Box([0.1, 0.1, 0.1])],
                                       resolution=0.02)
        self.assertEqual(key_1, key_2)
        self.assertEqual((cache.hits, cache.misses), (1, 1))
        self.assertEqual(cache.owners(key_1), 2)
        # every owner gets its own field
        self.assertIsNot(field_1, field_2)
        self.assertIsNot(field_1.data, field_2.data)
        testing.assert_array_equal(field_1.data, field_2.data)

        _, key_3 = cache.acquire([box], [Coordinates(pos=[0.1, 0, 0])],
                                 resolution=0.02)
        self.assertNotEqual(key_1, key_3)
        self.assertEqual(len(cache), 2)

        cache.release(key_1)
        self.assertIn(key_1, cache)
        cache.release(key_2)
        self.assertNotIn(key_1, cache)
        self.assertEqual(cache.owners(key_1), 0)
        # releasing an unknown key is a no-op
        cache.release(key_1)
        self.assertEqual(len(cache), 1)

        cache.clear()
        self.assertEqual(len(cache), 0)

    def test_failed_build_is_not_cached(self):
        cache = DistanceFieldCache()
        with pytest.raises(GeometryError):
            cache.acquire([Sphere(0.0)], resolution=0.02)
        self.assertEqual(len(cache), 0)
