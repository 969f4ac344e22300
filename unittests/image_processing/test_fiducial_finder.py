"""
test_fiducial_finder
====================

Tests the methods and classes contained in the fiducial_finder submodule of solaraspect.
"""

from unittest import TestCase
import numpy as np
from solaraspect.image_processing.fiducial_finder import FiducialFinder, FiducialFinderOptions
from solaraspect.image_processing.intensity_range import percentile_min_max
from solaraspect.image import RegionOfInterest
from solaraspect.simulation import render_solar_frame, fiducial_pixel_positions


class TestFiducialFinder(TestCase):
    @classmethod
    def setUpClass(cls):
        center = np.array([330.7, 250.4])
        ids = [(row, col) for row in range(-1, 3) for col in range(-1, 2)]

        cls.fiducials = fiducial_pixel_positions(center - [9.4, 25], 15.6, ids)
        cls.frame = render_solar_frame((480, 640), center, 120, fiducials=cls.fiducials, seed=3)
        cls.frame_max = percentile_min_max(cls.frame).maximum
        cls.region = RegionOfInterest(100, 180, 300, 300)

    def test_find_fiducials(self):
        result = FiducialFinder()(self.frame, self.region, self.frame_max)

        self.assertEqual(result.centroids.shape, (12, 2))
        self.assertTrue((result.peak_sigma > 5).all())

        for expected in self.fiducials:
            distance = np.linalg.norm(result.centroids - expected, axis=-1)
            self.assertLess(distance.min(), 0.75)

    def test_max_fiducials(self):
        result = FiducialFinder(FiducialFinderOptions(max_fiducials=5))(self.frame, self.region, self.frame_max)

        self.assertEqual(result.centroids.shape, (5, 2))

    def test_no_fiducials(self):
        frame = render_solar_frame((480, 640), [330.7, 250.4], 120, seed=4)

        result = FiducialFinder(FiducialFinderOptions(threshold=50))(frame, self.region, self.frame_max)

        self.assertEqual(result.centroids.shape, (0, 2))

    def test_region_smaller_than_kernel(self):
        result = FiducialFinder()(self.frame, RegionOfInterest(200, 300, 10, 10), self.frame_max)

        self.assertEqual(result.centroids.shape, (0, 2))
        self.assertEqual(result.peak_sigma.size, 0)

    def test_select_peaks(self):
        correlation = np.zeros((60, 60))
        correlation[10, 10] = 5
        correlation[20, 20] = 8
        correlation[50, 50] = 3

        self.assertEqual(FiducialFinder().select_peaks(correlation, 1), [(20, 20), (50, 50)])

        finder = FiducialFinder(FiducialFinderOptions(max_fiducials=1))
        self.assertEqual(finder.select_peaks(correlation, 1), [(20, 20)])

    def test_centroid(self):
        correlation = np.zeros((30, 30))
        correlation[10, 10] = 4
        correlation[10, 11] = 4
        correlation[12, 14] = 0.5

        row, col = FiducialFinder().centroid(correlation, (10, 10), 1)

        self.assertAlmostEqual(row, 10)
        self.assertAlmostEqual(col, 10.5)


if __name__ == '__main__':
    import unittest
    unittest.main()
