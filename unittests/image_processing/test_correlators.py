"""
test_correlators
================

Tests the methods and classes contained in the correlators submodule of solaraspect.
"""

from unittest import TestCase
import numpy as np
import cv2
from solaraspect.image_processing import correlators


class TestCv2Correlator(TestCase):
    def test_cv2correlator(self):
        img = np.random.default_rng(3).standard_normal((30, 30))
        temp = img[20:27, 15:27]

        cor_surf = correlators.cv2_correlator_2d(img, temp, cv2.TM_CCOEFF_NORMED)

        # the valid surface is indexed by the upper left corner of the template
        np.testing.assert_array_equal(cor_surf.shape, [24, 19])
        np.testing.assert_array_equal(np.unravel_index(cor_surf.argmax(), cor_surf.shape), [20, 15])

        self.assertAlmostEqual(cor_surf.max(), 1, places=4)
        self.assertEqual(cor_surf.dtype, np.float64)

    def test_ccorr(self):
        img = np.zeros((10, 10), dtype=np.uint8)
        img[4, 6] = 2
        temp = np.ones((3, 3), dtype=np.float32)

        cor_surf = correlators.cv2_correlator_2d(img, temp)

        self.assertAlmostEqual(cor_surf.sum(), 18)
        self.assertAlmostEqual(cor_surf[2, 4], 2)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            correlators.cv2_correlator_2d(np.zeros((5, 5)), np.zeros((6, 3)))

        with self.assertRaises(ValueError):
            correlators.cv2_correlator_2d(np.zeros((5, 5, 2)), np.zeros((3, 3)))


if __name__ == '__main__':
    import unittest
    unittest.main()
