"""
test_local_maxima
=================

Tests the methods and classes contained in the local_maxima submodule of solaraspect.
"""

from unittest import TestCase
import numpy as np
from solaraspect.image_processing import local_maxima


class TestLocalMaxima(TestCase):
    def test_local_maxima(self):
        im = [[0, 1, 2, 20, 1],
              [5, 2, 1, 3, 1],
              [0, 1, 2, 10, 1],
              [1, 2, 10, -2, -5],
              [50, 2, -1, -2, 30]]

        # border pixels are never maxima
        desired = [[False, False, False, False, False],
                   [False, False, False, False, False],
                   [False, False, False, True, False],
                   [False, False, True, False, False],
                   [False, False, False, False, False]]

        np.testing.assert_array_equal(local_maxima(im), desired)

    def test_threshold(self):
        im = np.zeros((5, 5))
        im[1, 1] = 3
        im[3, 3] = 8

        np.testing.assert_array_equal(np.argwhere(local_maxima(im, 5)), [[3, 3]])

    def test_plateau(self):
        im = np.zeros((5, 5))
        im[2, 2] = im[2, 3] = 4

        self.assertFalse(local_maxima(im).any())

    def test_small(self):
        self.assertFalse(local_maxima(np.ones((2, 10))).any())


if __name__ == '__main__':
    import unittest
    unittest.main()
