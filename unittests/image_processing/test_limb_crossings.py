"""
test_limb_crossings
===================

Tests the methods and classes contained in the limb_crossings submodule of solaraspect.
"""

from unittest import TestCase
import numpy as np
from solaraspect.image_processing.limb_crossings import (LimbCrossingDetector, LimbCrossingDetectorOptions,
                                                         LimbCrossingStatus, Edge, EdgeDirection)


def chord_from(*runs):
    return np.concatenate([np.full(length, value) for length, value in runs]).astype(np.uint8)


class TestLimbCrossingDetector(TestCase):
    def setUp(self):
        self.detector = LimbCrossingDetector()

    def test_thresholds(self):
        lower, upper = self.detector.thresholds(10, 200)

        self.assertAlmostEqual(lower, 57.5)
        self.assertAlmostEqual(upper, 152.5)

    def test_find_edges(self):
        edges = LimbCrossingDetector.find_edges(np.array([0, 0, 100, 100, 0]), 50)

        self.assertEqual(edges, [Edge(2, EdgeDirection.RISING), Edge(3, EdgeDirection.FALLING)])

        # the first sample is never an edge
        self.assertEqual(LimbCrossingDetector.find_edges(np.array([100, 100, 0]), 50),
                         [Edge(1, EdgeDirection.FALLING)])

    def test_prune_edges(self):
        edges = [Edge(10, EdgeDirection.RISING), Edge(60, EdgeDirection.FALLING), Edge(70, EdgeDirection.RISING),
                 Edge(150, EdgeDirection.FALLING)]

        self.assertEqual(self.detector.prune_edges(edges), [edges[0], edges[3]])

    def test_full_chord(self):
        result = self.detector(chord_from((50, 10), (100, 200), (50, 10)), 10, 200)

        self.assertEqual(result.status, LimbCrossingStatus.SUCCESS)
        np.testing.assert_allclose(result.crossings, [50 - 66.5 / 57, 149 + 66.5 / 57])
        self.assertAlmostEqual(result.crossings.mean(), 99.5)
        np.testing.assert_array_equal(result.virtual, [False, False])
        np.testing.assert_allclose(result.slopes, [57, 57])

    def test_gap_pruned(self):
        chord = chord_from((50, 10), (40, 200), (5, 10), (55, 200), (50, 10))

        result = self.detector(chord, 10, 200)

        self.assertEqual(result.status, LimbCrossingStatus.SUCCESS)
        self.assertAlmostEqual(result.crossings.mean(), 99.5)

    def test_disk_off_start(self):
        result = self.detector(chord_from((100, 200), (100, 10)), 10, 200)

        self.assertEqual(result.status, LimbCrossingStatus.SUCCESS)
        np.testing.assert_allclose(result.crossings, [-1, 99 + 66.5 / 57])
        np.testing.assert_array_equal(result.virtual, [True, False])
        self.assertEqual(result.slopes.size, 1)

    def test_disk_off_end(self):
        result = self.detector(chord_from((100, 10), (100, 200)), 10, 200)

        self.assertEqual(result.status, LimbCrossingStatus.SUCCESS)
        np.testing.assert_allclose(result.crossings, [100 - 66.5 / 57, 200])
        np.testing.assert_array_equal(result.virtual, [False, True])

    def test_lone_edge_far_from_boundary(self):
        detector = LimbCrossingDetector(LimbCrossingDetectorOptions(solar_radius=20))

        result = detector(chord_from((100, 200), (100, 10)), 10, 200)

        self.assertEqual(result.status, LimbCrossingStatus.NO_EDGE)

    def test_no_disk(self):
        result = self.detector(np.full(100, 10, dtype=np.uint8), 10, 200)

        self.assertEqual(result.status, LimbCrossingStatus.NO_EDGE)
        self.assertEqual(result.crossings.size, 0)

    def test_refine_edge(self):
        with self.subTest(case='success'):
            status, position, slope = self.detector.refine_edge(np.array([0., 10, 20, 30, 40]), 2, 15)

            self.assertEqual(status, LimbCrossingStatus.SUCCESS)
            self.assertAlmostEqual(position, 1.5)
            self.assertAlmostEqual(slope, 10)

        with self.subTest(case='out of window'):
            status, _, __ = self.detector.refine_edge(np.array([100., 101, 102, 103, 104]), 2, 0)

            self.assertEqual(status, LimbCrossingStatus.OUT_OF_WINDOW)

        with self.subTest(case='flat'):
            status, position, slope = self.detector.refine_edge(np.full(5, 100.), 2, 50)

            self.assertEqual(status, LimbCrossingStatus.NON_FINITE)
            self.assertTrue(np.isnan(position))
            self.assertEqual(slope, 0)

        with self.subTest(case='flat integer chord'):
            status, _, __ = self.detector.refine_edge(np.full(5, 100, dtype=np.uint8), 2, 50)

            self.assertEqual(status, LimbCrossingStatus.NON_FINITE)

        with self.subTest(case='clamped window'):
            status, position, _ = self.detector.refine_edge(np.array([0., 10, 20, 30, 40]), 4, 35)

            self.assertEqual(status, LimbCrossingStatus.SUCCESS)
            self.assertAlmostEqual(position, 3.5)


if __name__ == '__main__':
    import unittest
    unittest.main()
