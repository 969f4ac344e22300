"""
test_aspect
===========

Tests the Aspect class, which drives the full pipeline, on synthetic frames with a known disk and fiducial lattice.


Test Cases
__________
"""

from unittest import TestCase

import numpy as np

from solaraspect import Aspect, AspectOptions, AspectCode, AspectFloat, AspectInt, AspectStateError, RegionOfInterest
from solaraspect.fiducials import FiducialID
from solaraspect.simulation import render_solar_frame, fiducial_pixel_positions, lattice_mapping


SHAPE = (480, 640)
CENTER = np.array([330.7, 250.4])
RADIUS = 120
SPACING = 15.6
ORIGIN = CENTER - [9.4, 25]
IDS = [(row, col) for row in range(-1, 3) for col in range(-1, 2)]


def make_aspect() -> Aspect:
    return Aspect(AspectOptions(solar_radius=RADIUS))


class AspectTestCase(TestCase):
    @classmethod
    def setUpClass(cls):
        cls.fiducials = fiducial_pixel_positions(ORIGIN, SPACING, IDS)
        cls.frame = render_solar_frame(SHAPE, CENTER, RADIUS, fiducials=cls.fiducials, seed=10)
        cls.mapping = lattice_mapping(ORIGIN, SPACING)

    def assertState(self, accessor, code):
        with self.assertRaises(AspectStateError) as context:
            accessor()

        self.assertEqual(context.exception.code, code)


class TestPipeline(AspectTestCase):
    @classmethod
    def setUpClass(cls):
        super().setUpClass()

        cls.aspect = make_aspect()
        cls.aspect.load_frame(cls.frame)
        cls.state = cls.aspect.run()

    def test_state(self):
        self.assertEqual(self.state, AspectCode.NO_ERROR)
        self.assertEqual(self.aspect.state, AspectCode.NO_ERROR)

    def test_min_max(self):
        minimum, maximum = self.aspect.get_pixel_min_max()

        self.assertLessEqual(abs(minimum - 10), 3)
        self.assertLessEqual(abs(maximum - 200), 3)

    def test_center(self):
        np.testing.assert_allclose(self.aspect.get_pixel_center(), CENTER, atol=0.25)
        self.assertTrue((self.aspect.get_pixel_error() < 1).all())

        crossings = self.aspect.get_pixel_crossings()
        self.assertGreaterEqual(crossings.shape[0], 4)

    def test_roi(self):
        self.assertEqual(self.aspect.get_roi(), RegionOfInterest(100, 180, 300, 300))

    def test_fiducials(self):
        pixels = self.aspect.get_pixel_fiducials()

        self.assertEqual(pixels.shape, (12, 2))

        ids = self.aspect.get_fiducial_ids()

        self.assertEqual(sorted(ids), sorted(FiducialID(row, col) for row, col in IDS))

        for pixel, fid in zip(pixels, ids):
            expected = fiducial_pixel_positions(ORIGIN, SPACING, [(fid.row, fid.col)])[0]
            np.testing.assert_allclose(pixel, expected, atol=0.75)

        row_pairs, col_pairs = self.aspect.get_fiducial_pairs()
        self.assertEqual(len(row_pairs), 9)
        self.assertEqual(len(col_pairs), 8)

    def test_mapping(self):
        x_intercept, x_slope, y_intercept, y_slope = self.aspect.get_mapping()

        self.assertAlmostEqual(x_slope, -90 / SPACING, delta=0.05)
        self.assertAlmostEqual(y_slope, 90 / SPACING, delta=0.05)

        np.testing.assert_allclose(self.aspect.get_screen_center(), self.mapping.pixel_to_screen(CENTER), atol=5)

    def test_screen_fiducials(self):
        screen = self.aspect.get_screen_fiducials()
        expected = [self.mapping.pixel_to_screen(pixel) for pixel in self.aspect.get_pixel_fiducials()]

        np.testing.assert_allclose(screen, expected, atol=5)

    def test_conversions(self):
        pixels = np.array([[0, 0], [320, 240], [639, 479]], dtype=np.float64)

        np.testing.assert_allclose(self.aspect.screen_to_pixel(self.aspect.pixel_to_screen(pixels)), pixels)

    def test_report_focus(self):
        with self.assertLogs('solaraspect.aspect', level='INFO'):
            slopes = self.aspect.report_focus()

        self.assertGreaterEqual(slopes.size, 4)
        self.assertTrue((slopes > 0).all())
        self.assertTrue((np.diff(slopes) <= 0).all())


class TestTracking(AspectTestCase):
    def test_tracks_after_success(self):
        aspect = make_aspect()
        aspect.load_frame(self.frame)

        with self.assertLogs('solaraspect.aspect', level='DEBUG') as logs:
            self.assertEqual(aspect.run(), AspectCode.NO_ERROR)
        self.assertTrue(any('(search)' in line for line in logs.output))

        aspect.load_frame(self.frame)

        with self.assertLogs('solaraspect.aspect', level='DEBUG') as logs:
            self.assertEqual(aspect.run(), AspectCode.NO_ERROR)
        self.assertTrue(any('(tracking)' in line for line in logs.output))

        np.testing.assert_allclose(aspect.get_pixel_center(), CENTER, atol=0.25)

    def test_searches_after_center_failure(self):
        aspect = make_aspect()
        aspect.load_frame(self.frame)
        aspect.run()

        ramp = np.tile(np.linspace(0, 255, SHAPE[1]).astype(np.uint8), (SHAPE[0], 1))
        aspect.load_frame(ramp)

        self.assertEqual(aspect.run(), AspectCode.NO_LIMB_CROSSINGS)

        aspect.load_frame(self.frame)

        with self.assertLogs('solaraspect.aspect', level='DEBUG') as logs:
            self.assertEqual(aspect.run(), AspectCode.NO_ERROR)
        self.assertTrue(any('(search)' in line for line in logs.output))


class TestFiducialRun(AspectTestCase):
    def test_fiducial_run(self):
        aspect = make_aspect()
        aspect.load_frame(self.frame)

        self.assertEqual(aspect.fiducial_run(), AspectCode.NO_ERROR)

        self.assertEqual(aspect.get_roi(), RegionOfInterest(0, 0, SHAPE[0], SHAPE[1]))
        self.assertEqual(aspect.get_pixel_fiducials().shape, (12, 2))

        x_intercept, x_slope, y_intercept, y_slope = aspect.get_mapping()
        self.assertAlmostEqual(x_slope, -90 / SPACING, delta=0.05)
        self.assertAlmostEqual(y_slope, 90 / SPACING, delta=0.05)

        # no center was searched for in this frame
        self.assertState(aspect.get_pixel_center, AspectCode.STALE_DATA)
        self.assertState(aspect.get_pixel_crossings, AspectCode.STALE_DATA)
        self.assertState(aspect.get_screen_center, AspectCode.STALE_DATA)


class TestFailures(AspectTestCase):
    def test_stale_before_run(self):
        aspect = make_aspect()

        self.assertEqual(aspect.state, AspectCode.STALE_DATA)
        self.assertState(aspect.get_pixel_min_max, AspectCode.STALE_DATA)

        self.assertEqual(aspect.load_frame(self.frame), AspectCode.NO_ERROR)

        self.assertState(aspect.get_pixel_min_max, AspectCode.STALE_DATA)
        self.assertState(aspect.get_mapping, AspectCode.STALE_DATA)

    def test_new_frame_clears_products(self):
        aspect = make_aspect()
        aspect.load_frame(self.frame)
        aspect.run()

        aspect.load_frame(self.frame)

        self.assertState(aspect.get_pixel_center, AspectCode.STALE_DATA)

    def test_empty_frame(self):
        aspect = make_aspect()

        self.assertEqual(aspect.load_frame(np.zeros((0, 10), dtype=np.uint8)), AspectCode.FRAME_EMPTY)
        self.assertEqual(aspect.run(), AspectCode.FRAME_EMPTY)
        self.assertState(aspect.get_pixel_min_max, AspectCode.FRAME_EMPTY)

        self.assertEqual(aspect.load_frame(None), AspectCode.FRAME_EMPTY)
        self.assertEqual(aspect.fiducial_run(), AspectCode.FRAME_EMPTY)

    def test_not_2d(self):
        with self.assertRaises(ValueError):
            make_aspect().load_frame(np.zeros((3, 4, 5), dtype=np.uint8))

    def test_min_max_bad(self):
        aspect = make_aspect()
        aspect.load_frame(np.full(SHAPE, 80, dtype=np.uint8))

        self.assertEqual(aspect.run(), AspectCode.MIN_MAX_BAD)
        self.assertEqual(tuple(aspect.get_pixel_min_max()), (80, 80))

    def test_dynamic_range_low(self):
        aspect = make_aspect()
        aspect.load_frame(np.random.default_rng(1).integers(95, 106, SHAPE).astype(np.uint8))

        self.assertEqual(aspect.run(), AspectCode.DYNAMIC_RANGE_LOW)

        aspect.get_pixel_min_max()
        self.assertState(aspect.get_pixel_crossings, AspectCode.DYNAMIC_RANGE_LOW)

    def test_no_limb_crossings(self):
        aspect = make_aspect()
        aspect.load_frame(np.tile(np.linspace(0, 255, SHAPE[1]).astype(np.uint8), (SHAPE[0], 1)))

        self.assertEqual(aspect.run(), AspectCode.NO_LIMB_CROSSINGS)
        self.assertState(aspect.get_pixel_center, AspectCode.NO_LIMB_CROSSINGS)

    def test_center_error_large(self):
        aspect = make_aspect()
        aspect.set_float(AspectFloat.ERROR_LIMIT, 0)
        aspect.load_frame(self.frame)

        self.assertEqual(aspect.run(), AspectCode.CENTER_ERROR_LARGE)

        aspect.get_pixel_crossings()
        self.assertState(aspect.get_pixel_center, AspectCode.CENTER_ERROR_LARGE)

    def test_solar_image_small(self):
        aspect = make_aspect()
        aspect.set_integer(AspectInt.SOLAR_RADIUS, 10)
        aspect.load_frame(self.frame)

        self.assertEqual(aspect.run(), AspectCode.SOLAR_IMAGE_SMALL)

        aspect.get_pixel_center()
        self.assertState(aspect.get_roi, AspectCode.SOLAR_IMAGE_SMALL)

    def test_no_fiducials(self):
        aspect = make_aspect()
        aspect.set_float(AspectFloat.FIDUCIAL_THRESHOLD, 100)
        aspect.load_frame(self.frame)

        self.assertEqual(aspect.run(), AspectCode.NO_FIDUCIALS)

        self.assertEqual(aspect.get_roi(), RegionOfInterest(100, 180, 300, 300))
        self.assertState(aspect.get_pixel_fiducials, AspectCode.NO_FIDUCIALS)

    def test_mapping_ill_conditioned(self):
        aspect = make_aspect()
        aspect.set_float(AspectFloat.MAPPING_CONDITION_LIMIT, 1)
        aspect.load_frame(self.frame)

        self.assertEqual(aspect.run(), AspectCode.MAPPING_ILL_CONDITIONED)

        self.assertEqual(len(aspect.get_fiducial_ids()), 12)
        self.assertState(aspect.get_mapping, AspectCode.MAPPING_ILL_CONDITIONED)
        self.assertState(lambda: aspect.pixel_to_screen([0, 0]), AspectCode.MAPPING_ILL_CONDITIONED)

    def test_state_error_is_value_error(self):
        self.assertTrue(issubclass(AspectStateError, ValueError))


class TestConfiguration(AspectTestCase):
    def test_defaults(self):
        aspect = Aspect()

        self.assertEqual(aspect.get_float(AspectFloat.LIMB_THRESHOLD), 0.25)
        self.assertEqual(aspect.get_float(AspectFloat.ERROR_LIMIT), 50)
        self.assertEqual(aspect.get_float(AspectFloat.FIDUCIAL_SPACING), 15.6)
        self.assertEqual(aspect.get_float(AspectFloat.MAPPING_CONDITION_LIMIT), np.inf)
        self.assertEqual(aspect.get_integer(AspectInt.NUM_CHORDS_SEARCHING), 30)
        self.assertEqual(aspect.get_integer(AspectInt.SOLAR_RADIUS), 98)
        self.assertEqual(aspect.get_integer(AspectInt.NUM_FIDUCIALS), 12)

    def test_set_and_reset(self):
        aspect = make_aspect()

        aspect.set_float(AspectFloat.RADIUS_MARGIN, 0.5)
        aspect.set_integer(AspectInt.FIDUCIAL_LENGTH, 11)

        self.assertEqual(aspect.radius_margin, 0.5)
        self.assertEqual(aspect.get_integer(AspectInt.FIDUCIAL_LENGTH), 11)

        aspect.reset_settings()

        self.assertEqual(aspect.get_float(AspectFloat.RADIUS_MARGIN), 0.25)
        self.assertEqual(aspect.get_integer(AspectInt.FIDUCIAL_LENGTH), 15)
        self.assertEqual(aspect.get_integer(AspectInt.SOLAR_RADIUS), RADIUS)

    def test_unknown_parameter(self):
        aspect = make_aspect()

        with self.assertRaises(ValueError):
            aspect.get_float(AspectInt.SOLAR_RADIUS)

        with self.assertRaises(ValueError):
            aspect.set_integer(AspectFloat.ERROR_LIMIT, 3)

        with self.assertRaises(ValueError):
            aspect.get_integer('solar_radius')

    def test_num_fiducials_applied(self):
        aspect = make_aspect()
        aspect.set_integer(AspectInt.NUM_FIDUCIALS, 6)
        aspect.load_frame(self.frame)
        aspect.run()

        self.assertLessEqual(aspect.get_pixel_fiducials().shape[0], 6)


if __name__ == '__main__':
    import unittest
    unittest.main()
