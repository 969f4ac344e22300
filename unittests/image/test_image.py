"""
test_image
==========

Tests the functionality of the AspectFrame and RegionOfInterest classes, including reading frames from disk.


Test Cases
__________
"""

from unittest import TestCase

import numpy as np

from solaraspect.image import AspectFrame, RegionOfInterest

from datetime import datetime

import cv2
import astropy.io.fits as pf

import os
import pickle
import tempfile


class TestAspectFrame(TestCase):
    """
    Test the AspectFrame class
    """

    def test___init__(self):

        x = np.random.default_rng(0).integers(0, 256, (100, 120), dtype=np.uint8)

        im = AspectFrame(x.copy(), observation_date=datetime(2021, 1, 1), exposure=0.002, frame_number=12,
                         file='hello/world')

        np.testing.assert_array_equal(x, im)

        self.assertEqual(im.observation_date, datetime(2021, 1, 1))
        self.assertEqual(im.exposure, 0.002)
        self.assertEqual(im.frame_number, 12)
        self.assertEqual(im.file, 'hello/world')
        self.assertEqual(im.height, 100)
        self.assertEqual(im.width, 120)

        self.assertIsInstance(im, AspectFrame)

    def test_rescale(self):

        x = np.linspace(-1, 1, 20).reshape(4, 5)

        with self.assertWarns(UserWarning):
            im = AspectFrame(x)

        self.assertEqual(im.dtype, np.uint8)
        self.assertEqual(im.min(), 0)
        self.assertEqual(im.max(), 255)

    def test_not_2d(self):

        with self.assertRaises(ValueError):
            AspectFrame(np.zeros((3, 4, 5), dtype=np.uint8))

    def test_slice_keeps_metadata(self):

        im = AspectFrame(np.zeros((50, 50), dtype=np.uint8), frame_number=3)

        sub = im[10:20, 5:15]

        self.assertIsInstance(sub, AspectFrame)
        self.assertEqual(sub.frame_number, 3)
        self.assertEqual(sub.shape, (10, 10))

    def test_pickle(self):

        im = AspectFrame(np.eye(10, dtype=np.uint8), exposure=1.5, frame_number=4)

        copy = pickle.loads(pickle.dumps(im))

        np.testing.assert_array_equal(copy, im)
        self.assertEqual(copy.exposure, 1.5)
        self.assertEqual(copy.frame_number, 4)

    def test_load_image(self):

        data = np.zeros((40, 60), dtype=np.uint8)
        data[10:30, 20:40] = 200

        with tempfile.TemporaryDirectory() as directory:

            with self.subTest(ext='.png'):
                path = os.path.join(directory, 'frame.png')
                cv2.imwrite(path, data)

                im = AspectFrame(path)

                np.testing.assert_array_equal(im, data)
                self.assertEqual(im.file, path)

            with self.subTest(ext='.fits'):
                path = os.path.join(directory, 'frame.fits')
                pf.writeto(path, data)

                np.testing.assert_array_equal(AspectFrame.load_image(path), data)

            with self.subTest(ext='.txt'):
                path = os.path.join(directory, 'frame.txt')
                with open(path, 'w') as text_file:
                    text_file.write('not a frame')

                with self.assertRaises(ValueError):
                    AspectFrame.load_image(path)

        with self.assertRaises(ValueError):
            AspectFrame.load_image(os.path.join('does', 'not', 'exist.png'))


class TestRegionOfInterest(TestCase):

    def test_full_frame(self):

        self.assertEqual(RegionOfInterest.full_frame((480, 640)), RegionOfInterest(0, 0, 480, 640))

    def test_slices(self):

        data = np.arange(100).reshape(10, 10)

        region = RegionOfInterest(2, 3, 4, 5)

        np.testing.assert_array_equal(data[region.slices], data[2:6, 3:8])

    def test_empty(self):

        self.assertTrue(RegionOfInterest(0, 0, 0, 10).empty)
        self.assertFalse(RegionOfInterest(0, 0, 1, 1).empty)

    def test_fits_in(self):

        self.assertTrue(RegionOfInterest(0, 0, 480, 640).fits_in((480, 640)))
        self.assertTrue(RegionOfInterest(100, 200, 50, 50).fits_in((480, 640)))
        self.assertFalse(RegionOfInterest(450, 0, 50, 50).fits_in((480, 640)))
        self.assertFalse(RegionOfInterest(-1, 0, 50, 50).fits_in((480, 640)))


if __name__ == '__main__':
    import unittest
    unittest.main()
