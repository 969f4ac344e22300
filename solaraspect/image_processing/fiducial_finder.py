# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the capability to locate the fiducial marks of the aspect mask inside of the solar image.

Description of the Technique
----------------------------

The solar image (the region of interest around the disk) is first clipped to the trimmed maximum of the frame so that
hot pixels do not dominate the correlation and is then correlated with the cross shaped matched filter from
:func:`.fiducial_kernel`.  Only the valid part of the correlation is computed so the surface is smaller than the
solar image by the kernel size less one.

Candidates are the strict local maxima of the correlation surface that are more than
:attr:`~FiducialFinderOptions.threshold` standard deviations above the mean of the surface.  The candidates are
visited in raster order and merged with the list of kept fiducials:

* if a kept fiducial is within twice the fiducial length along both axes, the candidate replaces it when the candidate
  is stronger (only the first such fiducial is considered),
* otherwise the candidate is appended while there are fewer than :attr:`~FiducialFinderOptions.max_fiducials` kept
  fiducials,
* otherwise the candidate replaces the weakest kept fiducial if it is stronger.

Each kept fiducial is then refined to sub-pixel accuracy with a correlation weighted centroid over the
``+/- fiducial_width`` neighborhood of the peak, using only the correlation values more than half of the threshold
above the mean, and translated into full frame coordinates.
"""

import logging

from dataclasses import dataclass

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

import cv2

from solaraspect.utilities.options import UserOptions
from solaraspect.utilities.mixin_classes import UserOptionConfigured, AttributePrinting
from solaraspect.utilities.fitting import safe_range

from solaraspect.image_processing.kernels import fiducial_kernel
from solaraspect.image_processing.correlators import cv2_correlator_2d
from solaraspect.image_processing.local_maxima import local_maxima

from solaraspect.image import RegionOfInterest

from solaraspect._typing import DOUBLE_ARRAY


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class FiducialFinderOut(NamedTuple):
    """
    The fiducials found in a solar image.
    """

    centroids: DOUBLE_ARRAY
    """
    The nx2 array of sub-pixel (x, y) fiducial locations in full frame coordinates
    """

    peak_correlation: DOUBLE_ARRAY
    """
    The correlation value at the peak pixel of each fiducial
    """

    peak_sigma: DOUBLE_ARRAY
    """
    The number of standard deviations the peak of each fiducial is above the mean of the correlation surface
    """


def _no_fiducials() -> FiducialFinderOut:
    return FiducialFinderOut(np.empty((0, 2), dtype=np.float64), np.empty(0, dtype=np.float64),
                             np.empty(0, dtype=np.float64))


@dataclass
class FiducialFinderOptions(UserOptions):
    """
    This dataclass serves as one way to control the settings for the :class:`.FiducialFinder` class.
    """

    threshold: float = 5
    """
    The number of standard deviations above the mean of the correlation surface a peak must be to be a fiducial.
    """

    fiducial_length: int = 15
    """
    The length of the fiducial arms in pixels.
    """

    fiducial_width: int = 2
    """
    The width of the fiducial arms in pixels.

    This also sets the half size of the centroiding window.
    """

    max_fiducials: int = 12
    """
    The maximum number of fiducials to keep.
    """


class FiducialFinder(UserOptionConfigured[FiducialFinderOptions], FiducialFinderOptions, AttributePrinting):
    """
    This class finds the fiducial marks in the solar image using a matched filter.

    Call an instance with the frame, the region of interest containing the solar image, and the trimmed maximum of the
    frame.  See the module documentation for a description of the technique.
    """

    def __init__(self, options: FiducialFinderOptions | None = None) -> None:
        """
        :param options: The options configuring this class
        """

        super().__init__(FiducialFinderOptions, options=options)

    @property
    def kernel(self) -> NDArray[np.float32]:
        """
        The matched filter for the current fiducial dimensions
        """

        return fiducial_kernel(self.fiducial_length, self.fiducial_width)

    def correlate(self, solar_image: NDArray, frame_max: float) -> DOUBLE_ARRAY:
        """
        Clip the solar image to the frame maximum and correlate it with the kernel.

        :param solar_image: the region of the frame containing the solar disk
        :param frame_max: the trimmed maximum of the frame
        :return: the valid correlation surface
        """

        clipped = np.minimum(np.asarray(solar_image, dtype=np.float32), np.float32(frame_max))

        return cv2_correlator_2d(clipped, self.kernel, cv2.TM_CCORR)

    def select_peaks(self, correlation: DOUBLE_ARRAY, threshold: float) -> list[tuple[int, int]]:
        """
        Select the strongest, well separated local maxima of the correlation surface.

        :param correlation: the correlation surface
        :param threshold: the value a maximum must exceed
        :return: the (row, column) peak locations
        """

        peaks: list[tuple[int, int]] = []
        separation = 2 * self.fiducial_length

        for row, col in np.argwhere(local_maxima(correlation, threshold)):
            value = correlation[row, col]

            redundant = False
            for index, (kept_row, kept_col) in enumerate(peaks):
                if abs(kept_row - row) < separation and abs(kept_col - col) < separation:
                    redundant = True
                    if value > correlation[kept_row, kept_col]:
                        peaks[index] = (int(row), int(col))
                    break

            if redundant:
                continue

            if len(peaks) < self.max_fiducials:
                peaks.append((int(row), int(col)))
            elif peaks:
                weakest = int(np.argmin([correlation[kept] for kept in peaks]))
                if value > correlation[peaks[weakest]]:
                    peaks[weakest] = (int(row), int(col))

        return peaks

    def centroid(self, correlation: DOUBLE_ARRAY, peak: tuple[int, int], threshold: float) -> tuple[float, float]:
        """
        Compute the correlation weighted centroid around a peak.

        Only values above ``threshold`` inside of the ``+/- fiducial_width`` window are used.  If none are, the result
        is NaN.

        :param correlation: the correlation surface
        :param peak: the (row, column) peak location
        :param threshold: the value a pixel must exceed to be included in the centroid
        :return: the (row, column) centroid in correlation surface coordinates
        """

        rows = safe_range(peak[0] - self.fiducial_width, peak[0] + self.fiducial_width + 1, correlation.shape[0])
        cols = safe_range(peak[1] - self.fiducial_width, peak[1] + self.fiducial_width + 1, correlation.shape[1])

        window = correlation[rows, cols]
        row_index, col_index = np.mgrid[rows, cols]

        weights = np.where(window > threshold, window, 0)

        with np.errstate(divide='ignore', invalid='ignore'):
            total = weights.sum()
            return float((row_index * weights).sum() / total), float((col_index * weights).sum() / total)

    def __call__(self, frame: NDArray, region: RegionOfInterest, frame_max: float) -> FiducialFinderOut:
        """
        Find the fiducials in the solar image.

        :param frame: the full 2D frame
        :param region: the region of interest containing the solar image
        :param frame_max: the trimmed maximum of the frame
        :return: the fiducial locations and strengths as a :class:`.FiducialFinderOut`
        """

        solar_image = frame[region.slices]

        kernel_side = self.kernel.shape[0]

        if solar_image.shape[0] < kernel_side or solar_image.shape[1] < kernel_side:
            _LOGGER.debug(f'The solar image {solar_image.shape} is smaller than the kernel')
            return _no_fiducials()

        correlation = self.correlate(solar_image, frame_max)

        mean = correlation.mean()
        std = correlation.std()

        peaks = self.select_peaks(correlation, mean + self.threshold * std)

        if not peaks:
            return _no_fiducials()

        centroid_threshold = mean + (self.threshold / 2) * std

        offset = np.array([region.col_offset + kernel_side // 2, region.row_offset + kernel_side // 2],
                          dtype=np.float64)

        centroids = np.array([self.centroid(correlation, peak, centroid_threshold)[::-1] for peak in peaks],
                             dtype=np.float64) + offset

        peak_correlation = np.array([correlation[peak] for peak in peaks], dtype=np.float64)

        with np.errstate(divide='ignore', invalid='ignore'):
            peak_sigma = (peak_correlation - mean) / std

        finite = np.isfinite(centroids).all(axis=1)

        if not finite.all():
            _LOGGER.debug(f'Dropping {(~finite).sum()} fiducials with non-finite centroids')

        return FiducialFinderOut(centroids[finite], peak_correlation[finite], peak_sigma[finite])
