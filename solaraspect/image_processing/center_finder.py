# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the capability to locate the center of the solar disk in a frame from the limb crossings of a
grid of chords.

Description of the Technique
----------------------------

A regular grid of columns and rows (chords) is laid over the region being searched.  Each chord is passed to a
:class:`.LimbCrossingDetector` which returns the two places the chord enters and leaves the disk.  For a circular disk
the midpoint of the two crossings of a column lies on the horizontal line through the center and the midpoint of the
two crossings of a row lies on the vertical line through the center.  Therefore the mean of the column midpoints is the
y coordinate of the center and the mean of the row midpoints is the x coordinate of the center.  The population
standard deviation of the midpoints is reported as the error of the center along each axis.

When there is no previous estimate of the center the whole frame is searched with
:attr:`~CenterFinderOptions.num_chords_searching` chords per axis.  When the disk is being tracked only the region of
interest from the previous frame is searched, with :attr:`~CenterFinderOptions.num_chords_operating` chords per axis,
and the results are translated back into full frame coordinates.

Chords where the disk runs off of the region being searched have a virtual crossing at the boundary.  Their midpoint is
biased, so they are only used when the boundary is the true edge of the sensor (where there is no more data to be had).

Optionally, the chord midpoint estimate can be replaced by a robust circle fit to the (real) limb crossings, see
:func:`.circle_fit`.
"""

import logging

from dataclasses import dataclass, field

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from solaraspect.utilities.options import UserOptions
from solaraspect.utilities.mixin_classes import UserOptionConfigured, AttributePrinting
from solaraspect.utilities.fitting import circle_fit

from solaraspect.image_processing.limb_crossings import (LimbCrossingDetector, LimbCrossingDetectorOptions,
                                                         LimbCrossingStatus)

from solaraspect.image import RegionOfInterest

from solaraspect._typing import DOUBLE_ARRAY


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class CenterFinderOut(NamedTuple):
    """
    The result of searching a frame for the center of the solar disk.

    All positions are in full frame pixel coordinates as (x, y) = (column, row).
    """

    center: DOUBLE_ARRAY
    """
    The (x, y) center of the disk.  An axis is NaN if no chord along it was accepted.
    """

    error: DOUBLE_ARRAY
    """
    The (x, y) population standard deviation of the chord midpoints.
    """

    crossings: DOUBLE_ARRAY
    """
    The nx2 array of (x, y) limb crossings from every accepted chord
    """

    virtual: NDArray[np.bool_]
    """
    Flags specifying which of the :attr:`crossings` were placed at the boundary of the searched region
    """

    slopes: DOUBLE_ARRAY
    """
    The fitted absolute edge slopes of every accepted chord (focus samples)
    """

    non_finite: int
    """
    The number of chords rejected because a refined crossing was not finite
    """

    out_of_window: int
    """
    The number of chords rejected because a refined crossing fell outside of its fit window
    """

    searched: bool
    """
    True if the full frame was searched and False if a previous region of interest was tracked
    """


@dataclass
class CenterFinderOptions(UserOptions):
    """
    This dataclass serves as one way to control the settings for the :class:`.CenterFinder` class.

    You can set any of the options on an instance of this dataclass and pass it to the :class:`.CenterFinder` class at
    initialization (or through the method :meth:`.CenterFinder.reset_settings`) to set the settings on the class.
    """

    limb_crossing_options: LimbCrossingDetectorOptions = field(default_factory=LimbCrossingDetectorOptions)
    """
    The options used to configure the limb crossing detector applied to each chord
    """

    num_chords_searching: int = 30
    """
    The number of chords per axis used when searching the whole frame
    """

    num_chords_operating: int = 10
    """
    The number of chords per axis used when tracking the previous region of interest
    """

    refine_with_circle_fit: bool = False
    """
    Replace the chord midpoint center with a robust circle fit to the limb crossings.

    The fit is only used when at least 5 non-virtual crossings are available.
    """


def chord_locations(extent: int, density: int) -> NDArray[np.int64]:
    """
    Return the indices of ``density`` evenly spaced chords across an axis.

    The spacing is ``extent // density`` and the first chord is at half the spacing.

    :param extent: the length of the axis being sampled
    :param density: the number of chords
    :return: the chord indices
    :raises ValueError: if the density is less than 1
    """

    if density < 1:
        raise ValueError(f'The number of chords must be at least 1, not {density}')

    step = extent // density

    return step // 2 + step * np.arange(density, dtype=np.int64)


class CenterFinder(UserOptionConfigured[CenterFinderOptions], CenterFinderOptions, AttributePrinting):
    """
    This class locates the center of the solar disk from the limb crossings of a grid of chords.

    Call an instance with the frame, the trimmed minimum and maximum of the frame, and optionally the region of interest
    from the previous frame to track.  See the module documentation for a description of the technique.
    """

    def __init__(self, options: CenterFinderOptions | None = None) -> None:
        """
        :param options: The options configuring this class
        """

        super().__init__(CenterFinderOptions, options=options)

        self.limb_crossing_detector = LimbCrossingDetector(self.limb_crossing_options)
        """
        The detector applied to each chord
        """

    def __call__(self, frame: NDArray, frame_min: float, frame_max: float,
                 region: RegionOfInterest | None = None) -> CenterFinderOut:
        """
        Find the center of the solar disk.

        :param frame: the full 2D frame
        :param frame_min: the trimmed minimum of the frame
        :param frame_max: the trimmed maximum of the frame
        :param region: the region of interest to track, or ``None`` to search the whole frame
        :return: the center, its error, and the supporting crossings as a :class:`.CenterFinderOut`
        """

        if region is None or region.empty:
            searching = True
            region = RegionOfInterest.full_frame(frame.shape)
            density = self.num_chords_searching
        else:
            searching = False
            density = self.num_chords_operating

        data = frame[region.slices]

        # the true sensor boundaries, in region coordinates, for each chord direction
        at_start = {0: region.row_offset <= 0, 1: region.col_offset <= 0}
        at_end = {0: region.row_offset + data.shape[0] >= frame.shape[0],
                  1: region.col_offset + data.shape[1] >= frame.shape[1]}

        center = np.full(2, np.nan)
        error = np.full(2, np.nan)

        crossings: list[tuple[float, float]] = []
        virtual: list[bool] = []
        slopes: list[float] = []

        non_finite = 0
        out_of_window = 0

        # axis 0 runs down columns (giving y), axis 1 runs along rows (giving x)
        for axis in (0, 1):
            locations = chord_locations(data.shape[1 - axis], density)
            midpoints = []

            for location in locations:
                chord = data[:, location] if axis == 0 else data[location, :]

                result = self.limb_crossing_detector(chord, frame_min, frame_max)

                if result.status == LimbCrossingStatus.NON_FINITE:
                    non_finite += 1
                    continue
                elif result.status == LimbCrossingStatus.OUT_OF_WINDOW:
                    out_of_window += 1
                    continue
                elif result.status != LimbCrossingStatus.SUCCESS or result.crossings.size != 2:
                    continue

                if not np.isfinite(result.crossings).all():
                    continue

                if result.virtual[0] and not at_start[axis]:
                    continue

                if result.virtual[1] and not at_end[axis]:
                    continue

                for position, is_virtual in zip(result.crossings, result.virtual):
                    if axis == 0:
                        crossings.append((float(location), float(position)))
                    else:
                        crossings.append((float(position), float(location)))
                    virtual.append(bool(is_virtual))

                slopes.extend(result.slopes.tolist())
                midpoints.append(result.crossings.mean())

            if midpoints:
                # axis 0 midpoints are y values which are stored second
                center[1 - axis] = np.mean(midpoints)
                error[1 - axis] = np.std(midpoints)

        crossing_array = np.array(crossings, dtype=np.float64).reshape(-1, 2)
        virtual_array = np.array(virtual, dtype=bool)

        offset = np.array([region.col_offset, region.row_offset], dtype=np.float64)

        center += offset
        crossing_array += offset

        if self.refine_with_circle_fit:
            center = self._refine_center(center, crossing_array[~virtual_array])

        if non_finite or out_of_window:
            _LOGGER.debug(f'{non_finite} chords had non-finite crossings and {out_of_window} chords had crossings '
                          f'outside of the fit window')

        return CenterFinderOut(center, error, crossing_array, virtual_array, np.array(slopes, dtype=np.float64),
                               non_finite, out_of_window, searching)

    @staticmethod
    def _refine_center(center: DOUBLE_ARRAY, points: DOUBLE_ARRAY) -> DOUBLE_ARRAY:
        """
        Replace the chord midpoint center with the center of a robust circle fit if there are enough points.
        """

        if points.shape[0] < 5:
            _LOGGER.debug(f'Only {points.shape[0]} real limb crossings, keeping the chord midpoint center')
            return center

        try:
            fit = circle_fit(points)
        except np.linalg.LinAlgError:
            _LOGGER.debug('The limb crossings are degenerate, keeping the chord midpoint center')
            return center

        if not np.isfinite(fit.center).all():
            _LOGGER.debug('The circle fit to the limb crossings was not finite, keeping the chord midpoint center')
            return center

        _LOGGER.debug(f'Circle fit center {fit.center} with radius {fit.radius:.2f} from '
                      f'{fit.inliers.sum()} of {points.shape[0]} crossings')

        return np.asarray(fit.center, dtype=np.float64)
