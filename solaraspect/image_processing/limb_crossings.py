# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the capability to locate the two limb crossings of the solar disk along a single chord of a frame.

Description of the Technique
----------------------------

A chord is a single row or column of the frame.  When it passes through the solar disk the chord rises from the dark
sky background to the bright disk at one limb and falls back to the background at the other limb.  The limb crossings
are located in two steps.

First, the chord is scanned for every place it crosses a lower threshold set a fraction of the way between the trimmed
frame minimum and maximum (:attr:`~LimbCrossingDetectorOptions.limb_threshold`).  A rising crossing is the index of
the first sample above the threshold and a falling crossing is the index of the last sample above the threshold.
Dark fiducial marks on the disk and noise in the background can produce short spurious excursions through the
threshold so every pair of adjacent crossings closer together than
:attr:`~LimbCrossingDetectorOptions.min_limb_width` samples is discarded.  A chord is accepted only when exactly one
rising crossing followed by one falling crossing remain.  When the disk runs off of the end of the chord only a single
crossing is found.  In this case a virtual crossing is placed just outside of the chord (at -1 or at the chord length)
so long as the real crossing is within a solar diameter of that end.

Second, each real crossing is refined to sub-pixel accuracy by fitting a line to the samples within
:attr:`~LimbCrossingDetectorOptions.limb_fit_width` of the crossing and solving for where the line crosses the lower
threshold.  The magnitude of the fitted slope is a measure of how sharp the limb is and is reported as a focus
sample.

Use
---

The :class:`LimbCrossingDetector` is used by the :class:`.CenterFinder` for every chord it examines.  You can also use
it directly by calling an instance with the chord and the trimmed frame minimum and maximum.
"""

from dataclasses import dataclass

from enum import Enum, IntEnum

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from solaraspect.utilities.options import UserOptions
from solaraspect.utilities.mixin_classes import UserOptionConfigured, AttributePrinting
from solaraspect.utilities.fitting import linear_fit

from solaraspect._typing import ARRAY_LIKE, DOUBLE_ARRAY


class LimbCrossingStatus(IntEnum):
    """
    The outcome of searching a single chord for its limb crossings.
    """

    SUCCESS = 0
    """
    Two limb crossings were found and refined.
    """

    NO_EDGE = -1
    """
    The chord does not contain a usable rising/falling pair (or a crossing could not be fit).
    """

    NON_FINITE = -2
    """
    The refined position of a crossing was not finite.
    """

    OUT_OF_WINDOW = -3
    """
    The refined position of a crossing fell outside of the samples used to fit it.
    """


class EdgeDirection(Enum):
    """
    The direction of a threshold crossing along a chord.
    """

    RISING = "rising"
    FALLING = "falling"


class Edge(NamedTuple):
    """
    An integer threshold crossing along a chord.
    """

    index: int
    """
    The index of the first (rising) or last (falling) sample above the threshold.

    Virtual crossings use -1 (rising) or the chord length (falling).
    """

    direction: EdgeDirection
    """
    Whether the chord goes from dark to bright or from bright to dark at this crossing
    """

    virtual: bool = False
    """
    Whether this crossing was added at the boundary of the chord
    """


class LimbCrossingOut(NamedTuple):
    """
    The result of searching a chord for its limb crossings.
    """

    status: LimbCrossingStatus
    """
    Whether the search succeeded and if not why
    """

    crossings: DOUBLE_ARRAY
    """
    The (rising, falling) crossing positions along the chord.

    This is a length 2 array on success and is empty otherwise.
    """

    virtual: NDArray[np.bool_]
    """
    Flags specifying which of the crossings were added at the boundary of the chord rather than found
    """

    slopes: DOUBLE_ARRAY
    """
    The absolute value of the fitted edge slope for each refined (non-virtual) crossing
    """


def _failure(status: LimbCrossingStatus) -> LimbCrossingOut:
    return LimbCrossingOut(status, np.empty(0, dtype=np.float64), np.empty(0, dtype=bool),
                           np.empty(0, dtype=np.float64))


@dataclass
class LimbCrossingDetectorOptions(UserOptions):
    """
    This dataclass serves as one way to control the settings for the :class:`.LimbCrossingDetector` class.

    You can set any of the options on an instance of this dataclass and pass it to the :class:`.LimbCrossingDetector`
    class at initialization (or through the method :meth:`.LimbCrossingDetector.reset_settings`) to set the settings
    on the class.  This class is the preferred way of setting options on the class due to ease of use in IDEs.
    """

    limb_threshold: float = 0.25
    """
    The fraction of the way from the frame minimum to the frame maximum at which the limb is located.
    """

    disk_threshold: float = 0.75
    """
    The fraction of the way from the frame minimum to the frame maximum that the chord must reach to contain the disk.
    """

    min_limb_width: int = 15
    """
    The minimum number of samples between adjacent threshold crossings for them to be considered limbs.
    """

    limb_fit_width: int = 2
    """
    The number of samples on either side of a crossing used to refine it.
    """

    solar_radius: int = 98
    """
    The expected radius of the solar disk in pixels.
    """


class LimbCrossingDetector(UserOptionConfigured[LimbCrossingDetectorOptions], LimbCrossingDetectorOptions,
                           AttributePrinting):
    """
    This class locates the rising and falling limb crossings of the solar disk along a single chord.

    The search is performed by calling the instance with the chord and the trimmed frame minimum and maximum.  See the
    module documentation for a description of the technique.

    >>> import numpy as np
    >>> from solaraspect.image_processing.limb_crossings import LimbCrossingDetector
    >>> chord = np.r_[np.full(50, 10), np.full(100, 200), np.full(50, 10)].astype(np.uint8)
    >>> LimbCrossingDetector()(chord, 10, 200).status
    <LimbCrossingStatus.SUCCESS: 0>
    """

    def __init__(self, options: LimbCrossingDetectorOptions | None = None) -> None:
        """
        :param options: The options configuring this class
        """

        super().__init__(LimbCrossingDetectorOptions, options=options)

    def thresholds(self, frame_min: float, frame_max: float) -> tuple[float, float]:
        """
        Compute the lower (limb) and upper (disk) thresholds for the frame.

        :param frame_min: the trimmed minimum of the frame
        :param frame_max: the trimmed maximum of the frame
        :return: the lower and upper thresholds in DN
        """

        span = float(frame_max) - float(frame_min)

        return float(frame_min) + self.limb_threshold * span, float(frame_min) + self.disk_threshold * span

    @staticmethod
    def find_edges(chord: NDArray, pixel_threshold: int) -> list[Edge]:
        """
        Find every place the chord crosses the threshold, in order along the chord.

        A rising edge is reported at the first sample above the threshold and a falling edge at the last sample above
        the threshold.  The first sample of the chord is never itself an edge.

        :param chord: the 1D chord
        :param pixel_threshold: the threshold in integer DN
        :return: the list of edges in the order they occur
        """

        above = np.asarray(chord) > pixel_threshold

        transitions = np.flatnonzero(above[1:] != above[:-1]) + 1

        return [Edge(int(k), EdgeDirection.RISING) if above[k] else Edge(int(k) - 1, EdgeDirection.FALLING)
                for k in transitions]

    def prune_edges(self, edges: list[Edge]) -> list[Edge]:
        """
        Remove every pair of adjacent edges that are not more than :attr:`min_limb_width` samples apart.

        Both members of a close pair are removed.  The order of the remaining edges is preserved.

        :param edges: the edges in the order they occur along the chord
        :return: the edges that are well separated from their neighbors
        """

        flagged = [False] * len(edges)

        for k in range(1, len(edges)):
            if abs(edges[k].index - edges[k - 1].index) <= self.min_limb_width:
                flagged[k - 1] = True
                flagged[k] = True

        return [edge for edge, flag in zip(edges, flagged) if not flag]

    def pair_single_edge(self, edge: Edge, length: int) -> list[Edge]:
        """
        Pair a lone edge with a virtual edge at the boundary of the chord if the disk may run off of the chord.

        :param edge: the only edge found on the chord
        :param length: the length of the chord
        :return: the (rising, falling) pair, or an empty list if the edge cannot be paired
        """

        if (edge.direction is EdgeDirection.FALLING) and (edge.index < 2 * self.solar_radius):
            return [Edge(-1, EdgeDirection.RISING, True), edge]

        if (edge.direction is EdgeDirection.RISING) and (edge.index > length - 2 * self.solar_radius):
            return [edge, Edge(length, EdgeDirection.FALLING, True)]

        return []

    def refine_edge(self, chord: NDArray, edge: int,
                    lower_threshold: float) -> tuple[LimbCrossingStatus, float, float]:
        """
        Refine an edge to sub-pixel accuracy with a linear fit to the nearby samples.

        The samples in ``[max(edge - limb_fit_width, 0), min(edge + limb_fit_width, K-1)]`` are fit with a line (in
        coordinates relative to the edge) and the crossing is placed where the line reaches the lower threshold.

        :param chord: the 1D chord
        :param edge: the integer edge location
        :param lower_threshold: the (non-truncated) lower threshold
        :return: the status, the refined position, and the absolute slope of the fit line
        """

        start = max(edge - self.limb_fit_width, 0)
        stop = min(edge + self.limb_fit_width, chord.size - 1)

        if stop - start + 1 < 2:
            return LimbCrossingStatus.NO_EDGE, np.nan, np.nan

        samples = np.arange(start, stop + 1)

        fit = linear_fit(samples - edge, chord[start:stop + 1])

        # a flat or degenerate fit never reaches the threshold
        if fit.slope == 0 or not np.isfinite(fit.slope):
            return LimbCrossingStatus.NON_FINITE, np.nan, abs(fit.slope)

        position = (lower_threshold - fit.intercept) / fit.slope + edge

        if not np.isfinite(position):
            return LimbCrossingStatus.NON_FINITE, position, abs(fit.slope)

        if (position < start) or (position > stop):
            return LimbCrossingStatus.OUT_OF_WINDOW, position, abs(fit.slope)

        return LimbCrossingStatus.SUCCESS, float(position), abs(fit.slope)

    def __call__(self, chord: ARRAY_LIKE, frame_min: float, frame_max: float) -> LimbCrossingOut:
        """
        Locate the limb crossings along a chord.

        :param chord: The 1D chord of DN values
        :param frame_min: The trimmed minimum of the frame
        :param frame_max: The trimmed maximum of the frame
        :return: The status, crossings, virtual flags, and slopes as a :class:`.LimbCrossingOut`
        """

        chord = np.asarray(chord).ravel()

        if chord.size < 2:
            return _failure(LimbCrossingStatus.NO_EDGE)

        lower_threshold, upper_threshold = self.thresholds(frame_min, frame_max)

        if chord.max() < upper_threshold:
            return _failure(LimbCrossingStatus.NO_EDGE)

        edges = self.find_edges(chord, int(lower_threshold))

        if not edges:
            return _failure(LimbCrossingStatus.NO_EDGE)
        elif len(edges) == 1:
            edges = self.pair_single_edge(edges[0], chord.size)
        else:
            edges = self.prune_edges(edges)

        if (len(edges) != 2 or edges[0].direction is not EdgeDirection.RISING or
                edges[1].direction is not EdgeDirection.FALLING):
            return _failure(LimbCrossingStatus.NO_EDGE)

        crossings = []
        slopes = []

        chord_float = chord.astype(np.float64)

        for edge in edges:
            if edge.virtual:
                crossings.append(float(edge.index))
                continue

            status, position, slope = self.refine_edge(chord_float, edge.index, lower_threshold)

            if status is not LimbCrossingStatus.SUCCESS:
                return _failure(status)

            crossings.append(position)
            slopes.append(slope)

        return LimbCrossingOut(LimbCrossingStatus.SUCCESS, np.array(crossings, dtype=np.float64),
                               np.array([edge.virtual for edge in edges], dtype=bool),
                               np.array(slopes, dtype=np.float64))
