# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the :class:`Aspect` class, which drives the full aspect pipeline for each frame.

Description
-----------

The aspect of the payload (where it is pointed) is determined from images of the Sun seen through a mask etched with
a lattice of cross shaped fiducials.  For each frame the pipeline

#. computes the trimmed intensity range of the frame (:func:`.percentile_min_max`),
#. finds the center of the solar disk from the limb crossings of a grid of chords (:class:`.CenterFinder`),
#. crops a region of interest around the disk,
#. finds the fiducials inside of the region of interest (:class:`.FiducialFinder`),
#. identifies the lattice position of each fiducial (:class:`.FiducialIdentifier`),
#. fits the mapping from pixels to screen coordinates (:func:`.fit_mapping`).

Each stage that fails sets an :class:`.AspectCode` and the later stages are skipped.  The data products are retrieved
through accessor methods which check the state first: a product is only returned if the state is better than the
threshold code that guards it (for instance :meth:`~Aspect.get_pixel_center` works as long as the state is better
than :attr:`.AspectCode.CENTER_ERROR`).  Otherwise an :class:`.AspectStateError` is raised carrying the blocking
code, so that stale or partial results are never mistaken for valid ones.

Once the center has been found, the next frame only searches the region of interest of the previous frame with fewer
chords.  Any failure of the center stage invalidates the stored center so that the next frame searches the whole
frame again.

Use
---

.. code::

    from solaraspect import Aspect, AspectCode

    aspect = Aspect()
    aspect.load_frame(frame)

    if aspect.run() == AspectCode.NO_ERROR:
        print(aspect.get_screen_center())

The tunable parameters are set through :class:`AspectOptions` at construction, directly as attributes, or through the
typed :meth:`~Aspect.set_float`/:meth:`~Aspect.set_integer` interface keyed by :class:`.AspectFloat` and
:class:`.AspectInt`.  :meth:`~Aspect.reset_settings` restores the values the instance was built with.
"""

import logging

from dataclasses import dataclass

from typing import Any

import numpy as np

from solaraspect.aspect_codes import AspectCode, AspectFloat, AspectInt, AspectStateError

from solaraspect.image import AspectFrame, RegionOfInterest

from solaraspect.image_processing.intensity_range import percentile_min_max, IntensityRange
from solaraspect.image_processing.limb_crossings import LimbCrossingDetectorOptions
from solaraspect.image_processing.center_finder import CenterFinder, CenterFinderOptions
from solaraspect.image_processing.fiducial_finder import FiducialFinder, FiducialFinderOptions, FiducialFinderOut

from solaraspect.fiducials.identification import (FiducialIdentifier, FiducialIdentifierOptions,
                                                  FiducialIdentifierOut, FiducialID)
from solaraspect.fiducials.mapping import PixelScreenMapping, fit_mapping

from solaraspect.utilities.options import UserOptions
from solaraspect.utilities.mixin_classes import UserOptionConfigured, AttributePrinting
from solaraspect.utilities.fitting import safe_range

from solaraspect._typing import ARRAY_LIKE, ARRAY_LIKE_2D, DOUBLE_ARRAY


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


MIN_DYNAMIC_RANGE: int = 32
"""
The minimum difference in DN between the trimmed maximum and minimum of a frame for it to be processed
"""

MIN_LIMB_CROSSINGS: int = 4
"""
The minimum number of limb crossings needed to trust the center
"""

MIN_FIDUCIALS: int = 3
"""
The minimum number of fiducials (and of identified fiducials) needed to continue
"""


@dataclass
class AspectOptions(UserOptions):
    """
    This dataclass serves as one way to control the settings for the :class:`.Aspect` class.

    You can set any of the options on an instance of this dataclass and pass it to the :class:`.Aspect` class at
    initialization (or through the method :meth:`.Aspect.reset_settings`) to set the settings on the class.  This class
    is the preferred way of setting options on the class due to ease of use in IDEs.
    """

    limb_threshold: float = 0.25
    """
    The fraction of the way from the frame minimum to the frame maximum at which the limb is located.
    """

    disk_threshold: float = 0.75
    """
    The fraction of the way from the frame minimum to the frame maximum that a chord must reach to contain the disk.
    """

    error_limit: float = 50
    """
    The largest acceptable standard deviation of the chord midpoints, in pixels.
    """

    radius_margin: float = 0.25
    """
    The fractional margin added to the solar radius when cropping the region of interest.
    """

    fiducial_threshold: float = 5
    """
    The number of standard deviations above the mean of the correlation surface a fiducial must be.
    """

    fiducial_spacing: float = 15.6
    """
    The fixed spacing between neighboring fiducials in pixels.
    """

    fiducial_spacing_tol: float = 1.5
    """
    The tolerance in pixels when comparing fiducial separations to the lattice.
    """

    fiducial_twist: float = 0.0
    """
    The rotation of the mask with respect to the sensor in degrees.
    """

    mapping_condition_limit: float = np.inf
    """
    The largest acceptable condition number of the normal equations of either axis of the mapping.
    """

    num_chords_searching: int = 30
    """
    The number of chords per axis used when searching the whole frame for the disk.
    """

    num_chords_operating: int = 10
    """
    The number of chords per axis used when tracking the disk in the previous region of interest.
    """

    min_limb_width: int = 15
    """
    The minimum number of samples between adjacent threshold crossings of a chord for them to be limbs.
    """

    limb_fit_width: int = 2
    """
    The number of samples on either side of a limb crossing used to refine it.
    """

    solar_radius: int = 98
    """
    The expected radius of the solar disk in pixels.
    """

    fiducial_length: int = 15
    """
    The length of the fiducial arms in pixels.
    """

    fiducial_width: int = 2
    """
    The width of the fiducial arms in pixels.
    """

    num_fiducials: int = 12
    """
    The maximum number of fiducials to keep from each frame.
    """

    refine_center_with_circle_fit: bool = False
    """
    Replace the chord midpoint center with a robust circle fit to the limb crossings.
    """


class Aspect(UserOptionConfigured[AspectOptions], AspectOptions, AttributePrinting):
    """
    This class owns the state of the aspect pipeline and drives its stages for each frame.

    Load a frame with :meth:`load_frame`, process it with :meth:`run` (or :meth:`fiducial_run` to skip the disk
    search), and retrieve the products with the accessor methods.  One instance must not be used from multiple
    threads at once.
    """

    def __init__(self, options: AspectOptions | None = None) -> None:
        """
        :param options: The options configuring this class
        """

        super().__init__(AspectOptions, options=options)

        self._frame: AspectFrame | None = None
        self._state: AspectCode = AspectCode.STALE_DATA

        # products of the most recent run
        self._intensity_range: IntensityRange | None = None
        self._crossings: DOUBLE_ARRAY | None = None
        self._slopes: DOUBLE_ARRAY | None = None
        self._pixel_center: DOUBLE_ARRAY | None = None
        self._pixel_error: DOUBLE_ARRAY | None = None
        self._region: RegionOfInterest | None = None
        self._fiducials: FiducialFinderOut | None = None
        self._identification: FiducialIdentifierOut | None = None
        self._mapping: PixelScreenMapping | None = None

        # carried between frames to seed the tracking search
        self._track_center: DOUBLE_ARRAY = np.array([-1.0, -1.0])
        self._track_region: RegionOfInterest | None = None

    @property
    def state(self) -> AspectCode:
        """
        The current state of the pipeline
        """
        return self._state

    @property
    def frame(self) -> AspectFrame | None:
        """
        The currently loaded frame
        """
        return self._frame

    # ------------------------------------------------------------------------------------------------------------------
    # component configuration

    @property
    def center_finder(self) -> CenterFinder:
        """
        A :class:`.CenterFinder` configured from the current settings
        """

        limb_options = LimbCrossingDetectorOptions(limb_threshold=self.limb_threshold,
                                                   disk_threshold=self.disk_threshold,
                                                   min_limb_width=self.min_limb_width,
                                                   limb_fit_width=self.limb_fit_width,
                                                   solar_radius=self.solar_radius)

        return CenterFinder(CenterFinderOptions(limb_crossing_options=limb_options,
                                                num_chords_searching=self.num_chords_searching,
                                                num_chords_operating=self.num_chords_operating,
                                                refine_with_circle_fit=self.refine_center_with_circle_fit))

    @property
    def fiducial_finder(self) -> FiducialFinder:
        """
        A :class:`.FiducialFinder` configured from the current settings
        """

        return FiducialFinder(FiducialFinderOptions(threshold=self.fiducial_threshold,
                                                    fiducial_length=self.fiducial_length,
                                                    fiducial_width=self.fiducial_width,
                                                    max_fiducials=self.num_fiducials))

    @property
    def fiducial_identifier(self) -> FiducialIdentifier:
        """
        A :class:`.FiducialIdentifier` configured from the current settings
        """

        return FiducialIdentifier(FiducialIdentifierOptions(spacing=self.fiducial_spacing,
                                                            spacing_tolerance=self.fiducial_spacing_tol,
                                                            twist=self.fiducial_twist))

    # ------------------------------------------------------------------------------------------------------------------
    # pipeline

    def load_frame(self, frame: ARRAY_LIKE_2D | None) -> AspectCode:
        """
        Load a new frame to be processed.

        An empty frame (or ``None``) sets the state to :attr:`.AspectCode.FRAME_EMPTY`.  Otherwise the frame is stored
        (converted to an :class:`.AspectFrame` if needed) and the state is reset to :attr:`.AspectCode.NO_ERROR`.  No
        products are available until the frame is processed.

        :param frame: the 2D frame to process
        :return: the new state
        :raises ValueError: if the frame is not 2 dimensional
        """

        self._clear_products()

        if frame is None or np.size(frame) == 0:
            self._frame = None
            return self._fail(AspectCode.FRAME_EMPTY)

        self._frame = frame if isinstance(frame, AspectFrame) else AspectFrame(frame)
        self._state = AspectCode.NO_ERROR

        return self._state

    def run(self) -> AspectCode:
        """
        Process the loaded frame through the full pipeline.

        :return: the resulting state
        """

        return self._process(find_center=True)

    def fiducial_run(self) -> AspectCode:
        """
        Process the loaded frame without searching for the disk.

        The whole frame is used as the region of interest (with offset (0, 0)) and no limb crossings or center are
        computed.

        :return: the resulting state
        """

        return self._process(find_center=False)

    def _process(self, find_center: bool) -> AspectCode:
        """
        Run the pipeline stages, stopping at the first failure.
        """

        self._clear_products()

        if self._frame is None:
            return self._fail(AspectCode.FRAME_EMPTY)

        frame = self._frame

        code = self._check_intensity_range(frame)
        if code is not None:
            return self._fail(code)

        if find_center:
            code = self._find_center(frame)
            if code is not None:
                return self._fail(code)

            region = self._crop_solar_image(frame)
        else:
            region = RegionOfInterest.full_frame(frame.shape)

        self._region = region
        self._track_region = region

        code = self._check_solar_image(frame, region)
        if code is not None:
            return self._fail(code)

        code = self._find_fiducials(frame, region)
        if code is not None:
            return self._fail(code)

        code = self._identify_fiducials()
        if code is not None:
            return self._fail(code)

        code = self._find_mapping()
        if code is not None:
            return self._fail(code)

        self._state = AspectCode.NO_ERROR

        return self._state

    def _fail(self, code: AspectCode) -> AspectCode:
        """
        Set and log a failure state.
        """

        _LOGGER.debug(f'Aspect pipeline stopped with {code.name}')

        self._state = code

        return code

    def _clear_products(self) -> None:
        """
        Forget all of the products of the previous run.
        """

        self._intensity_range = None
        self._crossings = None
        self._slopes = None
        self._pixel_center = None
        self._pixel_error = None
        self._region = None
        self._fiducials = None
        self._identification = None
        self._mapping = None

    def _check_intensity_range(self, frame: AspectFrame) -> AspectCode | None:
        """
        Compute the trimmed intensity range and check that it is usable.
        """

        self._intensity_range = percentile_min_max(frame)

        minimum, maximum = self._intensity_range

        if minimum >= maximum:
            return AspectCode.MIN_MAX_BAD
        elif maximum - minimum < MIN_DYNAMIC_RANGE:
            return AspectCode.DYNAMIC_RANGE_LOW

        return None

    def _tracking_region(self, frame: AspectFrame) -> RegionOfInterest | None:
        """
        Return the previous region of interest if the disk is being tracked, otherwise None.
        """

        center = self._track_center

        if (not np.isfinite(center).all() or center[0] < 0 or center[0] >= frame.width or
                center[1] < 0 or center[1] >= frame.height):
            return None

        region = self._track_region

        if region is None or region.empty or not region.fits_in(frame.shape):
            return None

        return region

    def _find_center(self, frame: AspectFrame) -> AspectCode | None:
        """
        Find the center of the disk and check it.
        """

        assert self._intensity_range is not None

        result = self.center_finder(frame, self._intensity_range.minimum, self._intensity_range.maximum,
                                    self._tracking_region(frame))

        self._crossings = result.crossings
        self._slopes = result.slopes

        code = None

        if result.crossings.shape[0] == 0:
            code = AspectCode.NO_LIMB_CROSSINGS
        elif result.crossings.shape[0] < MIN_LIMB_CROSSINGS:
            code = AspectCode.FEW_LIMB_CROSSINGS
        elif (not np.isfinite(result.center).all() or result.center[0] < 0 or result.center[0] >= frame.width or
              result.center[1] < 0 or result.center[1] >= frame.height):
            code = AspectCode.CENTER_OUT_OF_BOUNDS
        elif not np.isfinite(result.error).all() or (result.error > self.error_limit).any():
            code = AspectCode.CENTER_ERROR_LARGE

        if code is not None:
            self._track_center = np.array([-1.0, -1.0])
            return code

        self._pixel_center = result.center
        self._pixel_error = result.error
        self._track_center = result.center.copy()

        _LOGGER.debug(f'Found the center at {result.center} with error {result.error} from '
                      f'{result.crossings.shape[0]} crossings ({"search" if result.searched else "tracking"})')

        return None

    def _crop_solar_image(self, frame: AspectFrame) -> RegionOfInterest:
        """
        Cut the region of interest around the center, clipped to the frame.
        """

        assert self._pixel_center is not None

        half_size = int(self.solar_radius * (1 + self.radius_margin))

        center_x, center_y = self._pixel_center

        rows = safe_range(int(center_y - half_size), int(center_y + half_size), frame.height)
        cols = safe_range(int(center_x - half_size), int(center_x + half_size), frame.width)

        return RegionOfInterest(rows.start, cols.start, max(rows.stop - rows.start, 0), max(cols.stop - cols.start, 0))

    def _check_solar_image(self, frame: AspectFrame, region: RegionOfInterest) -> AspectCode | None:
        """
        Check that the region of interest is usable.
        """

        minimum_size = int(self.fiducial_spacing) + 2 * self.fiducial_length

        if region.empty:
            return AspectCode.SOLAR_IMAGE_EMPTY
        elif region.width < minimum_size or region.height < minimum_size:
            return AspectCode.SOLAR_IMAGE_SMALL
        elif not region.fits_in(frame.shape):
            return AspectCode.SOLAR_IMAGE_OFFSET_OUT_OF_BOUNDS

        return None

    def _find_fiducials(self, frame: AspectFrame, region: RegionOfInterest) -> AspectCode | None:
        """
        Find the fiducials in the region of interest.
        """

        assert self._intensity_range is not None

        self._fiducials = self.fiducial_finder(frame, region, self._intensity_range.maximum)

        found = self._fiducials.centroids.shape[0]

        _LOGGER.debug(f'Found {found} fiducials')

        if found == 0:
            return AspectCode.NO_FIDUCIALS
        elif found < MIN_FIDUCIALS:
            return AspectCode.FEW_FIDUCIALS

        return None

    def _identify_fiducials(self) -> AspectCode | None:
        """
        Identify the lattice position of the fiducials.
        """

        assert self._fiducials is not None

        self._identification = self.fiducial_identifier(self._fiducials.centroids)

        valid = len(self._identification.valid)

        _LOGGER.debug(f'Identified {valid} fiducials')

        if valid == 0:
            return AspectCode.NO_IDS
        elif valid < MIN_FIDUCIALS:
            return AspectCode.FEW_IDS

        return None

    def _find_mapping(self) -> AspectCode | None:
        """
        Fit the pixel to screen mapping and check its conditioning.
        """

        assert self._fiducials is not None and self._identification is not None

        self._mapping = fit_mapping(self._fiducials.centroids, self._identification.ids)

        if not self._mapping.finite or max(self._mapping.condition_numbers) > self.mapping_condition_limit:
            _LOGGER.debug(f'Mapping condition numbers {self._mapping.condition_numbers}')
            return AspectCode.MAPPING_ILL_CONDITIONED

        return None

    # ------------------------------------------------------------------------------------------------------------------
    # accessors

    def _require(self, threshold: AspectCode, product: Any, description: str) -> Any:
        """
        Return a product if the state is better than the threshold and the product was computed for this frame.

        :raises AspectStateError: if the product is not available
        """

        if self._state >= threshold:
            raise AspectStateError(self._state, description)

        if product is None:
            raise AspectStateError(AspectCode.STALE_DATA, description)

        return product

    def get_pixel_min_max(self) -> IntensityRange:
        """
        Return the trimmed minimum and maximum of the frame.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.FRAME_EMPTY`
        """

        return self._require(AspectCode.FRAME_EMPTY, self._intensity_range, 'The pixel minimum and maximum')

    def get_pixel_crossings(self) -> DOUBLE_ARRAY:
        """
        Return the nx2 array of (x, y) limb crossings used to find the center.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.LIMB_ERROR`
        """

        return self._require(AspectCode.LIMB_ERROR, self._crossings, 'The limb crossings').copy()

    def report_focus(self) -> DOUBLE_ARRAY:
        """
        Report the fitted edge slopes of the limb crossings, sharpest first.

        Sharper limbs (larger slopes) indicate better focus.  The report is also logged at the INFO level.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.LIMB_ERROR`
        """

        slopes = np.sort(self._require(AspectCode.LIMB_ERROR, self._slopes, 'The focus report'))[::-1]

        _LOGGER.info('Focus report: ' + ' '.join(f'{slope:.3f}' for slope in slopes))

        return slopes

    def get_pixel_center(self) -> DOUBLE_ARRAY:
        """
        Return the (x, y) pixel center of the solar disk.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.CENTER_ERROR`
        """

        return self._require(AspectCode.CENTER_ERROR, self._pixel_center, 'The pixel center').copy()

    def get_pixel_error(self) -> DOUBLE_ARRAY:
        """
        Return the (x, y) standard deviation of the chord midpoints.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.CENTER_ERROR`
        """

        return self._require(AspectCode.CENTER_ERROR, self._pixel_error, 'The pixel error').copy()

    def get_roi(self) -> RegionOfInterest:
        """
        Return the region of interest searched for fiducials.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.SOLAR_IMAGE_ERROR`
        """

        return self._require(AspectCode.SOLAR_IMAGE_ERROR, self._region, 'The region of interest')

    def get_pixel_fiducials(self) -> DOUBLE_ARRAY:
        """
        Return the nx2 array of (x, y) fiducial pixel locations.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.FIDUCIAL_ERROR`
        """

        fiducials = self._require(AspectCode.FIDUCIAL_ERROR, self._fiducials, 'The pixel fiducials')

        return fiducials.centroids.copy()

    def get_fiducial_pairs(self) -> tuple[list[tuple[int, int]], list[tuple[int, int]]]:
        """
        Return the row pairs and column pairs of fiducial indices.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.ID_ERROR`
        """

        identification = self._require(AspectCode.ID_ERROR, self._identification, 'The fiducial pairs')

        return list(identification.row_pairs), list(identification.col_pairs)

    def get_fiducial_ids(self) -> list[FiducialID]:
        """
        Return the identity of each fiducial in the order of :meth:`get_pixel_fiducials`.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.ID_ERROR`
        """

        return list(self._require(AspectCode.ID_ERROR, self._identification, 'The fiducial identities').ids)

    def get_mapping(self) -> list[float]:
        """
        Return the mapping as ``[x_intercept, x_slope, y_intercept, y_slope]``.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.MAPPING_ERROR`
        """

        return self._require(AspectCode.MAPPING_ERROR, self._mapping, 'The mapping').coefficients

    def get_screen_center(self) -> DOUBLE_ARRAY:
        """
        Return the (x, y) screen coordinates of the center of the solar disk.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.MAPPING_ERROR` and the center was
                                  found for this frame
        """

        mapping = self._require(AspectCode.MAPPING_ERROR, self._mapping, 'The screen center')
        center = self._require(AspectCode.MAPPING_ERROR, self._pixel_center, 'The screen center')

        return mapping.pixel_to_screen(center)

    def get_screen_fiducials(self) -> DOUBLE_ARRAY:
        """
        Return the nx2 array of (x, y) screen coordinates of every fiducial.

        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.MAPPING_ERROR`
        """

        mapping = self._require(AspectCode.MAPPING_ERROR, self._mapping, 'The screen fiducials')

        assert self._fiducials is not None

        return mapping.pixel_to_screen(self._fiducials.centroids)

    def pixel_to_screen(self, points: ARRAY_LIKE) -> DOUBLE_ARRAY:
        """
        Map pixel locations to screen coordinates with the current mapping.

        :param points: a single (x, y) pixel location or an nx2 array of them
        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.MAPPING_ERROR`
        """

        return self._require(AspectCode.MAPPING_ERROR, self._mapping, 'The mapping').pixel_to_screen(points)

    def screen_to_pixel(self, points: ARRAY_LIKE) -> DOUBLE_ARRAY:
        """
        Map screen coordinates to pixel locations with the current mapping.

        :param points: a single (x, y) screen location or an nx2 array of them
        :raises AspectStateError: unless the state is better than :attr:`.AspectCode.MAPPING_ERROR`
        """

        return self._require(AspectCode.MAPPING_ERROR, self._mapping, 'The mapping').screen_to_pixel(points)

    # ------------------------------------------------------------------------------------------------------------------
    # typed configuration

    def get_float(self, variable: AspectFloat) -> float:
        """
        Return the value of a floating point parameter.

        :param variable: the parameter to get
        :raises ValueError: if the variable is not an :class:`.AspectFloat`
        """

        if not isinstance(variable, AspectFloat):
            raise ValueError(f'{variable!r} is not a floating point aspect parameter')

        return float(getattr(self, variable.value))

    def set_float(self, variable: AspectFloat, value: float) -> None:
        """
        Set the value of a floating point parameter.

        :param variable: the parameter to set
        :param value: the new value
        :raises ValueError: if the variable is not an :class:`.AspectFloat`
        """

        if not isinstance(variable, AspectFloat):
            raise ValueError(f'{variable!r} is not a floating point aspect parameter')

        setattr(self, variable.value, float(value))

    def get_integer(self, variable: AspectInt) -> int:
        """
        Return the value of an integer parameter.

        :param variable: the parameter to get
        :raises ValueError: if the variable is not an :class:`.AspectInt`
        """

        if not isinstance(variable, AspectInt):
            raise ValueError(f'{variable!r} is not an integer aspect parameter')

        return int(getattr(self, variable.value))

    def set_integer(self, variable: AspectInt, value: int) -> None:
        """
        Set the value of an integer parameter.

        :param variable: the parameter to set
        :param value: the new value
        :raises ValueError: if the variable is not an :class:`.AspectInt`
        """

        if not isinstance(variable, AspectInt):
            raise ValueError(f'{variable!r} is not an integer aspect parameter')

        setattr(self, variable.value, int(value))
