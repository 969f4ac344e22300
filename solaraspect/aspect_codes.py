# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module defines the state codes and parameter identifiers of the aspect pipeline.

The pipeline state is an :class:`AspectCode`, an integer enumeration that is totally ordered from best
(:attr:`AspectCode.NO_ERROR`) to worst (:attr:`AspectCode.STALE_DATA`).  Each processing stage that fails sets a
specific code and all of the later stages are skipped.  The ``*_ERROR`` members are never the outcome of a run but act
as thresholds: a data product is only available if the current state compares less than the threshold that guards it.
For instance, the pixel center is available whenever ``state < AspectCode.CENTER_ERROR``, which is true for every
failure that happens after the center was found (fiducial failures, identification failures, ...).

The :class:`AspectFloat` and :class:`AspectInt` enumerations identify the tunable parameters of the
:class:`.Aspect` class for the typed :meth:`.Aspect.get_float`/:meth:`.Aspect.set_float` and
:meth:`.Aspect.get_integer`/:meth:`.Aspect.set_integer` interface.  The value of each member is the name of the
attribute it controls.
"""

from enum import Enum, IntEnum, auto


class AspectCode(IntEnum):
    """
    The ordered state of the aspect pipeline.  Smaller values are better.
    """

    NO_ERROR = 0
    """
    Every stage of the pipeline succeeded.
    """

    MAPPING_ERROR = auto()
    """
    Threshold guarding the mapping products.
    """

    MAPPING_ILL_CONDITIONED = auto()
    """
    The pixel to screen mapping was computed but its normal equations are ill conditioned (or it is not finite).
    """

    ID_ERROR = auto()
    """
    Threshold guarding the fiducial pair and identity products.
    """

    FEW_IDS = auto()
    """
    Fewer than 3 fiducials were identified on both axes.
    """

    NO_IDS = auto()
    """
    No fiducials were identified on both axes.
    """

    FIDUCIAL_ERROR = auto()
    """
    Threshold guarding the fiducial pixel positions.
    """

    FEW_FIDUCIALS = auto()
    """
    Fewer than 3 fiducials were found in the solar image.
    """

    NO_FIDUCIALS = auto()
    """
    No fiducials were found in the solar image.
    """

    SOLAR_IMAGE_ERROR = auto()
    """
    Threshold guarding the region of interest.
    """

    SOLAR_IMAGE_OFFSET_OUT_OF_BOUNDS = auto()
    """
    The region of interest does not fit inside of the frame.
    """

    SOLAR_IMAGE_SMALL = auto()
    """
    The region of interest is too small to contain a pair of fiducials.
    """

    SOLAR_IMAGE_EMPTY = auto()
    """
    The region of interest is empty.
    """

    CENTER_ERROR = auto()
    """
    Threshold guarding the pixel center and pixel error.
    """

    CENTER_OUT_OF_BOUNDS = auto()
    """
    The center is not finite or lies outside of the frame.
    """

    CENTER_ERROR_LARGE = auto()
    """
    The scatter of the chord midpoints exceeds the error limit.
    """

    LIMB_ERROR = auto()
    """
    Threshold guarding the limb crossings and focus samples.
    """

    FEW_LIMB_CROSSINGS = auto()
    """
    Fewer than 4 limb crossings were found.
    """

    NO_LIMB_CROSSINGS = auto()
    """
    No limb crossings were found.
    """

    DYNAMIC_RANGE_LOW = auto()
    """
    The trimmed intensity range of the frame is too small to process.
    """

    MIN_MAX_BAD = auto()
    """
    The trimmed minimum of the frame is not less than the trimmed maximum.
    """

    FRAME_EMPTY = auto()
    """
    No frame (or an empty frame) is loaded.
    """

    STALE_DATA = auto()
    """
    Nothing has been computed for the loaded frame.
    """


class AspectFloat(Enum):
    """
    Identifiers of the floating point parameters of :class:`.Aspect`.
    """

    LIMB_THRESHOLD = "limb_threshold"
    DISK_THRESHOLD = "disk_threshold"
    ERROR_LIMIT = "error_limit"
    RADIUS_MARGIN = "radius_margin"
    FIDUCIAL_THRESHOLD = "fiducial_threshold"
    FIDUCIAL_SPACING = "fiducial_spacing"
    FIDUCIAL_SPACING_TOL = "fiducial_spacing_tol"
    FIDUCIAL_TWIST = "fiducial_twist"
    MAPPING_CONDITION_LIMIT = "mapping_condition_limit"


class AspectInt(Enum):
    """
    Identifiers of the integer parameters of :class:`.Aspect`.
    """

    NUM_CHORDS_SEARCHING = "num_chords_searching"
    NUM_CHORDS_OPERATING = "num_chords_operating"
    MIN_LIMB_WIDTH = "min_limb_width"
    LIMB_FIT_WIDTH = "limb_fit_width"
    SOLAR_RADIUS = "solar_radius"
    FIDUCIAL_LENGTH = "fiducial_length"
    FIDUCIAL_WIDTH = "fiducial_width"
    NUM_FIDUCIALS = "num_fiducials"


class AspectStateError(ValueError):
    """
    Raised when a data product is requested that the current pipeline state does not provide.

    The blocking state is stored in the :attr:`code` attribute.
    """

    def __init__(self, code: AspectCode, product: str):
        """
        :param code: the current state of the pipeline
        :param product: a description of the requested product for the message
        """

        self.code: AspectCode = code
        """
        The pipeline state that prevented the product from being returned
        """

        super().__init__(f'{product} is not available with the pipeline in state {code.name}')
