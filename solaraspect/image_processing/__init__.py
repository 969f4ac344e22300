# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This package provides the image processing steps of the aspect pipeline.

The functionality provided in this package locates things in a raw 8 bit frame: the trimmed intensity range of the
frame (:func:`.percentile_min_max`), the limb crossings along a single chord (:class:`.LimbCrossingDetector`), the
center of the solar disk (:class:`.CenterFinder`), and the fiducial marks inside of the solar image
(:class:`.FiducialFinder`, built on :func:`.fiducial_kernel`, :func:`.cv2_correlator_2d`, and
:func:`.local_maxima`).

A general user will usually not directly interact with the classes and functions in this package and instead will rely
on the :class:`.Aspect` class to interact for them.
"""

import solaraspect.image_processing.center_finder as center_finder
import solaraspect.image_processing.correlators as correlators
import solaraspect.image_processing.fiducial_finder as fiducial_finder
import solaraspect.image_processing.intensity_range as intensity_range
import solaraspect.image_processing.kernels as kernels
import solaraspect.image_processing.limb_crossings as limb_crossings

from solaraspect.image_processing.center_finder import CenterFinder, CenterFinderOptions, CenterFinderOut
from solaraspect.image_processing.correlators import cv2_correlator_2d
from solaraspect.image_processing.fiducial_finder import FiducialFinder, FiducialFinderOptions, FiducialFinderOut
from solaraspect.image_processing.intensity_range import percentile_min_max, IntensityRange
from solaraspect.image_processing.kernels import fiducial_kernel
from solaraspect.image_processing.limb_crossings import (LimbCrossingDetector, LimbCrossingDetectorOptions,
                                                         LimbCrossingOut, LimbCrossingStatus)
from solaraspect.image_processing.local_maxima import local_maxima

__all__ = ["CenterFinder", "CenterFinderOptions", "CenterFinderOut",
           "cv2_correlator_2d",
           "FiducialFinder", "FiducialFinderOptions", "FiducialFinderOut",
           "percentile_min_max", "IntensityRange",
           "fiducial_kernel",
           "LimbCrossingDetector", "LimbCrossingDetectorOptions", "LimbCrossingOut", "LimbCrossingStatus",
           "local_maxima"]
