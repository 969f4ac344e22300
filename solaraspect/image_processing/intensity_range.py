# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the trimmed intensity range of a frame.

The extreme values of a solar frame are dominated by hot pixels and dead pixels, so the pipeline works with the
0.5 and 99.5 percentiles of the 8 bit histogram instead of the true minimum and maximum.
"""

from typing import NamedTuple

import numpy as np
import cv2

from solaraspect._typing import ARRAY_LIKE_2D


LOW_FRACTION: float = 0.005
"""
The fraction of the samples that must be at or below the reported minimum.
"""

HIGH_FRACTION: float = 0.995
"""
The fraction of the samples that must be at or below the reported maximum.
"""


class IntensityRange(NamedTuple):
    """
    The trimmed minimum and maximum of a frame in digital numbers.
    """

    minimum: int
    maximum: int


def percentile_min_max(frame: ARRAY_LIKE_2D) -> IntensityRange:
    """
    Compute the trimmed minimum and maximum of an 8 bit frame from its 256 bin histogram.

    The minimum is the first bin at which the cumulative count reaches 0.5% of the samples and the maximum is the first
    bin at which it reaches 99.5% of the samples (truncated to a whole number of samples).

    >>> import numpy as np
    >>> from solaraspect.image_processing.intensity_range import percentile_min_max
    >>> percentile_min_max(np.full((10, 20), 7, dtype=np.uint8))
    IntensityRange(minimum=7, maximum=7)

    :param frame: The 2D uint8 frame
    :return: The trimmed minimum and maximum
    :raises ValueError: if the frame is empty
    """

    frame = np.ascontiguousarray(frame, dtype=np.uint8)

    if frame.size == 0:
        raise ValueError('Cannot compute the intensity range of an empty frame')

    histogram = cv2.calcHist([frame], [0], None, [256], [0, 256]).ravel()

    total = np.cumsum(histogram, dtype=np.float64)

    count = frame.size

    minimum = int(np.searchsorted(total, LOW_FRACTION * count, side='left'))
    maximum = int(np.searchsorted(total, float(int(HIGH_FRACTION * count)), side='left'))

    return IntensityRange(min(minimum, 255), min(maximum, 255))
