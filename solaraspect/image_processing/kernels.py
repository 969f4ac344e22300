# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module builds the matched filter used to find the fiducial marks of the aspect mask.

The fiducials are small dark crosses etched into the mask in front of the sensor, so they appear as dark crosses on
the bright solar disk.  The kernel produced here is a square image of odd side containing a centered cross whose border
pixels are weighted -1 and whose immediately surrounding background pixels are weighted +1, with weights decaying
exponentially to 0 with the distance from the cross edge.  Correlating the solar image with this kernel therefore peaks
where a dark cross sits on a bright background.

Kernels only depend on the length and width of the fiducials so they are cached.
"""

from functools import lru_cache

import numpy as np
import cv2

from scipy.ndimage import distance_transform_edt

from solaraspect._typing import DOUBLE_ARRAY
from solaraspect.utilities.fitting import safe_range


KERNEL_EDGE: int = 1
"""
The number of background pixels between the ends of the cross arms and the edge of the kernel
"""

KERNEL_DECAY: float = 20
"""
The exponential decay rate of the kernel weights with the distance from the cross edge
"""


def kernel_side(fiducial_length: int) -> int:
    """
    Return the (odd) side length of the kernel for a fiducial arm length.

    :param fiducial_length: the length of the fiducial arms in pixels
    :return: the side of the square kernel in pixels
    """

    return 2 * (fiducial_length // 2 + KERNEL_EDGE) + 1


def cross_mask(fiducial_length: int, fiducial_width: int) -> np.ndarray:
    """
    Return the boolean mask of the cross shape inside of the kernel footprint.

    The arms span from ``KERNEL_EDGE`` to ``side - KERNEL_EDGE`` and are ``2*(fiducial_width//2) + 1`` pixels wide,
    centered on the middle row/column.

    :param fiducial_length: the length of the fiducial arms in pixels
    :param fiducial_width: the width of the fiducial arms in pixels
    :return: the side x side boolean mask which is True on the cross
    """

    side = kernel_side(fiducial_length)
    middle = side // 2

    length_range = safe_range(KERNEL_EDGE, side - KERNEL_EDGE, side)
    width_range = safe_range(middle - fiducial_width // 2, middle + fiducial_width // 2 + 1, side)

    shape = np.zeros((side, side), dtype=bool)

    shape[length_range, width_range] = True
    shape[width_range, length_range] = True

    return shape


@lru_cache(maxsize=16)
def _cached_kernel(fiducial_length: int, fiducial_width: int) -> np.ndarray:

    shape = cross_mask(fiducial_length, fiducial_width)

    # distance from each pixel to the closest pixel of the other class
    distance = np.where(shape, distance_transform_edt(shape), distance_transform_edt(~shape))

    sign = np.where(shape, 1.0, -1.0)

    kernel = sign * (-KERNEL_DECAY ** 2 / 2) * np.exp(-KERNEL_DECAY * distance)

    kernel = cv2.normalize(kernel, None, -1, 1, cv2.NORM_MINMAX).astype(np.float32)
    kernel.flags.writeable = False

    return kernel


def fiducial_kernel(fiducial_length: int, fiducial_width: int) -> np.ndarray:
    """
    Build the fiducial matched filter kernel.

    Each pixel of the kernel is assigned

    .. math::
        k = s\\left(-\\frac{d^2}{2}\\right)e^{-d\\rho}

    where :math:`s` is +1 on the cross and -1 on the background, :math:`d` is :attr:`KERNEL_DECAY` and :math:`\\rho` is
    the Euclidean distance to the closest pixel of the opposite class.  The result is min-max normalized to [-1, 1].

    The returned array is a read only, cached float32 array.  Copy it before modifying it.

    :param fiducial_length: the length of the fiducial arms in pixels
    :param fiducial_width: the width of the fiducial arms in pixels
    :return: the side x side float32 kernel
    :raises ValueError: if the length is less than 1 or the width is negative
    """

    if int(fiducial_length) < 1 or int(fiducial_width) < 0:
        raise ValueError(f'Invalid fiducial dimensions length={fiducial_length}, width={fiducial_width}')

    return _cached_kernel(int(fiducial_length), int(fiducial_width))
