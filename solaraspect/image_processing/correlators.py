# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the 2D correlation used to search the solar image for fiducials.
"""

from typing import cast

import numpy as np
from numpy.typing import NDArray

import cv2

from solaraspect._typing import DOUBLE_ARRAY


def cv2_correlator_2d(image: NDArray, template: NDArray, flag: int = cv2.TM_CCORR) -> DOUBLE_ARRAY:
    """
    This function performs a 2D cross correlation between ``image`` and ``template`` and returns the valid region of
    the correlation surface using the `OpenCV matchTemplate function
    <http://docs.opencv.org/3.1.0/d4/dc6/tutorial_py_template_matching.html>`_.

    The input ``image`` and ``template`` are first converted to single precision (as is required by matchTemplate) if
    they are not already a type matchTemplate accepts.

    Unlike a "same" correlation, no padding is applied.  The returned surface has shape
    ``image.shape - template.shape + 1`` and pixel ``(r, c)`` holds the correlation with the upper left corner of the
    template placed at ``(r, c)``, that is with the center of the template at ``(r + rows//2, c + cols//2)``.

    >>> import numpy
    >>> from solaraspect.image_processing.correlators import cv2_correlator_2d
    >>> example_image = numpy.random.randn(200, 200)
    >>> example_template = example_image[30:60, 45:60]
    >>> surf = cv2_correlator_2d(example_image, example_template, cv2.TM_CCOEFF_NORMED)
    >>> numpy.unravel_index(surf.argmax(), surf.shape)
    (30, 45)

    :param image: The image that the template is to be matched against
    :param template: the template that is to be matched against the image
    :param flag: A flag indicating the correlation coefficient to be calculated
    :return: The valid correlation surface as a float64 array
    :raises ValueError: if the template is larger than the image along either axis
    """

    if image.ndim != 2 or template.ndim != 2:
        raise ValueError('Both the image and the template must be 2 dimensional')

    if (image.shape[0] < template.shape[0]) or (image.shape[1] < template.shape[1]):
        raise ValueError(f'The template {template.shape} is larger than the image {image.shape}')

    valid_dtypes = (np.uint8, np.float32)

    if not any(np.issubdtype(image.dtype, vdtype) for vdtype in valid_dtypes):
        image = image.astype(np.float32)

    if image.dtype != template.dtype:
        image = image.astype(np.float32)
        template = template.astype(np.float32)

    return cast(DOUBLE_ARRAY, cv2.matchTemplate(np.ascontiguousarray(image), np.ascontiguousarray(template),
                                                flag).astype(np.float64))
