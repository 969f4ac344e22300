# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module includes a helper function for identifying strict local maxima inside of a 2d array.
"""

import numpy as np

from numpy.typing import NDArray

from solaraspect._typing import ARRAY_LIKE


def local_maxima(data_grid: ARRAY_LIKE, threshold: float = -np.inf) -> NDArray[np.bool_]:
    """
    This function returns a boolean mask selecting the strict local maxima of a 2d array that exceed a threshold.

    A local maximum is defined as any interior value that is strictly greater than the threshold and strictly greater
    than its 4 edge neighbors.  That is, given:

    .. code::

        +---+---+---+
        | 1 | 2 | 3 |
        +---+---+---+
        | 4 | 5 | 6 |
        +---+---+---+
        | 7 | 8 | 9 |
        +---+---+---+

    value 5 is a local maximum if and only if it is greater than values 2, 4, 6, and 8.  Pixels on the border of the
    array are never local maxima and plateaus (equal neighbors) never produce a maximum.

    >>> from solaraspect.image_processing.local_maxima import local_maxima
    >>> im = [[0, 1, 2, 20, 1],
    ...       [5, 2, 1, 3, 1],
    ...       [0, 1, 2, 10, 1],
    ...       [1, 2, -1, -2, -5]]
    >>> local_maxima(im)
    array([[False, False, False, False, False],
           [False, False, False, False, False],
           [False, False, False,  True, False],
           [False, False, False, False, False]])

    :param data_grid: The grid of values to search for local maxima
    :param threshold: The value the maxima must exceed
    :return: A 2d boolean array with `True` where the data_grid values are local maxima
    """

    array2d = np.atleast_2d(data_grid)

    test = np.zeros(array2d.shape, dtype=bool)

    if array2d.shape[0] < 3 or array2d.shape[1] < 3:
        return test

    center = array2d[1:-1, 1:-1]

    test[1:-1, 1:-1] = ((center > threshold) &
                        (center > array2d[1:-1, 2:]) &
                        (center > array2d[1:-1, :-2]) &
                        (center > array2d[2:, 1:-1]) &
                        (center > array2d[:-2, 1:-1]))

    return test
