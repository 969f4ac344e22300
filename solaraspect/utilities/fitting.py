# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the small geometry and estimation helpers used throughout the aspect pipeline.

These are all pure functions without state:

* :func:`linear_fit` fits a line by solving the 2x2 normal equations in closed form,
* :func:`circle_fit` performs an algebraic circle fit with iterative Cook's distance outlier rejection,
* :func:`euclidean` computes point distances,
* :func:`rotate` rotates 2D points about the origin,
* :func:`mode` returns the most frequent value(s) of a sequence,
* :func:`safe_range` clips an index range to the valid indices of an axis.
"""

from collections import Counter

from typing import NamedTuple, Hashable, Iterable, TypeVar

import numpy as np
from numpy.typing import NDArray

from scipy.linalg import cho_factor, cho_solve, LinAlgError

from solaraspect._typing import ARRAY_LIKE, DOUBLE_ARRAY


HashableT = TypeVar("HashableT", bound=Hashable)


class LinearFitOut(NamedTuple):
    """
    The result of :func:`linear_fit`.
    """

    intercept: float
    """
    The fitted value of the line at x=0
    """

    slope: float
    """
    The fitted slope of the line
    """

    condition_number: float
    """
    The ratio of the largest to smallest eigenvalue of the normal equation matrix.

    This is infinite if the normal equations are singular.
    """


class CircleFitOut(NamedTuple):
    """
    The result of :func:`circle_fit`.
    """

    center: DOUBLE_ARRAY
    """
    The (x, y) center of the fitted circle
    """

    radius: float
    """
    The radius of the fitted circle
    """

    inliers: NDArray[np.bool_]
    """
    A boolean mask into the input points which is True for the points retained in the final fit
    """


def linear_fit(x: ARRAY_LIKE, y: ARRAY_LIKE) -> LinearFitOut:
    r"""
    This function fits a line :math:`y = a + bx` to data in a linear least squares sense.

    The normal equations

    .. math::
        \left[\begin{array}{cc}\sum x^2 & \sum x \\ \sum x & N\end{array}\right]
        \left[\begin{array}{c}b \\ a\end{array}\right] =
        \left[\begin{array}{c}\sum xy \\ \sum y\end{array}\right]

    are formed directly and solved with a Cholesky decomposition.  If the system is singular (fewer than 2 distinct
    x values) the intercept and slope are returned as NaN and the condition number as infinity.

    >>> from solaraspect.utilities.fitting import linear_fit
    >>> linear_fit([0, 1, 2], [1, 3, 5])
    LinearFitOut(intercept=1.0, slope=2.0, condition_number=...)

    :param x: The independent samples
    :param y: The dependent samples
    :return: The intercept, slope, and normal equation condition number as a :class:`LinearFitOut`
    :raises ValueError: If x and y are not the same length
    """

    x = np.asarray(x, dtype=np.float64).ravel()
    y = np.asarray(y, dtype=np.float64).ravel()

    if x.size != y.size:
        raise ValueError('x and y must be the same length for linear_fit')

    normal_matrix = np.array([[(x * x).sum(), x.sum()],
                              [x.sum(), float(x.size)]])
    rhs = np.array([(x * y).sum(), y.sum()])

    eigenvalues = np.abs(np.linalg.eigvalsh(normal_matrix))
    condition_number = float(eigenvalues.max() / eigenvalues.min()) if eigenvalues.min() > 0 else np.inf

    try:
        solution = cho_solve(cho_factor(normal_matrix), rhs)
    except (LinAlgError, ValueError):
        return LinearFitOut(np.nan, np.nan, np.inf)

    return LinearFitOut(float(solution[1]), float(solution[0]), condition_number)


def _algebraic_circle(points: DOUBLE_ARRAY) -> tuple[DOUBLE_ARRAY, NDArray]:
    """
    Solve the linear circle equation for the coefficients and return them along with the design matrix.

    :param points: The nx2 points to fit
    :return: the 3 coefficients (a, b, c) and the nx3 design matrix
    """

    design = np.column_stack([points, np.ones(points.shape[0])])
    rhs = (points * points).sum(axis=1)

    coefficients = cho_solve(cho_factor(design.T @ design), design.T @ rhs)

    return coefficients, design


def circle_fit(points: ARRAY_LIKE, min_points: int = 5, residual_tolerance: float = 1e-9) -> CircleFitOut:
    r"""
    This function fits a circle to 2D points with iterative outlier rejection based on Cook's distance.

    The circle is fit algebraically by solving

    .. math::
        x^2 + y^2 = ax + by + c

    for :math:`a, b, c` in a linear least squares sense.  The center is then :math:`(a/2, b/2)` and the radius
    :math:`\sqrt{c + x_c^2 + y_c^2}`.

    After each fit, the Cook's distance of each point is computed as

    .. math::
        D_k = \frac{r_k^2 h_{kk}}{(1 - h_{kk})^2}

    where :math:`r_k` is the algebraic residual of the point and :math:`h_{kk}` is the diagonal of the hat matrix
    :math:`\mathbf{B}(\mathbf{B}^T\mathbf{B})^{-1}\mathbf{B}^T`.  Points with a Cook's distance larger than the mean
    squared residual are discarded and the fit is repeated.  The iteration stops when no points are discarded or when
    discarding would leave fewer than ``min_points`` points, in which case the last fit is returned.  It also stops
    once the RMS algebraic residual drops below ``residual_tolerance`` times the mean squared radius of the points
    about the origin (the remaining points are consistent to numerical precision).

    :param points: The nx2 array of (x, y) points to fit
    :param min_points: The minimum number of points that must remain for another rejection iteration
    :param residual_tolerance: The relative RMS residual below which the points are considered to lie on the circle
    :return: The fitted center, radius, and the mask of points used in the final fit
    :raises ValueError: If fewer than 3 points are provided
    """

    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)

    if points.shape[0] < 3:
        raise ValueError('At least 3 points are required to fit a circle')

    inliers = np.ones(points.shape[0], dtype=bool)

    while True:
        current = points[inliers]

        coefficients, design = _algebraic_circle(current)

        residuals = (current * current).sum(axis=1) - design @ coefficients
        leverage = np.einsum('ij,jk,ik->i', design, np.linalg.inv(design.T @ design), design)

        with np.errstate(divide='ignore', invalid='ignore'):
            cook = residuals ** 2 * leverage / (1 - leverage) ** 2

        mean_squared_residual = (residuals ** 2).mean()

        if np.sqrt(mean_squared_residual) <= residual_tolerance * (current * current).sum(axis=1).mean():
            break

        keep = ~(cook > mean_squared_residual)

        if keep.all() or keep.sum() < min_points:
            break

        inliers[np.flatnonzero(inliers)[~keep]] = False

    center = coefficients[:2] / 2
    radius = float(np.sqrt(coefficients[2] + (center ** 2).sum()))

    return CircleFitOut(center, radius, inliers)


def euclidean(first: ARRAY_LIKE, second: ARRAY_LIKE | None = None) -> NDArray[np.float64] | float:
    """
    Compute the Euclidean length of vectors (or the distance between two sets of points).

    The vectors are expected along the last axis so an nx2 array of points returns a length n array of distances.

    :param first: the vectors (or first set of points)
    :param second: the optional second set of points to compute the distance to
    :return: the length(s)
    """

    delta = np.asarray(first, dtype=np.float64)
    if second is not None:
        delta = delta - np.asarray(second, dtype=np.float64)

    out = np.sqrt((delta * delta).sum(axis=-1))

    if np.ndim(out) == 0:
        return float(out)
    return out


def rotate(angle: float, points: ARRAY_LIKE) -> DOUBLE_ARRAY:
    """
    Rotate 2D points counter clockwise about the origin.

    :param angle: The rotation angle in degrees
    :param points: The nx2 array of (x, y) points to rotate (a single point of length 2 is also accepted)
    :return: The rotated points in the same shape as the input
    """

    array_points = np.asarray(points, dtype=np.float64)

    c = np.cos(np.deg2rad(angle))
    s = np.sin(np.deg2rad(angle))

    rotation = np.array([[c, -s],
                         [s, c]])

    return (rotation @ array_points.reshape(-1, 2).T).T.reshape(array_points.shape)


def mode(values: Iterable[HashableT]) -> list[HashableT]:
    """
    Return the most frequent value(s) in a sequence.

    If a single value occurs most often a list containing only that value is returned.  If multiple values tie for
    the most occurrences all of them are returned (in order of first appearance) and if the sequence is empty an empty
    list is returned.  Callers use the length of the output to distinguish a unique mode from a tie.

    >>> from solaraspect.utilities.fitting import mode
    >>> mode([1, 2, 2, 3])
    [2]
    >>> mode([1, 1, 2, 2])
    [1, 2]

    :param values: The values to find the mode of
    :return: The list of modal values
    """

    counts = Counter(values)

    if not counts:
        return []

    most = max(counts.values())

    return [value for value, count in counts.items() if count == most]


def safe_range(start: int, stop: int, size: int) -> slice:
    """
    Clip the half open range [start, stop) to the valid indices of an axis of length size.

    :param start: the requested first index
    :param stop: the requested end index (exclusive)
    :param size: the length of the axis
    :return: the clipped range as a slice
    """

    return slice(max(int(start), 0), min(int(stop), size))
