# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the linear mapping between sensor pixels and instrument (screen) coordinates.

The mapping is fit independently on each axis from the identified fiducials:

.. math::
    x_s = a_x + b_x x_p \\qquad y_s = a_y + b_y y_p

where :math:`(x_p, y_p)` are the pixel locations of the fiducials and :math:`(x_s, y_s)` are the screen locations of
their lattice identities from :func:`.fiducial_id_to_screen`.  There is no coupling between the axes.
"""

from dataclasses import dataclass

from typing import Sequence

import numpy as np

from solaraspect.utilities.fitting import linear_fit

from solaraspect.fiducials.lattice import fiducial_id_to_screen
from solaraspect.fiducials.identification import FiducialID

from solaraspect._typing import ARRAY_LIKE, DOUBLE_ARRAY


@dataclass
class PixelScreenMapping:
    """
    An independent per axis affine mapping from pixel coordinates to screen coordinates.
    """

    x_intercept: float = np.nan
    """
    The screen x coordinate of pixel column 0
    """

    x_slope: float = np.nan
    """
    The screen x units per pixel column
    """

    y_intercept: float = np.nan
    """
    The screen y coordinate of pixel row 0
    """

    y_slope: float = np.nan
    """
    The screen y units per pixel row
    """

    condition_numbers: tuple[float, float] = (np.inf, np.inf)
    """
    The condition number of the x and y normal equation matrices used to fit the mapping
    """

    @property
    def coefficients(self) -> list[float]:
        """
        The mapping as ``[x_intercept, x_slope, y_intercept, y_slope]``
        """
        return [self.x_intercept, self.x_slope, self.y_intercept, self.y_slope]

    @property
    def finite(self) -> bool:
        """
        True if all four coefficients are finite
        """
        return bool(np.isfinite(self.coefficients).all())

    def pixel_to_screen(self, points: ARRAY_LIKE) -> DOUBLE_ARRAY:
        """
        Map pixel locations to screen coordinates.

        :param points: a single (x, y) pixel location or an nx2 array of them
        :return: the screen coordinates in the same shape as the input
        """

        pixels = np.asarray(points, dtype=np.float64)

        if pixels.shape[-1] != 2:
            raise ValueError(f'points must have 2 components along the last axis, not shape {pixels.shape}')

        out = np.empty_like(pixels)
        out[..., 0] = self.x_intercept + self.x_slope * pixels[..., 0]
        out[..., 1] = self.y_intercept + self.y_slope * pixels[..., 1]

        return out

    def screen_to_pixel(self, points: ARRAY_LIKE) -> DOUBLE_ARRAY:
        """
        Map screen coordinates back to pixel locations.

        This is the exact inverse of :meth:`pixel_to_screen`.

        :param points: a single (x, y) screen location or an nx2 array of them
        :return: the pixel locations in the same shape as the input
        """

        screen = np.asarray(points, dtype=np.float64)

        if screen.shape[-1] != 2:
            raise ValueError(f'points must have 2 components along the last axis, not shape {screen.shape}')

        out = np.empty_like(screen)

        with np.errstate(divide='ignore', invalid='ignore'):
            out[..., 0] = (screen[..., 0] - self.x_intercept) / self.x_slope
            out[..., 1] = (screen[..., 1] - self.y_intercept) / self.y_slope

        return out


def ids_to_screen(ids: Sequence[FiducialID]) -> DOUBLE_ARRAY:
    """
    Compute the screen locations of resolved fiducial identities.

    :param ids: the resolved identities
    :return: the nx2 array of (x, y) screen locations
    :raises ValueError: if any of the identities is not resolved
    """

    if not all(fid.resolved for fid in ids):
        raise ValueError('Only resolved fiducial identities have screen locations')

    return np.array([fiducial_id_to_screen(fid.row, fid.col) for fid in ids], dtype=np.float64).reshape(-1, 2)


def fit_mapping(pixels: ARRAY_LIKE, ids: Sequence[FiducialID]) -> PixelScreenMapping:
    """
    Fit the pixel to screen mapping from identified fiducials.

    Fiducials whose identity is not resolved on both axes are ignored.  If fewer than 2 distinct pixel locations remain
    along an axis, the coefficients for that axis are NaN and its condition number is infinite.

    :param pixels: the nx2 array of (x, y) pixel locations of the fiducials
    :param ids: the identity of each fiducial
    :return: the fitted mapping
    :raises ValueError: if the number of pixel locations and identities differ
    """

    pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)

    if pixels.shape[0] != len(ids):
        raise ValueError(f'{pixels.shape[0]} fiducial locations were provided with {len(ids)} identities')

    keep = [k for k, fid in enumerate(ids) if fid.resolved]

    screen = ids_to_screen([ids[k] for k in keep])
    used = pixels[np.array(keep, dtype=np.int64)]

    x_fit = linear_fit(used[:, 0], screen[:, 0])
    y_fit = linear_fit(used[:, 1], screen[:, 1])

    return PixelScreenMapping(x_fit.intercept, x_fit.slope, y_fit.intercept, y_fit.slope,
                              (x_fit.condition_number, y_fit.condition_number))
