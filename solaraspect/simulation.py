# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module renders synthetic aspect frames with a known disk and fiducial lattice.

The frames are used to exercise the pipeline without hardware.  The solar disk is a uniformly bright, anti-aliased
circle on a dim background and the fiducials are dark crosses whose pixel coverage is computed exactly from the
overlap of each arm (a rectangle) with each pixel, so sub-pixel positions are represented faithfully.

The fiducials are placed with :func:`fiducial_pixel_positions`, which lays the lattice out with a given origin (the
pixel location of fiducial (0, 0)) and pixel spacing, oriented so that :func:`lattice_mapping` is the exact pixel to
screen mapping of the rendered frame.

.. code::

    from solaraspect.simulation import fiducial_pixel_positions, render_solar_frame

    ids = [(row, col) for row in range(-1, 3) for col in range(-1, 2)]
    fiducials = fiducial_pixel_positions((300, 225), 15.6, ids)
    frame = render_solar_frame((480, 640), (330.7, 250.4), 120, fiducials=fiducials, seed=0)
"""

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from solaraspect.fiducials.lattice import fiducial_id_to_screen, LATTICE_SCALE, LATTICE_SPACING_UNITS
from solaraspect.fiducials.mapping import PixelScreenMapping

from solaraspect._typing import ARRAY_LIKE, DOUBLE_ARRAY


SCREEN_UNITS_PER_SPACING: float = LATTICE_SCALE * LATTICE_SPACING_UNITS
"""
The number of screen units in one fixed lattice spacing
"""


def fiducial_pixel_positions(origin: ARRAY_LIKE, spacing: float, ids: Sequence[tuple[int, int]]) -> DOUBLE_ARRAY:
    """
    Compute the pixel locations of fiducials with the given lattice identities.

    The pixel location of a fiducial is ``origin + (spacing / 90) * (-x_s, y_s)`` where ``(x_s, y_s)`` are its screen
    coordinates.

    :param origin: the (x, y) pixel location of fiducial (0, 0)
    :param spacing: the fixed lattice spacing in pixels
    :param ids: the (row, col) identity of each fiducial
    :return: the nx2 array of (x, y) pixel locations
    """

    origin = np.asarray(origin, dtype=np.float64).ravel()

    screen = np.array([fiducial_id_to_screen(row, col) for row, col in ids], dtype=np.float64).reshape(-1, 2)

    scale = spacing / SCREEN_UNITS_PER_SPACING

    return origin + scale * screen * [-1, 1]


def lattice_mapping(origin: ARRAY_LIKE, spacing: float) -> PixelScreenMapping:
    """
    Return the exact pixel to screen mapping of a lattice laid out by :func:`fiducial_pixel_positions`.

    :param origin: the (x, y) pixel location of fiducial (0, 0)
    :param spacing: the fixed lattice spacing in pixels
    :return: the mapping
    """

    origin_x, origin_y = np.asarray(origin, dtype=np.float64).ravel()

    scale = SCREEN_UNITS_PER_SPACING / spacing

    return PixelScreenMapping(scale * origin_x, -scale, -scale * origin_y, scale, (1.0, 1.0))


def _overlap(low: float, high: float, centers: DOUBLE_ARRAY) -> DOUBLE_ARRAY:
    """
    Length of the overlap between the interval [low, high] and unit pixels centered on ``centers``.
    """

    return np.clip(np.minimum(high, centers + 0.5) - np.maximum(low, centers - 0.5), 0, None)


def cross_coverage(shape: tuple[int, int], center: ARRAY_LIKE, half_length: float = 7.5,
                   half_width: float = 1.5) -> DOUBLE_ARRAY:
    """
    Compute the fraction of each pixel covered by an axis aligned cross.

    :param shape: the (rows, columns) shape of the frame
    :param center: the (x, y) center of the cross
    :param half_length: half of the length of each arm in pixels
    :param half_width: half of the width of each arm in pixels
    :return: the coverage of each pixel in [0, 1]
    """

    x, y = np.asarray(center, dtype=np.float64).ravel()

    cols = np.arange(shape[1], dtype=np.float64)
    rows = np.arange(shape[0], dtype=np.float64)

    long_x = _overlap(x - half_length, x + half_length, cols)
    narrow_x = _overlap(x - half_width, x + half_width, cols)
    long_y = _overlap(y - half_length, y + half_length, rows)
    narrow_y = _overlap(y - half_width, y + half_width, rows)

    horizontal = np.outer(narrow_y, long_x)
    vertical = np.outer(long_y, narrow_x)
    middle = np.outer(narrow_y, narrow_x)

    return horizontal + vertical - middle


def render_solar_frame(shape: tuple[int, int], center: ARRAY_LIKE, radius: float,
                       fiducials: Optional[ARRAY_LIKE] = None, disk_level: float = 200, background_level: float = 10,
                       fiducial_contrast: float = 0.45, fiducial_half_length: float = 7.5,
                       fiducial_half_width: float = 1.5, noise_sigma: float = 1.0,
                       seed: Optional[int] = None) -> NDArray[np.uint8]:
    """
    Render a synthetic 8 bit aspect frame.

    The disk is anti-aliased with a one pixel linear ramp across the limb.  Each fiducial scales the brightness of the
    pixels it covers by ``fiducial_contrast``.  Gaussian noise with standard deviation ``noise_sigma`` is added before
    the frame is rounded and clipped to [0, 255].

    :param shape: the (rows, columns) shape of the frame
    :param center: the (x, y) center of the disk in pixels
    :param radius: the radius of the disk in pixels
    :param fiducials: the nx2 array of (x, y) fiducial centers, or None for no fiducials
    :param disk_level: the brightness of the disk in DN
    :param background_level: the brightness of the background in DN
    :param fiducial_contrast: the fraction of the brightness that remains under a fiducial
    :param fiducial_half_length: half of the length of each fiducial arm in pixels
    :param fiducial_half_width: half of the width of each fiducial arm in pixels
    :param noise_sigma: the standard deviation of the added noise in DN
    :param seed: the seed of the noise generator
    :return: the rendered frame
    """

    center_x, center_y = np.asarray(center, dtype=np.float64).ravel()

    rows, cols = np.mgrid[0:shape[0], 0:shape[1]]

    distance = np.sqrt((cols - center_x) ** 2 + (rows - center_y) ** 2)

    disk = np.clip(radius - distance + 0.5, 0, 1)

    frame = background_level + (disk_level - background_level) * disk

    if fiducials is not None:
        for fiducial in np.asarray(fiducials, dtype=np.float64).reshape(-1, 2):
            coverage = np.clip(cross_coverage(shape, fiducial, fiducial_half_length, fiducial_half_width), 0, 1)
            frame *= 1 - (1 - fiducial_contrast) * coverage

    if noise_sigma > 0:
        frame += np.random.default_rng(seed).normal(0, noise_sigma, frame.shape)

    return np.clip(np.round(frame), 0, 255).astype(np.uint8)
