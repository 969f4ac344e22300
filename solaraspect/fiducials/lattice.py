# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module describes the physical layout of the fiducial lattice etched into the aspect mask.

The fiducials are laid out on a non-uniform grid.  Neighboring fiducials within a lattice row or lattice column are
offset by a fixed spacing along one axis and by a gap along the other axis that grows by 6 units with every step away
from the origin of the lattice.  The gap between index ``n`` and ``n+1`` is ``45 + 6n`` units for ``n >= 0`` and
``42 - 6n`` units for ``n < 0`` (on a scale where the fixed spacing is 15 units).  The cumulative position of index
``n`` along the gap axis is therefore

.. math::
    g(n) = \\begin{cases} 45n + 3n(n-1) & n \\ge 0 \\\\ 48n - 3n(n+1) & n < 0 \\end{cases}

Because every gap is unique (up to the sign of the index), measuring the gap between a neighboring pair of fiducials
reveals which lattice indices they have.  That is the basis of the identification in
:mod:`solaraspect.fiducials.identification`.
"""

import numpy as np

from solaraspect._typing import DOUBLE_ARRAY


LATTICE_SCALE: float = 6.0
"""
The number of screen units per lattice unit
"""

LATTICE_SPACING_UNITS: int = 15
"""
The fixed spacing between neighboring fiducials, in lattice units
"""

NUM_DISTANCES: int = 14
"""
The number of unique gaps in the lattice (7 on each side of the origin)
"""


def cumulative_gap(index: int) -> int:
    """
    Return the cumulative gap position g(n) of a lattice index in lattice units.

    :param index: the lattice index
    :return: the position of the index along its gap axis
    """

    index = int(index)

    if index >= 0:
        return 45 * index + 3 * index * (index - 1)

    return 48 * index - 3 * index * (index + 1)


def fiducial_id_to_screen(row: int, col: int) -> tuple[float, float]:
    """
    Compute the screen coordinates of the fiducial with the given lattice identity.

    .. math::
        x = 6(g(c) - 15r) \\qquad y = 6(g(r) + 15c)

    >>> from solaraspect.fiducials.lattice import fiducial_id_to_screen
    >>> fiducial_id_to_screen(0, 1)
    (270.0, 90.0)

    :param row: the row index of the fiducial
    :param col: the column index of the fiducial
    :return: the (x, y) screen coordinates
    """

    x = LATTICE_SCALE * (cumulative_gap(col) - LATTICE_SPACING_UNITS * int(row))
    y = LATTICE_SCALE * (cumulative_gap(row) + LATTICE_SPACING_UNITS * int(col))

    return float(x), float(y)


def lattice_distances(spacing: float) -> DOUBLE_ARRAY:
    """
    Build the table of the gaps between neighboring fiducials, scaled to pixels.

    Entry ``d`` of the table is ``(84 - 6d)`` units for ``d < 7`` (the gaps on the negative side of the origin, from
    the outermost in) and ``(45 + 6(d-7))`` units for ``d >= 7`` (the gaps on the positive side, from the origin out),
    with the units converted to pixels using the measured pixel spacing of the fixed offset.

    A pair of neighbors separated by gap ``d`` has lattice indices ``d - 7`` and ``d - 6``.

    :param spacing: the fixed spacing between neighboring fiducials in pixels
    :return: the 14 element table of gaps in pixels
    """

    d = np.arange(NUM_DISTANCES)

    units = np.where(d < 7, 84 - 6 * d, 45 + 6 * (d - 7))

    return units * spacing / LATTICE_SPACING_UNITS
