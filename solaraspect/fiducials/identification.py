# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the capability to identify which lattice position each detected fiducial occupies.

Description of the Technique
----------------------------

Identification works on pairs of neighboring fiducials.  The detected fiducial locations are first rotated by the
known twist of the mask with respect to the sensor.  Then every pair of fiducials is examined:

* a *column pair* is offset by the fixed lattice spacing in y and by one of the lattice gaps in x.  The two members
  share a row index and have consecutive column indices,
* a *row pair* is offset by the fixed lattice spacing in x and by one of the lattice gaps in y.  The two members share
  a column index and have consecutive row indices.

Since each lattice gap occurs exactly once on each axis (see :mod:`.lattice`), the measured gap of a pair determines the
indices of both members along the gap axis.  Every pair casts these indices as votes for its members and each member
takes the most common vote (the mode).  When the vote is tied the index is marked
:attr:`~IndexFlag.AMBIGUOUS` and when there are no votes it is left :attr:`~IndexFlag.UNRESOLVED`.

A second pass then fills in the indices still unresolved from the partners of each pair: the shared index is copied
and the consecutive index is incremented or decremented depending on which side of its partner the member lies.  A
partner whose index is ambiguous casts an ambiguous vote tagged with the same offset (copied, incremented or
decremented), so ambiguous votes only pool when their offsets agree.  If such a vote wins, the index is ambiguous.  The
second pass only changes indices that were unresolved after the first pass.

Only fiducials resolved on both axes are used to build the pixel to screen mapping.
"""

import logging

from dataclasses import dataclass

from enum import Enum

from typing import NamedTuple, Union, Sequence

import numpy as np

from solaraspect.utilities.options import UserOptions
from solaraspect.utilities.mixin_classes import UserOptionConfigured, AttributePrinting
from solaraspect.utilities.fitting import rotate, mode

from solaraspect.fiducials.lattice import lattice_distances

from solaraspect._typing import ARRAY_LIKE, DOUBLE_ARRAY


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class IndexFlag(Enum):
    """
    Tags for lattice indices that could not be determined.
    """

    UNRESOLVED = "unresolved"
    """
    No pair voted for this index.
    """

    AMBIGUOUS = "ambiguous"
    """
    The votes for this index were tied.
    """

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}.{self.name}'


LatticeIndex = Union[int, IndexFlag]
"""
A lattice index which is either resolved (an int) or tagged with an :class:`IndexFlag`
"""


class FiducialID(NamedTuple):
    """
    The lattice identity of a fiducial.
    """

    row: LatticeIndex = IndexFlag.UNRESOLVED
    """
    The row index of the fiducial
    """

    col: LatticeIndex = IndexFlag.UNRESOLVED
    """
    The column index of the fiducial
    """

    @property
    def resolved(self) -> bool:
        """
        True if both indices were determined
        """
        return not isinstance(self.row, IndexFlag) and not isinstance(self.col, IndexFlag)


class FiducialIdentifierOut(NamedTuple):
    """
    The result of identifying a set of fiducials.
    """

    ids: list[FiducialID]
    """
    The identity of each fiducial in the order the fiducials were provided
    """

    row_pairs: list[tuple[int, int]]
    """
    The (first, second) indices of the fiducial pairs that share a column and have consecutive rows
    """

    col_pairs: list[tuple[int, int]]
    """
    The (first, second) indices of the fiducial pairs that share a row and have consecutive columns
    """

    @property
    def valid(self) -> list[int]:
        """
        The indices of the fiducials that are resolved on both axes
        """
        return [index for index, fid in enumerate(self.ids) if fid.resolved]


@dataclass
class FiducialIdentifierOptions(UserOptions):
    """
    This dataclass serves as one way to control the settings for the :class:`.FiducialIdentifier` class.
    """

    spacing: float = 15.6
    """
    The fixed spacing between neighboring fiducials in pixels.
    """

    spacing_tolerance: float = 1.5
    """
    The tolerance in pixels used when comparing measured separations to the lattice.
    """

    twist: float = 0.0
    """
    The rotation of the mask with respect to the sensor in degrees.

    The fiducial locations are rotated by this angle (counter clockwise) before they are compared to the lattice.
    """


Vote = Union[int, IndexFlag, tuple[IndexFlag, int]]
"""
A vote for a lattice index.  Votes propagated from an ambiguous partner are ``(IndexFlag.AMBIGUOUS, offset)``.
"""


def _tally(votes: list[Vote], current: LatticeIndex) -> LatticeIndex:
    """
    Reduce a list of votes to a single index, returning ``current`` if there are no votes.
    """

    modes = mode(votes)

    if len(modes) > 1:
        return IndexFlag.AMBIGUOUS
    elif len(modes) == 1:
        winner = modes[0]
        return IndexFlag.AMBIGUOUS if isinstance(winner, tuple) else winner

    return current


def _step(index: LatticeIndex, increment: int) -> Vote:
    """
    Offset a lattice index, tagging a flagged index with the offset instead.
    """

    if isinstance(index, IndexFlag):
        return index, increment

    return index + increment


class FiducialIdentifier(UserOptionConfigured[FiducialIdentifierOptions], FiducialIdentifierOptions,
                         AttributePrinting):
    """
    This class identifies the lattice position of each detected fiducial with two pass mode voting.

    Call an instance with the nx2 array of (x, y) fiducial pixel locations.  See the module documentation for a
    description of the technique.  The identification is deterministic, so calling it twice on the same input gives the
    same result.
    """

    def __init__(self, options: FiducialIdentifierOptions | None = None) -> None:
        """
        :param options: The options configuring this class
        """

        super().__init__(FiducialIdentifierOptions, options=options)

    @property
    def distances(self) -> DOUBLE_ARRAY:
        """
        The lattice gap table for the current spacing in pixels
        """

        return lattice_distances(self.spacing)

    def find_pairs(self, points: DOUBLE_ARRAY) -> tuple[list[tuple[int, int]], list[tuple[int, int]]]:
        """
        Classify every pair of (rotated) fiducials as a row pair, a column pair, or neither.

        A pair is a column pair if its y separation matches the spacing and its x separation is within the range of
        the lattice gaps.  Otherwise it is a row pair if the same is true with the axes swapped.

        :param points: the nx2 rotated (x, y) locations
        :return: the row pairs and the column pairs
        """

        distances = self.distances
        low = distances[7] - self.spacing_tolerance
        high = distances[0] + self.spacing_tolerance

        row_pairs = []
        col_pairs = []

        for first in range(points.shape[0]):
            for second in range(first + 1, points.shape[0]):
                col_diff, row_diff = np.abs(points[first] - points[second])

                if abs(row_diff - self.spacing) < self.spacing_tolerance and low < col_diff < high:
                    col_pairs.append((first, second))
                elif abs(col_diff - self.spacing) < self.spacing_tolerance and low < row_diff < high:
                    row_pairs.append((first, second))

        return row_pairs, col_pairs

    def _gap_votes(self, pairs: list[tuple[int, int]], separations: Sequence[float],
                   votes: list[list[Vote]]) -> None:
        """
        Append the lattice index votes implied by the gap of each pair.
        """

        distances = self.distances

        for (first, second), diff in zip(pairs, separations):
            for d in np.flatnonzero(np.abs(abs(diff) - distances) < self.spacing_tolerance):
                lower, upper = int(d) - 7, int(d) - 6
                if diff > 0:
                    votes[first].append(lower)
                    votes[second].append(upper)
                else:
                    votes[first].append(upper)
                    votes[second].append(lower)

    @staticmethod
    def _partner_votes(pairs: list[tuple[int, int]], separations: Sequence[float], ids: list[FiducialID],
                       shared_axis: str, stepped_axis: str,
                       votes: dict[str, list[list[Vote]]]) -> None:
        """
        Append the votes implied by the already determined partner of each pair.

        The ``shared_axis`` index is copied from the partner and the ``stepped_axis`` index is one less than the
        partner for the member on the low side of the pair and one more for the member on the high side.
        """

        unresolved = IndexFlag.UNRESOLVED

        for (first, second), diff in zip(pairs, separations):
            first_id = ids[first]
            second_id = ids[second]

            first_shared = getattr(first_id, shared_axis)
            second_shared = getattr(second_id, shared_axis)

            if first_shared is unresolved and second_shared is not unresolved:
                votes[shared_axis][first].append(_step(second_shared, 0))
            elif first_shared is not unresolved and second_shared is unresolved:
                votes[shared_axis][second].append(_step(first_shared, 0))

            first_stepped = getattr(first_id, stepped_axis)
            second_stepped = getattr(second_id, stepped_axis)

            if first_stepped is unresolved and second_stepped is not unresolved:
                votes[stepped_axis][first].append(_step(second_stepped, -1 if diff >= 0 else 1))
            elif first_stepped is not unresolved and second_stepped is unresolved:
                votes[stepped_axis][second].append(_step(first_stepped, 1 if diff >= 0 else -1))

    def __call__(self, fiducials: ARRAY_LIKE) -> FiducialIdentifierOut:
        """
        Identify the fiducials.

        :param fiducials: The nx2 array of (x, y) fiducial pixel locations
        :return: The identities and the pairs used to find them as a :class:`.FiducialIdentifierOut`
        """

        points = rotate(self.twist, np.asarray(fiducials, dtype=np.float64).reshape(-1, 2))
        count = points.shape[0]

        row_pairs, col_pairs = self.find_pairs(points)

        # row pairs step in y (rows), column pairs step in x (columns)
        row_separations = [points[second, 1] - points[first, 1] for first, second in row_pairs]
        col_separations = [points[first, 0] - points[second, 0] for first, second in col_pairs]

        row_votes: list[list[Vote]] = [[] for _ in range(count)]
        col_votes: list[list[Vote]] = [[] for _ in range(count)]

        self._gap_votes(row_pairs, row_separations, row_votes)
        self._gap_votes(col_pairs, col_separations, col_votes)

        ids = [FiducialID(_tally(row_votes[k], IndexFlag.UNRESOLVED), _tally(col_votes[k], IndexFlag.UNRESOLVED))
               for k in range(count)]

        second_votes: dict[str, list[list[Vote]]] = {'row': [[] for _ in range(count)],
                                                              'col': [[] for _ in range(count)]}

        self._partner_votes(row_pairs, row_separations, ids, 'col', 'row', second_votes)
        self._partner_votes(col_pairs, col_separations, ids, 'row', 'col', second_votes)

        ids = [FiducialID(_tally(second_votes['row'][k], fid.row), _tally(second_votes['col'][k], fid.col))
               for k, fid in enumerate(ids)]

        out = FiducialIdentifierOut(ids, row_pairs, col_pairs)

        _LOGGER.debug(f'{len(row_pairs)} row pairs and {len(col_pairs)} column pairs identified '
                      f'{len(out.valid)} of {count} fiducials')

        return out
