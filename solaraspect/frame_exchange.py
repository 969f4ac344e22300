# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the :class:`FrameSlot` class, a latest-frame hand-off between a capture thread and a processing
thread.

The aspect pipeline itself is single threaded.  When frames are captured faster than they can be processed only the
most recent frame matters, so the slot holds at most one frame: :meth:`FrameSlot.put` replaces a frame that has not
been consumed yet (counting it as dropped) and :meth:`FrameSlot.get` blocks until a frame is available.

.. code::

    slot = FrameSlot()

    # capture thread
    slot.put(buffer, frame_number=count)

    # processing thread
    frame = slot.get(timeout=1.0)
    if frame is not None:
        aspect.load_frame(frame)
        aspect.run()
"""

import logging

import threading

from typing import Optional

import numpy as np

from solaraspect.image import AspectFrame

from solaraspect._typing import ARRAY_LIKE_2D, DatetimeLike


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class FrameSlot:
    """
    A single slot, condition guarded exchange of the most recent frame.

    Frames are copied on :meth:`put` so the producer is free to reuse its buffer as soon as the call returns.
    """

    def __init__(self) -> None:

        self._condition = threading.Condition()

        self._frame: Optional[AspectFrame] = None

        self._put_count: int = 0
        self._dropped_count: int = 0

    @property
    def put_count(self) -> int:
        """
        The number of frames that have been put into the slot
        """
        with self._condition:
            return self._put_count

    @property
    def dropped_count(self) -> int:
        """
        The number of frames that were replaced before they were consumed
        """
        with self._condition:
            return self._dropped_count

    @property
    def pending(self) -> bool:
        """
        True if a frame is waiting to be consumed
        """
        with self._condition:
            return self._frame is not None

    def put(self, frame: ARRAY_LIKE_2D, observation_date: Optional[DatetimeLike] = None,
            exposure: Optional[float] = None, frame_number: Optional[int] = None) -> None:
        """
        Store a copy of a frame, replacing any frame that has not been consumed yet.

        :param frame: the 2D frame data
        :param observation_date: the date the frame was captured
        :param exposure: the exposure time of the frame in seconds
        :param frame_number: the counter of the frame in its sequence
        :raises ValueError: if the frame is not 2 dimensional
        """

        copy = AspectFrame(np.array(frame, copy=True), observation_date=observation_date, exposure=exposure,
                           frame_number=frame_number)

        if isinstance(frame, AspectFrame):
            copy.file = frame.file
            if observation_date is None:
                copy.observation_date = frame.observation_date
            if exposure is None:
                copy.exposure = frame.exposure
            if frame_number is None:
                copy.frame_number = frame_number = frame.frame_number

        with self._condition:
            if self._frame is not None:
                self._dropped_count += 1
                _LOGGER.debug(f'Dropped frame {self._frame.frame_number} before it was processed')

            self._frame = copy
            self._put_count += 1

            self._condition.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[AspectFrame]:
        """
        Take the most recent frame out of the slot, waiting for one if the slot is empty.

        :param timeout: the maximum time to wait in seconds, or ``None`` to wait indefinitely
        :return: the frame, or ``None`` if the timeout expired before a frame arrived
        """

        with self._condition:
            if not self._condition.wait_for(lambda: self._frame is not None, timeout=timeout):
                return None

            frame = self._frame
            self._frame = None

            return frame
