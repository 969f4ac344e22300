# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the :class:`AspectFrame` class, which is the frame type consumed by the aspect pipeline.

The :class:`AspectFrame` class is a subclass of the numpy
`ndarray <https://docs.scipy.org/doc/numpy/reference/generated/numpy.ndarray.html>`_ class holding a single 2D frame
of 8 bit samples, indexed as ``frame[row, column]``, with the frame metadata (the file it was loaded from, the
observation date, the exposure time and the frame counter) stored as extra attributes.  Because it is an ndarray you
can index and slice it as usual; slices keep the metadata of their parent.

Frames can be built directly from array data or loaded from disk through the :meth:`AspectFrame.load_image` static
method, which reads the standard image formats with OpenCV and FITS files with astropy.  Data that is not already
``uint8`` is linearly rescaled to the full 8 bit range (with a warning) since all of the thresholds in the pipeline are
expressed in 8 bit digital numbers.
"""

from pathlib import Path

from typing import Union, Optional, Any, Self, NamedTuple, cast

import os

import warnings

import numpy as np
import cv2
import astropy.io.fits as pf

from solaraspect._typing import ARRAY_LIKE_2D, PATH, DatetimeLike


class RegionOfInterest(NamedTuple):
    """
    A rectangular region of a frame.

    The region covers rows ``row_offset:row_offset + height`` and columns ``col_offset:col_offset + width``.
    """

    row_offset: int
    col_offset: int
    height: int
    width: int

    @classmethod
    def full_frame(cls, shape: tuple[int, ...]) -> Self:
        """
        Build the region covering an entire frame of the given shape.

        :param shape: the (rows, columns) shape of the frame
        :return: the region covering the whole frame
        """
        return cls(0, 0, int(shape[0]), int(shape[1]))

    @property
    def slices(self) -> tuple[slice, slice]:
        """
        The (row, column) slices selecting this region from a frame
        """
        return (slice(self.row_offset, self.row_offset + self.height),
                slice(self.col_offset, self.col_offset + self.width))

    @property
    def empty(self) -> bool:
        """
        True if the region contains no pixels
        """
        return self.height <= 0 or self.width <= 0

    def fits_in(self, shape: tuple[int, ...]) -> bool:
        """
        Check whether the region lies completely inside of a frame of the given shape.

        :param shape: the (rows, columns) shape of the frame
        :return: True if the offset is in ``[0, frame - region]`` along both axes
        """
        return (0 <= self.row_offset <= shape[0] - self.height) and (0 <= self.col_offset <= shape[1] - self.width)


def _to_uint8(data: np.ndarray) -> np.ndarray:
    """
    Rescale an array linearly so that its finite range maps onto [0, 255] and cast it to uint8.

    :param data: the data to rescale
    :return: the rescaled uint8 array
    """

    warnings.warn(f'Frame data of type {data.dtype} is being rescaled to uint8')

    data = np.asarray(data, dtype=np.float64)
    finite = np.isfinite(data)

    if not finite.any():
        return np.zeros(data.shape, dtype=np.uint8)

    low = data[finite].min()
    high = data[finite].max()

    if high <= low:
        return np.zeros(data.shape, dtype=np.uint8)

    scaled = np.where(finite, (data - low) * (255 / (high - low)), 0)

    return np.clip(np.round(scaled), 0, 255).astype(np.uint8)


# noinspection PyAttributeOutsideInit
class AspectFrame(np.ndarray):
    """
    This is a subclass of a numpy array for 8 bit frames which adds the frame metadata.

    You can initialize this class by either passing in a path to the image file or by passing in an array-like object
    of the illumination data.  The data must be 2 dimensional.
    """

    def __new__(cls, data: Union[PATH, ARRAY_LIKE_2D],
                observation_date: Optional[DatetimeLike] = None,
                exposure: Optional[float] = None,
                frame_number: Optional[int] = None,
                file: Optional[PATH] = None) -> Self:
        """
        :param data: The frame data either as a path to an image file or the illumination data directly
        :param observation_date: The date the frame was captured
        :param exposure: The exposure time used to capture the frame in seconds
        :param frame_number: The counter of the frame in its sequence
        :param file: The file the illumination data came from
        :raises ValueError: If the data is not 2 dimensional
        """

        if isinstance(data, (str, Path)):
            array = cls.load_image(data)
            source = data

        else:
            array = np.asarray(data)
            source = None

        if array.ndim != 2:
            raise ValueError(f'Frames must be 2 dimensional but the data has shape {array.shape}')

        if array.dtype != np.uint8:
            array = _to_uint8(array)

        frame = np.ascontiguousarray(array).view(cls)

        frame.file = file if file is not None else source
        frame.observation_date = observation_date
        frame.exposure = exposure
        frame.frame_number = frame_number

        return frame

    def __reduce__(self) -> tuple[type[np.ndarray], tuple[np.ndarray], dict[str, Any]]:

        return self.__class__, (self.view(np.ndarray),), self.__dict__

    def __setstate__(self, state: dict, *args, **kwargs) -> None:

        self.__dict__.update(state)

    def __array_finalize__(self, obj: Optional[np.ndarray]) -> None:

        if obj is None:
            return

        self.file = getattr(obj, 'file', None)
        self.observation_date = getattr(obj, 'observation_date', None)
        self.exposure = getattr(obj, 'exposure', None)
        self.frame_number = getattr(obj, 'frame_number', None)

    def __repr__(self) -> str:

        data = super().__repr__()

        return (self.__module__ + "." + self.__class__.__name__ + "(" + data + ", " +
                ', '.join(['{}={!r}'.format(k, v) for k, v in self.__dict__.items() if not k.startswith('_')]) + ")")

    @property
    def height(self) -> int:
        """
        The number of rows in the frame
        """
        return int(self.shape[0])

    @property
    def width(self) -> int:
        """
        The number of columns in the frame
        """
        return int(self.shape[1])

    @staticmethod
    def load_image(image_path: PATH) -> np.ndarray:
        """
        This method reads in a number of standard image formats using OpenCV and astropy and converts it to grayscale
        if it is in color.

        :param image_path: The path to the image file to be read.
        :return: The illumination data from the image file
        :raises ValueError: if the file does not exist or is not a recognized image format
        """
        cv_ext = ['.bmp', '.dib', '.jpeg', '.jpg', '.jpe', '.jp2',
                  '.png', '.webp', '.pbm', '.pgm', '.ppm', '.sr', '.ras',
                  '.tiff', '.tif']

        if not os.path.exists(image_path):
            raise ValueError('The file you specified ({0!s}) does not exist.\n'
                             'Please try again'.format(image_path))

        _, ext = os.path.splitext(image_path)

        if ext.lower() in ['.fits', '.fit', '.fts']:
            with pf.open(image_path) as image_file:  # type: ignore

                image = np.array(cast(pf.PrimaryHDU, image_file[0]).data)

            if image.ndim > 2:

                if image.shape[0] == 3:
                    image = np.moveaxis(image, 0, -1)
                image = cv2.cvtColor(image.astype(np.float32), cv2.COLOR_BGR2GRAY)

            return image

        elif ext.lower() in cv_ext:

            image = cv2.imread(str(image_path), cv2.IMREAD_GRAYSCALE)

            if image is None:
                raise ValueError('The file you specified ({0!s}) could not be read.'.format(image_path))

            return image

        raise ValueError('The file you specified ({0!s}) is not a recognizable image.\n'
                         'Please try again.'.format(image_path))
