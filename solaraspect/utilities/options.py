# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the :class:`UserOptions` abstract dataclass used to configure the processing classes of the
aspect pipeline.
"""

from dataclasses import dataclass, fields, replace

from typing import Any, Self

from abc import ABCMeta


@dataclass
class UserOptions(metaclass=ABCMeta):
    """
    The base of every options dataclass in solaraspect.

    An options dataclass lists the tunable parameters of one processing class together with their defaults, and is
    named after that class: :class:`.FiducialFinderOptions` configures :class:`.FiducialFinder`,
    :class:`.AspectOptions` configures :class:`.Aspect` and so on.  The processing class accepts an instance through
    its ``options`` keyword argument and copies every field onto itself with :meth:`apply_options`, which is normally
    done for you by :class:`.UserOptionConfigured`.

    Options are plain dataclasses so they can be built, compared and tweaked before being handed to a class:

        >>> from solaraspect.image_processing.fiducial_finder import FiducialFinder, FiducialFinderOptions
        >>> strict = FiducialFinderOptions().copy_with(threshold=8)
        >>> FiducialFinder(strict).threshold
        8
    """

    def apply_options(self, target: object) -> None:
        """
        Set each field of these options as an attribute of ``target``.

        :param target: the instance to configure
        """
        target.__dict__.update(self.options_dict)

    def copy_with(self, **changes: Any) -> Self:
        """
        Return a copy of these options with the requested fields replaced.

        :param changes: the fields to replace as keyword arguments
        :return: the new options instance
        """
        return replace(self, **changes)

    @property
    def options_dict(self) -> dict[str, Any]:
        """
        The fields of this dataclass and their current values
        """

        return {field.name: getattr(self, field.name) for field in fields(self)}
