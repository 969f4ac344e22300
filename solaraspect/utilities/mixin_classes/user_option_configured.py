# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides the :class:`UserOptionConfigured` mixin, which lets the processing classes of solaraspect take
their tunable parameters from a :class:`.UserOptions` dataclass and later return to them.

Every stage of the aspect pipeline (the limb crossing detector, the center finder, the fiducial finder and
identifier, and :class:`.Aspect` itself) inherits from both this mixin and its options dataclass, so each parameter is
available as a plain attribute of the instance:

.. code::

    from dataclasses import dataclass

    from solaraspect.utilities.options import UserOptions
    from solaraspect.utilities.mixin_classes import UserOptionConfigured

    @dataclass
    class ChordOptions(UserOptions):
        density: int = 30
        threshold: float = 0.25

    class ChordScanner(UserOptionConfigured[ChordOptions], ChordOptions):
        def __init__(self, options: ChordOptions | None = None):
            super().__init__(ChordOptions, options=options)

    scanner = ChordScanner(ChordOptions(density=10))
    scanner.threshold = 0.5
    scanner.reset_settings()  # density is 10 and threshold is 0.25 again

The mixin must be listed before the options dataclass in the bases so that its ``__init__`` runs.
"""

from copy import deepcopy

from typing import Generic, TypeVar

from solaraspect.utilities.options import UserOptions


OptionsT = TypeVar("OptionsT", bound=UserOptions)
"""
The options dataclass type that configures a class
"""


class UserOptionConfigured(Generic[OptionsT]):
    """
    Apply an options dataclass to an instance and keep a private copy of it for :meth:`reset_settings`.

    The copy is a deep copy so that changes the caller makes to the options object after construction (or changes made
    to mutable attributes of the instance) never leak into the reset state.
    """

    def __init__(self, options_type: type[OptionsT], *args, options: OptionsT | None = None, **kwargs) -> None:
        """
        :param options_type: The dataclass type whose defaults are used when ``options`` is not given
        :param options: The settings to apply to this instance
        """

        super().__init__(*args, **kwargs)

        if options is None:
            options = options_type()

        self._original_options: OptionsT = deepcopy(options)

        self.reset_settings()

    def reset_settings(self) -> None:
        """
        Apply the settings this instance was constructed with, discarding any change made since.
        """

        deepcopy(self._original_options).apply_options(self)

    @property
    def original_options(self) -> OptionsT:
        """
        A copy of the settings this instance was constructed with
        """
        return deepcopy(self._original_options)
