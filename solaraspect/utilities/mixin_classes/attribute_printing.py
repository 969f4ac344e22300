# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This module provides a class implementing default __str__ and __repr__ functionality.
"""

import numpy as np


class AttributePrinting:
    """
    A mixin class that provides __str__ and __repr__ functionality.

    This mixin implements __str__ and __repr__ methods which print the class name and the public attributes of the
    instance.  Private attributes are reported through their property if one with the same name (minus the leading
    underscores) exists and are skipped otherwise.  Large arrays (frames, correlation surfaces) are summarized by their
    shape and dtype so that printing a processing object stays readable.
    """

    def _build_representation(self, attribute_repr: bool) -> str:
        """
        Implements the basic functionality of turning the class into a string including all attributes.

        :param attribute_repr: Whether to call repr on attributes instead of str.
        """

        class_name = self.__class__.__name__
        attributes = []
        for attr, value in self.__dict__.items():
            if attr.startswith('_'):
                prop_name = attr.lstrip('_')
                if hasattr(self.__class__, prop_name) and isinstance(getattr(self.__class__, prop_name), property):
                    attr = prop_name
                    value = getattr(self, prop_name)
                else:
                    continue
            if isinstance(value, np.ndarray) and value.size > 16:
                attributes.append(f"{attr}=<array shape={value.shape} dtype={value.dtype}>")
            elif attribute_repr:
                attributes.append(f"{attr}={value!r}".replace('\n', ''))
            else:
                attributes.append(f"{attr}={value}".replace('\n', ''))
        return f"{class_name}({', '.join(attributes)})"

    def __str__(self) -> str:
        return self._build_representation(False)

    def __repr__(self) -> str:
        return self._build_representation(True)
