# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
Solar aspect determination for a sounding rocket payload.

The :class:`.Aspect` class finds the solar disk and the fiducials of the aspect mask in each frame and maps sensor
pixels to screen coordinates.  The state of the pipeline is reported with :class:`.AspectCode`.
"""

from solaraspect.aspect_codes import AspectCode, AspectFloat, AspectInt, AspectStateError
from solaraspect.aspect import Aspect, AspectOptions
from solaraspect.image import AspectFrame, RegionOfInterest
from solaraspect.frame_exchange import FrameSlot

__all__ = ["AspectCode", "AspectFloat", "AspectInt", "AspectStateError",
           "Aspect", "AspectOptions",
           "AspectFrame", "RegionOfInterest",
           "FrameSlot"]
