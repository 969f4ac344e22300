# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This package contains helpful mixin classes to provide basic functionality throughout the aspect pipeline.
"""

from solaraspect.utilities.mixin_classes.attribute_printing import AttributePrinting
from solaraspect.utilities.mixin_classes.user_option_configured import UserOptionConfigured

__all__ = ["AttributePrinting", "UserOptionConfigured"]
