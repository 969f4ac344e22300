# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This package provides a few different utility routines used throughout the aspect pipeline.

The modules in this package each contain detailed information about what they provide/do.  :mod:`.fitting` contains
the small estimation and geometry helpers, :mod:`.options` the base class of the configuration dataclasses, and
:mod:`.mixin_classes` the mixins that apply those options to the processing classes.
"""
