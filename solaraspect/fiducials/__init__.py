# Copyright 2021 United States Government as represented by the Administrator of the National Aeronautics and Space
# Administration.  No copyright is claimed in the United States under Title 17, U.S. Code. All Other Rights Reserved.


"""
This package provides the fiducial lattice of the aspect mask and the steps that use it.

:mod:`.lattice` describes where each fiducial sits in screen coordinates, :mod:`.identification` determines the lattice
identity of detected fiducials, and :mod:`.mapping` fits the pixel to screen mapping from the identified fiducials.
"""

from solaraspect.fiducials.lattice import fiducial_id_to_screen, lattice_distances
from solaraspect.fiducials.identification import (FiducialIdentifier, FiducialIdentifierOptions, FiducialIdentifierOut,
                                                  FiducialID, IndexFlag)
from solaraspect.fiducials.mapping import PixelScreenMapping, fit_mapping

__all__ = ["fiducial_id_to_screen", "lattice_distances",
           "FiducialIdentifier", "FiducialIdentifierOptions", "FiducialIdentifierOut", "FiducialID", "IndexFlag",
           "PixelScreenMapping", "fit_mapping"]
