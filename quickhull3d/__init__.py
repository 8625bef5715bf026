"""
quickhull3d - опукла оболонка 3D-множини точок (Py 3.10+).
Інкрементальний Quickhull на півреберній сітці зі злиттям граней, що не є явно опуклими.
"""

__version__ = "0.2.0"

from quickhull3d.geom import Pt, DOUBLE_PREC, centroid, unique_points, as_points
from quickhull3d.predicates import orient3d, newell_normal, plane_distance
from quickhull3d.mesh import FaceMark, VertexState, HalfEdgeMesh
from quickhull3d.hull import (
    AUTOMATIC_TOLERANCE, ConvexHull3D, DegenerateCause, DegenerateInputError,
)
from quickhull3d.pipeline import hull_surface

__all__ = [
    "Pt", "DOUBLE_PREC", "centroid", "unique_points", "as_points",
    "orient3d", "newell_normal", "plane_distance",
    "FaceMark", "VertexState", "HalfEdgeMesh",
    "AUTOMATIC_TOLERANCE", "ConvexHull3D", "DegenerateCause", "DegenerateInputError",
    "hull_surface", "__version__",
]
