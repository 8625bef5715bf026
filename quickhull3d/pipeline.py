from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Tuple

from .geom import Pt, as_points, unique_points, sub, cross, dot
from .hull import AUTOMATIC_TOLERANCE, ConvexHull3D

logger = logging.getLogger(__name__)


def hull_surface(
    points: Iterable[Tuple[float, float, float]],
    backend: str = "internal",
    triangulate: bool = False,
    deduplicate: bool = True,
    tolerance: Optional[float] = None,
) -> Tuple[List[Pt], List[List[int]]]:
    """
    Повний пайплайн:
      - (за бажанням) прибирає дублікати точок;
      - будує опуклу оболонку -> грані як індекси у повернутому списку точок.

    backend:
      "internal" - наш ConvexHull3D (грані можуть бути многокутниками, якщо triangulate=False);
      "scipy"    - scipy.spatial.ConvexHull (Qhull), завжди трикутники; корисно для звірки.

    Повертає:
      pts   - список Pt, на які посилаються грані;
      faces - списки індексів у pts, обхід проти годинникової стрілки ззовні.
    """
    pts: List[Pt] = unique_points(as_points(points)) if deduplicate else as_points(points)

    if backend.lower() == "internal":
        hull = ConvexHull3D(tolerance=AUTOMATIC_TOLERANCE if tolerance is None else tolerance)
        hull.build(pts)
        if triangulate:
            hull.triangulate()
        return pts, hull.faces(point_relative=True)

    elif backend.lower() == "scipy":
        try:
            import numpy as np
            from scipy.spatial import ConvexHull
        except ImportError as e:
            raise RuntimeError(
                "backend='scipy', але SciPy не встановлено. "
                "Встанови scipy або використай backend='internal'."
            ) from e

        arr = np.array([(p.x, p.y, p.z) for p in pts], dtype=float)
        qh = ConvexHull(arr)
        faces: List[List[int]] = []
        for simplex, eq in zip(qh.simplices, qh.equations):
            a, b, c = (int(i) for i in simplex)
            # Qhull не гарантує порядок обходу - орієнтуємо за зовнішньою нормаллю
            n = cross(sub(pts[b], pts[a]), sub(pts[c], pts[a]))
            if dot(n, Pt(float(eq[0]), float(eq[1]), float(eq[2]))) < 0:
                b, c = c, b
            faces.append([a, b, c])
        logger.debug(f"scipy hull: {len(qh.vertices)} vertices, {len(faces)} triangles")
        return pts, faces

    else:
        raise ValueError(f"Unknown backend: {backend}")
