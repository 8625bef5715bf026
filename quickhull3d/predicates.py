# quickhull3d/predicates.py
from __future__ import annotations
from math import sqrt
from typing import Sequence

from .geom import Pt, sub, cross, dot, normalize, distance_sq

def orient3d(a: Pt, b: Pt, c: Pt, d: Pt) -> float:
    ab = sub(b, a)
    ac = sub(c, a)
    ad = sub(d, a)
    return dot(cross(ab, ac), ad)

def newell_normal(points: Sequence[Pt]) -> Pt:
    """
    Ненормалізована нормаль многокутника: сума векторних добутків віялом від points[0].
    Її довжина - подвоєна площа (для опуклого многокутника).
    """
    p0 = points[0]
    nx = ny = nz = 0.0
    d2 = sub(points[1], p0)
    for p in points[2:]:
        d1 = d2
        d2 = sub(p, p0)
        nx += d1.y*d2.z - d1.z*d2.y
        ny += d1.z*d2.x - d1.x*d2.z
        nz += d1.x*d2.y - d1.y*d2.x
    return Pt(nx, ny, nz)

def remove_edge_component(normal: Pt, p1: Pt, p2: Pt) -> Pt:
    """
    Для «тонких» граней: прибираємо з нормалі складову, паралельну ребру p1->p2
    (найдовшому ребру грані), і нормалізуємо.
    """
    len_max = sqrt(distance_sq(p1, p2))
    if len_max == 0.0:
        return normalize(normal)
    u = Pt((p2.x - p1.x)/len_max, (p2.y - p1.y)/len_max, (p2.z - p1.z)/len_max)
    d = dot(normal, u)
    return normalize(Pt(normal.x - d*u.x, normal.y - d*u.y, normal.z - d*u.z))

def plane_distance(normal: Pt, offset: float, p: Pt) -> float:
    """Знакова відстань до площини normal·x = offset (додатна - назовні)."""
    return normal.x*p.x + normal.y*p.y + normal.z*p.z - offset
