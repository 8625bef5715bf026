from __future__ import annotations
from dataclasses import dataclass
from math import sqrt
from typing import Iterable, List, Tuple

import numpy as np

DOUBLE_PREC = 2.2204460492503131e-16  # машинний епсилон для double
EPS = 1e-9  # крок квантування для дедуплікації

@dataclass(frozen=True)
class Pt:
    x: float
    y: float
    z: float
    def __iter__(self):
        yield self.x; yield self.y; yield self.z

    def __len__(self) -> int:
        return 3

    def __getitem__(self, i: int) -> float:
        if i == 0: return self.x
        if i == 1: return self.y
        if i == 2: return self.z
        raise IndexError("Pt index out of range")

ZERO = Pt(0.0, 0.0, 0.0)

def add(a: Pt, b: Pt) -> Pt:
    return Pt(a.x + b.x, a.y + b.y, a.z + b.z)

def sub(a: Pt, b: Pt) -> Pt:
    return Pt(a.x - b.x, a.y - b.y, a.z - b.z)

def scale(a: Pt, s: float) -> Pt:
    return Pt(a.x*s, a.y*s, a.z*s)

def dot(a: Pt, b: Pt) -> float:
    return a.x*b.x + a.y*b.y + a.z*b.z

def cross(a: Pt, b: Pt) -> Pt:
    return Pt(a.y*b.z - a.z*b.y,
              a.z*b.x - a.x*b.z,
              a.x*b.y - a.y*b.x)

def norm_sq(a: Pt) -> float:
    return dot(a, a)

def norm(a: Pt) -> float:
    return sqrt(dot(a, a))

def distance_sq(a: Pt, b: Pt) -> float:
    dx = a.x - b.x; dy = a.y - b.y; dz = a.z - b.z
    return dx*dx + dy*dy + dz*dz

def distance(a: Pt, b: Pt) -> float:
    return sqrt(distance_sq(a, b))

def normalize(a: Pt) -> Pt:
    """
    Одиничний вектор у напрямку `a`.
    Якщо |a|^2 вже відрізняється від 1 не більше ніж на 2*DOUBLE_PREC - повертаємо як є.
    Нульовий вектор лишається нульовим.
    """
    len_sq = dot(a, a)
    err = len_sq - 1.0
    if -2*DOUBLE_PREC <= err <= 2*DOUBLE_PREC or len_sq == 0.0:
        return a
    inv = 1.0 / sqrt(len_sq)
    return Pt(a.x*inv, a.y*inv, a.z*inv)

def centroid(points: Iterable[Pt]) -> Pt:
    xs = ys = zs = 0.0
    n = 0
    for p in points:
        xs += p.x; ys += p.y; zs += p.z; n += 1
    if n == 0:
        raise ValueError("empty set")
    inv = 1.0 / n
    return Pt(xs*inv, ys*inv, zs*inv)

def as_points(points) -> List[Pt]:
    """
    Перетворює будь-який масив форми (N, 3) - numpy, список кортежів, список Pt - у List[Pt].
    """
    if isinstance(points, np.ndarray):
        arr = np.asarray(points, dtype=float)
    else:
        arr = np.array([tuple(p) for p in points], dtype=float)
    if arr.size == 0:
        return []
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected an (N, 3) array of points, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("Point coordinates must be finite")
    return [Pt(float(x), float(y), float(z)) for x, y, z in arr]

def unique_points(points: Iterable[Tuple[float, float, float]], scale: float = 1.0 / EPS) -> list[Pt]:
    """
    Груба дедуплікація з квантуванням (стабільніше для float).
    `scale=1e9` ≈ EPS=1e-9 на координату. Порядок перших входжень зберігається.
    """
    seen: dict[Tuple[int, int, int], Pt] = {}
    for x, y, z in points:
        key = (int(round(x*scale)), int(round(y*scale)), int(round(z*scale)))
        if key not in seen:
            seen[key] = Pt(float(x), float(y), float(z))
    return list(seen.values())
