import itertools

import numpy as np
import pytest

from quickhull3d.mesh import FaceMark


@pytest.fixture
def tetra_points():
    return [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]


@pytest.fixture
def cube_points():
    return [tuple(float(c) for c in p) for p in itertools.product((0, 1), repeat=3)]


@pytest.fixture
def doc_points():
    # приклад з документації QuickHull3D
    return [
        (0.0, 0.0, 0.0), (1.0, 0.5, 0.0), (2.0, 0.0, 0.0),
        (0.5, 0.5, 0.5), (0.0, 0.0, 2.0), (0.1, 0.2, 0.3),
        (0.0, 2.0, 0.0),
    ]


@pytest.fixture
def sphere_points():
    """1000 випадкових точок у одиничній кулі + 6 крайніх точок на осях."""
    rng = np.random.default_rng(20041)
    dirs = rng.normal(size=(1000, 3))
    dirs /= np.linalg.norm(dirs, axis=1)[:, None]
    radii = rng.uniform(size=(1000, 1)) ** (1.0 / 3.0)
    extremes = np.vstack((np.eye(3), -np.eye(3)))
    return np.vstack((dirs * radii, extremes))


@pytest.fixture
def mesh_consistent():
    def check(hull):
        mesh = hull.mesh
        E = mesh.edges
        for f in hull.faces_list:
            assert mesh.faces[f].mark is FaceMark.VISIBLE
            ring = list(mesh.face_edges(f))
            assert len(ring) == mesh.faces[f].num_verts
            for he in ring:
                opp = E[he].opposite
                assert opp is not None
                assert E[opp].opposite == he
                assert mesh.head(opp) == mesh.tail(he)
                assert mesh.head(he) == mesh.tail(opp)
                assert mesh.faces[E[opp].face].mark is FaceMark.VISIBLE
    return check


@pytest.fixture
def euler():
    def characteristic(hull):
        faces = hull.faces()
        num_edges = sum(len(f) for f in faces)
        assert num_edges % 2 == 0
        return hull.vertex_count - num_edges // 2 + len(faces)
    return characteristic
