import pytest

from quickhull3d.geom import Pt
from quickhull3d.lists import FaceList
from quickhull3d.mesh import Face, FaceMark, HalfEdgeMesh


def make_mesh(points):
    mesh = HalfEdgeMesh()
    mesh.reserve_vertices(len(points))
    for i, p in enumerate(points):
        mesh.vertices[i].reset(Pt(*map(float, p)), i)
    return mesh


def stitch(mesh, faces):
    """Зв'язати протилежні півребра між заданими гранями (за кінцями)."""
    for f in faces:
        for he in mesh.face_edges(f):
            if mesh.edges[he].opposite is not None:
                continue
            t, h = mesh.tail(he), mesh.head(he)
            for g in faces:
                if g == f:
                    continue
                opp = mesh.find_edge(g, h, t)
                if opp is not None:
                    mesh.set_opposite(he, opp)
                    break


@pytest.fixture
def pyramid():
    """Квадратна піраміда; основа розбита діагоналлю 0-2 на два трикутники."""
    mesh = make_mesh([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0), (0.5, 0.5, 1)])
    faces = [
        mesh.create_triangle(0, 2, 1),
        mesh.create_triangle(0, 3, 2),
        mesh.create_triangle(0, 1, 4),
        mesh.create_triangle(1, 2, 4),
        mesh.create_triangle(2, 3, 4),
        mesh.create_triangle(3, 0, 4),
    ]
    stitch(mesh, faces)
    return mesh, faces


def test_create_triangle():
    mesh = make_mesh([(0, 0, 0), (1, 0, 0), (0, 1, 0)])
    f = mesh.create_triangle(0, 1, 2)
    face = mesh.faces[f]
    assert face.num_verts == 3
    assert face.normal == Pt(0.0, 0.0, 1.0)
    assert face.area == pytest.approx(1.0)
    assert face.centroid.x == pytest.approx(1.0 / 3.0)
    assert face.offset == pytest.approx(0.0)
    assert mesh.face_vertices(f) == [0, 1, 2]
    assert mesh.distance_to_plane(f, Pt(0.0, 0.0, 2.0)) == pytest.approx(2.0)
    assert mesh.distance_to_plane(f, Pt(0.3, 0.3, -1.0)) == pytest.approx(-1.0)


def test_edge_accessors():
    mesh = make_mesh([(0, 0, 0), (1, 0, 0), (0, 1, 0)])
    f = mesh.create_triangle(0, 1, 2)
    he0 = mesh.faces[f].he0
    assert mesh.head(he0) == 0
    assert mesh.tail(he0) == 2
    assert mesh.get_edge(f, 1) == mesh.edges[he0].next
    assert mesh.get_edge(f, -1) == mesh.edges[he0].prev
    assert mesh.get_edge(f, 3) == he0
    assert mesh.find_edge(f, 0, 1) == mesh.get_edge(f, 1)
    assert mesh.find_edge(f, 1, 0) is None
    assert mesh.edge_string(he0) == "2-0"
    assert mesh.vertex_string(f) == "0 1 2"
    assert mesh.opposite_face(he0) is None


def test_sliver_normal_is_robust():
    mesh = make_mesh([(0, 0, 0), (1, 0, 0), (0.5, 1e-9, 0)])
    f = mesh.create_triangle(0, 1, 2, min_area=1.0)
    n = mesh.faces[f].normal
    assert n.z == pytest.approx(1.0)
    assert n.x == pytest.approx(0.0, abs=1e-12)
    assert n.y == pytest.approx(0.0, abs=1e-12)


def test_closed_pyramid_is_consistent(pyramid):
    mesh, faces = pyramid
    for f in faces:
        mesh.check_consistency(f)
    base = faces[0]
    assert mesh.faces[base].normal == Pt(0.0, 0.0, -1.0)


def test_merge_coplanar_triangles(pyramid):
    mesh, faces = pyramid
    t1, t2 = faces[0], faces[1]
    hedge = mesh.find_edge(t1, 0, 2)
    discarded = mesh.merge_adjacent_face(t1, hedge)

    assert discarded == [t2]
    assert mesh.faces[t2].mark is FaceMark.DELETED
    face = mesh.faces[t1]
    assert face.num_verts == 4
    assert sorted(mesh.face_vertices(t1)) == [0, 1, 2, 3]
    assert face.normal == Pt(0.0, 0.0, -1.0)
    assert face.area == pytest.approx(2.0)
    assert face.centroid == Pt(0.5, 0.5, 0.0)
    for f in faces[2:]:
        mesh.check_consistency(f)
        # жодна бічна грань не посилається на видалену
        assert all(mesh.opposite_face(he) != t2 for he in mesh.face_edges(f))


def test_triangulate_merged_face(pyramid):
    mesh, faces = pyramid
    t1 = faces[0]
    mesh.merge_adjacent_face(t1, mesh.find_edge(t1, 0, 2))

    new_faces = FaceList(mesh)
    mesh.triangulate_face(t1, new_faces, 0.0)
    created = list(new_faces)
    assert len(created) == 1
    for f in [t1] + created + faces[2:]:
        assert mesh.faces[f].num_verts == 3
        mesh.check_consistency(f)
    assert mesh.faces[created[0]].normal.z == pytest.approx(-1.0)


def test_triangulate_triangle_is_noop(pyramid):
    mesh, faces = pyramid
    new_faces = FaceList(mesh)
    before = mesh.face_vertices(faces[2])
    mesh.triangulate_face(faces[2], new_faces, 0.0)
    assert new_faces.is_empty()
    assert mesh.face_vertices(faces[2]) == before


def test_create_face_polygon():
    mesh = make_mesh([(0, 0, 1), (2, 0, 1), (2, 2, 1), (0, 2, 1)])
    f = mesh.create_face([0, 1, 2, 3])
    face = mesh.faces[f]
    assert face.num_verts == 4
    assert face.normal == Pt(0.0, 0.0, 1.0)
    assert face.offset == pytest.approx(1.0)
    assert face.area == pytest.approx(8.0)


def test_face_mark_transitions():
    face = Face()
    assert face.mark is FaceMark.VISIBLE
    face.set_mark(FaceMark.NON_CONVEX)
    face.set_mark(FaceMark.VISIBLE)
    face.set_mark(FaceMark.DELETED)
    face.set_mark(FaceMark.DELETED)
    with pytest.raises(AssertionError):
        face.set_mark(FaceMark.VISIBLE)
    with pytest.raises(AssertionError):
        face.set_mark(FaceMark.NON_CONVEX)


def test_non_convex_face_can_be_deleted():
    face = Face()
    face.set_mark(FaceMark.NON_CONVEX)
    face.set_mark(FaceMark.DELETED)
    assert face.mark is FaceMark.DELETED


@pytest.fixture
def bipyramid():
    """Трикутник 0-1-2 у z=0 з вершинами 3 (зверху) і 4 (знизу); у вершини 3 лише три грані."""
    mesh = make_mesh([(0, 0, 0), (1, 0, 0), (0, 1, 0), (0.2, 0.2, 1), (0.2, 0.2, -1)])
    faces = [
        mesh.create_triangle(0, 1, 3),
        mesh.create_triangle(1, 2, 3),
        mesh.create_triangle(2, 0, 3),
        mesh.create_triangle(0, 2, 4),
        mesh.create_triangle(2, 1, 4),
        mesh.create_triangle(1, 0, 4),
    ]
    stitch(mesh, faces)
    return mesh, faces


def test_merge_removes_redundant_vertex(bipyramid):
    mesh, faces = bipyramid
    f, g, c = faces[0], faces[1], faces[2]
    discarded = mesh.merge_adjacent_face(f, mesh.find_edge(f, 1, 3))

    # після злиття вершина 3 лежить між двома ребрами, що межують з c, тож c зникає
    assert sorted(discarded) == sorted([g, c])
    assert mesh.faces[c].mark is FaceMark.DELETED
    assert sorted(mesh.face_vertices(f)) == [0, 1, 2]
    assert mesh.faces[f].num_verts == 3
    assert mesh.faces[f].normal.z == pytest.approx(1.0)
    for h in [f] + faces[3:]:
        mesh.check_consistency(h)


def test_merge_across_shared_chain():
    # вершина 5 лежить на ребрі 0-1 і належить лише двом граням
    mesh = make_mesh([(0, 0, 0), (1, 0, 0), (0, 1, 0), (0.2, 0.2, 1), (0.2, 0.2, -1), (0.5, 0, 0)])
    faces = [
        mesh.create_face([0, 5, 1, 3]),
        mesh.create_triangle(1, 2, 3),
        mesh.create_triangle(2, 0, 3),
        mesh.create_face([1, 5, 0, 4]),
        mesh.create_triangle(0, 2, 4),
        mesh.create_triangle(2, 1, 4),
    ]
    stitch(mesh, faces)
    for h in faces:
        mesh.check_consistency(h)

    f, g = faces[0], faces[3]
    discarded = mesh.merge_adjacent_face(f, mesh.find_edge(f, 0, 5))
    assert discarded == [g]
    assert mesh.faces[f].num_verts == 4
    assert sorted(mesh.face_vertices(f)) == [0, 1, 3, 4]
    for h in faces:
        if h != g:
            mesh.check_consistency(h)
            assert all(mesh.opposite_face(he) != g for he in mesh.face_edges(h))
