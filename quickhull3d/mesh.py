# quickhull3d/mesh.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence

from .geom import Pt, ZERO, centroid, dot, norm, scale, distance_sq
from .predicates import newell_normal, remove_edge_component, plane_distance


class FaceMark(Enum):
    VISIBLE = 1
    NON_CONVEX = 2
    DELETED = 3


class VertexState(Enum):
    UNASSIGNED = 0   # не в жодному списку (внутрішня точка або вершина оболонки)
    CLAIMED = 1      # у списку claimed, vertex.face - грань, що її «бачить»
    UNCLAIMED = 2    # осиротіла, чекає перерозподілу


# дозволені переходи позначки грані (див. злиття у hull.py)
MARK_TRANSITIONS: Dict[FaceMark, frozenset] = {
    FaceMark.VISIBLE: frozenset({FaceMark.NON_CONVEX, FaceMark.DELETED}),
    FaceMark.NON_CONVEX: frozenset({FaceMark.VISIBLE, FaceMark.DELETED}),
    FaceMark.DELETED: frozenset(),
}


@dataclass
class Vertex:
    """
    Вершина/вхідна точка.
    index: позиція у вхідному масиві під час побудови; після reindex - компактний індекс
    вершини оболонки або -1.
    prev/next: зв'язки у VertexList (дескриптори, None - кінець).
    face: грань, чий outside-set зараз містить вершину.
    """
    pnt: Pt
    index: int = -1
    prev: Optional[int] = None
    next: Optional[int] = None
    face: Optional[int] = None
    state: VertexState = VertexState.UNASSIGNED

    def reset(self, pnt: Pt, index: int) -> None:
        self.pnt = pnt
        self.index = index
        self.prev = self.next = self.face = None
        self.state = VertexState.UNASSIGNED


@dataclass
class HalfEdge:
    vertex: int                       # головна (head) вершина
    face: int                         # грань ліворуч
    next: Optional[int] = None
    prev: Optional[int] = None
    opposite: Optional[int] = None


@dataclass
class Face:
    """
    Опукла грань оболонки (спершу трикутник, після злиттів - многокутник).
    he0: якірне півребро циклу; обхід next - проти годинникової стрілки, якщо дивитись ззовні.
    offset: normal·p - offset - знакова відстань до площини.
    outside: перша вершина outside-set у списку claimed.
    next: зв'язок у FaceList.
    """
    he0: int = -1
    normal: Pt = ZERO
    centroid: Pt = ZERO
    offset: float = 0.0
    area: float = 0.0
    num_verts: int = 0
    mark: FaceMark = FaceMark.VISIBLE
    outside: Optional[int] = None
    next: Optional[int] = None

    def set_mark(self, mark: FaceMark) -> None:
        if mark is self.mark:
            return
        assert mark in MARK_TRANSITIONS[self.mark], f"illegal face mark transition {self.mark.name} -> {mark.name}"
        self.mark = mark


class HalfEdgeMesh:
    """
    Арени вершин, півребер і граней; усі посилання - цілі дескриптори (індекси в аренах).
      - vertices: пул вершин, росте між побудовами, але не зменшується
      - edges, faces: очищаються на початку кожної побудови
    """

    def __init__(self):
        self.vertices: List[Vertex] = []
        self.edges: List[HalfEdge] = []
        self.faces: List[Face] = []

    def reserve_vertices(self, n: int) -> None:
        while len(self.vertices) < n:
            self.vertices.append(Vertex(ZERO))

    def clear_topology(self) -> None:
        self.edges.clear()
        self.faces.clear()

    # ---------- півребра ----------
    def add_half_edge(self, v: int, f: int) -> int:
        self.edges.append(HalfEdge(v, f))
        return len(self.edges) - 1

    def head(self, he: int) -> int:
        return self.edges[he].vertex

    def tail(self, he: int) -> Optional[int]:
        prev = self.edges[he].prev
        return None if prev is None else self.edges[prev].vertex

    def opposite_face(self, he: int) -> Optional[int]:
        opp = self.edges[he].opposite
        return None if opp is None else self.edges[opp].face

    def set_opposite(self, he: int, other: int) -> None:
        self.edges[he].opposite = other
        self.edges[other].opposite = he

    def length_sq(self, he: int) -> float:
        t = self.tail(he)
        if t is None:
            return -1.0
        return distance_sq(self.vertices[self.head(he)].pnt, self.vertices[t].pnt)

    def edge_string(self, he: int) -> str:
        t = self.tail(he)
        ts = "?" if t is None else str(self.vertices[t].index)
        return f"{ts}-{self.vertices[self.head(he)].index}"

    # ---------- обхід граней ----------
    def face_edges(self, f: int, clockwise: bool = False) -> Iterator[int]:
        he0 = self.faces[f].he0
        he = he0
        while True:
            yield he
            he = self.edges[he].prev if clockwise else self.edges[he].next
            if he == he0:
                break

    def face_vertices(self, f: int) -> List[int]:
        return [self.edges[he].vertex for he in self.face_edges(f)]

    def vertex_indices(self, f: int) -> List[int]:
        return [self.vertices[v].index for v in self.face_vertices(f)]

    def vertex_string(self, f: int) -> str:
        return " ".join(str(i) for i in self.vertex_indices(f))

    def get_edge(self, f: int, i: int) -> int:
        """i-те півребро від he0 (від'ємні i - назад по prev)."""
        he = self.faces[f].he0
        while i > 0:
            he = self.edges[he].next
            i -= 1
        while i < 0:
            he = self.edges[he].prev
            i += 1
        return he

    def find_edge(self, f: int, vt: int, vh: int) -> Optional[int]:
        for he in self.face_edges(f):
            if self.head(he) == vh and self.tail(he) == vt:
                return he
        return None

    # ---------- створення граней ----------
    def _new_face(self) -> int:
        self.faces.append(Face())
        return len(self.faces) - 1

    def _close_ring(self, f: int, hes: Sequence[int]) -> None:
        n = len(hes)
        for i, he in enumerate(hes):
            self.edges[he].next = hes[(i + 1) % n]
            self.edges[he].prev = hes[(i - 1) % n]
        self.faces[f].he0 = hes[0]

    def create_triangle(self, v0: int, v1: int, v2: int, min_area: float = 0.0) -> int:
        """Трикутна грань (v0, v1, v2); нормаль, центроїд і зсув обчислюються одразу."""
        f = self._new_face()
        self._close_ring(f, [self.add_half_edge(v, f) for v in (v0, v1, v2)])
        self.compute_normal_and_centroid(f, min_area)
        return f

    def create_face(self, verts: Sequence[int]) -> int:
        f = self._new_face()
        self._close_ring(f, [self.add_half_edge(v, f) for v in verts])
        self.compute_normal_and_centroid(f)
        return f

    # ---------- геометрія грані ----------
    def compute_normal(self, f: int, min_area: float = 0.0) -> None:
        face = self.faces[f]
        pts = [self.vertices[v].pnt for v in self.face_vertices(f)]
        n = newell_normal(pts)
        face.num_verts = len(pts)
        face.area = norm(n)
        face.normal = scale(n, 1.0 / face.area) if face.area > 0.0 else n

        if face.area < min_area:
            # тонка грань: прибрати складову вздовж найдовшого ребра
            he_max = None
            len_sq_max = 0.0
            for he in self.face_edges(f):
                len_sq = self.length_sq(he)
                if len_sq > len_sq_max:
                    he_max = he
                    len_sq_max = len_sq
            if he_max is not None:
                p2 = self.vertices[self.head(he_max)].pnt
                p1 = self.vertices[self.tail(he_max)].pnt
                face.normal = remove_edge_component(face.normal, p1, p2)

    def compute_normal_and_centroid(self, f: int, min_area: float = 0.0) -> None:
        face = self.faces[f]
        self.compute_normal(f, min_area)
        face.centroid = centroid(self.vertices[v].pnt for v in self.face_vertices(f))
        face.offset = dot(face.normal, face.centroid)
        assert face.num_verts == sum(1 for _ in self.face_edges(f)), \
            f"face {self.vertex_string(f)} numVerts={face.num_verts} should be {sum(1 for _ in self.face_edges(f))}"

    def distance_to_plane(self, f: int, p: Pt) -> float:
        face = self.faces[f]
        return plane_distance(face.normal, face.offset, p)

    # ---------- злиття ----------
    def connect_half_edges(self, f: int, hedge_prev: int, hedge: int) -> Optional[int]:
        """
        Зшити hedge_prev -> hedge у грані f. Якщо обидва межують з однією і тією ж гранню,
        спільна вершина зайва: прибираємо hedge_prev, а трикутну сусідку видаляємо цілком.
        Повертає видалену грань або None.
        """
        E = self.edges
        discarded = None
        if self.opposite_face(hedge_prev) == self.opposite_face(hedge):
            opp_face = self.opposite_face(hedge)
            if hedge_prev == self.faces[f].he0:
                self.faces[f].he0 = hedge
            if self.faces[opp_face].num_verts == 3:
                hedge_opp = E[E[E[hedge].opposite].prev].opposite
                self.faces[opp_face].set_mark(FaceMark.DELETED)
                discarded = opp_face
            else:
                hedge_opp = E[E[hedge].opposite].next
                of = self.faces[opp_face]
                if of.he0 == E[hedge_opp].prev:
                    of.he0 = hedge_opp
                E[hedge_opp].prev = E[E[hedge_opp].prev].prev
                E[E[hedge_opp].prev].next = hedge_opp
            E[hedge].prev = E[hedge_prev].prev
            E[E[hedge].prev].next = hedge
            self.set_opposite(hedge, hedge_opp)
            # сусідку змінено - перерахувати
            self.compute_normal_and_centroid(opp_face)
        else:
            E[hedge_prev].next = hedge
            E[hedge].prev = hedge_prev
        return discarded

    def merge_adjacent_face(self, f: int, hedge_adj: int) -> List[int]:
        """
        Поглинути грань по той бік hedge_adj у грань f.
        Повертає список видалених граней: сусідка + (до двох) грані, що стали виродженими.
        """
        E = self.edges
        face = self.faces[f]
        opp_face = self.opposite_face(hedge_adj)
        discarded = [opp_face]
        self.faces[opp_face].set_mark(FaceMark.DELETED)

        hedge_opp = E[hedge_adj].opposite
        adj_prev = E[hedge_adj].prev
        adj_next = E[hedge_adj].next
        opp_prev = E[hedge_opp].prev
        opp_next = E[hedge_opp].next

        # спільна ділянка межі може складатися з кількох ребер
        while self.opposite_face(adj_prev) == opp_face:
            adj_prev = E[adj_prev].prev
            opp_next = E[opp_next].next
        while self.opposite_face(adj_next) == opp_face:
            opp_prev = E[opp_prev].prev
            adj_next = E[adj_next].next

        stop = E[opp_prev].next
        he = opp_next
        while he != stop:
            E[he].face = f
            he = E[he].next

        if hedge_adj == face.he0:
            face.he0 = adj_next

        # голова
        d = self.connect_half_edges(f, opp_prev, adj_next)
        if d is not None:
            discarded.append(d)
        # хвіст
        d = self.connect_half_edges(f, adj_prev, opp_next)
        if d is not None:
            discarded.append(d)

        self.compute_normal_and_centroid(f)
        self.check_consistency(f)
        return discarded

    # ---------- тріангуляція ----------
    def triangulate_face(self, f: int, new_faces, min_area: float) -> None:
        """
        Віялова тріангуляція многокутника від першої вершини.
        Нові трикутники додаються у new_faces (FaceList); сама грань f стає останнім трикутником.
        """
        E = self.edges
        face = self.faces[f]
        if face.num_verts < 4:
            return
        v0 = self.head(face.he0)

        hedge = E[face.he0].next
        opp_prev = E[hedge].opposite
        first_new = None
        hedge = E[hedge].next
        while hedge != E[face.he0].prev:
            nf = self.create_triangle(v0, self.head(E[hedge].prev), self.head(hedge), min_area)
            nhe0 = self.faces[nf].he0
            self.set_opposite(E[nhe0].next, opp_prev)
            self.set_opposite(E[nhe0].prev, E[hedge].opposite)
            opp_prev = nhe0
            new_faces.add(nf)
            if first_new is None:
                first_new = nf
            hedge = E[hedge].next

        hedge = self.add_half_edge(self.head(E[E[face.he0].prev].prev), f)
        self.set_opposite(hedge, opp_prev)
        E[hedge].prev = face.he0
        E[face.he0].next = hedge
        E[hedge].next = E[face.he0].prev
        E[E[hedge].next].prev = hedge

        self.compute_normal_and_centroid(f, min_area)
        self.check_consistency(f)
        nf = first_new
        while nf is not None:
            self.check_consistency(nf)
            nf = self.faces[nf].next

    # ---------- перевірки ----------
    def check_consistency(self, f: int) -> None:
        """Інваріанти кільця (лише assert - для налагодження, не для користувацьких помилок)."""
        face = self.faces[f]
        assert face.num_verts >= 3, f"degenerate face: {self.vertex_string(f)}"
        numv = 0
        for he in self.face_edges(f):
            opp = self.edges[he].opposite
            assert opp is not None, f"face {self.vertex_string(f)}: unreflected half edge {self.edge_string(he)}"
            assert self.edges[opp].opposite == he, \
                f"face {self.vertex_string(f)}: opposite half edge {self.edge_string(opp)} " \
                f"has opposite {self.edge_string(self.edges[opp].opposite)}"
            assert self.head(opp) == self.tail(he) and self.head(he) == self.tail(opp), \
                f"face {self.vertex_string(f)}: half edge {self.edge_string(he)} reflected by {self.edge_string(opp)}"
            opp_face = self.edges[opp].face
            assert self.faces[opp_face].mark is not FaceMark.DELETED, \
                f"face {self.vertex_string(f)}: opposite face {self.vertex_string(opp_face)} not on hull"
            numv += 1
        assert numv == face.num_verts, f"face {self.vertex_string(f)} numVerts={face.num_verts} should be {numv}"
