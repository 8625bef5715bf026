from __future__ import annotations
import logging
from enum import Enum
from math import sqrt
from typing import List, Optional

from .geom import Pt, ZERO, DOUBLE_PREC, as_points, sub, cross, dot, norm_sq, normalize
from .lists import FaceList, VertexList
from .mesh import FaceMark, HalfEdgeMesh, VertexState

logger = logging.getLogger(__name__)

AUTOMATIC_TOLERANCE = -1.0      # допуск обчислюється з даних

# евристичні множники (з оригінального Quickhull)
COLINEAR_FACTOR = 100.0          # поріг виродження для початкового симплекса
CLAIM_EARLY_EXIT_FACTOR = 1000.0  # точку так далеко вже не «переманить» інша грань
TRIANGULATE_AREA_FACTOR = 1000.0
CHECK_POINT_FACTOR = 10.0        # запас для перевірки «точка всередині» у validate()


class DegenerateCause(Enum):
    TOO_FEW_POINTS = "tooFewPoints"
    COINCIDENT_POINTS = "coincidentPoints"
    COLINEAR_POINTS = "colinearPoints"
    COPLANAR_POINTS = "coplanarPoints"


class DegenerateInputError(ValueError):
    """Вхідні точки не задають тіло ненульового об'єму (у межах допуску)."""

    def __init__(self, cause: DegenerateCause, message: str):
        super().__init__(message)
        self.cause = cause


class MergeType(Enum):
    NONCONVEX_WRT_LARGER_FACE = 1
    NONCONVEX = 2


class ConvexHull3D:
    """
    Інкрементальний Quickhull у 3D зі злиттям граней, що не є явно опуклими.

    Вхід: послідовність точок (мінімум 4, не всі копланарні) - Pt, кортежі або масив numpy (N, 3).
    Вихід: vertices() - вершини оболонки, faces() - грані як списки індексів вершин
    (опуклі многокутники; triangulate() розбиває їх на трикутники).

    Ребро вважається опуклим, якщо центроїд кожної з суміжних граней лежить явно *під*
    площиною іншої (відстань < -tolerance). Інакше грані зливаються.
    Повторний build() на тому самому об'єкті замінює попередню оболонку; дескриптори
    з попередньої побудови після цього недійсні.
    """

    def __init__(self, points=None, tolerance: float = AUTOMATIC_TOLERANCE):
        self.mesh = HalfEdgeMesh()
        self.claimed = VertexList(self.mesh, VertexState.CLAIMED)
        self.unclaimed = VertexList(self.mesh, VertexState.UNCLAIMED)
        self.new_faces = FaceList(self.mesh)
        self.horizon: List[int] = []
        self.faces_list: List[int] = []              # грані оболонки (дескриптори в mesh.faces)
        self._vertex_point_indices: List[int] = []
        self._num_points = 0
        self._num_vertices = 0
        self._max_vtxs = [0, 0, 0]
        self._min_vtxs = [0, 0, 0]
        self._debug = False
        self.char_length = 0.0
        self.tolerance = 0.0
        self.explicit_tolerance = tolerance

        if points is not None:
            self.build(points)

    # ---------------- Публічний API ----------------
    @property
    def distance_tolerance(self) -> float:
        """Допуск, з яким будувалась поточна оболонка."""
        return self.tolerance

    @distance_tolerance.setter
    def distance_tolerance(self, tol: float) -> None:
        # AUTOMATIC_TOLERANCE повертає автоматичний режим
        self.explicit_tolerance = tol

    @property
    def explicit_distance_tolerance(self) -> float:
        return self.explicit_tolerance

    @property
    def num_points(self) -> int:
        return self._num_points

    @property
    def vertex_count(self) -> int:
        return self._num_vertices

    @property
    def face_count(self) -> int:
        return len(self.faces_list)

    def build(self, points) -> None:
        """
        Побудувати оболонку. Кидає DegenerateInputError, якщо точок менше чотирьох
        або вони (майже) збігаються / колінеарні / копланарні.
        """
        # попередня оболонка недійсна навіть якщо вхід відхилено
        self.faces_list.clear()
        self._vertex_point_indices = []
        self._num_vertices = 0
        self._num_points = 0
        pts = as_points(points)
        if len(pts) < 4:
            raise DegenerateInputError(DegenerateCause.TOO_FEW_POINTS, "Less than four input points specified")
        self._init_buffers(len(pts))
        self._set_points(pts)
        self._build_hull()

    def vertices(self) -> List[Pt]:
        V = self.mesh.vertices
        return [V[i].pnt for i in self._vertex_point_indices]

    def vertex_point_indices(self) -> List[int]:
        """Для кожної вершини оболонки - її індекс у вхідному масиві."""
        return self._vertex_point_indices[:]

    def faces(self, clockwise: bool = False, index_base: int = 0, point_relative: bool = False) -> List[List[int]]:
        """
        Грані як списки індексів.
          clockwise:      обхід за годинниковою стрілкою (ззовні), типово - проти
          index_base:     0 або 1
          point_relative: індекси у вхідному масиві замість компактних індексів вершин
        """
        if index_base not in (0, 1):
            raise ValueError(f"index_base must be 0 or 1, got {index_base}")
        V = self.mesh.vertices
        out: List[List[int]] = []
        for f in self.faces_list:
            idxs = []
            for he in self.mesh.face_edges(f, clockwise=clockwise):
                idx = V[self.mesh.head(he)].index
                if point_relative:
                    idx = self._vertex_point_indices[idx]
                idxs.append(idx + index_base)
            out.append(idxs)
        return out

    def face_normals(self) -> List[Pt]:
        return [self.mesh.faces[f].normal for f in self.faces_list]

    def triangulate(self) -> None:
        """
        Розбити всі не-трикутні грані на трикутники (віялом).
        Трикутники можуть вийти дуже тонкими й не пройти перевірку опуклості - це відоме
        обмеження (так само поводиться qhull).
        """
        min_area = TRIANGULATE_AREA_FACTOR * self.char_length * DOUBLE_PREC
        self.new_faces.clear()
        for f in list(self.faces_list):
            if self.mesh.faces[f].mark is FaceMark.VISIBLE:
                self.mesh.triangulate_face(f, self.new_faces, min_area)
        self.faces_list.extend(self.new_faces)

    # ---------------- Побудова ----------------
    def _init_buffers(self, nump: int) -> None:
        self.mesh.reserve_vertices(nump)
        self.mesh.clear_topology()
        self.faces_list.clear()
        self.claimed.clear()
        self.unclaimed.clear()
        self.new_faces.clear()
        self._vertex_point_indices = []
        self._num_vertices = 0
        self._num_points = nump

    def _set_points(self, pts: List[Pt]) -> None:
        for i, p in enumerate(pts):
            self.mesh.vertices[i].reset(p, i)

    def _build_hull(self) -> None:
        self._debug = logger.isEnabledFor(logging.DEBUG)
        self._compute_max_and_min()
        self._create_initial_simplex()
        cnt = 0
        while True:
            eye = self._next_point_to_add()
            if eye is None:
                break
            self._add_point_to_hull(eye)
            cnt += 1
            if self._debug:
                logger.debug(f"iteration {cnt} done")
        self._reindex_faces_and_vertices()
        if self._debug:
            logger.debug("hull done")
        logger.info(f"Convex hull: {self._num_points} points -> {self._num_vertices} vertices, "
                    f"{len(self.faces_list)} faces (tolerance {self.tolerance:g})")

    def _compute_max_and_min(self) -> None:
        V = self.mesh.vertices
        mx = list(V[0].pnt)
        mn = list(V[0].pnt)
        self._max_vtxs = [0, 0, 0]
        self._min_vtxs = [0, 0, 0]
        for i in range(1, self._num_points):
            p = V[i].pnt
            for k in range(3):
                c = p[k]
                if c > mx[k]:
                    mx[k] = c
                    self._max_vtxs[k] = i
                elif c < mn[k]:
                    mn[k] = c
                    self._min_vtxs[k] = i

        self.char_length = max(mx[k] - mn[k] for k in range(3))
        if self.explicit_tolerance == AUTOMATIC_TOLERANCE:
            # формула з qhull
            self.tolerance = 3 * DOUBLE_PREC * sum(max(abs(mx[k]), abs(mn[k])) for k in range(3))
        else:
            self.tolerance = self.explicit_tolerance

    def _create_initial_simplex(self) -> None:
        """
        Стартовий тетраедр:
          - v0, v1: крайні точки вздовж осі з найбільшим розмахом;
          - v2: найдальша від прямої v0v1;
          - v3: найдальша від площини v0v1v2.
        Решта точок розподіляється по чотирьох гранях.
        """
        M = self.mesh
        V = M.vertices
        tol = self.tolerance

        max_ext = 0.0
        imax = 0
        for i in range(3):
            diff = V[self._max_vtxs[i]].pnt[i] - V[self._min_vtxs[i]].pnt[i]
            if diff > max_ext:
                max_ext = diff
                imax = i
        if max_ext <= tol:
            raise DegenerateInputError(DegenerateCause.COINCIDENT_POINTS, "Input points appear to be coincident")

        vtx = [self._max_vtxs[imax], self._min_vtxs[imax], -1, -1]

        # v2 - найдальша від прямої v0v1
        p0 = V[vtx[0]].pnt
        u01 = normalize(sub(V[vtx[1]].pnt, p0))
        max_sqr = 0.0
        nrml = ZERO
        for i in range(self._num_points):
            xprod = cross(u01, sub(V[i].pnt, p0))
            len_sqr = norm_sq(xprod)
            if len_sqr > max_sqr and i != vtx[0] and i != vtx[1]:
                max_sqr = len_sqr
                vtx[2] = i
                nrml = xprod
        if sqrt(max_sqr) <= COLINEAR_FACTOR * tol:
            raise DegenerateInputError(DegenerateCause.COLINEAR_POINTS, "Input points appear to be colinear")
        nrml = normalize(nrml)

        # v3 - найдальша від площини v0v1v2
        max_dist = 0.0
        d0 = dot(V[vtx[2]].pnt, nrml)
        for i in range(self._num_points):
            dist = abs(dot(V[i].pnt, nrml) - d0)
            if dist > max_dist and i != vtx[0] and i != vtx[1] and i != vtx[2]:
                max_dist = dist
                vtx[3] = i
        if max_dist <= COLINEAR_FACTOR * tol:
            raise DegenerateInputError(DegenerateCause.COPLANAR_POINTS, "Input points appear to be coplanar")

        if self._debug:
            logger.debug("initial vertices:")
            for v in vtx:
                logger.debug(f"{V[v].index}: {tuple(V[v].pnt)}")

        if dot(V[vtx[3]].pnt, nrml) - d0 < 0:
            tris = [
                M.create_triangle(vtx[0], vtx[1], vtx[2]),
                M.create_triangle(vtx[3], vtx[1], vtx[0]),
                M.create_triangle(vtx[3], vtx[2], vtx[1]),
                M.create_triangle(vtx[3], vtx[0], vtx[2]),
            ]
            for i in range(3):
                k = (i + 1) % 3
                M.set_opposite(M.get_edge(tris[i + 1], 1), M.get_edge(tris[k + 1], 0))
                M.set_opposite(M.get_edge(tris[i + 1], 2), M.get_edge(tris[0], k))
        else:
            tris = [
                M.create_triangle(vtx[0], vtx[2], vtx[1]),
                M.create_triangle(vtx[3], vtx[0], vtx[1]),
                M.create_triangle(vtx[3], vtx[1], vtx[2]),
                M.create_triangle(vtx[3], vtx[2], vtx[0]),
            ]
            for i in range(3):
                k = (i + 1) % 3
                M.set_opposite(M.get_edge(tris[i + 1], 0), M.get_edge(tris[k + 1], 1))
                M.set_opposite(M.get_edge(tris[i + 1], 2), M.get_edge(tris[0], (3 - i) % 3))

        self.faces_list.extend(tris)

        simplex = set(vtx)
        for i in range(self._num_points):
            if i in simplex:
                continue
            max_dist = tol
            max_face = None
            for f in tris:
                dist = M.distance_to_plane(f, V[i].pnt)
                if dist > max_dist:
                    max_face = f
                    max_dist = dist
            if max_face is not None:
                self._add_point_to_face(i, max_face)

    # ---------------- Conflict graph ----------------
    def _add_point_to_face(self, v: int, f: int) -> None:
        face = self.mesh.faces[f]
        self.mesh.vertices[v].face = f
        if face.outside is None:
            self.claimed.add(v)
        else:
            self.claimed.insert_before(v, face.outside)
        face.outside = v

    def _remove_point_from_face(self, v: int, f: int) -> None:
        V = self.mesh.vertices
        face = self.mesh.faces[f]
        if v == face.outside:
            nxt = V[v].next
            if nxt is not None and V[nxt].face == f:
                face.outside = nxt
            else:
                face.outside = None
        self.claimed.delete(v)

    def _remove_all_points_from_face(self, f: int) -> Optional[int]:
        """Вирізати outside-set грані з claimed; повертає голову ланцюжка (next останнього = None)."""
        V = self.mesh.vertices
        face = self.mesh.faces[f]
        if face.outside is None:
            return None
        first = face.outside
        end = first
        while V[end].next is not None and V[V[end].next].face == f:
            end = V[end].next
        self.claimed.delete_range(first, end)
        V[end].next = None
        face.outside = None
        return first

    def _delete_face_points(self, f: int, absorbing: Optional[int]) -> None:
        """
        Звільнити точки грані f. Якщо є грань, що її поглинула, точки, які лишились
        над її площиною, одразу переходять до неї; решта - в unclaimed.
        """
        V = self.mesh.vertices
        first = self._remove_all_points_from_face(f)
        if first is None:
            return
        if absorbing is None:
            self.unclaimed.add_all(first)
            return
        v = first
        while v is not None:
            nxt = V[v].next
            if self.mesh.distance_to_plane(absorbing, V[v].pnt) > self.tolerance:
                self._add_point_to_face(v, absorbing)
            else:
                self.unclaimed.add(v)
            v = nxt

    def _next_point_to_add(self) -> Optional[int]:
        """Найвіддаленіша точка outside-set грані, якій належить перша вершина claimed."""
        if self.claimed.is_empty():
            return None
        V = self.mesh.vertices
        eye_face = V[self.claimed.first()].face
        eye = None
        max_dist = 0.0
        v = self.mesh.faces[eye_face].outside
        while v is not None and V[v].face == eye_face:
            dist = self.mesh.distance_to_plane(eye_face, V[v].pnt)
            if dist > max_dist:
                max_dist = dist
                eye = v
            v = V[v].next
        return eye

    # ---------------- Крок вставки ----------------
    def _add_point_to_hull(self, eye: int) -> None:
        M = self.mesh
        V = M.vertices
        self.horizon.clear()
        self.unclaimed.clear()

        eye_face = V[eye].face
        if self._debug:
            logger.debug(f"Adding point: {V[eye].index}")
            logger.debug(f" which is {M.distance_to_plane(eye_face, V[eye].pnt)} above face {M.vertex_string(eye_face)}")
        self._remove_point_from_face(eye, eye_face)
        self._calculate_horizon(V[eye].pnt, eye_face)
        self.new_faces.clear()
        self._add_new_faces(eye)

        # перший прохід: зливаємо грані, неопуклі відносно більшої з двох
        for f in self.new_faces:
            if M.faces[f].mark is FaceMark.VISIBLE:
                while self._do_adjacent_merge(f, MergeType.NONCONVEX_WRT_LARGER_FACE):
                    pass

        # другий прохід: неопуклі відносно будь-якої з двох
        for f in self.new_faces:
            if M.faces[f].mark is FaceMark.NON_CONVEX:
                M.faces[f].set_mark(FaceMark.VISIBLE)
                while self._do_adjacent_merge(f, MergeType.NONCONVEX):
                    pass

        self._resolve_unclaimed_points()

    def _calculate_horizon(self, eye_pnt: Pt, face: int) -> None:
        """
        DFS по гранях, видимих з eye_pnt (явний стек замість рекурсії).
        Кожна відвідана грань видаляється, її точки йдуть в unclaimed.
        Ребро, за яким лежить невидима грань, - ребро горизонту; порядок обходу дає
        замкнений цикл горизонту.
        """
        M = self.mesh
        E = M.edges
        self._delete_face_points(face, None)
        M.faces[face].set_mark(FaceMark.DELETED)
        if self._debug:
            logger.debug(f"visiting face {M.vertex_string(face)}")

        edge0 = M.get_edge(face, 0)
        # кадр: (ребро-зупинка, наступне ребро, чи це перший крок кореня)
        stack = [(edge0, edge0, True)]
        while stack:
            stop, edge, first = stack[-1]
            if not first and edge == stop:
                stack.pop()
                continue
            stack[-1] = (stop, E[edge].next, False)

            opp_face = M.opposite_face(edge)
            if M.faces[opp_face].mark is not FaceMark.VISIBLE:
                continue
            if M.distance_to_plane(opp_face, eye_pnt) > self.tolerance:
                opp_edge = E[edge].opposite
                self._delete_face_points(opp_face, None)
                M.faces[opp_face].set_mark(FaceMark.DELETED)
                if self._debug:
                    logger.debug(f"visiting face {M.vertex_string(opp_face)}")
                stack.append((opp_edge, E[opp_edge].next, False))
            else:
                self.horizon.append(edge)
                if self._debug:
                    logger.debug(f"  adding horizon edge {M.edge_string(edge)}")

    def _add_adjoining_face(self, eye: int, he: int) -> int:
        M = self.mesh
        f = M.create_triangle(eye, M.tail(he), M.head(he))
        self.faces_list.append(f)
        M.set_opposite(M.get_edge(f, -1), M.edges[he].opposite)
        return M.get_edge(f, 0)

    def _add_new_faces(self, eye: int) -> None:
        """Конус нових трикутників від eye до кожного ребра горизонту."""
        M = self.mesh
        E = M.edges
        side_prev = None
        side_begin = None
        for horizon_he in self.horizon:
            side = self._add_adjoining_face(eye, horizon_he)
            if self._debug:
                logger.debug(f"new face: {M.vertex_string(E[side].face)}")
            if side_prev is not None:
                M.set_opposite(E[side].next, side_prev)
            else:
                side_begin = side
            self.new_faces.add(E[side].face)
            side_prev = side
        M.set_opposite(E[side_begin].next, side_prev)

    def _opp_face_distance(self, he: int) -> float:
        """Відстань від площини грані he до центроїда сусідньої грані."""
        M = self.mesh
        opp_face = M.opposite_face(he)
        return M.distance_to_plane(M.edges[he].face, M.faces[opp_face].centroid)

    def _do_adjacent_merge(self, f: int, merge_type: MergeType) -> bool:
        M = self.mesh
        E = M.edges
        face = M.faces[f]
        tol = self.tolerance
        hedge = face.he0
        convex = True
        while True:
            opp_face = M.opposite_face(hedge)
            merge = False

            if merge_type is MergeType.NONCONVEX:
                # зливаємо, якщо ребро неопукле з погляду будь-якої з граней
                if self._opp_face_distance(hedge) > -tol or self._opp_face_distance(E[hedge].opposite) > -tol:
                    merge = True
            else:
                # зливаємо, якщо неопукле відносно більшої грані; інакше лише позначаємо
                # грань як NON_CONVEX для другого проходу
                if face.area > M.faces[opp_face].area:
                    if self._opp_face_distance(hedge) > -tol:
                        merge = True
                    elif self._opp_face_distance(E[hedge].opposite) > -tol:
                        convex = False
                else:
                    if self._opp_face_distance(E[hedge].opposite) > -tol:
                        merge = True
                    elif self._opp_face_distance(hedge) > -tol:
                        convex = False

            if merge:
                if self._debug:
                    logger.debug(f"  merging {M.vertex_string(f)} and {M.vertex_string(opp_face)}")
                for d in M.merge_adjacent_face(f, hedge):
                    self._delete_face_points(d, f)
                if self._debug:
                    logger.debug(f"  result: {M.vertex_string(f)}")
                return True

            hedge = E[hedge].next
            if hedge == face.he0:
                break
        if not convex:
            face.set_mark(FaceMark.NON_CONVEX)
        return False

    def _resolve_unclaimed_points(self) -> None:
        """Перерозподіл осиротілих точок між новими гранями; решта - внутрішні, відкидаємо."""
        M = self.mesh
        V = M.vertices
        tol = self.tolerance
        for v in self.unclaimed:
            max_dist = tol
            max_face = None
            for f in self.new_faces:
                if M.faces[f].mark is FaceMark.VISIBLE:
                    dist = M.distance_to_plane(f, V[v].pnt)
                    if dist > max_dist:
                        max_dist = dist
                        max_face = f
                    if max_dist > CLAIM_EARLY_EXIT_FACTOR * tol:
                        break
            if max_face is not None:
                self._add_point_to_face(v, max_face)
                if self._debug:
                    logger.debug(f"  claimed point {V[v].index} by {M.vertex_string(max_face)}")
            else:
                V[v].state = VertexState.UNASSIGNED
                if self._debug:
                    logger.debug(f"  discarded point {V[v].index}")
        self.unclaimed.clear()

    def _reindex_faces_and_vertices(self) -> None:
        M = self.mesh
        V = M.vertices
        for i in range(self._num_points):
            V[i].index = -1

        # прибрати неактивні грані й позначити задіяні вершини
        kept = []
        for f in self.faces_list:
            if M.faces[f].mark is FaceMark.VISIBLE:
                for v in M.face_vertices(f):
                    V[v].index = 0
                kept.append(f)
        self.faces_list = kept

        self._vertex_point_indices = []
        for i in range(self._num_points):
            if V[i].index == 0:
                V[i].index = len(self._vertex_point_indices)
                self._vertex_point_indices.append(i)
        self._num_vertices = len(self._vertex_point_indices)

    # ---------------- Діагностика ----------------
    def validate(self, tol: Optional[float] = None) -> dict:
        """
        Перевірка коректності оболонки:
          - кожне півребро має взаємного протилежного з правильними кінцями;
          - ребра опуклі: центроїд сусідньої грані не вище площини більш ніж на tol;
          - немає зайвих вершин (два сусідні ребра грані межують з однією гранею);
          - жодна вхідна точка не лежить над гранню далі ніж 10*tol.
        Повертає словник із діагностикою (порожні списки = все ок).
        """
        M = self.mesh
        E = M.edges
        V = M.vertices
        tol = self.tolerance if tol is None else tol
        point_tol = CHECK_POINT_FACTOR * tol

        bad_edges = []
        non_convex = []
        redundant = []
        for fi, f in enumerate(self.faces_list):
            for he in M.face_edges(f):
                opp = E[he].opposite
                if (opp is None or E[opp].opposite != he
                        or M.head(opp) != M.tail(he) or M.head(he) != M.tail(opp)
                        or M.faces[E[opp].face].mark is FaceMark.DELETED):
                    bad_edges.append((fi, M.edge_string(he)))
                    continue
                if self._opp_face_distance(he) > tol or self._opp_face_distance(opp) > tol:
                    non_convex.append((fi, M.edge_string(he)))
                if M.opposite_face(E[he].next) == M.opposite_face(he):
                    redundant.append((fi, V[M.head(he)].index))

        outside = []
        for i in range(self._num_points):
            p = V[i].pnt
            for fi, f in enumerate(self.faces_list):
                dist = M.distance_to_plane(f, p)
                if dist > point_tol:
                    outside.append((i, fi, dist))
                    break

        num_edges = sum(M.faces[f].num_verts for f in self.faces_list) // 2
        return {
            "faces": len(self.faces_list),
            "vertices": self._num_vertices,
            "edges": num_edges,
            "euler": self._num_vertices - num_edges + len(self.faces_list),
            "bad_edges": bad_edges,
            "non_convex_edges": non_convex,
            "redundant_vertices": redundant,
            "outside_points": outside,
        }

    def check(self, tol: Optional[float] = None) -> bool:
        report = self.validate(tol)
        ok = not (report["bad_edges"] or report["non_convex_edges"]
                  or report["redundant_vertices"] or report["outside_points"])
        if not ok:
            logger.warning(f"Hull check failed: {report}")
        return ok
