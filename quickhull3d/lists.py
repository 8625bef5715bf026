# quickhull3d/lists.py
from __future__ import annotations
from typing import Iterator, Optional

from .mesh import HalfEdgeMesh, VertexState


class VertexList:
    """
    Двозв'язний список вершин поверх арени mesh.vertices (зв'язки - vertex.prev / vertex.next).
    Кожен список має свій стан (CLAIMED / UNCLAIMED), яким позначає вершини при додаванні;
    належність перевіряємо за станом, а не за ідентичністю об'єкта.
    """

    def __init__(self, mesh: HalfEdgeMesh, state: VertexState):
        self.mesh = mesh
        self.state = state
        self.head: Optional[int] = None
        self.tail: Optional[int] = None

    def clear(self) -> None:
        self.head = self.tail = None

    def add(self, v: int) -> None:
        """Додати вершину в кінець."""
        V = self.mesh.vertices
        if self.head is None:
            self.head = v
        else:
            V[self.tail].next = v
        V[v].prev = self.tail
        V[v].next = None
        V[v].state = self.state
        self.tail = v

    def add_all(self, v: int) -> None:
        """Додати в кінець ланцюжок, що починається з v (до next is None)."""
        V = self.mesh.vertices
        if self.head is None:
            self.head = v
        else:
            V[self.tail].next = v
        V[v].prev = self.tail
        runner = v
        V[runner].state = self.state
        while V[runner].next is not None:
            runner = V[runner].next
            V[runner].state = self.state
        self.tail = runner

    def delete(self, v: int) -> None:
        V = self.mesh.vertices
        vtx = V[v]
        if vtx.prev is None:
            self.head = vtx.next
        else:
            V[vtx.prev].next = vtx.next
        if vtx.next is None:
            self.tail = vtx.prev
        else:
            V[vtx.next].prev = vtx.prev
        vtx.state = VertexState.UNASSIGNED
        vtx.face = None

    def delete_range(self, v1: int, v2: int) -> None:
        """Вирізати ланцюжок v1..v2 (включно). Внутрішні зв'язки ланцюжка не чіпаємо."""
        V = self.mesh.vertices
        if V[v1].prev is None:
            self.head = V[v2].next
        else:
            V[V[v1].prev].next = V[v2].next
        if V[v2].next is None:
            self.tail = V[v1].prev
        else:
            V[V[v2].next].prev = V[v1].prev
        v = v1
        while True:
            V[v].state = VertexState.UNASSIGNED
            V[v].face = None
            if v == v2:
                break
            v = V[v].next

    def insert_before(self, v: int, nxt: int) -> None:
        V = self.mesh.vertices
        V[v].prev = V[nxt].prev
        if V[nxt].prev is None:
            self.head = v
        else:
            V[V[nxt].prev].next = v
        V[v].next = nxt
        V[nxt].prev = v
        V[v].state = self.state

    def first(self) -> Optional[int]:
        return self.head

    def is_empty(self) -> bool:
        return self.head is None

    def __contains__(self, v: int) -> bool:
        return self.mesh.vertices[v].state is self.state

    def __iter__(self) -> Iterator[int]:
        # next зчитуємо до yield: споживач може перевісити вершину в інший список
        v = self.head
        while v is not None:
            nxt = self.mesh.vertices[v].next
            yield v
            v = nxt


class FaceList:
    """Однозв'язна черга граней (зв'язок - face.next); живе в межах одного кроку."""

    def __init__(self, mesh: HalfEdgeMesh):
        self.mesh = mesh
        self.head: Optional[int] = None
        self.tail: Optional[int] = None

    def clear(self) -> None:
        self.head = self.tail = None

    def add(self, f: int) -> None:
        F = self.mesh.faces
        if self.head is None:
            self.head = f
        else:
            F[self.tail].next = f
        F[f].next = None
        self.tail = f

    def first(self) -> Optional[int]:
        return self.head

    def is_empty(self) -> bool:
        return self.head is None

    def __iter__(self) -> Iterator[int]:
        f = self.head
        while f is not None:
            yield f
            f = self.mesh.faces[f].next
