import logging

from quickhull3d.hull import ConvexHull3D

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(name)s - %(levelname)s - %(message)s")

    # точки з документації QuickHull3D
    raw = [
        (0.0, 0.0, 0.0), (1.0, 0.5, 0.0), (2.0, 0.0, 0.0),
        (0.5, 0.5, 0.5), (0.0, 0.0, 2.0), (0.1, 0.2, 0.3),
        (0.0, 2.0, 0.0),
    ]
    hull = ConvexHull3D(raw)

    print("Vertices:")
    for p in hull.vertices():
        print(p.x, p.y, p.z)

    print("Faces:")
    for face in hull.faces():
        print(" ".join(str(i) for i in face))

    print("VALIDATION:", hull.validate())
