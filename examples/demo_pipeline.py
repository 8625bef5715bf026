# examples/demo_pipeline.py
from quickhull3d.pipeline import hull_surface

if __name__ == "__main__":
    cube = [
        (0,0,0), (1,0,0), (1,1,0), (0,1,0),
        (0,0,1), (1,0,1), (1,1,1), (0,1,1),
        (0.5,0.5,0.5), (0.2,0.8,0.3), (0.8,0.2,0.7)
    ]

    pts, faces = hull_surface(cube, backend="internal")
    print("internal:", len({i for f in faces for i in f}), "vertices,", len(faces), "faces")

    pts, tris = hull_surface(cube, backend="internal", triangulate=True)
    print("internal, triangulated:", len(tris), "triangles")

    pts, tris = hull_surface(cube, backend="scipy")  # потребує scipy
    print("scipy:", len({i for t in tris for i in t}), "vertices,", len(tris), "triangles")
