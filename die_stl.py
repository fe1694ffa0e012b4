import logging
import numpy
from stl import mesh
import bevel

logger = logging.getLogger(__name__)


# Copies the corners of every triangle into an STL mesh.
def triangles_mesh(triangles):
    model = mesh.Mesh(numpy.zeros(len(triangles), dtype=mesh.Mesh.dtype))
    model.vectors[:] = triangles
    model.update_normals()
    return model


# The rounded die as one mesh. The surfaces overlap where the corner
# spheres meet the fillets, so the result is good for viewing but is not
# a closed solid.
def surfaces_mesh(surfaces):
    return triangles_mesh(numpy.concatenate([s.triangles() for s in surfaces]))


# The sharp polyhedron, each face split into a fan of triangles.
def hull_mesh(model):
    triangles = []
    for f in range(len(model.faces)):
        points = model.face_points(f)
        for a, b, c in bevel.fan_triangles(len(points)):
            triangles.append([points[a], points[b], points[c]])
    return triangles_mesh(numpy.array(triangles))


def write_stl(surfaces, filename):
    model = surfaces_mesh(surfaces)
    model.save(filename)
    logger.debug("Saved %d triangles to %s", len(model.vectors), filename)


def write_hull_stl(model, filename):
    hull = hull_mesh(model)
    hull.check(exact=True)
    hull.save(filename)
    logger.debug("Saved %d triangles to %s", len(hull.vectors), filename)
