import logging
import numpy
import vec3

logger = logging.getLogger(__name__)

# Two points are joined by an edge if their distance is within this much
# of one of the valid edge lengths.
EDGE_TOLERANCE = 1e-6

# Two faces whose unit normals agree within this much are the same face.
NORMAL_TOLERANCE = 1e-6

# A cycle is a face only if all its vertices are this close to one plane.
PLANE_TOLERANCE = 1e-6

# Upper limit on the number of partial paths examined while searching
# for faces. Running out means the shape definition is broken.
SEARCH_BUDGET = 1_000_000


# Raised when a fixed shape definition does not produce a valid solid.
class ConstructionError(RuntimeError):
    pass


# The model is an arena: vertices, edges and faces live in flat lists
# owned by the Model, and refer to each other by index.


class Vertex:
    def __init__(self, point):
        self.point = point

        # Indices of the edges and faces that touch this vertex,
        # in the order they were discovered.
        self.edges = []
        self.faces = []

    def __repr__(self):
        return f"Vertex({self.point.tolist()})"


class Edge:
    def __init__(self, v0, v1):
        # The order of the two vertex indices does not matter.
        self.vertices = (v0, v1)
        self.faces = []

    def other_vertex(self, v):
        return self.vertices[0] if self.vertices[1] == v else self.vertices[1]

    def __repr__(self):
        return f"Edge(vertices={self.vertices} faces={self.faces})"


class Face:
    def __init__(self, vertices, edges, normal):
        # Vertex indices, counterclockwise as seen from outside the solid.
        self.vertices = vertices

        # Edge indices. edges[i] joins vertices[i] and vertices[i + 1].
        self.edges = edges

        # Unit vector perpendicular to the face, pointing outward.
        self.normal = normal

    def __repr__(self):
        return f"Face(vertices={self.vertices} normal={self.normal.tolist()})"


class Model:
    def __init__(self, vertices, edges, faces):
        self.vertices = vertices
        self.edges = edges
        self.faces = faces

        # All the face normals as one array, in face order.
        self.normals = numpy.array([f.normal for f in faces])
        self.normals.flags.writeable = False

    def __repr__(self):
        return (
            f"Model({len(self.vertices)} vertices, "
            f"{len(self.edges)} edges, {len(self.faces)} faces)"
        )

    def points(self):
        return numpy.array([v.point for v in self.vertices])

    def face_points(self, i):
        return [self.vertices[v].point for v in self.faces[i].vertices]

    def face_center(self, i):
        return vec3.centroid(self.face_points(i))


# The description of the collision shape handed to the physics engine:
# a convex polyhedron in the same units and frame as the render geometry.
class HullShape:
    def __init__(self, vertices, normals, faces):
        self.vertices = vertices
        self.normals = normals
        self.faces = faces

    def __repr__(self):
        return f"HullShape({len(self.vertices)} vertices, {len(self.faces)} faces)"


def hull_shape(model):
    return HullShape(
        model.points(),
        numpy.array(model.normals),
        [list(f.vertices) for f in model.faces],
    )


# Returns the edges between every pair of points whose distance is one of
# edge_lengths. Distances between points that are not neighbors (such as the
# diagonal of a square) are never a valid edge length.
def find_edges(vertices, edge_lengths):
    edges = []
    for i1 in range(len(vertices)):
        for i0 in range(i1):
            d = vec3.distance(vertices[i1].point, vertices[i0].point)
            if any(abs(length - d) < EDGE_TOLERANCE for length in edge_lengths):
                e = len(edges)
                edges.append(Edge(i1, i0))
                vertices[i1].edges.append(e)
                vertices[i0].edges.append(e)
    return edges


# Depth first search for simple cycles of at most max_depth edges that start
# and end at origin. Returns a list of (walk, path) pairs, where walk lists
# the vertex indices in order around the cycle, and path lists the edge
# indices. Every cycle is found twice, once in each direction.
# budget is the number of partial paths we may examine.
# Returns the cycles and the number of partial paths examined.
def find_cycles(vertices, edges, origin, max_depth, budget):
    cycles = []
    steps = 0
    stack = [(origin, [origin], [])]
    while stack:
        steps += 1
        if steps > budget:
            raise ConstructionError("Face search did not terminate")
        node, walk, path = stack.pop()
        for e in vertices[node].edges:
            if e in path:
                continue
            next_v = edges[e].other_vertex(node)
            if next_v == origin:
                cycles.append((walk, path + [e]))
            elif next_v not in walk and len(path) + 1 < max_depth:
                stack.append((next_v, walk + [next_v], path + [e]))
    return cycles, steps


# Given three consecutive vertices on a face,
# returns whether their order is counterclockwise
def is_counterclockwise(p0, p1, p2, normal):
    return vec3.dot_product(vec3.cross_product(p1 - p0, p2 - p1), normal) > 0


# Returns the outward normal of the cycle if it is a new face, None if it
# should be rejected.
# The normal is taken from the first three vertices in the order they
# appear as edge endpoints along the path. That order, not the walk,
# decides which of the many copies of a face is kept first, and so fixes
# the numbering of the faces.
def candidate_normal(vertices, edges, faces, walk, path):
    order = []
    for e in path:
        for v in edges[e].vertices:
            if v not in order:
                order.append(v)
    p0, p1, p2 = (vertices[v].point for v in order[:3])
    cross = vec3.cross_product(p1 - p0, p2 - p0)
    if vec3.magnitude(cross) < vec3.EPSILON:
        return None
    normal = vec3.normalize(cross)

    # A cycle that winds through more than one face is not a face.
    points = [vertices[v].point for v in walk]
    if any(abs(vec3.dot_product(p - p0, normal)) > PLANE_TOLERANCE for p in points):
        return None

    # The same face, found from another vertex or in a different direction.
    if any(vec3.isclose(f.normal, normal, NORMAL_TOLERANCE) for f in faces):
        return None

    # This normal points into the solid.
    if vec3.dot_product(vec3.centroid(points), normal) < 0:
        return None

    return normal


# Builds the topology of a convex polyhedron centered on the origin from its
# corner points. edge_lengths are the lengths of the real edges of the
# solid, and face_count is the number of faces the solid should have.
def build_model(points, edge_lengths, face_count):
    vertices = [Vertex(vec3.vector(p)) for p in points]
    edges = find_edges(vertices, edge_lengths)

    if not edges or (2 * len(edges)) % face_count != 0:
        raise ConstructionError(
            f"{len(edges)} edges cannot bound {face_count} faces"
        )
    edges_per_face = (2 * len(edges)) // face_count

    faces = []
    budget = SEARCH_BUDGET
    for origin in range(len(vertices)):
        cycles, steps = find_cycles(
            vertices, edges, origin, edges_per_face, budget
        )
        budget -= steps

        for walk, path in cycles:
            normal = candidate_normal(vertices, edges, faces, walk, path)
            if normal is None:
                continue

            # Store the vertices counterclockwise as seen from outside.
            p0, p1, p2 = (vertices[v].point for v in walk[:3])
            if not is_counterclockwise(p0, p1, p2, normal):
                walk = walk[:1] + walk[:0:-1]
                path = path[::-1]

            f = len(faces)
            faces.append(Face(walk, path, normal))
            for v in walk:
                vertices[v].faces.append(f)
            for e in path:
                edges[e].faces.append(f)

    for i, e in enumerate(edges):
        if len(e.faces) != 2:
            raise ConstructionError(
                f"Edge {i} {e.vertices} borders {len(e.faces)} faces"
            )
    if len(faces) != face_count:
        raise ConstructionError(
            f"Found {len(faces)} faces, expected {face_count}"
        )

    model = Model(vertices, edges, faces)
    logger.debug("Built %s", model)
    return model
