import functools
import logging
import math
import numbers
import numpy
from scipy.spatial.transform import Rotation
from scipy.spatial.transform import Slerp
import die_model
import vec3

logger = logging.getLogger(__name__)

# Texture cells are sized in whole pixels at this resolution, so that
# neighboring cells never share a column of pixels.
PIXELS_PER_UNIT = 100

# Longitude and latitude segments of the spheres that round the corners.
SPHERE_SEGMENTS = (32, 16)

# How well a corner's center must satisfy the equations of every face
# around it.
CENTER_TOLERANCE = 1e-6

# Beyond this condition number, the faces around a corner are considered
# (nearly) parallel, and the corner has no well defined center.
MAX_CONDITION = 1e8


# A flat textured polygon: its 3d corners, their positions in the texture
# (in model units, before normalizing), and the shared normal.
class Polygon:
    def __init__(self, positions, uvs, normal):
        self.positions = numpy.asarray(positions, dtype=float)
        self.uvs = numpy.asarray(uvs, dtype=float)
        self.normal = normal


# Where the label of a face goes in the texture. center is in model units.
# extent is the largest distance of the face's corners from the center along
# either texture axis.
class FaceCell:
    def __init__(self, face, center, extent):
        self.face = face
        self.center = center
        self.extent = extent


# The layout of the texture. Cells are packed left to right: first a cell
# for every segment of every fillet strip, then one cell per face in face
# order.
class TextureInfo:
    def __init__(self):
        self.width = 0.0
        self.height = 0.0
        self.polygons = []
        self.face_cells = []

    # Reserves a cell of the given size, and returns its left edge.
    def add_cell(self, width, height):
        x0 = self.width
        self.width += math.ceil(width * PIXELS_PER_UNIT) / PIXELS_PER_UNIT
        self.height = max(self.height, height)
        return x0


# Triangle soup ready to be copied into mesh buffers.
class Surface:
    def __init__(self, positions, normals, uvs, indices):
        self.positions = positions
        self.normals = normals
        self.uvs = uvs
        self.indices = indices

    def __repr__(self):
        return (
            f"Surface({len(self.positions)} vertices, "
            f"{len(self.indices)} triangles)"
        )

    # The corners of every triangle, as an array of shape (n, 3, 3).
    def triangles(self):
        return self.positions[self.indices]


def check_parameters(rounding, edge_detail):
    if not (rounding > 0 and math.isfinite(rounding)):
        raise ValueError(f"rounding must be positive and finite, not {rounding}")
    if (
        isinstance(edge_detail, bool)
        or not isinstance(edge_detail, numbers.Integral)
        or edge_detail < 1
    ):
        raise ValueError(
            f"edge detail must be a positive integer, not {edge_detail}"
        )


# The center of the sphere that rounds a corner. Moving every face around
# the corner inward by rounding, the planes meet at this point.
# We solve the equations of the first three faces and check the others.
def vertex_center(model, v, rounding):
    vertex = model.vertices[v]
    if len(vertex.faces) < 3:
        raise die_model.ConstructionError(
            f"Vertex {v} touches only {len(vertex.faces)} faces"
        )
    normals = numpy.array([model.faces[f].normal for f in vertex.faces])

    a = normals[:3]
    if numpy.linalg.cond(a) > MAX_CONDITION:
        raise die_model.ConstructionError(f"Degenerate corner at vertex {v}")
    try:
        y = numpy.linalg.solve(a, numpy.full(3, -rounding))
    except numpy.linalg.LinAlgError as e:
        raise die_model.ConstructionError(
            f"Degenerate corner at vertex {v}"
        ) from e

    error = numpy.abs(normals @ y + rounding)
    if numpy.any(error > CENTER_TOLERANCE):
        raise die_model.ConstructionError(
            f"Faces around vertex {v} do not meet at one point "
            f"(error {error.max()})"
        )
    return vertex.point + y


# Replaces an edge with a strip of edge_detail flat segments, following the
# arc between the two faces that meet there.
def add_fillet(info, model, e, centers, rounding, edge_detail):
    edge = model.edges[e]
    o1 = centers[edge.vertices[0]]
    o2 = centers[edge.vertices[1]]
    n0 = model.faces[edge.faces[0]].normal
    n1 = model.faces[edge.faces[1]].normal

    # The rotation that turns the first face's normal into the second's.
    angle = math.acos(min(1.0, max(-1.0, vec3.dot_product(n0, n1))))
    axis = vec3.normalize(vec3.cross_product(n0, n1))
    turn = Slerp(
        [0, 1],
        Rotation.concatenate(
            [Rotation.identity(), Rotation.from_rotvec(angle * axis)]
        ),
    )

    # Even entries are the borders between segments, odd entries are
    # the middles of the segments.
    steps = 2 * edge_detail
    directions = turn(numpy.arange(steps + 1) / steps).apply(n0)

    width = angle * rounding / edge_detail
    height = vec3.distance(o1, o2)

    for i in range(edge_detail):
        d0 = rounding * directions[2 * i]
        d1 = rounding * directions[2 * i + 2]
        normal = directions[2 * i + 1]

        v11 = o1 + d0
        v21 = o2 + d0
        v12 = o1 + d1
        v22 = o2 + d1

        x0 = info.add_cell(width, height)
        corners = [v11, v21, v22, v12]
        uvs = [(x0, 0), (x0, height), (x0 + width, height), (x0 + width, 0)]

        # The corners must go counterclockwise seen from outside.
        if vec3.dot_product(vec3.cross_product(v21 - v11, v12 - v11), normal) < 0:
            corners.reverse()
            uvs.reverse()

        info.polygons.append(Polygon(corners, uvs, normal))


# The flat part of a face, which shrinks as the corners are rounded.
def add_face_inset(info, model, f, centers, rounding):
    face = model.faces[f]
    normal = face.normal
    inset = [centers[v] + rounding * normal for v in face.vertices]
    ccw = vec3.sort_ccw(inset, normal)
    center = vec3.centroid(ccw)

    # Texture axes in the plane of the face.
    u0 = vec3.normalize(ccw[1] - center)
    u1 = vec3.cross_product(u0, normal)

    offsets = numpy.array(
        [
            (vec3.dot_product(p - center, u1), vec3.dot_product(p - center, u0))
            for p in ccw
        ]
    )
    low = numpy.minimum(offsets.min(axis=0), 0.0)
    high = numpy.maximum(offsets.max(axis=0), 0.0)
    width, height = high - low

    x0 = info.add_cell(width, height)
    uvs = offsets - low + (x0, 0.0)

    info.polygons.append(Polygon(ccw, uvs, normal))
    info.face_cells.append(
        FaceCell(
            f,
            (x0 - low[0], -low[1]),
            float(max(-low[0], -low[1], high[0], high[1])),
        )
    )


# Triangles covering a convex polygon with n corners:
# (0, 1, 2), (2, 3, 0), (3, 4, 0), ...
def fan_triangles(n):
    triangles = [(0, 1, 2)]
    for i in range(3, n):
        triangles.append((i - 1, i, 0))
    return triangles


# Packs every textured polygon into one surface.
def polygon_surface(info):
    positions = []
    normals = []
    uvs = []
    indices = []
    for polygon in info.polygons:
        i0 = len(positions)
        n = len(polygon.positions)
        positions.extend(polygon.positions)
        normals.extend([polygon.normal] * n)
        for x, y in polygon.uvs:
            uvs.append((x / info.width, 1 - y / info.height))
        indices.extend(
            (i0 + a, i0 + b, i0 + c) for a, b, c in fan_triangles(n)
        )
    return Surface(
        numpy.array(positions),
        numpy.array(normals),
        numpy.array(uvs),
        numpy.array(indices, dtype=numpy.int32),
    )


# A unit sphere centered on the origin, made of rings of latitude.
# Returns (normals, indices). The normals double as positions.
@functools.lru_cache(maxsize=None)
def unit_sphere(width_segments, height_segments):
    u = numpy.arange(width_segments + 1) / width_segments
    v = numpy.arange(height_segments + 1) / height_segments
    uu, vv = numpy.meshgrid(u, v)
    normals = numpy.stack(
        [
            -numpy.cos(2 * math.pi * uu) * numpy.sin(math.pi * vv),
            numpy.cos(math.pi * vv),
            numpy.sin(2 * math.pi * uu) * numpy.sin(math.pi * vv),
        ],
        axis=-1,
    ).reshape(-1, 3)

    # The first and last rings collapse to the poles, where only one of
    # the two triangles of each quad has any area.
    grid = numpy.arange(len(normals)).reshape(height_segments + 1, -1)
    indices = []
    for iy in range(height_segments):
        for ix in range(width_segments):
            a = grid[iy, ix + 1]
            b = grid[iy, ix]
            c = grid[iy + 1, ix]
            d = grid[iy + 1, ix + 1]
            if iy != 0:
                indices.append((a, b, d))
            if iy != height_segments - 1:
                indices.append((b, c, d))

    indices = numpy.array(indices, dtype=numpy.int32)
    normals.flags.writeable = False
    indices.flags.writeable = False
    return normals, indices


# The sphere that rounds one corner. It has no texture.
def sphere_surface(center, radius, segments=SPHERE_SEGMENTS):
    normals, indices = unit_sphere(*segments)
    return Surface(
        center + radius * normals,
        numpy.array(normals),
        numpy.zeros((len(normals), 2)),
        numpy.array(indices),
    )


# Builds the render geometry of a die with rounded edges and corners.
# Returns the texture layout and a list of surfaces: first the flat faces
# and fillet strips together, then one sphere for each corner.
def generate_geometry(model, rounding, edge_detail):
    check_parameters(rounding, edge_detail)

    centers = [
        vertex_center(model, v, rounding) for v in range(len(model.vertices))
    ]

    info = TextureInfo()
    for e in range(len(model.edges)):
        add_fillet(info, model, e, centers, rounding, edge_detail)
    for f in range(len(model.faces)):
        add_face_inset(info, model, f, centers, rounding)

    surfaces = [polygon_surface(info)]
    for c in centers:
        surfaces.append(sphere_surface(c, rounding))

    logger.debug(
        "Generated %d polygons and %d corner spheres, texture %.2f x %.2f",
        len(info.polygons),
        len(centers),
        info.width,
        info.height,
    )
    return info, surfaces


# Returns a function of (rounding, edge_detail) that builds the geometry
# of the model.
def define_geometry(model):
    return functools.partial(generate_geometry, model)
