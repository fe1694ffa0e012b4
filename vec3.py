import math
import numpy

# A number expected to be a floating point rounding error away from zero.
EPSILON = 1e-10


# Converts anything with three coordinates into a float numpy vector.
def vector(v):
    result = numpy.asarray(v, dtype=float)
    assert result.shape == (3,)
    return result


# dot product of two vectors
def dot_product(v0, v1):
    return float(numpy.dot(v0, v1))


def cross_product(v0, v1):
    return numpy.cross(v0, v1)


def magnitude(v):
    return float(numpy.linalg.norm(v))


# Returns a vector of magnitude 1 in the same direction as v.
# A (nearly) zero vector has no direction.
def normalize(v):
    m = magnitude(v)
    if m < EPSILON:
        raise ValueError(f"Cannot normalize zero vector {v}")
    return numpy.asarray(v, dtype=float) / m


# Return the distance between two points.
def distance(p0, p1):
    return magnitude(numpy.subtract(p0, p1))


# The average of a list of points.
def centroid(points):
    return numpy.mean(numpy.asarray(points, dtype=float), axis=0)


# Component-wise comparison with an absolute tolerance.
def isclose(v0, v1, tolerance):
    return bool(numpy.allclose(v0, v1, rtol=0.0, atol=tolerance))


# The angle swept counterclockwise from p1 to p2 around origin, as seen
# looking down the normal. Returns a value in [0, 2 pi).
def angle_ccw(p1, p2, origin, normal):
    v1 = numpy.subtract(p1, origin)
    v2 = numpy.subtract(p2, origin)
    cosine = dot_product(v1, v2) / (magnitude(v1) * magnitude(v2))
    theta = math.acos(min(1.0, max(-1.0, cosine)))
    if dot_product(cross_product(v1, v2), normal) >= 0:
        return theta
    return 2 * math.pi - theta


# Sorts coplanar points counterclockwise around their centroid, as seen
# from the side the normal points to. The first point stays first.
def sort_ccw(points, normal):
    center = centroid(points)
    ref = points[0]
    return sorted(points, key=lambda p: angle_ccw(ref, p, center, normal))


# The area of the 2d triangle (p0, p1, p2).
# Any of the points may be an array of points of shape (..., 2), in which
# case an array of areas is returned.
def triangle_area(p0, p1, p2):
    p0 = numpy.asarray(p0, dtype=float)
    p1 = numpy.asarray(p1, dtype=float)
    p2 = numpy.asarray(p2, dtype=float)
    return 0.5 * numpy.abs(
        (p0[..., 0] - p2[..., 0]) * (p1[..., 1] - p0[..., 1])
        - (p0[..., 0] - p1[..., 0]) * (p2[..., 1] - p0[..., 1])
    )
