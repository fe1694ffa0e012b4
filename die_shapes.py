import functools
import math
import numpy
from scipy.spatial.transform import Rotation
import die_model

UNIT_X = numpy.array([1.0, 0.0, 0.0])
UNIT_Y = numpy.array([0.0, 1.0, 0.0])
UNIT_Z = numpy.array([0.0, 0.0, 1.0])

PHI = (1 + math.sqrt(5)) / 2


def rotation(axis, angle):
    return Rotation.from_rotvec(angle * axis)


# Each point function returns (points, edge_lengths): the corners of the
# solid, centered on the origin, and the lengths of its true edges.


def tetrahedron_points():
    edge = 20 / 16

    q2 = rotation(UNIT_Z, -math.acos(-1 / 3))
    q3 = rotation(UNIT_Y, 2 * math.pi / 3) * q2
    q4 = rotation(UNIT_Y, -2 * math.pi / 3) * q2

    # The distance from the center to a corner.
    leg = UNIT_Y * (edge * math.sqrt(6) / 4)

    points = [leg, q2.apply(leg), q3.apply(leg), q4.apply(leg)]
    return points, [edge]


def cube_points():
    edge = 1.0
    points = []
    for i in range(8):
        points.append(
            (
                edge / 2 if i & 0b001 else -edge / 2,
                edge / 2 if i & 0b010 else -edge / 2,
                edge / 2 if i & 0b100 else -edge / 2,
            )
        )
    return points, [edge]


def octahedron_points():
    edge = 18.5 / 16
    x = edge / math.sqrt(2)
    points = [
        (+x, 0, 0),
        (-x, 0, 0),
        (0, +x, 0),
        (0, -x, 0),
        (0, 0, +x),
        (0, 0, -x),
    ]
    return points, [edge]


# A pentagonal trapezohedron: two apexes on the y axis, and two rings of
# five points each, offset from each other by a tenth of a turn.
def trapezohedron_points():
    # Length of the edges that meet at an apex.
    edge = 1.0

    theta = math.pi * 2 / 5

    # The angle between the y axis and an edge at the apex.
    a1 = math.pi * 0.27

    r1 = math.sin(a1) * edge
    h1 = math.cos(a1) * edge

    # Choose the height so that every kite is planar.
    r2 = math.cos(theta / 2) * r1
    a2 = math.atan(r2 / h1)
    a3 = math.pi - a1 - a2
    height = edge / math.sin(a2) * math.sin(a3)

    leg_length = math.sqrt(
        height * height / 4 + edge * edge - height * edge * math.cos(a1)
    )
    leg_angle = math.pi / 2 - math.asin(edge * math.sin(a1) / leg_length)

    leg = rotation(UNIT_Z, leg_angle).apply(UNIT_X * leg_length)
    tall = UNIT_Y * (height / 2)

    upper = [rotation(UNIT_Y, i * theta).apply(leg) for i in range(5)]
    lower = [rotation(UNIT_Y, i * theta).apply(-leg) for i in range(5)]
    points = [tall, *upper, -tall, *lower]

    lengths = [
        numpy.linalg.norm(points[1] - points[0]),
        numpy.linalg.norm(points[7] - points[3]),
    ]
    return points, lengths


def dodecahedron_points():
    edge = 0.5
    points = [
        (1, 1, 1),
        (-1, 1, 1),
        (1, -1, 1),
        (1, 1, -1),
        (-1, -1, 1),
        (1, -1, -1),
        (-1, 1, -1),
        (-1, -1, -1),
        (0, PHI, 1 / PHI),
        (0, -PHI, 1 / PHI),
        (0, PHI, -1 / PHI),
        (0, -PHI, -1 / PHI),
        (1 / PHI, 0, PHI),
        (1 / PHI, 0, -PHI),
        (-1 / PHI, 0, PHI),
        (-1 / PHI, 0, -PHI),
        (PHI, 1 / PHI, 0),
        (-PHI, 1 / PHI, 0),
        (PHI, -1 / PHI, 0),
        (-PHI, -1 / PHI, 0),
    ]
    # The edges of the unscaled solid have length 2 / PHI.
    scale = edge * PHI / 2
    return [numpy.multiply(p, scale) for p in points], [edge]


def icosahedron_points():
    edge = 0.8
    points = [
        (0, 1, PHI),
        (0, -1, PHI),
        (0, 1, -PHI),
        (0, -1, -PHI),
        (1, PHI, 0),
        (-1, PHI, 0),
        (1, -PHI, 0),
        (-1, -PHI, 0),
        (PHI, 0, 1),
        (PHI, 0, -1),
        (-PHI, 0, 1),
        (-PHI, 0, -1),
    ]
    # The edges of the unscaled solid have length 2.
    return [numpy.multiply(p, edge / 2) for p in points], [edge]


# Everything that is fixed about one kind of die.
class ShapeDefinition:
    def __init__(
        self,
        name,
        face_count,
        points,
        results,
        labels,
        font_size,
        rounding=0.09,
        edge_detail=5,
    ):
        self.name = name
        self.face_count = face_count

        # Function returning (points, edge_lengths)
        self.points = points

        # results[i] is the value that is up when face i is down.
        self.results = results

        # Numbers printed on the texture, as tuples
        # (text, face index, rotation in units of pi, offset).
        # The offset moves the number along its own vertical axis.
        # Offsets and font_size are in pixels of a 512 pixel face cell.
        self.labels = labels
        self.font_size = font_size

        # Default parameters of the rounded geometry.
        self.rounding = rounding
        self.edge_detail = edge_detail

    def __repr__(self):
        return f"ShapeDefinition({self.name})"


D4 = ShapeDefinition(
    "d4",
    4,
    tetrahedron_points,
    results=(2, 3, 4, 1),
    labels=(
        ("1", 0, 0, -125),
        ("2", 0, 2 / 3, -125),
        ("3", 0, 4 / 3, -125),
        ("1", 1, 0, -125),
        ("4", 1, 4 / 3, -125),
        ("3", 1, 2 / 3, -125),
        ("1", 2, 0, -125),
        ("4", 2, 2 / 3, -125),
        ("2", 2, 4 / 3, -125),
        ("4", 3, 0, -125),
        ("2", 3, 4 / 3, -125),
        ("3", 3, 2 / 3, -125),
    ),
    font_size=130,
    rounding=0.05,
)

D6 = ShapeDefinition(
    "d6",
    6,
    cube_points,
    results=(6, 4, 5, 3, 1, 2),
    labels=(
        ("1", 0, 3 / 4, 20),
        ("2", 2, 1 / 4, 20),
        ("3", 1, 7 / 4, 20),
        ("4", 3, 1 / 4, 20),
        ("5", 5, 7 / 4, 20),
        ("6", 4, 1 / 4, 20),
    ),
    font_size=240,
)

D8 = ShapeDefinition(
    "d8",
    8,
    octahedron_points,
    results=(8, 7, 6, 5, 3, 4, 2, 1),
    labels=(
        ("1", 0, 4 / 3, 0),
        ("2", 1, 4 / 3, 0),
        ("3", 2, 2 / 3, 0),
        ("4", 3, 2 / 3, 0),
        ("5", 5, 4 / 3, 0),
        ("6", 4, 4 / 3, 0),
        ("7", 6, 2 / 3, 0),
        ("8", 7, 2 / 3, 0),
    ),
    font_size=200,
)

D10 = ShapeDefinition(
    "d10",
    10,
    trapezohedron_points,
    results=(10, 4, 6, 2, 8, 7, 1, 3, 9, 5),
    labels=(
        ("1", 0, 0, 0),
        ("2", 8, 1, 0),
        ("3", 4, 0, 0),
        ("4", 5, 1, 0),
        ("5", 2, 0, 0),
        ("6", 9, 1, 0),
        ("7", 1, 0, 0),
        ("8", 7, 1, 0),
        ("9", 3, 0, 0),
        ("10", 6, 1, 0),
    ),
    font_size=160,
)

D12 = ShapeDefinition(
    "d12",
    12,
    dodecahedron_points,
    results=(12, 10, 11, 6, 4, 7, 8, 9, 5, 2, 3, 1),
    labels=(
        ("1", 0, 0, 20),
        ("2", 2, 8 / 5, 20),
        ("3", 1, 2 / 5, 20),
        ("4", 7, 0, 20),
        ("5", 6, 6 / 5, 20),
        ("6", 5, 6 / 5, 20),
        ("7", 3, 8 / 5, 20),
        ("8", 8, 8 / 5, 20),
        ("9", 4, 4 / 5, 20),
        ("10", 10, 4 / 5, 20),
        ("11", 9, 8 / 5, 20),
        ("12", 11, 6 / 5, 20),
    ),
    font_size=240,
)

D20 = ShapeDefinition(
    "d20",
    20,
    icosahedron_points,
    results=(20, 18, 14, 4, 2, 5, 12, 15, 3, 9, 16, 6, 19, 17, 7, 1, 11, 8, 13, 10),
    labels=(
        ("1", 0, 0, 35),
        ("2", 12, 0, 35),
        ("3", 1, 2 / 3, 35),
        ("4", 13, 2 / 3, 35),
        ("5", 10, 0, 35),
        ("6", 7, 0, 35),
        ("7", 2, 4 / 3, 35),
        ("8", 18, 2 / 3, 35),
        ("9", 6, 2 / 3, 35),
        ("10", 16, 0, 35),
        ("11", 19, 0, 35),
        ("12", 9, 4 / 3, 35),
        ("13", 17, 4 / 3, 35),
        ("14", 14, 2 / 3, 35),
        ("15", 11, 0, 35),
        ("16", 5, 0, 35),
        ("17", 3, 4 / 3, 35),
        ("18", 8, 2 / 3, 35),
        ("19", 4, 2 / 3, 35),
        ("20", 15, 0, 35),
    ),
    font_size=180,
)

SHAPES = {s.name: s for s in (D4, D6, D8, D10, D12, D20)}


def shape_definition(name):
    try:
        return SHAPES[name]
    except KeyError:
        raise ValueError(
            f'Unknown die "{name}", expected one of {", ".join(SHAPES)}'
        ) from None


# The topology of a shape never changes, so each one is built only once
# and shared by every die of that shape.
@functools.lru_cache(maxsize=None)
def shape_model(name):
    definition = shape_definition(name)
    points, edge_lengths = definition.points()
    return die_model.build_model(points, edge_lengths, definition.face_count)
