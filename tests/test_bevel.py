import math
import numpy
import pytest
import bevel
import die_model
import die_shapes
import vec3


@pytest.fixture(scope="module", params=sorted(die_shapes.SHAPES))
def beveled(request):
    model = die_shapes.shape_model(request.param)
    info, surfaces = bevel.generate_geometry(model, 0.09, 5)
    return model, info, surfaces


def triangle_normals(surface):
    t = surface.triangles()
    return numpy.cross(t[:, 1] - t[:, 0], t[:, 2] - t[:, 0])


def test_surface_counts(beveled):
    model, info, surfaces = beveled
    assert len(surfaces) == 1 + len(model.vertices)
    assert len(info.polygons) == 5 * len(model.edges) + len(model.faces)
    assert [c.face for c in info.face_cells] == list(range(len(model.faces)))


def test_positions_are_finite(beveled):
    _, _, surfaces = beveled
    for s in surfaces:
        assert numpy.all(numpy.isfinite(s.positions))
        assert s.indices.min() >= 0
        assert s.indices.max() < len(s.positions)


def test_no_degenerate_triangles(beveled):
    _, _, surfaces = beveled
    for s in surfaces:
        areas = numpy.linalg.norm(triangle_normals(s), axis=1)
        assert numpy.all(areas > 1e-12)


def test_polygons_face_outward(beveled):
    _, _, surfaces = beveled
    s = surfaces[0]
    normals = s.normals[s.indices[:, 0]]
    assert numpy.all(numpy.sum(triangle_normals(s) * normals, axis=1) > 0)


def test_uvs_inside_texture(beveled):
    _, info, surfaces = beveled
    uvs = surfaces[0].uvs
    assert numpy.all(uvs >= -1e-9)
    assert numpy.all(uvs <= 1 + 1e-9)
    for polygon in info.polygons:
        assert numpy.all(polygon.uvs >= -1e-9)
        assert numpy.all(polygon.uvs[:, 0] <= info.width + 1e-9)
        assert numpy.all(polygon.uvs[:, 1] <= info.height + 1e-9)


def test_texture_width_is_whole_pixels(beveled):
    _, info, _ = beveled
    pixels = info.width * bevel.PIXELS_PER_UNIT
    assert pixels == pytest.approx(round(pixels))


def test_sphere_spheres_round_corners(beveled):
    model, _, surfaces = beveled
    for v, s in enumerate(surfaces[1:]):
        center = bevel.vertex_center(model, v, 0.09)
        radii = numpy.linalg.norm(s.positions - center, axis=1)
        assert numpy.allclose(radii, 0.09)
        assert numpy.all(s.uvs == 0)


def test_face_insets_lie_on_faces(beveled):
    model, info, _ = beveled
    insets = info.polygons[-len(model.faces):]
    for f, polygon in enumerate(insets):
        face = model.faces[f]
        p0 = model.vertices[face.vertices[0]].point
        for p in polygon.positions:
            assert abs(vec3.dot_product(p - p0, face.normal)) < 1e-9


def test_cube_corner_center():
    model = die_shapes.shape_model("d6")
    for v, vertex in enumerate(model.vertices):
        center = bevel.vertex_center(model, v, 0.09)
        assert numpy.allclose(center, vertex.point * (0.41 / 0.5))


def test_fillet_strip_width():
    model = die_shapes.shape_model("d6")
    info = bevel.TextureInfo()
    centers = [
        bevel.vertex_center(model, v, 0.1) for v in range(len(model.vertices))
    ]
    bevel.add_fillet(info, model, 0, centers, 0.1, 4)
    assert len(info.polygons) == 4
    # A quarter turn of radius 0.1 in four strips, rounded up to whole pixels.
    strip = math.ceil(math.pi / 2 * 0.1 / 4 * bevel.PIXELS_PER_UNIT)
    assert info.width == pytest.approx(4 * strip / bevel.PIXELS_PER_UNIT)
    assert info.height == pytest.approx(0.8)
    for polygon in info.polygons:
        assert vec3.magnitude(polygon.normal) == pytest.approx(1.0)


def test_fan_triangles():
    assert bevel.fan_triangles(3) == [(0, 1, 2)]
    assert bevel.fan_triangles(5) == [(0, 1, 2), (2, 3, 0), (3, 4, 0)]


def test_unit_sphere():
    normals, indices = bevel.unit_sphere(32, 16)
    assert normals.shape == (33 * 17, 3)
    assert len(indices) == 2 * 32 * 15
    assert numpy.allclose(numpy.linalg.norm(normals, axis=1), 1.0)
    assert not normals.flags.writeable


def test_define_geometry():
    model = die_shapes.shape_model("d8")
    info, surfaces = bevel.define_geometry(model)(0.05, 2)
    assert len(info.polygons) == 2 * 12 + 8


@pytest.mark.parametrize(
    "rounding, edge_detail",
    [
        (0, 5),
        (-0.1, 5),
        (math.inf, 5),
        (math.nan, 5),
        (0.09, 0),
        (0.09, 2.5),
        (0.09, True),
        (0.09, "5"),
    ],
)
def test_bad_parameters(rounding, edge_detail):
    model = die_shapes.shape_model("d6")
    with pytest.raises(ValueError):
        bevel.generate_geometry(model, rounding, edge_detail)


def test_corner_with_too_few_faces():
    model = die_shapes.shape_model("d6")
    vertex = die_model.Vertex(numpy.zeros(3))
    vertex.faces = [0, 1]
    broken = die_model.Model(
        model.vertices[:-1] + [vertex], model.edges, model.faces
    )
    with pytest.raises(die_model.ConstructionError):
        bevel.vertex_center(broken, 7, 0.09)


def test_parallel_faces_have_no_center():
    model = die_shapes.shape_model("d6")
    opposite = {}
    for f, face in enumerate(model.faces):
        opposite[tuple(numpy.round(face.normal).astype(int))] = f
    vertex = die_model.Vertex(numpy.zeros(3))
    vertex.faces = [opposite[(1, 0, 0)], opposite[(-1, 0, 0)], opposite[(0, 1, 0)]]
    broken = die_model.Model([vertex], model.edges, model.faces)
    with pytest.raises(die_model.ConstructionError):
        bevel.vertex_center(broken, 0, 0.09)
