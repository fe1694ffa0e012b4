import numpy
import pytest
from opensimplex import OpenSimplex
import bevel
import die_shapes
import die_texture


@pytest.fixture(scope="module")
def cube_info():
    model = die_shapes.shape_model("d6")
    info, _ = bevel.generate_geometry(model, 0.09, 5)
    return info


def test_texture_size(cube_info):
    width, height = die_texture.texture_size(cube_info)
    assert width == round(cube_info.width * bevel.PIXELS_PER_UNIT)
    assert height >= cube_info.height * bevel.PIXELS_PER_UNIT
    assert height < cube_info.height * bevel.PIXELS_PER_UNIT + 1


def test_label_texture(cube_info):
    definition = die_shapes.shape_definition("d6")
    texture = die_texture.label_texture(definition)(cube_info)
    assert (texture.width, texture.height) == die_texture.texture_size(cube_info)

    # The fillet strips come first and carry no labels.
    assert list(texture.rgba[0, 0]) == [0x33, 0x33, 0x33, 255]
    assert numpy.all(texture.rgba[..., 3] == 255)

    # Every face cell has some of the label color in it.
    for cell in cube_info.face_cells:
        x = round(cell.center[0] * bevel.PIXELS_PER_UNIT)
        y = round(cell.center[1] * bevel.PIXELS_PER_UNIT)
        r = round(cell.extent * bevel.PIXELS_PER_UNIT / 2)
        patch = texture.rgba[max(y - r, 0) : y + r, x - r : x + r, 0]
        assert patch.max() > 0xCC


def test_ramp_stops():
    for value, color in die_texture.COLOR_STOPS:
        assert numpy.allclose(die_texture.ramp(value), color)


def test_ramp_interpolates():
    stops = ((0.0, (0.0, 0.0, 0.0)), (1.0, (1.0, 0.5, 0.0)))
    colors = die_texture.ramp(numpy.array([0.25, 1.0]), stops)
    assert colors.shape == (2, 3)
    assert numpy.allclose(colors, [(0.25, 0.125, 0.0), (1.0, 0.5, 0.0)])


def test_noise_colors():
    noise = OpenSimplex(0)
    positions = numpy.random.default_rng(0).uniform(-1, 1, (50, 3))
    colors = die_texture.noise_colors(noise, positions)
    assert colors.shape == (50, 3)
    assert numpy.all((colors >= 0) & (colors <= 1))

    # The pattern depends only on the position.
    assert numpy.array_equal(
        die_texture.noise_colors(noise, positions[:5]), colors[:5]
    )


def test_covered_texels():
    positions = [(0, 0, 2), (0, 1, 2), (1, 1, 2), (1, 0, 2)]
    uvs = [(0, 0), (0, 1), (1, 1), (1, 0)]
    polygon = bevel.Polygon(positions, uvs, numpy.array([0.0, 0.0, 1.0]))

    seen = set()
    for xs, ys, points in die_texture.covered_texels(polygon, scale=10):
        assert len(xs) == len(ys) == len(points)
        for x, y, p in zip(xs, ys, points):
            assert p == pytest.approx((x / 10, y / 10, 2))
            seen.add((x, y))
    assert len(seen) == 11 * 11


def test_noise_texture(cube_info):
    texture = die_texture.noise_texture(seed=3, scale=20)(cube_info)
    assert (texture.width, texture.height) == die_texture.texture_size(
        cube_info, 20
    )
    alpha = texture.rgba[..., 3]
    assert set(numpy.unique(alpha)) <= {0, 255}
    assert numpy.count_nonzero(alpha) > alpha.size // 4


def test_noise_is_repeatable(cube_info):
    t1 = die_texture.noise_texture(seed=5, scale=10)(cube_info)
    t2 = die_texture.noise_texture(seed=5, scale=10)(cube_info)
    assert numpy.array_equal(t1.rgba, t2.rgba)
