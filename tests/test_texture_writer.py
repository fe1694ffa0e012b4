import cairo
import numpy
import pytest
import texture_writer


def test_background():
    writer = texture_writer.TextureWriter(4, 3, (1.0, 0.0, 0.0))
    with writer:
        pass
    texture = writer.texture
    assert (texture.width, texture.height) == (4, 3)
    assert numpy.all(texture.rgba == [255, 0, 0, 255])


def test_transparent():
    writer = texture_writer.TextureWriter(2, 2)
    with writer:
        pass
    assert numpy.all(writer.texture.rgba == 0)


def test_drawing():
    writer = texture_writer.TextureWriter(10, 10, (0.0, 0.0, 0.0))
    with writer as ctx:
        ctx.set_source_rgb(0.0, 0.0, 1.0)
        ctx.rectangle(0, 0, 5, 10)
        ctx.fill()
    rgba = writer.texture.rgba
    assert list(rgba[5, 2]) == [0, 0, 255, 255]
    assert list(rgba[5, 7]) == [0, 0, 0, 255]


def test_partial_alpha_is_unmultiplied():
    writer = texture_writer.TextureWriter(2, 2)
    with writer as ctx:
        ctx.set_source_rgba(0.0, 1.0, 0.0, 0.5)
        ctx.paint()
    r, g, b, a = writer.texture.rgba[0, 0]
    assert 126 <= a <= 129
    assert g >= 253
    assert r == b == 0


def test_no_texture_after_error():
    writer = texture_writer.TextureWriter(2, 2)
    with pytest.raises(RuntimeError):
        with writer:
            raise RuntimeError("drawing failed")
    assert writer.texture is None


def test_write_png(tmp_path):
    rgba = numpy.zeros((6, 5, 4), dtype=numpy.uint8)
    rgba[..., 1] = 200
    rgba[..., 3] = 255
    filename = str(tmp_path / "texture.png")
    texture_writer.Texture(rgba).write_png(filename)

    surface = cairo.ImageSurface.create_from_png(filename)
    assert (surface.get_width(), surface.get_height()) == (5, 6)
    assert numpy.array_equal(texture_writer.surface_to_rgba(surface), rgba)
