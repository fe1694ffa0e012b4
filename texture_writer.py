import sys
import cairo
import numpy

# Byte positions of red, green, blue and alpha within a cairo ARGB32 pixel,
# which is stored as one native-endian 32 bit word.
if sys.byteorder == "little":
    RGBA_ORDER = [2, 1, 0, 3]
else:
    RGBA_ORDER = [1, 2, 3, 0]


# An image to be wrapped onto a die, as an array of shape
# (height, width, 4) of 8 bit red, green, blue, alpha values.
# Row 0 is the top of the image.
class Texture:
    def __init__(self, rgba):
        assert rgba.dtype == numpy.uint8 and rgba.ndim == 3
        assert rgba.shape[2] == 4
        self.rgba = rgba

    def __repr__(self):
        return f"Texture({self.width}x{self.height})"

    @property
    def width(self):
        return self.rgba.shape[1]

    @property
    def height(self):
        return self.rgba.shape[0]

    def write_png(self, filename):
        # The surface only borrows pixels, which must outlive it.
        pixels, surface = rgba_to_surface(self.rgba)
        surface.write_to_png(filename)
        surface.finish()
        del pixels


# Copies the pixels out of a cairo ARGB32 surface, undoing cairo's
# premultiplied alpha.
def surface_to_rgba(surface):
    surface.flush()
    width = surface.get_width()
    height = surface.get_height()
    stride = surface.get_stride()
    data = numpy.ndarray(
        shape=(height, stride // 4, 4),
        dtype=numpy.uint8,
        buffer=surface.get_data(),
    )
    rgba = numpy.array(data[:, :width, RGBA_ORDER])

    alpha = rgba[..., 3:4].astype(numpy.uint32)
    partial = (alpha > 0) & (alpha < 255)
    rgb = rgba[..., :3].astype(numpy.uint32)
    unmultiplied = numpy.minimum(rgb * 255 // numpy.maximum(alpha, 1), 255)
    rgba[..., :3] = numpy.where(partial, unmultiplied, rgb)
    return rgba


# Wraps an rgba array in a cairo surface. Returns the pixel buffer along
# with the surface, since cairo does not keep the buffer alive.
def rgba_to_surface(rgba):
    height, width, _ = rgba.shape
    stride = cairo.ImageSurface.format_stride_for_width(
        cairo.FORMAT_ARGB32, width
    )
    pixels = numpy.zeros((height, stride // 4, 4), dtype=numpy.uint8)

    alpha = rgba[..., 3:4].astype(numpy.uint32)
    premultiplied = rgba[..., :3].astype(numpy.uint32) * alpha // 255
    pixels[:, :width, RGBA_ORDER[:3]] = premultiplied
    pixels[:, :width, RGBA_ORDER[3]] = rgba[..., 3]

    surface = cairo.ImageSurface.create_for_data(
        pixels, cairo.FORMAT_ARGB32, width, height, stride
    )
    return pixels, surface


# Context manager for drawing a texture with cairo.
# Parameters are the size in pixels and the background color as an
# (r, g, b) tuple, or None for a transparent background.
# Returns a Cairo context on which to draw. After the with statement, the
# drawing is available as self.texture.
class TextureWriter:
    def __init__(self, width, height, background=None):
        self.surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
        self.ctx = cairo.Context(self.surface)
        if background is not None:
            self.ctx.set_source_rgb(*background)
            self.ctx.paint()
        self.texture = None

    def __enter__(self):
        return self.ctx

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            self.texture = Texture(surface_to_rgba(self.surface))
        del self.ctx
        self.surface.finish()
