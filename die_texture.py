import logging
import math
import cairo
import numpy
from matplotlib.colors import to_rgb
from opensimplex import OpenSimplex
import bevel
import texture_writer
import vec3

logger = logging.getLogger(__name__)

# Colors of the die and of its numbers.
BACKGROUND = "#333"
FOREGROUND = "#eee"

FONT = "Roboto"

# Label offsets and font sizes are given in pixels of a square face cell
# of this size, whose half width matches the extent of the face.
LABEL_CELL = 512

# A texel is inside a triangle when the three triangles it forms with the
# sides add up to the whole, within this tolerance.
AREA_TOLERANCE = 1e-6

# Frequency of the noise pattern, in features per model unit.
NOISE_SCALE = 4

# The noise color ramp, as (noise value, (r, g, b)) stops. The two middle
# stops are close together, giving a sharp line between the two colors.
COLOR_STOPS = (
    (0.0, (0.1, 0.1, 0.1)),
    (0.49, (89 / 255, 60 / 255, 143 / 255)),
    (0.51, (2 / 255, 128 / 255, 144 / 255)),
    (1.0, (0.1, 0.1, 0.1)),
)


# The size in pixels of the texture for the layout.
def texture_size(info, scale=bevel.PIXELS_PER_UNIT):
    return (math.ceil(info.width * scale), math.ceil(info.height * scale))


# Draws text centered on the current origin.
def show_centered(ctx, text):
    x_bearing, y_bearing, width, height, _, _ = ctx.text_extents(text)
    ctx.move_to(-x_bearing - width / 2, -y_bearing - height / 2)
    ctx.show_text(text)


# Returns a function that renders the numbers of the die described by
# definition onto a texture with the given layout.
def label_texture(
    definition,
    foreground=FOREGROUND,
    background=BACKGROUND,
    scale=bevel.PIXELS_PER_UNIT,
):
    foreground_rgb = to_rgb(foreground)
    background_rgb = to_rgb(background)

    def make_texture(info):
        width, height = texture_size(info, scale)
        cells = {cell.face: cell for cell in info.face_cells}

        writer = texture_writer.TextureWriter(width, height, background_rgb)
        with writer as ctx:
            ctx.set_source_rgb(*foreground_rgb)
            ctx.select_font_face(
                FONT, cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD
            )
            for text, face, rotation, offset in definition.labels:
                cell = cells[face]
                # Texture pixels per pixel of the reference cell.
                k = cell.extent * scale / (LABEL_CELL / 2)

                ctx.save()
                ctx.translate(cell.center[0] * scale, cell.center[1] * scale)
                ctx.rotate(rotation * math.pi)
                ctx.translate(0, offset * k)
                ctx.set_font_size(definition.font_size * k)
                show_centered(ctx, text)
                ctx.restore()

        logger.debug(
            "Drew %d labels on a %dx%d texture",
            len(definition.labels),
            width,
            height,
        )
        return writer.texture

    return make_texture


# Piecewise linear interpolation between color stops. values may be a
# number or an array; returns an array of (r, g, b) of matching shape.
def ramp(values, stops=COLOR_STOPS):
    xs = [v for v, _ in stops]
    channels = numpy.array([c for _, c in stops]).T
    return numpy.stack(
        [numpy.interp(values, xs, channel) for channel in channels], axis=-1
    )


# Colors of the noise pattern at an array of points.
def noise_colors(noise, positions):
    scaled = NOISE_SCALE * numpy.asarray(positions, dtype=float)
    values = numpy.array(
        [noise.noise3(float(x), float(y), float(z)) for x, y, z in scaled]
    )
    return ramp(numpy.clip(values, 0.0, 1.0))


# Finds the texels covered by a textured polygon, and the point on the
# surface of the die that each one shows.
# Yields (xs, ys, positions) for each triangle of the polygon, where xs and
# ys are pixel coordinates and positions are the matching 3d points.
def covered_texels(polygon, scale=bevel.PIXELS_PER_UNIT):
    uvs = polygon.uvs
    points = polygon.positions

    low = numpy.floor(uvs.min(axis=0) * scale).astype(int)
    high = numpy.ceil(uvs.max(axis=0) * scale).astype(int)
    xs, ys = numpy.meshgrid(
        numpy.arange(low[0], high[0] + 1), numpy.arange(low[1], high[1] + 1)
    )
    xs = xs.ravel()
    ys = ys.ravel()
    v = numpy.stack([xs, ys], axis=-1) / scale

    for i in range(1, len(uvs) - 1):
        t0, t1, t2 = uvs[0], uvs[i], uvs[i + 1]
        d = vec3.triangle_area(t0, t1, t2)
        if d <= 0:
            continue

        # Each area is the weight of the corner opposite it.
        a = vec3.triangle_area(v, t0, t1)
        b = vec3.triangle_area(v, t1, t2)
        c = vec3.triangle_area(v, t0, t2)
        inside = numpy.abs(a + b + c - d) <= AREA_TOLERANCE

        positions = (
            a[inside, None] * points[i + 1]
            + b[inside, None] * points[0]
            + c[inside, None] * points[i]
        ) / d
        yield xs[inside], ys[inside], positions


# Returns a function that paints a noise pattern onto a texture with the
# given layout. The pattern is a function of the position on the die, so it
# runs continuously across faces and fillets. Texels outside every polygon
# are left transparent.
def noise_texture(seed=0, scale=bevel.PIXELS_PER_UNIT):
    def make_texture(info):
        noise = OpenSimplex(seed)
        width, height = texture_size(info, scale)
        rgba = numpy.zeros((height, width, 4), dtype=numpy.uint8)

        count = 0
        for polygon in info.polygons:
            for xs, ys, positions in covered_texels(polygon, scale):
                keep = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
                if not keep.any():
                    continue
                colors = noise_colors(noise, positions[keep])
                rgb = numpy.floor(colors * 255).astype(numpy.uint8)
                rgba[ys[keep], xs[keep], :3] = rgb
                rgba[ys[keep], xs[keep], 3] = 255
                count += int(keep.sum())

        logger.debug(
            "Painted %d texels of a %dx%d noise texture", count, width, height
        )
        return texture_writer.Texture(rgba)

    return make_texture
