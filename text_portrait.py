"""
text_portrait.py - Text portrait generator

Turns a photo into a mosaic of characters: a user-supplied text is tiled
across a grid derived from the photo, and each character takes the color and
opacity of the image region under it. Up close it reads as text, from a
distance as the photo.

How it works:
  1. Bound the source so neither side exceeds 4096 px.
  2. Derive the character grid from the aspect ratio and font size.
  3. Area-average the source down to one RGBA sample per grid cell.
  4. Walk the cells row by row; skip dark cells, draw the next character of
     the text in every other cell, tinted by the cell's brightness.

Usage (library):
    from PIL import Image
    from text_portrait import GenerationConfig, generate_text_portrait

    config = GenerationConfig(Image.open("face.jpg"), "HELLO WORLD", color_mode="bw")
    portrait = generate_text_portrait(config, on_progress=print)
    portrait.save("face_text.png")

See run_portrait.py for the command-line front end.
"""

import math
import re
import time
from collections import namedtuple
from dataclasses import dataclass
from typing import Optional

import numpy as np
import cv2
from PIL import Image, ImageDraw

from font_metrics import DEFAULT_FONT_FAMILY, load_glyph_font, width_ratio_for


MAX_DIMENSION = 4096          # source is resampled down past this
BASE_WIDTH_BUDGET = 1000      # grid width budget in output-independent units
MAX_ROWS = 1500
SKIP_LUMINANCE = 10           # cells darker than this stay background
ALPHA_BOOST = 1.2
GLYPH_OVERSIZE = 1.5          # glyphs bleed into their neighbours
DEFAULT_FONT_SIZE = 6
DEFAULT_OUTPUT_SCALE = 2
PROGRESS_EVERY_ROWS = 20

COLOR_MODES = ("bw", "color")
BACKGROUND = (0, 0, 0)


# ─── Errors ──────────────────────────────────────────────────────────────────

class TextPortraitError(ValueError):
    """Base class for everything that fails a generation call."""


class ValidationError(TextPortraitError):
    """Bad generation settings (empty text, unknown color mode, ...)."""


class GeometryError(TextPortraitError):
    """The source/font combination leaves no room for a single cell."""


class DecodeError(TextPortraitError):
    """The source image could not be read or decoded."""


# ─── Data model ──────────────────────────────────────────────────────────────

@dataclass
class GenerationConfig:
    source_image: Image.Image
    text: str
    color_mode: str = "color"
    font_size: float = DEFAULT_FONT_SIZE
    font_family: str = DEFAULT_FONT_FAMILY
    output_scale: Optional[float] = None
    font_path: Optional[str] = None


@dataclass(frozen=True)
class GridPlan:
    cols: int
    rows: int
    cell_width: float
    cell_height: float

    def output_size(self, output_scale):
        """(width, height) of the raster this grid renders into."""
        return (
            math.floor(self.cols * self.cell_width * output_scale),
            math.floor(self.rows * self.cell_height * output_scale),
        )


Glyph = namedtuple("Glyph", ["char", "x", "y", "fill"])


def collapse_whitespace(text):
    return re.sub(r"\s+", " ", text)


class CharacterCursor:
    """
    Sequential pointer into the whitespace-collapsed text.

    Only advances when a glyph is actually emitted, so dark regions of the
    photo do not use up characters.
    """

    def __init__(self, text):
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")
        self.characters = list(collapse_whitespace(text))
        self.position = 0

    def take(self):
        char = self.characters[self.position]
        self.position = (self.position + 1) % len(self.characters)
        return char


# ═══════════════════════════════════════════════════════════════════════════════
#  SOURCE BOUNDING
# ═══════════════════════════════════════════════════════════════════════════════

def to_rgba(image):
    """Normalise any Pillow mode (P, L, LA, RGB, ...) to RGBA."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return image


def bound_source(image, max_dimension=MAX_DIMENSION):
    """
    Downscale an oversized image so neither side exceeds max_dimension.
    Images already within bounds are returned as-is.
    """
    src_w, src_h = image.size
    if src_w <= max_dimension and src_h <= max_dimension:
        return image

    # Integer arithmetic: floor(src * max / longest) without float drift
    longest = max(src_w, src_h)
    new_w = max(1, src_w * max_dimension // longest)
    new_h = max(1, src_h * max_dimension // longest)
    return image.resize((new_w, new_h), Image.Resampling.LANCZOS)


# ═══════════════════════════════════════════════════════════════════════════════
#  GRID PLANNING
# ═══════════════════════════════════════════════════════════════════════════════

def plan_grid(src_w, src_h, font_size, width_ratio):
    """
    Work out how many character cells fit the source.

    Roughly 1000 units of width are budgeted, so a coarse 12px font gives
    ~130 columns and a fine 6px font ~270. Tall images are clamped to
    MAX_ROWS, shrinking the column count to keep the aspect ratio.
    """
    if src_w < 1 or src_h < 1:
        raise GeometryError(f"Source has no area: {src_w}x{src_h}")

    cell_w = font_size * width_ratio
    cell_h = font_size
    cell_aspect = cell_w / cell_h

    max_cols = math.floor(BASE_WIDTH_BUDGET / cell_w)
    aspect = src_h / src_w

    cols = min(src_w // 2, max_cols)
    rows = math.floor(cols * aspect * cell_aspect)

    if rows > MAX_ROWS:
        rows = MAX_ROWS
        cols = math.floor(rows / aspect / cell_aspect)

    if cols < 1 or rows < 1:
        raise GeometryError(
            f"Grid is empty ({cols} x {rows}) for a {src_w}x{src_h} source "
            f"at font size {font_size}"
        )

    return GridPlan(cols=cols, rows=rows, cell_width=cell_w, cell_height=cell_h)


# ═══════════════════════════════════════════════════════════════════════════════
#  SAMPLING
# ═══════════════════════════════════════════════════════════════════════════════

def sample_grid(image, plan):
    """
    Average the source down to one RGBA sample per cell.
    Returns a (rows, cols, 4) uint8 array.

    Colors are averaged premultiplied by alpha and divided back out, so a
    half-transparent white cell samples as white with half alpha, and fully
    transparent cells read as black background.
    """
    rgba = np.array(to_rgba(image))
    size = (plan.cols, plan.rows)
    shape = (plan.rows, plan.cols, 4)

    alpha = rgba[:, :, 3:4]
    if (alpha == 255).all():
        return cv2.resize(rgba, size, interpolation=cv2.INTER_AREA).reshape(shape)

    premul = rgba.astype(np.uint16)
    premul[:, :, :3] *= alpha
    resized = cv2.resize(premul, size, interpolation=cv2.INTER_AREA).reshape(shape)

    avg_alpha = resized[:, :, 3:4].astype(np.float64)
    rgb = np.divide(resized[:, :, :3], avg_alpha,
                    out=np.zeros((plan.rows, plan.cols, 3), dtype=np.float64),
                    where=avg_alpha > 0)

    samples = np.empty(shape, dtype=np.uint8)
    samples[:, :, :3] = np.clip(np.rint(rgb), 0, 255)
    samples[:, :, 3] = resized[:, :, 3]
    return samples


def luminance_grid(samples):
    """Perceptual brightness (0-255) of every sample."""
    rgb = samples[:, :, :3].astype(np.float64)
    return 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]


# ═══════════════════════════════════════════════════════════════════════════════
#  GLYPH COMPOSITING
# ═══════════════════════════════════════════════════════════════════════════════

def resolve_output_scale(font_size, output_scale=None):
    """Small fonts get extra supersampling so they stay legible."""
    if font_size <= 6:
        return 4
    if font_size <= 9:
        return 3
    return output_scale or DEFAULT_OUTPUT_SCALE


def glyph_alpha(luminance):
    return min(1.0, (luminance / 255) * ALPHA_BOOST)


def glyph_fill(rgb, luminance, color_mode):
    """RGBA fill for one glyph; alpha is scaled to 0-255 for Pillow."""
    alpha = round(glyph_alpha(luminance) * 255)
    if color_mode == "bw":
        gray = math.floor(luminance)
        return (gray, gray, gray, alpha)
    r, g, b = rgb
    return (r, g, b, alpha)


def plan_glyphs(samples, plan, cursor, color_mode, output_scale):
    """
    Decide, row by row, which cells get a glyph and which character each
    one draws. Yields one list of Glyphs per grid row, in row-major order.

    The cursor is consumed here and nowhere else; draw order is irrelevant
    once this pass has assigned the characters.
    """
    luminance = luminance_grid(samples)
    step_x = plan.cell_width * output_scale
    step_y = plan.cell_height * output_scale

    for row in range(plan.rows):
        y = row * plan.cell_height * output_scale + step_y / 2
        glyphs = []
        for col in range(plan.cols):
            lum = float(luminance[row, col])
            if lum < SKIP_LUMINANCE:
                continue

            rgb = tuple(int(c) for c in samples[row, col, :3])
            x = col * plan.cell_width * output_scale + step_x / 2
            glyphs.append(Glyph(cursor.take(), x, y, glyph_fill(rgb, lum, color_mode)))
        yield glyphs


def composite_glyphs(samples, plan, text, color_mode="color", font_size=DEFAULT_FONT_SIZE,
                     font_family=DEFAULT_FONT_FAMILY, output_scale=None, font_path=None,
                     on_progress=None, checkpoint=None):
    """
    Render the sample grid as text on a black RGB canvas and return it.
    """
    scale = resolve_output_scale(font_size, output_scale)
    out_w, out_h = plan.output_size(scale)

    canvas = Image.new("RGB", (out_w, out_h), BACKGROUND)
    # RGBA draw mode on an RGB image blends each glyph by its alpha
    draw = ImageDraw.Draw(canvas, "RGBA")
    font = load_glyph_font(font_family, font_size * scale * GLYPH_OVERSIZE, font_path)

    cursor = CharacterCursor(text)
    reporter = ProgressReporter(plan.rows, on_progress, checkpoint)

    for row, glyphs in enumerate(plan_glyphs(samples, plan, cursor, color_mode, scale)):
        reporter.row_started(row)
        for glyph in glyphs:
            draw.text((glyph.x, glyph.y), glyph.char, font=font, fill=glyph.fill, anchor="mm")

    reporter.finish()
    return canvas


# ─── Progress ────────────────────────────────────────────────────────────────

def yield_checkpoint():
    """Give other threads a turn; the only place a generation call pauses."""
    time.sleep(0)


class ProgressReporter:
    """
    Sends integer percentages to an optional callback every N rows, then
    100 at the end. Each periodic report is followed by a checkpoint call.
    """

    def __init__(self, total_rows, on_progress=None, checkpoint=None,
                 every=PROGRESS_EVERY_ROWS):
        self.total_rows = total_rows
        self.on_progress = on_progress
        self.checkpoint = checkpoint or yield_checkpoint
        self.every = every

    def row_started(self, row):
        if row % self.every:
            return
        if self.on_progress is not None:
            self.on_progress(math.floor(row / self.total_rows * 100))
        self.checkpoint()

    def finish(self):
        if self.on_progress is not None:
            self.on_progress(100)


# ═══════════════════════════════════════════════════════════════════════════════
#  PIPELINE
# ═══════════════════════════════════════════════════════════════════════════════

def validate_config(config):
    if not config.text or not config.text.strip():
        raise ValidationError("Text cannot be empty")
    if config.color_mode not in COLOR_MODES:
        raise ValidationError(
            f"Unknown color mode {config.color_mode!r} (expected one of {', '.join(COLOR_MODES)})"
        )
    if not config.font_size or not math.isfinite(config.font_size) or config.font_size <= 0:
        raise ValidationError(f"Font size must be positive, got {config.font_size}")
    if config.output_scale is not None and (
            not math.isfinite(config.output_scale) or config.output_scale <= 0):
        raise ValidationError(f"Output scale must be positive, got {config.output_scale}")


def generate_text_portrait(config, on_progress=None, checkpoint=None, verbose=False):
    """
    Run the full pipeline for one GenerationConfig and return the finished
    RGB image. Nothing is cached between calls.
    """
    validate_config(config)

    source = bound_source(to_rgba(config.source_image))
    plan = plan_grid(source.width, source.height, config.font_size,
                     width_ratio_for(config.font_family))
    samples = sample_grid(source, plan)

    if verbose:
        scale = resolve_output_scale(config.font_size, config.output_scale)
        out_w, out_h = plan.output_size(scale)
        print(f"  Source: {source.width} x {source.height} px")
        print(f"  Grid:   {plan.cols} x {plan.rows} = {plan.cols * plan.rows} cells")
        print(f"  Output: {out_w} x {out_h} px (scale {scale})")

    return composite_glyphs(
        samples, plan, config.text,
        color_mode=config.color_mode,
        font_size=config.font_size,
        font_family=config.font_family,
        output_scale=config.output_scale,
        font_path=config.font_path,
        on_progress=on_progress,
        checkpoint=checkpoint,
    )
