"""
font_metrics.py - Font catalogue and glyph font loading for text portraits

The width ratio of a font (cell width / cell height) decides the grid
geometry, so the values in FONT_OPTIONS are part of the generated output:
changing a ratio changes how many columns a portrait gets.

Rendering uses whatever TrueType file can be found for the family. If none
is installed, Pillow's bundled default font is used at the requested size.
"""

import re

from PIL import ImageFont


DEFAULT_WIDTH_RATIO = 0.6
DEFAULT_FONT_FAMILY = "monospace"


# ─── Font catalogue ─────────────────────────────────────────────────────────
#
# Script styles overlap on purpose; the 1.5x draw size makes connected
# letterforms flow into each other.

FONT_OPTIONS = (
    # Signature / script
    {"label": "Great Vibes", "value": "'Great Vibes', cursive", "category": "script", "width_ratio": 0.8},
    {"label": "Dancing Script", "value": "'Dancing Script', cursive", "category": "script", "width_ratio": 0.9},
    {"label": "Sacramento", "value": "'Sacramento', cursive", "category": "script", "width_ratio": 0.9},
    {"label": "Pacifico", "value": "'Pacifico', cursive", "category": "script", "width_ratio": 1.0},
    {"label": "Satisfy", "value": "'Satisfy', cursive", "category": "script", "width_ratio": 0.9},
    {"label": "Caveat", "value": "'Caveat', cursive", "category": "script", "width_ratio": 0.8},
    {"label": "Petit Formal Script", "value": "'Petit Formal Script', cursive", "category": "script", "width_ratio": 0.8},
    {"label": "Indie Flower", "value": "'Indie Flower', cursive", "category": "script", "width_ratio": 0.9},
    # Elegant serif
    {"label": "Playfair Display", "value": "'Playfair Display', serif", "category": "elegant", "width_ratio": 0.9},
    {"label": "Cormorant Garamond", "value": "'Cormorant Garamond', serif", "category": "elegant", "width_ratio": 0.85},
    {"label": "Lobster", "value": "'Lobster', cursive", "category": "elegant", "width_ratio": 1.0},
    # Clean / modern
    {"label": "Raleway Light", "value": "'Raleway', sans-serif", "category": "modern", "width_ratio": 0.8},
    {"label": "Monospace", "value": "monospace", "category": "modern", "width_ratio": 0.6},
    {"label": "Georgia", "value": "Georgia, serif", "category": "modern", "width_ratio": 0.9},
)

WIDTH_RATIOS = {opt["value"]: opt["width_ratio"] for opt in FONT_OPTIONS}


# Installed-font fallbacks per generic CSS family
GENERIC_FALLBACKS = {
    "monospace": ["DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "Menlo.ttc", "consola.ttf", "cour.ttf"],
    "serif": ["DejaVuSerif.ttf", "LiberationSerif-Regular.ttf", "Georgia.ttf", "georgia.ttf", "times.ttf"],
    "sans-serif": ["DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Arial.ttf", "arial.ttf"],
    "cursive": ["DejaVuSans-Oblique.ttf", "LiberationSans-Italic.ttf", "ariali.ttf"],
}


def width_ratio_for(font_family):
    """Look up the cell width ratio for a font identifier (0.6 if unknown)."""
    return WIDTH_RATIOS.get(font_family, DEFAULT_WIDTH_RATIO)


def find_font_option(font_family):
    for opt in FONT_OPTIONS:
        if opt["value"] == font_family or opt["label"].lower() == str(font_family).lower():
            return opt
    return None


def resolve_font_family(name):
    """
    Accept either a catalogue label ("Great Vibes") or an identifier
    ("'Great Vibes', cursive") and return the identifier. Unknown names are
    passed through untouched so they fall back to the default width ratio.
    """
    opt = find_font_option(name)
    return opt["value"] if opt else name


def parse_font_family(font_family):
    """Split a CSS-style family list into (named families, generic family)."""
    names = []
    generic = None
    for part in font_family.split(","):
        part = part.strip().strip("'\"")
        if not part:
            continue
        if part in GENERIC_FALLBACKS:
            generic = generic or part
        else:
            names.append(part)
    return names, generic


def font_candidates(font_family):
    """Candidate font file names for an identifier, most specific first."""
    names, generic = parse_font_family(font_family)
    candidates = []
    for name in names:
        compact = re.sub(r"\s+", "", name)
        candidates += [f"{compact}-Regular.ttf", f"{compact}.ttf", f"{name}.ttf"]
    candidates += GENERIC_FALLBACKS.get(generic or DEFAULT_FONT_FAMILY, [])
    return candidates


def load_glyph_font(font_family, size, font_path=None):
    """
    Load a font for rasterizing glyphs at `size` pixels.

    An explicit font_path must load; otherwise installed candidates are tried
    in order and Pillow's default font is the last resort.
    """
    if font_path:
        return ImageFont.truetype(str(font_path), size=size)

    for candidate in font_candidates(font_family):
        try:
            return ImageFont.truetype(candidate, size=size)
        except OSError:
            continue

    return ImageFont.load_default(size=size)
