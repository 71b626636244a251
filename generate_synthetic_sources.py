"""
generate_synthetic_sources.py - Synthetic source images for text portraits

Produces deterministic stand-ins for photos, handy for trying fonts and
sizes without hunting for a picture, and used as fixtures by the tests.

Modes:
  - "gradient":  Left-to-right ramp from black to the chosen color
  - "blocks":    Checkerboard of lit and dark blocks (tests negative space)
  - "halftone":  Dots whose radius grows across the image
  - "portrait":  Lit oval "head and shoulders" on a dark background
  - "all":       Generate every mode

Usage:
    python generate_synthetic_sources.py --output ./sources --mode all
    python generate_synthetic_sources.py --output ./sources --mode portrait --width 800 --height 1000 --color "#FFD2A0"
"""

import os
import argparse
import numpy as np
from PIL import Image, ImageDraw, ImageFilter


def hex_to_rgb(hex_color):
    """Convert '#RRGGBB' to (R, G, B) tuple."""
    h = hex_color.lstrip('#')
    return tuple(int(h[i:i+2], 16) for i in (0, 2, 4))


def lerp_color(c1, c2, t):
    """Linearly interpolate between two RGB tuples by factor t in [0, 1]."""
    t = max(0.0, min(1.0, t))
    return tuple(int(a + (b - a) * t) for a, b in zip(c1, c2))


# ─── Gradient ───────────────────────────────────────────────────────────────

def make_gradient(width, height, color_rgb, black_rgb=(0, 0, 0)):
    """Horizontal ramp: column 0 is black_rgb, the last column is color_rgb."""
    t = np.linspace(0.0, 1.0, width, dtype=np.float64)
    black = np.array(black_rgb, dtype=np.float64)
    color = np.array(color_rgb, dtype=np.float64)
    row = black + (color - black) * t[:, None]
    arr = np.repeat(row[None, :, :], height, axis=0)
    return Image.fromarray(np.rint(arr).astype(np.uint8), 'RGB')


# ─── Blocks ─────────────────────────────────────────────────────────────────

def make_blocks(width, height, color_rgb, black_rgb=(0, 0, 0), block=32):
    """
    Checkerboard of lit and unlit blocks. Unlit blocks fall below the skip
    threshold, so portraits of this source show clean gaps.
    """
    img = Image.new('RGB', (width, height), black_rgb)
    draw = ImageDraw.Draw(img)
    for by in range(0, height, block):
        for bx in range(0, width, block):
            if (bx // block + by // block) % 2 == 0:
                draw.rectangle([bx, by, bx + block - 1, by + block - 1], fill=color_rgb)
    return img


# ─── Halftone ───────────────────────────────────────────────────────────────

def make_halftone(width, height, color_rgb, black_rgb=(0, 0, 0), spacing=24):
    """Grid of dots; radius grows left to right from nothing to touching."""
    img = Image.new('RGB', (width, height), black_rgb)
    draw = ImageDraw.Draw(img)
    max_radius = spacing * 0.5
    for cy in range(spacing // 2, height, spacing):
        for cx in range(spacing // 2, width, spacing):
            t = cx / max(width - 1, 1)
            radius = max_radius * t
            if radius < 0.5:
                continue
            fill = lerp_color(black_rgb, color_rgb, 0.5 + 0.5 * t)
            draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], fill=fill)
    return img


# ─── Portrait silhouette ────────────────────────────────────────────────────

def make_portrait(width, height, color_rgb, black_rgb=(0, 0, 0)):
    """
    A soft-lit oval head over a shoulder curve, on a dark background.
    Brightness falls off from the upper left like a key light.
    """
    mask = Image.new('L', (width, height), 0)
    draw = ImageDraw.Draw(mask)

    head_w = width * 0.42
    head_h = height * 0.46
    cx = width / 2
    top = height * 0.12
    draw.ellipse([cx - head_w / 2, top, cx + head_w / 2, top + head_h], fill=255)
    draw.ellipse([width * 0.08, height * 0.66, width * 0.92, height * 1.3], fill=255)
    mask = mask.filter(ImageFilter.GaussianBlur(radius=max(1, min(width, height) // 60)))

    ys, xs = np.mgrid[0:height, 0:width]
    dist = np.hypot(xs / max(width, 1), ys / max(height, 1))
    light = np.clip(1.15 - dist * 0.6, 0.35, 1.0)

    coverage = np.asarray(mask, dtype=np.float64) / 255.0 * light
    black = np.array(black_rgb, dtype=np.float64)
    color = np.array(color_rgb, dtype=np.float64)
    arr = black + (color - black) * coverage[:, :, None]
    return Image.fromarray(np.rint(arr).astype(np.uint8), 'RGB')


SOURCE_GENERATORS = {
    "gradient": make_gradient,
    "blocks": make_blocks,
    "halftone": make_halftone,
    "portrait": make_portrait,
}


def make_source(mode, width, height, color_hex="#FFFFFF", black_hex="#000000"):
    """Build one synthetic source by mode name."""
    if mode not in SOURCE_GENERATORS:
        raise ValueError(f"Unknown synthetic mode: {mode}")
    return SOURCE_GENERATORS[mode](width, height, hex_to_rgb(color_hex), hex_to_rgb(black_hex))


# ─── Main ────────────────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(
        description="Generate synthetic source images for text portraits"
    )
    parser.add_argument(
        "--output", "-o", dest="output_dir", type=str, required=True,
        help="Folder to save generated sources"
    )
    parser.add_argument(
        "--mode", "-m", dest="mode", type=str, default="portrait",
        choices=list(SOURCE_GENERATORS) + ["all"],
        help="Source pattern (default: portrait)"
    )
    parser.add_argument("--width", type=int, default=600, help="Width in px (default: 600)")
    parser.add_argument("--height", type=int, default=800, help="Height in px (default: 800)")
    parser.add_argument(
        "--color", "-c", dest="color", type=str, default="#FFFFFF",
        help="Hex color for bright areas (default: #FFFFFF)"
    )
    parser.add_argument(
        "--black", "-b", dest="black_color", type=str, default="#000000",
        help="Hex color for dark areas (default: #000000)"
    )
    args = parser.parse_args()

    os.makedirs(args.output_dir, exist_ok=True)

    print(f"=== Generate Synthetic Sources ===")
    print(f"Output: {os.path.abspath(args.output_dir)}")
    print(f"Size:   {args.width}x{args.height} px")
    print(f"Color:  dark={args.black_color} -> bright={args.color}")
    print()

    modes = list(SOURCE_GENERATORS) if args.mode == "all" else [args.mode]
    for mode in modes:
        img = make_source(mode, args.width, args.height, args.color, args.black_color)
        path = os.path.join(args.output_dir, f"{mode}.png")
        img.save(path, 'PNG')
        print(f"  [OK] {mode}.png")

    print(f"\nDone. {len(modes)} sources in {os.path.abspath(args.output_dir)}")


if __name__ == '__main__':
    main()
