"""
run_portrait.py - End-to-end text portrait pipeline

Orchestrates the full workflow:
  1. Load the source photo (or build a synthetic one)
  2. Generate the text portrait
  3. Encode it as PNG or JPEG

Usage:
    # Photo, color characters, default 6px monospace grid
    python run_portrait.py \
        --target photos/me.jpg \
        --text "HAPPY BIRTHDAY" \
        --output ./output/me_text.png

    # Black & white, coarse script font, JPEG download
    python run_portrait.py \
        --target photos/me.jpg \
        --text-file letter.txt \
        --color-mode bw \
        --font-size 12 \
        --font-family "Great Vibes" \
        --output ./output/me_text.jpg

    # No photo at hand: use a synthetic source
    python run_portrait.py --synthetic portrait --text "HELLO" --output ./output/demo.png

    # Show the font catalogue
    python run_portrait.py --list-fonts
"""

import os
import sys
import time
import argparse

from font_metrics import DEFAULT_FONT_FAMILY, FONT_OPTIONS, resolve_font_family, width_ratio_for
from generate_synthetic_sources import SOURCE_GENERATORS, make_source
from prepare_source import load_source, output_format_for, save_portrait
from text_portrait import (
    COLOR_MODES,
    DEFAULT_FONT_SIZE,
    GenerationConfig,
    TextPortraitError,
    ValidationError,
    generate_text_portrait,
    resolve_output_scale,
)


class ConsoleProgress:
    """Progress callback that prints each new percentage once."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.last = None

    def __call__(self, pct):
        if pct == self.last:
            return
        self.last = pct
        print(f"  Progress: {pct:3d}%", file=self.stream)


def list_fonts():
    print("Available fonts:")
    category = None
    for opt in FONT_OPTIONS:
        if opt["category"] != category:
            category = opt["category"]
            print(f"\n  [{category}]")
        print(f"    {opt['label']:<22} width ratio {opt['width_ratio']:.2f}   {opt['value']}")


def read_text(args):
    if args.text_file:
        try:
            with open(args.text_file, 'r', encoding='utf-8') as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise ValidationError(f"Text file is not valid UTF-8: {args.text_file} ({e})") from e
    return args.text or ""


def build_parser():
    parser = argparse.ArgumentParser(
        description="Render a photo as a mosaic of text characters"
    )

    # Source: real photo OR synthetic
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--target", "-t", type=str,
        help="Source photo to turn into a text portrait"
    )
    source_group.add_argument(
        "--synthetic", dest="synthetic", type=str,
        choices=list(SOURCE_GENERATORS),
        help="Use a generated source image instead of a photo"
    )
    parser.add_argument("--synthetic-size", dest="synthetic_size", type=int, nargs=2,
                        default=[600, 800], metavar=("W", "H"),
                        help="Size of the synthetic source (default: 600 800)")

    # Text
    text_group = parser.add_mutually_exclusive_group()
    text_group.add_argument("--text", type=str, help="Text to tile across the portrait")
    text_group.add_argument("--text-file", dest="text_file", type=str,
                            help="Read the text from a UTF-8 file")

    # Rendering settings
    parser.add_argument("--color-mode", dest="color_mode", type=str, default="color",
                        choices=list(COLOR_MODES),
                        help="bw = gray characters, color = source colors (default: color)")
    parser.add_argument("--font-size", dest="font_size", type=float, default=DEFAULT_FONT_SIZE,
                        help=f"Character cell height, 3 (fine) to 12 (coarse) (default: {DEFAULT_FONT_SIZE})")
    parser.add_argument("--font-family", dest="font_family", type=str, default=DEFAULT_FONT_FAMILY,
                        help="Font label or identifier, see --list-fonts (default: monospace)")
    parser.add_argument("--font-path", dest="font_path", type=str, default=None,
                        help="TrueType file to draw glyphs with (geometry still follows --font-family)")
    parser.add_argument("--output-scale", dest="output_scale", type=float, default=None,
                        help="Supersampling for fonts above 9 (default: 2)")

    # Output settings
    parser.add_argument("--output", "-o", type=str, default="./output/text-portrait.png",
                        help="Output path (default: ./output/text-portrait.png)")
    parser.add_argument("--format", dest="fmt", type=str, default=None,
                        choices=["png", "jpeg", "jpg"],
                        help="Output format (default: from the output extension)")
    parser.add_argument("--list-fonts", dest="list_fonts", action="store_true",
                        help="Print the font catalogue and exit")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only print errors")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_fonts:
        list_fonts()
        return

    if not args.target and not args.synthetic:
        parser.error("one of --target or --synthetic is required")

    verbose = not args.quiet
    font_family = resolve_font_family(args.font_family)

    try:
        text = read_text(args)
        fmt = output_format_for(args.output, args.fmt)

        if verbose:
            scale = resolve_output_scale(args.font_size, args.output_scale)
            print("=" * 60)
            print("  TEXT PORTRAIT")
            print("=" * 60)
            print(f"  Source:   {args.target or 'synthetic ' + args.synthetic}")
            print(f"  Output:   {args.output} ({fmt})")
            print(f"  Mode:     {args.color_mode}")
            print(f"  Font:     {font_family} @ {args.font_size:g}px "
                  f"(width ratio {width_ratio_for(font_family)})")
            print(f"  Scale:    {scale}")
            print()

        # ─── Step 1: Load source ─────────────────────────────────────────
        if verbose:
            print("Step 1: Loading source...")
        if args.target:
            source = load_source(args.target)
        else:
            w, h = args.synthetic_size
            source = make_source(args.synthetic, w, h)
        if verbose:
            print(f"  Source size: {source.width} x {source.height} px")

        # ─── Step 2: Generate ────────────────────────────────────────────
        if verbose:
            print("\nStep 2: Generating portrait...")
        start = time.time()

        config = GenerationConfig(
            source_image=source,
            text=text,
            color_mode=args.color_mode,
            font_size=args.font_size,
            font_family=font_family,
            output_scale=args.output_scale,
            font_path=args.font_path,
        )
        portrait = generate_text_portrait(
            config,
            on_progress=ConsoleProgress() if verbose else None,
            verbose=verbose,
        )
        if verbose:
            print(f"  Built in {time.time() - start:.1f}s")

        # ─── Step 3: Encode ──────────────────────────────────────────────
        save_portrait(portrait, args.output, fmt)

    except (TextPortraitError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if verbose:
        print(f"\nDone! Saved: {os.path.abspath(args.output)}")
        print(f"  Portrait size: {portrait.width} x {portrait.height} px")


if __name__ == '__main__':
    main()
