"""
prepare_source.py - Reading source photos and writing finished portraits

Decoding and encoding live here so the generator itself only ever sees a
Pillow image. Sources are accepted up to 5MB (JPG, PNG, WebP and anything
else Pillow can open), with EXIF orientation applied so phone photos come
out upright. Portraits are written as PNG (lossless) or JPEG.
"""

import os

from PIL import Image, ImageOps, UnidentifiedImageError

from text_portrait import DecodeError, ValidationError


MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
JPEG_QUALITY = 90

OUTPUT_FORMATS = {
    '.png': 'PNG',
    '.jpg': 'JPEG',
    '.jpeg': 'JPEG',
}


def load_source(image_path, max_bytes=MAX_FILE_SIZE):
    """
    Open a source photo and return it as a fully loaded RGBA image.
    Raises DecodeError for missing, oversized or unreadable files.
    """
    if not os.path.isfile(image_path):
        raise DecodeError(f"Source image not found: {image_path}")

    size = os.path.getsize(image_path)
    if max_bytes and size > max_bytes:
        raise DecodeError(
            f"Source image is {size / (1024 * 1024):.1f}MB, limit is "
            f"{max_bytes / (1024 * 1024):.0f}MB: {image_path}"
        )

    try:
        with Image.open(image_path) as img:
            img = ImageOps.exif_transpose(img)
            # convert() forces a full decode while the file is still open
            return img.convert('RGBA')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise DecodeError(f"Cannot decode {image_path}: {e}") from e


def output_format_for(output_path, fmt=None):
    """Pick PNG/JPEG from an explicit name or the file extension (PNG default)."""
    if fmt:
        fmt = fmt.upper()
        if fmt == 'JPG':
            fmt = 'JPEG'
        if fmt not in ('PNG', 'JPEG'):
            raise ValidationError(f"Unsupported output format: {fmt}")
        return fmt
    ext = os.path.splitext(output_path)[1].lower()
    return OUTPUT_FORMATS.get(ext, 'PNG')


def save_portrait(image, output_path, fmt=None, quality=JPEG_QUALITY):
    """Encode a finished portrait; returns the format that was written."""
    fmt = output_format_for(output_path, fmt)
    os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)

    if fmt == 'JPEG':
        image.convert('RGB').save(output_path, 'JPEG', quality=quality)
    else:
        image.save(output_path, 'PNG', optimize=True)
    return fmt
