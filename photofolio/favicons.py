#!/usr/bin/env python3
"""
Favicon set from public/logo-dark.png.

Writes favicon-{16,32,48,64}.png, apple-touch-icon.png (180),
android-chrome-{192,512}x{...}.png and a multi-size favicon.ico into public/.

Usage:
  photofolio-favicons        (root taken from PORTFOLIO_ROOT, default cwd)
"""
import logging
from pathlib import Path
from typing import List

from PIL import Image, ImageOps

from .config import Settings

logger = logging.getLogger(__name__)

FAVICON_SIZES = [16, 32, 48, 64]
TOUCH_SIZE = 180
ANDROID_SIZES = [192, 512]


def contain_square(logo: Image.Image, size: int) -> Image.Image:
    """Fit the logo inside a transparent size x size canvas, centered."""
    fitted = ImageOps.contain(logo, (size, size), Image.LANCZOS)
    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(fitted, ((size - fitted.width) // 2, (size - fitted.height) // 2), fitted)
    return canvas


def generate(settings: Settings) -> List[Path]:
    src = settings.logo_path
    if not src.is_file():
        raise FileNotFoundError(f"Source logo not found at {src}")
    out_dir = settings.public_dir
    out_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    with Image.open(src) as im:
        logo = im.convert("RGBA")

    def write_png(size: int, name: str):
        dst = out_dir / name
        contain_square(logo, size).save(dst, "PNG", optimize=True, compress_level=9)
        written.append(dst)

    for size in FAVICON_SIZES:
        write_png(size, f"favicon-{size}.png")
    write_png(TOUCH_SIZE, "apple-touch-icon.png")
    for size in ANDROID_SIZES:
        write_png(size, f"android-chrome-{size}x{size}.png")

    ico = out_dir / "favicon.ico"
    largest = max(FAVICON_SIZES)
    contain_square(logo, largest).save(ico, "ICO", sizes=[(s, s) for s in FAVICON_SIZES])
    written.append(ico)
    logger.info("Favicons generated in %s (%d files)", out_dir, len(written))
    return written


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        generate(Settings.from_env())
    except Exception:
        logger.exception("Favicon generation failed")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
