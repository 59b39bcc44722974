#!/usr/bin/env python3
"""
Thumbnail build: WebP variants + manifest for the gallery.

- Walks src/assets/photos and src/assets/banner (jpg/jpeg/png/webp)
- Writes <stem>-<width>.webp for widths 400/800/1200 into one flat public/thumbs
- Never upscales; quality drops slightly as the width grows
- Writes public/generated/manifest.json keyed by /assets/<file> and /src/<path>
- Any error aborts the run with exit status 1

Usage:
  photofolio-thumbs          (root taken from PORTFOLIO_ROOT, default cwd)
"""
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from PIL import Image, ImageOps

from .catalog import public_src
from .config import Settings, quality_for
from .manifest import ManifestBuilder, ManifestEntry, Variant
from .scan import scan_images

logger = logging.getLogger(__name__)

WEBP_METHOD = 5


@dataclass(frozen=True)
class ThumbResult:
    source: Path
    native_width: int
    entry: ManifestEntry
    files: Tuple[Path, ...]


def thumb_name(src: Path, width: int) -> str:
    return f"{src.stem}-{width}.webp"


def _for_webp(im: Image.Image) -> Image.Image:
    if im.mode in ("RGB", "RGBA"):
        return im
    if im.mode in ("LA", "PA") or (im.mode == "P" and "transparency" in im.info):
        return im.convert("RGBA")
    return im.convert("RGB")


def make_variants(src: Path, settings: Settings) -> ThumbResult:
    out_dir = settings.thumbs_dir
    variants: List[Variant] = []
    files: List[Path] = []
    with Image.open(src) as im:
        im = _for_webp(ImageOps.exif_transpose(im))
        native = im.width
        for w in settings.thumb_widths:
            target = min(native, w)
            if target < im.width:
                size = (target, max(1, round(im.height * target / im.width)))
                out = im.resize(size, Image.LANCZOS)
            else:
                out = im
            dst = out_dir / thumb_name(src, w)
            out.save(dst, "WEBP", quality=quality_for(w), method=WEBP_METHOD)
            variants.append(Variant(settings.thumb_url(dst.name), w))
            files.append(dst)
    entry = ManifestEntry.from_variants(variants, settings.default_width)
    return ThumbResult(source=src, native_width=native, entry=entry, files=tuple(files))


def public_paths(src: Path, settings: Settings) -> Tuple[str, str]:
    """Production (/assets/<file>) and dev-tree (/src/...) keys for one source."""
    dev = public_src(src, settings)
    return f"/assets/{src.name}", dev


def find_collisions(sources: List[Path]) -> Dict[str, List[Path]]:
    by_stem: Dict[str, List[Path]] = defaultdict(list)
    for p in sources:
        by_stem[p.stem].append(p)
    return {stem: ps for stem, ps in by_stem.items() if len(ps) > 1}


def build(settings: Settings) -> ManifestBuilder:
    settings.thumbs_dir.mkdir(parents=True, exist_ok=True)
    settings.manifest_path.parent.mkdir(parents=True, exist_ok=True)

    sources = scan_images(settings.photos_dir) + scan_images(settings.banner_dir)
    for stem, paths in find_collisions(sources).items():
        logger.warning("thumbnail name clash for %r: %s (last one wins)", stem, ", ".join(str(p) for p in paths))

    logger.info("Thumbnail build start: %d images, widths=%s, workers=%d",
                len(sources), list(settings.thumb_widths), settings.workers)

    def work(p: Path) -> ThumbResult:
        r = make_variants(p, settings)
        logger.info("  %s (native %dpx) -> %d variants", p.name, r.native_width, len(r.files))
        return r

    if settings.workers > 1:
        with ThreadPoolExecutor(max_workers=settings.workers) as ex:
            results = list(ex.map(work, sources))
    else:
        results = [work(p) for p in sources]

    manifest = ManifestBuilder()
    for r in results:
        for key in public_paths(r.source, settings):
            manifest.add(key, r.entry)
    manifest.write(settings.manifest_path)
    logger.info("Wrote manifest with %d entries to %s", len(manifest), settings.manifest_path)
    return manifest


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        build(Settings.from_env())
    except Exception:
        logger.exception("Thumbnail build failed")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
