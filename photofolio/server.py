#!/usr/bin/env python3
"""
Portfolio preview server
- Serves the built thumbnails, the manifest and the original assets
- JSON API for the gallery: categories, justified rows, lightbox + EXIF
- --prebuild: build thumbnails + manifest, then exit
"""
import argparse
import logging
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from flask import Flask, abort, jsonify, request, send_file, send_from_directory

from . import __version__, thumbs
from .aspect import FileResolver
from .catalog import Catalog, ImageItem, discover
from .config import Settings
from .exif import format_exif, read_exif
from .layout import RowGeometry, base_row_height, compute_rows
from .manifest import ThumbnailManifest
from .session import resolve_aspects

app = Flask(__name__)

SETTINGS: Settings = Settings.from_env()
RESOLVER = FileResolver(SETTINGS)
MANIFEST = ThumbnailManifest()


def configure(settings: Settings):
    global SETTINGS, RESOLVER, MANIFEST
    SETTINGS = settings
    RESOLVER = FileResolver(settings)
    MANIFEST = ThumbnailManifest.load(settings.manifest_path)
    app.logger.info("Using root=%s (manifest entries: %d)", settings.root, len(MANIFEST))


def arg_int(name: str, default: Optional[int] = None, minimum: int = 0) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        if default is None: abort(400, f"Missing '{name}'")
        return default
    try:
        v = int(float(raw))
    except (ValueError, OverflowError):
        abort(400, f"'{name}' must be a number")
    if v < minimum: abort(400, f"'{name}' must be >= {minimum}")
    return v


def item_json(item: ImageItem, index: Optional[int]) -> dict:
    return {
        "index": index,
        "src": item.source_path,
        "alt": item.alt_text,
        "category": item.category,
        "thumb": MANIFEST.thumbnail_for(item.source_path),
        "srcset": MANIFEST.srcset_for(item.source_path),
        "display": MANIFEST.display_src(item.source_path),
    }


# ---------------------- Routes ------------------------------
@app.get("/api/ping")
def ping():
    return jsonify({"ok": True, "root": str(SETTINGS.root), "manifest_entries": len(MANIFEST), "version": __version__})


@app.get("/api/gallery")
def api_gallery():
    catalog = discover(SETTINGS)
    cats = []
    for name in catalog.categories:
        items = catalog.items(name)
        cats.append({
            "name": name,
            "id": name.lower(),
            "items": [item_json(it, catalog.global_index(it)) for it in items],
        })
    banner = None
    if catalog.banner:
        banner = {"src": catalog.banner, "display": MANIFEST.display_src(catalog.banner),
                  "srcset": MANIFEST.srcset_for(catalog.banner)}
    return jsonify({"total": len(catalog), "banner": banner, "categories": cats})


@app.get("/api/layout")
def api_layout():
    catalog = discover(SETTINGS)
    category = catalog.find_category(request.args.get("category") or "")
    if category is None: abort(404, "Unknown category")
    width = arg_int("width", minimum=1)
    gap = arg_int("gap", SETTINGS.gap)

    items = catalog.items(category)
    resolved = asyncio.run(resolve_aspects(items, RESOLVER, SETTINGS.resolve_concurrency))
    rows = compute_rows(resolved, width, gap, base_row_height(width))
    geometry = RowGeometry.from_rows(rows, gap)

    out = {
        "category": category,
        "width": width,
        "gap": gap,
        "base_row_height": base_row_height(width),
        "total_height": geometry.total_height,
        "offsets": list(geometry.offsets),
        "rows": [{
            "height": r.height,
            "items": [dict(item_json(p.item.item, catalog.global_index(p.item.item)),
                           aspect_ratio=p.item.aspect_ratio, width=p.width, height=p.height)
                      for p in r.items],
        } for r in rows],
    }
    if "viewport" in request.args:
        start, end = geometry.visible_range(arg_int("scroll", 0), arg_int("viewport", minimum=1), SETTINGS.view_buffer)
        top, bottom = geometry.spacers(start, end)
        out["visible"] = {"start": start, "end": end, "top_spacer": top, "bottom_spacer": bottom}
    return jsonify(out)


@app.get("/api/lightbox/<int:index>")
def api_lightbox(index: int):
    catalog = discover(SETTINGS)
    images = catalog.all_images
    if index >= len(images): abort(404)
    item = images[index]
    try:
        path = RESOLVER.locate(item.source_path)
    except (FileNotFoundError, ValueError):
        abort(404)
    exif = read_exif(path)
    return jsonify({
        "item": item_json(item, index),
        "prev": catalog.step(index, -1),
        "next": catalog.step(index, 1),
        "hash": Catalog.deep_link(index),
        "exif": format_exif(exif),
        "exif_raw": exif.to_dict() if exif else None,
    })


@app.route("/thumbs/<path:filename>")
def thumb_files(filename):
    return send_from_directory(str(SETTINGS.thumbs_dir), filename)


@app.route("/generated/<path:filename>")
def generated_files(filename):
    return send_from_directory(str(SETTINGS.manifest_path.parent), filename)


@app.route("/src/<path:filename>")
def source_files(filename):
    return send_from_directory(str(SETTINGS.src_dir), filename)


@app.route("/assets/<name>")
def asset_files(name):
    try:
        path = RESOLVER.locate(f"/assets/{name}")
    except (FileNotFoundError, ValueError):
        abort(404)
    return send_file(str(path), conditional=True)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"Portfolio preview server {__version__}")
    parser.add_argument("--root", type=str, default=str(SETTINGS.root), help="Project root (holds src/ and public/)")
    parser.add_argument("--host", type=str, default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--prebuild", action="store_true", help="Build thumbnails + manifest, then exit")
    return parser.parse_args(argv)


def main(argv: List[str]) -> int:
    args = parse_args(argv)
    root = Path(args.root)
    if not root.exists():
        print(f"ERROR: project root not found: {root}", file=sys.stderr)
        return 2
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app.logger.setLevel("INFO")
    settings = Settings.for_root(root)

    if args.prebuild:
        try:
            thumbs.build(settings)
        except Exception:
            app.logger.exception("Prebuild failed")
            return 1
        return 0

    configure(settings)
    app.run(host=args.host, port=args.port, debug=args.debug, threaded=True)
    return 0


def run() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(run())
