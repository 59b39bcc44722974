"""Paths and knobs shared by the build scripts, the session and the server."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

WORKERS_DEFAULT = int(os.environ.get("PORTFOLIO_WORKERS", "1"))
CONCURRENCY_DEFAULT = int(os.environ.get("PORTFOLIO_CONCURRENCY", "8"))
GAP_DEFAULT = int(os.environ.get("PORTFOLIO_GAP", "14"))
CACHE_TTL_DEFAULT = int(os.environ.get("PORTFOLIO_CACHE_TTL", "300"))

THUMB_WIDTHS = (400, 800, 1200)
DEFAULT_THUMB_WIDTH = 800
VIEW_BUFFER = 800


def quality_for(width: int) -> int:
    # smaller variants tolerate a slightly higher quality factor
    if width <= 400:
        return 40
    if width <= 800:
        return 38
    return 35


@dataclass
class Settings:
    root: Path
    src_dir: Path
    photos_dir: Path
    banner_dir: Path
    public_dir: Path
    thumbs_dir: Path
    manifest_path: Path
    logo_path: Path
    thumb_widths: Tuple[int, ...] = THUMB_WIDTHS
    default_width: int = DEFAULT_THUMB_WIDTH
    thumbs_url: str = "/thumbs"
    manifest_url: str = "/generated/manifest.json"
    workers: int = WORKERS_DEFAULT
    resolve_concurrency: int = CONCURRENCY_DEFAULT
    gap: int = GAP_DEFAULT
    view_buffer: int = VIEW_BUFFER

    @classmethod
    def for_root(cls, root, **overrides) -> "Settings":
        root = Path(root).resolve()
        src = root / "src"
        public = root / "public"
        values = dict(
            root=root,
            src_dir=src,
            photos_dir=src / "assets" / "photos",
            banner_dir=src / "assets" / "banner",
            public_dir=public,
            thumbs_dir=public / "thumbs",
            manifest_path=public / "generated" / "manifest.json",
            logo_path=public / "logo-dark.png",
        )
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls.for_root(os.environ.get("PORTFOLIO_ROOT", "."))

    def thumb_url(self, name: str) -> str:
        return f"{self.thumbs_url.rstrip('/')}/{name}"
