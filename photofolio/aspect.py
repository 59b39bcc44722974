import asyncio
import io
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Optional, Union

import httpx
from PIL import Image

from .config import CACHE_TTL_DEFAULT, Settings
from .scan import scan_images

ORIENTATION_TAG = 0x0112


def read_aspect_ratio(source: Union[str, Path, io.BytesIO]) -> float:
    """Displayed width / height from the image header; 1.0 when height is 0."""
    with Image.open(source) as im:
        w, h = im.size
        orientation = im.getexif().get(ORIENTATION_TAG, 1)
    if orientation in (5, 6, 7, 8):
        w, h = h, w
    if not h:
        return 1.0
    return w / h


# ---------------------- Ratio cache -------------------------
@dataclass
class AspectCacheItem:
    mtime: float
    ratio: float
    ts: float


class AspectCache:
    def __init__(self, ttl: int = CACHE_TTL_DEFAULT):
        self.ttl = max(0, int(ttl))
        self._lock = threading.Lock()
        self._data: Dict[str, AspectCacheItem] = {}

    def get(self, path) -> Optional[float]:
        p = str(Path(path).resolve())
        with self._lock:
            item = self._data.get(p)
            if not item: return None
            try:
                mtime = os.path.getmtime(p)
            except FileNotFoundError:
                self._data.pop(p, None); return None
            if mtime != item.mtime: self._data.pop(p, None); return None
            if self.ttl and (time.time() - item.ts > self.ttl):
                self._data.pop(p, None); return None
            return item.ratio

    def set(self, path, ratio: float):
        p = str(Path(path).resolve())
        try:
            mtime = os.path.getmtime(p)
        except FileNotFoundError:
            return
        with self._lock:
            self._data[p] = AspectCacheItem(mtime=mtime, ratio=ratio, ts=time.time())


# ---------------------- Resolvers ---------------------------
class FileResolver:
    """Resolve public gallery URLs to files on disk and probe them off the event loop."""

    def __init__(self, settings: Settings, cache: Optional[AspectCache] = None):
        self.settings = settings
        self.cache = cache if cache is not None else AspectCache()
        self._by_name: Optional[Dict[str, Path]] = None
        self._lock = threading.Lock()

    def _assets(self) -> Dict[str, Path]:
        with self._lock:
            if self._by_name is None:
                found = scan_images(self.settings.photos_dir) + scan_images(self.settings.banner_dir)
                self._by_name = {p.name: p for p in found}
            return self._by_name

    def locate(self, src: str) -> Path:
        s = self.settings
        path = src.split("?")[0].split("#")[0]
        thumbs_prefix = s.thumbs_url.rstrip("/") + "/"
        if path.startswith("/src/"):
            base, rel = s.src_dir, path[len("/src/"):]
        elif path.startswith(thumbs_prefix):
            base, rel = s.thumbs_dir, path[len(thumbs_prefix):]
        elif path.startswith("/assets/"):
            p = self._assets().get(path[len("/assets/"):])
            if p is None:
                raise FileNotFoundError(src)
            return p
        else:
            raise FileNotFoundError(src)
        # checked on the URL, not the target: photos may be symlinks to elsewhere
        parts = PurePosixPath(rel).parts
        if PurePosixPath(rel).is_absolute() or ".." in parts:
            raise ValueError(f"path escapes its root: {src}")
        p = base.joinpath(*parts)
        if not p.is_file():
            raise FileNotFoundError(src)
        return p

    def ratio_for_path(self, path: Path) -> float:
        hit = self.cache.get(path)
        if hit is not None:
            return hit
        ratio = read_aspect_ratio(path)
        self.cache.set(path, ratio)
        return ratio

    async def __call__(self, src: str) -> float:
        path = self.locate(src)
        return await asyncio.to_thread(self.ratio_for_path, path)


class HttpResolver:
    """Fetch each image over HTTP, the way a browser would, and probe the bytes."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def __call__(self, src: str) -> float:
        resp = await self.client.get(src)
        resp.raise_for_status()
        return await asyncio.to_thread(read_aspect_ratio, io.BytesIO(resp.content))
