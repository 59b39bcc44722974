"""Thumbnail manifest: public asset path -> thumbnail url + srcset descriptor.

The build pipeline writes it once per build; the gallery reads it once per
session and falls back to the original asset whenever a lookup misses.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

SRCSET_SUFFIX = "__srcset"


@dataclass(frozen=True)
class Variant:
    url: str
    width: int


@dataclass(frozen=True)
class ManifestEntry:
    default_url: str
    variants: Tuple[Variant, ...]

    @classmethod
    def from_variants(cls, variants: Iterable[Variant], default_width: int) -> "ManifestEntry":
        ordered = tuple(sorted(variants, key=lambda v: v.width))
        if not ordered:
            raise ValueError("a manifest entry needs at least one variant")
        by_width = {v.width: v for v in ordered}
        default = by_width.get(default_width) or ordered[-1]
        return cls(default_url=default.url, variants=ordered)

    @property
    def srcset(self) -> str:
        return format_srcset(self.variants)


def format_srcset(variants: Iterable[Variant]) -> str:
    return ", ".join(f"{v.url} {v.width}w" for v in sorted(variants, key=lambda v: v.width))


def parse_srcset(text: str) -> List[Variant]:
    out = []
    for chunk in (text or "").split(","):
        bits = chunk.split()
        if len(bits) != 2 or not bits[1].endswith("w"):
            continue
        try:
            out.append(Variant(bits[0], int(bits[1][:-1])))
        except ValueError:
            continue
    return sorted(out, key=lambda v: v.width)


class ManifestBuilder:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def add(self, public_path: str, entry: ManifestEntry):
        self._data[public_path] = entry.default_url
        self._data[public_path + SRCSET_SUFFIX] = entry.srcset

    def __len__(self):
        return len(self._data)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._data)

    def write(self, path: Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")


class ThumbnailManifest:
    """Read-only view over a loaded manifest."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = {}
        for k, v in (mapping or {}).items():
            if isinstance(k, str) and isinstance(v, str):
                self._data[k] = v

    @classmethod
    def from_mapping(cls, data) -> "ThumbnailManifest":
        if not isinstance(data, dict):
            logger.warning("manifest is not a JSON object (%s); ignoring it", type(data).__name__)
            return cls()
        return cls(data)

    @classmethod
    def load(cls, path) -> "ThumbnailManifest":
        try:
            raw = Path(path).read_text(encoding="utf-8")
            data = json.loads(raw)
        except FileNotFoundError:
            logger.warning("manifest not found at %s; using original images", path)
            return cls()
        except (OSError, ValueError) as e:
            logger.warning("manifest at %s unreadable: %s", path, e)
            return cls()
        return cls.from_mapping(data)

    @classmethod
    async def fetch(cls, url: str, client: Optional[httpx.AsyncClient] = None) -> "ThumbnailManifest":
        owned = client is None
        client = client or httpx.AsyncClient(timeout=30)
        try:
            resp = await client.get(url)
            if resp.status_code != 200:
                logger.warning("manifest fetch %s -> HTTP %s", url, resp.status_code)
                return cls()
            return cls.from_mapping(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("manifest fetch %s failed: %s", url, e)
            return cls()
        finally:
            if owned:
                await client.aclose()

    def __contains__(self, src: str) -> bool:
        return src in self._data

    def __len__(self):
        return len(self._data)

    def keys(self) -> List[str]:
        return [k for k in self._data if not k.endswith(SRCSET_SUFFIX)]

    def thumbnail_for(self, src: str) -> Optional[str]:
        return self._data.get(src)

    def srcset_for(self, src: str) -> Optional[str]:
        return self._data.get(src + SRCSET_SUFFIX)

    def display_src(self, src: str) -> str:
        return self._data.get(src) or src

    def urls(self) -> List[str]:
        found = []
        for k, v in self._data.items():
            if k.endswith(SRCSET_SUFFIX):
                found.extend(variant.url for variant in parse_srcset(v))
            else:
                found.append(v)
        return sorted(set(found))

    def missing_files(self, thumbs_dir: Path, thumbs_url: str = "/thumbs") -> List[str]:
        """URLs in the manifest with no matching file under thumbs_dir."""
        prefix = thumbs_url.rstrip("/") + "/"
        thumbs_dir = Path(thumbs_dir)
        missing = []
        for url in self.urls():
            if not url.startswith(prefix) or not (thumbs_dir / url[len(prefix):]).is_file():
                missing.append(url)
        return missing
