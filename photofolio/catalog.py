import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .config import Settings
from .scan import is_image, natural_key

logger = logging.getLogger(__name__)

DEEP_LINK_RE = re.compile(r"^#lb=(\d+)$")


@dataclass(frozen=True)
class ImageItem:
    source_path: str
    alt_text: str
    category: str


def title_case(folder: str) -> str:
    s = re.sub(r"[-_]+", " ", folder)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), s)


def public_src(path: Path, settings: Settings) -> str:
    return "/src/" + path.relative_to(settings.src_dir).as_posix()


def discover(settings: Settings) -> "Catalog":
    """Images exactly one folder deep under photos_dir, grouped by folder."""
    root = settings.photos_dir
    files: List[Path] = []
    if root.is_dir():
        files = sorted(
            (p for p in root.glob("*/*") if p.is_file() and is_image(p)),
            key=lambda p: natural_key(p.relative_to(root).as_posix()),
        )

    by_cat: Dict[str, List[ImageItem]] = {}
    for p in files:
        category = title_case(p.parent.name) or "Misc"
        item = ImageItem(source_path=public_src(p, settings), alt_text=f"{category} {p.stem}", category=category)
        by_cat.setdefault(category, []).append(item)
    logger.debug("discovered %d images in %d categories under %s", len(files), len(by_cat), root)
    return Catalog(by_cat, banner=find_banner(settings))


def find_banner(settings: Settings) -> Optional[str]:
    root = settings.banner_dir
    if not root.is_dir():
        return None
    found = sorted((p for p in root.iterdir() if p.is_file() and is_image(p)), key=lambda p: natural_key(p.name))
    return public_src(found[0], settings) if found else None


@dataclass
class Catalog:
    by_category: Dict[str, List[ImageItem]]
    banner: Optional[str] = None
    _index: Dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        self._index = {it.source_path: i for i, it in enumerate(self.all_images)}

    @property
    def categories(self) -> List[str]:
        return list(self.by_category)

    def items(self, category: str) -> List[ImageItem]:
        return list(self.by_category.get(category, []))

    def find_category(self, name: str) -> Optional[str]:
        for c in self.by_category:
            if c.lower() == name.strip().lower():
                return c
        return None

    @property
    def all_images(self) -> List[ImageItem]:
        return [it for c in self.by_category for it in self.by_category[c]]

    def __len__(self):
        return sum(len(v) for v in self.by_category.values())

    def global_index(self, item: ImageItem) -> Optional[int]:
        return self._index.get(item.source_path)

    def step(self, index: int, delta: int) -> int:
        """Index `delta` places away from `index`, wrapping at both ends."""
        total = len(self)
        if not total:
            raise IndexError("empty catalog")
        return (index + delta) % total

    def parse_deep_link(self, fragment: str) -> Optional[int]:
        m = DEEP_LINK_RE.match(fragment or "")
        if not m:
            return None
        idx = int(m.group(1))
        return idx if idx < len(self) else None

    @staticmethod
    def deep_link(index: int) -> str:
        return f"#lb={index}"
