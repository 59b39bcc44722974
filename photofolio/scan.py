import os
import re
from pathlib import Path
from typing import Iterator, List, Union

IMAGE_RE = re.compile(r"\.(jpe?g|png|webp)$", re.IGNORECASE)
_DIGITS = re.compile(r"(\d+)")


def is_image(path: Union[str, Path]) -> bool:
    # extension only; a mislabeled file fails later, at decode time
    return IMAGE_RE.search(str(path)) is not None


def natural_key(s: str) -> List:
    parts = _DIGITS.split(str(s))
    return [(0, int(p), "") if p.isdecimal() else (1, 0, p.lower()) for p in parts]


def walk(root: Union[str, Path]) -> Iterator[Path]:
    """Yield every file below root, depth first, in sorted order per directory."""
    root = Path(root)
    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort(key=natural_key)
        for fn in sorted(filenames, key=natural_key):
            yield Path(dirpath) / fn


def scan_images(root: Union[str, Path]) -> List[Path]:
    return [p for p in walk(root) if is_image(p)]
