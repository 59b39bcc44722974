"""Justified-row gallery layout.

Given a container width and items with known aspect ratios, items are packed
greedily into rows: a row closes once its width at the base row height (plus
gaps) would pass the container width times an overflow factor. Each closed row
is then sized so its items span the container.

Everything here is a pure function of its arguments; the same inputs give the
same rows, down to the float.
"""
import math
import struct
from bisect import bisect_left
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

OVERFLOW = 1.15
MIN_ROW_HEIGHT = 80
# a closed row may sit up to ~1.6x its target before it spans the container;
# the cap only binds on sparse rows, which then stay narrower than the container
MAX_STRETCH = 2.0
ROW_JITTER = 0.12  # +/-6% of the base height
ASPECT_TWEAK = 0.2  # +/-10% of the natural ratio
MIN_ASPECT = 0.3
MAX_ASPECT = 3.5
VIEW_BUFFER = 800
MIN_VISIBLE_ROWS = 6

FNV_OFFSET = 2166136261
FNV_PRIME = 16777619


@dataclass(frozen=True)
class JustifiedItem:
    key: str
    aspect_ratio: float
    index: int = 0
    item: Any = None


@dataclass(frozen=True)
class PlacedItem:
    item: JustifiedItem
    width: float
    height: float


@dataclass(frozen=True)
class JustifiedRow:
    items: Tuple[PlacedItem, ...]
    height: float
    gap: float = 0

    @property
    def width(self) -> float:
        return sum(p.width for p in self.items) + self.gap * (len(self.items) - 1)


def seed_name(src: str) -> str:
    name = src.split("?")[0].split("#")[0].split("/")[-1]
    return name or src


def filename_seed(src: str) -> float:
    """Stable value in [0, 1) from a 32-bit FNV-1a hash of the file name."""
    h = FNV_OFFSET
    data = seed_name(src).encode("utf-16-le", "surrogatepass")
    for (unit,) in struct.iter_unpack("<H", data):
        h ^= unit
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return (h % 100000) / 100000


def perturb_aspect(ratio: float, src: str) -> float:
    if not ratio or not math.isfinite(ratio) or ratio <= 0:
        ratio = 1.0
    tweak = 1 + (filename_seed(src) - 0.5) * ASPECT_TWEAK
    return max(MIN_ASPECT, min(MAX_ASPECT, ratio * tweak))


def base_row_height(container_width: float) -> int:
    if container_width >= 1024:
        return 260
    if container_width >= 640:
        return 220
    return 200


def target_height(row_items: Sequence[JustifiedItem], base: float) -> float:
    return base * (1 + (filename_seed(row_items[0].key) - 0.5) * ROW_JITTER)


def fill_height(row_items: Sequence[JustifiedItem], container_width: float, gap: float) -> float:
    """Height at which the row spans exactly container_width."""
    total_aspect = sum(it.aspect_ratio for it in row_items)
    return (container_width - gap * (len(row_items) - 1)) / total_aspect


def row_height(row_items: Sequence[JustifiedItem], container_width: float, gap: float,
               base: float, min_height: float = MIN_ROW_HEIGHT,
               max_stretch: float = MAX_STRETCH) -> float:
    exact = fill_height(row_items, container_width, gap)
    return max(min_height, min(exact, target_height(row_items, base) * max_stretch))


def _close_row(row_items, container_width, gap, base, min_height, max_stretch) -> JustifiedRow:
    h = row_height(row_items, container_width, gap, base, min_height, max_stretch)
    placed = tuple(PlacedItem(item=it, width=it.aspect_ratio * h, height=h) for it in row_items)
    return JustifiedRow(items=placed, height=h, gap=gap)


def compute_rows(items: Sequence[JustifiedItem], container_width: float, gap: float,
                 base_row_height: float, *, overflow: float = OVERFLOW,
                 min_height: float = MIN_ROW_HEIGHT,
                 max_stretch: float = MAX_STRETCH) -> List[JustifiedRow]:
    rows: List[JustifiedRow] = []
    if container_width <= 0 or not items:
        return rows

    current: List[JustifiedItem] = []
    width_at_base = 0.0
    for it in items:
        tentative = it.aspect_ratio * base_row_height
        if current and width_at_base + tentative + gap * len(current) > container_width * overflow:
            rows.append(_close_row(current, container_width, gap, base_row_height, min_height, max_stretch))
            current = []
            width_at_base = 0.0
        current.append(it)
        width_at_base += tentative
    if current:
        rows.append(_close_row(current, container_width, gap, base_row_height, min_height, max_stretch))
    return rows


@dataclass(frozen=True)
class RowGeometry:
    """Cumulative row offsets; offsets[i] is the top of row i, offsets[-1] the total height."""

    offsets: Tuple[float, ...]

    @classmethod
    def from_rows(cls, rows: Sequence[JustifiedRow], gap: float) -> "RowGeometry":
        out = [0.0]
        last = len(rows) - 1
        for i, r in enumerate(rows):
            out.append(out[-1] + r.height + (0 if i == last else gap))
        return cls(tuple(out))

    def __len__(self):
        return len(self.offsets) - 1

    @property
    def total_height(self) -> float:
        return self.offsets[-1]

    def visible_range(self, scroll_top: float, viewport_height: float,
                      buffer: float = VIEW_BUFFER, min_rows: int = MIN_VISIBLE_ROWS) -> Tuple[int, int]:
        """Half-open [start, end) of rows overlapping the viewport plus buffer."""
        n = len(self)
        top = max(0.0, scroll_top)
        view_start = max(0.0, top - buffer)
        view_end = top + viewport_height + buffer
        start = max(0, bisect_left(self.offsets, view_start) - 1)
        end = min(n, bisect_left(self.offsets, view_end) + 1)
        return start, min(n, max(end, start + min_rows))

    def spacers(self, start: int, end: int) -> Tuple[float, float]:
        return self.offsets[start], self.total_height - self.offsets[end]
