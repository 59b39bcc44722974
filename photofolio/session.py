"""Gallery session: one page's worth of state on a single event loop.

Aspect ratios are resolved concurrently (bounded), the layout is recomputed
as ratios arrive and as the container width changes, and swapping the item
list abandons whatever was still in flight for the old list.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

import httpx

from .catalog import ImageItem
from .layout import (VIEW_BUFFER, JustifiedItem, JustifiedRow, RowGeometry,
                     base_row_height, compute_rows, perturb_aspect)
from .manifest import ThumbnailManifest

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[float]]
LayoutListener = Callable[[List[JustifiedRow]], None]

RESIZE_DEBOUNCE = 0.05


async def resolve_one(item: ImageItem, resolver: Resolver) -> float:
    try:
        return await resolver(item.source_path)
    except Exception as e:
        logger.debug("aspect ratio for %s unavailable (%s); using 1.0", item.source_path, e)
        return 1.0


async def resolve_aspects(items: Sequence[ImageItem], resolver: Resolver, concurrency: int = 8,
                          on_resolved: Optional[Callable[[JustifiedItem], None]] = None) -> List[JustifiedItem]:
    """Resolve every item with at most `concurrency` lookups in flight; order is kept."""
    out: List[Optional[JustifiedItem]] = [None] * len(items)
    pending = iter(enumerate(items))

    async def worker():
        for i, it in pending:
            ratio = await resolve_one(it, resolver)
            j = JustifiedItem(key=it.source_path, aspect_ratio=perturb_aspect(ratio, it.source_path),
                              index=i, item=it)
            out[i] = j
            if on_resolved:
                on_resolved(j)

    n = min(max(1, concurrency), len(items))
    if n:
        await asyncio.gather(*(worker() for _ in range(n)))
    return out


class GallerySession:
    def __init__(self, resolver: Resolver, *, width: int = 0, gap: int = 14, concurrency: int = 8,
                 debounce: float = RESIZE_DEBOUNCE):
        self.resolver = resolver
        self.width = max(0, int(width))
        self.gap = gap
        self.concurrency = concurrency
        self.debounce = debounce
        self.manifest = ThumbnailManifest()
        self._items: List[ImageItem] = []
        self._resolved: List[Optional[JustifiedItem]] = []
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._pending: Optional[asyncio.TimerHandle] = None
        self._rows: List[JustifiedRow] = []
        self._geometry = RowGeometry((0.0,))
        self._listeners: List[LayoutListener] = []

    # ---------------- manifest ----------------
    async def load_manifest(self, source, client: Optional[httpx.AsyncClient] = None) -> ThumbnailManifest:
        source = str(source)
        if source.startswith(("http://", "https://")):
            self.manifest = await ThumbnailManifest.fetch(source, client)
        else:
            self.manifest = await asyncio.to_thread(ThumbnailManifest.load, source)
        logger.info("manifest loaded from %s (%d entries)", source, len(self.manifest))
        return self.manifest

    def display_src(self, item: ImageItem) -> str:
        return self.manifest.display_src(item.source_path)

    # ---------------- items ----------------
    @property
    def items(self) -> List[ImageItem]:
        return list(self._items)

    def ready_items(self) -> List[JustifiedItem]:
        """Resolved items up to the first one still in flight."""
        out = []
        for j in self._resolved:
            if j is None:
                break
            out.append(j)
        return out

    @property
    def done(self) -> bool:
        return all(j is not None for j in self._resolved)

    def set_items(self, items: Sequence[ImageItem]) -> asyncio.Task:
        self._cancel_task()
        self._generation += 1
        self._items = list(items)
        self._resolved = [None] * len(self._items)
        self._recompute()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._resolve(self._generation, self._items))
        return self._task

    async def _resolve(self, generation: int, items: List[ImageItem]):
        def store(j: JustifiedItem):
            if generation != self._generation:
                return
            self._resolved[j.index] = j
            self._request_layout()

        await resolve_aspects(items, self.resolver, self.concurrency, on_resolved=store)
        if generation == self._generation:
            self.flush()

    async def settle(self):
        if self._task is not None:
            await self._task
        self.flush()

    # ---------------- layout ----------------
    def on_layout(self, listener: LayoutListener):
        self._listeners.append(listener)

    def resize(self, width: float):
        self.width = max(0, int(width))
        self._request_layout(self.debounce, restart=True)

    def _request_layout(self, delay: float = 0.0, restart: bool = False):
        if self._pending is not None:
            if not restart:
                return
            self._pending.cancel()
        self._pending = asyncio.get_running_loop().call_later(delay, self.flush)

    def flush(self):
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._recompute()

    def _recompute(self):
        self._rows = compute_rows(self.ready_items(), self.width, self.gap, base_row_height(self.width))
        self._geometry = RowGeometry.from_rows(self._rows, self.gap)
        for listener in list(self._listeners):
            listener(self._rows)

    @property
    def rows(self) -> List[JustifiedRow]:
        return list(self._rows)

    @property
    def geometry(self) -> RowGeometry:
        return self._geometry

    def visible_rows(self, scroll_top: float, viewport_height: float,
                     buffer: float = VIEW_BUFFER) -> Tuple[int, int, List[JustifiedRow]]:
        start, end = self._geometry.visible_range(scroll_top, viewport_height, buffer)
        return start, end, self._rows[start:end]

    # ---------------- teardown ----------------
    def _cancel_task(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def close(self):
        self._cancel_task()
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
