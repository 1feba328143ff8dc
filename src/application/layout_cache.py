# src/application/layout_cache.py

import threading
from typing import Dict, Tuple

from src.domain.errors import DocumentSupersededError, LayoutUnavailableError
from src.domain.interfaces import LayoutProviderPort
from src.domain.models import PageLayout, RasterImage


class LayoutCache:
    """
    Explicit layout capability shared by the page pipeline and the
    highlight projection.

    - Layouts are fetched once per (page, scale) and never mutated.
    - Rendered display rasters are kept; a page counts as rendered only
      after its raster exists, and only then may highlights be projected.
    - Opening a new document drops everything from the previous one and
      starts a new epoch. Provider calls run outside the lock; a result
      whose epoch has ended by the time it returns is never stored and
      raises DocumentSupersededError instead.
    """

    def __init__(self, provider: LayoutProviderPort):
        self._provider = provider
        self._lock = threading.Lock()
        self._epoch = 0
        self._layouts: Dict[Tuple[int, float], PageLayout] = {}
        self._rasters: Dict[Tuple[int, float], RasterImage] = {}
        self._total_pages = 0

    @property
    def total_pages(self) -> int:
        return self._total_pages

    @property
    def epoch(self) -> int:
        return self._epoch

    def open_document(self, data: bytes) -> int:
        with self._lock:
            self._clear()
            self._total_pages = self._provider.open_document(data)
            return self._total_pages

    def reset(self) -> None:
        with self._lock:
            self._clear()

    def layout(self, page_number: int, scale: float) -> PageLayout:
        key = (page_number, scale)
        with self._lock:
            epoch = self._epoch
            if key in self._layouts:
                return self._layouts[key]
            self._check_page_number(page_number)

        layout = self._provider.get_page_layout(page_number, scale)

        with self._lock:
            self._check_epoch(epoch, page_number)
            return self._layouts.setdefault(key, layout)

    def rasterize(self, page_number: int, scale: float) -> RasterImage:
        """
        Render a page for recognition. Neither the layout nor the raster is
        retained; recognition rasters are used once.
        """
        with self._lock:
            epoch = self._epoch
            self._check_page_number(page_number)

        raster = self._provider.render_page(self._provider.get_page_layout(page_number, scale))

        with self._lock:
            self._check_epoch(epoch, page_number)
        return raster

    def render(self, page_number: int, scale: float) -> RasterImage:
        key = (page_number, scale)
        with self._lock:
            epoch = self._epoch
            if key in self._rasters:
                return self._rasters[key]

        raster = self._provider.render_page(self.layout(page_number, scale))

        with self._lock:
            self._check_epoch(epoch, page_number)
            return self._rasters.setdefault(key, raster)

    def is_rendered(self, page_number: int, scale: float) -> bool:
        return (page_number, scale) in self._rasters

    def rendered_layout(self, page_number: int, scale: float) -> PageLayout:
        with self._lock:
            if (page_number, scale) not in self._rasters:
                raise LayoutUnavailableError(page_number)
            return self._layouts[(page_number, scale)]

    def rendered_layouts(self, scale: float) -> Dict[int, PageLayout]:
        with self._lock:
            return {
                page_number: self._layouts[(page_number, page_scale)]
                for page_number, page_scale in sorted(self._rasters)
                if page_scale == scale
            }

    # ─── Private (call with the lock held) ────────────────────────────────────

    def _clear(self) -> None:
        self._epoch += 1
        self._layouts.clear()
        self._rasters.clear()
        self._total_pages = 0

    def _check_epoch(self, epoch: int, page_number: int) -> None:
        if epoch != self._epoch:
            print(f"[LayoutCache] Dropping page {page_number} of superseded document.")
            raise DocumentSupersededError(page_number)

    def _check_page_number(self, page_number: int) -> None:
        if not 1 <= page_number <= self._total_pages:
            raise IndexError(
                f"Page {page_number} is out of range (document has {self._total_pages} pages)."
            )
