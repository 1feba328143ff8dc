# src/infrastructure/pdf_layout_provider.py

from typing import List, Optional

import fitz

from src.domain.errors import DocumentOpenError, PageLayoutError, RenderError
from src.domain.interfaces import LayoutProviderPort
from src.domain.models import PageLayout, RasterImage, TextFragment, Transform


class PyMuPdfLayoutProvider(LayoutProviderPort):
    """
    Layout provider backed by PyMuPDF.

    Coordinate conventions:
    - Fragment transforms are expressed in PDF user space (origin bottom-left,
      y up), one unit = one point, translated to the span's baseline origin
      and scaled by its font size.
    - The viewport transform flips y and scales, so composing it with a
      fragment transform lands in top-left-origin raster pixels, matching
      the pixmap produced by render_page().
    """

    def __init__(self):
        self._document: Optional[fitz.Document] = None

    def open_document(self, data: bytes) -> int:
        self.close()
        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as error:
            raise DocumentOpenError(f"Not a readable PDF: {error}") from error

        if document.needs_pass:
            document.close()
            raise DocumentOpenError("The PDF is password protected.")

        self._document = document
        print(f"[LayoutProvider] Opened PDF with {document.page_count} page(s).")
        return document.page_count

    def get_page_layout(self, page_number: int, scale: float) -> PageLayout:
        page = self._page(page_number)
        try:
            page_height = page.rect.height
            fragments = self._extract_fragments(page, page_height)
        except Exception as error:
            raise PageLayoutError(page_number, f"Text layout failed on page {page_number}: {error}") from error

        return PageLayout(
            page_number=page_number,
            fragments=tuple(fragments),
            viewport_transform=(scale, 0.0, 0.0, -scale, 0.0, page_height * scale),
            scale=scale,
            width=int(round(page.rect.width * scale)),
            height=int(round(page_height * scale)),
        )

    def render_page(self, layout: PageLayout) -> RasterImage:
        page = self._page(layout.page_number)
        try:
            pixmap = page.get_pixmap(matrix=fitz.Matrix(layout.scale, layout.scale), alpha=False)
            png = pixmap.tobytes("png")
        except Exception as error:
            raise RenderError(layout.page_number, f"Rendering failed on page {layout.page_number}: {error}") from error

        return RasterImage(
            page_number=layout.page_number,
            width=pixmap.width,
            height=pixmap.height,
            png=png,
        )

    def close(self) -> None:
        if self._document is not None:
            self._document.close()
            self._document = None

    # ─── Private ──────────────────────────────────────────────────────────────

    def _page(self, page_number: int) -> fitz.Page:
        if self._document is None:
            raise PageLayoutError(page_number, "No document is open.")
        if not 1 <= page_number <= self._document.page_count:
            raise PageLayoutError(
                page_number,
                f"Page {page_number} is out of range (1..{self._document.page_count}).",
            )
        return self._document.load_page(page_number - 1)

    @staticmethod
    def _extract_fragments(page: fitz.Page, page_height: float) -> List[TextFragment]:
        """One fragment per non-empty span, in reading order."""
        fragments: List[TextFragment] = []
        blocks = page.get_text("dict", flags=fitz.TEXT_PRESERVE_WHITESPACE)["blocks"]

        for block in blocks:
            if block["type"] != 0:  # Not a text block
                continue

            for line in block.get("lines", []):
                dx, dy = line.get("dir", (1.0, 0.0))
                for span in line.get("spans", []):
                    text = span.get("text", "")
                    if not text:
                        continue

                    x0, y0, x1, y1 = span["bbox"]
                    fragments.append(TextFragment(
                        text=text,
                        source_transform=_span_transform(span, dx, dy, page_height),
                        source_width=abs((x1 - x0) * dx) + abs((y1 - y0) * dy),
                    ))

        return fragments


def _span_transform(span: dict, dx: float, dy: float, page_height: float) -> Transform:
    # PyMuPDF reports y-down coordinates; flip into y-up user space.
    size = span.get("size", 12.0)
    origin_x, origin_y = span["origin"]
    return (
        size * dx,
        -size * dy,
        size * dy,
        size * dx,
        origin_x,
        page_height - origin_y,
    )
