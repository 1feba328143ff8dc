# src/domain/models.py

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


# (a, b, c, d, e, f): x' = a*x + c*y + e, y' = b*x + d*y + f
Transform = Tuple[float, float, float, float, float, float]

IDENTITY_TRANSFORM: Transform = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


@dataclass(frozen=True)
class TextFragment:
    """
    One atomic run of laid-out text at a known position and orientation
    in the page's native coordinate space.
    """
    text: str
    source_transform: Transform
    source_width: float


@dataclass(frozen=True)
class PageLayout:
    """
    Ordered fragments of one page plus the native-space → viewport transform
    and the scale the page is rasterized at. Produced once per (page, scale).
    """
    page_number: int
    fragments: Tuple[TextFragment, ...]
    viewport_transform: Transform
    scale: float
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class RasterImage:
    page_number: int
    width: int
    height: int
    png: bytes = field(repr=False)


@dataclass(frozen=True)
class RecognizedPage:
    page_number: int
    text: str

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")


@dataclass
class Document:
    """
    An opened source document and the text recognized so far.
    recognized_pages only ever grows, in page-number order.
    """
    name: str
    total_pages: int
    generation: int
    recognized_pages: List[RecognizedPage] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return len(self.recognized_pages) == self.total_pages

    def append(self, page: RecognizedPage) -> None:
        expected = len(self.recognized_pages) + 1
        if page.page_number != expected:
            raise ValueError(
                f"Expected page {expected}, got page {page.page_number}."
            )
        self.recognized_pages.append(page)


@dataclass(frozen=True)
class SearchResult:
    """
    Outcome of one search invocation. An empty query produces the cleared
    result (no query, no pages, no message), which is distinct from a
    query that simply matched nothing.
    """
    query: str = ""
    matching_pages: Tuple[int, ...] = ()
    message: str = ""

    @property
    def is_cleared(self) -> bool:
        return not self.query

    def __repr__(self) -> str:
        return (
            f"SearchResult(query='{self.query}', "
            f"pages={list(self.matching_pages)})"
        )


@dataclass(frozen=True)
class HighlightRect:
    x: float
    y: float
    width: float
    height: float


class PipelineState(str, Enum):
    IDLE = "idle"
    OPENING = "opening"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineProgress:
    current_page: int = 0
    total_pages: int = 0
    message: str = ""
