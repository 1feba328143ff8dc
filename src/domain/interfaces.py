# src/domain/interfaces.py

from abc import ABC, abstractmethod
from typing import Optional

from .models import PageLayout, RasterImage


class LayoutProviderPort(ABC):
    """
    Port for the document rasterizer. Opens a source, lays out pages as
    positioned text fragments and renders them to pixels.
    Intentionally stateless towards callers apart from the open document.
    """

    @abstractmethod
    def open_document(self, data: bytes) -> int:
        """
        Open a document from raw bytes and return its page count.
        Raises DocumentOpenError if the bytes are not a valid document.
        """
        ...

    @abstractmethod
    def get_page_layout(self, page_number: int, scale: float) -> PageLayout: ...

    @abstractmethod
    def render_page(self, layout: PageLayout) -> RasterImage: ...

    @abstractmethod
    def close(self) -> None: ...


class RecognitionPort(ABC):
    """
    Port for any text recognition service. Slow and fallible:
    exactly one call per page per pipeline run.
    """

    @abstractmethod
    def recognize(self, image: RasterImage, language_hint: Optional[str] = None) -> str: ...
