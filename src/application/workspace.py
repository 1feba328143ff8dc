# src/application/workspace.py

from typing import Dict, List, Optional

from src.application.highlight_service import derive_highlights
from src.application.layout_cache import LayoutCache
from src.application.page_pipeline import (
    DEFAULT_RECOGNITION_SCALE,
    PagePipeline,
    ProgressCallback,
)
from src.application.search_session import SearchSession
from src.domain.interfaces import LayoutProviderPort, RecognitionPort
from src.domain.models import (
    Document,
    HighlightRect,
    PipelineProgress,
    PipelineState,
    RasterImage,
    RecognizedPage,
    SearchResult,
)


DEFAULT_DISPLAY_SCALE = 1.5


class DocumentWorkspace:
    """
    Core use case: select a document, recognize its pages, search the
    recognized text and project hits onto the rendered pages.

    The presentation layer talks only to this class. Selecting a new
    document discards the previous document's recognized text, search
    result, layouts and rendered pages in one step.
    """

    def __init__(
        self,
        layout_provider: LayoutProviderPort,
        recognizer: RecognitionPort,
        display_scale: float = DEFAULT_DISPLAY_SCALE,
        recognition_scale: float = DEFAULT_RECOGNITION_SCALE,
        language_hint: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self._display_scale = display_scale
        self._layout_cache = LayoutCache(layout_provider)
        self._pipeline = PagePipeline(
            layout_cache=self._layout_cache,
            recognizer=recognizer,
            recognition_scale=recognition_scale,
            language_hint=language_hint,
            on_progress=on_progress,
        )
        self._search_session = SearchSession()

    # ─── State ────────────────────────────────────────────────────────────────

    @property
    def state(self) -> PipelineState:
        return self._pipeline.state

    @property
    def progress(self) -> PipelineProgress:
        return self._pipeline.progress

    @property
    def error(self) -> str:
        return self._pipeline.error

    @property
    def document(self) -> Optional[Document]:
        return self._pipeline.document

    @property
    def is_processing(self) -> bool:
        return self._pipeline.is_running

    @property
    def search_result(self) -> SearchResult:
        return self._search_session.current

    @property
    def recognized_pages(self) -> List[RecognizedPage]:
        document = self._pipeline.document
        return list(document.recognized_pages) if document else []

    # ─── Use cases ────────────────────────────────────────────────────────────

    def select_document(self, data: bytes, name: str) -> Document:
        self._search_session.clear()
        return self._pipeline.open(data, name)

    def claim_processing(self) -> Document:
        """Reserve the run for the open document; PipelineBusyError if taken."""
        return self._pipeline.claim_run()

    def process(self, claimed: Optional[Document] = None) -> Document:
        return self._pipeline.run(claimed)

    def search(self, query: str) -> SearchResult:
        return self._search_session.search(query, self.recognized_pages)

    def render_page(self, page_number: int) -> RasterImage:
        """
        Raises DocumentSupersededError if another document was selected
        while the page was being rendered; nothing from it is kept.
        """
        self._require_document()
        return self._layout_cache.render(page_number, self._display_scale)

    def highlights(self) -> Dict[int, List[HighlightRect]]:
        """Highlights for every page rendered so far, recomputed from scratch."""
        result = self._search_session.current
        return derive_highlights(
            self._layout_cache.rendered_layouts(self._display_scale),
            result.query,
            result.matching_pages,
        )

    def page_highlights(self, page_number: int) -> List[HighlightRect]:
        """Raises LayoutUnavailableError unless the page has been rendered."""
        layout = self._layout_cache.rendered_layout(page_number, self._display_scale)
        result = self._search_session.current
        return derive_highlights(
            {page_number: layout},
            result.query,
            result.matching_pages,
        )[page_number]

    def _require_document(self) -> None:
        if self._pipeline.document is None:
            raise RuntimeError("No document is open.")
