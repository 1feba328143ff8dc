# src/application/page_pipeline.py

import threading
from typing import Callable, Optional

from src.application.layout_cache import LayoutCache
from src.domain.errors import DocumentOpenError, PageRecognitionError, PipelineBusyError
from src.domain.interfaces import RecognitionPort
from src.domain.models import (
    Document,
    PipelineProgress,
    PipelineState,
    RecognizedPage,
)


DEFAULT_RECOGNITION_SCALE = 2.0

ProgressCallback = Callable[[PipelineProgress], None]


class PagePipeline:
    """
    Sequential per-page recognition for one document at a time.

    States:
        IDLE → OPENING → PROCESSING(n) → COMPLETE
                    ↘          ↘
                     FAILED     FAILED

    - open() starts a new generation. Anything still in flight from an older
      generation is discarded when it returns instead of being recorded.
    - process_next_page() performs exactly one transition; run() drives it
      until COMPLETE or FAILED. Each document gets at most one run at a
      time, reserved through claim_run().
    - Fail-stop: the first failing page ends the run. Pages recognized
      before it stay on the document, which is then never complete.

    Recognition rasters use their own scale, independent of the display
    scale the presentation layer renders at.
    """

    def __init__(
        self,
        layout_cache: LayoutCache,
        recognizer: RecognitionPort,
        recognition_scale: float = DEFAULT_RECOGNITION_SCALE,
        language_hint: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self._layout_cache = layout_cache
        self._recognizer = recognizer
        self._recognition_scale = recognition_scale
        self._language_hint = language_hint
        self._on_progress = on_progress

        self._lock = threading.RLock()
        self._generation = 0
        self._state = PipelineState.IDLE
        self._document: Optional[Document] = None
        self._progress = PipelineProgress()
        self._error = ""
        self._running_generation: Optional[int] = None

    # ─── Read-only state ──────────────────────────────────────────────────────

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def document(self) -> Optional[Document]:
        return self._document

    @property
    def progress(self) -> PipelineProgress:
        return self._progress

    @property
    def error(self) -> str:
        return self._error

    # ─── Transitions ──────────────────────────────────────────────────────────

    def open(self, data: bytes, name: str = "document.pdf") -> Document:
        """
        Open a new source, superseding whatever was loaded or in flight.
        Raises DocumentOpenError (state FAILED) if the source is unusable.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._document = None
            self._error = ""
            self._progress = PipelineProgress()
            self._state = PipelineState.OPENING

            print(f"[Pipeline] Opening '{name}' (generation {generation})...")
            try:
                total_pages = self._layout_cache.open_document(data)
                if total_pages < 1:
                    raise DocumentOpenError(f"'{name}' contains no pages.")
            except DocumentOpenError as error:
                self._layout_cache.reset()
                self._state = PipelineState.FAILED
                self._error = f"Please select a valid PDF file. Details: {error}"
                print(f"[Pipeline] ✗ Could not open '{name}': {error}")
                raise

            self._document = Document(name=name, total_pages=total_pages, generation=generation)
            self._progress = PipelineProgress(current_page=0, total_pages=total_pages)
            self._state = PipelineState.PROCESSING
            print(f"[Pipeline] '{name}' has {total_pages} page(s).")
            return self._document

    def process_next_page(self) -> Optional[RecognizedPage]:
        """
        Recognize the next page of the current document.

        Returns the new RecognizedPage, or None if the document was
        superseded while the page was in flight.
        Raises PageRecognitionError (state FAILED) on any failure.
        """
        with self._lock:
            if self._state is not PipelineState.PROCESSING or self._document is None:
                raise RuntimeError(f"Pipeline is not processing (state: {self._state.value}).")
            document = self._document
            generation = self._generation
            page_number = len(document.recognized_pages) + 1
            self._progress = PipelineProgress(
                current_page=page_number,
                total_pages=document.total_pages,
                message=f"Performing OCR on Page {page_number} of {document.total_pages}...",
            )
            progress = self._progress

        if self._on_progress is not None:
            self._on_progress(progress)
        if self._is_superseded(generation):
            return None

        try:
            image = self._layout_cache.rasterize(page_number, self._recognition_scale)
            text = self._recognizer.recognize(image, self._language_hint)
            if not isinstance(text, str):
                raise ValueError(f"Malformed recognition response of type {type(text).__name__}.")
        except Exception as error:
            if not self._fail(generation, page_number, error):
                return None
            raise PageRecognitionError(page_number, str(error)) from error

        with self._lock:
            if self._is_superseded(generation):
                print(f"[Pipeline] Discarding page {page_number} of superseded generation {generation}.")
                return None

            page = RecognizedPage(page_number=page_number, text=text)
            document.append(page)
            print(f"[Pipeline] Page {page_number}/{document.total_pages} recognized "
                  f"({len(text)} chars).")

            if document.is_complete:
                self._state = PipelineState.COMPLETE
                self._progress = PipelineProgress(
                    current_page=document.total_pages,
                    total_pages=document.total_pages,
                )
                print(f"[Pipeline] ✓ '{document.name}' fully recognized.")
            return page

    @property
    def is_running(self) -> bool:
        return self._running_generation == self._generation

    def claim_run(self) -> Document:
        """
        Reserve the single run allowed per document.
        Raises PipelineBusyError if the current document already has one.
        """
        with self._lock:
            if self._document is None:
                raise RuntimeError("No document is open.")
            if self._state is not PipelineState.PROCESSING:
                raise RuntimeError(f"Pipeline is not processing (state: {self._state.value}).")
            if self.is_running:
                raise PipelineBusyError(f"'{self._document.name}' is already being processed.")
            self._running_generation = self._generation
            return self._document

    def run(self, document: Optional[Document] = None) -> Document:
        """
        Process pages until the document is complete or a page fails.
        Stops early, without error, if another document supersedes this one.

        Pass the document returned by claim_run() to drive a run reserved
        earlier; otherwise the run is claimed here.
        """
        if document is None:
            document = self.claim_run()
        generation = document.generation

        try:
            while self._state is PipelineState.PROCESSING and not self._is_superseded(generation):
                self.process_next_page()
        finally:
            with self._lock:
                if self._running_generation == generation:
                    self._running_generation = None

        return document

    # ─── Private ──────────────────────────────────────────────────────────────

    def _is_superseded(self, generation: int) -> bool:
        return generation != self._generation

    def _fail(self, generation: int, page_number: int, error: Exception) -> bool:
        with self._lock:
            if self._is_superseded(generation):
                print(f"[Pipeline] Ignoring failure of superseded generation {generation}: {error}")
                return False
            self._state = PipelineState.FAILED
            self._progress = PipelineProgress(
                current_page=page_number,
                total_pages=self._progress.total_pages,
            )
            self._error = (
                f"An error occurred while processing the PDF on page {page_number}. "
                f"Please try again. Details: {error}"
            )
            print(f"[Pipeline] ✗ Page {page_number} failed: {error}")
            return True
