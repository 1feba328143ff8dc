# src/domain/errors.py


class OcrSearchError(Exception):
    """Base class for errors surfaced to the presentation layer."""


class DocumentOpenError(OcrSearchError):
    """The selected source is not a readable document. User must reselect."""


class PageLayoutError(OcrSearchError):
    """The text layout of one page could not be read from the document."""

    def __init__(self, page_number: int, message: str):
        super().__init__(message)
        self.page_number = page_number


class RenderError(OcrSearchError):
    """One page could not be rasterized."""

    def __init__(self, page_number: int, message: str):
        super().__init__(message)
        self.page_number = page_number


class PageRecognitionError(OcrSearchError):
    """
    Recognition failed for one page. The pipeline stops here; pages
    recognized before this one are kept.
    """

    def __init__(self, page_number: int, message: str):
        super().__init__(message)
        self.page_number = page_number


class DocumentSupersededError(OcrSearchError):
    """A page result arrived after another document had been selected."""

    def __init__(self, page_number: int):
        super().__init__(f"Page {page_number} belongs to a document that has been replaced.")
        self.page_number = page_number


class PipelineBusyError(OcrSearchError):
    """Processing of the current document has already been started."""


class LayoutUnavailableError(RuntimeError):
    """
    Highlight projection was requested for a page that has not been
    rendered yet. This is an ordering bug in the caller, not a user error.
    """

    def __init__(self, page_number: int):
        super().__init__(f"Page {page_number} has not been rendered yet.")
        self.page_number = page_number
