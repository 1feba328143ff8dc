# src/application/search_session.py

from typing import Iterable

from src.application.match_locator import page_has_match
from src.domain.models import RecognizedPage, SearchResult


class SearchSession:
    """
    Holds the active search result for the current document.

    Every search replaces the previous result completely. Only pages that
    have been recognized take part; pages still waiting for recognition are
    simply not considered. Searching never raises.
    """

    def __init__(self):
        self._current = SearchResult()

    @property
    def current(self) -> SearchResult:
        return self._current

    def clear(self) -> None:
        self._current = SearchResult()

    def search(self, query: str, recognized_pages: Iterable[RecognizedPage]) -> SearchResult:
        query = (query or "").strip()
        if not query:
            self._current = SearchResult()
            return self._current

        matching_pages = tuple(sorted(
            page.page_number
            for page in recognized_pages
            if page_has_match(page.text, query)
        ))

        if matching_pages:
            message = f'Found "{query}" on pages: {", ".join(str(n) for n in matching_pages)}'
        else:
            message = f'"{query}" was not found in this document.'

        self._current = SearchResult(
            query=query,
            matching_pages=matching_pages,
            message=message,
        )
        return self._current
