# src/application/highlight_service.py

from typing import Dict, Iterable, List, Mapping

from src.application.rectangle_projector import project_matches
from src.domain.models import HighlightRect, PageLayout


def derive_highlights(
    layouts: Mapping[int, PageLayout],
    active_query: str,
    matching_pages: Iterable[int],
) -> Dict[int, List[HighlightRect]]:
    """
    Recompute every highlight from scratch for the rendered pages.

    Every rendered page gets an entry (empty when it is not a match), so the
    caller can replace its overlay state wholesale instead of patching it.
    Only pass layouts of pages whose raster has been rendered.
    """
    query = active_query.strip()
    matching = set(matching_pages)

    highlights: Dict[int, List[HighlightRect]] = {}
    for page_number in sorted(layouts):
        if query and page_number in matching:
            highlights[page_number] = project_matches(layouts[page_number], query)
        else:
            highlights[page_number] = []
    return highlights
