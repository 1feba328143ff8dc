# src/application/rectangle_projector.py

import math
from typing import List

import numpy as np

from src.application.fragment_index import build_fragment_index
from src.application.match_locator import find_matches, overlapping_fragments
from src.domain.models import HighlightRect, PageLayout, TextFragment, Transform


def _to_matrix(transform: Transform) -> np.ndarray:
    a, b, c, d, e, f = transform
    return np.array([
        [a, c, e],
        [b, d, f],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)


def _from_matrix(matrix: np.ndarray) -> Transform:
    return (
        float(matrix[0, 0]), float(matrix[1, 0]),
        float(matrix[0, 1]), float(matrix[1, 1]),
        float(matrix[0, 2]), float(matrix[1, 2]),
    )


def compose(outer: Transform, inner: Transform) -> Transform:
    """Affine product: inner is applied first, then outer."""
    return _from_matrix(_to_matrix(outer) @ _to_matrix(inner))


def project(fragment: TextFragment, viewport_transform: Transform, scale: float) -> HighlightRect:
    """
    Map one fragment into viewport pixels.

    The glyph height is taken from the length of the composed transform's
    vertical basis vector rather than from a font metric, since layout
    providers do not always expose one. The rectangle sits on the baseline
    and extends upwards by that height.
    """
    tx = compose(viewport_transform, fragment.source_transform)
    text_height = math.hypot(tx[2], tx[3])
    return HighlightRect(
        x=tx[4],
        y=tx[5] - text_height,
        width=fragment.source_width * scale,
        height=text_height,
    )


def project_matches(layout: PageLayout, query: str) -> List[HighlightRect]:
    """
    One rectangle per (match, overlapping fragment). The whole fragment is
    highlighted, and a fragment hit by several matches yields several
    identical rectangles.
    """
    index = build_fragment_index(layout.fragments)
    rects: List[HighlightRect] = []

    for match_start, match_end in find_matches(index.flat_text, query):
        hit = overlapping_fragments(match_start, match_end, index.offsets, index.lengths)
        for fragment_index in sorted(hit):
            rects.append(project(
                layout.fragments[fragment_index],
                layout.viewport_transform,
                layout.scale,
            ))

    return rects
