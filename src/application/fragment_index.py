# src/application/fragment_index.py

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from src.domain.models import TextFragment


@dataclass(frozen=True)
class FragmentIndex:
    """
    Flat text of a page plus, for every fragment, where it starts in that
    text and how long it is. Fragments are joined with no separator, so a
    match may run across a fragment boundary.
    """
    flat_text: str
    offsets: Tuple[int, ...]
    lengths: Tuple[int, ...]

    def span(self, index: int) -> Tuple[int, int]:
        start = self.offsets[index]
        return start, start + self.lengths[index]


def build_fragment_index(fragments: Sequence[TextFragment]) -> FragmentIndex:
    parts: List[str] = []
    offsets: List[int] = []
    lengths: List[int] = []
    position = 0

    for fragment in fragments:
        offsets.append(position)
        lengths.append(len(fragment.text))
        parts.append(fragment.text)
        position += len(fragment.text)

    return FragmentIndex(
        flat_text="".join(parts),
        offsets=tuple(offsets),
        lengths=tuple(lengths),
    )
