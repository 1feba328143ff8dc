# tests/test_fragment_index.py

from src.application.fragment_index import build_fragment_index
from src.domain.models import IDENTITY_TRANSFORM, TextFragment


def _fragments(*texts: str) -> list:
    return [TextFragment(text=t, source_transform=IDENTITY_TRANSFORM, source_width=10.0) for t in texts]


def test_offsets_are_contiguous():
    fragments = _fragments("Hel", "lo Wor", "ld")
    index = build_fragment_index(fragments)

    assert index.flat_text == "Hello World"
    assert index.offsets == (0, 3, 9)
    assert len(index.offsets) == len(fragments)
    for i in range(len(fragments) - 1):
        assert index.offsets[i] + len(fragments[i].text) == index.offsets[i + 1]
    assert index.offsets[-1] + len(fragments[-1].text) == len(index.flat_text)


def test_slices_reconstruct_flat_text():
    fragments = _fragments("The ", "quick", "", " brown", " fox")
    index = build_fragment_index(fragments)

    rebuilt = "".join(
        index.flat_text[offset:offset + length]
        for offset, length in zip(index.offsets, index.lengths)
    )
    assert rebuilt == index.flat_text
    assert [index.flat_text[slice(*index.span(i))] for i in range(len(fragments))] == [
        f.text for f in fragments
    ]


def test_empty_fragment_occupies_no_characters():
    index = build_fragment_index(_fragments("ab", "", "cd"))
    assert index.offsets == (0, 2, 2)
    assert index.lengths == (2, 0, 2)


def test_no_fragments():
    index = build_fragment_index([])
    assert index.flat_text == ""
    assert index.offsets == ()


def test_build_is_deterministic():
    fragments = _fragments("α", "βγ", "δ")
    assert build_fragment_index(fragments) == build_fragment_index(fragments)
