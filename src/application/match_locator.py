# src/application/match_locator.py

from typing import List, Sequence, Set, Tuple


Match = Tuple[int, int]


def fold_case(text: str) -> str:
    """
    Lowercase character by character, keeping any character whose lowercase
    form would change the string length, so indices in the folded text are
    indices in the input text.
    """
    folded = []
    for char in text:
        lowered = char.lower()
        folded.append(lowered if len(lowered) == 1 else char)
    return "".join(folded)


def find_matches(flat_text: str, query: str) -> List[Match]:
    """
    Case-insensitive, leftmost-first, non-overlapping occurrences of query.
    Scanning resumes at the end of each match, so "aa" in "aaa" is one match.
    """
    if not query:
        return []

    haystack = fold_case(flat_text)
    needle = fold_case(query)
    matches: List[Match] = []

    start = 0
    while start < len(haystack):
        match_start = haystack.find(needle, start)
        if match_start == -1:
            break
        match_end = match_start + len(needle)
        matches.append((match_start, match_end))
        start = match_end

    return matches


def overlapping_fragments(
    match_start: int,
    match_end: int,
    offsets: Sequence[int],
    lengths: Sequence[int],
) -> Set[int]:
    # Strict overlap: a fragment that merely touches the match does not count.
    return {
        index
        for index, (offset, length) in enumerate(zip(offsets, lengths))
        if max(offset, match_start) < min(offset + length, match_end)
    }


def page_has_match(text: str, query: str) -> bool:
    if not query:
        return False
    return fold_case(query) in fold_case(text)
