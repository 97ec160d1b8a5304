"""Approximate text comparison for matching catalogs of two game releases.

Two strings are compared after normalization (whitespace runs collapsed to
one space, stripped, case folded).  Normalized-equal strings score 1.0;
anything else is scored with ``difflib.SequenceMatcher.ratio()`` on the
normalized forms.
"""

import re
from difflib import SequenceMatcher
from typing import Iterable, Optional

DEFAULT_THRESHOLD = 0.9

_WHITESPACE_RE = re.compile(r'\s+')


def normalize(text: str) -> str:
    """Collapse whitespace and case-fold text for comparison."""
    return _WHITESPACE_RE.sub(" ", text).strip().casefold()


def similarity(a: str, b: str) -> float:
    """Return a similarity score between 0.0 and 1.0."""
    na, nb = normalize(a), normalize(b)
    if na == nb:
        return 1.0
    if not na or not nb:
        return 0.0
    return SequenceMatcher(None, na, nb, autojunk=False).ratio()


def best_match(text: str, candidates: Iterable[str],
               threshold: float = DEFAULT_THRESHOLD) -> Optional[str]:
    """Find the candidate most similar to ``text``.

    Only candidates scoring at least ``threshold`` qualify.  Among equally
    good candidates the first one in iteration order wins.

    Returns:
        The winning candidate (unnormalized), or None.
    """
    needle = normalize(text)
    sm = SequenceMatcher(None, autojunk=False)
    # SequenceMatcher caches details about the second sequence
    sm.set_seq2(needle)

    best, best_score = None, 0.0
    for candidate in candidates:
        other = normalize(candidate)
        if other == needle:
            return candidate
        if not other or not needle:
            continue
        sm.set_seq1(other)
        if sm.real_quick_ratio() < threshold or sm.quick_ratio() < threshold:
            continue
        score = sm.ratio()
        if score >= threshold and score > best_score:
            best, best_score = candidate, score
    return best
