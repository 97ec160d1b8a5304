"""Data model for translation entries and catalogs.

A catalog is the in-memory form of one PO file.  Entries are identified by
their (context, original) pair because RPG Maker data carries no stable
string IDs; merge and match always build new catalogs instead of editing
their inputs.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field, replace
from typing import Iterator, NamedTuple, Optional

from .text_match import DEFAULT_THRESHOLD, best_match

log = logging.getLogger(__name__)

# Joins context path segments inside msgctxt
CONTEXT_SEPARATOR = "."


@dataclass
class TranslationEntry:
    """A single translatable text occurrence from an RPG Maker project."""
    context: tuple = ()    # Structural path e.g. ("actors", "name"); segments non-empty, no "."
    original: str = ""     # Source text as extracted from the game data
    translation: str = ""  # Target text (empty until translated)
    fuzzy: bool = False    # Approximate translation, needs human review
    locations: list = field(default_factory=list)  # "#:" references, not part of identity

    def __post_init__(self):
        self.context = tuple(self.context)
        for seg in self.context:
            if not seg or CONTEXT_SEPARATOR in seg:
                raise ValueError(f"Bad context segment {seg!r} in {self.context!r}")

    @property
    def key(self) -> tuple:
        """Identity key used to correlate entries across extractions."""
        return (self.context, self.original)

    def copy(self, **changes) -> "TranslationEntry":
        """Return an independent copy, optionally with some fields replaced."""
        changes.setdefault("locations", list(self.locations))
        return replace(self, **changes)


class MatchResult(NamedTuple):
    """Outcome of ``Catalog.match()``."""
    catalog: "Catalog"  # destination with filled translations
    matched: int        # exact matches
    stale: "Catalog"    # destination entries without any counterpart
    fuzzy: int          # entries filled by an ambiguous or approximate match


def _pick_answer(answers: list) -> tuple:
    """Choose the answer among candidate texts.

    Returns:
        (answer, unanimous): the most frequent answer (earliest on ties)
        and whether all candidates agreed.
    """
    counts = Counter(answers)
    top = max(counts.values())
    answer = next(a for a in answers if counts[a] == top)
    return answer, len(counts) == 1


class Catalog:
    """Ordered, deduplicated collection of translation entries."""

    def __init__(self, entries=None, metadata: dict = None, header: str = ""):
        self.metadata = dict(metadata or {})  # PO header fields, e.g. "Content-Type"
        self.header = header                  # comment lines above the PO header
        self._by_key = {}
        for entry in entries or ():
            self.add(entry)

    # ── Building ───────────────────────────────────────────────────

    def add(self, entry: TranslationEntry) -> TranslationEntry:
        """Append an entry, folding duplicates into the existing one.

        A second occurrence of the same identity key only contributes its
        locations.  Returns the entry stored in the catalog.
        """
        existing = self._by_key.get(entry.key)
        if existing is None:
            self._by_key[entry.key] = entry
            return entry
        for loc in entry.locations:
            if loc not in existing.locations:
                existing.locations.append(loc)
        return existing

    # ── Lookup ─────────────────────────────────────────────────────

    @property
    def entries(self) -> list:
        return list(self._by_key.values())

    def get(self, context, original: str) -> Optional[TranslationEntry]:
        """Find an entry by its identity key."""
        return self._by_key.get((tuple(context), original))

    def __contains__(self, key) -> bool:
        return key in self._by_key

    def __iter__(self) -> Iterator[TranslationEntry]:
        return iter(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Catalog):
            return NotImplemented
        return (self.metadata == other.metadata and self.header == other.header
                and self.entries == other.entries)

    def __repr__(self) -> str:
        return f"<Catalog {len(self)} entries>"

    @property
    def translated_count(self) -> int:
        return sum(1 for e in self if e.translation and not e.fuzzy)

    @property
    def fuzzy_count(self) -> int:
        return sum(1 for e in self if e.fuzzy)

    @property
    def untranslated_count(self) -> int:
        return sum(1 for e in self if not e.translation)

    # ── Reconciliation ─────────────────────────────────────────────

    def _empty_copy(self) -> "Catalog":
        return Catalog(metadata=self.metadata, header=self.header)

    def merge(self, existing: "Catalog") -> tuple:
        """Carry translations from a previously saved catalog into this one.

        ``self`` is a fresh extraction (current state of the game data).
        Entries are matched by identity key only: text that changed at the
        same location becomes a new untranslated entry, and entries of
        ``existing`` that no longer occur in the game become stale.

        Returns:
            (merged, stale): ``merged`` has exactly the entries of ``self``
            in the same order; ``stale`` holds the orphaned entries of
            ``existing`` in their original order.
        """
        merged = (existing if existing.metadata else self)._empty_copy()
        for entry in self:
            old = existing._by_key.get(entry.key)
            if old is not None:
                merged.add(entry.copy(translation=old.translation,
                                      fuzzy=old.fuzzy))
            else:
                merged.add(entry.copy())

        stale = existing._empty_copy()
        for old in existing:
            if old.key not in self._by_key:
                stale.add(old.copy())

        log.debug("Merged %d entries, %d stale", len(merged), len(stale))
        return merged, stale

    def match(self, source: "Catalog",
              threshold: float = DEFAULT_THRESHOLD) -> MatchResult:
        """Fill translations from the catalog of another game release.

        Entries are joined on their original text; contexts are ignored
        because the two catalogs come from unrelated data layouts.  A source
        entry answers with its translation, or with its original when it
        has none (text hardcoded in the target language).

        Matching strategy:
        1. Exact original text: all candidates agreeing gives an exact
           match; disagreeing candidates give the most frequent answer,
           flagged fuzzy.
        2. Approximate text (see ``text_match.best_match``), flagged fuzzy.
           Never replaces a translation that is already reviewed.
        3. Nothing: the entry is kept unchanged and reported as stale.
        """
        answers_by_text = defaultdict(list)
        for s in source:
            answers_by_text[s.original].append(s.translation or s.original)
        source_texts = list(answers_by_text)

        updated = self._empty_copy()
        stale = self._empty_copy()
        matched = fuzzy = 0

        for entry in self:
            answers = answers_by_text.get(entry.original)
            if answers:
                answer, unanimous = _pick_answer(answers)
                updated.add(entry.copy(translation=answer, fuzzy=not unanimous))
                if unanimous:
                    matched += 1
                else:
                    fuzzy += 1
                continue

            hit = best_match(entry.original, source_texts, threshold)
            if hit is None:
                updated.add(entry.copy())
                stale.add(entry.copy())
            elif entry.translation and not entry.fuzzy:
                updated.add(entry.copy())
            else:
                answer, _ = _pick_answer(answers_by_text[hit])
                updated.add(entry.copy(translation=answer, fuzzy=True))
                fuzzy += 1

        log.debug("Matched %d entries, %d fuzzy, %d unmatched",
                  matched, fuzzy, len(stale))
        return MatchResult(updated, matched, stale, fuzzy)
