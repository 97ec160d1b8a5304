"""Extraction of translatable text from decoded game data trees.

The tree is visited through a walker ``walker(tree, visit)`` that calls
``visit(path, text)`` for each text leaf (see ``tree.for_each_text_leaf``
and the RPG Maker walkers in ``lcf``).  Every leaf becomes a fresh entry in
the catalog of its category, all categories being filled in one pass.
"""

import codecs
import logging
import re

from .errors import ConfigError, DecodeError
from .po_file import DEFAULT_METADATA
from .project_model import CONTEXT_SEPARATOR, Catalog, TranslationEntry
from .tree import for_each_text_leaf

log = logging.getLogger(__name__)

MAIN = "main"

_WHITESPACE_RE = re.compile(r"\s+")


def context_from_path(path) -> tuple:
    """Field names along a path; integer record IDs and indices are dropped.

    Empty names are dropped too and the msgctxt separator becomes ``_``.
    """
    names = (str(seg) for seg in path if not isinstance(seg, int))
    return tuple(n.replace(CONTEXT_SEPARATOR, "_") for n in names if n)


def format_location(source: str, path) -> str:
    """Reference for ``#:`` lines, e.g. ``RPG_RT.ldb:actors/1/name``.

    PO location lists are whitespace separated, so whitespace becomes ``_``.
    """
    where = "/".join(str(seg) for seg in path)
    ref = f"{source}:{where}" if source else where
    return _WHITESPACE_RE.sub("_", ref)


def decode_text(path, text, encoding: str) -> str:
    """Decode a raw text leaf.  ``str`` leaves pass through unchanged.

    Raises:
        DecodeError: if the bytes are invalid in ``encoding``.
    """
    if isinstance(text, str):
        return text
    try:
        return text.decode(encoding)
    except UnicodeDecodeError as exc:
        raise DecodeError(tuple(path), encoding, exc.reason) from exc


def extract(tree, encoding: str = "utf-8", source: str = "",
            walker=for_each_text_leaf, categories: dict = None,
            default_category: str = MAIN, on_error=None) -> dict:
    """Walk a tree and build one catalog per category.

    Args:
        tree: Decoded data tree.
        encoding: Encoding of ``bytes`` leaves.
        source: File name used in entry locations.
        walker: Callable ``walker(tree, visit)``.
        categories: Maps the first path segment of a leaf to its category;
            other leaves go to ``default_category``.
        on_error: Called with each DecodeError; undecodable leaves are
            always skipped.

    Returns:
        Dict of category name → Catalog, containing every declared category
        even when it stays empty.

    Raises:
        ConfigError: if ``encoding`` is unknown.
    """
    categories = categories or {}
    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise ConfigError(f"Bad encoding {encoding}") from exc

    catalogs = {default_category: Catalog(metadata=DEFAULT_METADATA)}
    for name in categories.values():
        catalogs.setdefault(name, Catalog(metadata=DEFAULT_METADATA))

    def visit(path, text):
        path = tuple(path)
        try:
            text = decode_text(path, text, encoding)
        except DecodeError as exc:
            log.warning("Skipping undecodable text: %s", exc)
            if on_error is not None:
                on_error(exc)
            return
        if not text.strip():
            return
        category = categories.get(path[0], default_category) if path else default_category
        catalogs[category].add(TranslationEntry(
            context=context_from_path(path),
            original=text,
            locations=[format_location(source, path)],
        ))

    walker(tree, visit)
    log.debug("Extracted %s from %s",
              ", ".join(f"{name}={len(c)}" for name, c in catalogs.items()),
              source or "tree")
    return catalogs
