"""Decoded game data trees: generic text-leaf walk and lcf2xml loading.

A tree is any nesting of mappings and sequences whose leaves are scalars.
Text leaves are ``str`` (already decoded) or ``bytes`` (raw, decoded later
by the extractor with the game's encoding).  Mapping keys and sequence
indices form the path of a leaf.
"""

import logging
import re
from collections.abc import Mapping, Sequence

from lxml import etree

from .errors import DataFileError

log = logging.getLogger(__name__)

# liblcf writes struct/record elements with their class name (Actor,
# EventCommand, ...) and fields in snake_case (name, event_commands, ...).
_CLASS_TAG_RE = re.compile(r'^[A-Z]')


def for_each_text_leaf(tree, visit, path: tuple = ()):
    """Call ``visit(path, text)`` for every str/bytes leaf, depth-first.

    Numbers, None and other scalars carry no text and are ignored.
    """
    if isinstance(tree, (str, bytes)):
        visit(path, tree)
    elif isinstance(tree, bytearray):
        visit(path, bytes(tree))
    elif isinstance(tree, Mapping):
        for key, value in tree.items():
            for_each_text_leaf(value, visit, path + (key,))
    elif isinstance(tree, Sequence):
        for index, value in enumerate(tree):
            for_each_text_leaf(value, visit, path + (index,))


def _record_id(elem):
    raw = elem.get("id")
    return int(raw) if raw.isdigit() else raw


def _raw_text(text: str):
    """Original bytes of a leaf parsed as latin-1."""
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError:
        # character references beyond latin-1 are already decoded
        return text


def element_to_tree(elem, raw: bool = False):
    """Convert an lcf2xml element into a nested dict/list tree.

    - element without children → its text ("" when empty, bytes if ``raw``)
    - children that are records with an ``id`` → dict keyed by ID
    - other record children (e.g. EventCommand) → list
    - field children → dict of field name → value
    """
    children = [c for c in elem if isinstance(c.tag, str)]  # skip comments
    if not children:
        text = elem.text or ""
        return _raw_text(text) if raw else text
    if all(_CLASS_TAG_RE.match(c.tag) for c in children):
        if all(c.get("id") is not None for c in children):
            return {_record_id(c): element_to_tree(c, raw) for c in children}
        return [element_to_tree(c, raw) for c in children]
    return {c.tag: element_to_tree(c, raw) for c in children}


def load_xml(path: str):
    """Load an lcf2xml document (.edb, .emu, .emt) as a tree.

    Text leaves are the raw bytes of the export, whatever its XML
    declaration says: the game's strings are decoded later with the game
    encoding, just like strings read from the binary files.  An export
    already converted to UTF-8 is read with encoding ``utf-8``.

    Raises:
        OSError: if the file cannot be read.
        DataFileError: if the file is not well-formed XML.
    """
    # latin-1 maps every byte to one character, so leaves can be re-encoded
    parser = etree.XMLParser(remove_blank_text=True, huge_tree=True,
                             encoding="ISO-8859-1")
    try:
        root = etree.parse(path, parser).getroot()
    except etree.XMLSyntaxError as exc:
        raise DataFileError(f"{path}: {exc}") from exc
    log.debug("Loaded %s (<%s>)", path, root.tag)
    return element_to_tree(root, raw=True)
