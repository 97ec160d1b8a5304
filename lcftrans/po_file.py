"""Gettext PO catalog reader and writer, built on polib.

Handles the subset of the PO format used for RPG Maker translations:

    #: RPG_RT.ldb:actors/1/name
    #, fuzzy
    msgctxt "actors.name"
    msgid "Alex"
    msgstr "Alex"

polib gives up on the first syntax error of a file, so text is fed to it
one record at a time: a malformed record is reported and skipped while the
rest of the catalog still loads.  Output of ``write_po()`` survives a
``parse_po()``/``write_po()`` cycle byte for byte.  Plural forms, obsolete
records and flags other than ``fuzzy`` are not preserved.
"""

import logging
import os
import re
import tempfile

import polib

from .errors import DataFileError, ParseError
from .project_model import CONTEXT_SEPARATOR, Catalog, TranslationEntry

log = logging.getLogger(__name__)

# Header fields of a freshly extracted catalog
DEFAULT_METADATA = {
    "Project-Id-Version": "",
    "MIME-Version": "1.0",
    "Content-Type": "text/plain; charset=UTF-8",
    "Content-Transfer-Encoding": "8bit",
}

_RECORD_START_RE = re.compile(r'^(#|msgctxt\b|msgid\s)')
_POLIB_LINE_RE = re.compile(r'\(line (\d+)\)')


# ── Reading ────────────────────────────────────────────────────────

def _split_records(text: str):
    """Yield (first line number, lines) for each record of a PO file.

    Records end at blank lines, or where a comment/msgctxt/msgid line
    follows a msgstr (files edited by hand do not always keep the blank
    separator).
    """
    record = []
    start = 0
    seen_msgstr = False
    for lineno, raw in enumerate(text.split("\n"), 1):
        line = raw.rstrip("\r")
        if not line.strip():
            if record:
                yield start, record
            record, seen_msgstr = [], False
            continue
        if record and seen_msgstr and _RECORD_START_RE.match(line):
            yield start, record
            record, seen_msgstr = [], False
        if not record:
            start = lineno
        record.append(line)
        if line.startswith("msgstr"):
            seen_msgstr = True
    if record:
        yield start, record


def _load_record(lines: list, start: int) -> polib.POFile:
    """Parse one record with polib.

    Raises:
        ParseError: with the line number in the whole file.
    """
    try:
        return polib.pofile("\n".join(lines) + "\n", wrapwidth=0,
                            encoding="utf-8")
    except (OSError, ValueError) as exc:
        m = _POLIB_LINE_RE.search(str(exc))
        lineno = start + int(m.group(1)) - 1 if m else start
        raise ParseError(str(exc), lineno) from exc


def _location(occurrence: tuple) -> str:
    path, line = occurrence
    return f"{path}:{line}" if line else path


def _to_entry(poentry: polib.POEntry, start: int) -> TranslationEntry:
    if poentry.msgid_plural:
        raise ParseError("plural forms are not supported", start)
    context = tuple(poentry.msgctxt.split(CONTEXT_SEPARATOR)) if poentry.msgctxt else ()
    try:
        return TranslationEntry(
            context=context,
            original=poentry.msgid,
            translation=poentry.msgstr,
            fuzzy="fuzzy" in poentry.flags,
            locations=[_location(o) for o in poentry.occurrences],
        )
    except ValueError as exc:
        raise ParseError(str(exc), start) from exc


def parse_po(text: str, on_error=None) -> Catalog:
    """Parse PO text into a Catalog.

    Malformed records are logged and skipped; each ParseError is also
    passed to ``on_error`` when given.  A record with an empty msgid
    before any entry is the metadata header: its fields go to
    ``Catalog.metadata`` and the comments above it to ``Catalog.header``.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    def report(exc):
        log.warning("Skipping malformed PO record: %s", exc)
        if on_error is not None:
            on_error(exc)

    catalog = Catalog()
    for start, lines in _split_records(text):
        try:
            po = _load_record(lines, start)
            poentries = [e for e in po if not e.obsolete]
            if not poentries:
                if po.obsolete_entries() or all(l.startswith("#") for l in lines):
                    continue  # obsolete or comments only
                if not any(l.startswith("msgid") for l in lines):
                    raise ParseError("missing msgid", start)
                # polib moves a record with an empty msgid into metadata
                if len(catalog) or catalog.metadata:
                    raise ParseError("empty msgid outside the header", start)
                catalog.metadata = dict(po.metadata)
                catalog.header = po.header
                continue
            entry = _to_entry(poentries[0], start)
        except ParseError as exc:
            report(exc)
            continue

        if entry.key in catalog:
            log.warning("Duplicate PO entry at line %d ignored: %r",
                        start, entry.original[:40])
            continue
        catalog.add(entry)
    return catalog


def read_po(path: str, on_error=None) -> Catalog:
    """Read and parse a UTF-8 PO file.

    Raises:
        OSError: if the file cannot be read.
        DataFileError: if the file is not valid UTF-8.
    """
    with open(path, "r", encoding="utf-8-sig") as f:
        try:
            text = f.read()
        except UnicodeDecodeError as exc:
            raise DataFileError(f"{path}: not UTF-8 ({exc.reason})") from exc
    return parse_po(text, on_error=on_error)


# ── Writing ────────────────────────────────────────────────────────

def _to_poentry(entry: TranslationEntry) -> polib.POEntry:
    poentry = polib.POEntry(
        msgid=entry.original,
        msgstr=entry.translation,
        occurrences=[(loc, "") for loc in entry.locations],
        flags=["fuzzy"] if entry.fuzzy else [],
    )
    if entry.context:
        poentry.msgctxt = CONTEXT_SEPARATOR.join(entry.context)
    return poentry


def write_po(catalog: Catalog) -> str:
    """Serialize a Catalog to PO text, entries in catalog order.

    The metadata record is always written, empty when the catalog has no
    metadata, below the header comments (polib writes a lone ``#`` for an
    empty header).  Lines are never wrapped.
    """
    po = polib.POFile(wrapwidth=0)
    po.metadata = dict(catalog.metadata)
    po.header = catalog.header
    for entry in catalog:
        po.append(_to_poentry(entry))
    text = str(po)
    return text if text.endswith("\n") else text + "\n"


def save_po(catalog: Catalog, path: str):
    """Write a Catalog to ``path`` atomically.

    The text is fully serialized first and written to a temporary file in
    the same directory, which then replaces ``path``.  A failure leaves any
    previous file untouched.
    """
    text = write_po(catalog)
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=f".{os.path.basename(path)}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
