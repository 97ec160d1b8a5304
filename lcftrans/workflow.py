"""Create, update and match workflows over a game directory.

Each data file (or catalog pair in match mode) is processed on its own: a
file that cannot be read or written is logged and recorded in the report,
and the run goes on with the next one.
"""

import logging
import os
from dataclasses import dataclass, field

from .config import Config, resolve_encoding
from .errors import DataFileError
from .extractor import MAIN, extract
from .lcf import (
    DATABASE_CATALOGS, DATABASE_CATEGORIES, DATABASE_DEFAULT_CATEGORY,
    DATABASE_FILE, MAP_EXT, MAPTREE_CATALOG, MAPTREE_FILE,
    map_catalog_name, walk_database, walk_map, walk_maptree,
)
from .po_file import read_po, save_po
from .project_model import Catalog
from .tree import load_xml
from .utils import lower_names

log = logging.getLogger(__name__)

STALE_SUFFIX = ".stale.po"
UNMATCHED_SUFFIX = ".unmatched.po"


@dataclass
class FileReport:
    """What happened to one catalog file."""
    name: str
    terms: int = 0
    translated: int = 0
    stale: int = 0
    matched: int = 0
    fuzzy: int = 0
    unmatched: int = 0
    skipped: bool = False  # no terms, nothing written
    error: str = ""


@dataclass
class RunReport:
    """Outcome of a whole run."""
    mode: str
    encoding: str = ""
    files: list = field(default_factory=list)

    @property
    def failed(self) -> list:
        return [f for f in self.files if f.error]


def list_data_files(directory: str) -> list:
    """Return (kind, filename) for the lcf2xml files of a game, sorted by name.

    kind is "database", "maptree" or "map".
    """
    found = []
    for name in sorted(os.listdir(directory)):
        lname = name.lower()
        if lname == DATABASE_FILE:
            found.append(("database", name))
        elif lname == MAPTREE_FILE:
            found.append(("maptree", name))
        elif lname.endswith(MAP_EXT):
            found.append(("map", name))
    return found


def extract_file(kind: str, path: str, encoding: str) -> list:
    """Extract the catalogs of one data file.

    Returns:
        List of (catalog base name, Catalog, skip when empty).
    """
    tree = load_xml(path)
    if kind == "database":
        catalogs = extract(tree, encoding, DATABASE_CATALOGS["terms"], walk_database,
                           DATABASE_CATEGORIES, DATABASE_DEFAULT_CATEGORY)
        return [(po_name, catalogs[category], False)
                for category, po_name in DATABASE_CATALOGS.items()]
    if kind == "maptree":
        catalogs = extract(tree, encoding, MAPTREE_CATALOG, walk_maptree)
        return [(MAPTREE_CATALOG, catalogs[MAIN], True)]
    po_name = map_catalog_name(os.path.basename(path))
    catalogs = extract(tree, encoding, po_name, walk_map)
    return [(po_name, catalogs[MAIN], True)]


def _dump(config: Config, po_name: str, catalog: Catalog, skip_empty: bool,
          existing_names: dict = None) -> FileReport:
    """Write one extracted catalog, merging it with the saved one in update mode."""
    report = FileReport(name=po_name + ".po", terms=len(catalog))
    if skip_empty and not catalog:
        report.skipped = True
        return report

    target = po_name + ".po"
    try:
        if existing_names is not None:
            found = existing_names.get(target.lower())
            if found:
                target = found
                existing = read_po(os.path.join(config.output_dir, found))
                catalog, stale = catalog.merge(existing)
                report.stale = len(stale)
                if stale:
                    save_po(stale, os.path.join(config.output_dir, po_name + STALE_SUFFIX))
        save_po(catalog, os.path.join(config.output_dir, target))
    except (OSError, DataFileError) as exc:
        log.warning("Failed updating %s: %s", target, exc)
        report.error = str(exc)
        return report

    report.name = target
    report.translated = catalog.translated_count
    return report


def _extract_project(config: Config, update: bool) -> RunReport:
    config.validate()
    encoding = resolve_encoding(config)
    report = RunReport(mode=config.mode, encoding=encoding)
    existing_names = lower_names(config.output_dir) if update else None

    for kind, name in list_data_files(config.input_dir):
        path = os.path.join(config.input_dir, name)
        log.info("Parsing %s %s", kind, name)
        try:
            outputs = extract_file(kind, path, encoding)
        except (OSError, DataFileError) as exc:
            log.warning("Failed reading %s: %s", path, exc)
            report.files.append(FileReport(name=name, error=str(exc)))
            continue
        for po_name, catalog, skip_empty in outputs:
            report.files.append(
                _dump(config, po_name, catalog, skip_empty, existing_names))
    return report


def create_translation(config: Config) -> RunReport:
    """Extract every data file and write fresh catalogs."""
    return _extract_project(config, update=False)


def update_translation(config: Config) -> RunReport:
    """Re-extract and merge with the catalogs already in the output directory.

    Entries that no longer exist in the game are written to
    ``<name>.stale.po`` next to the updated catalog.
    """
    return _extract_project(config, update=True)


def match_translation(config: Config) -> RunReport:
    """Fill the catalogs of ``input_dir`` from the same-named ones of ``match_dir``.

    Results go to ``output_dir`` under the destination's name; entries
    without a counterpart also go to ``<name>.unmatched.po``.
    """
    config.validate()
    report = RunReport(mode=config.mode)
    dest_names = lower_names(config.input_dir)

    for name in sorted(os.listdir(config.match_dir)):
        lname = name.lower()
        if (not lname.endswith(".po") or lname.endswith(STALE_SUFFIX)
                or lname.endswith(UNMATCHED_SUFFIX)):
            continue
        dest_name = dest_names.get(lname)
        if dest_name is None:
            log.info("No catalog matching %s in %s", name, config.input_dir)
            continue

        file_report = FileReport(name=dest_name)
        try:
            source = read_po(os.path.join(config.match_dir, name))
            destination = read_po(os.path.join(config.input_dir, dest_name))
            result = destination.match(source, float(config.fuzzy_threshold))
            file_report.terms = len(destination)
            file_report.matched = result.matched
            file_report.fuzzy = result.fuzzy
            file_report.unmatched = len(result.stale)
            file_report.translated = result.catalog.translated_count
            if result.stale:
                save_po(result.stale, os.path.join(
                    config.output_dir, dest_name[:-3] + UNMATCHED_SUFFIX))
            save_po(result.catalog, os.path.join(config.output_dir, dest_name))
        except (OSError, DataFileError) as exc:
            log.warning("Failed matching %s: %s", dest_name, exc)
            file_report.error = str(exc)
        report.files.append(file_report)
    return report


_WORKFLOWS = {
    "create": create_translation,
    "update": update_translation,
    "match": match_translation,
}


def run(config: Config) -> RunReport:
    """Run the workflow selected by ``config.mode``."""
    config.validate()
    return _WORKFLOWS[config.mode](config)
