"""RPG Maker 2000/2003 text walkers.

Visits the translatable text of database, map and map tree trees as
loaded from liblcf's XML export (see ``tree.load_xml``).  Each walker
follows the ``walker(tree, visit)`` contract of ``extractor.extract``.

Paths are built so that their string segments name what the text is
(``actors/name``, ``commonevents/message``) and their integer segments
say where it is (record IDs, page IDs, command indices).
"""

import logging

log = logging.getLogger(__name__)

# Event command codes that carry translatable text in their string
CODE_SHOW_MESSAGE = 10110         # Show Message, first line
CODE_SHOW_MESSAGE_2 = 20110       # Show Message continuation line
CODE_SHOW_CHOICE = 10140          # Show Choice; options come from the 20140 commands
CODE_SHOW_CHOICE_OPTION = 20140   # One choice option
CODE_CHANGE_HERO_NAME = 10610     # Change Hero Name
CODE_CHANGE_HERO_TITLE = 10620    # Change Hero Title

# Single-command texts and the path segment naming them
_COMMAND_KINDS = {
    CODE_SHOW_CHOICE_OPTION: "choice",
    CODE_CHANGE_HERO_NAME: "name",
    CODE_CHANGE_HERO_TITLE: "title",
}

# Database tables and their translatable fields
DATABASE_FIELDS = {
    "actors":     ["name", "title", "skill_name"],
    "classes":    ["name"],
    "skills":     ["name", "description", "using_message1", "using_message2"],
    "items":      ["name", "description"],
    "enemies":    ["name"],
    "troops":     ["name"],
    "terrains":   ["name"],
    "attributes": ["name"],
    "states":     ["name", "message_actor", "message_enemy",
                   "message_already", "message_affected", "message_recovery"],
}

# Data files (lower case) as exported by lcf2xml
DATABASE_FILE = "rpg_rt.edb"
MAPTREE_FILE = "rpg_rt.emt"
MAP_EXT = ".emu"

# Database extraction is split into three catalogs by the first path segment
DATABASE_CATEGORIES = {"commonevents": "common", "battleevents": "battle"}
DATABASE_DEFAULT_CATEGORY = "terms"

# Catalog (PO) base names; the binary file names the game itself uses
DATABASE_CATALOGS = {
    "terms": "RPG_RT.ldb",
    "common": "RPG_RT.ldb.common",
    "battle": "RPG_RT.ldb.battle",
}
MAPTREE_CATALOG = "RPG_RT.lmt"


def map_catalog_name(filename: str) -> str:
    """``Map0001.emu`` → ``Map0001.lmu``."""
    base = filename[:-len(MAP_EXT)] if filename.lower().endswith(MAP_EXT) else filename
    return base + ".lmu"


# ── Tree helpers ───────────────────────────────────────────────────

def _struct(value) -> dict:
    """A struct element: lcf2xml wraps single structs in a one-item list."""
    if isinstance(value, list) and len(value) == 1:
        value = value[0]
    return value if isinstance(value, dict) else {}


def _records(value):
    """Yield (id, record) from a collection; empty collections load as ""."""
    if isinstance(value, dict):
        items = value.items()
    elif isinstance(value, list):
        items = enumerate(value)
    else:
        return
    for key, record in items:
        if isinstance(record, dict):
            yield key, record


def _code(cmd: dict) -> int:
    try:
        return int(cmd.get("code", 0))
    except (TypeError, ValueError):
        return 0


def _join_lines(lines: list):
    sep = b"\n" if isinstance(lines[0], bytes) else "\n"
    return sep.join(lines)


# ── Event commands ─────────────────────────────────────────────────

def walk_event_commands(commands, prefix: tuple, visit):
    """Visit the text of an event command list.

    Consecutive Show Message lines (10110 followed by 20110s) form one
    message box and are visited as one text joined with newlines, at the
    index of the first line.
    """
    if not isinstance(commands, list):
        return
    i = 0
    while i < len(commands):
        cmd = commands[i]
        code = _code(cmd) if isinstance(cmd, dict) else 0

        if code == CODE_SHOW_MESSAGE:
            lines = [cmd.get("string", "")]
            j = i + 1
            while (j < len(commands) and isinstance(commands[j], dict)
                   and _code(commands[j]) == CODE_SHOW_MESSAGE_2):
                lines.append(commands[j].get("string", ""))
                j += 1
            visit(prefix + (i, "message"), _join_lines(lines))
            i = j
            continue

        kind = _COMMAND_KINDS.get(code)
        if kind:
            visit(prefix + (i, kind), cmd.get("string", ""))
        i += 1


def _walk_pages(pages, prefix: tuple, visit):
    for page_id, page in _records(pages):
        walk_event_commands(page.get("event_commands"), prefix + (page_id,), visit)


# ── Data files ─────────────────────────────────────────────────────

def walk_database(tree, visit):
    """Visit database terms, common events and battle events."""
    db = _struct(tree)
    if "Database" in db:  # root element kept as a field
        db = _struct(db["Database"])

    for table, fields in DATABASE_FIELDS.items():
        for rec_id, record in _records(db.get(table)):
            for fld in fields:
                text = record.get(fld)
                if isinstance(text, (str, bytes)):
                    visit((table, rec_id, fld), text)

    for fld, text in _struct(db.get("terms")).items():
        if isinstance(text, (str, bytes)):
            visit(("terms", fld), text)

    for event_id, event in _records(db.get("commonevents")):
        walk_event_commands(event.get("event_commands"),
                            ("commonevents", event_id), visit)

    for troop_id, troop in _records(db.get("troops")):
        _walk_pages(troop.get("pages"), ("battleevents", troop_id), visit)


def walk_map(tree, visit):
    """Visit the event text of a map."""
    lmu = _struct(tree)
    if "Map" in lmu:
        lmu = _struct(lmu["Map"])
    for event_id, event in _records(lmu.get("events")):
        _walk_pages(event.get("pages"), ("events", event_id), visit)


def walk_maptree(tree, visit):
    """Visit map names of the map tree."""
    lmt = _struct(tree)
    if "TreeMap" in lmt:
        lmt = _struct(lmt["TreeMap"])
    for map_id, info in _records(lmt.get("maps")):
        text = info.get("name")
        if isinstance(text, (str, bytes)):
            visit(("maps", map_id, "name"), text)
