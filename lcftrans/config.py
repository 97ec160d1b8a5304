"""Run configuration.

All settings of a run live in one ``Config`` value that is passed to the
workflows explicitly.  Defaults can be kept in a JSON settings file; the
command line overrides them.
"""

import codecs
import configparser
import json
import logging
import os
from dataclasses import dataclass, fields

from .errors import ConfigError
from .text_match import DEFAULT_THRESHOLD
from .utils import find_file

log = logging.getLogger(__name__)

SETTINGS_FILE = "_settings.json"
INI_FILE = "RPG_RT.ini"
DEFAULT_ENCODING = "utf-8"
MODES = ("create", "update", "match")

# Keys a settings file may set
_SETTINGS_KEYS = ("output_dir", "encoding", "fuzzy_threshold", "log_level")


@dataclass
class Config:
    """Settings for one create/update/match run."""
    input_dir: str = "."
    output_dir: str = "."
    mode: str = "create"      # "create" | "update" | "match"
    match_dir: str = ""       # match mode: directory with the source catalogs
    encoding: str = ""        # empty → settings file, RPG_RT.ini, then utf-8
    fuzzy_threshold: float = DEFAULT_THRESHOLD
    log_level: str = "WARNING"

    def validate(self):
        """Check the configuration before any file is touched.

        Raises:
            ConfigError: describing the first problem found.
        """
        if self.mode not in MODES:
            raise ConfigError(f"Unknown mode {self.mode!r}")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigError(f"Unknown log level {self.log_level!r}")
        try:
            threshold = float(self.fuzzy_threshold)
        except (TypeError, ValueError):
            raise ConfigError(f"Bad fuzzy threshold {self.fuzzy_threshold!r}") from None
        if not 0.0 < threshold <= 1.0:
            raise ConfigError("The fuzzy threshold must be in (0, 1]")
        if not os.path.isdir(self.input_dir):
            raise ConfigError(f"Cannot access input directory {self.input_dir}")
        if not os.path.isdir(self.output_dir):
            raise ConfigError(f"Cannot access output directory {self.output_dir}")
        if self.mode == "match":
            if not os.path.isdir(self.match_dir or ""):
                raise ConfigError(f"Cannot access merge input directory {self.match_dir}")
            if os.path.abspath(self.output_dir) == os.path.abspath(self.match_dir):
                raise ConfigError("You need to specify a different output directory (-o).")


def load_settings(path: str = SETTINGS_FILE) -> dict:
    """Load saved settings; a missing or unreadable file gives no settings."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as exc:
        log.warning("Ignoring settings file %s: %s", path, exc)
        return {}
    if not isinstance(cfg, dict):
        log.warning("Ignoring settings file %s: not a JSON object", path)
        return {}

    unknown = sorted(set(cfg) - set(_SETTINGS_KEYS))
    if unknown:
        log.debug("Unknown settings ignored: %s", ", ".join(unknown))
    return {k: cfg[k] for k in _SETTINGS_KEYS if k in cfg}


def build_config(settings: dict = None, **options) -> Config:
    """Combine saved settings with explicit options (None means unset)."""
    values = {f.name for f in fields(Config)}
    merged = {k: v for k, v in (settings or {}).items() if k in values}
    merged.update({k: v for k, v in options.items() if v is not None})
    return Config(**merged)


def encoding_from_ini(directory: str) -> str:
    """Read the encoding stored by EasyRPG in RPG_RT.ini, if any.

    Code page numbers (``932``) are returned as Python codec names
    (``cp932``).
    """
    path = find_file(directory, INI_FILE)
    if not path:
        return ""
    parser = configparser.ConfigParser(strict=False, interpolation=None)
    try:
        # Only the ASCII keys matter; the game title may be in any encoding
        parser.read(path, encoding="latin-1")
    except configparser.Error as exc:
        log.warning("Cannot read %s: %s", path, exc)
        return ""
    value = parser.get("EasyRPG", "Encoding", fallback="").strip()
    if value.isdigit():
        value = f"cp{value}"
    return value


def resolve_encoding(config: Config) -> str:
    """Pick the text encoding for a run and check that Python knows it.

    Raises:
        ConfigError: for an unknown encoding.
    """
    encoding = config.encoding or encoding_from_ini(config.input_dir) or DEFAULT_ENCODING
    try:
        codecs.lookup(encoding)
    except LookupError:
        raise ConfigError(f"Bad encoding {encoding}") from None
    return encoding
