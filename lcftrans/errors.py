"""Exception types shared by the catalog codec, extractor and workflows."""


class LcfTransError(Exception):
    """Base class for all lcftrans errors."""


class ParseError(LcfTransError):
    """A malformed record in a PO catalog.

    Raised per record; the parser logs it and continues with the next one.
    """

    def __init__(self, message: str, line: int = 0):
        self.message = message
        self.line = line
        if line:
            message = f"line {line}: {message}"
        super().__init__(message)


class DecodeError(LcfTransError):
    """Raw text bytes could not be decoded with the selected encoding."""

    def __init__(self, path: tuple, encoding: str, reason: str = ""):
        self.path = path
        self.encoding = encoding
        self.reason = reason
        super().__init__(
            f"cannot decode {'/'.join(str(p) for p in path)} as {encoding}"
            + (f": {reason}" if reason else ""))


class ConfigError(LcfTransError):
    """Invalid run configuration (bad encoding, missing directory, ...)."""


class DataFileError(LcfTransError):
    """A game data file or a catalog file could not be loaded."""
