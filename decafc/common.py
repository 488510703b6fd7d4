"""Constants, the Decaf type enumeration and string-literal escaping helpers."""

from __future__ import annotations

import enum

MAX_FILE_SIZE = 65536
"""Maximum size (in bytes) of any Decaf source file."""

MAX_LINE_LEN = 256
"""Maximum length (in characters) of any single line of input."""

MAX_TOKEN_LEN = 256
"""Maximum length (in characters) of any single token."""

MAX_ERROR_LEN = 256
"""Maximum length (in characters) of any error message."""

MAX_ID_LEN = 256
"""Maximum length (in characters) of any identifier."""


class DecafType(enum.Enum):
    """Valid Decaf types.

    Variables can only be ``INT`` or ``BOOL``; the others track the return type
    of a ``void`` function or the parameter type of ``print_str``.
    """

    UNKNOWN = enum.auto()
    INT = enum.auto()
    BOOL = enum.auto()
    VOID = enum.auto()
    STR = enum.auto()

    def __str__(self) -> str:
        return self.name.lower()


_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
}


def escape_string(text: str) -> str:
    """Return a Decaf string literal with escape codes inserted where needed."""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def doubly_escape_string(text: str) -> str:
    """Return a Decaf string literal escaped twice (for AST graphs and ILOC output)."""
    return escape_string(escape_string(text))