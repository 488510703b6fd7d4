"""Lexical tokens, a token queue and a small regex helper for the lexer."""

from __future__ import annotations

import enum
import re
from collections import deque
from dataclasses import dataclass
from typing import Iterator, Optional

from decafc.common import MAX_TOKEN_LEN


class Regex:
    """Compiled regular expression used to recognise tokens."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self._compiled = re.compile(pattern)

    def match(self, text: str) -> Optional[str]:
        """Search ``text``; return everything from its start up to the end of the match.

        Returns ``None`` when nothing matches or when the result would be
        longer than a token may be.
        """
        found = self._compiled.search(text)
        if found is None or found.end() > MAX_TOKEN_LEN - 1:
            return None
        return text[: found.end()]


class TokenType(enum.Enum):
    """Kinds of Decaf tokens."""

    ID = "ID"
    DECLIT = "DECLIT"
    HEXLIT = "HEXLIT"
    STRLIT = "STRLIT"
    KEY = "KEYWORD"
    SYM = "SYMBOL"

    def __str__(self) -> str:
        return self.value


def token_str_eq(str1: str, str2: str) -> bool:
    """Compare two token texts, considering at most ``MAX_TOKEN_LEN`` characters."""
    return str1[:MAX_TOKEN_LEN] == str2[:MAX_TOKEN_LEN]


@dataclass
class Token:
    """A single lexical token; text is cut to fit the token length limit."""

    type: TokenType
    text: str
    line: int

    def __post_init__(self) -> None:
        self.text = self.text[: MAX_TOKEN_LEN - 1]


class TokenQueue:
    """First-in, first-out queue of tokens."""

    def __init__(self) -> None:
        self._tokens: deque[Token] = deque()

    def add(self, token: Token) -> None:
        """Append a token at the back of the queue."""
        self._tokens.append(token)

    def peek(self) -> Optional[Token]:
        """Return the front token without removing it, or ``None`` if empty."""
        return self._tokens[0] if self._tokens else None

    def remove(self) -> Optional[Token]:
        """Remove and return the front token, or ``None`` if empty."""
        return self._tokens.popleft() if self._tokens else None

    def is_empty(self) -> bool:
        return not self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def format(self) -> str:
        """Render one line per token: type, line number and text."""
        return "".join(
            f"{str(t.type):<8} [line {t.line:03d}]  {t.text}\n" for t in self._tokens
        )