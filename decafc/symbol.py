"""Symbols, lexically scoped symbol tables and static analysis errors."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from decafc.common import MAX_ERROR_LEN, MAX_ID_LEN, DecafType


@dataclass
class Parameter:
    """A formal function parameter: its name and Decaf type."""

    name: str
    type: DecafType


class SymbolKind(enum.Enum):
    """Kind of symbol."""

    SCALAR = enum.auto()
    ARRAY = enum.auto()
    FUNCTION = enum.auto()


class SymbolLocation(enum.Enum):
    """Memory access location, set during code generation."""

    UNKNOWN = enum.auto()
    STATIC_VAR = enum.auto()
    STACK_PARAM = enum.auto()
    STACK_LOCAL = enum.auto()


def _clip_name(name: str) -> str:
    return name[: MAX_ID_LEN - 1]


@dataclass
class Symbol:
    """A single Decaf symbol: a scalar variable, an array or a function."""

    kind: SymbolKind
    name: str
    type: DecafType
    length: int = 1
    parameters: list[Parameter] = field(default_factory=list)
    location: SymbolLocation = SymbolLocation.UNKNOWN
    offset: int = 0

    def __post_init__(self) -> None:
        self.name = _clip_name(self.name)

    @classmethod
    def scalar(cls, name: str, type: DecafType) -> "Symbol":
        """Create a scalar variable symbol."""
        return cls(SymbolKind.SCALAR, name, type)

    @classmethod
    def array(cls, name: str, type: DecafType, length: int) -> "Symbol":
        """Create an array symbol with the given length."""
        return cls(SymbolKind.ARRAY, name, type, length=length)

    @classmethod
    def function(
        cls, name: str, return_type: DecafType, parameters: Iterable[Parameter]
    ) -> "Symbol":
        """Create a function symbol; the parameters are copied."""
        copied = [Parameter(p.name, p.type) for p in parameters]
        return cls(SymbolKind.FUNCTION, name, return_type, parameters=copied)

    def __str__(self) -> str:
        if self.kind is SymbolKind.SCALAR:
            text = f"{self.name} : {self.type}"
        elif self.kind is SymbolKind.ARRAY:
            text = f"{self.name} : {self.type} [{self.length}]"
        else:
            params = ", ".join(str(p.type) for p in self.parameters)
            text = f"{self.name} : ({params}) -> {self.type}"

        if self.location is SymbolLocation.STATIC_VAR:
            text += f" {{static offset={self.offset}}}"
        elif self.location in (SymbolLocation.STACK_PARAM, SymbolLocation.STACK_LOCAL):
            text += f" {{stack offset={self.offset}}}"
        return text


class SymbolTable:
    """Symbols defined in one lexical scope, linked to the enclosing scope."""

    def __init__(self, parent: Optional["SymbolTable"] = None) -> None:
        self.parent = parent
        self.local_symbols: list[Symbol] = []

    def child(self) -> "SymbolTable":
        """Create a new table whose parent is this one."""
        return SymbolTable(self)

    def insert(self, symbol: Symbol) -> None:
        """Add a symbol to this scope."""
        self.local_symbols.append(symbol)

    def lookup(self, name: str) -> Optional[Symbol]:
        """Find a symbol by name here or in any enclosing scope."""
        key = name[:MAX_ID_LEN]
        table: Optional[SymbolTable] = self
        while table is not None:
            for sym in table.local_symbols:
                if sym.name == key:
                    return sym
            table = table.parent
        return None

    def describe(self) -> str:
        """Render the local symbols in the form used for graph labels."""
        if not self.local_symbols:
            return "(empty)"
        return "".join(f"\\n  {sym}" for sym in self.local_symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.local_symbols)

    def __len__(self) -> int:
        return len(self.local_symbols)


@dataclass
class AnalysisError:
    """A static analysis error message."""

    message: str

    def __post_init__(self) -> None:
        self.message = self.message[: MAX_ERROR_LEN - 1]

    def __str__(self) -> str:
        return self.message


def add_error(errors: list[AnalysisError], message: str) -> AnalysisError:
    """Append a new error with the given message to ``errors`` and return it."""
    error = AnalysisError(message)
    errors.append(error)
    return error


def create_print_symbol(name: str, type: DecafType) -> Symbol:
    """Create the symbol for a built-in print function taking one ``value``."""
    return Symbol.function(name, DecafType.VOID, [Parameter("value", type)])


def builtin_symbols() -> list[Symbol]:
    """Symbols for the built-in functions, in the order they are declared."""
    return [
        create_print_symbol("print_int", DecafType.INT),
        create_print_symbol("print_bool", DecafType.BOOL),
        create_print_symbol("print_str", DecafType.STR),
    ]