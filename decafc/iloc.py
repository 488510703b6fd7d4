"""ILOC operands, instructions and program formatting."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from decafc.common import MAX_LINE_LEN, escape_string

WORD_SIZE = 8
"""Machine word size in bytes (64 bits)."""

MEM_SIZE = 65536
"""Machine memory size in bytes."""

MAX_VIRTUAL_REGS = 2048
"""Maximum number of virtual registers."""

MAX_PHYSICAL_REGS = 32
"""Maximum number of physical registers."""

MAX_INSTRUCTIONS = 4096
"""Maximum number of instructions."""

PARAM_BP_OFFSET = 2 * WORD_SIZE
"""Base pointer offset for parameters (skips saved BP and return address)."""

LOCAL_BP_OFFSET = -WORD_SIZE
"""Base pointer offset for local variables."""

STATIC_VAR_OFFSET = 0x100
"""Base address in memory for static/global variables."""


class OperandType(enum.Enum):
    """Kind of an ILOC operand."""

    EMPTY = enum.auto()
    STACK_REG = enum.auto()
    BASE_REG = enum.auto()
    RETURN_REG = enum.auto()
    VIRTUAL_REG = enum.auto()
    PHYSICAL_REG = enum.auto()
    JUMP_LABEL = enum.auto()
    CALL_LABEL = enum.auto()
    INT_CONST = enum.auto()
    STR_CONST = enum.auto()


_REGISTER_TYPES = frozenset(
    {
        OperandType.STACK_REG,
        OperandType.BASE_REG,
        OperandType.RETURN_REG,
        OperandType.VIRTUAL_REG,
        OperandType.PHYSICAL_REG,
    }
)


@dataclass(frozen=True)
class Operand:
    """An ILOC operand: a register, label or constant."""

    type: OperandType = OperandType.EMPTY
    value: Union[int, str, None] = None

    @property
    def id(self) -> int:
        """Register or jump label number."""
        return self.value if isinstance(self.value, int) else 0

    @property
    def imm(self) -> int:
        """Integer constant value."""
        return self.value if isinstance(self.value, int) else 0

    @property
    def text(self) -> str:
        """Call label name or string constant."""
        return self.value if isinstance(self.value, str) else ""

    @property
    def is_register(self) -> bool:
        return self.type in _REGISTER_TYPES

    def __str__(self) -> str:
        kind = self.type
        if kind is OperandType.STACK_REG:
            return "SP"
        if kind is OperandType.BASE_REG:
            return "BP"
        if kind is OperandType.RETURN_REG:
            return "RET"
        if kind is OperandType.VIRTUAL_REG:
            return f"r{self.id}"
        if kind is OperandType.PHYSICAL_REG:
            return f"R{self.id}"
        if kind is OperandType.JUMP_LABEL:
            return f"l{self.id}"
        if kind is OperandType.CALL_LABEL:
            return self.text
        if kind is OperandType.INT_CONST:
            return str(self.imm)
        if kind is OperandType.STR_CONST:
            return f'"{escape_string(self.text)}"'
        return ""


class _IdCounter:
    """Hands out consecutive integer ids starting from zero."""

    def __init__(self) -> None:
        self._next = 0

    def take(self) -> int:
        value = self._next
        self._next += 1
        return value

    def reset(self) -> None:
        self._next = 0


_virtual_ids = _IdCounter()
_label_ids = _IdCounter()


def empty_operand() -> Operand:
    """Create an empty operand."""
    return Operand()


def stack_register() -> Operand:
    """Create the stack pointer operand (SP)."""
    return Operand(OperandType.STACK_REG)


def base_register() -> Operand:
    """Create the base pointer operand (BP)."""
    return Operand(OperandType.BASE_REG)


def return_register() -> Operand:
    """Create the return value register operand (RET)."""
    return Operand(OperandType.RETURN_REG)


def virtual_register() -> Operand:
    """Create a virtual register with the next available id."""
    return Operand(OperandType.VIRTUAL_REG, _virtual_ids.take())


def physical_register(id: int) -> Operand:
    """Create a physical register operand with the given id."""
    return Operand(OperandType.PHYSICAL_REG, id)


def anonymous_label() -> Operand:
    """Create a jump label with the next available id."""
    return Operand(OperandType.JUMP_LABEL, _label_ids.take())


def call_label(label: str) -> Operand:
    """Create a call label with the given name."""
    return Operand(OperandType.CALL_LABEL, label[: MAX_LINE_LEN - 1])


def int_const(integer: int) -> Operand:
    """Create an integer constant operand."""
    return Operand(OperandType.INT_CONST, integer)


def str_const(string: str) -> Operand:
    """Create a string constant operand."""
    return Operand(OperandType.STR_CONST, string[: MAX_LINE_LEN - 1])


def reset_counters() -> None:
    """Restart virtual register and jump label numbering from zero."""
    _virtual_ids.reset()
    _label_ids.reset()


class InsnForm(enum.Enum):
    """ILOC instruction forms; each value is the instruction's mnemonic."""

    ADD = "add"
    SUB = "sub"
    MULT = "mult"
    DIV = "div"
    AND = "and"
    OR = "or"
    LOAD_I = "loadI"
    LOAD = "load"
    LOAD_AI = "loadAI"
    LOAD_AO = "loadAO"
    STORE = "store"
    STORE_AI = "storeAI"
    STORE_AO = "storeAO"
    NOP = "nop"
    I2I = "i2i"
    JUMP = "jump"
    CBR = "cbr"
    CMP_LT = "cmp_LT"
    CMP_LE = "cmp_LE"
    CMP_EQ = "cmp_EQ"
    CMP_GE = "cmp_GE"
    CMP_GT = "cmp_GT"
    CMP_NE = "cmp_NE"
    ADD_I = "addI"
    MULT_I = "multI"
    NOT = "not"
    NEG = "neg"
    PUSH = "push"
    POP = "pop"
    LABEL = "label"
    CALL = "call"
    RETURN = "return"
    PRINT = "print"
    PHI = "phi"


_F = InsnForm

_BINARY = "{m} {0}, {1} => {2}"
_MOVE = "{m} {0} => {1}"
_SPLIT = "{m} {0} => {1}, {2}"
_SINGLE = "{m} {0}"
_BARE = "{m}"

_TEMPLATES = {
    **{
        form: _BINARY
        for form in (
            _F.ADD, _F.SUB, _F.MULT, _F.DIV, _F.AND, _F.OR,
            _F.CMP_LT, _F.CMP_LE, _F.CMP_EQ, _F.CMP_GE, _F.CMP_GT, _F.CMP_NE,
            _F.LOAD_AI, _F.LOAD_AO, _F.ADD_I, _F.MULT_I, _F.PHI,
        )
    },
    **{
        form: _MOVE
        for form in (_F.LOAD_I, _F.LOAD, _F.I2I, _F.NOT, _F.NEG, _F.STORE)
    },
    **{form: _SPLIT for form in (_F.STORE_AI, _F.STORE_AO, _F.CBR)},
    **{form: _SINGLE for form in (_F.JUMP, _F.PUSH, _F.POP, _F.CALL, _F.PRINT)},
    _F.NOP: _BARE,
    _F.RETURN: _BARE,
    _F.LABEL: "{0}:",
}

# (operand positions read, operand position written or None)
_DATA_FLOW: dict[InsnForm, tuple[tuple[int, ...], Optional[int]]] = {
    **{
        form: ((0, 1), 2)
        for form in (
            _F.ADD, _F.SUB, _F.MULT, _F.DIV, _F.AND, _F.OR,
            _F.CMP_LT, _F.CMP_LE, _F.CMP_EQ, _F.CMP_GE, _F.CMP_GT, _F.CMP_NE,
            _F.LOAD_AO, _F.PHI,
        )
    },
    _F.LOAD_I: ((), 1),
    **{form: ((0,), 1) for form in (_F.LOAD, _F.I2I, _F.NOT, _F.NEG)},
    **{form: ((0,), 2) for form in (_F.LOAD_AI, _F.ADD_I, _F.MULT_I)},
    _F.STORE: ((0, 1), None),
    _F.STORE_AI: ((0, 1), None),
    _F.STORE_AO: ((0, 1, 2), None),
    _F.CBR: ((0,), None),
    _F.PUSH: ((0,), None),
    _F.PRINT: ((0,), None),
    _F.POP: ((), 0),
}


class ILOCInsn:
    """A single ILOC instruction with up to three operands and a comment."""

    def __init__(self, form: InsnForm, *args: Operand, comment: str = "") -> None:
        if len(args) > 3:
            raise ValueError(f"an instruction takes at most 3 operands, got {len(args)}")
        self.form = form
        self.ops: list[Operand] = [*args, *(empty_operand() for _ in range(3 - len(args)))]
        self.comment = comment[: MAX_LINE_LEN - 1]

    def copy(self) -> "ILOCInsn":
        """Return a new instruction with the same form, operands and comment."""
        return ILOCInsn(self.form, *self.ops, comment=self.comment)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ILOCInsn):
            return NotImplemented
        return (self.form, self.ops, self.comment) == (other.form, other.ops, other.comment)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ILOCInsn({self})"

    def __str__(self) -> str:
        return _TEMPLATES[self.form].format(*(str(op) for op in self.ops), m=self.form.value)

    def operand_count(self) -> int:
        """Number of non-empty operands."""
        return sum(op.type is not OperandType.EMPTY for op in self.ops)

    def read_registers(self) -> list[Operand]:
        """Registers read by this instruction, in operand order."""
        reads, _ = _DATA_FLOW.get(self.form, ((), None))
        return [self.ops[pos] for pos in reads if self.ops[pos].is_register]

    def write_register(self) -> Operand:
        """The register written by this instruction, or an empty operand."""
        _, write = _DATA_FLOW.get(self.form, ((), None))
        if write is not None and self.ops[write].is_register:
            return self.ops[write]
        return empty_operand()


_COMMENT_COLUMN = 40


def format_program(insns: Iterable[ILOCInsn]) -> str:
    """Render instructions one per line: labels flush left, others indented, comments aligned."""
    lines = []
    for insn in insns:
        text = str(insn) if insn.form is InsnForm.LABEL else f"    {insn}"
        if insn.comment:
            text = f"{text:<{_COMMENT_COLUMN}}// {insn.comment}"
        lines.append(text + "\n")
    return "".join(lines)