"""Translation of register-allocated ILOC programs into Y86-64 assembly."""

from __future__ import annotations

import sys
from typing import Iterable, TextIO

from decafc.common import MAX_LINE_LEN, escape_string
from decafc.iloc import ILOCInsn, InsnForm, Operand, OperandType
from decafc.token import token_str_eq

ONE = "%rbx"
RSP = "%rsp"

IOSRC = "%rsi"
IODST = "%rdi"

TMP1 = "%r8"
TMP2 = "%r9"
TMP3 = "%r12"
TMP4 = "%r13"
TMP5 = "%r14"

# rax: RET, rcx: R0, rdx: R1, rbx: literal 1, rsp: SP, rbp: BP, rsi/rdi: I/O,
# r8, r9, r12, r13, r14: reserved scratch, r10: R2, r11: R3
_PHYSICAL_NAMES = {0: "%rcx", 1: "%rdx", 2: "%r10", 3: "%r11"}

_CMP_CODES = {
    InsnForm.CMP_GT: "g",
    InsnForm.CMP_GE: "ge",
    InsnForm.CMP_LT: "l",
    InsnForm.CMP_LE: "le",
    InsnForm.CMP_EQ: "e",
    InsnForm.CMP_NE: "ne",
}

_BIN_OPCODES = {
    InsnForm.ADD: "addq",
    InsnForm.SUB: "subq",
    InsnForm.AND: "andq",
}


class Y86Error(Exception):
    """Raised when an instruction cannot be translated to Y86."""


def reg_name(op: Operand) -> str:
    """Return the Y86 register name for a register operand ("INVALID" otherwise)."""
    if op.type is OperandType.BASE_REG:
        return "%rbp"
    if op.type is OperandType.STACK_REG:
        return "%rsp"
    if op.type is OperandType.RETURN_REG:
        return "%rax"
    if op.type is OperandType.PHYSICAL_REG:
        if op.id >= 4:
            raise Y86Error(
                f"Invalid register: {op} (must be R0-R3 for translation to physical register)"
            )
        return _PHYSICAL_NAMES.get(op.id, "INVALID")
    return "INVALID"


class _Emitter:
    """Accumulates assembly lines."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def label(self, text: str) -> None:
        self.lines.append(f"{text}:\n")

    def jump_label(self, id: int) -> None:
        self.lines.append(f"l{id}:\n")

    def emit(self, text: str) -> None:
        self.lines.append(f"    {text}\n")

    def emitf(self, text: str) -> None:
        self.emit(text[: MAX_LINE_LEN - 1])

    def raw(self, text: str) -> None:
        self.lines.append(text)

    def bin_op(self, opcode: str, op0: Operand, op1: Operand, op2: Operand) -> None:
        if op0.id == op2.id:
            self.emitf(f"{opcode} {reg_name(op1)}, {reg_name(op0)}")
        elif op1.id == op2.id:
            self.emitf(f"{opcode} {reg_name(op0)}, {reg_name(op1)}")
        else:
            self.emitf(f"rrmovq {reg_name(op0)}, {reg_name(op2)}")
            self.emitf(f"{opcode} {reg_name(op1)}, {reg_name(op2)}")

    def cmp(self, code: str, op0: Operand, op1: Operand, op2: Operand) -> None:
        self.emitf(f"xorq {TMP1}, {TMP1}")
        self.emitf(f"rrmovq {reg_name(op0)}, {TMP2}")
        self.emitf(f"subq {reg_name(op1)}, {TMP2}")
        self.emitf(f"cmov{code} {ONE}, {TMP1}")
        self.emitf(f"rrmovq {TMP1}, {reg_name(op2)}")


def _report_unsupported(insn: ILOCInsn) -> None:
    sys.stdout.write(f"Unsupported instruction: {insn}\n")


def generate_y86(insns: Iterable[ILOCInsn]) -> str:
    """Translate an allocated ILOC program (registers R0-R3 only) to Y86 assembly text."""
    out = _Emitter()
    strings: list[str] = []
    need_mult = False
    need_div = False

    out.emit(".pos 0 code")
    out.emit("jmp _start")
    out.emit("")

    out.emit(".pos 0x100 data")
    out.emit("")

    out.emit(".pos 0x400 code")
    out.label("_start")
    out.emitf(f"irmovq $1, {ONE}")
    out.emit("irmovq _stack, %rsp")
    out.emit("call main")
    out.emit("halt")
    out.emit("")

    for insn in insns:
        op0, op1, op2 = insn.ops
        form = insn.form

        if form is InsnForm.I2I:
            out.emitf(f"rrmovq {reg_name(op0)}, {reg_name(op1)}")
        elif form is InsnForm.PUSH:
            out.emitf(f"pushq {reg_name(op0)}")
        elif form is InsnForm.POP:
            out.emitf(f"popq {reg_name(op0)}")
        elif form is InsnForm.LOAD_I:
            out.emitf(f"irmovq ${op0.imm}, {reg_name(op1)}")
        elif form is InsnForm.LOAD:
            out.emitf(f"mrmovq ({reg_name(op0)}), {reg_name(op1)}")
        elif form is InsnForm.LOAD_AI:
            out.emitf(f"mrmovq ${op1.imm}({reg_name(op0)}), {reg_name(op2)}")
        elif form is InsnForm.LOAD_AO:
            out.emitf(f"rrmovq {reg_name(op0)}, {TMP1}")
            out.emitf(f"addq {reg_name(op1)}, {TMP1}")
            out.emitf(f"mrmovq ({TMP1}), {reg_name(op2)}")
        elif form is InsnForm.STORE:
            out.emitf(f"rmmovq {reg_name(op0)}, ({reg_name(op1)})")
        elif form is InsnForm.STORE_AI:
            out.emitf(f"rmmovq {reg_name(op0)}, ${op2.imm}({reg_name(op1)})")
        elif form is InsnForm.STORE_AO:
            out.emitf(f"rrmovq {reg_name(op1)}, {TMP1}")
            out.emitf(f"addq {reg_name(op2)}, {TMP1}")
            out.emitf(f"rmmovq {reg_name(op0)}, ({TMP1})")
        elif form in _BIN_OPCODES:
            out.bin_op(_BIN_OPCODES[form], op0, op1, op2)
        elif form is InsnForm.ADD_I:
            out.emitf(f"irmovq ${op1.imm}, {TMP1}")
            if op0.id != op2.id:
                out.emitf(f"rrmovq {reg_name(op0)}, {reg_name(op2)}")
            out.emitf(f"addq {TMP1}, {reg_name(op2)}")
        elif form in (InsnForm.MULT, InsnForm.MULT_I, InsnForm.DIV):
            out.emitf(f"rrmovq {reg_name(op0)}, {TMP1}")
            if form is InsnForm.MULT_I:
                out.emitf(f"irmovq ${op1.imm}, {TMP2}")
            else:
                out.emitf(f"rrmovq {reg_name(op1)}, {TMP2}")
            if form is InsnForm.DIV:
                out.emitf("call _builtin_div")
                need_div = True
            else:
                out.emitf("call _builtin_mult")
                need_mult = True
            out.emitf(f"rrmovq {TMP3}, {reg_name(op2)}")
        elif form is InsnForm.OR:
            # OR(x, y) == XOR(x, y) + AND(x, y)
            out.emitf(f"rrmovq {reg_name(op0)}, {TMP1}")
            out.emitf(f"xorq {reg_name(op1)}, {TMP1}")
            out.emitf(f"rrmovq {reg_name(op0)}, {TMP2}")
            out.emitf(f"andq {reg_name(op1)}, {TMP2}")
            out.emitf(f"addq {TMP2}, {TMP1}")
            out.emitf(f"rrmovq {TMP1}, {reg_name(op2)}")
        elif form is InsnForm.NEG:
            out.emitf(f"xorq {TMP1}, {TMP1}")
            out.emitf(f"subq {reg_name(op0)}, {TMP1}")
            out.emitf(f"rrmovq {TMP1}, {reg_name(op1)}")
        elif form is InsnForm.NOT:
            if op0.id != op1.id:
                out.emitf(f"rrmovq {reg_name(op0)}, {reg_name(op1)}")
            out.emitf(f"xorq {ONE}, {reg_name(op1)}")
        elif form in _CMP_CODES:
            out.cmp(_CMP_CODES[form], op0, op1, op2)
        elif form is InsnForm.LABEL:
            if op0.type is OperandType.CALL_LABEL:
                out.label(op0.text)
            else:
                out.jump_label(op0.id)
        elif form is InsnForm.JUMP:
            out.emitf(f"jmp l{op0.id}")
        elif form is InsnForm.CBR:
            out.emitf(f"andq {reg_name(op0)}, {reg_name(op0)}")
            out.emitf(f"jne l{op1.id}")
            out.emitf(f"jmp l{op2.id}")
        elif form is InsnForm.CALL:
            out.emitf(f"call {op0.text}")
        elif form is InsnForm.RETURN:
            out.emit("ret")
        elif form is InsnForm.PRINT:
            if op0.type is OperandType.PHYSICAL_REG:
                out.emitf(f"pushq {reg_name(op0)}")
                out.emitf(f"rrmovq {RSP}, {IOSRC}")
                out.emit("iotrap 2")
                out.emit("iotrap 5")
                out.emitf(f"popq {reg_name(op0)}")
            elif op0.type is OperandType.STR_CONST:
                sidx = next(
                    (n for n, s in enumerate(strings) if token_str_eq(s, op0.text)),
                    len(strings),
                )
                if sidx == len(strings):
                    strings.append(op0.text)
                out.emitf(f"irmovq _str{sidx}, {IOSRC}")
                out.emit("iotrap 4")
                out.emit("iotrap 5")
            else:
                _report_unsupported(insn)
        elif form is InsnForm.NOP:
            out.emit("nop")
        elif form is InsnForm.PHI:
            pass
        else:
            _report_unsupported(insn)

    if need_mult:
        out.emit("")
        out.label("_builtin_mult")
        out.emitf(f"xorq {TMP3}, {TMP3}")
        out.label("_mul_loop")
        out.emitf(f"andq {TMP1}, {TMP1}")
        out.emitf("je _mul_done")
        out.emitf(f"addq {TMP2}, {TMP3}")
        out.emitf(f"subq {ONE}, {TMP1}")
        out.emitf("jmp _mul_loop")
        out.label("_mul_done")
        out.emit("ret")

    if need_div:
        out.emit("")
        out.label("_builtin_div")
        out.emitf(f"xorq {TMP3}, {TMP3}")
        out.label("_div_loop")
        out.emitf(f"xorq {TMP4}, {TMP4}")
        out.emitf(f"subq {TMP1}, {TMP4}")
        out.emitf("jge _div_done")
        out.emitf(f"subq {TMP2}, {TMP1}")
        out.emitf(f"addq {ONE}, {TMP3}")
        out.emitf("jmp _div_loop")
        out.label("_div_done")
        out.emit("ret")

    if strings:
        out.emit("")
        out.emit(".pos 0xa00 rodata")
        for n, text in enumerate(strings):
            out.raw(f"_str{n}:\n")
            out.raw(f'    .string "{escape_string(text)}"\n')

    out.emit("")
    out.emit(".pos 0xf00 stack")
    out.label("_stack")
    out.emit("")

    return "".join(out.lines)


def write_y86(insns: Iterable[ILOCInsn], output: TextIO) -> None:
    """Translate an allocated ILOC program and write the assembly to ``output``."""
    output.write(generate_y86(insns))