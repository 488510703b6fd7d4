"""Local top-down register allocation with spilling to the stack frame."""

from __future__ import annotations

from itertools import islice
from typing import Optional

from decafc.iloc import (
    MAX_VIRTUAL_REGS,
    WORD_SIZE,
    ILOCInsn,
    InsnForm,
    OperandType,
    base_register,
    int_const,
    physical_register,
)


def replace_register(vr: int, pr: int, insn: ILOCInsn) -> None:
    """Replace every use of virtual register ``vr`` in ``insn`` with physical register ``pr``."""
    insn.ops = [
        physical_register(pr) if op.type is OperandType.VIRTUAL_REG and op.id == vr else op
        for op in insn.ops
    ]


class _Allocator:
    """State of one allocation pass over a program."""

    def __init__(self, program: list[ILOCInsn], num_physical_registers: int) -> None:
        self.program = program
        self.registers: list[Optional[int]] = [None] * num_physical_registers
        self.offsets: dict[int, int] = {}
        self.local_allocator: Optional[ILOCInsn] = None
        self.previous: Optional[ILOCInsn] = None
        self.index = 0
        self.pending: list[ILOCInsn] = []

    def insert(self, insn: ILOCInsn) -> None:
        """Insert directly after the previously processed instruction."""
        if self.previous is None:
            raise ValueError("cannot insert spill code before the first instruction")
        self.pending.insert(0, insn)

    def dist(self, vr: int) -> int:
        """Distance to the next read of ``vr`` after the current instruction."""
        following = islice(self.program, self.index + 1, None)
        for distance, insn in enumerate(following, start=1):
            if any(
                op.type is OperandType.VIRTUAL_REG and op.id == vr
                for op in insn.read_registers()
            ):
                return distance
        return MAX_VIRTUAL_REGS

    def spill(self, pr: int) -> None:
        if self.local_allocator is None:
            raise ValueError("no local frame allocator found for spilling a register")
        offset = self.local_allocator.ops[1].imm - WORD_SIZE
        self.local_allocator.ops[1] = int_const(offset)
        self.insert(
            ILOCInsn(InsnForm.STORE_AI, physical_register(pr), base_register(), int_const(offset))
        )
        self.offsets[self.registers[pr]] = offset
        self.registers[pr] = None

    def allocate(self, vr: int) -> int:
        if None in self.registers:
            pr = self.registers.index(None)
        else:
            pr = max(
                range(len(self.registers)),
                key=lambda candidate: self.dist(self.registers[candidate]),
            )
            self.spill(pr)
        self.registers[pr] = vr
        return pr

    def ensure(self, vr: int) -> int:
        if vr in self.registers:
            return self.registers.index(vr)
        pr = self.allocate(vr)
        if vr in self.offsets:
            self.insert(
                ILOCInsn(
                    InsnForm.LOAD_AI, base_register(), int_const(self.offsets[vr]), physical_register(pr)
                )
            )
        return pr

    def _is_frame_setup(self) -> bool:
        rest = self.program[self.index : self.index + 3]
        return [insn.form for insn in rest] == [InsnForm.PUSH, InsnForm.I2I, InsnForm.ADD_I]

    def run(self) -> list[ILOCInsn]:
        output: list[ILOCInsn] = []
        for self.index, insn in enumerate(self.program):
            self.pending = []
            if self._is_frame_setup():
                self.local_allocator = self.program[self.index + 2]

            for op in insn.read_registers():
                if op.type is OperandType.VIRTUAL_REG:
                    pr = self.ensure(op.id)
                    replace_register(op.id, pr, insn)
                    if self.dist(op.id) == MAX_VIRTUAL_REGS:
                        self.registers[pr] = None

            written = insn.write_register()
            if written.type is OperandType.VIRTUAL_REG:
                pr = self.allocate(written.id)
                replace_register(written.id, pr, insn)

            if insn.form is InsnForm.CALL and self.previous is not None:
                for pr, vr in list(enumerate(self.registers)):
                    if vr is not None:
                        self.spill(pr)

            output.extend(self.pending)
            output.append(insn)
            self.previous = insn
        return output


def allocate_registers(insns: list[ILOCInsn], num_physical_registers: int) -> None:
    """Rewrite ``insns`` in place to use at most ``num_physical_registers`` physical registers.

    Registers that do not fit are spilled to new slots in the current stack
    frame, whose size is grown by updating the frame allocator instruction
    (``addI SP, -X => SP`` following ``push BP; i2i SP => BP``). Live
    registers are also spilled before every call.
    """
    if num_physical_registers <= 0:
        raise ValueError("no physical registers available for allocation")
    insns[:] = _Allocator(insns, num_physical_registers).run()