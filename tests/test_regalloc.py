import pytest

from decafc.iloc import (
    WORD_SIZE,
    ILOCInsn,
    InsnForm,
    OperandType,
    base_register,
    call_label,
    int_const,
    reset_counters,
    stack_register,
    virtual_register,
)
from decafc.regalloc import allocate_registers, replace_register


def _prologue():
    return [
        ILOCInsn(InsnForm.LABEL, call_label("main")),
        ILOCInsn(InsnForm.PUSH, base_register()),
        ILOCInsn(InsnForm.I2I, stack_register(), base_register()),
        ILOCInsn(InsnForm.ADD_I, stack_register(), int_const(0), stack_register()),
    ]


def _arith_program():
    reset_counters()
    r0, r1, r2, r3, r4 = (virtual_register() for _ in range(5))
    body = [
        ILOCInsn(InsnForm.LOAD_I, int_const(1), r0),
        ILOCInsn(InsnForm.LOAD_I, int_const(2), r1),
        ILOCInsn(InsnForm.LOAD_I, int_const(3), r2),
        ILOCInsn(InsnForm.ADD, r0, r1, r3),
        ILOCInsn(InsnForm.ADD, r3, r2, r4),
        ILOCInsn(InsnForm.PRINT, r4),
    ]
    return _prologue() + body


def _all_operands(program):
    return [op for insn in program for op in insn.ops]


def test_replace_register_replaces_all_uses():
    reset_counters()
    a, b = virtual_register(), virtual_register()
    insn = ILOCInsn(InsnForm.ADD, a, a, b)
    replace_register(a.id, 1, insn)
    assert [op.type for op in insn.ops] == [
        OperandType.PHYSICAL_REG,
        OperandType.PHYSICAL_REG,
        OperandType.VIRTUAL_REG,
    ]
    assert insn.ops[0].id == 1 and insn.ops[1].id == 1
    assert insn.ops[2] == b


def test_no_spills_with_enough_registers():
    program = _arith_program()
    original_length = len(program)
    allocate_registers(program, 4)
    assert len(program) == original_length
    assert all(op.type is not OperandType.VIRTUAL_REG for op in _all_operands(program))
    assert program[3].ops[1].imm == 0


def test_physical_ids_stay_in_range():
    program = _arith_program()
    allocate_registers(program, 2)
    physical = [op.id for op in _all_operands(program) if op.type is OperandType.PHYSICAL_REG]
    assert physical
    assert all(0 <= pr < 2 for pr in physical)
    assert all(op.type is not OperandType.VIRTUAL_REG for op in _all_operands(program))


def test_spills_grow_the_stack_frame():
    program = _arith_program()
    allocator = program[3]
    allocate_registers(program, 2)
    stores = [insn for insn in program if insn.form is InsnForm.STORE_AI]
    loads = [insn for insn in program if insn.form is InsnForm.LOAD_AI]
    assert stores and loads
    assert allocator.ops[1].imm == -WORD_SIZE * len(stores)
    store_offsets = {insn.ops[2].imm for insn in stores}
    assert {insn.ops[1].imm for insn in loads} <= store_offsets
    assert all(insn.ops[1] == base_register() for insn in stores)


def test_live_registers_spilled_around_call():
    reset_counters()
    r0 = virtual_register()
    program = _prologue() + [
        ILOCInsn(InsnForm.LOAD_I, int_const(1), r0),
        ILOCInsn(InsnForm.CALL, call_label("foo")),
        ILOCInsn(InsnForm.PRINT, r0),
    ]
    allocate_registers(program, 4)
    assert [insn.form for insn in program[4:]] == [
        InsnForm.LOAD_I,
        InsnForm.STORE_AI,
        InsnForm.CALL,
        InsnForm.LOAD_AI,
        InsnForm.PRINT,
    ]
    store, load = program[5], program[7]
    assert store.ops[2].imm == load.ops[1].imm == program[3].ops[1].imm
    assert load.ops[2] == program[8].ops[0]


def test_empty_program_is_unchanged():
    program = []
    allocate_registers(program, 4)
    assert program == []


def test_zero_registers_rejected():
    with pytest.raises(ValueError):
        allocate_registers(_arith_program(), 0)


def test_spill_without_frame_allocator_rejected():
    reset_counters()
    r0, r1 = virtual_register(), virtual_register()
    program = [
        ILOCInsn(InsnForm.LOAD_I, int_const(1), r0),
        ILOCInsn(InsnForm.LOAD_I, int_const(2), r1),
        ILOCInsn(InsnForm.ADD, r0, r1, virtual_register()),
    ]
    with pytest.raises(ValueError):
        allocate_registers(program, 1)