import io

import pytest

from decafc.iloc import (
    ILOCInsn,
    InsnForm,
    base_register,
    call_label,
    int_const,
    physical_register,
    return_register,
    stack_register,
    str_const,
)
from decafc.y86 import Y86Error, generate_y86, reg_name, write_y86


def R(n):
    return physical_register(n)


def body_lines(insns):
    return generate_y86(insns).splitlines()


@pytest.mark.parametrize(
    "op, name",
    [
        (base_register(), "%rbp"),
        (stack_register(), "%rsp"),
        (return_register(), "%rax"),
        (R(0), "%rcx"),
        (R(1), "%rdx"),
        (R(2), "%r10"),
        (R(3), "%r11"),
        (int_const(5), "INVALID"),
    ],
)
def test_reg_name(op, name):
    assert reg_name(op) == name


def test_reg_name_rejects_high_physical_register():
    with pytest.raises(Y86Error):
        reg_name(R(4))


def test_generate_raises_for_unmappable_register():
    with pytest.raises(Y86Error):
        generate_y86([ILOCInsn(InsnForm.I2I, R(0), R(7))])


def test_empty_program_boilerplate():
    lines = body_lines([])
    assert lines[:3] == ["    .pos 0 code", "    jmp _start", "    "]
    assert "_start:" in lines
    assert "    call main" in lines
    assert "    halt" in lines
    assert lines[-3:] == ["    .pos 0xf00 stack", "_stack:", "    "]


def test_simple_moves():
    lines = body_lines(
        [
            ILOCInsn(InsnForm.LABEL, call_label("main")),
            ILOCInsn(InsnForm.LOAD_I, int_const(7), R(0)),
            ILOCInsn(InsnForm.I2I, R(0), return_register()),
            ILOCInsn(InsnForm.RETURN),
        ]
    )
    assert "main:" in lines
    assert "    irmovq $7, %rcx" in lines
    assert "    rrmovq %rcx, %rax" in lines
    assert "    ret" in lines


def test_bin_op_overwrites_first_operand_when_it_is_the_output():
    lines = body_lines([ILOCInsn(InsnForm.ADD, R(0), R(1), R(0))])
    assert "    addq %rdx, %rcx" in lines
    assert not any(line.startswith("    rrmovq %rcx") for line in lines)


def test_bin_op_uses_extra_move_without_shared_operands():
    lines = body_lines([ILOCInsn(InsnForm.SUB, R(0), R(1), R(2))])
    i = lines.index("    rrmovq %rcx, %r10")
    assert lines[i + 1] == "    subq %rdx, %r10"


def test_mult_emits_helper_once():
    text = generate_y86(
        [
            ILOCInsn(InsnForm.MULT, R(0), R(1), R(2)),
            ILOCInsn(InsnForm.MULT_I, R(0), int_const(3), R(1)),
        ]
    )
    assert text.count("_builtin_mult:\n") == 1
    assert text.count("call _builtin_mult") == 2
    assert "_builtin_div" not in text


def test_div_emits_helper():
    text = generate_y86([ILOCInsn(InsnForm.DIV, R(0), R(1), R(2))])
    assert "_builtin_div:\n" in text
    assert "    jge _div_done\n" in text


def test_strings_are_deduplicated_in_rodata():
    text = generate_y86(
        [
            ILOCInsn(InsnForm.PRINT, str_const("hi")),
            ILOCInsn(InsnForm.PRINT, str_const("bye")),
            ILOCInsn(InsnForm.PRINT, str_const("hi")),
        ]
    )
    assert text.count("irmovq _str0, %rsi") == 2
    assert text.count("irmovq _str1, %rsi") == 1
    assert "_str2" not in text
    assert '_str0:\n    .string "hi"\n' in text
    assert ".pos 0xa00 rodata" in text


def test_string_literals_are_escaped():
    text = generate_y86([ILOCInsn(InsnForm.PRINT, str_const("a\nb"))])
    assert '.string "a\\nb"' in text


def test_print_register():
    lines = body_lines([ILOCInsn(InsnForm.PRINT, R(1))])
    i = lines.index("    pushq %rdx")
    assert lines[i + 1 : i + 5] == [
        "    rrmovq %rsp, %rsi",
        "    iotrap 2",
        "    iotrap 5",
        "    popq %rdx",
    ]


def test_unsupported_print_is_reported(capsys):
    generate_y86([ILOCInsn(InsnForm.PRINT, int_const(1))])
    assert "Unsupported instruction" in capsys.readouterr().out


def test_comparison_uses_cmov():
    lines = body_lines([ILOCInsn(InsnForm.CMP_LT, R(0), R(1), R(2))])
    assert "    cmovl %rbx, %r8" in lines
    assert lines[lines.index("    cmovl %rbx, %r8") + 1] == "    rrmovq %r8, %r10"


def test_phi_produces_no_code():
    assert generate_y86([ILOCInsn(InsnForm.PHI, R(0), R(1), R(2))]) == generate_y86([])


def test_write_matches_generate():
    program = [
        ILOCInsn(InsnForm.LABEL, call_label("main")),
        ILOCInsn(InsnForm.STORE_AI, R(0), base_register(), int_const(-8)),
        ILOCInsn(InsnForm.LOAD_AI, base_register(), int_const(-8), R(1)),
        ILOCInsn(InsnForm.RETURN),
    ]
    buffer = io.StringIO()
    write_y86(program, buffer)
    assert buffer.getvalue() == generate_y86(program)
    assert "    rmmovq %rcx, $-8(%rbp)\n" in buffer.getvalue()
    assert "    mrmovq $-8(%rbp), %rdx\n" in buffer.getvalue()