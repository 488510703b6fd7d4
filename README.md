# decafc

Building blocks for the back end of a compiler for Decaf, a small teaching
language. The package is a library. It has no command-line program.

## Modules

- `decafc.common`: the `DecafType` enumeration, size limits such as
  `MAX_TOKEN_LEN` and `MAX_ID_LEN`, and the string-literal helpers
  `escape_string` and `doubly_escape_string`.
- `decafc.token`: `Token`, `TokenType` and a first-in, first-out `TokenQueue`
  with `add`, `peek`, `remove`, `is_empty`, `len()`, iteration and `format()`.
  It also has `Regex`, whose `match` returns the text up to the end of the first
  match, and `token_str_eq`.
- `decafc.symbol`: `Symbol`, which is built with `Symbol.scalar`, `Symbol.array`
  or `Symbol.function`. It also has `Parameter`, `SymbolKind` and
  `SymbolLocation`, and nested `SymbolTable`s with `child`, `insert`, `lookup`
  (the lookup also searches the parent tables) and `describe`. For
  static-analysis errors it has `AnalysisError` and `add_error`, and for the
  built-in print functions `create_print_symbol` and `builtin_symbols`.
- `decafc.iloc`: ILOC operands. These are built with `virtual_register`,
  `physical_register`, `int_const`, `str_const`, `call_label`,
  `anonymous_label`, `stack_register`, `base_register`, `return_register` and
  `empty_operand`. Virtual registers and labels are numbered from zero, and
  `reset_counters` starts the numbering again. The module also has the
  instructions `ILOCInsn` and `InsnForm`, with `copy`, `operand_count`,
  `read_registers` and `write_register`, and `format_program` for printing a
  program.
- `decafc.regalloc`: `allocate_registers`, a local, top-down register
  allocator. It rewrites a list of instructions in place, and
  `replace_register` does the same for a single instruction.
- `decafc.y86`: `generate_y86` and `write_y86`, which translate allocated ILOC
  into Y86 assembly text. `reg_name` gives the Y86 name of a register.

## Installation

```
pip install .
```

## Example

```python
from decafc.iloc import (
    ILOCInsn, InsnForm, int_const, virtual_register, format_program,
)
from decafc.regalloc import allocate_registers
from decafc.y86 import generate_y86

a, b, total = virtual_register(), virtual_register(), virtual_register()
program = [
    ILOCInsn(InsnForm.LOAD_I, int_const(2), a),
    ILOCInsn(InsnForm.LOAD_I, int_const(3), b),
    ILOCInsn(InsnForm.ADD, a, b, total),
    ILOCInsn(InsnForm.PRINT, total),
]

allocate_registers(program, 4)
print(format_program(program))
print(generate_y86(program))
```

## Register allocation

`allocate_registers(insns, n)` maps virtual registers onto physical registers
`R0` to `R(n-1)`. When no register is free, it spills the register whose next
use is furthest away. All live registers are also spilled before each `call`.

A spilled value is saved with `storeAI` to a new slot in the current stack
frame, and a later use loads it back with `loadAI`. The frame grows by updating
the `addI SP, -X => SP` instruction that follows `push` and `i2i`. If a spill is
needed and no such frame setup has been seen, the function raises `ValueError`.
It also raises `ValueError` when `n` is zero or less.

## Y86 output

The Y86 output supports only physical registers `R0` to `R3` and the `SP`, `BP`
and `RET` registers. A physical register numbered 4 or higher raises
`Y86Error`. If the program uses multiplication or division, the output includes
helper routines for them, and these handle non-negative numbers only. String
constants passed to `print` go into a read-only data section. When an
instruction cannot be translated, the module writes an "Unsupported
instruction" line to standard output and skips that instruction.

## What this package does not do

The package does not read Decaf source and has no lexer, parser or AST. It does
not perform static analysis or generate ILOC from a program. It cannot run or
simulate ILOC or Y86 code. Programs have to be built as lists of `ILOCInsn`
objects.

## Running the tests

```
pip install .[test]
pytest
```