"""Decaf compiler back end: types, tokens, symbol tables, ILOC, register allocation and Y86 output."""

__version__ = "0.1.0"