"""
bytexpr Bytecode

A compiled expression is a flat byte string in prefix order: every opcode
is followed by its immediate payload and then by the subexpressions it
consumes. There is no terminator; evaluation ends when the top-level
instruction returns.

Encoding (little-endian):
    CONST  0x01  f64 value
    ARG    0x02  u8 slot
    REF    0x03  u32 index into Bytecode.refs
    ABS    0x04  (1 subexpr)
    NEG    0x05  (1 subexpr)
    ADD    0x06  (2 subexprs, left then right)
    SUB    0x07
    MUL    0x08
    DIV    0x09
    POW    0x0A
    CALL   0x0B  u32 index into Bytecode.functions (NO_FUNCTION if unbound),
                 u8 arity, then arity subexprs

Native pointers are replaced by indices into side tables carried next to
the code, so the byte string itself is position independent.
"""

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

from .binder import NativeFunction
from .config import CompilerConfig, DEFAULT_CONFIG


class Opcode(IntEnum):
    """Instruction opcodes."""
    CONST = 0x01
    ARG = 0x02
    REF = 0x03
    ABS = 0x04
    NEG = 0x05
    ADD = 0x06
    SUB = 0x07
    MUL = 0x08
    DIV = 0x09
    POW = 0x0A
    CALL = 0x0B


F64 = struct.Struct('<d')
U32 = struct.Struct('<I')

NO_FUNCTION = 0xFFFFFFFF
MAX_CALL_ARITY = 255


class CodeGenError(Exception):
    """Error during code generation or on malformed bytecode."""
    pass


@dataclass(frozen=True)
class Bytecode:
    """Immutable compiled code plus its reference and callable tables."""
    code: bytes = b''
    refs: tuple[Any, ...] = ()
    functions: tuple[NativeFunction, ...] = ()
    arg_count: int = 0

    def __len__(self) -> int:
        return len(self.code)


@dataclass
class BytecodeBuilder:
    """Sequential writer for bytecode."""
    config: CompilerConfig = field(default_factory=lambda: DEFAULT_CONFIG)
    code: bytearray = field(default_factory=bytearray)
    refs: list[Any] = field(default_factory=list)
    functions: list[NativeFunction] = field(default_factory=list)
    max_arg: int = -1

    @property
    def arg_count(self) -> int:
        """Number of arguments the code reads: largest ARG slot + 1."""
        return self.max_arg + 1

    def write(self, data: bytes) -> None:
        if len(self.code) + len(data) > self.config.max_code_size:
            raise CodeGenError(f"Bytecode exceeds {self.config.max_code_size} bytes")
        self.code += data

    def emit_op(self, op: Opcode) -> None:
        self.write(bytes((op,)))

    def emit_const(self, value: float) -> None:
        self.write(bytes((Opcode.CONST,)) + F64.pack(value))

    def emit_arg(self, index: int) -> None:
        if not 0 <= index < self.config.max_args:
            raise CodeGenError(f"Argument slot {index} out of range")
        self.write(bytes((Opcode.ARG, index)))
        self.max_arg = max(self.max_arg, index)

    def emit_ref(self, ref: Any) -> None:
        for i, known in enumerate(self.refs):
            if known is ref:
                index = i
                break
        else:
            index = len(self.refs)
            self.refs.append(ref)
        self.write(bytes((Opcode.REF,)) + U32.pack(index))

    def emit_call(self, func: Optional[NativeFunction], arity: int) -> None:
        """Emit a CALL header; the caller emits the arity subexpressions next."""
        if arity > MAX_CALL_ARITY:
            raise CodeGenError(f"Call with {arity} arguments exceeds {MAX_CALL_ARITY}")
        if func is None:
            index = NO_FUNCTION
        elif func in self.functions:
            index = self.functions.index(func)
        else:
            index = len(self.functions)
            self.functions.append(func)
        self.write(bytes((Opcode.CALL,)) + U32.pack(index) + bytes((arity,)))

    def build(self) -> Bytecode:
        return Bytecode(bytes(self.code), tuple(self.refs), tuple(self.functions), self.arg_count)


def disassemble(bytecode: Bytecode) -> list[str]:
    """Linear listing of a bytecode, one instruction per line."""
    code = bytecode.code
    lines = []
    pos = 0
    while pos < len(code):
        start = pos
        try:
            op = Opcode(code[pos])
        except ValueError:
            raise CodeGenError(f"Unknown opcode 0x{code[pos]:02x} at {pos}")
        pos += 1
        match op:
            case Opcode.CONST:
                (value,) = F64.unpack_from(code, pos)
                pos += F64.size
                text = f"CONST {value!r}"
            case Opcode.ARG:
                text = f"ARG {code[pos]}"
                pos += 1
            case Opcode.REF:
                (index,) = U32.unpack_from(code, pos)
                pos += U32.size
                text = f"REF #{index}"
            case Opcode.CALL:
                (index,) = U32.unpack_from(code, pos)
                arity = code[pos + U32.size]
                pos += U32.size + 1
                if index == NO_FUNCTION:
                    name = "<unbound>"
                else:
                    name = bytecode.functions[index].name
                text = f"CALL {name}/{arity}"
            case _:
                text = op.name
        lines.append(f"{start:04x}  {text}")
    return lines
