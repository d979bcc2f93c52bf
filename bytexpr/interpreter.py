"""
bytexpr Interpreter

Two evaluators with the same semantics:

- Interpreter walks compiled bytecode by recursive descent.
- calc walks the expression tree directly against a binding table.

Binary operands are always evaluated left then right; callables and Ref
cells can observe the order.
"""

from typing import Sequence

from .ast_nodes import *
from .binder import ArgBinding, Bindings, RefBinding, ValueBinding
from .bytecode import F64, NO_FUNCTION, U32, Bytecode, CodeGenError, Opcode
from .numeric import ieee_div, ieee_pow


class Interpreter:
    """Evaluates one Bytecode; holds the cursor and current argument vector."""

    def __init__(self, bytecode: Bytecode):
        self.bytecode = bytecode
        self.code = bytecode.code
        self.pos = 0
        self.args: Sequence[float] = ()

    def run(self, args: Sequence[float] = ()) -> float:
        """Evaluate the whole program with the given argument vector."""
        self.args = args
        self.pos = 0
        if not self.code:
            return 0.0
        return self.eval_next()

    def arg(self, index: int) -> float:
        if index < len(self.args):
            return float(self.args[index])
        return 0.0

    def eval_next(self) -> float:
        """Decode the instruction at the cursor and evaluate it."""
        code = self.code
        op = code[self.pos]
        self.pos += 1

        match op:
            case Opcode.CONST:
                (value,) = F64.unpack_from(code, self.pos)
                self.pos += F64.size
                return value
            case Opcode.ARG:
                index = code[self.pos]
                self.pos += 1
                return self.arg(index)
            case Opcode.REF:
                (index,) = U32.unpack_from(code, self.pos)
                self.pos += U32.size
                return float(self.bytecode.refs[index].value)
            case Opcode.ABS:
                return abs(self.eval_next())
            case Opcode.NEG:
                return -self.eval_next()
            case Opcode.ADD:
                a = self.eval_next()
                return a + self.eval_next()
            case Opcode.SUB:
                a = self.eval_next()
                return a - self.eval_next()
            case Opcode.MUL:
                a = self.eval_next()
                return a * self.eval_next()
            case Opcode.DIV:
                a = self.eval_next()
                return ieee_div(a, self.eval_next())
            case Opcode.POW:
                a = self.eval_next()
                return ieee_pow(a, self.eval_next())
            case Opcode.CALL:
                (index,) = U32.unpack_from(code, self.pos)
                arity = code[self.pos + U32.size]
                self.pos += U32.size + 1
                values = [self.eval_next() for _ in range(arity)]
                if index == NO_FUNCTION:
                    return 0.0
                return self.bytecode.functions[index](values)
            case _:
                raise CodeGenError(f"Unknown opcode 0x{op:02x} at {self.pos - 1}")


def execute(bytecode: Bytecode, args: Sequence[float] = ()) -> float:
    """Evaluate bytecode once."""
    return Interpreter(bytecode).run(args)


def calc(node: Expr, bindings: Bindings, args: Sequence[float] = ()) -> float:
    """Evaluate a tree directly, without compiling it."""
    match node:
        case Const(value=v):
            return v
        case Variable(name=name):
            match bindings.variable(name):
                case ValueBinding(value=v):
                    return v
                case RefBinding(ref=ref):
                    return float(ref.value)
                case ArgBinding(index=index):
                    return float(args[index]) if index < len(args) else 0.0
                case _:
                    return 0.0
        case Neg(operand=operand):
            return -calc(operand, bindings, args)
        case Abs(operand=operand):
            return abs(calc(operand, bindings, args))
        case BinaryExpr(op=op, left=left, right=right):
            a = calc(left, bindings, args)
            b = calc(right, bindings, args)
            match op:
                case BinOp.ADD:
                    return a + b
                case BinOp.SUB:
                    return a - b
                case BinOp.MUL:
                    return a * b
                case BinOp.DIV:
                    return ieee_div(a, b)
                case BinOp.POW:
                    return ieee_pow(a, b)
        case Call(name=name, args=call_args):
            values = [calc(arg, bindings, args) for arg in call_args]
            func = bindings.function(name)
            if func is None:
                return 0.0
            return func(values)
    raise TypeError(f"Not an expression node: {type(node).__name__}")
