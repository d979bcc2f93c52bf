"""
bytexpr Code Generator

Serialises an expression tree into bytecode, resolving every identifier
through the binding table at emission time.
"""

from typing import Optional

from .ast_nodes import *
from .binder import MAX_ARG_SLOT, ArgBinding, Bindings, RefBinding, ValueBinding
from .bytecode import Bytecode, BytecodeBuilder, CodeGenError, Opcode
from .config import CompilerConfig, DEFAULT_CONFIG


BINARY_OPS = {
    BinOp.ADD: Opcode.ADD,
    BinOp.SUB: Opcode.SUB,
    BinOp.MUL: Opcode.MUL,
    BinOp.DIV: Opcode.DIV,
    BinOp.POW: Opcode.POW,
}


class CodeGen:
    """Generates bytecode for one expression tree."""

    def __init__(self, bindings: Bindings, config: Optional[CompilerConfig] = None):
        self.bindings = bindings
        self.config = config or DEFAULT_CONFIG
        self.builder = BytecodeBuilder(self.config)

    def gen_expr(self, expr: Expr) -> None:
        """Emit expr and its subexpressions in prefix order."""
        builder = self.builder
        match expr:
            case Const(value=v):
                builder.emit_const(v)

            case Variable(name=name):
                match self.bindings.variable(name):
                    case ValueBinding(value=v):
                        builder.emit_const(v)
                    case RefBinding(ref=ref):
                        builder.emit_ref(ref)
                    case ArgBinding(index=index):
                        builder.emit_arg(index)
                    case None:
                        # Unbound variables read as zero
                        builder.emit_const(0.0)

            case Neg(operand=operand):
                builder.emit_op(Opcode.NEG)
                self.gen_expr(operand)

            case Abs(operand=operand):
                builder.emit_op(Opcode.ABS)
                self.gen_expr(operand)

            case BinaryExpr(op=op, left=left, right=right):
                builder.emit_op(BINARY_OPS[op])
                self.gen_expr(left)
                self.gen_expr(right)

            case Call(name=name, args=args):
                builder.emit_call(self.bindings.function(name), len(args))
                for arg in args:
                    self.gen_expr(arg)

            case _:
                raise CodeGenError(f"Unsupported expression: {type(expr).__name__}")

    def gen_program(self, tree: Expr) -> Bytecode:
        if tree.depth > self.config.max_depth:
            raise CodeGenError(f"Expression deeper than {self.config.max_depth} levels")
        self.gen_expr(tree)
        return self.builder.build()


def promote_arguments(tree: Expr, bindings: Bindings) -> list[str]:
    """
    Bind every unbound variable in tree to the next free argument slot.

    Slots continue after the highest slot already bound, in the order the
    variables first occur. Returns the promoted names.
    """
    names = iter_variables(tree)
    next_slot = bindings.max_arg_index(names) + 1
    promoted = []
    for name in names:
        if bindings.variable(name) is None:
            if next_slot > MAX_ARG_SLOT:
                raise CodeGenError(f"Too many arguments: no slot left for '{name}'")
            bindings.bind_arg(name, next_slot)
            promoted.append(name)
            next_slot += 1
    return promoted


def generate(tree: Expr, bindings: Bindings, config: Optional[CompilerConfig] = None) -> Bytecode:
    """Generate bytecode from a bound tree."""
    codegen = CodeGen(bindings, config)
    return codegen.gen_program(tree)
