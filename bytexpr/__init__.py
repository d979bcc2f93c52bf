"""
bytexpr - compile arithmetic expressions to bytecode and evaluate them.
"""

from .ast_nodes import Abs, BinaryExpr, BinOp, Call, Const, Expr, Neg, Variable, render
from .binder import Bindings, Ref
from .bytecode import Bytecode, CodeGenError, Opcode, disassemble
from .config import CompilerConfig
from .expression import CompiledExpression, ExprParser
from .interpreter import calc
from .parser import ParseError, parse, parse_with_errors
from .scanner import ScanError
from .stdlib import register_std

__version__ = "0.1.0"

__all__ = [
    "Abs", "BinaryExpr", "BinOp", "Call", "Const", "Expr", "Neg", "Variable", "render",
    "Bindings", "Ref",
    "Bytecode", "CodeGenError", "Opcode", "disassemble",
    "CompilerConfig",
    "CompiledExpression", "ExprParser",
    "calc",
    "ParseError", "parse", "parse_with_errors",
    "ScanError",
    "register_std",
]
