"""
bytexpr AST Node Definitions

All node types for the expression tree, plus the folds the rest of the
pipeline needs over it: traversal, identifier enumeration and canonical
rendering. Bindings are not stored on the nodes; see binder.py.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator


class BinOp(Enum):
    """Binary operators."""
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    POW = '^'


@dataclass
class Const:
    """Numeric literal: 42, 2.5"""
    value: float
    depth: int = field(default=1, init=False, repr=False, compare=False)


@dataclass
class Variable:
    """Free identifier: x, PI"""
    name: str
    depth: int = field(default=1, init=False, repr=False, compare=False)


@dataclass
class Neg:
    """Unary negation: -x"""
    operand: 'Expr'
    depth: int = field(default=1, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.depth = self.operand.depth + 1


@dataclass
class Abs:
    """Absolute value: |x|"""
    operand: 'Expr'
    depth: int = field(default=1, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.depth = self.operand.depth + 1


@dataclass
class BinaryExpr:
    """Binary expression: a + b"""
    op: BinOp
    left: 'Expr'
    right: 'Expr'
    depth: int = field(default=1, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.depth = max(self.left.depth, self.right.depth) + 1


@dataclass
class Call:
    """Function call: f(a, b)"""
    name: str
    args: list['Expr'] = field(default_factory=list)
    depth: int = field(default=1, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.depth = max((arg.depth for arg in self.args), default=0) + 1


Expr = Const | Variable | Neg | Abs | BinaryExpr | Call


# -------------------------------------------------------------------------
# Traversal
# -------------------------------------------------------------------------

def children(node: Expr) -> list[Expr]:
    """Direct children of a node, left to right."""
    match node:
        case Neg(operand=operand) | Abs(operand=operand):
            return [operand]
        case BinaryExpr(left=left, right=right):
            return [left, right]
        case Call(args=args):
            return list(args)
        case _:
            return []


def walk(node: Expr) -> Iterator[Expr]:
    """Pre-order walk, left to right. Leaves come out in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def iter_variables(node: Expr) -> list[str]:
    """Variable names in first-occurrence order, without duplicates."""
    names: dict[str, None] = {}
    for item in walk(node):
        if isinstance(item, Variable):
            names.setdefault(item.name)
    return list(names)


def iter_calls(node: Expr) -> list[str]:
    """Called function names in first-occurrence order, without duplicates."""
    names: dict[str, None] = {}
    for item in walk(node):
        if isinstance(item, Call):
            names.setdefault(item.name)
    return list(names)


def count_nodes(node: Expr) -> int:
    return sum(1 for _ in walk(node))


# -------------------------------------------------------------------------
# Rendering
# -------------------------------------------------------------------------

def format_number(value: float) -> str:
    """Positional decimal text with trailing zeros and '.' removed."""
    if not math.isfinite(value):
        return repr(value)
    text = format(Decimal(repr(value)), 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def render(node: Expr) -> str:
    """Render a tree in fully parenthesised canonical form."""
    match node:
        case Const(value=v):
            return format_number(v)
        case Variable(name=name):
            return name
        case Neg(operand=operand):
            return f"(-{render(operand)})"
        case Abs(operand=operand):
            return f"|{render(operand)}|"
        case BinaryExpr(op=op, left=left, right=right):
            return f"({render(left)}{op.value}{render(right)})"
        case Call(name=name, args=args):
            return f"{name}({','.join(render(arg) for arg in args)})"
        case _:
            raise TypeError(f"Not an expression node: {type(node).__name__}")


def debug(node: Expr, level: int = 0) -> list[str]:
    """Indented one-node-per-line dump of a tree."""
    match node:
        case Const(value=v):
            label = f"Const {format_number(v)}"
        case Variable(name=name):
            label = f"Variable {name}"
        case BinaryExpr(op=op):
            label = f"BinaryExpr {op.value}"
        case Call(name=name, args=args):
            label = f"Call {name}/{len(args)}"
        case _:
            label = type(node).__name__
    lines = ['. ' * level + label]
    for child in children(node):
        lines.extend(debug(child, level + 1))
    return lines
