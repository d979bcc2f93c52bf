"""
bytexpr Parser - Recursive descent parser for arithmetic expressions.

Builds the AST straight from characters pulled off the Scanner.

Grammar, lowest precedence first:
    expr      := add_sub
    add_sub   := mul_div (("+"|"-") mul_div)*
    mul_div   := unary_pow (("*"|"/") unary_pow)*
    unary_pow := "-"? primary ("^" unary_pow)?
    primary   := number | identifier | identifier "(" args ")"
               | "(" expr ")" | "|" expr "|"
    args      := empty | expr ("," expr)*
"""

from typing import Optional

from .ast_nodes import *
from .config import CompilerConfig, DEFAULT_CONFIG
from .scanner import Scanner, ScanError


class ParseError(Exception):
    """Error during parsing."""
    def __init__(self, message: str, offset: int):
        self.offset = offset
        super().__init__(f"{message} at offset {offset}")


class Parser:
    """Recursive descent parser for expressions."""

    def __init__(self, source: str, config: Optional[CompilerConfig] = None):
        self.scanner = Scanner(source)
        self.config = config or DEFAULT_CONFIG
        self.nesting = 0

    def error(self, message: str, offset: Optional[int] = None) -> ParseError:
        if offset is None:
            self.scanner.skip_whitespace()
            offset = self.scanner.pos
        return ParseError(message, offset)

    def expect(self, ch: str) -> None:
        """Expect the next non-blank character to be ch."""
        if not self.scanner.match(ch):
            found = self.scanner.describe()
            raise self.error(f"Expected '{ch}', got {found}")

    def checked(self, node: Expr, offset: int) -> Expr:
        """Reject trees deeper than the interpreter is allowed to recurse."""
        if node.depth > self.config.max_depth:
            raise self.error(f"Expression deeper than {self.config.max_depth} levels", offset)
        return node

    def enter(self) -> None:
        self.nesting += 1
        if self.nesting > self.config.max_nesting:
            raise self.error(f"Expression nested deeper than {self.config.max_nesting} levels")

    def leave(self) -> None:
        self.nesting -= 1

    # -------------------------------------------------------------------------
    # Expression parsing (precedence climbing)
    # -------------------------------------------------------------------------

    def parse_expression(self) -> Expr:
        """Parse an expression."""
        return self.parse_additive()

    def parse_additive(self) -> Expr:
        """Parse addition/subtraction."""
        left = self.parse_multiplicative()
        while True:
            offset = self.scanner.pos
            if self.scanner.match('+'):
                left = self.checked(BinaryExpr(BinOp.ADD, left, self.parse_multiplicative()), offset)
            elif self.scanner.match('-'):
                left = self.checked(BinaryExpr(BinOp.SUB, left, self.parse_multiplicative()), offset)
            else:
                break
        return left

    def parse_multiplicative(self) -> Expr:
        """Parse multiplication/division."""
        left = self.parse_unary_power()
        while True:
            offset = self.scanner.pos
            if self.scanner.match('*'):
                left = self.checked(BinaryExpr(BinOp.MUL, left, self.parse_unary_power()), offset)
            elif self.scanner.match('/'):
                left = self.checked(BinaryExpr(BinOp.DIV, left, self.parse_unary_power()), offset)
            else:
                break
        return left

    def parse_unary_power(self) -> Expr:
        """Parse -a^b as -(a^b) and a^-b^c as a^(-(b^c))."""
        self.scanner.skip_whitespace()
        start = self.scanner.pos
        negate = self.scanner.match('-')
        node = self.parse_primary()

        offset = self.scanner.pos
        if self.scanner.match('^'):
            self.enter()
            exponent = self.parse_unary_power()
            self.leave()
            node = self.checked(BinaryExpr(BinOp.POW, node, exponent), offset)

        if negate:
            node = self.checked(Neg(node), start)
        return node

    def parse_primary(self) -> Expr:
        """Parse number, variable, call, parenthesised or |absolute| expression."""
        scanner = self.scanner
        scanner.skip_whitespace()
        start = scanner.pos

        if scanner.at_number():
            return Const(scanner.read_number())

        if scanner.at_identifier():
            name = scanner.read_identifier()
            if scanner.match('('):
                self.enter()
                args = self.parse_arguments()
                self.leave()
                return self.checked(Call(name, args), start)
            return Variable(name)

        if scanner.match('('):
            self.enter()
            node = self.parse_expression()
            self.expect(')')
            self.leave()
            return node

        if scanner.match('|'):
            self.enter()
            node = self.parse_expression()
            self.expect('|')
            self.leave()
            return self.checked(Abs(node), start)

        raise self.error(f"Expected expression, got {scanner.describe()}")

    def parse_arguments(self) -> list[Expr]:
        """Parse call arguments after '(' up to and including ')'."""
        args = []
        if self.scanner.match(')'):
            return args

        args.append(self.parse_expression())
        while self.scanner.match(','):
            args.append(self.parse_expression())

        self.expect(')')
        return args

    def parse(self) -> Expr:
        """Parse the whole source; trailing input is an error."""
        node = self.parse_expression()
        if not self.scanner.at_end():
            raise self.error(f"Unexpected {self.scanner.describe()}")
        return node


def parse(source: str, config: Optional[CompilerConfig] = None) -> Expr:
    """Convenience function to parse an expression."""
    parser = Parser(source, config)
    return parser.parse()


def parse_with_errors(source: str, config: Optional[CompilerConfig] = None) -> tuple[Optional[Expr], int]:
    """Parse an expression, returning (tree, -1) or (None, error offset)."""
    try:
        return parse(source, config), -1
    except (ScanError, ParseError) as e:
        return None, e.offset
