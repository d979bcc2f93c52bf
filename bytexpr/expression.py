"""
bytexpr Expressions - public entry points.

    parser = ExprParser()
    if parser.parse("sqrt(x^2 + y^2)"):
        parser.bind_call("sqrt", math.sqrt)
        expr = parser.compile()      # x -> argument 0, y -> argument 1
        expr.evaluate(3, 4)          # 5.0

ExprParser owns the tree and the binding table between parse and compile.
CompiledExpression is the immutable result.
"""

from collections.abc import Sequence
from typing import Any, Callable, Optional

from .ast_nodes import Expr, iter_calls, iter_variables, render
from .binder import ArgBinding, Bindings
from .bytecode import Bytecode, disassemble
from .codegen import generate, promote_arguments
from .config import CompilerConfig, DEFAULT_CONFIG
from .interpreter import Interpreter
from .parser import Parser, ParseError
from .scanner import ScanError
from .stdlib import register_std


def is_vector(value: Any) -> bool:
    """True for sequences and array-likes used as one argument vector."""
    if isinstance(value, (str, bytes)):
        return False
    if isinstance(value, Sequence):
        return True
    return hasattr(value, "__len__") and hasattr(value, "__getitem__")


class CompiledExpression:
    """Bytecode plus validity; evaluates to a float."""

    def __init__(self, bytecode: Optional[Bytecode] = None):
        self.bytecode = bytecode if bytecode is not None else Bytecode()
        self.valid = bytecode is not None

    @classmethod
    def from_tree(
        cls,
        tree: Optional[Expr],
        bindings: Optional[Bindings] = None,
        config: Optional[CompilerConfig] = None
    ) -> 'CompiledExpression':
        """Compile a tree, promoting unbound variables to arguments in bindings."""
        if tree is None:
            return cls(None)
        if bindings is None:
            bindings = Bindings()
        promote_arguments(tree, bindings)
        return cls(generate(tree, bindings, config))

    @property
    def arg_count(self) -> int:
        return self.bytecode.arg_count

    def evaluate(self, *args: float | Sequence[float]) -> float:
        """
        Evaluate with positional arguments.

        Accepts evaluate(), evaluate(x), evaluate(x, y, ...) or a single
        sequence evaluate([x, y, ...]). Missing arguments read as 0.
        """
        if not self.valid:
            return 0.0
        if len(args) == 1 and is_vector(args[0]):
            args = args[0]
        return Interpreter(self.bytecode).run(args)

    __call__ = evaluate

    def disassemble(self) -> list[str]:
        return disassemble(self.bytecode)

    def __repr__(self) -> str:
        if not self.valid:
            return "CompiledExpression(invalid)"
        return f"CompiledExpression({len(self.bytecode)} bytes, {self.arg_count} args)"


class ExprParser:
    """Parses an expression and collects bindings until compile."""

    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.bindings = Bindings()
        self.tree: Optional[Expr] = None
        self.error: Optional[ParseError | ScanError] = None
        self.error_offset = -1
        self.promoted: dict[str, ArgBinding] = {}

    def parse(self, source: str) -> bool:
        """Parse source, replacing any previous tree. False on a syntax error."""
        self.tree = None
        self.release_arguments()
        try:
            self.tree = Parser(source, self.config).parse()
        except (ScanError, ParseError) as e:
            self.error = e
            self.error_offset = e.offset
            return False
        self.error = None
        self.error_offset = -1
        return True

    # -------------------------------------------------------------------------
    # Binding
    # -------------------------------------------------------------------------

    def bind_arg(self, name: str, index: int) -> 'ExprParser':
        self.bindings.bind_arg(name, index)
        return self

    def bind_value(self, name: str, value: float) -> 'ExprParser':
        self.bindings.bind_value(name, value)
        return self

    def bind_ref(self, name: str, ref: Any) -> 'ExprParser':
        self.bindings.bind_ref(name, ref)
        return self

    def bind_call(self, name: str, func: Callable[..., float], arity: Optional[int] = None) -> 'ExprParser':
        self.bindings.bind_call(name, func, arity)
        return self

    def register_std(self) -> 'ExprParser':
        register_std(self.bindings)
        return self

    def variables(self) -> dict[str, bool]:
        """Variables in the tree, mapped to whether they are bound."""
        if self.tree is None:
            return {}
        return {name: self.bindings.variable(name) is not None
                for name in iter_variables(self.tree)}

    def calls(self) -> dict[str, bool]:
        """Called names in the tree, mapped to whether they are bound."""
        if self.tree is None:
            return {}
        return {name: self.bindings.function(name) is not None
                for name in iter_calls(self.tree)}

    def unbound_variables(self) -> list[str]:
        return [name for name, bound in self.variables().items() if not bound]

    def unbound_calls(self) -> list[str]:
        return [name for name, bound in self.calls().items() if not bound]

    # -------------------------------------------------------------------------
    # Compile
    # -------------------------------------------------------------------------

    def compile(self) -> CompiledExpression:
        """Compile the parsed tree; the parser gives it up."""
        tree, self.tree = self.tree, None
        if tree is None:
            return CompiledExpression(None)
        for name in promote_arguments(tree, self.bindings):
            self.promoted[name] = self.bindings.variables[name]
        return CompiledExpression(generate(tree, self.bindings, self.config))

    def release_arguments(self) -> None:
        """Drop argument slots the last compile promoted, unless rebound since."""
        for name, binding in self.promoted.items():
            if self.bindings.variables.get(name) is binding:
                del self.bindings.variables[name]
        self.promoted = {}

    def to_string(self) -> str:
        if self.tree is None:
            return ""
        return render(self.tree)

    __str__ = to_string
