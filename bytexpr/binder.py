"""
bytexpr Bindings

Side table mapping identifiers to what they mean at evaluation time.
Variables resolve to a value snapshot, a mutable Ref cell or an argument
slot; calls resolve to native Python callables. Later bindings replace
earlier ones for the same identifier.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


MAX_ARG_SLOT = 255  # ARG payload is one byte


@dataclass
class Ref:
    """Mutable float cell read at every evaluation."""
    value: float = 0.0


@dataclass(frozen=True)
class ValueBinding:
    """Variable bound to a fixed value."""
    value: float


@dataclass(frozen=True)
class RefBinding:
    """Variable bound to a mutable cell (anything with a .value)."""
    ref: Any


@dataclass(frozen=True)
class ArgBinding:
    """Variable bound to a positional argument of the compiled routine."""
    index: int


VarBinding = ValueBinding | RefBinding | ArgBinding


@dataclass(frozen=True)
class NativeFunction:
    """A Python callable registered against an identifier."""
    name: str
    func: Callable[..., float]
    arity: Optional[int] = None  # None means variadic

    def __call__(self, values: list[float]) -> float:
        if self.arity is not None:
            if len(values) < self.arity:
                values = values + [0.0] * (self.arity - len(values))
            elif len(values) > self.arity:
                values = values[:self.arity]
        return float(self.func(*values))


def infer_arity(func: Callable) -> Optional[int]:
    """Count the positional parameters of func; None if it takes *args."""
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return None
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            if param.default is param.empty:
                count += 1
    return count


@dataclass
class Bindings:
    """Identifier bindings for variables and calls."""
    variables: dict[str, VarBinding] = field(default_factory=dict)
    functions: dict[str, NativeFunction] = field(default_factory=dict)

    def bind_arg(self, name: str, index: int) -> None:
        if not isinstance(index, int) or not 0 <= index <= MAX_ARG_SLOT:
            raise ValueError(f"Argument slot for '{name}' must be 0..{MAX_ARG_SLOT}, got {index!r}")
        self.variables[name] = ArgBinding(index)

    def bind_value(self, name: str, value: float) -> None:
        self.variables[name] = ValueBinding(float(value))

    def bind_ref(self, name: str, ref: Any) -> None:
        if not hasattr(ref, 'value'):
            raise TypeError(f"Reference for '{name}' has no 'value' attribute")
        self.variables[name] = RefBinding(ref)

    def bind_call(self, name: str, func: Callable[..., float], arity: Optional[int] = None) -> None:
        if not callable(func):
            raise TypeError(f"Binding for '{name}' is not callable")
        if arity is None:
            arity = infer_arity(func)
        elif arity < 0:
            raise ValueError(f"Arity for '{name}' must not be negative")
        self.functions[name] = NativeFunction(name, func, arity)

    def variable(self, name: str) -> Optional[VarBinding]:
        """Binding for a variable, or None if unbound."""
        return self.variables.get(name)

    def function(self, name: str) -> Optional[NativeFunction]:
        """Binding for a call, or None if unbound."""
        return self.functions.get(name)

    def max_arg_index(self, names: list[str]) -> int:
        """Highest argument slot bound to any of names, -1 if none."""
        highest = -1
        for name in names:
            binding = self.variables.get(name)
            if isinstance(binding, ArgBinding):
                highest = max(highest, binding.index)
        return highest

    def copy(self) -> 'Bindings':
        return Bindings(dict(self.variables), dict(self.functions))
