"""
bytexpr Standard Library

Constants PI and E plus single-argument math callables. All callables use
C math semantics: they return NaN or an infinity instead of raising.
"""

import math

from .binder import Bindings
from .numeric import INF, NAN, ieee_call


def _log(base_log):
    def log(x: float) -> float:
        if x == 0.0:
            return -INF
        if x < 0.0:
            return NAN
        return base_log(x)
    return log


def _wrap(func):
    def call(x: float) -> float:
        return ieee_call(func, x)
    call.__name__ = func.__name__
    return call


STD_CONSTANTS: dict[str, float] = {
    "PI": math.pi,
    "E": math.e,
}

STD_FUNCTIONS = {
    "ln": _log(math.log),
    "log": _log(math.log10),
    "exp": _wrap(math.exp),
    "sin": _wrap(math.sin),
    "cos": _wrap(math.cos),
    "tan": _wrap(math.tan),
    "asin": _wrap(math.asin),
    "acos": _wrap(math.acos),
    "atan": _wrap(math.atan),
}


def register_std(bindings: Bindings) -> None:
    """Bind PI, E and the standard callables, replacing earlier bindings."""
    for name, value in STD_CONSTANTS.items():
        bindings.bind_value(name, value)
    for name, func in STD_FUNCTIONS.items():
        bindings.bind_call(name, func, arity=1)
