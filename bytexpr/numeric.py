"""
IEEE-754 arithmetic helpers.

Python raises on float division by zero and on math.pow domain errors or
overflow; expressions instead follow C double semantics so that infinities
and NaNs propagate to the caller.
"""

import math

INF = math.inf
NAN = math.nan


def ieee_div(a: float, b: float) -> float:
    """a / b with +-inf on a zero divisor and NaN for 0/0."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return NAN
        return math.copysign(INF, a) * math.copysign(1.0, b)
    return a / b


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x == math.floor(x) and math.fmod(x, 2.0) != 0.0


def ieee_pow(a: float, b: float) -> float:
    """C pow(): overflow gives +-inf, domain errors give NaN, 0^-n gives inf."""
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0.0 and _is_odd_integer(b):
            return -INF
        return INF
    except ValueError:
        if a == 0.0 and b < 0.0:
            if _is_odd_integer(b):
                return math.copysign(INF, a)
            return INF
        return NAN


def ieee_call(func, x: float) -> float:
    """Apply a one-argument math function, mapping its exceptions to IEEE values."""
    try:
        return func(x)
    except OverflowError:
        return INF
    except ValueError:
        return NAN
