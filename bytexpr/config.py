"""
bytexpr Compiler Configuration

Implementation limits shared by the parser, the code generator and the
bytecode builder. All limits are toggleable via the CompilerConfig class.
"""

from dataclasses import dataclass


@dataclass
class CompilerConfig:
    """Limits applied while parsing and compiling an expression."""
    max_code_size: int = 2048   # Bytes of bytecode per compiled expression
    max_depth: int = 200        # Depth of the expression tree
    max_nesting: int = 64       # Nested brackets and exponent chains while parsing
    max_args: int = 256         # Argument slots (ARG payload is one byte)

    def __post_init__(self):
        if self.max_code_size <= 0:
            raise ValueError("max_code_size must be positive")
        if self.max_depth <= 0 or self.max_nesting <= 0:
            raise ValueError("max_depth and max_nesting must be positive")
        if not 0 < self.max_args <= 256:
            raise ValueError("max_args must be between 1 and 256")


DEFAULT_CONFIG = CompilerConfig()
