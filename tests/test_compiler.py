#!/usr/bin/env python3
"""
Compiler Unit Tests

Tests for the bytecode builder, code generator and interpreter.
"""

import math
import struct
import sys
import os

# Project root on the path so the tests run without installing
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from bytexpr.ast_nodes import *
from bytexpr.binder import ArgBinding, Bindings, Ref
from bytexpr.bytecode import Bytecode, BytecodeBuilder, CodeGenError, Opcode, disassemble
from bytexpr.codegen import generate, promote_arguments
from bytexpr.config import CompilerConfig
from bytexpr.interpreter import Interpreter, calc, execute
from bytexpr.parser import parse


def compile_source(source: str, bindings: Bindings = None):
    bindings = bindings if bindings is not None else Bindings()
    tree = parse(source)
    promote_arguments(tree, bindings)
    return generate(tree, bindings)


def test_builder_const():
    """Test CONST carries an 8-byte little-endian double."""
    builder = BytecodeBuilder()
    builder.emit_const(2.5)
    code = builder.build().code
    assert code == bytes([Opcode.CONST]) + struct.pack('<d', 2.5)
    print("PASS: test_builder_const")


def test_builder_arg_count():
    """Test the builder tracks the highest argument slot."""
    builder = BytecodeBuilder()
    assert builder.arg_count == 0
    builder.emit_arg(3)
    builder.emit_arg(1)
    assert builder.arg_count == 4
    assert builder.build().arg_count == 4
    print("PASS: test_builder_arg_count")


def test_codegen_prefix_order():
    """Test operators are emitted before their operands."""
    bindings = Bindings()
    bindings.bind_arg("x", 0)
    bytecode = generate(parse("1+x"), bindings)
    expected = bytes([Opcode.ADD, Opcode.CONST]) + struct.pack('<d', 1.0) + bytes([Opcode.ARG, 0])
    assert bytecode.code == expected
    assert bytecode.arg_count == 1
    print("PASS: test_codegen_prefix_order")


def test_codegen_bindings():
    """Test value, reference and unbound variables."""
    k = Ref(2.0)
    bindings = Bindings()
    bindings.bind_value("a", 4.0)
    bindings.bind_ref("k", k)
    bytecode = generate(parse("a + k*k + missing"), bindings)
    assert bytecode.refs == (k,)
    listing = disassemble(bytecode)
    assert "CONST 4.0" in listing[2]
    assert [line.split("  ")[1] for line in listing].count("REF #0") == 2
    assert listing[-1].endswith("CONST 0.0")
    assert execute(bytecode) == 8.0
    print("PASS: test_codegen_bindings")


def test_codegen_unbound_call():
    """Test unbound calls keep their arguments and read as zero."""
    log = []
    bindings = Bindings()
    bindings.bind_call("f", lambda: log.append("f") or 1.0, arity=0)
    bytecode = generate(parse("nothere(f(), 2) + 5"), bindings)
    assert "CALL <unbound>/2" in disassemble(bytecode)[1]
    assert execute(bytecode) == 5.0
    assert log == ["f"]
    print("PASS: test_codegen_unbound_call")


def test_disassemble_listing():
    """Test offsets and operands in the listing."""
    bytecode = compile_source("x^2+y")
    assert disassemble(bytecode) == [
        "0000  ADD",
        "0001  POW",
        "0002  ARG 0",
        "0004  CONST 2.0",
        "000d  ARG 1",
    ]
    print("PASS: test_disassemble_listing")


def test_promote_arguments():
    """Test unbound variables continue after the highest bound slot."""
    bindings = Bindings()
    bindings.bind_arg("y", 3)
    bindings.bind_value("w", 1.0)
    promoted = promote_arguments(parse("x + y + w + z + x"), bindings)
    assert promoted == ["x", "z"]
    assert bindings.variable("x") == ArgBinding(4)
    assert bindings.variable("z") == ArgBinding(5)
    print("PASS: test_promote_arguments")


def test_code_size_limit():
    """Test overflowing the code buffer is a compile error."""
    config = CompilerConfig(max_code_size=16)
    try:
        generate(parse("1+2"), Bindings(), config)
        assert False, "expected CodeGenError"
    except CodeGenError as e:
        assert "16 bytes" in str(e)
    assert len(generate(parse("1"), Bindings(), config)) == 9
    print("PASS: test_code_size_limit")


def test_depth_and_arity_limits():
    """Test trees built by hand are still checked."""
    deep = Neg(Neg(Neg(Const(1.0))))
    try:
        generate(deep, Bindings(), CompilerConfig(max_depth=3))
        assert False, "expected CodeGenError"
    except CodeGenError:
        pass

    wide = Call("f", [Const(0.0)] * 256)
    try:
        generate(wide, Bindings(), CompilerConfig(max_code_size=10000))
        assert False, "expected CodeGenError"
    except CodeGenError:
        pass
    print("PASS: test_depth_and_arity_limits")


def test_interpreter_arithmetic():
    """Test precedence through the interpreter."""
    cases = {
        "1+2*3": 7.0,
        "2^3^2": 512.0,
        "-2^2": -4.0,
        "2^-2": 0.25,
        "8/2/2": 2.0,
        "|-3-4|": 7.0,
        "-|-(-5)|": -5.0,
        "(3+4)*(5-2)": 21.0,
    }
    for source, expected in cases.items():
        assert execute(compile_source(source)) == expected, source
    print("PASS: test_interpreter_arithmetic")


def test_interpreter_ieee():
    """Test IEEE division and pow results instead of exceptions."""
    assert execute(compile_source("1/0")) == math.inf
    assert execute(compile_source("-1/0")) == -math.inf
    assert math.isnan(execute(compile_source("0/0")))
    assert math.isnan(execute(compile_source("(-8)^(1/3)")))
    assert execute(compile_source("0^-1")) == math.inf
    assert execute(compile_source("10^400")) == math.inf
    assert execute(compile_source("(-10)^401")) == -math.inf
    print("PASS: test_interpreter_ieee")


def test_interpreter_arguments():
    """Test argument vectors, including missing slots."""
    bytecode = compile_source("a+b*c")
    interp = Interpreter(bytecode)
    assert interp.run([1, 2, 3]) == 7.0
    assert interp.run([1, 2]) == 1.0
    assert interp.run() == 0.0
    print("PASS: test_interpreter_arguments")


def test_interpreter_operand_order():
    """Test left operands run before right operands for every operator."""
    for op in "+-*/^":
        log = []
        bindings = Bindings()
        bindings.bind_call("f", lambda: log.append("f") or 2.0, arity=0)
        bindings.bind_call("g", lambda: log.append("g") or 1.0, arity=0)
        execute(compile_source(f"f(){op}g()", bindings))
        assert log == ["f", "g"], op

    k = Ref(0.0)

    def tick():
        k.value += 1.0
        return k.value

    bindings = Bindings()
    bindings.bind_ref("k", k)
    bindings.bind_call("tick", tick)
    assert execute(compile_source("tick() - k", bindings)) == 0.0
    assert execute(compile_source("k - tick()", bindings)) == -1.0
    print("PASS: test_interpreter_operand_order")


def test_interpreter_call_arity():
    """Test argument vectors are padded or truncated to the callable's arity."""
    bindings = Bindings()
    bindings.bind_call("g", lambda a, b: a + b)
    bindings.bind_call("most", max)
    assert execute(compile_source("g(1)", bindings)) == 1.0
    assert execute(compile_source("g(1, 2, 3)", bindings)) == 3.0
    assert execute(compile_source("most(1, 5, 3)", bindings)) == 5.0
    print("PASS: test_interpreter_call_arity")


def test_interpreter_bad_opcode():
    """Test corrupt bytecode is reported."""
    try:
        Interpreter(Bytecode(b'\xff')).run()
        assert False, "expected CodeGenError"
    except CodeGenError as e:
        assert "0xff" in str(e)
    assert Interpreter(Bytecode()).run() == 0.0
    print("PASS: test_interpreter_bad_opcode")


def test_calc_matches_bytecode():
    """Test the tree walker and the bytecode interpreter agree."""
    k = Ref(1.5)
    bindings = Bindings()
    bindings.bind_value("c", 3.0)
    bindings.bind_ref("k", k)
    bindings.bind_call("hyp", lambda a, b: math.hypot(a, b))
    sources = [
        "c*x - k^2",
        "|x-y| / (k + 1)",
        "hyp(x, y) + undefined(x)",
        "-x^-y + c",
        "1/(x-x)",
    ]
    for source in sources:
        tree = parse(source)
        local = bindings.copy()
        promote_arguments(tree, local)
        bytecode = generate(tree, local)
        args = [3.0, 4.0]
        expected = calc(tree, local, args)
        assert execute(bytecode, args) == expected, source
    print("PASS: test_calc_matches_bytecode")


def run_all_tests():
    """Run all compiler unit tests."""
    tests = [
        test_builder_const,
        test_builder_arg_count,
        test_codegen_prefix_order,
        test_codegen_bindings,
        test_codegen_unbound_call,
        test_disassemble_listing,
        test_promote_arguments,
        test_code_size_limit,
        test_depth_and_arity_limits,
        test_interpreter_arithmetic,
        test_interpreter_ieee,
        test_interpreter_arguments,
        test_interpreter_operand_order,
        test_interpreter_call_arity,
        test_interpreter_bad_opcode,
        test_calc_matches_bytecode,
    ]

    passed = 0
    failed = 0

    print("=" * 50)
    print("bytexpr Compiler Unit Tests")
    print("=" * 50)

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"FAIL: {test.__name__}: {e}")
            failed += 1

    print()
    print("=" * 50)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 50)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
