from __future__ import annotations

import io
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()
FIXTURES_DIR = BASE_DIR / "tests" / "fixtures"

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from tinyphp.lexer_rd import LexError
from tinyphp.parser_rd import ParseError, parse_source as parse_rd
from tinyphp.runner import execute, run as run_program
from tinyphp.runtime import (
    BuiltinFunction,
    PhpArityError,
    PhpArray,
    PhpFn,
    PhpIndexError,
    PhpInt,
    PhpMethodNotFound,
    PhpNameError,
    PhpNotCallable,
    PhpOutputError,
    PhpRuntimeError,
    PhpStackOverflow,
    PhpString,
    PhpTypeError,
    PhpVoid,
    PhpZeroDivisionError,
)

RuntimeExpectation = Optional[Tuple[str, object]]


@dataclass(frozen=True)
class Transcript:
    """Exit status plus everything a script wrote to stdout and stderr."""

    status: int
    out: str
    err: str


def unwrap(value: object) -> object:
    """Convert runtime values into plain Python values for comparisons."""
    match value:
        case PhpInt(value=num):
            return num
        case PhpString(value=s):
            return s
        case PhpArray(items=items):
            return [unwrap(item) for item in items]
        case _:
            return value


def verify_result(value: object, kind: str, expected: object) -> None:
    """Assert runtime result shape/value compatibility with the expectation."""
    match kind:
        case "string":
            assert isinstance(
                value, PhpString
            ), f"expected PhpString, got {type(value).__name__}"
            assert (
                value.value == expected
            ), f"expected {expected!r}, got {value.value!r}"
            return
        case "int":
            assert isinstance(
                value, PhpInt
            ), f"expected PhpInt, got {type(value).__name__}"
            assert value.value == expected, f"expected {expected}, got {value.value}"
            return
        case "void":
            assert isinstance(
                value, PhpVoid
            ), f"expected PhpVoid, got {type(value).__name__}"
            return
        case "array":
            assert isinstance(
                value, PhpArray
            ), f"expected PhpArray, got {type(value).__name__}"
            actual_items = unwrap(value)
            assert (
                actual_items == expected
            ), f"expected {expected!r}, got {actual_items!r}"
            return
        case "function":
            assert isinstance(
                value, (PhpFn, BuiltinFunction)
            ), f"expected a function, got {type(value).__name__}"
            return
        case _:
            raise AssertionError(f"unknown expectation kind {kind}")


def run_runtime_case(
    source: str,
    expectation: RuntimeExpectation,
    expected_exc: Optional[type],
) -> None:
    """Execute one runtime scenario with optional expected exception."""
    if expected_exc is not None:
        with pytest.raises(expected_exc):
            run_program(source, out=io.StringIO())
        return

    result = run_program(source, out=io.StringIO())
    if expectation is not None:
        verify_result(result, expectation[0], expectation[1])


def run_output(source: str, argv: Optional[Sequence[str]] = None) -> str:
    """Run a program and return what it printed."""
    out = io.StringIO()
    run_program(source, argv=list(argv or []), out=out)
    return out.getvalue()


def run_script(
    source: str,
    argv: Optional[Sequence[str]] = None,
    filename: str = "<test>",
) -> Transcript:
    """Run a program the way the CLI does, capturing status and both streams."""
    out = io.StringIO()
    err = io.StringIO()
    status = execute(source, argv=list(argv or []), out=out, err=err, filename=filename)
    return Transcript(status=status, out=out.getvalue(), err=err.getvalue())


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def fixture_names() -> List[str]:
    return sorted(path.name for path in FIXTURES_DIR.glob("*.php"))
