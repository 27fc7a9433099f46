"""Builtin functions and methods (print, args, append, ...) registered via tinyphp.runtime."""

from __future__ import annotations

import random
import re
from typing import List

from .runtime import (
    register_array,
    register_stdlib,
    register_string,
    expect_arity,
    Frame,
    PhpArray,
    PhpExitSignal,
    PhpInt,
    PhpString,
    PhpTypeError,
    PhpArityError,
    PhpValue,
    PhpVoid,
)
from .eval.common import stringify

INT64_MAX = 2**63 - 1

# Largest status a POSIX parent can observe
EXIT_STATUS_MAX = 255

_INT_LITERAL_RE = re.compile(r"[+-]?[0-9]+")

@register_stdlib("print")
def std_print(frame: Frame, args: List[PhpValue]) -> PhpVoid:
    frame.host.write("".join(stringify(arg) for arg in args))
    return PhpVoid()

@register_stdlib("println")
def std_println(frame: Frame, args: List[PhpValue]) -> PhpVoid:
    frame.host.write(" ".join(stringify(arg) for arg in args) + "\n")
    return PhpVoid()

@register_stdlib("args", arity=0)
@register_stdlib("os\\args", arity=0)
def std_args(frame: Frame, _args: List[PhpValue]) -> PhpArray:
    return PhpArray([PhpString(arg) for arg in frame.host.argv])

@register_stdlib("exit")
def std_exit(_frame: Frame, args: List[PhpValue]):
    if len(args) > 1:
        raise PhpArityError(f"exit() expects 0 to 1 argument(s); got {len(args)}")

    if not args:
        raise PhpExitSignal(0)

    code = args[0]
    if not isinstance(code, PhpInt):
        raise PhpTypeError("exit() expects an Int status")

    if not 0 <= code.value <= EXIT_STATUS_MAX:
        raise PhpTypeError(f"exit() status must be between 0 and {EXIT_STATUS_MAX}; got {code.value}")

    raise PhpExitSignal(code.value)

@register_stdlib("math\\random", arity=0)
def std_random(_frame: Frame, _args: List[PhpValue]) -> PhpInt:
    return PhpInt(random.getrandbits(63))

@register_array("append")
def _array_append(_frame: Frame, recv: PhpArray, args: List[PhpValue]) -> PhpVoid:
    if not args:
        raise PhpArityError("append() expects at least 1 argument(s); got 0")

    recv.items.extend(args)
    return PhpVoid()

@register_array("length")
def _array_length(_frame: Frame, recv: PhpArray, args: List[PhpValue]) -> PhpInt:
    expect_arity("length()", args, 0)

    return PhpInt(len(recv.items))

@register_string("length")
def _string_length(_frame: Frame, recv: PhpString, args: List[PhpValue]) -> PhpInt:
    expect_arity("length()", args, 0)

    return PhpInt(len(recv.value))

@register_string("toInt")
def _string_to_int(_frame: Frame, recv: PhpString, args: List[PhpValue]) -> PhpInt:
    """Parse a base-10 integer; surrounding whitespace or an out-of-range value is an error."""
    expect_arity("toInt()", args, 0)

    text = recv.value
    if _INT_LITERAL_RE.fullmatch(text) is None:
        raise PhpTypeError(f'Cannot convert "{text}" to Int')

    num = int(text)
    if not -INT64_MAX - 1 <= num <= INT64_MAX:
        raise PhpTypeError(f'Integer "{text}" out of range')

    return PhpInt(num)
