from __future__ import annotations

from typing import Callable, List

from lark import Token

from ..runtime import (
    Frame,
    PhpInt,
    PhpRuntimeError,
    PhpString,
    PhpTypeError,
    PhpValue,
    PhpZeroDivisionError,
    type_name,
)
from ..tree import Node
from ..utils import php_equals
from .common import stringify, token_kind
from .helpers import is_truthy, php_bool

EvalFunc = Callable[[Node, Frame], PhpValue]

_INT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63

def wrap_i64(num: int) -> int:
    """Wrap an unbounded int into the signed 64-bit range."""
    num &= _INT64_MASK
    return num - (1 << 64) if num & _INT64_SIGN else num

def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q

def _trunc_mod(a: int, b: int) -> int:
    r = abs(a) % abs(b)
    return -r if a < 0 else r

_COMPARATORS = {
    'LT': lambda a, b: a < b,
    'LTE': lambda a, b: a <= b,
    'GT': lambda a, b: a > b,
    'GTE': lambda a, b: a >= b,
}

def apply_binary_operator(op: Token, lhs: PhpValue, rhs: PhpValue) -> PhpValue:
    kind = token_kind(op)

    match (kind, lhs, rhs):
        case ('PLUS', PhpInt(value=a), PhpInt(value=b)):
            return PhpInt(wrap_i64(a + b))
        case ('PLUS', PhpString(value=a), PhpString(value=b)):
            return PhpString(a + b)
        case ('MINUS', PhpInt(value=a), PhpInt(value=b)):
            return PhpInt(wrap_i64(a - b))
        case ('STAR', PhpInt(value=a), PhpInt(value=b)):
            return PhpInt(wrap_i64(a * b))
        case ('STAR', PhpString(value=s), PhpInt(value=n)) | ('STAR', PhpInt(value=n), PhpString(value=s)):
            if n < 0:
                raise PhpTypeError(f"Cannot repeat a string a negative number of times ({n})")
            return PhpString(s * n)
        case ('SLASH' | 'MOD', PhpInt(), PhpInt(value=0)):
            raise PhpZeroDivisionError("Division by zero" if kind == 'SLASH' else "Modulo by zero")
        case ('SLASH', PhpInt(value=a), PhpInt(value=b)):
            return PhpInt(wrap_i64(_trunc_div(a, b)))
        case ('MOD', PhpInt(value=a), PhpInt(value=b)):
            return PhpInt(_trunc_mod(a, b))
        case ('DOT', PhpInt() | PhpString(), PhpInt() | PhpString()):
            return PhpString(stringify(lhs) + stringify(rhs))
        case ('EQ', _, _):
            return php_bool(php_equals(lhs, rhs))
        case ('NEQ', _, _):
            return php_bool(not php_equals(lhs, rhs))
        case ('LT' | 'LTE' | 'GT' | 'GTE', PhpInt(value=a), PhpInt(value=b)):
            return php_bool(_COMPARATORS[kind](a, b))
        case ('LT' | 'LTE' | 'GT' | 'GTE', PhpString(value=a), PhpString(value=b)):
            return php_bool(_COMPARATORS[kind](a, b))
        case _:
            raise PhpTypeError(
                f"Unsupported operand types for {op.value}: {type_name(lhs)} and {type_name(rhs)}"
            )

def eval_binary(children: List[Node], frame: Frame, eval_func: EvalFunc) -> PhpValue:
    lhs_node, op, rhs_node = children
    lhs = eval_func(lhs_node, frame)
    rhs = eval_func(rhs_node, frame)

    return apply_binary_operator(op, lhs, rhs)

def eval_logical(children: List[Node], frame: Frame, eval_func: EvalFunc) -> PhpInt:
    lhs_node, op, rhs_node = children
    lhs = is_truthy(eval_func(lhs_node, frame))

    match token_kind(op):
        case 'AND':
            if not lhs:
                return php_bool(False)
        case 'OR':
            if lhs:
                return php_bool(True)
        case _:
            raise PhpRuntimeError(f"Unsupported logical op {op.value}")

    return php_bool(is_truthy(eval_func(rhs_node, frame)))

def eval_unary(op: Token, rhs_node: Node, frame: Frame, eval_func: EvalFunc) -> PhpValue:
    rhs = eval_func(rhs_node, frame)

    match (token_kind(op), rhs):
        case ('MINUS', PhpInt(value=num)):
            return PhpInt(wrap_i64(-num))
        case ('MINUS', _):
            raise PhpTypeError(f"Cannot negate {type_name(rhs)}")
        case ('NOT', _):
            return php_bool(not is_truthy(rhs))
        case _:
            raise PhpRuntimeError("Unsupported unary op")
