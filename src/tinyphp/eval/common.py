from __future__ import annotations

from typing import Any, Optional

from lark import Token

from ..runtime import (
    BuiltinFunction,
    Frame,
    PhpArray,
    PhpFn,
    PhpInt,
    PhpRuntimeError,
    PhpString,
    PhpTypeError,
    PhpVoid,
    type_name,
)
from ..tree import is_token

def token_kind(node: Any) -> Optional[str]:
    if not is_token(node):
        return None
    tok: Token = node
    return str(tok.type)

def is_token_type(node: Any, kind: str) -> bool:
    return is_token(node) and token_kind(node) == kind

def expect_token_value(node: Any, kind: str, context: str) -> str:
    if is_token_type(node, kind):
        return str(node.value)

    raise PhpRuntimeError(f"{context} must be a {kind} token")

def require_int(value: Any, context: str) -> int:
    if not isinstance(value, PhpInt):
        raise PhpTypeError(f"{context} expects an Int, got {type_name(value)}")

    return value.value

def token_int(token: Token, _: Frame) -> PhpInt:
    return PhpInt(int(token.value))

def token_string(token: Token, _: Frame) -> PhpString:
    return PhpString(str(token.value))

def stringify(value: Any) -> str:
    """Display form used by print, println and `.` concatenation."""
    match value:
        case PhpInt(value=num):
            return str(num)
        case PhpString(value=s):
            return s
        case PhpArray(items=items):
            return "[" + ", ".join(stringify(item) for item in items) + "]"
        case PhpVoid():
            raise PhpTypeError("Cannot display a Void value")
        case PhpFn() | BuiltinFunction():
            raise PhpTypeError("Cannot display a function")
        case _:
            raise PhpTypeError(f"Cannot display {type_name(value)}")
