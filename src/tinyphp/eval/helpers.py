from __future__ import annotations

from ..runtime import BuiltinFunction, PhpArray, PhpFn, PhpInt, PhpString, PhpValue, PhpVoid

def is_truthy(val: PhpValue) -> bool:
    match val:
        case PhpVoid():
            return False
        case PhpInt(value=num):
            return num != 0
        case PhpString(value=s):
            return bool(s)
        case PhpArray(items=items):
            return bool(items)
        case PhpFn() | BuiltinFunction():
            return True
        case _:
            return True

def php_bool(flag: bool) -> PhpInt:
    return PhpInt(1 if flag else 0)
