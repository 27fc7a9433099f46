from __future__ import annotations

import os as _os
import sys
from contextlib import contextmanager
from typing import Iterator

from .types import (
    BuiltinFunction,
    PhpArray,
    PhpFn,
    PhpInt,
    PhpString,
    PhpValue,
    PhpVoid,
)

DEFAULT_MAX_CALL_DEPTH = 1000

# Python frames consumed by one user-function call, with room to spare
_PY_FRAMES_PER_CALL = 50

def _env_flag(name: str) -> bool:
    return _os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")

def debug_py_trace_enabled() -> bool:
    """Whether diagnostics should be followed by the Python traceback."""
    return _env_flag("TINYPHP_DEBUG_PY_TRACE")

def max_call_depth() -> int:
    raw = _os.environ.get("TINYPHP_MAX_CALL_DEPTH", "").strip()

    if not raw:
        return DEFAULT_MAX_CALL_DEPTH

    try:
        depth = int(raw)
    except ValueError:
        print(f"tinyphp: ignoring invalid TINYPHP_MAX_CALL_DEPTH={raw!r}", file=sys.stderr)
        return DEFAULT_MAX_CALL_DEPTH

    return max(depth, 1)

@contextmanager
def recursion_headroom(max_depth: int) -> Iterator[None]:
    """Raise the interpreter recursion limit so the call-depth check trips first."""
    previous = sys.getrecursionlimit()
    wanted = max_depth * _PY_FRAMES_PER_CALL + 1000

    if wanted > previous:
        sys.setrecursionlimit(wanted)

    try:
        yield
    finally:
        sys.setrecursionlimit(previous)

def php_equals(lhs: PhpValue, rhs: PhpValue) -> bool:
    match (lhs, rhs):
        case (PhpInt(value=a), PhpInt(value=b)):
            return a == b
        case (PhpString(value=a), PhpString(value=b)):
            return a == b
        case (PhpArray(items=items_a), PhpArray(items=items_b)):
            return len(items_a) == len(items_b) and all(
                php_equals(a, b) for a, b in zip(items_a, items_b)
            )
        case (PhpVoid(), PhpVoid()):
            return True
        case ((PhpFn(), PhpFn()) | (BuiltinFunction(), BuiltinFunction())):
            return lhs is rhs or lhs == rhs
        case _:
            return False
