from __future__ import annotations

from typing import Any, Callable, List, Optional

from lark import Token, Tree

from ..runtime import (
    Builtins,
    Frame,
    PhpArray,
    PhpIndexError,
    PhpNameError,
    PhpString,
    PhpTypeError,
    PhpValue,
    call_builtin_method,
    call_value,
    type_name,
)
from ..tree import tree_label
from .common import expect_token_value, require_int, token_kind
from .helpers import php_bool

EvalFunc = Callable[[Any, Frame], Any]

# Constant names that evaluate without a declaration
_CONSTANTS = {
    'true': lambda: php_bool(True),
    'false': lambda: php_bool(False),
}

def eval_args_node(args_node: Optional[Tree], frame: Frame, eval_func: EvalFunc) -> List[PhpValue]:
    if args_node is None or tree_label(args_node) != 'args':
        return []

    return [eval_func(n, frame) for n in args_node.children]

def candidate_names(name: str, frame: Frame) -> List[str]:
    """
    Spellings to try for a function name, most specific first:
    - `\\a\\b` is fully qualified and used as written
    - a leading segment matching a `use` alias is rewritten to its target
    - an unqualified name also resolves inside the current namespace
    """
    if name.startswith('\\'):
        return [name[1:]]

    host = frame.host
    head, sep, rest = name.partition('\\')
    candidates: List[str] = []

    target = host.uses.get(head)
    if target is not None:
        candidates.append(target + sep + rest)

    candidates.append(name)

    if host.namespace and not sep:
        candidates.append(f"{host.namespace}\\{name}")

    return candidates

def resolve_function(name: str, frame: Frame) -> PhpValue:
    """Builtins first, then user functions along the scope chain."""
    candidates = candidate_names(name, frame)

    for cand in candidates:
        builtin = Builtins.functions.get(cand)
        if builtin is not None:
            return builtin

    for cand in candidates:
        fn = frame.get_fn(cand)
        if fn is not None:
            return fn

    raise PhpNameError(f"Undefined function '{name}'")

def eval_name(tok: Token, frame: Frame) -> PhpValue:
    name = str(tok.value)
    const = _CONSTANTS.get(name)

    if const is not None:
        return const()

    try:
        return resolve_function(name, frame)
    except PhpNameError:
        raise PhpNameError(f"Undefined constant or function '{name}'") from None

def eval_call(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpValue:
    callee_node, args_node = n.children

    if token_kind(callee_node) == 'NAME':
        callee = resolve_function(str(callee_node.value), frame)
    else:
        callee = eval_func(callee_node, frame)

    args = eval_args_node(args_node, frame, eval_func)
    return call_value(callee, args, frame)

def eval_method_call(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpValue:
    recv_node, method_tok, args_node = n.children
    recv = eval_func(recv_node, frame)
    method = expect_token_value(method_tok, 'IDENT', "Method name")
    args = eval_args_node(args_node, frame, eval_func)

    return call_builtin_method(recv, method, args, frame)

def index_value(recv: PhpValue, idx_val: PhpValue) -> PhpValue:
    idx = require_int(idx_val, "Index")

    match recv:
        case PhpArray(items=items):
            size = len(items)
        case PhpString(value=s):
            size = len(s)
        case _:
            raise PhpTypeError(f"Cannot index {type_name(recv)}")

    if idx < 0 or idx >= size:
        raise PhpIndexError(f"Index {idx} out of range for {type_name(recv)} of length {size}")

    if isinstance(recv, PhpArray):
        return recv.items[idx]

    return PhpString(recv.value[idx])

def eval_index(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpValue:
    recv_node, index_node = n.children
    recv = eval_func(recv_node, frame)
    idx_val = eval_func(index_node, frame)

    return index_value(recv, idx_val)
