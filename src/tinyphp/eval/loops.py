from __future__ import annotations

from typing import Callable, Iterable, List

from lark import Tree

from ..runtime import Frame, PhpArray, PhpInt, PhpRuntimeError, PhpTypeError, PhpValue, PhpVoid, type_name
from ..tree import Node, tree_children, tree_label
from .blocks import eval_block, eval_program
from .common import expect_token_value, require_int
from .helpers import is_truthy

EvalFunc = Callable[[Node, Frame], PhpValue]

def range_values(start: int, stop: int) -> range:
    """Half-open integer range, counting down when start > stop."""
    return range(start, stop, 1 if start <= stop else -1)

def _eval_range_bounds(n: Tree, frame: Frame, eval_func: EvalFunc) -> range:
    start_node, stop_node = n.children
    start = require_int(eval_func(start_node, frame), "Range start")
    stop = require_int(eval_func(stop_node, frame), "Range end")

    return range_values(start, stop)

def eval_range(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpArray:
    return PhpArray([PhpInt(v) for v in _eval_range_bounds(n, frame, eval_func)])

def eval_if_expr(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpValue:
    children = tree_children(n)

    if len(children) not in (2, 3):
        raise PhpRuntimeError("Malformed if expression")

    cond_node, then_node = children[0], children[1]

    if is_truthy(eval_func(cond_node, frame)):
        return eval_block(then_node, frame, eval_func)

    if len(children) == 3:
        else_node = children[2]

        if tree_label(else_node) == 'if_expr':
            return eval_if_expr(else_node, frame, eval_func)
        return eval_block(else_node, frame, eval_func)

    return PhpVoid()

def _iter_source(iter_node: Node, frame: Frame, eval_func: EvalFunc) -> Iterable[PhpValue]:
    # ranges stream their values; arrays are snapshotted so appends in the body
    # do not extend the loop
    if tree_label(iter_node) == 'range':
        return (PhpInt(v) for v in _eval_range_bounds(iter_node, frame, eval_func))

    source = eval_func(iter_node, frame)

    match source:
        case PhpArray(items=items):
            return list(items)
        case _:
            raise PhpTypeError(f"Cannot iterate over {type_name(source)}")

def eval_foreach(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpVoid:
    iter_node, binder, body_node = n.children
    names: List[str] = [expect_token_value(v, 'VAR', "Loop variable") for v in tree_children(binder)]

    if len(names) == 2:
        key_name, value_name = names
    else:
        key_name, value_name = None, names[0]

    for idx, value in enumerate(_iter_source(iter_node, frame, eval_func)):
        loop_frame = Frame(parent=frame)

        if key_name is not None:
            loop_frame.define(key_name, PhpInt(idx))
        loop_frame.define(value_name, value)

        eval_program(body_node.children, loop_frame, eval_func)

    return PhpVoid()
