from __future__ import annotations

from typing import Any, Callable

from lark import Tree

from ..runtime import Frame, PhpValue
from .common import expect_token_value

EvalFunc = Callable[[Any, Frame], Any]

def eval_assign(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpValue:
    """`$name = value`: rebinds the nearest existing `$name`, else defines it here."""
    target, value_node = n.children
    name = expect_token_value(target, 'VAR', "Assignment target")
    value = eval_func(value_node, frame)
    frame.assign(name, value)

    return value
