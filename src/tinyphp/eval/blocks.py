from __future__ import annotations

from typing import Any, Callable, List

from lark import Tree

from ..runtime import Frame, PhpValue, PhpVoid
from ..tree import tree_label
from .fn import bind_fn_decl

EvalFunc = Callable[[Any, Frame], Any]

def hoist_declarations(children: List[Any], frame: Frame) -> None:
    """
    Bind every fn_decl of a statement list before it runs so forward and
    mutual references resolve. At top level namespace and use declarations
    are applied in the same pass, in source order.
    """
    host = frame.host

    for child in children:
        match tree_label(child):
            case 'namespace_decl':
                host.namespace = str(child.children[0])
            case 'use_decl':
                path, alias = child.children
                host.uses[str(alias)] = str(path)
            case 'fn_decl':
                bind_fn_decl(child, frame)

def eval_program(children: List[Any], frame: Frame, eval_func: EvalFunc) -> PhpValue:
    """Run a stmt list in `frame`, returning the last statement's value."""
    hoist_declarations(children, frame)
    result: PhpValue = PhpVoid()

    for child in children:
        result = eval_func(child, frame)

    return result

def eval_block(n: Tree, frame: Frame, eval_func: EvalFunc) -> PhpValue:
    return eval_program(n.children, Frame(parent=frame), eval_func)

def eval_declaration(_n: Tree, _frame: Frame) -> PhpVoid:
    # namespace/use take effect during hoisting
    return PhpVoid()
