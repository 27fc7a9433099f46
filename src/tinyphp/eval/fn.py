from __future__ import annotations

from typing import Any, List, Optional

from lark import Tree

from ..runtime import Frame, Param, PhpFn, PhpRuntimeError, PhpVoid
from ..tree import child_by_label, is_tree, tree_children, tree_label
from .common import expect_token_value, token_kind

def extract_params(params_node: Optional[Tree], context: str="parameter list") -> List[Param]:
    if params_node is None:
        return []

    params: List[Param] = []

    for p in tree_children(params_node):
        if tree_label(p) != 'param' or not p.children:
            raise PhpRuntimeError(f"Unsupported parameter node in {context}: {p}")

        name = expect_token_value(p.children[0], 'VAR', "Parameter name")
        type_node = child_by_label(p, 'type')
        default_node = child_by_label(p, 'default')

        params.append(Param(
            name=name,
            type_name=str(type_node.children[0]) if type_node is not None else None,
            default=default_node.children[0] if default_node is not None else None,
        ))

    return params

def _build_fn(children: List[Any], frame: Frame, name: Optional[str]) -> PhpFn:
    params_node = None
    body_node = None

    for node in children:
        if is_tree(node) and tree_label(node) == 'paramlist':
            params_node = node
        elif is_tree(node) and tree_label(node) == 'block':
            body_node = node

    if body_node is None:
        body_node = Tree('block', [])

    params = extract_params(params_node, context=f"function {name}" if name else "anonymous function")
    return PhpFn(params=params, body=body_node, frame=frame, name=name)

def bind_fn_decl(n: Tree, frame: Frame) -> PhpFn:
    """Bind a declared function in `frame`, also under the current namespace."""
    if not n.children or token_kind(n.children[0]) != 'IDENT':
        raise PhpRuntimeError("Malformed function declaration")

    name = str(n.children[0].value)
    fn_value = _build_fn(n.children[1:], frame, name)
    frame.define_fn(name, fn_value)

    namespace = frame.host.namespace
    if namespace:
        frame.define_fn(f"{namespace}\\{name}", fn_value)

    return fn_value

def eval_fn_decl(_n: Tree, _frame: Frame) -> PhpVoid:
    # bound during hoisting
    return PhpVoid()

def eval_fn_expr(n: Tree, frame: Frame) -> PhpFn:
    return _build_fn(n.children, frame, None)
