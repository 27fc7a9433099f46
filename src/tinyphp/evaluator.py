from __future__ import annotations

from typing import Any, Callable, List, Optional
from lark import Token

from .runtime import (
    Frame,
    PhpArray,
    PhpExitSignal,
    PhpRuntimeError,
    PhpStackOverflow,
    PhpValue,
    init_stdlib,
    new_global_frame,
)

from .tree import Node, Tree, is_token, node_meta
from .utils import recursion_headroom

from .eval.bind import eval_assign
from .eval.blocks import eval_block, eval_declaration, eval_program
from .eval.chains import eval_call, eval_index, eval_method_call, eval_name
from .eval.common import token_int, token_string
from .eval.expr import eval_binary, eval_logical, eval_unary
from .eval.fn import eval_fn_decl, eval_fn_expr
from .eval.loops import eval_foreach, eval_if_expr, eval_range

EvalFunc = Callable[[Node, Frame], PhpValue]

def _maybe_attach_location(exc: PhpRuntimeError, node: Node) -> None:
    # the innermost node with a position wins; outer frames leave it alone
    if exc.php_meta is not None:
        return

    meta = node_meta(node)

    if meta is not None and getattr(meta, "line", None) is not None:
        exc.php_meta = meta

# ---------------- Public API ----------------

def eval_expr(ast: Node, frame: Optional[Frame]=None) -> PhpValue:
    init_stdlib()

    if frame is None:
        frame = new_global_frame()

    try:
        return eval_node(ast, frame)
    except PhpRuntimeError as e:
        _maybe_attach_location(e, ast)
        raise

def execute_program(program: Tree, frame: Frame) -> PhpValue:
    """Run a parsed program in `frame` with the call-depth limit enforced."""
    with recursion_headroom(frame.host.max_depth):
        try:
            return eval_expr(program, frame)
        except RecursionError:
            raise PhpStackOverflow("Maximum recursion depth exceeded") from None

def evaluate(program: Tree, out: Any=None, argv: Optional[List[str]]=None) -> int:
    """Run a program and return its exit status (0, or the code given to exit())."""
    frame = new_global_frame(out=out, argv=argv)

    try:
        execute_program(program, frame)
    except PhpExitSignal as sig:
        return sig.code

    return 0

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> PhpValue:
    try:
        return _eval_node_inner(n, frame)
    except PhpRuntimeError as e:
        _maybe_attach_location(e, n)
        raise

def _eval_node_inner(n: Node, frame: Frame) -> PhpValue:
    if is_token(n):
        return _eval_token(n, frame)

    d = n.data
    handler = _NODE_DISPATCH.get(d)
    if handler is not None:
        return handler(n, frame)

    match d:
        case 'program':
            return eval_program(n.children, frame, eval_node)
        case 'array':
            return PhpArray([eval_node(c, frame) for c in n.children])
        case 'unary':
            op, rhs_node = n.children
            return eval_unary(op, rhs_node, frame, eval_node)
        case _:
            raise PhpRuntimeError(f"Unknown node: {d}")

# ---------------- Tokens ----------------

def _eval_token(t: Token, frame: Frame) -> PhpValue:
    handler = _TOKEN_DISPATCH.get(t.type)
    if handler:
        return handler(t, frame)

    raise PhpRuntimeError(f"Unhandled token {t.type}:{t.value}")

# ---------------- Dispatch ----------------

_NODE_DISPATCH: dict[str, Callable[[Tree, Frame], PhpValue]] = {
    'block': lambda n, frame: eval_block(n, frame, eval_node),
    'binary': lambda n, frame: eval_binary(n.children, frame, eval_node),
    'logical': lambda n, frame: eval_logical(n.children, frame, eval_node),
    'assign': lambda n, frame: eval_assign(n, frame, eval_node),
    'call': lambda n, frame: eval_call(n, frame, eval_node),
    'method_call': lambda n, frame: eval_method_call(n, frame, eval_node),
    'index': lambda n, frame: eval_index(n, frame, eval_node),
    'range': lambda n, frame: eval_range(n, frame, eval_node),
    'if_expr': lambda n, frame: eval_if_expr(n, frame, eval_node),
    'foreach': lambda n, frame: eval_foreach(n, frame, eval_node),
    'fn_decl': eval_fn_decl,
    'fn_expr': eval_fn_expr,
    'namespace_decl': eval_declaration,
    'use_decl': eval_declaration,
}

_TOKEN_DISPATCH: dict[str, Callable[[Token, Frame], PhpValue]] = {
    'INT': token_int,
    'STRING': token_string,
    'VAR': lambda t, frame: frame.get(str(t.value)),
    'NAME': eval_name,
}
