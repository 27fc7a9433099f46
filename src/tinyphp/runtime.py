from __future__ import annotations

import importlib
import sys
from typing import Any, Callable, Dict, List, Optional
from .types import (
    PhpVoid, PhpInt, PhpString, PhpArray, PhpFn, Param, BuiltinFunction,
    PhpValue, Frame, Host, type_name,
    PhpRuntimeError, PhpNameError, PhpNotCallable, PhpArityError,
    PhpMethodNotFound, PhpZeroDivisionError, PhpTypeError, PhpIndexError,
    PhpStackOverflow, PhpOutputError, PhpExitSignal,
    Method, MethodRegistry, Builtins, BuiltinFn,
    is_php_value, ensure_php_value,
)
from .utils import max_call_depth

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("tinyphp.stdlib")
    _STDLIB_INITIALIZED = True

def register_method(registry: MethodRegistry, name: str):
    def dec(fn: Callable[..., PhpValue]):
        registry[name] = fn
        return fn

    return dec

def register_array(name: str):
    return register_method(Builtins.array_methods, name)

def register_string(name: str):
    return register_method(Builtins.string_methods, name)

def register_stdlib(name: str, *, arity: Optional[int] = None):
    def dec(fn: BuiltinFn):
        Builtins.functions[name] = BuiltinFunction(name=name, fn=fn, arity=arity)
        return fn

    return dec

def expect_arity(label: str, args: List[PhpValue], expected: int) -> None:
    if len(args) != expected:
        raise PhpArityError(f"{label} expects {expected} argument(s); got {len(args)}")

def new_global_frame(out: Any = None, argv: Optional[List[str]] = None) -> Frame:
    """Root frame for one run, writing to `out` (stdout when omitted)."""
    init_stdlib()
    host = Host(out=out if out is not None else sys.stdout, argv=argv, max_depth=max_call_depth())
    return Frame(host=host)

def call_builtin_method(recv: PhpValue, name: str, args: List[PhpValue], frame: Frame) -> PhpValue:
    registry_by_type: Dict[type, MethodRegistry] = {
        PhpArray: Builtins.array_methods,
        PhpString: Builtins.string_methods,
    }

    registry = registry_by_type.get(type(recv))
    if registry:
        handler = registry.get(name)
        if handler is not None:
            return handler(frame, recv, args)

    raise PhpMethodNotFound(recv, name)

def call_value(callee: PhpValue, args: List[PhpValue], frame: Frame) -> PhpValue:
    match callee:
        case PhpFn():
            return call_phpfn(callee, args)
        case BuiltinFunction(name=name, fn=fn, arity=arity):
            if arity is not None:
                expect_arity(f"{name}()", args, arity)
            return ensure_php_value(fn(frame, args))
        case _:
            raise PhpNotCallable(f"{type_name(callee)} value is not callable")

def call_phpfn(fn: PhpFn, args: List[PhpValue]) -> PhpValue:
    """
    Call a user function:
    - arity must lie between the count of parameters without defaults and the total
    - arguments bind in a fresh frame chained to the defining frame
    - missing trailing arguments take their defaults, evaluated in that frame
    - the body's last value is the result
    """
    from .evaluator import eval_node  # local import to avoid cycle
    from .eval.blocks import eval_program

    label = f"{fn.name or '{closure}'}()"
    total = len(fn.params)
    required = fn.required

    if not required <= len(args) <= total:
        expected = str(total) if required == total else f"{required} to {total}"
        raise PhpArityError(f"{label} expects {expected} argument(s); got {len(args)}")

    host = fn.frame.host
    host.enter_call(label)

    try:
        callee_frame = Frame(parent=fn.frame, function_scope=True)

        for idx, param in enumerate(fn.params):
            if idx < len(args):
                callee_frame.define(param.name, args[idx])
            else:
                callee_frame.define(param.name, eval_node(param.default, callee_frame))

        return ensure_php_value(eval_program(fn.body.children, callee_frame, eval_node))
    finally:
        host.leave_call()
