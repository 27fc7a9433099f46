from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar
from typing_extensions import Protocol, TypeAlias, TypeGuard
from .tree import Node

# ---------- Value Model ----------

@dataclass
class PhpVoid:
    def __repr__(self) -> str:
        return "void"

@dataclass
class PhpInt:
    value: int
    def __repr__(self) -> str:
        return str(self.value)

@dataclass
class PhpString:
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(eq=False)
class PhpArray:
    """Array with reference semantics: every binding shares `items`."""
    items: List['PhpValue']
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.items) + "]"

@dataclass
class Param:
    name: str
    type_name: Optional[str] = None
    default: Optional[Node] = None

@dataclass(eq=False)
class PhpFn:
    params: List[Param]
    body: Node          # block tree
    frame: 'Frame'      # closure frame
    name: Optional[str] = None

    @property
    def required(self) -> int:
        return sum(1 for p in self.params if p.default is None)

    def __repr__(self) -> str:
        label = self.name or "{closure}"
        return f"<function {label}({', '.join('$' + p.name for p in self.params)})>"

BuiltinFn = Callable[['Frame', List['PhpValue']], 'PhpValue']

@dataclass(frozen=True)
class BuiltinFunction:
    name: str
    fn: BuiltinFn
    arity: Optional[int] = None  # None: the builtin validates its own args

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"

PhpValue: TypeAlias = (
    PhpVoid
    | PhpInt
    | PhpString
    | PhpArray
    | PhpFn
    | BuiltinFunction
)

def type_name(value: Any) -> str:
    match value:
        case PhpInt():
            return "Int"
        case PhpString():
            return "Str"
        case PhpArray():
            return "Array"
        case PhpFn() | BuiltinFunction():
            return "Func"
        case PhpVoid():
            return "Void"
        case _:
            return type(value).__name__

# ---------- Host / Environment ----------

class Host:
    """Per-run state shared by every frame: output sink, argv, namespace and call depth."""

    def __init__(self, out: Any, argv: Optional[List[str]] = None, max_depth: int = 1000):
        self.out = out
        self.argv: List[str] = list(argv or [])
        self.namespace = ""
        self.uses: Dict[str, str] = {}
        self.depth = 0
        self.max_depth = max_depth

    def write(self, text: str) -> None:
        try:
            self.out.write(text)
        except OSError as exc:
            raise PhpOutputError(f"Failed to write output: {exc.strerror or exc}") from exc

    def enter_call(self, label: str) -> None:
        if self.depth >= self.max_depth:
            raise PhpStackOverflow(f"Maximum call depth of {self.max_depth} exceeded in {label}")
        self.depth += 1

    def leave_call(self) -> None:
        self.depth -= 1

class Frame:
    def __init__(self, parent: Optional['Frame']=None, host: Optional[Host]=None, function_scope: bool=False):
        self.parent = parent
        # assignment never rebinds past a call frame
        self.function_scope = function_scope or parent is None
        self.vars: Dict[str, PhpValue] = {}
        self.funcs: Dict[str, PhpFn] = {}

        if host is not None:
            self.host = host
        elif parent is not None:
            self.host = parent.host
        else:
            raise ValueError("Root frame requires a host")

    def define(self, name: str, val: PhpValue) -> None:
        self.vars[name] = val

    def lookup(self, name: str) -> Optional['Frame']:
        cur: Optional[Frame] = self

        while cur is not None:
            if name in cur.vars:
                return cur
            cur = cur.parent

        return None

    def get(self, name: str) -> PhpValue:
        owner = self.lookup(name)

        if owner is None:
            raise PhpNameError(f"Undefined variable '${name}'")

        return owner.vars[name]

    def assign(self, name: str, val: PhpValue) -> None:
        """Rebind the nearest `$name` inside the current function scope, else define it here."""
        cur: Optional[Frame] = self

        while cur is not None:
            if name in cur.vars:
                cur.vars[name] = val
                return
            if cur.function_scope:
                break
            cur = cur.parent

        self.vars[name] = val

    def define_fn(self, name: str, fn: PhpFn) -> None:
        self.funcs[name] = fn

    def get_fn(self, name: str) -> Optional[PhpFn]:
        cur: Optional[Frame] = self

        while cur is not None:
            fn = cur.funcs.get(name)
            if fn is not None:
                return fn
            cur = cur.parent

        return None

# ---------- Exceptions ----------

class PhpRuntimeError(Exception):
    kind = "RuntimeError"
    php_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.php_meta = None

    @property
    def line(self) -> Optional[int]:
        return getattr(self.php_meta, "line", None)

    @property
    def column(self) -> Optional[int]:
        return getattr(self.php_meta, "column", None)

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = self.message

        if self.line is None:
            return msg

        if self.column is None:
            return f"{msg} (line {self.line})"

        return f"{msg} (line {self.line}, col {self.column})"

class PhpNameError(PhpRuntimeError):
    kind = "UndefinedName"

class PhpNotCallable(PhpRuntimeError):
    kind = "NotCallable"

class PhpArityError(PhpRuntimeError):
    kind = "ArityError"

class PhpMethodNotFound(PhpRuntimeError):
    kind = "MethodNotFound"

    def __init__(self, recv: PhpValue, name: str):
        super().__init__(f"{type_name(recv)} has no method '{name}'")
        self.receiver = recv
        self.name = name

class PhpZeroDivisionError(PhpRuntimeError):
    kind = "DivisionByZero"

class PhpTypeError(PhpRuntimeError):
    kind = "TypeError"

class PhpIndexError(PhpRuntimeError):
    kind = "IndexError"

    def __init__(self, message: str = "Index out of range"):
        super().__init__(message)

class PhpStackOverflow(PhpRuntimeError):
    kind = "StackOverflow"

class PhpOutputError(PhpRuntimeError):
    kind = "OutputError"

class PhpExitSignal(Exception):
    """Internal control flow for `exit()`."""
    def __init__(self, code: int):
        super().__init__(code)
        self.code = code

_PHP_VALUE_TYPES: Tuple[type, ...] = (
    PhpVoid,
    PhpInt,
    PhpString,
    PhpArray,
    PhpFn,
    BuiltinFunction,
)

def is_php_value(value: Any) -> TypeGuard[PhpValue]:
    return isinstance(value, _PHP_VALUE_TYPES)

def ensure_php_value(value: Any) -> PhpValue:
    if value is None:
        return PhpVoid()
    if is_php_value(value):
        return value
    raise PhpTypeError(f"Unexpected value type {type(value).__name__}")

R_contra = TypeVar("R_contra", bound="PhpValue", contravariant=True)

class Method(Protocol[R_contra]):
    def __call__(self, frame: 'Frame', recv: R_contra, args: List['PhpValue']) -> 'PhpValue': ...

MethodRegistry = Dict[str, Method[Any]]

class Builtins:
    array_methods: MethodRegistry = {}
    string_methods: MethodRegistry = {}
    functions: Dict[str, BuiltinFunction] = {}
