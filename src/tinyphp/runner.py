from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from .evaluator import evaluate, execute_program
from .lexer_rd import LexError
from .parser_rd import ParseError, parse_source
from .runtime import Frame, PhpRuntimeError, PhpValue, new_global_frame
from .tree import tree_label
from .utils import debug_py_trace_enabled

ScriptError = Union[LexError, ParseError, PhpRuntimeError]

USAGE = "usage: tinyphp [--ast] FILE|- [ARGS...]\n       tinyphp repl"

# Statements whose value the REPL does not echo
_STATEMENT_LABELS = {'fn_decl', 'foreach', 'namespace_decl', 'use_decl'}

def run(src: str, argv: Optional[List[str]]=None, out: Any=None, frame: Optional[Frame]=None) -> PhpValue:
    """Parse and evaluate `src`, returning the value of its last statement."""
    program = parse_source(src)

    if frame is None:
        frame = new_global_frame(out=out, argv=argv)

    return execute_program(program, frame)

def repl_eval(text: str, frame: Frame) -> Tuple[PhpValue, bool]:
    """Evaluate one REPL entry in a persistent frame; returns (value, is_statement)."""
    program = parse_source(text)
    value = execute_program(program, frame)

    last = program.children[-1] if program.children else None
    is_stmt = last is None or tree_label(last) in _STATEMENT_LABELS

    return value, is_stmt

def error_kind(exc: ScriptError) -> str:
    if isinstance(exc, PhpRuntimeError):
        return exc.kind

    return type(exc).__name__

def format_diagnostic(exc: ScriptError, source: str, filename: str="<stdin>") -> str:
    """
    Render an error as:

        <Kind>: <message> in <file>:<line>:<col>
            <source line>
            ^
    """
    head = f"{error_kind(exc)}: {exc.message}"
    line, column = exc.line, exc.column

    if line is None:
        return head

    col = column or 1
    out = [f"{head} in {filename}:{line}:{col}"]
    lines = source.splitlines()

    if 1 <= line <= len(lines):
        text = lines[line - 1]
        # keep tabs so the caret lines up under the same column
        pad = "".join(ch if ch == "\t" else " " for ch in text[:col - 1])
        out.append(f"    {text}")
        out.append(f"    {pad}^")

    return "\n".join(out)

def report_error(exc: ScriptError, source: str, filename: str, err: Any=None) -> None:
    err = err if err is not None else sys.stderr
    print(format_diagnostic(exc, source, filename), file=err)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=err)
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=err)

def execute(src: str, argv: Optional[List[str]]=None, out: Any=None, err: Any=None, filename: str="<stdin>") -> int:
    """Run a script end to end; diagnostics go to `err`, the exit status is returned."""
    try:
        program = parse_source(src)
        return evaluate(program, out=out, argv=argv)
    except (LexError, ParseError, PhpRuntimeError) as exc:
        report_error(exc, src, filename, err)
        return 1

def _load_source(arg: str) -> str:
    """
    Resolve CLI input into source text.
    - "-" => read stdin.
    - Otherwise the argument is a path.
    """
    if arg == "-":
        return sys.stdin.read()

    return Path(arg).read_text(encoding="utf-8")

def main(argv: Optional[List[str]]=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    show_ast = False

    if args and args[0] == "repl":
        from .repl import repl
        repl()
        return 0

    while args and args[0].startswith("--"):
        flag = args.pop(0)

        if flag == "--":
            break
        if flag == "--ast":
            show_ast = True
            continue
        if flag == "--help":
            print(USAGE)
            return 0

        print(f"tinyphp: unknown option {flag}\n{USAGE}", file=sys.stderr)
        return 2

    if not args:
        print(USAGE, file=sys.stderr)
        return 2

    path, *script_args = args
    filename = "<stdin>" if path == "-" else path

    try:
        source = _load_source(path)
    except OSError as exc:
        print(f"tinyphp: cannot read {path}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    if show_ast:
        try:
            print(parse_source(source).pretty(), end="")
        except (LexError, ParseError) as exc:
            report_error(exc, source, filename)
            return 1
        return 0

    return execute(source, argv=script_args, filename=filename)

if __name__ == "__main__":
    sys.exit(main())
