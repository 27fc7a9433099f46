from __future__ import annotations

import io

import pytest

from tinyphp.repl import _normalize, bracket_depth, handle_slash, needs_continuation
from tinyphp.repl_highlight import GROUP_STYLE, _highlight_line
from tinyphp.runtime import new_global_frame
from tinyphp.utils import debug_py_trace_enabled


@pytest.mark.parametrize(
    "text, depth",
    [
        pytest.param("$x = 1", 0, id="flat"),
        pytest.param("function f() {", 1, id="open-brace"),
        pytest.param("[1, (2", 2, id="mixed-open"),
        pytest.param("foreach $xs as $x {\n  if $x {", 2, id="nested-lines"),
        pytest.param('"{ ( ["', 0, id="brackets-in-string"),
        pytest.param("// {", 0, id="brackets-in-comment"),
        pytest.param("}", 0, id="stray-close-clamped"),
        pytest.param('"unterminated {', 0, id="lex-error"),
    ],
)
def test_bracket_depth(text: str, depth: int) -> None:
    assert bracket_depth(text) == depth


def test_needs_continuation() -> None:
    assert needs_continuation("function f() {")
    assert not needs_continuation("function f() { 1 }")


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("\u200b$x\u00a0 = 1\r") == "$x = 1"


def test_slash_ignores_code() -> None:
    box = [new_global_frame(out=io.StringIO())]

    assert handle_slash("$x = 1", box) is False


def test_slash_reset_replaces_frame(capsys) -> None:
    original = new_global_frame(out=io.StringIO())
    box = [original]

    assert handle_slash("/reset", box)
    assert box[0] is not original
    assert "Environment reset." in capsys.readouterr().out


def test_slash_py_traceback(monkeypatch, capsys) -> None:
    monkeypatch.setenv("TINYPHP_DEBUG_PY_TRACE", "0")
    box = [new_global_frame(out=io.StringIO())]

    assert handle_slash("/py-traceback on", box)
    assert debug_py_trace_enabled()

    assert handle_slash("/py-traceback", box)
    assert not debug_py_trace_enabled()

    assert handle_slash("/py-traceback", box)
    assert debug_py_trace_enabled()

    assert handle_slash("/py-traceback off", box)
    assert not debug_py_trace_enabled()

    out = capsys.readouterr().out
    assert out.splitlines() == [
        "Python traceback: on",
        "Python traceback: off",
        "Python traceback: on",
        "Python traceback: off",
    ]


def test_slash_usage_and_unknown(capsys) -> None:
    box = [new_global_frame(out=io.StringIO())]

    assert handle_slash("/py-traceback maybe", box)
    assert handle_slash("/frobnicate", box)

    err = capsys.readouterr().err
    assert "Usage: /py-traceback [on|off]" in err
    assert "Unknown command: /frobnicate" in err


def test_highlight_preserves_text() -> None:
    line = '$x = "a\\"b" . 1 // note'
    fragments = _highlight_line(line)

    assert "".join(text for _, text in fragments) == line
    assert (GROUP_STYLE["string"], '"a\\"b"') in fragments
    assert (GROUP_STYLE["number"], "1") in fragments
    assert (GROUP_STYLE["variable"], "x") in fragments


def test_highlight_groups() -> None:
    fragments = _highlight_line("function greet($who) { println($who) }")

    assert (GROUP_STYLE["keyword"], "function") in fragments
    assert (GROUP_STYLE["function"], "greet") in fragments
    assert (GROUP_STYLE["builtin"], "println") in fragments


def test_highlight_falls_back_on_lex_error() -> None:
    assert _highlight_line('"open') == [("", '"open')]
    assert _highlight_line("") == [("", "")]
