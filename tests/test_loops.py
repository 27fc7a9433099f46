from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import PhpNameError, PhpTypeError, run_output, run_runtime_case

SCENARIOS = [
    pytest.param("0..3", ("array", [0, 1, 2]), None, id="range-end-exclusive"),
    pytest.param("3..0", ("array", [3, 2, 1]), None, id="range-counts-down"),
    pytest.param("2..2", ("array", []), None, id="range-empty"),
    pytest.param("-2..1", ("array", [-2, -1, 0]), None, id="range-negative-start"),
    pytest.param("$n = 2\n0..$n + 1", ("array", [0, 1, 2]), None, id="range-expression-bound"),
    pytest.param('0.."3"', None, PhpTypeError, id="range-string-bound"),
    pytest.param(
        dedent(
            """\
            $sum = 0
            foreach 1..5 as $i { $sum = $sum + $i }
            $sum
            """
        ),
        ("int", 10),
        None,
        id="foreach-range-accumulates",
    ),
    pytest.param(
        dedent(
            """\
            $keys = ""
            foreach ["a", "b", "c"] as $k => $v { $keys = $keys . $k . $v }
            $keys
            """
        ),
        ("string", "0a1b2c"),
        None,
        id="foreach-key-is-position",
    ),
    pytest.param(
        dedent(
            """\
            $keys = ""
            foreach 5..8 as $k => $v { $keys = $keys . $k }
            $keys
            """
        ),
        ("string", "012"),
        None,
        id="foreach-range-key-is-ordinal",
    ),
    pytest.param(
        "foreach [1, 2] as $v { $v }",
        ("void", None),
        None,
        id="foreach-is-void",
    ),
    pytest.param(
        dedent(
            """\
            foreach [1] as $v { }
            $v
            """
        ),
        None,
        PhpNameError,
        id="loop-variable-scoped-to-body",
    ),
    pytest.param(
        dedent(
            """\
            foreach [1, 2] as $v { $last = $v }
            $last
            """
        ),
        None,
        PhpNameError,
        id="body-locals-scoped-to-iteration",
    ),
    pytest.param(
        dedent(
            """\
            $v = "outer"
            foreach [1, 2] as $v { }
            $v
            """
        ),
        ("string", "outer"),
        None,
        id="loop-variable-shadows-outer",
    ),
    pytest.param(
        dedent(
            """\
            $xs = [1, 2, 3]
            foreach $xs as $x { $xs->append($x) }
            $xs->length()
            """
        ),
        ("int", 6),
        None,
        id="append-during-iteration-snapshot",
    ),
    pytest.param(
        dedent(
            """\
            $total = 0
            foreach [[1, 2], [3]] as $row {
                foreach $row as $x { $total = $total + $x }
            }
            $total
            """
        ),
        ("int", 6),
        None,
        id="nested-loops",
    ),
    pytest.param(
        dedent(
            """\
            $fns = []
            foreach 0..3 as $i { $fns->append(function() { $i }) }
            $fns[0]() . $fns[1]() . $fns[2]()
            """
        ),
        ("string", "012"),
        None,
        id="closures-capture-per-iteration-binding",
    ),
    pytest.param(
        "foreach 5 as $x { }",
        None,
        PhpTypeError,
        id="foreach-over-int",
    ),
    pytest.param(
        'foreach "abc" as $x { }',
        None,
        PhpTypeError,
        id="foreach-over-string",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_loops(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_foreach_parenthesized_header() -> None:
    source = dedent(
        """\
        foreach ( [10, 20] as $k => $v ) { println($k, $v) }
        foreach (0..2 as $i) { println($i) }
        """
    )

    assert run_output(source) == "0 10\n1 20\n0\n1\n"


def test_foreach_parenthesized_iterable_only() -> None:
    source = dedent(
        """\
        function items() { ["x", "y"] }
        foreach (items()) as $item { print($item) }
        """
    )

    assert run_output(source) == "xy"


def test_large_range_streams() -> None:
    source = dedent(
        """\
        $count = 0
        foreach 0..100000 as $i { $count = $count + 1 }
        println($count)
        """
    )

    assert run_output(source) == "100000\n"
