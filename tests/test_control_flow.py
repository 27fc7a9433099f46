from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import PhpNameError, PhpTypeError, run_output, run_runtime_case

SCENARIOS = [
    pytest.param("if 1 { 10 } else { 20 }", ("int", 10), None, id="if-true-branch"),
    pytest.param("if 0 { 10 } else { 20 }", ("int", 20), None, id="if-false-branch"),
    pytest.param("if 0 { 10 }", ("void", None), None, id="if-without-else-is-void"),
    pytest.param('if "" { 1 } else { 2 }', ("int", 2), None, id="empty-string-falsy"),
    pytest.param('if "0" { 1 } else { 2 }', ("int", 1), None, id="nonempty-string-truthy"),
    pytest.param("if [] { 1 } else { 2 }", ("int", 2), None, id="empty-array-falsy"),
    pytest.param("if [0] { 1 } else { 2 }", ("int", 1), None, id="nonempty-array-truthy"),
    pytest.param("if -1 { 1 } else { 2 }", ("int", 1), None, id="negative-int-truthy"),
    pytest.param("if println { 1 } else { 2 }", ("int", 1), None, id="function-truthy"),
    pytest.param(
        dedent(
            """\
            function nothing() { }
            if nothing() { 1 } else { 2 }
            """
        ),
        ("int", 2),
        None,
        id="void-falsy",
    ),
    pytest.param(
        dedent(
            """\
            $n = 15
            if $n % 15 == 0 { "FizzBuzz" } else if $n % 3 == 0 { "Fizz" } else { "other" }
            """
        ),
        ("string", "FizzBuzz"),
        None,
        id="else-if-first-match",
    ),
    pytest.param(
        dedent(
            """\
            $n = 7
            if $n < 0 { "neg" } else if $n == 0 { "zero" } else { "pos" }
            """
        ),
        ("string", "pos"),
        None,
        id="else-if-falls-through",
    ),
    pytest.param(
        dedent(
            """\
            $label = if 2 > 1 { "yes" } else { "no" }
            $label
            """
        ),
        ("string", "yes"),
        None,
        id="if-as-value",
    ),
    pytest.param(
        dedent(
            """\
            $x = 1
            if 1 { $x = 2 }
            $x
            """
        ),
        ("int", 2),
        None,
        id="branch-updates-outer-binding",
    ),
    pytest.param(
        dedent(
            """\
            if 1 { $inner = 2 }
            $inner
            """
        ),
        None,
        PhpNameError,
        id="branch-scope-discarded",
    ),
    pytest.param(
        dedent(
            """\
            {
                $hidden = 1
            }
            $hidden
            """
        ),
        None,
        PhpNameError,
        id="bare-block-scope",
    ),
    pytest.param("{ 1; 2; 3 }", ("int", 3), None, id="bare-block-value"),
    pytest.param("{ }", ("void", None), None, id="empty-block-void"),
    pytest.param(
        "if 1 { } else { 2 }",
        ("void", None),
        None,
        id="empty-taken-branch-void",
    ),
    pytest.param(
        "if $undefined { 1 }",
        None,
        PhpNameError,
        id="condition-errors-propagate",
    ),
    pytest.param(
        'if 1 { 1 + "a" }',
        None,
        PhpTypeError,
        id="branch-errors-propagate",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_control_flow(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_only_one_branch_runs() -> None:
    source = dedent(
        """\
        if 1 { println("then") } else { println("else") }
        if 0 { println("then") } else { println("else") }
        """
    )

    assert run_output(source) == "then\nelse\n"


def test_fizzbuzz_truthy_remainder_differs_from_explicit_compare() -> None:
    body_truthy = dedent(
        """\
        function fb(int $n) {
            if $n % 3 { print("Fizz") }
            if $n % 5 { print("Buzz") }
            println()
        }
        foreach [0, 1, 2, 3] as $v { fb($v) }
        """
    )
    body_compare = body_truthy.replace("$n % 3 {", "$n % 3 == 0 {").replace(
        "$n % 5 {", "$n % 5 == 0 {"
    )

    assert run_output(body_truthy) == "\nFizzBuzz\nFizzBuzz\nBuzz\n"
    assert run_output(body_compare) == "FizzBuzz\n\n\nFizz\n"
