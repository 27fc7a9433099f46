from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import PhpArityError, PhpNameError, run_output, run_runtime_case

SCENARIOS = [
    pytest.param("$x = 5\n$x", ("int", 5), None, id="assign-then-read"),
    pytest.param("$x = $y = 3\n$x + $y", ("int", 6), None, id="chained-assignment"),
    pytest.param("($x = 4) * 2", ("int", 8), None, id="assignment-is-expression"),
    pytest.param("$missing", None, PhpNameError, id="undefined-variable"),
    pytest.param(
        dedent(
            """\
            $x = 0
            function f($n) { $x = $n; if $n > 0 { f($n - 1) }; $x }
            f(3) . "/" . $x
            """
        ),
        ("string", "3/0"),
        None,
        id="recursive-calls-keep-own-locals",
    ),
    pytest.param(
        dedent(
            """\
            $counter = 0
            function bump() { $counter = $counter + 1 }
            bump()
            bump() . "/" . $counter
            """
        ),
        ("string", "1/0"),
        None,
        id="function-assignment-shadows-global",
    ),
    pytest.param(
        dedent(
            """\
            function total($xs) {
                $sum = 0
                foreach $xs as $x { if $x > 0 { $sum = $sum + $x } }
                $sum
            }
            total([1, -2, 3])
            """
        ),
        ("int", 4),
        None,
        id="nested-blocks-rebind-function-local",
    ),
    pytest.param(
        dedent(
            """\
            function make() { $local = 1 }
            make()
            $local
            """
        ),
        None,
        PhpNameError,
        id="function-locals-stay-local",
    ),
    pytest.param(
        dedent(
            """\
            $n = 10
            function shadow($n) { $n = $n + 1; $n }
            shadow(1) . "/" . $n
            """
        ),
        ("string", "2/10"),
        None,
        id="parameter-shadows-global",
    ),
    pytest.param(
        dedent(
            """\
            {
                function hidden() { 1 }
                hidden()
            }
            """
        ),
        ("int", 1),
        None,
        id="block-function-visible-inside",
    ),
    pytest.param(
        dedent(
            """\
            { function hidden() { 1 } }
            hidden()
            """
        ),
        None,
        PhpNameError,
        id="block-function-hidden-outside",
    ),
    pytest.param(
        dedent(
            """\
            function outer() {
                function helper() { "inner" }
                helper()
            }
            outer()
            """
        ),
        ("string", "inner"),
        None,
        id="nested-declaration",
    ),
    pytest.param(
        dedent(
            """\
            function outer() { function helper() { 1 } }
            outer()
            helper()
            """
        ),
        None,
        PhpNameError,
        id="nested-declaration-not-global",
    ),
    pytest.param(
        dedent(
            """\
            namespace app\\util
            function twice($n) { $n * 2 }
            twice(2) + app\\util\\twice(3) + \\app\\util\\twice(4)
            """
        ),
        ("int", 18),
        None,
        id="namespace-qualified-names",
    ),
    pytest.param(
        dedent(
            """\
            namespace lib
            function greet($who) { "hi " . $who }
            use lib\\greet as hello
            hello("ann")
            """
        ),
        ("string", "hi ann"),
        None,
        id="use-alias-function",
    ),
    pytest.param(
        dedent(
            """\
            namespace lib
            function greet($who) { "hi " . $who }
            use lib as l
            l\\greet("bo")
            """
        ),
        ("string", "hi bo"),
        None,
        id="use-alias-prefix",
    ),
    pytest.param(
        "os\\args()",
        ("array", []),
        None,
        id="qualified-builtin",
    ),
    pytest.param(
        "use os as system\nsystem\\args()",
        ("array", []),
        None,
        id="aliased-builtin-namespace",
    ),
    pytest.param(
        "\\println",
        ("function", None),
        None,
        id="fully-qualified-builtin-value",
    ),
    pytest.param(
        "use os\\args as argv\nargv()->length()",
        ("int", 0),
        None,
        id="aliased-builtin-function",
    ),
    pytest.param("$r = math\\random()\n$r >= 0", ("int", 1), None, id="math-random-non-negative"),
    pytest.param("use math\\random as rnd\nrnd() <= 9223372036854775807", ("int", 1), None, id="aliased-math-random"),
    pytest.param("math\\random(1)", None, PhpArityError, id="math-random-takes-no-args"),
    pytest.param(
        "nope\\thing()",
        None,
        PhpNameError,
        id="undefined-qualified-name",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_scoping(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_args_exposes_script_arguments() -> None:
    source = dedent(
        """\
        use os\\args
        foreach args() as $i => $arg { println($i, $arg) }
        println(args()->length())
        """
    )

    assert run_output(source, argv=["one", "two"]) == "0 one\n1 two\n2\n"


def test_args_array_is_fresh_per_call() -> None:
    source = dedent(
        """\
        $a = args()
        $a->append("extra")
        println(args()->length(), $a->length())
        """
    )

    assert run_output(source, argv=["x"]) == "1 2\n"


def test_undefined_variable_message() -> None:
    with pytest.raises(PhpNameError) as exc_info:
        run_output("$ghost + 1")

    assert "Undefined variable '$ghost'" in str(exc_info.value)
