from pathlib import Path

import pytest

from fixie.errors import ScriptNotFoundError
from fixie.script import FunctionDecl, Script, parse_function_header, parse_functions

SCRIPT = """\
// free-form comment outside any function
func alpha() {
    echo one
      echo  two  spaced
}

func beta() {
  if [ -d /tmp ]; then
    echo dir
  fi
  echo after
}

func gamma() {
}
"""


def test_parse_returns_declarations_in_source_order() -> None:
    functions = parse_functions(SCRIPT)

    assert [decl.name for decl in functions] == ["alpha", "beta", "gamma"]
    assert functions[0].body == ("    echo one", "      echo  two  spaced")
    assert functions[0].body_lines == ["echo one", "echo  two  spaced"]
    assert functions[2].body == ()


def test_nested_braces_do_not_end_function_early() -> None:
    source = "func nested() {\n  for x in a b; do { echo $x; }; done\n  f() {\n    echo inner\n  }\n  echo tail\n}\n"

    (decl,) = parse_functions(source)

    assert decl.body_lines == ["for x in a b; do { echo $x; }; done", "f() {", "echo inner", "}", "echo tail"]


def test_braces_inside_strings_are_counted() -> None:
    source = 'func quoted() {\n  echo "}"\n  echo unreachable\n}\n'

    (decl,) = parse_functions(source)

    assert decl.body == ()


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("func foo() {", "foo"),
        ("   func foo()   {   ", "foo"),
        ("func foo(){", "foo"),
        ("func ns::foo() {", "ns::foo"),
        ("func foo(bar) {", None),
        ("func foo {", None),
        ("function foo() {", None),
        ("func foo()", None),
        ("echo func foo() {", None),
    ],
)
def test_parse_function_header(line: str, expected: str | None) -> None:
    assert parse_function_header(line) == expected


def test_header_with_parameters_is_not_a_function() -> None:
    source = "func takes(x) {\n  echo no\n}\nfunc plain() {\n  echo yes\n}\n"

    assert [decl.name for decl in parse_functions(source)] == ["plain"]


def test_unterminated_function_is_dropped() -> None:
    assert parse_functions("func open() {\n  echo never closed\n") == []


def test_extra_closing_brace_does_not_end_function() -> None:
    source = 'func a() {\n  echo "}}"\n  echo still-a\n}\nfunc b() {\n  echo b\n}\n'

    assert parse_functions(source) == []


def test_lookup_returns_first_match() -> None:
    script = Script("func dup() {\n  echo first\n}\nfunc dup() {\n  echo second\n}\n")

    decl = script.function("dup")

    assert decl == FunctionDecl(name="dup", body=("  echo first",))
    assert script.function("missing") is None


def test_lookup_with_namespace() -> None:
    script = Script("func build() {\n  echo plain\n}\nfunc web::build() {\n  echo web\n}\n")

    assert script.function("build").body_lines == ["echo plain"]
    assert script.function("build", namespace="web").body_lines == ["echo web"]
    assert script.function("build", namespace="api") is None


def test_function_names_in_source_order() -> None:
    assert Script(SCRIPT).function_names == ["alpha", "beta", "gamma"]


def test_from_path_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "list"
    path.write_text(SCRIPT, encoding="utf-8")

    assert Script.from_path(path).function_names == ["alpha", "beta", "gamma"]


def test_from_path_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ScriptNotFoundError) as exc_info:
        Script.from_path(tmp_path / "missing")

    assert "Script not found at" in str(exc_info.value)
