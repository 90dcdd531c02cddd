"""Type expression parser tests."""

from __future__ import annotations

import pytest
from opencli_spec_builder.type_descriptors import (
    NamedExpression,
    TupleExpression,
    TypeExpressionError,
    parse_type_expression,
)


def test_parses_nested_generics() -> None:
    expression = parse_type_expression("HashMap<String, Vec<Option<User>>>")

    assert expression == NamedExpression(
        "HashMap",
        (
            NamedExpression("String"),
            NamedExpression("Vec", (NamedExpression("Option", (NamedExpression("User"),)),)),
        ),
    )
    assert str(expression) == "HashMap<String, Vec<Option<User>>>"


def test_parses_qualified_paths_and_tuples() -> None:
    assert parse_type_expression("app::models::User") == NamedExpression("app::models::User")
    assert parse_type_expression("billing.Invoice") == NamedExpression("billing.Invoice")
    assert parse_type_expression(" (f64, f64,) ") == TupleExpression(
        (NamedExpression("f64"), NamedExpression("f64"))
    )
    assert parse_type_expression("()") == TupleExpression(())


def test_identifiers_may_contain_hyphens() -> None:
    assert parse_type_expression("date-time") == NamedExpression("date-time")


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("", "non-empty string"),
        ("Vec<", "Expected a type name or '\\(' but found end of expression"),
        ("Vec<String", "Expected '>' but found end of expression"),
        ("User>", "Expected end of expression but found '>'"),
        ("app::", "Expected a path segment"),
        ("(f64 f64)", "Expected ',' or '\\)'"),
        ("User$", "Unexpected character '\\$'"),
    ],
)
def test_rejects_malformed_expressions(text: str, message: str) -> None:
    with pytest.raises(TypeExpressionError, match=message):
        parse_type_expression(text)
