"""Type expression parsing.

Grammar::

    type    := tuple | named
    tuple   := "(" [type ("," type)* [","]] ")"
    named   := IDENT (("::" | ".") IDENT)* ["<" type ("," type)* ">"]
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_TOKEN_PATTERN = re.compile(
    r"\s*(?:(?P<ident>[A-Za-z_][A-Za-z0-9_\-]*)|(?P<path>::)|(?P<punct>[<>(),.]))"
)


class TypeExpressionError(ValueError):
    """Raised when a type expression cannot be parsed."""


@dataclass(frozen=True)
class NamedExpression:
    """Possibly generic named type such as ``Page<User>``."""

    name: str
    arguments: tuple[TypeExpression, ...] = ()

    def __str__(self) -> str:
        if not self.arguments:
            return self.name
        return f"{self.name}<{', '.join(str(argument) for argument in self.arguments)}>"


@dataclass(frozen=True)
class TupleExpression:
    """Positional tuple such as ``(f64, f64)``."""

    elements: tuple[TypeExpression, ...]

    def __str__(self) -> str:
        return f"({', '.join(str(element) for element in self.elements)})"


TypeExpression = NamedExpression | TupleExpression


def parse_type_expression(text: str) -> TypeExpression:
    """Parse text into a type expression tree."""
    if not isinstance(text, str) or not text.strip():
        raise TypeExpressionError("Type expression must be a non-empty string.")
    parser = _Parser(text, _tokenize(text))
    expression = parser.parse_type()
    parser.expect_end()
    return expression


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    position = 0
    stripped_end = len(text.rstrip())
    while position < stripped_end:
        match = _TOKEN_PATTERN.match(text, position)
        if match is None or match.end() == position:
            raise TypeExpressionError(
                f"Unexpected character {text[position]!r} at {position} in '{text}'"
            )
        tokens.append(match.group(match.lastgroup or "punct"))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str, tokens: list[str]) -> None:
        self._text = text
        self._tokens = tokens
        self._index = 0

    def parse_type(self) -> TypeExpression:
        token = self._peek()
        if token == "(":
            return self._parse_tuple()
        if token is None or not _is_identifier(token):
            raise self._error("a type name or '('")
        return self._parse_named()

    def expect_end(self) -> None:
        if self._peek() is not None:
            raise self._error("end of expression")

    def _parse_named(self) -> NamedExpression:
        segments = [self._advance()]
        separators: list[str] = []
        while self._peek() in ("::", "."):
            separators.append(self._advance())
            token = self._peek()
            if token is None or not _is_identifier(token):
                raise self._error("a path segment")
            segments.append(self._advance())
        name = segments[0] + "".join(
            separator + segment for separator, segment in zip(separators, segments[1:])
        )
        if self._peek() != "<":
            return NamedExpression(name)
        self._advance()
        arguments = [self.parse_type()]
        while self._peek() == ",":
            self._advance()
            arguments.append(self.parse_type())
        self._expect(">")
        return NamedExpression(name, tuple(arguments))

    def _parse_tuple(self) -> TupleExpression:
        self._expect("(")
        elements: list[TypeExpression] = []
        while self._peek() != ")":
            elements.append(self.parse_type())
            if self._peek() == ",":
                self._advance()
            elif self._peek() != ")":
                raise self._error("',' or ')'")
        self._expect(")")
        return TupleExpression(tuple(elements))

    def _peek(self) -> str | None:
        return self._tokens[self._index] if self._index < len(self._tokens) else None

    def _advance(self) -> str:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _expect(self, token: str) -> None:
        if self._peek() != token:
            raise self._error(f"'{token}'")
        self._advance()

    def _error(self, expected: str) -> TypeExpressionError:
        found = self._peek()
        found_text = "end of expression" if found is None else f"'{found}'"
        return TypeExpressionError(f"Expected {expected} but found {found_text} in '{self._text}'")


def _is_identifier(token: str) -> bool:
    return bool(token) and (token[0].isalpha() or token[0] == "_")
