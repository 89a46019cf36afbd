"""Arithmetic expressions that map device properties onto model attributes."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Union

from edgekit.dmcontext.format import UnsupportedValueTypeError, parse_value_to_float64

__all__ = [
    "MAPPING_NONE",
    "MAPPING_VALUE",
    "MAPPING_CALCULATE",
    "ExpressionError",
    "UnknownMappingTypeError",
    "parse_expression",
    "exec_expression",
    "exec_expression_with_precision",
    "solve_expression",
]

MAPPING_NONE = "none"
MAPPING_VALUE = "value"
MAPPING_CALCULATE = "calculate"


class ExpressionError(ValueError):
    """An expression is malformed or cannot be evaluated or solved."""


class UnknownMappingTypeError(ValueError):
    """The mapping type is not one of none, value or calculate."""

    def __init__(self, message: str = "unknown mapping type") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------
# syntax tree


@dataclass(frozen=True)
class _Ident:
    name: str


@dataclass(frozen=True)
class _Number:
    text: str


@dataclass(frozen=True)
class _Paren:
    inner: "_Node"


@dataclass(frozen=True)
class _Unary:
    op: str
    operand: "_Node"


@dataclass(frozen=True)
class _Binary:
    op: str
    left: "_Node"
    right: "_Node"


_Node = Union[_Ident, _Number, _Paren, _Unary, _Binary]


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str


_TOKENS = re.compile(
    r"(?P<num>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>\+\+|--|[-+*/%()])"
    r"|(?P<ws>\s+)"
    r"|(?P<bad>.)",
    re.DOTALL,
)

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "%": 2}


def _tokenize(text: str) -> list[_Token]:
    tokens = []
    for match in _TOKENS.finditer(text):
        kind = match.lastgroup
        value = match.group()
        if kind == "ws":
            continue
        if kind == "bad":
            raise ExpressionError(f"illegal character {value!r} in expression")
        if value in ("++", "--"):
            raise ExpressionError(f"unexpected {value!r} in expression")
        tokens.append(_Token(kind, value))
    return tokens


class _Parser:
    def __init__(self, tokens: list[_Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> Optional[_Token]:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> _Token:
        token = self._peek()
        if token is None:
            raise ExpressionError("unexpected end of expression")
        self._pos += 1
        return token

    def parse(self) -> _Node:
        node = self._binary(1)
        extra = self._peek()
        if extra is not None:
            raise ExpressionError(f"unexpected {extra.text!r} in expression")
        return node

    def _binary(self, min_precedence: int) -> _Node:
        left = self._unary()
        while True:
            token = self._peek()
            if token is None or token.kind != "op" or token.text not in _PRECEDENCE:
                return left
            precedence = _PRECEDENCE[token.text]
            if precedence < min_precedence:
                return left
            self._next()
            right = self._binary(precedence + 1)
            left = _Binary(token.text, left, right)

    def _unary(self) -> _Node:
        token = self._next()
        if token.kind == "num":
            return _Number(token.text)
        if token.kind == "ident":
            return _Ident(token.text)
        if token.text in ("+", "-"):
            return _Unary(token.text, self._unary())
        if token.text == "(":
            inner = self._binary(1)
            closing = self._next()
            if closing.text != ")":
                raise ExpressionError(f"expected ')', found {closing.text!r}")
            return _Paren(inner)
        raise ExpressionError(f"unexpected {token.text!r} in expression")


def _idents(node: _Node) -> Iterator[str]:
    if isinstance(node, _Ident):
        yield node.name
    elif isinstance(node, _Paren):
        yield from _idents(node.inner)
    elif isinstance(node, _Unary):
        yield from _idents(node.operand)
    elif isinstance(node, _Binary):
        yield from _idents(node.left)
        yield from _idents(node.right)


def _parse(expr: str) -> tuple[_Node, list[str]]:
    node = _Parser(_tokenize(expr)).parse()
    return node, list(_idents(node))


# --------------------------------------------------------------------------
# arithmetic


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _apply(op: str, a: float, b: float) -> float:
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/":
        return _divide(a, b)
    if b == 0 or math.isinf(a):
        return math.nan
    return math.fmod(a, b)


def _evaluate(node: _Node, args: Mapping[str, float]) -> float:
    if isinstance(node, _Number):
        return float(node.text)
    if isinstance(node, _Ident):
        if node.name not in args:
            raise ExpressionError(f"missing variable:{node.name}")
        return args[node.name]
    if isinstance(node, _Paren):
        return _evaluate(node.inner, args)
    if isinstance(node, _Unary):
        value = _evaluate(node.operand, args)
        return -value if node.op == "-" else value
    return _apply(node.op, _evaluate(node.left, args), _evaluate(node.right, args))


def _round(value: float, precision: int) -> float:
    return float(f"{value:.{precision}f}")


# --------------------------------------------------------------------------
# public functions


def parse_expression(expr: str) -> Optional[list[str]]:
    """Return the variables of ``expr`` in order of appearance, repeats included.

    An empty expression gives ``None``; a malformed one raises ExpressionError.
    """
    if expr == "":
        return None
    return _parse(expr)[1]


def exec_expression(expr: str, args: Mapping[str, Any], mapping_type: str) -> Any:
    """Evaluate ``expr`` over ``args`` according to ``mapping_type``."""
    return exec_expression_with_precision(expr, args, mapping_type, -1)


def exec_expression_with_precision(
    expr: str, args: Mapping[str, Any], mapping_type: str, precision: int = -1
) -> Any:
    """Evaluate ``expr``, rounding the result to ``precision`` decimals when positive."""
    if mapping_type == MAPPING_NONE:
        return None
    if mapping_type == MAPPING_VALUE:
        return _value_mapping(expr, args, precision)
    if mapping_type == MAPPING_CALCULATE:
        return _calc_mapping(expr, args, precision)
    raise UnknownMappingTypeError()


def _value_mapping(expr: str, args: Mapping[str, Any], precision: int) -> Any:
    _, variables = _parse(expr)
    if len(variables) != 1:
        raise ExpressionError("mapping type equal can only have one variable")
    name = variables[0]
    if name not in args:
        raise ExpressionError(f"missing argument:{name}")
    value = args[name]
    if precision <= 0:
        return value
    try:
        number = parse_value_to_float64(value)
    except UnsupportedValueTypeError:
        return value
    return _round(number, precision)


def _calc_mapping(expr: str, args: Mapping[str, Any], precision: int) -> float:
    node, variables = _parse(expr)
    numbers: dict[str, float] = {}
    for name in variables:
        if name not in args:
            raise ExpressionError(f"missing variable:{name}")
        numbers[name] = parse_value_to_float64(args[name])
    result = _evaluate(node, numbers)
    return _round(result, precision) if precision > 0 else result


def _linear(node: _Node) -> tuple[float, float]:
    """Reduce ``node`` to the slope and offset of ``a*x + b``."""
    if isinstance(node, _Ident):
        return 1.0, 0.0
    if isinstance(node, _Number):
        return 0.0, float(node.text)
    if isinstance(node, _Paren):
        return _linear(node.inner)
    if isinstance(node, _Binary):
        xa, xb = _linear(node.left)
        ya, yb = _linear(node.right)
        if node.op == "+":
            return xa + ya, xb + yb
        if node.op == "-":
            return xa - ya, xb - yb
        if node.op == "*":
            if xa != 0 and ya != 0:
                raise ExpressionError("only support linear equation")
            return xa * yb + xb * ya, xb * yb
        if node.op == "/":
            if ya != 0:
                raise ExpressionError("denominator can not have a variable")
            return _divide(xa, yb), _divide(xb, yb)
        raise ExpressionError(f"unsupported binary operation: {node.op}")
    raise ExpressionError(f"unsupported node {node!r}")


def solve_expression(expr: str, value: float) -> float:
    """Solve ``expr == value`` for its one variable.

    Only expressions that reduce to ``a*x + b`` can be solved.
    """
    node, variables = _parse(expr)
    if len(set(variables)) != 1:
        raise ExpressionError("the number of variables in expression is not one")
    slope, offset = _linear(node)
    if slope == 0:
        raise ExpressionError("the slope is zero after simple")
    return (value - offset) / slope