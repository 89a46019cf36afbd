import pytest

from edgekit.dmcontext.expression import (
    MAPPING_CALCULATE,
    MAPPING_NONE,
    MAPPING_VALUE,
    ExpressionError,
    UnknownMappingTypeError,
    exec_expression,
    exec_expression_with_precision,
    parse_expression,
    solve_expression,
)
from edgekit.dmcontext.format import UnsupportedValueTypeError

SINGLE_PRECISION_1_1 = 1.100000023841858


def test_parse_empty_expression():
    assert parse_expression("") is None


@pytest.mark.parametrize("expr", ["&***)", "x1--x2"])
def test_parse_invalid_expression(expr):
    with pytest.raises(ExpressionError):
        parse_expression(expr)


def test_parse_constant_expression():
    assert parse_expression("4/(1+2+1*3*10)") == []


def test_parse_variables():
    assert parse_expression("x1") == ["x1"]
    args = parse_expression("x4/(x1+x2+x1*x3*10)")
    assert len(args) == 5
    assert args[1] == "x1"
    assert args == ["x4", "x1", "x2", "x1", "x3"]


def test_exec_unknown_mapping_type():
    with pytest.raises(UnknownMappingTypeError):
        exec_expression("", {}, "test")


def test_exec_none_mapping():
    assert exec_expression("", {}, MAPPING_NONE) is None


@pytest.mark.parametrize(
    "expr,args",
    [("", {}), ("x1++x2", {}), ("x1+x2", {}), ("x1", {"x2": 1})],
)
def test_exec_value_mapping_errors(expr, args):
    with pytest.raises(ExpressionError):
        exec_expression(expr, args, MAPPING_VALUE)


def test_exec_value_mapping():
    assert exec_expression("x1", {"x1": 1}, MAPPING_VALUE) == 1
    assert exec_expression("x1", {"x1": "1"}, MAPPING_VALUE) == "1"


def test_value_mapping_with_precision():
    assert exec_expression_with_precision("x1", {"x1": "2"}, MAPPING_VALUE, 2) == "2"
    result = exec_expression_with_precision("x1", {"x1": 2}, MAPPING_VALUE, 2)
    assert result == 2.0
    assert isinstance(result, float)


@pytest.mark.parametrize(
    "expr,args",
    [
        ("", {}),
        ("x1++x2", {}),
        ("x4/(x1+x2+x1*x3*10)", {"x1": 1}),
        ("x4/(x1+x2+x1*x3*10)", {"x1": "asasd"}),
    ],
)
def test_exec_calculate_errors(expr, args):
    with pytest.raises(ExpressionError):
        exec_expression(expr, args, MAPPING_CALCULATE)


def test_exec_calculate_rejects_non_numbers():
    with pytest.raises(UnsupportedValueTypeError):
        exec_expression("x1+1", {"x1": "asasd"}, MAPPING_CALCULATE)


def test_exec_calculate():
    args = {"x1": 1, "x2": SINGLE_PRECISION_1_1, "x3": 0.99, "x4": 15}
    assert exec_expression("x4/(x1+x2+x1*x3*10)", args, MAPPING_CALCULATE) == 1.249999997516473


def test_exec_calculate_with_precision():
    args = {"x1": 1, "x2": SINGLE_PRECISION_1_1, "x3": 0.99, "x4": 15}
    result = exec_expression_with_precision("x4/(x1+x2+x1*x3*10)", args, MAPPING_CALCULATE, 2)
    assert result == 1.25


@pytest.mark.parametrize(
    "expr",
    ["", "x1*2+x2*3", "(x1+2)*x1", "1/(x1+2)", "(x1+2)&x1", "x1*2-x1*2+1"],
)
def test_solve_errors(expr):
    with pytest.raises(ExpressionError):
        solve_expression(expr, 1)


def test_solve():
    assert solve_expression("x1*2-11", 9) == 10.0
    assert solve_expression("(x1+1)*3+x1*2+1", 9) == 1.0


def test_solve_then_calculate_round_trip():
    expr = "(x1+1)*3+x1*2+1"
    solved = solve_expression(expr, 9)
    assert exec_expression(expr, {"x1": solved}, MAPPING_CALCULATE) == 9