"""CalculatorTool: evaluates arithmetic expressions over a whitelisted syntax tree."""

import ast
import math
import operator
from collections.abc import Callable
from typing import Any, ClassVar

from turnloop.tools.domain.errors import ToolError
from turnloop.tools.domain.schema import ToolSchema
from turnloop.tools.domain.tool import ToolContext

_TOOL_NAME = "calculator"
_MAX_EXPONENT = 1000

_BINARY_OPERATORS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPERATORS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}
_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "abs": abs,
    "round": round,
    "min": min,
    "max": max,
    "sqrt": math.sqrt,
    "exp": math.exp,
    "log": math.log,
    "log10": math.log10,
    "log2": math.log2,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "atan2": math.atan2,
    "floor": math.floor,
    "ceil": math.ceil,
    "pow": math.pow,
    "hypot": math.hypot,
}
_CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "PI": math.pi,
    "e": math.e,
    "E": math.e,
    "tau": math.tau,
}
# `math.sqrt(2)` and `Math.sqrt(2)` resolve like `sqrt(2)`.
_NAMESPACES = frozenset({"math", "Math"})


class CalculatorTool:
    """Safe arithmetic evaluation; no names, attributes or calls outside the whitelist."""

    schema: ClassVar[ToolSchema] = ToolSchema(
        name=_TOOL_NAME,
        description=(
            "Evaluates a mathematical expression. Supports + - * / // % **, "
            "parentheses, the constants pi, e and tau, and functions such as "
            "sqrt, log, sin, cos, floor and ceil."
        ),
        parameters={
            "type": "object",
            "properties": {
                "expression": {
                    "type": "string",
                    "description": "The expression to evaluate, e.g. 'sqrt(2) * 10'.",
                }
            },
            "required": ["expression"],
        },
    )

    async def invoke(self, args: dict[str, Any], context: ToolContext) -> str:
        expression = args.get("expression")
        if not isinstance(expression, str) or not expression.strip():
            raise ToolError(_TOOL_NAME, "MISSING_ARGUMENT", "No expression provided.")

        try:
            tree = ast.parse(expression.strip(), mode="eval")
        except SyntaxError as exc:
            raise ToolError(
                _TOOL_NAME, "MALFORMED_EXPRESSION", f"Syntax error: {exc.msg}", exc
            ) from exc
        except ValueError as exc:
            raise ToolError(
                _TOOL_NAME, "MALFORMED_EXPRESSION", f"Invalid literal: {exc}", exc
            ) from exc

        try:
            value = float(_evaluate(tree.body))
        except ZeroDivisionError as exc:
            raise ToolError(
                _TOOL_NAME, "CALCULATION_INFINITY", "Division by zero.", exc
            ) from exc
        except OverflowError as exc:
            raise ToolError(
                _TOOL_NAME, "CALCULATION_INFINITY", "The result is too large.", exc
            ) from exc
        except (ValueError, TypeError) as exc:
            raise ToolError(
                _TOOL_NAME, "CALCULATION_NAN", f"Invalid operation: {exc}", exc
            ) from exc

        if math.isnan(value):
            raise ToolError(
                _TOOL_NAME, "CALCULATION_NAN", "The result is Not a Number (NaN)."
            )
        if math.isinf(value):
            raise ToolError(
                _TOOL_NAME, "CALCULATION_INFINITY", "The result is infinite."
            )
        if value.is_integer():
            return str(int(value))
        return str(value)


def _evaluate(node: ast.expr) -> Any:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        if isinstance(node.value, bool):
            raise _disallowed("boolean literals")
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        # Float operands keep results bounded: overflow raises or yields inf.
        left, right = float(_evaluate(node.left)), float(_evaluate(node.right))
        if isinstance(node.op, ast.Pow) and abs(right) > _MAX_EXPONENT:
            raise _disallowed(f"exponents larger than {_MAX_EXPONENT}")
        return _BINARY_OPERATORS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](float(_evaluate(node.operand)))
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if isinstance(node, ast.Attribute) and _in_namespace(node):
        if node.attr in _CONSTANTS:
            return _CONSTANTS[node.attr]
        raise _disallowed(f"'{node.attr}'")
    if isinstance(node, ast.Call) and not node.keywords:
        function = _resolve_function(node.func)
        return function(*(_evaluate(arg) for arg in node.args))
    raise _disallowed(type(node).__name__)


def _in_namespace(node: ast.Attribute) -> bool:
    return isinstance(node.value, ast.Name) and node.value.id in _NAMESPACES


def _resolve_function(node: ast.expr) -> Callable[..., Any]:
    if isinstance(node, ast.Name):
        name = node.id
    elif isinstance(node, ast.Attribute) and _in_namespace(node):
        name = node.attr
    else:
        raise _disallowed("calls on expressions")
    function = _FUNCTIONS.get(name)
    if function is None:
        raise _disallowed(f"function '{name}'")
    return function


def _disallowed(what: str) -> ToolError:
    return ToolError(
        _TOOL_NAME, "SECURITY_VIOLATION", f"Expression uses disallowed syntax: {what}."
    )
