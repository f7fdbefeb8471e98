"""Calculator tool plugin with safe expression evaluator"""
from __future__ import annotations

import ast
import math
import operator
from typing import Any, Callable, Dict

TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": "calculate_math",
        "description": "Evaluate mathematical expressions including basic operations and functions like sin, cos, sqrt, log, etc.",
        "parameters": {
            "type": "object",
            "properties": {
                "expression": {
                    "type": "string",
                    "description": "Mathematical expression to evaluate (e.g., '2 + 2', 'sin(pi/2)', 'sqrt(16)')"
                }
            },
            "required": ["expression"]
        }
    }
}

_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: Dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "sqrt": math.sqrt,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "log": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "abs": abs,
    "pow": pow,
}

_CONSTANTS = {"pi": math.pi, "e": math.e}


def _evaluate(node: ast.AST) -> Any:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id in _FUNCTIONS
        and not node.keywords
    ):
        return _FUNCTIONS[node.func.id](*[_evaluate(arg) for arg in node.args])
    raise ValueError(f"unsupported element '{type(node).__name__}'")


def calculate_math(expression: str) -> str:
    """Evaluate ``expression``; raises ValueError for anything but arithmetic."""
    expression_orig = expression
    # ^ is accepted as power
    source = expression.strip().lower().replace("^", "**")
    try:
        result = _evaluate(ast.parse(source, mode="eval"))
    except ZeroDivisionError:
        raise ValueError(f"Division by zero in expression '{expression_orig}'")
    except SyntaxError:
        raise ValueError(f"Invalid syntax in expression '{expression_orig}'")
    except (TypeError, ValueError, OverflowError) as e:
        raise ValueError(f"Invalid mathematical operation in '{expression_orig}': {e}")

    # Format result nicely
    if isinstance(result, float):
        if abs(result - round(result)) < 1e-10:
            result = int(round(result))
        else:
            result = round(result, 8)

    return f"Result: {expression_orig} = {result}"


TOOL_IMPLEMENTATION = calculate_math
TOOL_AUTHOR = "core"
TOOL_VERSION = "1.0.0"
