# instrumeta/validation/rules.py
"""
Evaluation of the free-form ``validation`` rules attached to schemas.

Rules are small boolean expressions over field names, for example::

    pixel_size_x_um > 0 and pixel_size_x_um < 1000
    not present(read_pair) or read_pair in ['R1', 'R2', '1', '2']
    len(channels) == num_channels

The default evaluator parses them with :mod:`ast` and walks a whitelist of
node types, so no Python code is ever executed.
"""
import ast
import logging
import operator
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping

from ..core.exceptions import RuleEvaluationError

logger = logging.getLogger(__name__)

MAX_RULE_LENGTH = 1000

_BINARY_OPERATORS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}

_COMPARISONS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "len": len,
    "abs": abs,
    "min": min,
    "max": max,
    "lower": lambda value: str(value).lower(),
}


class RuleEvaluator(ABC):
    @abstractmethod
    def evaluate(self, rule: str, fields: Mapping[str, Any]) -> bool:
        """Return whether ``rule`` holds; raise RuleEvaluationError if it cannot be evaluated."""
        pass


class ExpressionRuleEvaluator(RuleEvaluator):
    """Evaluates rules written in a restricted Python expression syntax."""

    def evaluate(self, rule: str, fields: Mapping[str, Any]) -> bool:
        if len(rule) > MAX_RULE_LENGTH:
            raise RuleEvaluationError(f"rule longer than {MAX_RULE_LENGTH} characters")
        try:
            tree = ast.parse(rule.strip(), mode="eval")
        except SyntaxError as e:
            raise RuleEvaluationError(f"cannot parse rule {rule!r}: {e.msg}") from e
        try:
            return bool(self._eval(tree.body, fields))
        except RuleEvaluationError:
            raise
        except (TypeError, ValueError, ZeroDivisionError) as e:
            raise RuleEvaluationError(f"cannot evaluate rule {rule!r}: {e}") from e

    def _eval(self, node: ast.AST, fields: Mapping[str, Any]) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            return fields.get(node.id)
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._eval(element, fields) for element in node.elts]
        if isinstance(node, ast.Attribute):
            parent = self._eval(node.value, fields)
            return parent.get(node.attr) if isinstance(parent, Mapping) else None
        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                return all(self._eval(value, fields) for value in node.values)
            return any(self._eval(value, fields) for value in node.values)
        if isinstance(node, ast.UnaryOp):
            operand = self._eval(node.operand, fields)
            if isinstance(node.op, ast.Not):
                return not operand
            if isinstance(node.op, ast.USub):
                return -operand
            if isinstance(node.op, ast.UAdd):
                return +operand
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
            left = self._eval(node.left, fields)
            right = self._eval(node.right, fields)
            if isinstance(node.op, ast.Mult) and not (
                _is_number(left) and _is_number(right)
            ):
                raise RuleEvaluationError("multiplication is only defined for numbers")
            return _BINARY_OPERATORS[type(node.op)](left, right)
        if isinstance(node, ast.Compare):
            left = self._eval(node.left, fields)
            for op, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, fields)
                if not _COMPARISONS[type(op)](left, right):
                    return False
                left = right
            return True
        if isinstance(node, ast.Call):
            return self._call(node, fields)
        raise RuleEvaluationError(f"unsupported expression: {type(node).__name__}")

    def _call(self, node: ast.Call, fields: Mapping[str, Any]) -> Any:
        if not isinstance(node.func, ast.Name) or node.keywords:
            raise RuleEvaluationError("only plain function calls are allowed")
        name = node.func.id
        if name == "present":
            if len(node.args) != 1:
                raise RuleEvaluationError("present() takes exactly one field")
            target = node.args[0]
            if isinstance(target, ast.Name):
                value = fields.get(target.id)
            elif isinstance(target, ast.Constant) and isinstance(target.value, str):
                value = fields.get(target.value)
            else:
                value = self._eval(target, fields)
            return value is not None and value != ""
        if name not in _FUNCTIONS:
            raise RuleEvaluationError(f"unknown function {name}()")
        args = [self._eval(arg, fields) for arg in node.args]
        return _FUNCTIONS[name](*args)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
