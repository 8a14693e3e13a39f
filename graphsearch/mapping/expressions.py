"""Restricted expression language used by projection rules.

Expressions use Python syntax but only a small subset of it: literals,
boolean logic, comparisons, arithmetic, conditional expressions, subscripts,
f-strings and calls to the functions bound in the entity scope. Attribute
access, comprehensions, lambdas and any name outside the scope are rejected
when the expression is compiled.

Node scope::

    key, graph_id, properties, labels,
    has_label(label), has_property(name), get_property(name, default=None)

Relationship scope::

    key, graph_id, properties, type, start_node_graph_id, end_node_graph_id,
    is_type(type), has_property(name), get_property(name, default=None)

Both scopes also provide `str`, `int`, `float`, `len`, `lower` and `upper`.
"""

from __future__ import annotations

import ast
import logging
import operator
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from graphsearch.core.exceptions import ExpressionError
from graphsearch.models.graph import EntityRepresentation, NodeRepresentation

logger = logging.getLogger(__name__)

_ALLOWED_NODES = (
    ast.Expression,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.UnaryOp,
    ast.Not,
    ast.USub,
    ast.UAdd,
    ast.BinOp,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.Mod,
    ast.Compare,
    ast.Eq,
    ast.NotEq,
    ast.Lt,
    ast.LtE,
    ast.Gt,
    ast.GtE,
    ast.In,
    ast.NotIn,
    ast.Is,
    ast.IsNot,
    ast.IfExp,
    ast.Call,
    ast.keyword,
    ast.Name,
    ast.Load,
    ast.Constant,
    ast.Subscript,
    ast.Slice,
    ast.List,
    ast.Tuple,
    ast.JoinedStr,
    ast.FormattedValue,
)

_HELPERS: Dict[str, Callable[..., Any]] = {
    "str": str,
    "int": int,
    "float": float,
    "len": len,
    "lower": lambda value: str(value).lower(),
    "upper": lambda value: str(value).upper(),
}

SCOPE_NAMES = frozenset(
    {
        "key",
        "graph_id",
        "properties",
        "labels",
        "type",
        "start_node_graph_id",
        "end_node_graph_id",
        "has_label",
        "is_type",
        "has_property",
        "get_property",
        *_HELPERS,
    }
)


def is_expression(value: Optional[str]) -> bool:
    """Index and type settings are expressions when they contain call parentheses."""

    return value is not None and "(" in value and ")" in value


_BINARY_OPERATORS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}

_UNARY_OPERATORS: Dict[type, Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
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

_CONVERSIONS: Dict[int, Callable[[Any], str]] = {ord("s"): str, ord("r"): repr, ord("a"): ascii}


class _Interpreter:
    """Walks a validated expression tree against an entity scope."""

    def __init__(self, scope: Mapping[str, Any]) -> None:
        self.scope = scope

    def run(self, node: ast.AST) -> Any:
        handler = getattr(self, f"_eval_{node.__class__.__name__}", None)
        if handler is None:
            raise ExpressionError("Unsupported syntax in expression", {"node": node.__class__.__name__})
        return handler(node)

    def _eval_Expression(self, node: ast.Expression) -> Any:
        return self.run(node.body)

    def _eval_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def _eval_Name(self, node: ast.Name) -> Any:
        if node.id not in self.scope:
            raise ExpressionError(f"Name '{node.id}' is not available for this entity")
        return self.scope[node.id]

    def _eval_BoolOp(self, node: ast.BoolOp) -> Any:
        value: Any = None
        for operand in node.values:
            value = self.run(operand)
            if isinstance(node.op, ast.And) and not value:
                return value
            if isinstance(node.op, ast.Or) and value:
                return value
        return value

    def _eval_UnaryOp(self, node: ast.UnaryOp) -> Any:
        return _UNARY_OPERATORS[type(node.op)](self.run(node.operand))

    def _eval_BinOp(self, node: ast.BinOp) -> Any:
        return _BINARY_OPERATORS[type(node.op)](self.run(node.left), self.run(node.right))

    def _eval_Compare(self, node: ast.Compare) -> bool:
        left = self.run(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.run(comparator)
            if not _COMPARISONS[type(op)](left, right):
                return False
            left = right
        return True

    def _eval_IfExp(self, node: ast.IfExp) -> Any:
        return self.run(node.body) if self.run(node.test) else self.run(node.orelse)

    def _eval_Call(self, node: ast.Call) -> Any:
        function = self.run(node.func)
        args = [self.run(arg) for arg in node.args]
        kwargs = {keyword.arg: self.run(keyword.value) for keyword in node.keywords}
        return function(*args, **kwargs)

    def _eval_Subscript(self, node: ast.Subscript) -> Any:
        return self.run(node.value)[self.run(node.slice)]

    def _eval_Slice(self, node: ast.Slice) -> slice:
        lower, upper, step = (None if part is None else self.run(part) for part in (node.lower, node.upper, node.step))
        return slice(lower, upper, step)

    def _eval_List(self, node: ast.List) -> list:
        return [self.run(element) for element in node.elts]

    def _eval_Tuple(self, node: ast.Tuple) -> tuple:
        return tuple(self.run(element) for element in node.elts)

    def _eval_JoinedStr(self, node: ast.JoinedStr) -> str:
        return "".join(str(self.run(value)) for value in node.values)

    def _eval_FormattedValue(self, node: ast.FormattedValue) -> str:
        value = self.run(node.value)
        if node.conversion in _CONVERSIONS:
            value = _CONVERSIONS[node.conversion](value)
        fmt = self.run(node.format_spec) if node.format_spec is not None else ""
        return format(value, fmt)


@dataclass(frozen=True)
class CompiledExpression:
    source: str
    tree: ast.Expression

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        try:
            return _Interpreter(scope).run(self.tree)
        except ExpressionError:
            raise
        except Exception as exc:
            raise ExpressionError(
                f"Failed to evaluate expression: {self.source}",
                {"error": f"{exc.__class__.__name__}: {exc}"},
            ) from exc


class _Validator(ast.NodeVisitor):
    def __init__(self, source: str) -> None:
        self.source = source

    def generic_visit(self, node: ast.AST) -> None:
        if not isinstance(node, _ALLOWED_NODES):
            raise ExpressionError(
                f"Unsupported syntax in expression: {self.source}",
                {"node": node.__class__.__name__},
            )
        super().generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id not in SCOPE_NAMES:
            raise ExpressionError(f"Unknown name '{node.id}' in expression: {self.source}")

    def visit_Call(self, node: ast.Call) -> None:
        if not isinstance(node.func, ast.Name):
            raise ExpressionError(f"Only scope functions may be called in expression: {self.source}")
        if any(isinstance(arg, ast.Starred) for arg in node.args) or any(kw.arg is None for kw in node.keywords):
            raise ExpressionError(f"Argument unpacking is not supported in expression: {self.source}")
        self.generic_visit(node)


def compile_expression(source: str) -> CompiledExpression:
    """Parse and validate an expression."""

    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as exc:
        raise ExpressionError(f"Invalid expression syntax: {source}", {"error": str(exc)}) from exc

    _Validator(source).visit(tree)
    return CompiledExpression(source=source, tree=tree)


class ExpressionCache:
    """Compile-once cache of expressions keyed by their source text.

    Reads go straight to the dictionaries; the lock is only taken the first time
    a given expression is compiled. Compile failures are cached too and raised
    again on every later lookup.
    """

    def __init__(self) -> None:
        self._compiled: Dict[str, CompiledExpression] = {}
        self._failed: Dict[str, ExpressionError] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._compiled)

    def is_invalid(self, source: str) -> bool:
        return source in self._failed

    def get(self, source: str) -> CompiledExpression:
        compiled = self._compiled.get(source)
        if compiled is not None:
            return compiled
        failure = self._failed.get(source)
        if failure is not None:
            raise failure

        with self._lock:
            compiled = self._compiled.get(source)
            if compiled is None:
                failure = self._failed.get(source)
                if failure is not None:
                    raise failure
                try:
                    compiled = compile_expression(source)
                except ExpressionError as exc:
                    self._failed[source] = exc
                    raise
                self._compiled[source] = compiled
                logger.debug("Compiled mapping expression %r", source)
        return compiled

    def evaluate(self, source: str, scope: Mapping[str, Any]) -> Any:
        return self.get(source).evaluate(scope)


def entity_scope(entity: EntityRepresentation, key_property: str) -> Dict[str, Any]:
    """Build the names visible to expressions evaluated against an entity."""

    properties = MappingProxyType(dict(entity.properties))

    def has_property(name: str) -> bool:
        return name in properties

    def get_property(name: str, default: Any = None) -> Any:
        return properties.get(name, default)

    scope: Dict[str, Any] = dict(_HELPERS)
    scope.update(
        key=properties.get(key_property),
        graph_id=entity.graph_id,
        properties=properties,
        has_property=has_property,
        get_property=get_property,
    )

    if isinstance(entity, NodeRepresentation):
        labels = tuple(entity.labels)
        scope.update(labels=labels, has_label=lambda label: label in labels)
    else:
        scope.update(
            type=entity.type,
            start_node_graph_id=entity.start_node_graph_id,
            end_node_graph_id=entity.end_node_graph_id,
            is_type=lambda rel_type: rel_type == entity.type,
        )
    return scope
