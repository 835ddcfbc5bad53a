"""Static "already safe" predicates for the escaping bypass."""

import ast
from typing import Iterable, Optional


class SafeCallPredicate:
    """Treat calls to known markup-producing helpers as pre-escaped.

    ``SafeCallPredicate(["safe", "h.render_partial"])`` accepts ``safe(x)`` and
    ``h.render_partial("nav")`` but not ``user.name`` or ``unsafe(x)``.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names = frozenset(names)

    def __call__(self, expression: str) -> bool:
        try:
            tree = ast.parse(expression.strip(), mode="eval")
        except SyntaxError:
            return False

        if not isinstance(tree.body, ast.Call):
            return False
        name = _dotted_name(tree.body.func)
        return name is not None and name in self.names

    def __repr__(self) -> str:
        return f"SafeCallPredicate({sorted(self.names)!r})"


def _dotted_name(node: ast.expr) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = _dotted_name(node.value)
        return f"{base}.{node.attr}" if base else None
    return None
