"""Syntax tree nodes consumed by the lowering stage.

These are produced by the template parser (after the end-of-block pass) and are
treated as read-only input by :mod:`slimline.compiler.lowering`.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from slimline.compiler.exceptions import SlimlineCompileError


@dataclass
class Text:
    """Literal text, possibly containing ``#{...}`` interpolation."""

    raw: str
    line: int = 0
    column: int = 0


@dataclass
class DynamicOutput:
    """Output of a host expression, optionally wrapping a nested block.

    ``escape`` is resolved by the parser from the output marker; ``None`` means
    the marker asked for neither behavior and the compiler default applies.
    """

    escape: Optional[bool]
    expression: str
    body: List["SyntaxNode"] = field(default_factory=list)
    line: int = 0
    column: int = 0


@dataclass
class Control:
    """Host code executed for its side effects (e.g. ``for x in xs:``)."""

    code: str
    body: List["SyntaxNode"] = field(default_factory=list)
    line: int = 0
    column: int = 0


@dataclass
class Tag:
    name: str
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    body: List["SyntaxNode"] = field(default_factory=list)
    line: int = 0
    column: int = 0


@dataclass
class Directive:
    """Parser directive such as ``doctype html``."""

    kind: str
    argument: str = ""
    line: int = 0
    column: int = 0


SyntaxNode = Union[Text, DynamicOutput, Control, Tag, Directive]


def node_from_dict(data: Dict[str, Any]) -> SyntaxNode:
    """Build a syntax node from its JSON-compatible form.

    Example:
        {"type": "tag", "name": "a", "attributes": [["href", "#{url}"]],
         "body": [{"type": "text", "raw": "click"}]}
    """
    if not isinstance(data, dict):
        raise SlimlineCompileError(f"Syntax node must be an object, got {data!r}")

    kind = data.get("type")
    line = _int_field(data, "line")
    column = _int_field(data, "column")

    if kind == "text":
        return Text(raw=_str_field(data, "raw", line), line=line, column=column)

    if kind == "output":
        escape = data.get("escape")
        if escape is not None and not isinstance(escape, bool):
            raise SlimlineCompileError(
                f"'escape' must be true, false or null, got {escape!r}", line=line
            )
        return DynamicOutput(
            escape=escape,
            expression=_str_field(data, "expression", line),
            body=nodes_from_list(data.get("body", [])),
            line=line,
            column=column,
        )

    if kind == "control":
        return Control(
            code=_str_field(data, "code", line),
            body=nodes_from_list(data.get("body", [])),
            line=line,
            column=column,
        )

    if kind == "tag":
        attributes = []
        for pair in data.get("attributes", []):
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise SlimlineCompileError(
                    f"Attribute must be a [key, value] pair, got {pair!r}", line=line
                )
            attributes.append((pair[0], pair[1]))
        return Tag(
            name=_str_field(data, "name", line),
            attributes=attributes,
            body=nodes_from_list(data.get("body", [])),
            line=line,
            column=column,
        )

    if kind == "directive":
        return Directive(
            kind=_str_field(data, "kind", line),
            argument=data.get("argument", ""),
            line=line,
            column=column,
        )

    raise SlimlineCompileError(f"Unknown syntax node type {kind!r}", line=line)


def nodes_from_list(items: Any) -> List[SyntaxNode]:
    if not isinstance(items, list):
        raise SlimlineCompileError(f"Node body must be a list, got {items!r}")
    return [node_from_dict(item) for item in items]


def _str_field(data: Dict[str, Any], name: str, line: int) -> str:
    value = data.get(name)
    if not isinstance(value, str):
        raise SlimlineCompileError(
            f"'{name}' of {data.get('type')} node must be a string, got {value!r}",
            line=line,
        )
    return value


def _int_field(data: Dict[str, Any], name: str) -> int:
    value = data.get(name, 0)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0
