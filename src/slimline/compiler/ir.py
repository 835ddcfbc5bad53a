"""Backend-agnostic intermediate representation produced by lowering."""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple, Union


@dataclass(frozen=True)
class StaticText:
    """Literal output, already escaped if needed."""

    value: str


@dataclass(frozen=True)
class DynamicText:
    """Host expression whose string value is appended to the output."""

    expression: str


@dataclass(frozen=True)
class CodeBlock:
    """Host code executed without producing output."""

    code: str


@dataclass(frozen=True)
class CaptureBlock:
    """Evaluate ``body`` into the variable ``target`` instead of the output."""

    target: str
    body: "IRNode"


@dataclass(frozen=True)
class Sequence:
    children: Tuple["IRNode", ...] = ()


@dataclass(frozen=True)
class MarkupDoctype:
    value: str


@dataclass(frozen=True)
class MarkupAttr:
    key: str
    value: Union[StaticText, DynamicText]


@dataclass(frozen=True)
class MarkupAttrs:
    attributes: Tuple[MarkupAttr, ...] = ()


@dataclass(frozen=True)
class MarkupTag:
    name: str
    attributes: MarkupAttrs
    body: "IRNode"


IRNode = Union[
    StaticText,
    DynamicText,
    CodeBlock,
    CaptureBlock,
    Sequence,
    MarkupDoctype,
    MarkupTag,
    MarkupAttrs,
    MarkupAttr,
]


def children_of(node: IRNode) -> Tuple[IRNode, ...]:
    """Direct IR children of a node, in output order."""
    if isinstance(node, Sequence):
        return node.children
    if isinstance(node, CaptureBlock):
        return (node.body,)
    if isinstance(node, MarkupTag):
        return (node.attributes, node.body)
    if isinstance(node, MarkupAttrs):
        return node.attributes
    if isinstance(node, MarkupAttr):
        return (node.value,)
    return ()


def walk(node: IRNode) -> Iterator[IRNode]:
    """Yield ``node`` and all of its descendants depth-first."""
    yield node
    for child in children_of(node):
        yield from walk(child)


def ir_to_dict(node: IRNode) -> Dict[str, Any]:
    """Convert IR into a JSON-compatible structure."""
    if isinstance(node, StaticText):
        return {"type": "static", "value": node.value}
    if isinstance(node, DynamicText):
        return {"type": "dynamic", "expression": node.expression}
    if isinstance(node, CodeBlock):
        return {"type": "code", "code": node.code}
    if isinstance(node, CaptureBlock):
        return {"type": "capture", "target": node.target, "body": ir_to_dict(node.body)}
    if isinstance(node, Sequence):
        return {"type": "multi", "children": [ir_to_dict(c) for c in node.children]}
    if isinstance(node, MarkupDoctype):
        return {"type": "doctype", "value": node.value}
    if isinstance(node, MarkupTag):
        return {
            "type": "tag",
            "name": node.name,
            "attributes": ir_to_dict(node.attributes),
            "body": ir_to_dict(node.body),
        }
    if isinstance(node, MarkupAttrs):
        return {"type": "attrs", "attributes": [ir_to_dict(a) for a in node.attributes]}
    if isinstance(node, MarkupAttr):
        return {"type": "attr", "key": node.key, "value": ir_to_dict(node.value)}
    raise TypeError(f"Not an IR node: {node!r}")
