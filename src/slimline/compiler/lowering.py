"""Lowering of the slimline syntax tree into IR."""

import logging
from typing import Any, List, Optional, Union

from slimline.compiler.ast_nodes import (
    Control,
    Directive,
    DynamicOutput,
    SyntaxNode,
    Tag,
    Text,
)
from slimline.compiler.exceptions import SlimlineCompileError
from slimline.compiler.interpolation import InterpolationEscaper
from slimline.compiler.ir import (
    CaptureBlock,
    CodeBlock,
    DynamicText,
    IRNode,
    MarkupAttr,
    MarkupAttrs,
    MarkupDoctype,
    MarkupTag,
    Sequence,
    StaticText,
)
from slimline.compiler.options import CompilerOptions

log = logging.getLogger(__name__)

DOCTYPE = "doctype"

SyntaxTree = Union[SyntaxNode, List[SyntaxNode]]


class TempNameAllocator:
    """Issues ``<prefix>1``, ``<prefix>2``, ... for one lowering pass."""

    def __init__(self, prefix: str = "_slimtmp") -> None:
        self.prefix = prefix
        self._counter = 0

    def next(self) -> str:
        self._counter += 1
        return f"{self.prefix}{self._counter}"


class Compiler:
    """Transforms syntax tree nodes into IR nodes.

    Every call runs a fresh pass with its own temporary-name allocator, so
    compiling the same tree twice yields identical IR.
    """

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self.options = options or CompilerOptions()
        self.escaper = InterpolationEscaper(self.options)

    def lower(self, tree: SyntaxTree) -> IRNode:
        """Lower a node or a list of nodes."""
        tmp = TempNameAllocator(self.options.tmp_prefix)
        return LoweringPass(self.options, self.escaper, tmp).lower(tree)

    def compile(self, tree: SyntaxTree) -> Sequence:
        """Lower ``tree`` and return the root ``Sequence`` handed to a backend."""
        count = len(tree) if isinstance(tree, list) else 1
        log.debug("Lowering %d top-level node(s)", count)
        result = self.lower(tree)
        if isinstance(result, Sequence):
            return result
        return Sequence((result,))


class LoweringPass:
    """State of a single lowering pass."""

    def __init__(
        self,
        options: CompilerOptions,
        escaper: InterpolationEscaper,
        tmp: TempNameAllocator,
    ) -> None:
        self.options = options
        self.escaper = escaper
        self.tmp = tmp

    def lower(self, tree: Any) -> IRNode:
        if isinstance(tree, (list, tuple)):
            return Sequence(tuple(self.lower(node) for node in tree))
        if isinstance(tree, Text):
            return self._on_text(tree)
        if isinstance(tree, Control):
            return self._on_control(tree)
        if isinstance(tree, DynamicOutput):
            return self._on_output(tree)
        if isinstance(tree, Tag):
            return self._on_tag(tree)
        if isinstance(tree, Directive):
            return self._on_directive(tree)
        raise SlimlineCompileError(
            f"Unsupported syntax node {type(tree).__name__}: {tree!r}",
            line=getattr(tree, "line", 0),
        )

    def _on_text(self, node: Text) -> IRNode:
        raw = _require_str(node.raw, "raw", node)
        return self._text_value(raw, node.line)

    def _on_control(self, node: Control) -> IRNode:
        code = _require_str(node.code, "code", node)
        return Sequence((CodeBlock(code), self._lower_body(node)))

    def _on_output(self, node: DynamicOutput) -> IRNode:
        expression = _require_str(node.expression, "expression", node)
        if node.escape is not None and not isinstance(node.escape, bool):
            raise SlimlineCompileError(
                f"DynamicOutput.escape must be a bool or None, got {node.escape!r}",
                line=node.line,
            )
        escape = self.options.escape_by_default if node.escape is None else node.escape

        body = _require_body(node)
        if not body:
            return self._dynamic_output(escape, expression)
        return self._on_output_block(escape, expression, node)

    def _dynamic_output(self, escape: bool, expression: str) -> DynamicText:
        if escape and self.options.escape_bypassed(expression):
            escape = False
        if escape:
            return DynamicText(self.options.escape_call(expression))
        return DynamicText(expression)

    def _on_output_block(
        self, escape: bool, expression: str, node: DynamicOutput
    ) -> Sequence:
        result_var, buffer_var = self.tmp.next(), self.tmp.next()
        log.debug(
            "Capturing block of %r (line %d) into %s, result in %s",
            expression,
            node.line,
            buffer_var,
            result_var,
        )

        return Sequence(
            (
                # Bind the block expression's return value; the expression is
                # usually incomplete on its own (it opens a block).
                CodeBlock(f"{result_var} = {expression}"),
                # Nested output goes to a buffer so the block returns it.
                CaptureBlock(buffer_var, self._lower_body(node)),
                CodeBlock(buffer_var),
                CodeBlock(self.options.block_close),
                self._dynamic_output(escape, result_var),
            )
        )

    def _on_tag(self, node: Tag) -> MarkupTag:
        name = _require_str(node.name, "name", node)
        if not isinstance(node.attributes, (list, tuple)):
            raise SlimlineCompileError(
                f"Attributes of <{name}> must be a list, got {node.attributes!r}",
                line=node.line,
            )

        attrs = []
        for pair in node.attributes:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise SlimlineCompileError(
                    f"Attribute of <{name}> must be a (key, value) pair, got {pair!r}",
                    line=node.line,
                )
            key, value = pair
            if not isinstance(key, str) or not isinstance(value, str):
                raise SlimlineCompileError(
                    f"Attribute {key!r} of <{name}> must map a string to a string, "
                    f"got {value!r}",
                    line=node.line,
                )
            attrs.append(MarkupAttr(key, self._text_value(value, node.line)))

        return MarkupTag(name, MarkupAttrs(tuple(attrs)), self._lower_body(node))

    def _on_directive(self, node: Directive) -> IRNode:
        kind = _require_str(node.kind, "kind", node)
        argument = _require_str(node.argument, "argument", node)

        if kind.startswith(DOCTYPE):
            return MarkupDoctype((kind[len(DOCTYPE) :] + " " + argument).strip())

        log.debug("Ignoring unrecognized directive %r (line %d)", kind, node.line)
        return Sequence()

    def _text_value(self, raw: str, line: int) -> Union[StaticText, DynamicText]:
        if self.escaper.has_interpolation(raw, line):
            return DynamicText(self.escaper.escape_interpolation(raw, line))
        return StaticText(self.escaper.literal(raw, line))

    def _lower_body(self, node: Union[Control, DynamicOutput, Tag]) -> Sequence:
        return Sequence(tuple(self.lower(child) for child in _require_body(node)))


def _require_str(value: Any, field_name: str, node: Any) -> str:
    if not isinstance(value, str):
        raise SlimlineCompileError(
            f"{type(node).__name__}.{field_name} must be a string, got {value!r}",
            line=getattr(node, "line", 0),
        )
    return value


def _require_body(node: Union[Control, DynamicOutput, Tag]) -> List[Any]:
    if not isinstance(node.body, (list, tuple)):
        raise SlimlineCompileError(
            f"{type(node).__name__}.body must be a list, got {node.body!r}",
            line=node.line,
        )
    return list(node.body)


def lower(tree: SyntaxTree, options: Optional[CompilerOptions] = None) -> IRNode:
    """Lower a syntax node or node list with a fresh compiler pass."""
    return Compiler(options).lower(tree)


def compile_template(
    tree: SyntaxTree, options: Optional[CompilerOptions] = None
) -> Sequence:
    """Lower a syntax tree into the root ``Sequence`` handed to a backend."""
    return Compiler(options).compile(tree)
