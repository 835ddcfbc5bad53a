"""Compiler configuration."""

from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional

from slimline.compiler.exceptions import SlimlineConfigError


@dataclass(frozen=True)
class CompilerOptions:
    """Options recognized by the lowering stage.

    Attributes:
        escape_by_default: Escape output markers that request neither escaped
            nor raw output.
        treat_safe_markers_as_unescaped: Skip escaping for expressions that
            ``is_safe`` reports as already escaped.
        is_safe: Static predicate over an expression string. Without one the
            bypass never applies.
        escape_function: Name of the escaping function in generated code.
        tmp_prefix: Prefix for synthesized temporary identifiers.
        block_close: Code that closes a block opened by a block-capturing output.
    """

    escape_by_default: bool = True
    treat_safe_markers_as_unescaped: bool = False
    is_safe: Optional[Callable[[str], bool]] = None
    escape_function: str = "escape_html"
    tmp_prefix: str = "_slimtmp"
    block_close: str = "end"

    def __post_init__(self) -> None:
        for name in ("escape_by_default", "treat_safe_markers_as_unescaped"):
            if not isinstance(getattr(self, name), bool):
                raise SlimlineConfigError(f"Option '{name}' must be a bool")
        for name in ("escape_function", "tmp_prefix"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.isidentifier():
                raise SlimlineConfigError(
                    f"Option '{name}' must be a valid identifier, got {value!r}"
                )
        if not isinstance(self.block_close, str):
            raise SlimlineConfigError("Option 'block_close' must be a string")
        if self.is_safe is not None and not callable(self.is_safe):
            raise SlimlineConfigError("Option 'is_safe' must be callable")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "CompilerOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise SlimlineConfigError(f"Unknown compiler option(s): {', '.join(unknown)}")
        return cls(**dict(mapping))

    def escape_bypassed(self, expression: str) -> bool:
        """Whether ``expression`` is statically known to be escaping-safe."""
        if not self.treat_safe_markers_as_unescaped or self.is_safe is None:
            return False
        return bool(self.is_safe(expression))

    def escape_call(self, expression: str) -> str:
        return f"{self.escape_function}(({expression}))"
