"""``#{...}`` interpolation scanning and escaping."""

from dataclasses import dataclass
from typing import List, Optional, Union

from slimline.compiler.exceptions import SlimlineSyntaxError
from slimline.compiler.options import CompilerOptions

OPENER = "#{"
CLOSER = "}"
ESCAPE_MARKER = "\\"

_FSTRING_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "{": "{{",
    "}": "}}",
}


@dataclass(frozen=True)
class Interpolation:
    """An embedded expression and the offset of its opener in the fragment."""

    expression: str
    offset: int


Segment = Union[str, Interpolation]


class InterpolationEscaper:
    """Rewrites text fragments so embedded expressions are escaped on output.

    Matching is non-greedy: an expression ends at the first ``}``, so
    expressions containing braces of their own are not supported.
    """

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self.options = options or CompilerOptions()

    def split(self, fragment: str, line: int = 0) -> List[Segment]:
        """Split ``fragment`` into literal text and interpolation spans.

        Adjacent literal text is merged; an escaped opener contributes a literal
        ``#{`` with the escape marker removed.
        """
        segments: List[Segment] = []
        buf: List[str] = []
        pos = 0

        while True:
            start = fragment.find(OPENER, pos)
            if start < 0:
                buf.append(fragment[pos:])
                break

            if start > 0 and fragment[start - 1] == ESCAPE_MARKER:
                buf.append(fragment[pos : start - 1])
                buf.append(OPENER)
                pos = start + len(OPENER)
                continue

            end = fragment.find(CLOSER, start + len(OPENER))
            if end < 0:
                raise SlimlineSyntaxError(
                    "Unterminated interpolation",
                    fragment=fragment,
                    line=line,
                    column=start,
                )
            expression = fragment[start + len(OPENER) : end]
            if not expression.strip():
                raise SlimlineSyntaxError(
                    "Empty interpolation",
                    fragment=fragment,
                    line=line,
                    column=start,
                )

            buf.append(fragment[pos:start])
            literal = "".join(buf)
            if literal:
                segments.append(literal)
            buf = []
            segments.append(Interpolation(expression=expression, offset=start))
            pos = end + len(CLOSER)

        literal = "".join(buf)
        if literal:
            segments.append(literal)
        return segments

    def has_interpolation(self, fragment: str, line: int = 0) -> bool:
        return any(isinstance(s, Interpolation) for s in self.split(fragment, line))

    def literal(self, fragment: str, line: int = 0) -> str:
        """Return ``fragment`` as plain text, for fragments without live spans."""
        return "".join(s for s in self.split(fragment, line) if isinstance(s, str))

    def escape_interpolation(self, fragment: str, line: int = 0) -> str:
        """Return a quoted string literal reproducing ``fragment``.

        Each interpolated value is passed through the escaping function unless
        the options' safe predicate bypasses it. The literal is an f-string
        when every expression may appear inside one on Python 3.10, and a
        ``"...".format(...)`` call otherwise.
        """
        segments = self.split(fragment, line)
        expressions = [s.expression for s in segments if isinstance(s, Interpolation)]

        if _fits_fstring(expressions):
            quote = _pick_quote(expressions)
            parts = []
            for segment in segments:
                if isinstance(segment, Interpolation):
                    parts.append("{" + self._wrap(segment.expression) + "}")
                else:
                    parts.append(_escape_literal(segment, quote))
            return "f" + quote + "".join(parts) + quote

        template = "".join(
            "{}" if isinstance(s, Interpolation) else _escape_literal(s, '"')
            for s in segments
        )
        args = ", ".join(self._wrap(e) for e in expressions)
        return f'"{template}".format({args})'

    def _wrap(self, expression: str) -> str:
        if self.options.escape_bypassed(expression):
            return f"({expression})"
        return self.options.escape_call(expression)


def _fits_fstring(expressions: List[str]) -> bool:
    # Before 3.12 an f-string expression cannot hold a backslash, a comment,
    # a newline or the enclosing quote.
    if any(ch in e for e in expressions for ch in "\\#\n\r"):
        return False
    return not (
        any('"' in e for e in expressions) and any("'" in e for e in expressions)
    )


def _pick_quote(expressions: List[str]) -> str:
    if any('"' in e for e in expressions):
        return "'"
    return '"'


def _escape_literal(text: str, quote: str) -> str:
    out = []
    for ch in text:
        if ch == quote:
            out.append("\\" + ch)
        elif ch in _FSTRING_ESCAPES:
            out.append(_FSTRING_ESCAPES[ch])
        elif not ch.isprintable():
            out.append(repr(ch)[1:-1])
        else:
            out.append(ch)
    return "".join(out)
