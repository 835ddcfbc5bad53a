"""HTML escaping primitive named by compiled templates."""

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


def escape_html(value: Any) -> str:
    """Return ``str(value)`` with markup-significant characters replaced.

    Each of ``& < > " '`` maps to its entity in a single translate pass, so an
    already-present entity such as ``&lt;`` is escaped again rather than kept.
    The result is safe in element text and in single- or double-quoted
    attribute values.
    """
    return str(value).translate(_ESCAPE_TABLE)
