"""Errors raised while lowering a slimline syntax tree."""

from typing import Optional


class SlimlineError(Exception):
    """Base class for every slimline error."""


class SlimlineSyntaxError(SlimlineError):
    """Malformed interpolation inside a text or attribute fragment."""

    def __init__(
        self,
        message: str,
        fragment: Optional[str] = None,
        file_path: str = "",
        line: int = 0,
        column: int = 0,
    ) -> None:
        self.message = message
        self.fragment = fragment
        self.file_path = file_path
        self.line = line
        self.column = column
        super().__init__(self._format())

    def _format(self) -> str:
        msg = self.message
        if self.fragment is not None:
            msg += f" in {self.fragment!r}"
        if self.file_path:
            msg += f" ({self.file_path}"
            if self.line:
                msg += f":{self.line}"
            msg += ")"
        elif self.line:
            msg += f" (line {self.line})"
        return msg


class SlimlineCompileError(SlimlineError):
    """A syntax tree node that does not match the input contract."""

    def __init__(self, message: str, line: int = 0) -> None:
        self.message = message
        self.line = line
        super().__init__(f"{message} (line {line})" if line else message)


class SlimlineConfigError(SlimlineError):
    """Invalid compiler options."""
