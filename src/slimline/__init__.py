from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("slimline")
except PackageNotFoundError:
    __version__ = "unknown"

from slimline.compiler.exceptions import (
    SlimlineCompileError,
    SlimlineConfigError,
    SlimlineError,
    SlimlineSyntaxError,
)
from slimline.compiler.lowering import Compiler, compile_template, lower
from slimline.compiler.options import CompilerOptions
from slimline.runtime.escape import escape_html

__all__ = [
    "Compiler",
    "CompilerOptions",
    "compile_template",
    "lower",
    "escape_html",
    "SlimlineError",
    "SlimlineSyntaxError",
    "SlimlineCompileError",
    "SlimlineConfigError",
]
