"""Main CLI entry point."""

import json
import logging
import sys
from typing import Any, Optional, Tuple

import rich_click as click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape as escape_markup
from rich.tree import Tree

from slimline import __version__
from slimline.compiler.ast_nodes import node_from_dict, nodes_from_list
from slimline.compiler.exceptions import SlimlineError
from slimline.compiler.interpolation import InterpolationEscaper
from slimline.compiler.ir import (
    CaptureBlock,
    CodeBlock,
    DynamicText,
    IRNode,
    MarkupAttr,
    MarkupDoctype,
    MarkupTag,
    StaticText,
    children_of,
    ir_to_dict,
)
from slimline.compiler.lowering import compile_template
from slimline.compiler.options import CompilerOptions
from slimline.compiler.safety import SafeCallPredicate

console = Console()
err_console = Console(stderr=True)

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_HELPTEXT_FIRST = True
click.rich_click.STYLE_COMMANDS_TABLE_SHOW_LINES = False
click.rich_click.STYLE_COMMANDS_TABLE_HEADER = "bold magenta"
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running 'slimline --help' for more information."

click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_OPTION = "cyan"
click.rich_click.STYLE_SWITCH = "cyan"
click.rich_click.STYLE_METAVAR = "dim white"
click.rich_click.STYLE_USAGE_COMMAND = "cyan"
click.rich_click.STYLE_USAGE = "dim"

click.rich_click.COMMAND_GROUPS = {
    "slimline": [
        {
            "name": "Commands",
            "commands": ["lower", "escape"],
        }
    ]
}


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _build_options(raw_by_default: bool, safe_calls: Tuple[str, ...]) -> CompilerOptions:
    return CompilerOptions(
        escape_by_default=not raw_by_default,
        treat_safe_markers_as_unescaped=bool(safe_calls),
        is_safe=SafeCallPredicate(safe_calls) if safe_calls else None,
    )


def _load_tree(data: Any) -> Any:
    if isinstance(data, list):
        return nodes_from_list(data)
    return node_from_dict(data)


def _label(node: IRNode) -> str:
    if isinstance(node, StaticText):
        return f"[green]static[/] {escape_markup(repr(node.value))}"
    if isinstance(node, DynamicText):
        return f"[yellow]dynamic[/] {escape_markup(node.expression)}"
    if isinstance(node, CodeBlock):
        return f"[magenta]code[/] {escape_markup(node.code)}"
    if isinstance(node, CaptureBlock):
        return f"[magenta]capture[/] -> {node.target}"
    if isinstance(node, MarkupDoctype):
        return f"[cyan]doctype[/] {escape_markup(node.value)}"
    if isinstance(node, MarkupTag):
        return f"[bold cyan]<{escape_markup(node.name)}>[/]"
    if isinstance(node, MarkupAttr):
        return f"[cyan]attr[/] {escape_markup(node.key)}"
    return f"[dim]{type(node).__name__.lower()}[/]"


def _to_rich_tree(node: IRNode, parent: Optional[Tree] = None) -> Tree:
    label = _label(node)
    branch = Tree(label, highlight=False) if parent is None else parent.add(label)
    for child in children_of(node):
        _to_rich_tree(child, branch)
    return branch


@click.group(
    help=f"""
[bold white on cyan] slimline [/] [bold cyan]v{__version__}[/] Lower template syntax trees into IR.

Run [bold cyan]slimline lower TREE.json[/] to inspect the IR of a parsed template.
"""
)
@click.version_option(__version__)
def cli() -> None:
    pass


@cli.command()
@click.argument("tree", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tree", "json"]),
    default="tree",
    help="Output format",
)
@click.option(
    "--raw-by-default",
    is_flag=True,
    help="Do not escape output markers that request neither behavior",
)
@click.option(
    "--safe-call",
    "safe_calls",
    multiple=True,
    help="Treat calls to this helper as already escaped (repeatable)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log lowering details")
def lower(
    tree: Any,
    output_format: str,
    raw_by_default: bool,
    safe_calls: Tuple[str, ...],
    verbose: bool,
) -> None:
    """Lower a JSON syntax tree and print the IR."""
    _configure_logging(verbose)

    try:
        data = json.load(tree)
    except json.JSONDecodeError as e:
        err_console.print(f"[bold red]Invalid JSON:[/] {escape_markup(str(e))}")
        sys.exit(1)

    try:
        options = _build_options(raw_by_default, safe_calls)
        ir = compile_template(_load_tree(data), options)
    except SlimlineError as e:
        err_console.print(f"[bold red]Error:[/] {escape_markup(str(e))}")
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps(ir_to_dict(ir), indent=2))
    else:
        console.print(_to_rich_tree(ir))


@cli.command()
@click.argument("fragment")
@click.option(
    "--safe-call",
    "safe_calls",
    multiple=True,
    help="Treat calls to this helper as already escaped (repeatable)",
)
def escape(fragment: str, safe_calls: Tuple[str, ...]) -> None:
    """Print the escaped literal for one text FRAGMENT."""
    escaper = InterpolationEscaper(_build_options(False, safe_calls))
    try:
        if escaper.has_interpolation(fragment):
            click.echo(escaper.escape_interpolation(fragment))
        else:
            click.echo(json.dumps(escaper.literal(fragment)))
    except SlimlineError as e:
        err_console.print(f"[bold red]Error:[/] {escape_markup(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
