# stache/cli/console_output.py
"""
Handles printing the parse tree and summary information to the console
(stderr) during CLI execution.
"""
from typing import Optional, Tuple

import click
import structlog
from rich.console import Console as RichConsole
from rich.markup import escape
from rich.tree import Tree

from stache.core.templating import Node, SectionNode, Template, TextNode, VariableNode

log = structlog.get_logger(__name__)

TEXT_PREVIEW_LEN = 40

def _node_label(node: Node) -> str:
    if isinstance(node, TextNode):
        preview = node.text if len(node.text) <= TEXT_PREVIEW_LEN else node.text[:TEXT_PREVIEW_LEN] + "..."
        return f"[dim]text[/dim] {escape(repr(preview))}"
    if isinstance(node, VariableNode):
        kind = "raw variable" if node.raw else "variable"
        return f"[green]{kind}[/green] {escape(node.name)}"
    sigil = "^" if node.inverted else "#"
    return f"[cyan]section[/cyan] {sigil}{escape(node.name)} [dim](line {node.start_line})[/dim]"

def _add_children(branch: Tree, nodes: Tuple[Node, ...]):
    for node in nodes:
        child = branch.add(_node_label(node))
        if isinstance(node, SectionNode):
            _add_children(child, node.children)

def build_parse_tree(template: Template, title: str = "template") -> Tree:
    tree = Tree(f"[bold]{escape(title)}[/bold]")
    _add_children(tree, template.nodes)
    return tree

def print_parse_tree(template: Template, title: str = "template", console: Optional[RichConsole] = None):
    log.debug("console_parse_tree_requested", nodes=len(template.nodes))
    console = console or RichConsole(stderr=True)
    console.print(build_parse_tree(template, title))

def print_cli_summary_output(job):
    """
    Prints a short summary of the run to stderr.
    'job' is a finished RenderJob.
    """
    click.secho("--- render summary ---", fg="cyan", err=True)
    click.echo(f"Nodes parsed: {job.node_count} ({job.section_count} sections)", err=True)
    click.echo(f"Root contexts: {len(job.contexts)}", err=True)
    if job.diagnostics:
        click.secho(f"Lookup diagnostics: {len(job.diagnostics)}", fg="yellow", err=True)
        for name, error in job.diagnostics:
            click.echo(f"  - {name}: {error}", err=True)
