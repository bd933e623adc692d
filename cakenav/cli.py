"""cakenav CLI - resolve CakePHP element, cell and asset references to files."""

from __future__ import annotations

import json
import time
from pathlib import Path

import click

from cakenav.config import ResolverConfig, ResourceKind
from cakenav.log import configure_logging
from cakenav.output import describe_file, file_info_to_dict, generation_to_dict, link_to_dict, write_output
from cakenav.resolver import Resolver
from cakenav.workspace import Workspace

_KINDS = [kind.value for kind in ResourceKind]


@click.group()
@click.option("--enable-logging", is_flag=True, help="Log resolution steps to stderr")
@click.option("--verbose", is_flag=True, help="Debug-level logging (implies --enable-logging)")
@click.pass_context
def cli(ctx: click.Context, enable_logging: bool, verbose: bool) -> None:
    """cakenav - jump from CakePHP references to the files behind them."""
    ctx.ensure_object(dict)
    ctx.obj["enable_logging"] = enable_logging or verbose
    configure_logging(enable_logging or verbose, verbose)


def _build_with_progress(workspace: Workspace) -> None:
    """Rebuild the indices with a Rich progress display."""
    from rich.console import Console
    from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

    console = Console(stderr=True)

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Initialising...", total=None)

        def on_phase(name, label):
            progress.update(task, description=label)

        workspace.rebuild(progress_callback=on_phase)


def _open_workspace(path: str, quiet: bool, **settings) -> Workspace:
    config = ResolverConfig(enable_logging=click.get_current_context().obj.get("enable_logging", False), **settings)
    workspace = Workspace(str(Path(path).resolve()), config)
    if quiet:
        workspace.rebuild()
    else:
        _build_with_progress(workspace)
    return workspace


def _print_files(files, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([file_info_to_dict(f) for f in files], indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    console = Console()
    if not files:
        console.print("[yellow]No related files found[/yellow]")
        return

    table = Table(show_edge=False)
    table.add_column("Kind", style="bold")
    table.add_column("Path")
    table.add_column("Method", justify="right")
    for info in files:
        method = ""
        if info.method_location is not None:
            method = f"line {info.method_location.line + 1}"
        table.add_row(describe_file(info), info.show_path, method)
    console.print(table)


@cli.command("index")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--output", "output_path", default=None, help="Write the indices to a JSON file")
@click.option("--quiet", is_flag=True, help="Suppress all output except errors")
def index_cmd(path: str, output_path: str | None, quiet: bool) -> None:
    """Build every index for a project and print a summary."""
    start = time.monotonic()
    workspace = _open_workspace(path, quiet)
    generation = workspace.generation
    duration = (time.monotonic() - start) * 1000

    if output_path:
        write_output(generation_to_dict(generation), output_path)

    if quiet:
        return

    from rich.console import Console
    from rich.table import Table

    stats = generation.stats()
    table = Table(title=f"cakenav index: {Path(workspace.root).name}", show_edge=False)
    table.add_column("Index", style="bold")
    table.add_column("Keys", justify="right")
    table.add_row("Namespaces", str(stats.namespaces))
    table.add_row("Elements", str(stats.elements))
    table.add_row("Cells", str(stats.cells))
    table.add_row("Scripts", str(stats.scripts))
    table.add_row("Styles", str(stats.styles))
    table.add_row("Duration", f"{duration:.1f}ms")

    console = Console()
    console.print(table)
    if output_path:
        console.print(f"[green]Output written to:[/green] {output_path}")


@cli.command("resolve")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--line", "line_no", default=None, type=int, help="Only scan this 1-based line")
@click.option("--ref", "raw", default=None, help="Resolve this raw reference instead of scanning")
@click.option("--kind", type=click.Choice(_KINDS), default=None, help="Resource kind for --ref")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
def resolve_cmd(path: str, file: str, line_no: int | None, raw: str | None, kind: str | None, as_json: bool) -> None:
    """Resolve the references in FILE (or one explicit reference)."""
    workspace = _open_workspace(path, quiet=True)
    resolver = Resolver(workspace)
    text = Path(file).read_text(encoding="utf-8", errors="replace")
    context = resolver.context_for(file, text)

    if raw is not None:
        if kind is None:
            raise click.UsageError("--ref requires --kind")
        files = resolver.resolve(raw, ResourceKind(kind), context)
    elif line_no is not None:
        lines = text.splitlines()
        if not 1 <= line_no <= len(lines):
            raise click.BadParameter(f"line {line_no} is outside 1..{len(lines)}", param_hint="--line")
        files = resolver.find_files(lines[line_no - 1], context)
    else:
        files = resolver.find_files(text, context)

    _print_files(files, as_json)


@cli.command("links")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--max-lines", default=1000, type=int, help="Never scan lines past this count")
def links_cmd(path: str, file: str, max_lines: int) -> None:
    """Print the document links FILE would get, as JSON."""
    workspace = _open_workspace(path, quiet=True, max_lines_count=max_lines)
    resolver = Resolver(workspace)
    text = Path(file).read_text(encoding="utf-8", errors="replace")
    links = resolver.document_links(text, file)
    click.echo(json.dumps([link_to_dict(link) for link in links], indent=2))


@cli.command("complete")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("line_prefix")
def complete_cmd(path: str, line_prefix: str) -> None:
    """List completions for LINE_PREFIX, e.g. "$this->element('wid"."""
    workspace = _open_workspace(path, quiet=True)
    for item in Resolver(workspace).complete(line_prefix):
        click.echo(f"{item.label}\t{item.insert_text}")


@cli.command("watch")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def watch_cmd(path: str) -> None:
    """Keep the indices fresh while files change (Ctrl-C to stop)."""
    from cakenav.watcher import ProjectWatcher

    workspace = _open_workspace(path, quiet=False)
    click.echo(f"Watching {workspace.root} (generation {workspace.generation.number})")
    with ProjectWatcher(workspace):
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            click.echo("Stopped")


if __name__ == "__main__":
    cli()
