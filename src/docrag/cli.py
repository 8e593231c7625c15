"""CLI interface for docrag.

Typer-based command-line interface with Rich output formatting. Logs go to
stderr so ``--json`` output on stdout stays machine-readable.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from docrag import __version__
from docrag.config import DocragConfig, apply_env_overrides, load_config, save_config
from docrag.context import AppContext
from docrag.exceptions import DocragError
from docrag.tools import crawl_and_index, delete_source, list_sources, search_docs

__all__ = ["app"]

DEFAULT_CONFIG_FILE = "docrag.toml"

app = typer.Typer(
    name="docrag",
    help="Crawl documentation sites into a vector store and search them.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help=f"Config file (default: ./{DEFAULT_CONFIG_FILE} if present)"),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the raw result as JSON")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Configure logging for all commands."""
    level = "DEBUG" if verbose else os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level if level in logging.getLevelNamesMapping() else "WARNING",
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load(config_path: Path | None) -> AppContext:
    """Load config (file + environment) and build the application context."""
    try:
        if config_path is not None:
            config = load_config(config_path)
        elif Path(DEFAULT_CONFIG_FILE).exists():
            config = load_config(Path(DEFAULT_CONFIG_FILE))
        else:
            config = DocragConfig()
        apply_env_overrides(config)
        return AppContext.from_config(config)
    except DocragError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1) from e


def _print_json(data: dict[str, object]) -> None:
    typer.echo(json.dumps(data, indent=2))


@app.command()
def version() -> None:
    """Show docrag version."""
    console.print(f"docrag {__version__}")


@app.command()
def init(
    path: Annotated[Path, typer.Argument(help="Where to write the config")] = Path(
        DEFAULT_CONFIG_FILE
    ),
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite existing file")] = False,
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        console.print(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(code=1)

    try:
        save_config(DocragConfig(), path)
    except DocragError as e:
        console.print(f"[red]Failed to write config:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Wrote default config[/green] to {path}")


@app.command()
def crawl(
    url: Annotated[str, typer.Argument(help="Start URL (http or https)")],
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-d", help="Link depth to follow (default: 2)"),
    ] = None,
    sliding: Annotated[
        bool,
        typer.Option("--sliding", help="Use sliding-window instead of paragraph chunking"),
    ] = False,
    config_path: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Crawl a documentation site and index its pages."""
    ctx = _load(config_path)
    with console.status(f"Crawling {url} ..."):
        result = crawl_and_index(
            ctx, url, max_depth=max_depth, semantic=False if sliding else None
        )

    if as_json:
        _print_json(result.to_dict())
    elif result.success:
        console.print(
            f"[green]Indexed {result.pages_indexed} page(s)[/green] "
            f"({result.chunks_created} chunks) from {result.url}"
        )
    else:
        console.print(f"[red]Indexing failed:[/red] {result.error}")

    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Search query")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", help="Number of results (default: search.default_top_k)"),
    ] = None,
    hybrid: Annotated[
        bool,
        typer.Option("--hybrid/--semantic-only", help="Fuse keyword and semantic ranking"),
    ] = True,
    expand: Annotated[
        bool,
        typer.Option("--expand", help="Add query phrasing variants"),
    ] = False,
    config_path: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Search indexed documents."""
    ctx = _load(config_path)
    result = search_docs(ctx, query, top_k=top_k, hybrid=hybrid, expand_query=expand)

    if as_json:
        _print_json(result.to_dict())
    elif result.error:
        console.print(f"[red]Search failed:[/red] {result.error}")
    elif not result.results:
        console.print("[dim]No results.[/dim]")
    else:
        for rank, item in enumerate(result.results, start=1):
            console.print(
                f"[bold]{rank}. {item.title}[/bold] [dim]({item.score:.4f})[/dim]\n"
                f"   [cyan]{item.url}[/cyan]"
            )
            snippet = " ".join(item.text.split())
            console.print(f"   {snippet[:300]}{'...' if len(snippet) > 300 else ''}\n")

    if result.error:
        raise typer.Exit(code=1)


@app.command()
def sources(
    config_path: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """List indexed documentation sources."""
    ctx = _load(config_path)
    result = list_sources(ctx)

    if as_json:
        _print_json(result.to_dict())
    elif result.error:
        console.print(f"[red]{result.error}[/red]")
    elif not result.sources:
        console.print("[dim]No sources indexed yet. Run [bold]docrag crawl <url>[/bold].[/dim]")
    else:
        table = Table(title=f"{result.total_sources} source(s)")
        table.add_column("URL", style="cyan")
        table.add_column("Title")
        table.add_column("Pages", justify="right")
        table.add_column("Chunks", justify="right")
        table.add_column("Indexed at", style="dim")
        for source in result.sources:
            table.add_row(
                source.url,
                source.title,
                str(source.page_count),
                str(source.chunk_count),
                source.indexed_at,
            )
        console.print(table)

    if result.error:
        raise typer.Exit(code=1)


@app.command()
def delete(
    url: Annotated[str, typer.Argument(help="URL whose site (scheme + host) is removed")],
    config_path: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Delete all indexed chunks of a documentation source."""
    ctx = _load(config_path)
    result = delete_source(ctx, url)

    if as_json:
        _print_json(result.to_dict())
    elif result.success:
        console.print(f"[green]Deleted {result.deleted_chunks} chunk(s)[/green] under {url}")
    else:
        console.print(f"[yellow]{result.error}[/yellow]")

    if not result.success:
        raise typer.Exit(code=1)
