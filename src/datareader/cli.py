"""Click-based CLI for datareader.

Thin wrapper around the library: every command delegates to
``datareader.registry``.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
from datetime import date

import click
from rich.console import Console
from rich.table import Table

from datareader.core.exceptions import DataReaderError

console = Console(stderr=True)
out = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from datareader.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _build_options(config, source: str, overrides: dict):
    """Per-source client options with CLI flags applied on top."""
    from datareader.core import ClientOptions

    base = config.options_for(source).model_dump()
    base.update({k: v for k, v in overrides.items() if v is not None})
    return ClientOptions.model_validate(base)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="DATAREADER_CONFIG",
    default=None,
    help="Path to datareader.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.version_option(package_name="datareader")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """datareader: historical market and economic data from public APIs."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# sources
# ---------------------------------------------------------------------------


@cli.command()
def sources() -> None:
    """List the available data sources."""
    from datareader.registry import list_sources, registry

    table = Table(title="Data Sources")
    table.add_column("Source", style="bold")
    table.add_column("Provider")
    table.add_column("API key", justify="center")

    for source in list_sources():
        factory = registry.get(source)
        needs_key = getattr(factory, "requires_api_key", False)
        table.add_row(source, getattr(factory, "display_name", source), "yes" if needs_key else "")

    out.print(table)


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("source")
@click.argument("symbols", nargs=-1, required=True)
@click.option(
    "--start", "-s",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    required=True,
    help="First day (YYYY-MM-DD), inclusive.",
)
@click.option(
    "--end", "-e",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Last day (YYYY-MM-DD), inclusive. Defaults to today.",
)
@click.option("--api-key", type=str, default=None, envvar="DATAREADER_API_KEY",
              help="API key or token for providers that need one.")
@click.option("--cache-dir", type=click.Path(file_okay=False), default=None,
              help="Cache responses in this directory.")
@click.option("--cache-ttl", type=float, default=None,
              help="Cache lifetime in seconds (0 = never expires).")
@click.option("--rate-limit", type=float, default=None,
              help="Max requests per second (0 = unlimited).")
@click.option("--max-retries", type=int, default=None, help="Retries per request.")
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["table", "json", "csv"]),
    default="table",
    help="Output format.",
)
@click.pass_context
def fetch(
    ctx: click.Context,
    source: str,
    symbols: tuple[str, ...],
    start,
    end,
    api_key: str | None,
    cache_dir: str | None,
    cache_ttl: float | None,
    rate_limit: float | None,
    max_retries: int | None,
    output_format: str,
) -> None:
    """Fetch SYMBOLS from SOURCE for a date range."""
    from datareader.registry import read

    start_date = start.date()
    end_date = end.date() if end is not None else date.today()

    try:
        config = _load_config(ctx)
        options = _build_options(
            config,
            source,
            {
                "api_key": api_key,
                "cache_dir": cache_dir,
                "cache_ttl": cache_ttl,
                "rate_limit": rate_limit,
                "max_retries": max_retries,
            },
        )
        results = _run_async(read(list(symbols), source, start_date, end_date, options))
    except DataReaderError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise SystemExit(1)
    except ValueError as exc:
        console.print(f"[red]Invalid option: {exc}[/red]")
        raise SystemExit(1)

    if output_format == "json":
        _output_json(results)
    elif output_format == "csv":
        _output_csv(results)
    else:
        _output_tables(results, source)


def _output_tables(results: dict, source: str) -> None:
    """Print one rich table per symbol."""
    for symbol, data in results.items():
        if len(data) == 0:
            console.print(f"[yellow]No rows for {symbol} from {source}.[/yellow]")
            continue
        table = Table(title=f"{symbol} ({source})")
        for i, column in enumerate(data.column_names()):
            table.add_column(column, style="bold" if i == 0 else None,
                             justify="left" if i == 0 else "right")
        for row in data.to_rows():
            table.add_row(*(row.get(c, "") for c in data.column_names()))
        out.print(table)


def _output_json(results: dict) -> None:
    """Write {symbol: [rows]} as JSON to stdout."""
    output = {symbol: data.to_rows() for symbol, data in results.items()}
    click.echo(json.dumps(output, indent=2, default=str))


def _output_csv(results: dict) -> None:
    """Write all symbols as one CSV with a leading Symbol column."""
    buffer = io.StringIO()
    writer = None
    for symbol, data in results.items():
        columns = ["Symbol", *data.column_names()]
        if writer is None:
            writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore")
            writer.writeheader()
        for row in data.to_rows():
            writer.writerow({"Symbol": symbol, **row})
    click.echo(buffer.getvalue(), nl=False)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
