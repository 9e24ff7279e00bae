import asyncio
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from platform_scan.cli import common
from platform_scan.cli.common import ConcurrencyOption, TokenOption, err_console
from platform_scan.core.aggregate import ReportAggregator, ScanResult
from platform_scan.core.config import ConfigError, load_config
from platform_scan.core.report import report_table, service_columns, write_csv
from platform_scan.errors import PlatformScanError

console = Console()


class OutputFormat(str, Enum):
    csv = "csv"
    table = "table"


def _print_diagnostics(result: ScanResult) -> None:
    if result.unreadable:
        table = Table(title="Unreadable app manifests")
        table.add_column("project")
        table.add_column("path")
        for project_id, paths in result.unreadable.items():
            for path in paths:
                table.add_row(project_id, path)
        err_console.print(table)
    if result.engine_usage:
        table = Table(title="Service engines")
        table.add_column("engine")
        table.add_column("projects", justify="right")
        for engine, count in sorted(result.engine_usage.items()):
            table.add_row(engine, str(count))
        err_console.print(table)


def scan(
    token: TokenOption,
    project: Annotated[
        list[str] | None, typer.Option("--project", "-p", help="Only scan this project id (repeatable).")
    ] = None,
    config: Annotated[Path, typer.Option("--config", "-c", help="YAML file with tracked packages.")] = Path(
        "config.yaml"
    ),
    services: Annotated[bool, typer.Option("--services/--no-services", help="Add a column per service engine.")] = True,
    concurrency: ConcurrencyOption = 1,
    output_format: Annotated[OutputFormat, typer.Option("--format", "-f", help="Report format.")] = OutputFormat.csv,
) -> None:
    """Report app types, tracked package versions and services of every project."""
    try:
        scan_config = load_config(config)
    except ConfigError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    async def _run() -> ScanResult:
        client = await common.open_client(token)
        try:
            aggregator = ReportAggregator(client, scan_config.packages_map())
            return await aggregator.run(project or (), concurrency=concurrency)
        finally:
            await client.aclose()

    try:
        result = asyncio.run(_run())
    except PlatformScanError as exc:
        err_console.print(f"[red]Scan failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    _print_diagnostics(result)

    services_cols = service_columns(result.engine_usage) if services else []
    heading, records = report_table(result.rows, services_cols, scan_config.report_cols())
    if output_format is OutputFormat.table:
        table = Table(show_lines=False)
        for column in heading:
            table.add_column(column)
        for record in records:
            table.add_row(*record)
        console.print(table)
    else:
        write_csv(sys.stdout, heading, records)
