import asyncio
from collections.abc import Sequence
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from platform_scan.cli import common
from platform_scan.cli.common import ConcurrencyOption, TokenOption, err_console
from platform_scan.errors import PlatformScanError
from platform_scan.models import Organization, Subscription

console = Console()


def _render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def organizations(token: TokenOption) -> None:
    """List the organizations the token can see."""

    async def _run() -> list[Organization]:
        client = await common.open_client(token)
        try:
            return await client.organizations()
        finally:
            await client.aclose()

    try:
        rows = asyncio.run(_run())
    except PlatformScanError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    _render_table(["id", "name", "label"], [(o.id, o.name, o.label) for o in rows])


def subscriptions(token: TokenOption, concurrency: ConcurrencyOption = 1) -> None:
    """List the subscriptions of every organization."""

    async def _run() -> list[Subscription]:
        client = await common.open_client(token)
        try:
            return await client.subscriptions(concurrency=concurrency)
        finally:
            await client.aclose()

    try:
        rows = asyncio.run(_run())
    except PlatformScanError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    _render_table(
        ["project", "title", "plan", "storage", "region"],
        [(s.project_id, s.project_title, s.plan, s.storage, s.project_region or "") for s in rows],
    )
