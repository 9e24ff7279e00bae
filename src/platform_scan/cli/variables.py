import asyncio
from typing import Annotated

import typer

from platform_scan.cli import common
from platform_scan.cli.common import TokenOption, err_console
from platform_scan.core.variables import build_copy_plan
from platform_scan.errors import PlatformScanError


def copy_vars(
    token: TokenOption,
    project: Annotated[str, typer.Option("--project", "-p", help="Project to copy variables from.")],
    destination: Annotated[str, typer.Option("--destination", "-d", help="Project the commands target.")],
    environment: Annotated[
        list[str] | None, typer.Option("--environment", "-e", help="Environment to copy (repeatable, default main).")
    ] = None,
    app: Annotated[str | None, typer.Option("--app", "-A", help="App to ssh into for runtime-only values.")] = None,
) -> None:
    """Print the commands that recreate a project's variables on another project."""
    environments = environment or ["main"]

    async def _run() -> list[str]:
        client = await common.open_client(token)
        try:
            return await build_copy_plan(client, project, destination, environments, app=app)
        finally:
            await client.aclose()

    try:
        lines = asyncio.run(_run())
    except PlatformScanError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    for line in lines:
        typer.echo(line)
