import logging
import sys
from typing import Annotated

import typer
from rich.console import Console

from platform_scan.api.client import ApiClient
from platform_scan.api.session import connect

err_console = Console(stderr=True)

TokenOption = Annotated[
    str,
    typer.Option("--token", envvar="PLATFORMSH_CLI_TOKEN", show_default=False, help="Platform API token."),
]

ConcurrencyOption = Annotated[
    int,
    typer.Option(min=1, help="Organizations/subscriptions fetched at once; 1 keeps the output order stable."),
]

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: int) -> None:
    """Log to stderr so stdout only ever carries the report."""
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("platform_scan").setLevel(level)
    if verbosity < 2:
        logging.getLogger("httpx").setLevel(logging.WARNING)


async def open_client(token: str) -> ApiClient:
    return await connect(token)
