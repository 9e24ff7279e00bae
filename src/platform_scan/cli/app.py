from typing import Annotated

import typer

from platform_scan.cli.common import configure_logging
from platform_scan.cli.inventory import organizations, subscriptions
from platform_scan.cli.scan import scan
from platform_scan.cli.variables import copy_vars

app = typer.Typer(
    name="platform-scan",
    help="Inspect hosted projects through the platform API without cloning them.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _main(
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="Log progress to stderr (-vv: debug).")] = 0,
) -> None:
    configure_logging(verbose)


app.command("scan")(scan)
app.command("organizations")(organizations)
app.command("subscriptions")(subscriptions)
app.command("copy-vars")(copy_vars)


def main() -> None:
    app()
