"""Main CLI application for Clarity Finance.

Entry point for running the API server and inspecting the bundled demo
dataset from a terminal.
"""

import logging
from typing import Annotated

import typer

from ..logging import setup_logging
from .commands import demo, serve

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="clarity",
    help="Clarity Finance: personal finance backend and Plaid proxy",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose debug logging",
        ),
    ] = False,
) -> None:
    """Global options for the Clarity Finance CLI."""
    ctx.obj = {"verbose": verbose}
    setup_logging(cli_mode=True, verbose=verbose)


app.command("serve")(serve.serve)
app.add_typer(demo.app, name="demo", help="Inspect the bundled demo dataset")


def main() -> None:
    """Entry point for the Clarity Finance CLI application."""
    app()


if __name__ == "__main__":
    main()
