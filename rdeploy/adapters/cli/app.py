"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging
from .deploy import register_deploy_commands

app = typer.Typer(
    name="rdeploy",
    add_completion=False,
    help="Incremental git-driven deployment over SSH",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_deploy_commands(app)


@app.callback()
def main(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    rdeploy - push a git working tree directory to a remote host

    - deploy: Transfer changes since the last deployed revision
    - status: Show the deployed revision and pending changes
    """
    setup_logging(level=log_level, log_file=log_file)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
