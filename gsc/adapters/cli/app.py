"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging, get_logger, get_stderr_console
from ...core.exceptions import ConfigError
from ..config.loader import ConfigLoader
from .context import CliContext
from .account import register_account_commands
from .auth import register_auth_commands
from .files import register_file_commands
from .transfer import register_transfer_commands

logger = get_logger(__name__)
stderr_console = get_stderr_console()

app = typer.Typer(
    name="gsc",
    add_completion=False,
    help="Command-line interface to the GSC homework submission server",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_auth_commands(app)
register_transfer_commands(app)
register_file_commands(app)
register_account_commands(app)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Configuration file (TOML, default: ~/.config/gsc/config.toml)",
    ),
    endpoint: Optional[str] = typer.Option(
        None,
        "--endpoint",
        help="Server URL",
    ),
    user: Optional[str] = typer.Option(
        None,
        "-u",
        "--user",
        help="Act on another user's submissions",
    ),
    verbose: bool = typer.Option(
        False,
        "-v",
        "--verbose",
        help="Show debug output",
    ),
    quiet: bool = typer.Option(
        False,
        "-q",
        "--quiet",
        help="Only print errors",
    ),
    log_level: str = typer.Option(
        "WARNING",
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
    GSC - homework submission client

    Use subcommands to perform different operations:
    - auth/deauth/whoami: Manage your login
    - cp: Copy files to or from the server
    - ls/cat/rm/mv: Work with submitted files
    - status/create/passwd: Your account and submissions
    - partner/eval: Partner requests and self evaluation
    """
    setup_logging(level="DEBUG" if verbose else log_level, log_file=log_file)

    # A context supplied by the caller (tests) is kept as is
    if isinstance(ctx.obj, CliContext):
        ctx.obj.quiet = ctx.obj.quiet or quiet
        return

    try:
        config = ConfigLoader().load_client_config(
            toml_path=config_path,
            cli_overrides={"endpoint": endpoint},
        )
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)

    ctx.obj = CliContext(config=config, quiet=quiet, user=user)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
