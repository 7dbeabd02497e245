"""
Authentication CLI commands
"""
import typer

from ...core.logging import get_logger, get_stdout_console
from ...core.exceptions import GscError
from .context import get_context, fail

logger = get_logger(__name__)
stdout_console = get_stdout_console()


def register_auth_commands(app: typer.Typer) -> None:
    """Register auth, deauth and whoami on the main app"""
    app.command(name="auth")(auth_run)
    app.command(name="deauth")(deauth_run)
    app.command(name="whoami")(whoami_run)


def auth_run(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="Your username (i.e., your NetID)"),
):
    """
    Authenticate with the server.
    """
    state = get_context(ctx)
    try:
        client = state.get_client()
        password = state.prompt_provider.prompt(f"Password for {user}", password=True)
        client.auth(user, password)
    except GscError as e:
        fail(e)

    if not state.quiet:
        stdout_console.print(f"[green]✓[/green] Authenticated as {user}")


def deauth_run(ctx: typer.Context):
    """
    Forget authentication credentials.
    """
    state = get_context(ctx)
    try:
        state.get_client().deauth()
    except GscError as e:
        fail(e)

    if not state.quiet:
        stdout_console.print("[green]✓[/green] Deauthenticated.")


def whoami_run(ctx: typer.Context):
    """
    Print your username, if authenticated.
    """
    state = get_context(ctx)
    try:
        username = state.get_client().whoami()
    except GscError as e:
        fail(e)

    typer.echo(username)
