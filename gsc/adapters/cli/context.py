"""
Per-invocation CLI state shared by all commands
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import typer
from rich.markup import escape

from ...core.config import ClientConfig
from ...core.exceptions import GscError, NotAuthenticated, HomeworkNotFound, ServerError
from ...core.interfaces import FileSystem, PromptProvider
from ...core.logging import get_logger, get_stderr_console
from ...infrastructure.fs import LocalFileSystem
from ...infrastructure.state.login_store import LoginStore
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stderr_console = get_stderr_console()


@dataclass
class CliContext:
    """
    Settings and collaborators for one command.

    client is created on first use; tests pass a ready-made one through
    CliRunner.invoke(obj=...).
    """
    config: ClientConfig = field(default_factory=ClientConfig)
    quiet: bool = False
    user: Optional[str] = None
    client: Optional[Any] = None
    fs: FileSystem = field(default_factory=LocalFileSystem)
    prompt_provider: PromptProvider = field(default_factory=RichPromptProvider)
    
    def login_store(self) -> LoginStore:
        return LoginStore(Path(self.config.dotfile) if self.config.dotfile else None)
    
    def get_client(self):
        if self.client is None:
            from ...infrastructure.api.client import GscApiClient
            self.client = GscApiClient(self.config, self.login_store(), username=self.user)
        return self.client


def get_context(ctx: typer.Context) -> CliContext:
    """CliContext stored by the app callback"""
    if not isinstance(ctx.obj, CliContext):
        ctx.obj = CliContext()
    return ctx.obj


def fail(error: Exception, code: int = 1) -> None:
    """Report an error the way every command does and exit"""
    if isinstance(error, NotAuthenticated):
        stderr_console.print(f"[red]Error:[/red] {escape(str(error))} (try ‘gsc auth USER’)")
    elif isinstance(error, (HomeworkNotFound, ServerError)):
        stderr_console.print(f"[red]Server error:[/red] {escape(str(error))}")
    elif isinstance(error, GscError):
        stderr_console.print(f"[red]Error:[/red] {escape(str(error))}")
    else:
        logger.exception("Command failed")
        stderr_console.print(f"[red]Unexpected error:[/red] {escape(str(error))}")
    raise typer.Exit(code)
