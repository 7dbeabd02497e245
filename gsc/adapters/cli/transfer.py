"""
Transfer CLI commands
"""
import threading
import typer
from typing import Dict, List, Optional

from rich.markup import escape
from rich.progress import BarColumn, DownloadColumn, Progress, TaskID, TextColumn, TransferSpeedColumn

from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.exceptions import GscError
from ...domain.transfer import (
    OverwritePolicy,
    PlanReport,
    TransferDirection,
    TransferItem,
    TransferService,
)
from .context import CliContext, get_context, fail

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()

EXIT_INTERRUPTED = 130


def register_transfer_commands(app: typer.Typer) -> None:
    """Register cp on the main app"""
    app.command(name="cp")(cp_run)


def select_policy(
    force: bool,
    interactive: bool,
    never: bool,
    default: str = OverwritePolicy.PROMPT_DEFAULT.value,
) -> OverwritePolicy:
    """Overwrite policy from -f/-i/-n, falling back to the configured default"""
    try:
        return OverwritePolicy.from_flags(force, interactive, never, OverwritePolicy(default))
    except ValueError as e:
        raise typer.BadParameter(str(e))


def cp_run(
    ctx: typer.Context,
    paths: List[str] = typer.Argument(..., metavar="SRC... DST", help="Files to copy, then the destination"),
    all_files: bool = typer.Option(
        False, "-a", "--all", help="Copy all the files in the specified source homeworks"
    ),
    force: bool = typer.Option(
        False, "-f", "--force", help="Overwrite existing files without asking"
    ),
    interactive: bool = typer.Option(
        False, "-i", "--interactive", help="Ask before overwriting existing files"
    ),
    never: bool = typer.Option(
        False, "-n", "--never", help="Never overwrite existing files"
    ),
    parallel: Optional[int] = typer.Option(
        None, "--parallel", min=1, help="Number of files transferred at once"
    ),
):
    """
    Copy files to or from the server.

    Examples:
        gsc cp circle.c hw1:square.c
        gsc cp *.c *.h hw1:
        gsc cp hw1:square.c circle.c
        gsc cp 'hw1:*.c' src/
        gsc cp -a hw1 project
    """
    if len(paths) < 2:
        raise typer.BadParameter("need at least one source and a destination", param_hint="SRC... DST")

    state = get_context(ctx)
    policy = select_policy(force, interactive, never, state.config.overwrite)

    show_progress = not state.quiet and stdout_console.is_terminal

    progress_kwargs = {
        "console": stdout_console if show_progress else None,
        "disable": not show_progress,
        "transient": True,
    }

    # Started by the first byte, so overwrite prompts never run under a live display
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        **progress_kwargs,
    )

    try:
        client = state.get_client()
        service = TransferService(
            listing_source=client,
            executor=client,
            fs=state.fs,
            prompt_provider=state.prompt_provider,
            parallel=parallel or state.config.parallel,
            on_item_start=lambda item: _announce(state, item),
            on_item_skipped=lambda item: stdout_console.print(
                f"[yellow]⊘[/yellow] Skipped: {escape(item.local_path)} (exists)"
            ),
            on_item_failed=lambda item, reason: stderr_console.print(
                f"[red]Error:[/red] {escape(str(item))}: {escape(reason)}"
            ),
            on_item_progress=ByteProgress(progress) if show_progress else None,
        )
        report = service.cp(paths[:-1], paths[-1], policy=policy, all_files=all_files)
    except GscError as e:
        fail(e)
    except typer.Exit:
        raise
    except Exception as e:
        fail(e)
    finally:
        progress.stop()

    _finish(state, report)


class ByteProgress:
    """
    One progress bar per running item, hidden once the item's bytes are all
    through. Called from worker threads when --parallel is above 1.
    """

    def __init__(self, progress: Progress):
        self.progress = progress
        self._tasks: Dict[TransferItem, TaskID] = {}
        self._lock = threading.Lock()

    def __call__(self, item: TransferItem, transferred: int, total: int) -> None:
        with self._lock:
            task = self._tasks.get(item)
            if task is None:
                self.progress.start()
                task = self.progress.add_task(escape(item.remote_name), total=total or None)
                self._tasks[item] = task

        self.progress.update(task, completed=transferred, total=total or None)
        if total and transferred >= total:
            self.progress.update(task, visible=False)


def _announce(state: CliContext, item: TransferItem) -> None:
    if state.quiet:
        return
    verb = "Uploading" if item.direction == TransferDirection.UPLOAD else "Downloading"
    stdout_console.print(f"{verb} {escape(str(item))}...")


def _finish(state: CliContext, report: PlanReport) -> None:
    if report.error is not None:
        stderr_console.print(
            f"[red]✗[/red] Stopped: {len(report.completed)} done, "
            f"{len(report.failed)} failed, {len(report.cancelled)} cancelled"
        )
        fail(report.error)

    if report.interrupted:
        stderr_console.print(
            f"[yellow]⚠[/yellow] Interrupted: {len(report.completed)} done, "
            f"{len(report.cancelled)} cancelled"
        )
        raise typer.Exit(EXIT_INTERRUPTED)

    if report.failed:
        stderr_console.print(
            f"[red]✗[/red] {len(report.failed)} of {len(report.results)} file(s) failed"
        )
        raise typer.Exit(1)

    if not state.quiet:
        stdout_console.print("[green]✓[/green] Done.")
