"""
Remote file CLI commands: ls, cat, rm, mv
"""
import typer
from typing import Callable, List

from rich.table import Table
from rich.markup import escape
from rich.text import Text

from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.exceptions import GscError, SpecError
from ...domain.files import RemoteFileService
from ...domain.transfer import RemoteEntry, RemoteRef, parse_remote
from .context import CliContext, get_context, fail
from .transfer import select_policy

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()


def register_file_commands(app: typer.Typer) -> None:
    """Register ls, cat, rm and mv on the main app"""
    app.command(name="ls")(ls_run)
    app.command(name="cat")(cat_run)
    app.command(name="rm")(rm_run)
    app.command(name="mv")(mv_run)


def _service(state: CliContext) -> RemoteFileService:
    def on_delete(entry: RemoteEntry) -> None:
        if not state.quiet:
            stdout_console.print(f"Deleting remote file ‘{escape(str(entry))}’...")

    def on_move(entry: RemoteEntry, target: RemoteRef) -> None:
        if not state.quiet:
            stdout_console.print(f"Moving remote file ‘{escape(str(entry))}’ to ‘{escape(str(target))}’...")

    client = state.get_client()
    return RemoteFileService(
        listing_source=client,
        operations=client,
        fs=state.fs,
        prompt_provider=state.prompt_provider,
        on_delete=on_delete,
        on_move=on_move,
    )


def _for_each_spec(specs: List[str], action: Callable[[RemoteRef], None]) -> None:
    """
    Run action for every spec, warning about specs that fail to resolve.

    Exits with status 1 afterwards if any spec produced a warning.
    """
    had_warning = False
    for spec in specs:
        try:
            action(parse_remote(spec))
        except SpecError as e:
            stderr_console.print(f"[yellow]Warning:[/yellow] {escape(str(e))}")
            had_warning = True
        except GscError as e:
            fail(e)
    if had_warning:
        raise typer.Exit(1)


def format_listing(entries: List[RemoteEntry]) -> Table:
    """Listing table: size, upload time, type tag, name"""
    table = Table(box=None, show_header=False, pad_edge=False)
    table.add_column("size", justify="right")
    table.add_column("uploaded")
    table.add_column("type")
    table.add_column("name")
    for entry in entries:
        table.add_row(
            f"{entry.size:,}",
            entry.uploaded_at.strftime("%Y-%m-%d %H:%M:%S"),
            Text(f"[{entry.file_type.to_char()}]"),
            Text(entry.name),
        )
    return table


def ls_run(
    ctx: typer.Context,
    specs: List[str] = typer.Argument(..., metavar="SPEC...", help="The homeworks or files to list, e.g. ‘hw3’"),
):
    """
    List remote files.

    Examples:
        gsc ls hw1
        gsc ls 'hw1:*.c' hw2
    """
    state = get_context(ctx)
    try:
        service = _service(state)
    except GscError as e:
        fail(e)

    def show(ref: RemoteRef) -> None:
        entries = service.ls(ref)
        if len(specs) > 1:
            stdout_console.print(f"{escape(str(ref))}:")
        stdout_console.print(format_listing(entries))

    _for_each_spec(specs, show)


def cat_run(
    ctx: typer.Context,
    specs: List[str] = typer.Argument(..., metavar="SPEC...", help="The remote files or homeworks to print"),
    all_files: bool = typer.Option(
        False, "-a", "--all", help="Print all files in the specified homeworks, logs included"
    ),
):
    """
    Print remote files to stdout.
    """
    state = get_context(ctx)
    try:
        service = _service(state)
    except GscError as e:
        fail(e)

    def show(ref: RemoteRef) -> None:
        for _entry, contents in service.cat(ref, all_files=all_files):
            typer.echo(contents, nl=False)

    _for_each_spec(specs, show)


def rm_run(
    ctx: typer.Context,
    specs: List[str] = typer.Argument(..., metavar="SPEC...", help="The remote files or homeworks to remove"),
    all_files: bool = typer.Option(
        False, "-a", "--all", help="Remove all the files in the specified homeworks"
    ),
):
    """
    Remove remote files.

    Examples:
        gsc rm hw1:old.c
        gsc rm -a hw1
    """
    state = get_context(ctx)
    try:
        service = _service(state)
    except GscError as e:
        fail(e)

    _for_each_spec(specs, lambda ref: service.rm(ref, all_files=all_files))

    if not state.quiet:
        stdout_console.print("[green]✓[/green] Done.")


def mv_run(
    ctx: typer.Context,
    src: str = typer.Argument(..., help="The file to rename, e.g. ‘hw1:a.c’"),
    dst: str = typer.Argument(..., help="The new name: ‘hw2:b.c’, ‘hw2’ or ‘:b.c’"),
    force: bool = typer.Option(
        False, "-f", "--force", help="Overwrite existing files without asking"
    ),
    interactive: bool = typer.Option(
        False, "-i", "--interactive", help="Ask before overwriting existing files"
    ),
    never: bool = typer.Option(
        False, "-n", "--never", help="Never overwrite existing files"
    ),
):
    """
    Rename or move a remote file.
    """
    state = get_context(ctx)
    policy = select_policy(force, interactive, never, state.config.overwrite)

    try:
        moved = _service(state).mv(parse_remote(src), dst, policy=policy)
    except GscError as e:
        fail(e)

    if moved is None and not state.quiet:
        stdout_console.print("[yellow]⊘[/yellow] Nothing moved.")
