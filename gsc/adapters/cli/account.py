"""
Account CLI commands: status, create, passwd, partner and eval
"""
import typer
from datetime import datetime
from typing import Optional

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ...core.logging import get_logger, get_stdout_console
from ...core.exceptions import GscError
from ...domain.account import AccountService, EvalItem, PartnerAction, Submission, UserStatus
from ...domain.transfer import parse_homework
from .context import CliContext, get_context, fail

logger = get_logger(__name__)
stdout_console = get_stdout_console()


def register_account_commands(app: typer.Typer) -> None:
    """Register status, create, passwd and the partner and eval command groups"""
    app.command(name="status")(status_run)
    app.command(name="create")(create_run)
    app.command(name="passwd")(passwd_run)

    partner_app = typer.Typer(
        name="partner",
        help="Manage partner requests",
        add_completion=False,
        no_args_is_help=True,
    )
    partner_app.command(name="request")(partner_request)
    partner_app.command(name="accept")(partner_accept)
    partner_app.command(name="cancel")(partner_cancel)
    app.add_typer(partner_app, name="partner")

    eval_app = typer.Typer(
        name="eval",
        help="Manage self evaluation",
        add_completion=False,
        no_args_is_help=True,
    )
    eval_app.command(name="get")(eval_get)
    eval_app.command(name="set")(eval_set)
    app.add_typer(eval_app, name="eval")


def _service(state: CliContext) -> AccountService:
    return AccountService(state.get_client(), state.prompt_provider)


def _homework(token: str) -> int:
    try:
        return parse_homework(token)
    except GscError as e:
        raise typer.BadParameter(str(e), param_hint="HW")


def _when(value: datetime) -> str:
    return value.astimezone().strftime("%a %d %b, %H:%M (%z)")


# ============================================================
# status
# ============================================================

def format_submission(submission: Submission) -> Table:
    """Two-column status table for one submission"""
    table = Table(box=None, show_header=False, pad_edge=False)
    table.add_column("field", style="cyan")
    table.add_column("value")

    table.add_row("Submission status:", submission.status.describe())
    if submission.status.in_self_eval:
        table.add_row("Evaluation status:", submission.eval_status.value)
    table.add_row("Open date:", _when(submission.open_date))
    table.add_row("Submission due date:", _when(submission.due_date))
    table.add_row("Self-eval due date:", _when(submission.eval_date))
    table.add_row("Last modified:", _when(submission.last_modified))
    table.add_row(
        "Quota remaining:",
        f"{submission.quota_remaining:.1f}% "
        f"({submission.bytes_used}/{submission.bytes_quota} bytes used)",
    )
    return table


def format_user(user: UserStatus) -> Table:
    """One row per submission: homework, status, grade, owners"""
    table = Table(box=None, show_header=True, header_style="bold cyan", pad_edge=False)
    table.add_column("hw")
    table.add_column("status")
    table.add_column("grade", justify="right")
    table.add_column("owners")
    for submission in user.submissions:
        table.add_row(
            f"hw{submission.homework}",
            submission.status.describe(),
            f"{submission.grade:.1f}",
            Text(" and ".join(submission.owners)),
        )
    return table


def status_run(
    ctx: typer.Context,
    homework: Optional[str] = typer.Argument(None, metavar="[HW]", help="The homework to look up, e.g. ‘hw3’"),
):
    """
    Show your account, or the status of one submission.

    Examples:
        gsc status
        gsc status hw3
    """
    state = get_context(ctx)
    number = _homework(homework) if homework is not None else None

    try:
        result = _service(state).status(number)
    except GscError as e:
        fail(e)

    if isinstance(result, Submission):
        stdout_console.print(f"hw{result.homework} ({escape(' and '.join(result.owners))})")
        stdout_console.print(format_submission(result))
        return

    stdout_console.print(f"{escape(result.name)} ({escape(result.role)})")
    if result.submissions:
        stdout_console.print(format_user(result))
    for request in result.partner_requests:
        stdout_console.print(
            f"Partner request for hw{request.homework}: {escape(request.user)} ({request.status.value})"
        )


# ============================================================
# create / passwd
# ============================================================

def create_run(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="The new username (i.e., your NetID)"),
):
    """
    Create an account and log in as it.
    """
    state = get_context(ctx)
    try:
        _service(state).create(user)
    except GscError as e:
        fail(e)

    if not state.quiet:
        stdout_console.print(f"[green]✓[/green] Created account: {escape(user)}.")


def passwd_run(ctx: typer.Context):
    """
    Change your password (or, with -u, another user's).
    """
    state = get_context(ctx)
    try:
        client = state.get_client()
        username = state.user or client.whoami()
        _service(state).passwd(username)
    except GscError as e:
        fail(e)

    if not state.quiet:
        stdout_console.print(f"[green]✓[/green] Changed password for user {escape(username)}.")


# ============================================================
# partner
# ============================================================

_PARTNER_DONE = {
    PartnerAction.REQUEST: "Sent partner request to",
    PartnerAction.ACCEPT: "Accepted partner request from",
    PartnerAction.CANCEL: "Cancelled partner request with",
}


def _partner(ctx: typer.Context, action: PartnerAction, homework: str, user: str) -> None:
    state = get_context(ctx)
    number = _homework(homework)
    try:
        _service(state).partner(action, number, user)
    except GscError as e:
        fail(e)

    if not state.quiet:
        stdout_console.print(f"[green]✓[/green] {_PARTNER_DONE[action]} {escape(user)} for hw{number}.")


def partner_request(
    ctx: typer.Context,
    homework: str = typer.Argument(..., metavar="HW", help="The homework of the partner request"),
    user: str = typer.Argument(..., help="The other user of the partner request"),
):
    """Send a partner request"""
    _partner(ctx, PartnerAction.REQUEST, homework, user)


def partner_accept(
    ctx: typer.Context,
    homework: str = typer.Argument(..., metavar="HW", help="The homework of the partner request"),
    user: str = typer.Argument(..., help="The other user of the partner request"),
):
    """Accept a partner request"""
    _partner(ctx, PartnerAction.ACCEPT, homework, user)


def partner_cancel(
    ctx: typer.Context,
    homework: str = typer.Argument(..., metavar="HW", help="The homework of the partner request"),
    user: str = typer.Argument(..., help="The other user of the partner request"),
):
    """Cancel a partner request"""
    _partner(ctx, PartnerAction.CANCEL, homework, user)


# ============================================================
# eval
# ============================================================

def format_eval(item: EvalItem) -> Table:
    table = Table(box=None, show_header=False, pad_edge=False)
    table.add_column("field", style="cyan")
    table.add_column("value")

    table.add_row("Question:", Text(item.prompt))
    table.add_row("Type:", item.eval_type.value)
    table.add_row("Worth:", f"{item.value:g}")
    if item.self_eval:
        table.add_row("Your score:", f"{item.self_eval.score:.2f}")
        if item.self_eval.explanation:
            table.add_row("Your explanation:", Text(item.self_eval.explanation))
    else:
        table.add_row("Your score:", "(not yet evaluated)")
    if item.grader_eval:
        table.add_row("Grader score:", f"{item.grader_eval.score:.2f} ({escape(item.grader_eval.grader)})")
        if item.grader_eval.explanation:
            table.add_row("Grader explanation:", Text(item.grader_eval.explanation))
    return table


def eval_get(
    ctx: typer.Context,
    homework: str = typer.Argument(..., metavar="HW", help="The homework to look up"),
    number: int = typer.Argument(..., min=1, help="The eval item to look up"),
):
    """Show one self-evaluation item"""
    state = get_context(ctx)
    hw = _homework(homework)
    try:
        item = _service(state).eval_get(hw, number)
    except GscError as e:
        fail(e)

    stdout_console.print(f"hw{item.homework} item {item.number}")
    stdout_console.print(format_eval(item))


def eval_set(
    ctx: typer.Context,
    homework: str = typer.Argument(..., metavar="HW", help="The homework to evaluate"),
    number: int = typer.Argument(..., min=1, help="The eval item to set"),
    score: float = typer.Argument(..., help="The score [0.0, 1.0]"),
    explanation: str = typer.Argument("", help="Your justification for the score"),
):
    """Perform self evaluation for one item"""
    state = get_context(ctx)
    hw = _homework(homework)
    try:
        _service(state).eval_set(hw, number, score, explanation)
    except GscError as e:
        fail(e)

    if not state.quiet:
        stdout_console.print(f"[green]✓[/green] Recorded score {score:g} for hw{hw} item {number}.")
