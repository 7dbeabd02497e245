"""
Account service: status, account creation, passwords, partners and
self-evaluation
"""
from typing import Optional, Union

from ...core.exceptions import InvalidScore, PasswordMismatch
from ...core.interfaces import AccountOperations, PromptProvider
from ...core.logging import get_logger
from .models import EvalItem, PartnerAction, Submission, UserStatus

logger = get_logger(__name__)


class AccountService:
    """
    Requests about the user rather than about submitted files.

    Passwords are always asked twice through the prompt provider and never
    taken from the command line.
    """

    def __init__(
        self,
        operations: AccountOperations,
        prompt_provider: PromptProvider,
    ):
        self.operations = operations
        self.prompt_provider = prompt_provider

    def status(self, homework: Optional[int] = None) -> Union[UserStatus, Submission]:
        """
        Account overview, or the status of one submission.

        Raises:
            HomeworkNotFound: If homework is given and does not exist
        """
        if homework is None:
            return self.operations.fetch_user()
        return self.operations.fetch_submission(homework)

    def create(self, username: str) -> None:
        """
        Create an account and log in as it.

        Raises:
            PasswordMismatch: If the two passwords typed differ
        """
        password = self.new_password(username)
        self.operations.create_account(username, password)
        logger.info(f"Created account {username}")

    def passwd(self, username: str) -> None:
        """
        Change the password of username (the acting user).

        Raises:
            PasswordMismatch: If the two passwords typed differ
        """
        password = self.new_password(username)
        self.operations.change_password(password)
        logger.info(f"Changed password for {username}")

    def new_password(self, username: str) -> str:
        """Ask for a new password and its confirmation"""
        first = self.prompt_provider.prompt(f"New password for {username}", password=True)
        second = self.prompt_provider.prompt(f"Confirm password for {username}", password=True)
        if first != second:
            raise PasswordMismatch()
        return first

    def partner(self, action: PartnerAction, homework: int, user: str) -> None:
        """Send, accept or cancel the partner request between the acting user and user"""
        status = action.status()
        logger.debug(f"Partner {action.value}: hw{homework} {user} -> {status.value}")
        self.operations.update_partner_request(homework, user, status)

    def eval_get(self, homework: int, number: int) -> EvalItem:
        return self.operations.fetch_eval(homework, number)

    def eval_set(self, homework: int, number: int, score: float, explanation: str = "") -> None:
        """
        Record a self-evaluation score.

        Raises:
            InvalidScore: If score is outside [0.0, 1.0]; nothing is sent
        """
        if not 0.0 <= score <= 1.0:
            raise InvalidScore(score)
        self.operations.set_self_eval(homework, number, score, explanation)
