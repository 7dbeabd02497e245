"""
Command-line spec parser (hw<N>[:<pattern>] or local path)
"""
import re
from typing import Union

from ...core.exceptions import InvalidHomeworkNumber, UnsupportedCpForm
from .models import RemoteRef, LocalRef

# hw, optional digits, then either end of token or a colon. Tokens like
# "hwnotes.txt" are left to the local-path branch.
_REMOTE_RE = re.compile(r"^hw(?P<number>\d*)(?::(?P<pattern>.*))?$", re.DOTALL)


def parse_spec(token: str) -> Union[RemoteRef, LocalRef]:
    """
    Classify one command-line token.

    Supports formats:
    - hw<N>           whole homework
    - hw<N>:          whole homework
    - hw<N>:<pattern> files in homework N matching the pattern
    - anything else   local path

    Args:
        token: Command-line argument

    Returns:
        RemoteRef or LocalRef

    Raises:
        InvalidHomeworkNumber: If the homework number is missing or not positive
    """
    match = _REMOTE_RE.match(token)
    if match is None:
        return LocalRef(token)

    number = match.group("number")
    pattern = match.group("pattern")

    # "hw" with neither digits nor colon is a plain file name
    if not number and pattern is None:
        return LocalRef(token)

    if not number or int(number) <= 0:
        raise InvalidHomeworkNumber(token)

    return RemoteRef(homework=int(number), pattern=pattern or None)


def parse_remote(token: str) -> RemoteRef:
    """
    Parse a token that must be remote.

    Raises:
        InvalidHomeworkNumber: If the homework number is malformed
        UnsupportedCpForm: If the token is a local path
    """
    ref = parse_spec(token)
    if not isinstance(ref, RemoteRef):
        raise UnsupportedCpForm(f"expected a remote spec like ‘hw3:file.c’, got ‘{token}’")
    return ref


def parse_destination(token: str, default_homework: int) -> RemoteRef:
    """
    Parse an mv destination.

    Besides the usual forms, ":<name>" renames within default_homework.
    """
    if token.startswith(":"):
        return RemoteRef(default_homework, token[1:] or None)
    return parse_remote(token)


def parse_homework(token: str) -> int:
    """
    Parse a homework argument: "hw3", "hw3:" or plain "3".

    Raises:
        InvalidHomeworkNumber: For anything else, including file patterns
    """
    if token.isdigit():
        number = int(token)
    else:
        ref = parse_spec(token)
        if not isinstance(ref, RemoteRef) or not ref.is_whole_homework:
            raise InvalidHomeworkNumber(token)
        number = ref.homework
    if number <= 0:
        raise InvalidHomeworkNumber(token)
    return number
