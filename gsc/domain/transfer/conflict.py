"""
Overwrite decisions for existing destination files
"""
from typing import Optional

from ...core.interfaces import FileSystem, PromptProvider
from ...core.logging import get_logger
from .models import OverwriteAnswer, OverwritePolicy, TransferDirection, TransferItem

logger = get_logger(__name__)


class ConflictResolver:
    """
    Decides, item by item, whether an existing file may be replaced.

    One resolver serves one invocation. Answering "all" or "none" at a
    prompt switches self.policy to FORCE or NEVER for the rest of it.
    """

    def __init__(
        self,
        policy: OverwritePolicy,
        fs: FileSystem,
        prompt_provider: Optional[PromptProvider] = None,
    ):
        self.policy = policy
        self.fs = fs
        self.prompt_provider = prompt_provider

    def should_transfer(self, item: TransferItem) -> bool:
        """
        Whether item may run.

        Uploads always run; replacing a remote file is up to the server.
        Downloads to a path that does not exist yet always run.
        """
        if item.direction == TransferDirection.UPLOAD:
            return True
        return self.should_overwrite(item.local_path, self.fs.exists(item.local_path))

    def should_overwrite(self, target: str, exists: bool) -> bool:
        """
        Apply the policy to one target.

        Args:
            target: Path or remote spec shown to the user
            exists: Whether target already exists
        """
        if not exists or self.policy == OverwritePolicy.FORCE:
            return True
        if self.policy == OverwritePolicy.NEVER:
            logger.debug(f"Not overwriting {target}")
            return False

        if self.prompt_provider is None:
            logger.warning(f"Cannot ask about overwriting {target}; skipping")
            return False

        answer = self.prompt_provider.ask_overwrite(target)
        if answer == OverwriteAnswer.ALL:
            self.policy = OverwritePolicy.FORCE
            return True
        if answer == OverwriteAnswer.NONE:
            self.policy = OverwritePolicy.NEVER
            return False
        return answer == OverwriteAnswer.YES
