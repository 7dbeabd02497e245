"""
Collaborator interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.transfer.models import RemoteEntry, OverwriteAnswer
    from ..domain.account.models import EvalItem, PartnerStatus, Submission, UserStatus

# (transferred_bytes, total_bytes); total is 0 when unknown
ProgressCallback = Callable[[int, int], None]


class ListingSource(ABC):
    """Fetches the file listing of one homework submission"""
    
    @abstractmethod
    def fetch_listing(self, homework: int) -> List["RemoteEntry"]:
        """
        Return the homework's files in server order.
        
        Raises:
            HomeworkNotFound: If the homework does not exist
            NotAuthenticated: If there is no valid session
        """
        pass


class TransferExecutor(ABC):
    """Moves file contents between the local machine and the server"""
    
    @abstractmethod
    def upload(
        self,
        local_path: str,
        homework: int,
        remote_name: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Upload local file; raises TransferFailed"""
        pass
    
    @abstractmethod
    def download(
        self,
        homework: int,
        remote_name: str,
        local_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Download remote file; raises TransferFailed"""
        pass


class RemoteFileOperations(ABC):
    """Operations on remote files that do not involve the local disk"""
    
    @abstractmethod
    def read(self, homework: int, remote_name: str) -> bytes:
        """Return remote file contents"""
        pass
    
    @abstractmethod
    def delete(self, homework: int, remote_name: str) -> None:
        """Delete remote file"""
        pass
    
    @abstractmethod
    def rename(self, homework: int, remote_name: str, new_homework: int, new_name: str) -> None:
        """Move remote file, replacing any file already at the new name"""
        pass


class AccountOperations(ABC):
    """Account, partner and self-evaluation requests"""
    
    @abstractmethod
    def create_account(self, username: str, password: str) -> None:
        """Create a user and log in as it"""
        pass
    
    @abstractmethod
    def change_password(self, password: str) -> None:
        """Change the acting user's password"""
        pass
    
    @abstractmethod
    def fetch_user(self) -> "UserStatus":
        """The acting user's account and submissions"""
        pass
    
    @abstractmethod
    def fetch_submission(self, homework: int) -> "Submission":
        """
        Status of one homework submission.
        
        Raises:
            HomeworkNotFound: If the homework does not exist
        """
        pass
    
    @abstractmethod
    def update_partner_request(self, homework: int, partner: str, status: "PartnerStatus") -> None:
        """Send, accept or cancel a partner request"""
        pass
    
    @abstractmethod
    def fetch_eval(self, homework: int, number: int) -> "EvalItem":
        """One self-evaluation item of a submission"""
        pass
    
    @abstractmethod
    def set_self_eval(self, homework: int, number: int, score: float, explanation: str) -> None:
        """Record the acting user's score for a self-evaluation item"""
        pass


class FileSystem(ABC):
    """Local filesystem queries used while planning"""
    
    @abstractmethod
    def exists(self, path: str) -> bool:
        pass
    
    @abstractmethod
    def is_directory(self, path: str) -> bool:
        pass
    
    @abstractmethod
    def create_directory(self, path: str) -> None:
        """Create directory and parents; existing directory is not an error"""
        pass


class PromptProvider(ABC):
    """User prompt interface"""
    
    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass
    
    @abstractmethod
    def ask_overwrite(self, path: str) -> "OverwriteAnswer":
        """Ask whether an existing file may be overwritten"""
        pass
