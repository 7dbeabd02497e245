"""
Rich-based user prompts
"""
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from ...core.interfaces import PromptProvider
from ...core.logging import get_stderr_console
from ...domain.transfer.models import OverwriteAnswer

_OVERWRITE_CHOICES = {
    "y": OverwriteAnswer.YES,
    "n": OverwriteAnswer.NO,
    "a": OverwriteAnswer.ALL,
    "N": OverwriteAnswer.NONE,
}


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider"""
    
    def __init__(self, console: Optional[Console] = None):
        # stderr keeps prompts out of piped output such as gsc cat
        self.console = console or get_stderr_console()
    
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        if default is None:
            return Prompt.ask(message, password=password, console=self.console)
        return Prompt.ask(message, password=password, default=default, console=self.console)
    
    def ask_overwrite(self, path: str) -> OverwriteAnswer:
        """
        Ask before replacing path.
        
        y: overwrite, n: keep, a: overwrite this and all later files,
        N: keep this and all later files
        """
        answer = Prompt.ask(
            f"Overwrite ‘{escape(path)}’? [bold]y[/bold]es/[bold]n[/bold]o/[bold]a[/bold]ll/[bold]N[/bold]one",
            choices=list(_OVERWRITE_CHOICES),
            show_choices=False,
            default="n",
            console=self.console,
        )
        return _OVERWRITE_CHOICES[answer]
