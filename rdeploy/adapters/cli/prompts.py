"""
Rich-based user prompts
"""
from typing import Optional
from rich.console import Console
from rich.prompt import Prompt

from ...core.interfaces import PromptProvider
from ...core.logging import get_stdout_console


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stdout_console()

    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        if default is not None:
            formatted_message = f"{message} (default: {default})"
        else:
            formatted_message = message

        if password:
            return Prompt.ask(formatted_message, password=True, default=default, console=self.console)
        return Prompt.ask(formatted_message, default=default, console=self.console)
