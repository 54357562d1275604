"""Interactive prompt helpers built on rich."""

from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm, Prompt


class Prompter:
    """Thin wrapper over rich prompts so services can be driven by scripts in tests."""

    def __init__(self, console: Console):
        self.console = console

    def ask(self, text: str, default: Optional[str] = "") -> str:
        answer = Prompt.ask(f"[yellow]{text}[/yellow]", default=default, console=self.console)
        return (answer or "").strip()

    def secret(self, text: str) -> str:
        return Prompt.ask(f"[yellow]{text}[/yellow]", password=True, default="", console=self.console)

    def confirm(self, text: str, default: bool = False) -> bool:
        return Confirm.ask(f"[yellow]{text}[/yellow]", default=default, console=self.console)

    def choose(self, text: str, choices: Sequence[str], default: Optional[str] = None) -> str:
        return Prompt.ask(
            f"[yellow]{text}[/yellow]",
            choices=list(choices),
            default=default,
            show_choices=False,
            console=self.console,
        )
