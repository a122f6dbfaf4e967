from __future__ import annotations

import asyncio
from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm

from claude_cmd.ui.console import console as default_console


class Confirmer(Protocol):
    async def confirm(self, message: str, *, default: bool = False) -> bool: ...


class ConsoleConfirmer:
    """Asks on the terminal with a rich yes/no prompt, off the event loop."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or default_console

    async def confirm(self, message: str, *, default: bool = False) -> bool:
        return await asyncio.to_thread(
            Confirm.ask, message, console=self._console, default=default
        )


class StaticConfirmer:
    """Gives the same answer every time without prompting."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.messages: list[str] = []

    async def confirm(self, message: str, *, default: bool = False) -> bool:
        self.messages.append(message)
        return self.answer
