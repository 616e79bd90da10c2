"""Terminal rendering for Fixie."""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape

from fixie.fragments import describe_fragment

DIVIDER = "─" * 40


class Renderer:
    """CLI renderer using Rich for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console(highlight=False)

    def _print(self, message: str = "") -> None:
        self.console.print(message)

    def _banner(self, title: str) -> None:
        self._print(DIVIDER)
        self._print(title)
        self._print(DIVIDER)

    def function_list(self, names: Iterable[str]) -> None:
        """Render every declared function name in source order."""
        self._banner(" 🗺️  Functions:")
        for name in names:
            self._print(f" - {escape(name)}()")
        self._print()

    def function_started(self, name: str) -> None:
        self._banner(f" 🚴 [bold]{escape(name)}()[/bold]")

    def function_finished(self, name: str, end_verb: str = "completed") -> None:
        self._banner(f" 🏁 [bold]{escape(name)}()[/bold] {end_verb}.")

    def fragment(self, text: str) -> None:
        self._print(f" • [cyan]{escape(describe_fragment(text))}[/cyan]")

    def output(self, text: str) -> None:
        """Write raw shell output as-is."""
        if not text:
            return
        stream = self.console.file
        stream.write(text)
        stream.flush()

    def output_finished(self) -> None:
        self._print()

    def usage(self) -> None:
        self._print("Usage: fixie <func1> <func2> ...")

    def error(self, error: BaseException) -> None:
        self._print(f" ❌ [bold red]Error:[/bold red] {escape(str(error))}")
