"""Application-level exception types for Fixie."""

from __future__ import annotations

from pathlib import Path


class FixieError(Exception):
    """Base exception for Fixie."""


class ScriptNotFoundError(FixieError):
    """Raised when the script file cannot be read."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Script not found at {self.path}")


class UnknownFunctionError(FixieError):
    """Raised when a requested function has no declaration."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown function: {name}()")


class CommandFailedError(FixieError):
    """Raised when one fragment is judged a failure."""

    def __init__(self, fragment: str, exit_status: int | None = None) -> None:
        self.fragment = fragment
        self.exit_status = exit_status
        super().__init__(f"Command failed: {fragment.strip()}")


class ShellTerminatedError(FixieError):
    """Raised when the persistent shell exits unexpectedly."""

    def __init__(self, exit_code: int | None) -> None:
        self.exit_code = exit_code
        super().__init__(f"Shell exited with code {exit_code}")


class NoStdinError(FixieError):
    """Raised when the persistent shell input cannot be written."""

    def __init__(self) -> None:
        super().__init__("Persistent shell stdin unavailable")
