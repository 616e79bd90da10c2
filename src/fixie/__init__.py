"""Fixie - run named shell functions in one persistent shell."""

from .errors import FixieError
from .script import FunctionDecl, Script
from .shell import ShellSession

__version__ = "0.1.0"

__all__ = ["FixieError", "FunctionDecl", "Script", "ShellSession"]
