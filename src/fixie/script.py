"""Function declarations parsed out of a Fixie script."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path

from loguru import logger

from fixie.errors import ScriptNotFoundError

# `func <name>() {` with optional surrounding whitespace
_HEADER_PATTERN = re.compile(r"^\s*func\s+(?P<name>[^\s(){}]+)\s*\(\)\s*\{\s*$")


@dataclass(frozen=True)
class FunctionDecl:
    """One named function and its raw body lines."""

    name: str
    body: tuple[str, ...]

    @property
    def body_lines(self) -> list[str]:
        """Body lines with their margins trimmed, blank lines dropped."""
        return [stripped for line in self.body if (stripped := line.strip())]


def parse_function_header(line: str) -> str | None:
    """Return the declared name if ``line`` opens a function, else ``None``."""
    match = _HEADER_PATTERN.match(line)
    if match is None:
        return None
    return match.group("name")


def parse_functions(source: str) -> list[FunctionDecl]:
    """Scan ``source`` top to bottom and collect every function declaration.

    Braces are tallied by raw character count; braces inside quotes or comments
    are counted too. A function ends on the line where the depth drops back to
    zero, and that closing line is not part of the body.
    """
    results: list[FunctionDecl] = []
    current_name: str | None = None
    current_body: list[str] = []
    depth = 0

    for line in source.split("\n"):
        if current_name is None:
            name = parse_function_header(line)
            if name is not None:
                current_name = name
                current_body = []
                depth = 1
            continue

        depth += line.count("{") - line.count("}")
        if depth == 0:
            results.append(FunctionDecl(name=current_name, body=tuple(current_body)))
            current_name = None
            continue
        current_body.append(line)

    if current_name is not None:
        logger.debug("script.unterminated name={} depth={}", current_name, depth)
    return results


class Script:
    """Raw script text plus the declarations derived from it."""

    def __init__(self, raw_content: str) -> None:
        self.raw_content = raw_content

    @classmethod
    def from_path(cls, path: Path) -> Script:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ScriptNotFoundError(path) from exc
        return cls(content)

    @cached_property
    def functions(self) -> tuple[FunctionDecl, ...]:
        return tuple(parse_functions(self.raw_content))

    @property
    def function_names(self) -> list[str]:
        return [decl.name for decl in self.functions]

    def function(self, name: str, namespace: str | None = None) -> FunctionDecl | None:
        """Find the first declaration named ``name`` (or ``namespace::name``)."""
        wanted = f"{namespace}::{name}" if namespace is not None else name
        for decl in self.functions:
            if decl.name == wanted:
                return decl
        return None
