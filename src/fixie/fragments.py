"""Grouping of function body lines into syntactically complete fragments."""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import TypeAlias

from loguru import logger

COMMENT_MARKER = "//"
DEFAULT_SHELL = "/bin/bash"

CompletenessCheck: TypeAlias = Callable[[str], Awaitable[bool]]


def strip_trailing_comment(line: str) -> str:
    """Cut ``line`` at the first comment marker, quoted or not."""
    index = line.find(COMMENT_MARKER)
    if index < 0:
        return line
    return line[:index]


def clean_line(line: str) -> str:
    command = strip_trailing_comment(line).rstrip()
    while command.endswith(";"):
        command = command[:-1].rstrip()
    return command


async def is_complete_fragment(text: str, *, shell: str = DEFAULT_SHELL) -> bool:
    """Ask the shell's own no-exec mode whether ``text`` parses as a whole.

    A spawn failure counts as incomplete.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            shell,
            "-n",
            "-c",
            text,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr_bytes = await process.communicate()
    except OSError as exc:
        logger.debug("fragment.oracle.error shell={} error={}", shell, exc)
        return False
    return process.returncode == 0 and not stderr_bytes.strip()


async def iter_fragments(
    lines: Iterable[str],
    *,
    is_complete: CompletenessCheck | None = None,
) -> AsyncIterator[str]:
    """Yield fragments built from ``lines`` in order.

    Each non-empty cleaned line is appended to a buffer; the buffer is flushed
    as soon as ``is_complete`` accepts it.
    """
    check = is_complete or is_complete_fragment
    fragment = ""
    for raw_line in lines:
        command = clean_line(raw_line)
        if not command:
            continue

        fragment += command + "\n"
        if not await check(fragment):
            continue

        logger.debug("fragment.flush text={!r}", fragment)
        yield fragment
        fragment = ""

    if fragment:
        logger.warning("Incomplete fragment dropped: {}", describe_fragment(fragment))


def describe_fragment(text: str) -> str:
    """Single-line display form of a fragment."""
    visible = text.strip().replace("\r", " ↩ ").replace("\n", " ↩ ")
    return re.sub(r"\s+", " ", visible)
