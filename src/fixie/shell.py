"""Persistent shell session driven through pipes."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import re
import sys
import uuid
from collections.abc import AsyncIterator, Sequence
from typing import TextIO

from loguru import logger

from fixie.errors import CommandFailedError, NoStdinError, ShellTerminatedError

SENTINEL_PREFIX = "__FIXIE_DONE__"
READ_CHUNK_SIZE = 4096
READER_DRAIN_SECONDS = 1.0
_COMMENT_START = re.compile(r"(^|\s)#")
FAIL_FAST_DIRECTIVES = (
    "set -e",
    "trap 'echo >&2 \"❌ Aborted in $CURRENT_FUNC (exit $?)\"' ERR",
)


def new_sentinel_token() -> str:
    """Fresh marker for one fragment execution."""
    return f"{SENTINEL_PREFIX}{str(uuid.uuid4()).upper()}"


def terminate_fragment(fragment: str) -> str:
    """Make ``fragment`` end so that a trailing command can follow it."""
    text = fragment.rstrip()
    last_line = text.rsplit("\n", 1)[-1]
    if "<<" in text or _COMMENT_START.search(last_line):
        # a heredoc delimiter or a comment would swallow a same-line command
        return text + "\n"
    if text.endswith((";", "&", "|")):
        return text
    return text + ";"


class SentinelScanner:
    """Finds the end-of-fragment line inside a chunked output stream.

    The stream for one fragment looks like ``<output><token> <status>\\n``.
    Only bytes that cannot belong to the token are released by ``feed``. A
    trailing run that matches the start of the token is held back and searched
    again together with the next chunk, so a token split across reads is still
    found.
    """

    def __init__(self, token: str | bytes) -> None:
        self.token = token.encode() if isinstance(token, str) else token
        self.window = len(self.token) - 1
        self.found = False
        self.done = False
        self.exit_status: int | None = None
        self.remainder = b""
        self._tail = b""

    def feed(self, chunk: bytes) -> bytes:
        """Consume ``chunk`` and return the output that is safe to release."""
        if self.done:
            self.remainder += chunk
            return b""

        area = self._tail + chunk
        if self.found:
            self._tail = area
            self._parse_status()
            return b""

        index = area.find(self.token)
        if index >= 0:
            self.found = True
            self._tail = area[index + len(self.token) :]
            self._parse_status()
            return area[:index]

        cut = len(area) - self._partial_token_length(area)
        self._tail = area[cut:]
        return area[:cut]

    def _partial_token_length(self, area: bytes) -> int:
        """Length of the longest suffix of ``area`` that starts the token."""
        for length in range(min(self.window, len(area)), 0, -1):
            if self.token.startswith(area[-length:]):
                return length
        return 0

    def _parse_status(self) -> None:
        line_end = self._tail.find(b"\n")
        if line_end < 0:
            return
        status = self._tail[:line_end].strip()
        self.exit_status = int(status) if status.isdigit() else None
        self.remainder = self._tail[line_end + 1 :]
        self._tail = b""
        self.done = True


class ShellSession:
    """One long-lived shell process shared by every fragment of a run.

    Input is written only by ``execute``; stdout is read by a single reader
    task and handed to the in-flight fragment through a queue; stderr is
    forwarded to our own stderr as it arrives.
    """

    def __init__(
        self,
        shell: str = "/bin/bash",
        shell_args: Sequence[str] = ("-l",),
        *,
        fail_fast: bool = False,
        stderr_prefix: str = "‼︎ ",
        stderr: TextIO | None = None,
    ) -> None:
        self.shell = shell
        self.shell_args = list(shell_args)
        self.fail_fast = fail_fast
        self.stderr_prefix = stderr_prefix
        self._stderr = stderr
        self._process: asyncio.subprocess.Process | None = None
        self._chunks: asyncio.Queue[bytes] = asyncio.Queue()
        self._readers: list[asyncio.Task[None]] = []
        self._pending = b""
        self._eof = False

    async def __aenter__(self) -> ShellSession:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        _ = tb
        if exc_type is None:
            await self.finish()
        else:
            await self.close()

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Spawn the shell and begin demultiplexing its output."""
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.shell,
                *self.shell_args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise NoStdinError() from exc
        logger.info("shell.start shell={} pid={} fail_fast={}", self.shell, self._process.pid, self.fail_fast)

        self._readers = [
            asyncio.create_task(self._pump_stdout()),
            asyncio.create_task(self._pump_stderr()),
        ]
        if self.fail_fast:
            for directive in FAIL_FAST_DIRECTIVES:
                await self._write(directive + "\n")

    async def execute(self, fragment: str) -> AsyncIterator[bytes]:
        """Send ``fragment`` to the shell and return its output chunks.

        The returned iterator ends when the fragment's sentinel line is seen.
        It raises ``CommandFailedError`` after the last chunk when the fragment
        exited non-zero, and ``ShellTerminatedError`` if the shell exits first.
        """
        token = new_sentinel_token()
        await self._write(f'{terminate_fragment(fragment)} echo "{token} $?"\n')
        logger.debug("shell.execute token={} fragment={!r}", token, fragment)
        return self._output_chunks(fragment, SentinelScanner(token))

    async def run_quietly(self, command: str) -> None:
        """Execute ``command`` and discard its output."""
        async for _ in await self.execute(command):
            pass

    async def _output_chunks(self, fragment: str, scanner: SentinelScanner) -> AsyncIterator[bytes]:
        chunk, self._pending = self._pending, b""
        while True:
            if chunk:
                content = scanner.feed(chunk)
                if content:
                    yield content
                if scanner.done:
                    break
            chunk = await self._next_chunk()
            if not chunk:
                raise ShellTerminatedError(await self._wait())

        self._pending = scanner.remainder
        if scanner.exit_status:
            raise CommandFailedError(fragment, scanner.exit_status)

    async def finish(self) -> None:
        """Ask the shell to exit and wait for it."""
        process = self._require_process()
        if process.returncode is None:
            await self._write("exit\n")
        code = await self._wait()
        await self._stop_readers()
        logger.info("shell.finish pid={} code={}", process.pid, code)
        if code != 0:
            raise ShellTerminatedError(code)

    async def close(self) -> None:
        """Tear the shell down without raising."""
        process = self._process
        if process is None:
            return
        if process.returncode is None:
            with contextlib.suppress(NoStdinError):
                await self._write("exit\n")
            try:
                await asyncio.wait_for(process.wait(), timeout=1.0)
            except TimeoutError:
                process.kill()
                await process.wait()
        await self._stop_readers()
        logger.info("shell.close pid={} code={}", process.pid, process.returncode)

    def _require_process(self) -> asyncio.subprocess.Process:
        if self._process is None:
            raise RuntimeError("ShellSession is not started. Call start() first.")
        return self._process

    async def _write(self, text: str) -> None:
        process = self._require_process()
        if process.stdin is None or process.returncode is not None:
            raise NoStdinError()
        try:
            process.stdin.write(text.encode("utf-8"))
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise NoStdinError() from exc

    async def _wait(self) -> int:
        return await self._require_process().wait()

    async def _next_chunk(self) -> bytes:
        if self._eof:
            return b""
        chunk = await self._chunks.get()
        if not chunk:
            self._eof = True
        return chunk

    async def _pump_stdout(self) -> None:
        stream = self._require_process().stdout
        assert stream is not None
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            await self._chunks.put(chunk)
            if not chunk:
                return

    async def _pump_stderr(self) -> None:
        stream = self._require_process().stderr
        assert stream is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            text = decoder.decode(chunk)
            if text:
                target = self._stderr or sys.stderr
                target.write(self.stderr_prefix + text)
                target.flush()

    async def _stop_readers(self) -> None:
        if not self._readers:
            return
        # let the pumps drain what the shell wrote before exiting
        _, still_running = await asyncio.wait(self._readers, timeout=READER_DRAIN_SECONDS)
        for task in still_running:
            task.cancel()
        for task in self._readers:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._readers = []
