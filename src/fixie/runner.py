"""Sequencing of requested functions through one shell session."""

from __future__ import annotations

import codecs
import shlex
from collections.abc import Iterable

from loguru import logger

from fixie.errors import CommandFailedError, FixieError, UnknownFunctionError
from fixie.fragments import CompletenessCheck, iter_fragments
from fixie.render import Renderer
from fixie.script import FunctionDecl, Script
from fixie.shell import ShellSession


class FunctionRunner:
    """Runs functions fragment by fragment and applies the fail-fast policy.

    Under fail-fast, an unknown function or a failing fragment stops the whole
    run. Otherwise both are logged as warnings and the run moves on to the
    next function or fragment.
    """

    def __init__(
        self,
        script: Script,
        session: ShellSession,
        renderer: Renderer,
        *,
        fail_fast: bool = False,
        is_complete: CompletenessCheck | None = None,
    ) -> None:
        self.script = script
        self.session = session
        self.renderer = renderer
        self.fail_fast = fail_fast
        self._is_complete = is_complete

    async def run(self, names: Iterable[str]) -> None:
        for name in names:
            decl = self.script.function(name)
            if decl is None:
                if self.fail_fast:
                    raise UnknownFunctionError(name)
                logger.warning("⚠️  Unknown function: {}()", name)
                continue

            self.renderer.function_started(name)
            await self.run_function(decl)
            self.renderer.function_finished(name)

    async def run_function(self, decl: FunctionDecl) -> None:
        logger.info("runner.function name={} lines={}", decl.name, len(decl.body))
        try:
            await self.session.run_quietly(f"CURRENT_FUNC={shlex.quote(decl.name)}")
        except FixieError as exc:
            self._handle_failure(f"CURRENT_FUNC={decl.name}", exc)

        async for fragment in iter_fragments(decl.body_lines, is_complete=self._is_complete):
            self.renderer.fragment(fragment)
            await self.run_fragment(fragment)

    async def run_fragment(self, fragment: str) -> None:
        """Execute one fragment, streaming its output as it arrives."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        last_text = ""
        try:
            async for chunk in await self.session.execute(fragment):
                if text := decoder.decode(chunk):
                    last_text = text
                    self.renderer.output(text)
            if text := decoder.decode(b"", final=True):
                last_text = text
                self.renderer.output(text)
        except FixieError as exc:
            self._end_output(last_text)
            self._handle_failure(fragment, exc)
            return
        self._end_output(last_text)

    def _end_output(self, last_text: str) -> None:
        if last_text and not last_text.endswith("\n"):
            self.renderer.output_finished()

    def _handle_failure(self, fragment: str, exc: FixieError) -> None:
        if not self.fail_fast:
            logger.warning("‼︎ non-zero exit, continuing… ({})", exc)
            return
        logger.error("❌ Command failed ({})", exc)
        if isinstance(exc, CommandFailedError):
            raise exc
        raise CommandFailedError(fragment) from exc
