"""Command-line surface for Fixie."""

from __future__ import annotations

import asyncio
from functools import partial

import typer

from fixie.bootstrap import ensure_default_script
from fixie.config import Settings, load_settings
from fixie.errors import FixieError
from fixie.fragments import is_complete_fragment
from fixie.logging_utils import configure_logging
from fixie.render import Renderer
from fixie.runner import FunctionRunner
from fixie.script import Script
from fixie.shell import ShellSession

app = typer.Typer(
    name="fixie",
    help="Run named shell functions from your Fixie script in one persistent shell.",
    add_completion=False,
)


@app.command(context_settings={"help_option_names": [], "ignore_unknown_options": True})
def main(
    names: list[str] | None = typer.Argument(None, help="Functions to run, in order"),  # noqa: B008
    list_functions: bool = typer.Option(False, "--list", "--help", help="List declared functions and exit"),
    fail_fast: bool = typer.Option(False, "-e", help="Stop the run at the first failure"),
    edit: bool = typer.Option(False, "--edit", help="Open the script file"),
) -> None:
    """Run the given functions in order."""

    settings = load_settings()
    configure_logging(settings.log_level)
    renderer = Renderer()
    try:
        asyncio.run(
            _run(
                settings,
                renderer,
                names or [],
                list_functions=list_functions,
                fail_fast=fail_fast,
                edit=edit,
            )
        )
    except FixieError as exc:
        # Failures are reported, not turned into an exit status.
        renderer.error(exc)


async def _run(
    settings: Settings,
    renderer: Renderer,
    names: list[str],
    *,
    list_functions: bool,
    fail_fast: bool,
    edit: bool,
) -> None:
    ensure_default_script(settings.script_path)
    script = Script.from_path(settings.script_path)

    if list_functions:
        renderer.function_list(script.function_names)
        return

    if edit:
        typer.launch(str(settings.script_path))
        return

    function_names = [name for name in names if not name.startswith("-")]
    if not function_names:
        renderer.usage()
        return

    session = ShellSession(
        settings.shell,
        settings.shell_args,
        fail_fast=fail_fast,
        stderr_prefix=settings.stderr_prefix,
    )
    async with session:
        runner = FunctionRunner(
            script,
            session,
            renderer,
            fail_fast=fail_fast,
            is_complete=partial(is_complete_fragment, shell=settings.shell),
        )
        await runner.run(function_names)
