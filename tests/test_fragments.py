from __future__ import annotations

import pytest

from fixie.fragments import clean_line, describe_fragment, is_complete_fragment, iter_fragments, strip_trailing_comment


async def _collect(lines: list[str], **kwargs) -> list[str]:
    return [fragment async for fragment in iter_fragments(lines, **kwargs)]


def test_strip_trailing_comment_cuts_at_first_marker() -> None:
    assert strip_trailing_comment("echo hi // say hi // twice") == "echo hi "
    assert strip_trailing_comment("echo plain") == "echo plain"


def test_strip_trailing_comment_ignores_quoting() -> None:
    assert strip_trailing_comment("curl https://example.com") == "curl https:"
    assert strip_trailing_comment('echo "a // b"') == 'echo "a '


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("echo hi;", "echo hi"),
        ("echo hi;;;", "echo hi"),
        ("echo hi ; // done", "echo hi"),
        ("// only a comment", ""),
        ("", ""),
    ],
)
def test_clean_line(line: str, expected: str) -> None:
    assert clean_line(line) == expected


def test_describe_fragment_is_single_line() -> None:
    assert describe_fragment("if true; then\n  echo  yes\nfi\n") == "if true; then ↩ echo yes ↩ fi"


@pytest.mark.asyncio
async def test_multiline_construct_becomes_one_fragment() -> None:
    checked: list[str] = []

    async def closes_with_fi(text: str) -> bool:
        checked.append(text)
        return text.rstrip().endswith("fi")

    fragments = await _collect(["if true; then", "echo yes", "fi"], is_complete=closes_with_fi)

    assert fragments == ["if true; then\necho yes\nfi\n"]
    assert checked == ["if true; then\n", "if true; then\necho yes\n", "if true; then\necho yes\nfi\n"]


@pytest.mark.asyncio
async def test_empty_lines_never_reach_the_oracle() -> None:
    checked: list[str] = []

    async def always(text: str) -> bool:
        checked.append(text)
        return True

    fragments = await _collect(["echo a;", "// comment", ";;", "echo b // trailing"], is_complete=always)

    assert fragments == ["echo a\n", "echo b\n"]
    assert checked == ["echo a\n", "echo b\n"]


@pytest.mark.asyncio
async def test_incomplete_tail_is_not_yielded(log_messages: list[str]) -> None:
    async def never(_text: str) -> bool:
        return False

    assert await _collect(["if true; then", "echo yes"], is_complete=never) == []
    assert any("Incomplete fragment dropped" in message for message in log_messages)


@pytest.mark.asyncio
async def test_iter_fragments_restarts_per_call() -> None:
    async def always(_text: str) -> bool:
        return True

    lines = ["echo one", "echo two"]

    assert await _collect(lines, is_complete=always) == await _collect(lines, is_complete=always)


@pytest.mark.asyncio
async def test_oracle_accepts_complete_text(bash_path: str) -> None:
    assert await is_complete_fragment("echo hi\n", shell=bash_path) is True
    assert await is_complete_fragment("if true; then\necho yes\nfi\n", shell=bash_path) is True


@pytest.mark.asyncio
async def test_oracle_rejects_incomplete_text(bash_path: str) -> None:
    assert await is_complete_fragment("if true; then\n", shell=bash_path) is False
    assert await is_complete_fragment("for x in a b; do\necho $x\n", shell=bash_path) is False


@pytest.mark.asyncio
async def test_oracle_spawn_failure_counts_as_incomplete(tmp_path) -> None:
    assert await is_complete_fragment("echo hi\n", shell=str(tmp_path / "no-such-shell")) is False


@pytest.mark.asyncio
async def test_real_oracle_groups_statements(bash_path: str) -> None:
    async def check(text: str) -> bool:
        return await is_complete_fragment(text, shell=bash_path)

    lines = ["cd /tmp", "if [ -d . ]; then", "echo here", "fi", "echo done;"]

    fragments = await _collect(lines, is_complete=check)

    assert fragments == ["cd /tmp\n", "if [ -d . ]; then\necho here\nfi\n", "echo done\n"]
