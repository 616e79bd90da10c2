from __future__ import annotations

import shutil
from collections.abc import Iterator

import pytest
from loguru import logger


@pytest.fixture
def bash_path() -> str:
    path = shutil.which("bash")
    if path is None:
        pytest.skip("bash is not available")
    return path


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    messages: list[str] = []
    sink_id = logger.add(lambda message: messages.append(str(message)), level="WARNING", format="{message}")
    yield messages
    logger.remove(sink_id)
