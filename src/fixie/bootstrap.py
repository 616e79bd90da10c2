"""Default script bootstrap."""

from __future__ import annotations

import contextlib
from pathlib import Path

from loguru import logger

DIRECTORY_MODE = 0o700
SCRIPT_MODE = 0o600

DEFAULT_SCRIPT = """\
// Opens project README in fixie pager
func quickstart() {
  if command -v less >/dev/null; then
    curl -fsSL https://raw.githubusercontent.com/christopherweems/swift-fixie/main/README.md | less
  else
    curl -fsSL https://raw.githubusercontent.com/christopherweems/swift-fixie/main/README.md
  fi
}

func editList() {
    cd ~/.fixie
    ${EDITOR:-vi} list
}
"""


def ensure_default_script(path: Path) -> bool:
    """Create ``path`` with example functions unless it already exists.

    Returns:
        True when a new file was written.
    """
    with contextlib.suppress(OSError):
        path.parent.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)

    if path.exists():
        return False

    path.write_text(DEFAULT_SCRIPT, encoding="utf-8")
    with contextlib.suppress(OSError):
        path.chmod(SCRIPT_MODE)
    logger.info("bootstrap.created path={}", path)
    return True
