"""Shared fixtures: a stand-in git executable and helpers for build commands."""

import os
import stat
import tempfile
from pathlib import Path

import pytest

FAKE_GIT = """#!/bin/sh
# Invoked as: git clone --depth 1 <url> <dest>
echo "$@" >> "$FAKE_GIT_LOG"
url="$4"
dest="$5"
case "$url" in
  *missing*)
    echo "fatal: repository '$url' not found" >&2
    exit 128
    ;;
esac
mkdir -p "$dest/.git"
printf '#!/bin/sh\\n' > "$dest/.git/hook"
chmod +x "$dest/.git/hook"
echo "$url" > "$dest/ORIGIN"
echo "Cloning into '$dest'..."
exit 0
"""


@pytest.fixture
def fake_git(tmp_path, monkeypatch) -> Path:
    """Executable that mimics a shallow clone; URLs containing 'missing' fail."""
    script = tmp_path / "bin" / "git"
    script.parent.mkdir()
    script.write_text(FAKE_GIT)
    script.chmod(0o755)
    monkeypatch.setenv("FAKE_GIT_LOG", str(tmp_path / "git.log"))
    return script


@pytest.fixture
def workspace_root(tmp_path, monkeypatch) -> Path:
    """Redirect temporary workspaces into a directory the test can inspect."""
    root = tmp_path / "workspaces"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


def sh(script: str) -> list[str]:
    """Build command running a shell snippet in the workspace."""
    return ["sh", "-c", script]


def make_executable(path: Path, content: str = "#!/bin/sh\n", mode: int = 0o755) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(mode)
    return path


def file_mode(path: Path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)
