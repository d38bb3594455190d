"""Locate the executable produced by a repository build.

Build outputs are not named consistently, so the binary is found in two steps:
an exact match on the repository name, then a scan for anything that looks
like a compiled executable.
"""

import logging
import os
import stat
from collections.abc import Iterator
from pathlib import Path

from .exceptions import ArtifactNotFoundError

logger = logging.getLogger(__name__)

EXECUTABLE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def is_executable(path: Path) -> bool:
    """Return True for a regular file with any execute bit set."""
    try:
        st = path.stat()
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and bool(st.st_mode & EXECUTABLE_BITS)


def _scan(workspace: Path, vcs_dir: str) -> Iterator[Path]:
    # Sorted walk: the first candidate is stable across runs and filesystems
    for root, dirs, files in os.walk(workspace):
        dirs[:] = sorted(d for d in dirs if d != vcs_dir)
        for fname in sorted(files):
            if "." in fname:
                continue
            path = Path(root) / fname
            if is_executable(path):
                yield path


def find_binary(workspace: Path, repo_name: str, vcs_dir: str = ".git") -> Path:
    """
    Find the single executable a build produced.

    Precedence:
    1. ``workspace/repo_name`` if it is an executable file (scan is skipped)
    2. First executable file without a ``.`` in its name, walking the tree in
       sorted order and skipping ``vcs_dir`` subtrees

    Args:
        workspace: Root of the cloned repository
        repo_name: Repository name with the repository suffix stripped
        vcs_dir: Version-control metadata directory to ignore

    Returns:
        Path to the executable

    Raises:
        ArtifactNotFoundError: If neither strategy finds a candidate
    """
    exact = workspace / repo_name
    if repo_name and is_executable(exact):
        logger.debug(f"Found binary by repository name: {exact}")
        return exact

    found = next(_scan(workspace, vcs_dir), None)
    if found is None:
        raise ArtifactNotFoundError(
            "No executable binary found after build",
            context={"workspace": str(workspace), "repo_name": repo_name},
        )

    logger.debug(f"Found binary by scan: {found}")
    return found
