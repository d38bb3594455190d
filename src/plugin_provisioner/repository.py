"""Git repository source: shallow clone, build, locate, install.

Every repository gets its own temporary workspace, removed when the handler
returns whether or not the build succeeded.
"""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from pathlib import PurePosixPath

from .exceptions import BuildError
from .exceptions import CloneError
from .installer import install_artifact
from .installer import iter_file
from .locator import find_binary
from .schema import DEFAULT_REPO_SUFFIX
from .schema import Artifact

logger = logging.getLogger(__name__)

# Build tool output goes to its own logger so hosts can route it separately
build_logger = logging.getLogger("plugin_provisioner.build")
BUILD_LINE_LIMIT = 1024 * 1024
OUTPUT_CHUNK_SIZE = 64 * 1024


def repo_basename(address: str, repo_suffix: str = DEFAULT_REPO_SUFFIX) -> str:
    """Repository name from its address, e.g. ``https://host/org/foo.git`` -> ``foo``."""
    name = PurePosixPath(address.rstrip("/")).name
    if name.endswith(repo_suffix):
        name = name[: -len(repo_suffix)]
    return name


class GitRepositorySource:
    """Clone a repository, build it, and install the executable it produces.

    Args:
        address: Repository address ending in the repository suffix
        repo_suffix: Suffix stripped to obtain the repository name
        build_command: Command run in the workspace root
        git_executable: git binary used for the clone
        workspace_prefix: Prefix of the temporary workspace directory
    """

    def __init__(
        self,
        address: str,
        *,
        repo_suffix: str = DEFAULT_REPO_SUFFIX,
        build_command: list[str] | None = None,
        git_executable: str = "git",
        workspace_prefix: str = "plugin-build-",
    ):
        self.uri = address
        self.repo_suffix = repo_suffix
        self.build_command = build_command or ["make"]
        self.git_executable = git_executable
        self.workspace_prefix = workspace_prefix

    @property
    def repo_name(self) -> str:
        return repo_basename(self.uri, self.repo_suffix)

    async def install_to(self, output_dir: Path) -> Path:
        workspace = Path(tempfile.mkdtemp(prefix=self.workspace_prefix))
        try:
            logger.debug(f"Workspace for {self.uri}: {workspace}")

            await self.clone(workspace)
            await self.build(workspace)

            binary = find_binary(workspace, self.repo_name)
            logger.info(f"  - Found executable {binary.relative_to(workspace)}")
            artifact = Artifact(name=binary.name, chunks=iter_file(binary))
            return await install_artifact(artifact, output_dir)
        finally:
            _remove_workspace(workspace)

    async def clone(self, workspace: Path) -> None:
        """Shallow-clone the repository into the (empty) workspace.

        Raises:
            CloneError: If git is missing or exits non-zero; the message holds git's output
        """
        logger.info("  - Cloning repository...")
        cmd = [self.git_executable, "clone", "--depth", "1", self.uri, str(workspace)]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise CloneError(f"git clone failed: {e}", context={"url": self.uri}) from e

        try:
            output, _ = await proc.communicate()
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        if proc.returncode != 0:
            raise CloneError(
                f"git clone failed: {output.decode(errors='replace').strip()}",
                context={"url": self.uri, "returncode": proc.returncode},
            )

    async def build(self, workspace: Path) -> None:
        """Run the build command in the workspace, logging its output as it arrives.

        Output is read in chunks and split into lines here, so arbitrarily long
        lines never fail the build. The process is killed if reading is
        interrupted (cancellation, logging failure).

        Raises:
            BuildError: If the build tool is missing or exits non-zero
        """
        command = " ".join(self.build_command)
        logger.info(f"  - Running {command}...")
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.build_command,
                cwd=workspace,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise BuildError(f"{command} failed: {e}", context={"url": self.uri}) from e

        try:
            await _log_output(proc.stdout)
            returncode = await proc.wait()
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        if returncode != 0:
            raise BuildError(
                f"{command} failed: exit status {returncode}",
                context={"url": self.uri, "returncode": returncode},
            )


def _emit(line: bytes) -> None:
    build_logger.info(line.decode(errors="replace").rstrip())


async def _log_output(stream: asyncio.StreamReader | None) -> None:
    """Log a process's output line by line; lines over BUILD_LINE_LIMIT are split."""
    if stream is None:
        return
    pending = b""
    while chunk := await stream.read(OUTPUT_CHUNK_SIZE):
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for line in lines:
            _emit(line)
        while len(pending) > BUILD_LINE_LIMIT:
            _emit(pending[:BUILD_LINE_LIMIT])
            pending = pending[BUILD_LINE_LIMIT:]
    if pending:
        _emit(pending)


def _remove_workspace(workspace: Path) -> None:
    try:
        shutil.rmtree(workspace)
    except OSError as e:
        logger.warning(f"Error removing temp dir {workspace}: {e}")
