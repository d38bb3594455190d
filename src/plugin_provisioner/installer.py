"""Atomic plugin installation into the shared output directory.

Content is streamed into a hidden temporary file next to its destination and
renamed into place only once it is complete and executable, so a consumer
polling the directory never picks up a partially written plugin.
"""

import asyncio
import logging
import os
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path

from .exceptions import OutputDirectoryError
from .exceptions import WriteError
from .schema import Artifact

logger = logging.getLogger(__name__)

PLUGIN_MODE = 0o755
CHUNK_SIZE = 64 * 1024


def ensure_output_dir(output_dir: Path) -> Path:
    """Create the output directory (and parents) if it doesn't exist.

    Raises:
        OutputDirectoryError: If the directory cannot be created
    """
    try:
        output_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise OutputDirectoryError(
            f"Error creating plugins directory {output_dir}: {e}",
            context={"output_dir": str(output_dir)},
        ) from e
    return output_dir


def _validate_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or os.sep in name or "\x00" in name:
        raise WriteError(f"Invalid plugin file name: {name!r}", context={"name": name})


async def iter_file(path: Path, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield a file's content in chunks; the file is closed when iteration ends.

    Reads run in a worker thread.
    """
    with open(path, "rb") as f:
        while chunk := await asyncio.to_thread(f.read, chunk_size):
            yield chunk


async def install_artifact(
    artifact: Artifact,
    output_dir: Path,
    mode: int = PLUGIN_MODE,
) -> Path:
    """
    Install an artifact as an executable plugin.

    Process:
    1. Stream chunks into a temporary file inside output_dir
    2. Flush to disk and set the executable mode
    3. Rename onto output_dir/name (replaces an existing plugin)

    Args:
        artifact: Destination file name (no path components) and content. The
            content stream is closed by this function.
        output_dir: Existing plugin directory
        mode: Permission bits of the installed file

    Returns:
        Path to the installed plugin

    Raises:
        WriteError: If any step fails. The temporary file is removed and
            nothing appears under the destination name.

    Example:
        >>> path = await install_artifact(Artifact("tool", iter_file(Path("build/tool"))), Path("/plugins"))
    """
    name = artifact.name
    chunks = artifact.chunks
    tmp_path: Path | None = None
    try:
        _validate_name(name)
        destination = output_dir / name

        try:
            with tempfile.NamedTemporaryFile(dir=output_dir, prefix=f".{name}.", suffix=".part", delete=False) as tmp:
                tmp_path = Path(tmp.name)
                async for chunk in chunks:
                    await asyncio.to_thread(tmp.write, chunk)
                tmp.flush()
                await asyncio.to_thread(os.fsync, tmp.fileno())

            os.chmod(tmp_path, mode)
            os.replace(tmp_path, destination)
        except OSError as e:
            raise WriteError(
                f"Failed to write plugin {destination}: {e}",
                context={"name": name, "output_dir": str(output_dir)},
            ) from e

        tmp_path = None
        logger.debug(f"Wrote {destination} (mode {oct(mode)})")
        return destination

    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()
