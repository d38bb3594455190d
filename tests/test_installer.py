"""Tests for atomic plugin installation."""

import asyncio

import pytest
from conftest import file_mode
from plugin_provisioner import Artifact
from plugin_provisioner import OutputDirectoryError
from plugin_provisioner import WriteError
from plugin_provisioner import ensure_output_dir
from plugin_provisioner import install_artifact
from plugin_provisioner.installer import iter_file


async def chunks_of(*parts: bytes):
    for part in parts:
        yield part


@pytest.mark.asyncio
async def test_install_writes_executable(tmp_path):
    path = await install_artifact(Artifact("tool", chunks_of(b"#!/bin/sh\n", b"echo hi\n")), tmp_path)

    assert path == tmp_path / "tool"
    assert path.read_bytes() == b"#!/bin/sh\necho hi\n"
    assert file_mode(path) == 0o755


@pytest.mark.asyncio
async def test_install_sets_executable_regardless_of_source_mode(tmp_path):
    """A non-executable build output still installs as executable."""
    src = tmp_path / "src" / "plugin"
    src.parent.mkdir()
    src.write_bytes(b"\x7fELF" + bytes(200_000))
    src.chmod(0o600)
    out = tmp_path / "plugins"
    out.mkdir()

    path = await install_artifact(Artifact("plugin", iter_file(src)), out)

    assert path.read_bytes() == src.read_bytes()
    assert file_mode(path) == 0o755


@pytest.mark.asyncio
async def test_install_replaces_existing_plugin(tmp_path):
    (tmp_path / "tool").write_bytes(b"old")

    await install_artifact(Artifact("tool", chunks_of(b"new")), tmp_path)

    assert (tmp_path / "tool").read_bytes() == b"new"


@pytest.mark.asyncio
async def test_failed_stream_leaves_nothing_behind(tmp_path):
    """A write that fails midway never appears under the final name."""

    async def broken():
        yield b"partial"
        raise OSError("disk full")

    with pytest.raises(WriteError, match="disk full"):
        await install_artifact(Artifact("tool", broken()), tmp_path)

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_missing_output_dir(tmp_path):
    with pytest.raises(WriteError):
        await install_artifact(Artifact("tool", chunks_of(b"x")), tmp_path / "missing")


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", ".", "..", "../escape", "sub/tool"])
async def test_invalid_names_rejected(tmp_path, name):
    with pytest.raises(WriteError, match="Invalid plugin file name"):
        await install_artifact(Artifact(name, chunks_of(b"x")), tmp_path)

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_stream_is_closed(tmp_path):
    closed = []

    async def tracked():
        try:
            yield b"data"
            yield b"more"
        finally:
            closed.append(True)

    # Invalid name fails before the stream is read; it must still be released
    stream = tracked()
    await stream.__anext__()
    with pytest.raises(WriteError):
        await install_artifact(Artifact("", stream), tmp_path)

    assert closed == [True]


def test_ensure_output_dir_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "plugins"

    assert ensure_output_dir(target) == target
    assert target.is_dir()
    # Idempotent
    ensure_output_dir(target)


def test_ensure_output_dir_failure(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    with pytest.raises(OutputDirectoryError, match="Error creating plugins directory"):
        ensure_output_dir(blocker / "plugins")


@pytest.mark.asyncio
async def test_file_io_runs_in_worker_threads(tmp_path, monkeypatch):
    calls = []
    original = asyncio.to_thread

    async def recording_to_thread(func, *args, **kwargs):
        calls.append(getattr(func, "__name__", repr(func)))
        return await original(func, *args, **kwargs)

    monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)
    src = tmp_path / "plugin"
    src.write_bytes(b"payload")
    out = tmp_path / "plugins"
    out.mkdir()

    await install_artifact(Artifact("plugin", iter_file(src)), out)

    assert "read" in calls
    assert "write" in calls
    assert "fsync" in calls
