"""Plugin source and outcome models.

SourceSpec and InstallationResult are immutable pydantic models; Artifact is a
plain dataclass because it carries a live byte stream.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

DEFAULT_REPO_SUFFIX = ".git"


class SourceKind(str, Enum):
    """How a source is acquired."""

    DIRECT_DOWNLOAD = "direct_download"
    GIT_REPOSITORY = "git_repository"


class SourceSpec(BaseModel):
    """A single configured plugin source (classified, immutable)."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(min_length=1)
    kind: SourceKind


def classify_source(identifier: str, repo_suffix: str = DEFAULT_REPO_SUFFIX) -> SourceSpec:
    """
    Classify a raw source identifier by its suffix.

    Identifiers ending in the repository suffix are cloned and built, everything
    else is downloaded as-is.

    Args:
        identifier: URL or repository address (already trimmed)
        repo_suffix: Suffix marking repository addresses

    Returns:
        Classified SourceSpec

    Example:
        >>> classify_source("https://example.com/foo.git").kind
        <SourceKind.GIT_REPOSITORY: 'git_repository'>
        >>> classify_source("https://example.com/tool").kind
        <SourceKind.DIRECT_DOWNLOAD: 'direct_download'>
    """
    kind = SourceKind.GIT_REPOSITORY if identifier.endswith(repo_suffix) else SourceKind.DIRECT_DOWNLOAD
    return SourceSpec(identifier=identifier, kind=kind)


@dataclass
class Artifact:
    """Executable content pending installation.

    The installer takes ownership of ``chunks`` and closes it.
    """

    name: str
    chunks: AsyncIterator[bytes]


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    FAILED = "failed"


class InstallationResult(BaseModel):
    """Outcome of processing one source (reported, never persisted)."""

    model_config = ConfigDict(frozen=True)

    source: str
    status: InstallStatus
    name: str | None = None
    path: Path | None = None
    error_kind: str | None = None
    reason: str | None = None

    @classmethod
    def installed(cls, source: str, path: Path) -> "InstallationResult":
        return cls(source=source, status=InstallStatus.INSTALLED, name=path.name, path=path)

    @classmethod
    def failed(cls, source: str, error: Exception) -> "InstallationResult":
        reason = getattr(error, "message", None) or str(error)
        return cls(source=source, status=InstallStatus.FAILED, error_kind=type(error).__name__, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is InstallStatus.INSTALLED


class ProvisionReport(BaseModel):
    """Ordered per-source results of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    results: list[InstallationResult] = Field(default_factory=list)

    @property
    def installed(self) -> list[InstallationResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[InstallationResult]:
        return [r for r in self.results if not r.ok]

    def summary(self) -> str:
        """One-line summary for logs."""
        return f"{len(self.installed)} installed, {len(self.failed)} failed, {len(self.results)} total"
