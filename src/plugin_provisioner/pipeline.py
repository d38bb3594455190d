"""Plugin provisioning pipeline.

Sources are classified and processed one at a time, in configured order. A
failing source is logged and reported; it never stops the sources after it.
"""

import logging
from collections.abc import AsyncIterator
from collections.abc import Sequence
from contextlib import asynccontextmanager

import httpx

from .config import ProvisionerConfig
from .download import DirectDownloadSource
from .exceptions import PluginProvisionError
from .installer import ensure_output_dir
from .protocols import InstallSourceProtocol
from .repository import GitRepositorySource
from .schema import InstallationResult
from .schema import ProvisionReport
from .schema import SourceKind
from .schema import SourceSpec
from .schema import classify_source

logger = logging.getLogger(__name__)


class PluginProvisioner:
    """
    Install plugins from a list of sources into one output directory.

    Args:
        config: Run configuration (sources, output directory, build tools)
        http_client: Optional client for downloads. When omitted, one client is
            created per provision() call and closed afterwards.

    Example:
        >>> config = ProvisionerConfig(sources=["https://example.com/tool"], output_dir=Path("/plugins"))
        >>> report = await PluginProvisioner(config).provision()
        >>> print(report.summary())
    """

    def __init__(self, config: ProvisionerConfig, http_client: httpx.AsyncClient | None = None):
        self.config = config
        self._http_client = http_client
        self._client: httpx.AsyncClient | None = http_client

    def create_handler(self, spec: SourceSpec) -> InstallSourceProtocol:
        """Build the handler for a classified source."""
        if spec.kind is SourceKind.GIT_REPOSITORY:
            return GitRepositorySource(
                spec.identifier,
                repo_suffix=self.config.repo_suffix,
                build_command=list(self.config.build_command),
                git_executable=self.config.git_executable,
                workspace_prefix=self.config.workspace_prefix,
            )
        if self._client is None:
            raise RuntimeError("HTTP client not available outside provision()")
        return DirectDownloadSource(spec.identifier, client=self._client)

    async def provision_source(self, identifier: str) -> InstallationResult:
        """
        Process one source and report its outcome.

        Args:
            identifier: Trimmed, non-blank source identifier

        Returns:
            InstallationResult (installed or failed); never raises for per-source errors
        """
        logger.info(f"Processing source: {identifier}")
        try:
            spec = classify_source(identifier, self.config.repo_suffix)
            handler = self.create_handler(spec)
            path = await handler.install_to(self.config.output_dir)
        except PluginProvisionError as e:
            logger.error(f"Error processing {identifier}: {e.message}")
            return InstallationResult.failed(identifier, e)
        except Exception as e:
            logger.exception(f"Unexpected error processing {identifier}: {e}")
            return InstallationResult.failed(identifier, e)

        logger.info(f"Successfully installed {identifier} as {path}")
        return InstallationResult.installed(identifier, path)

    async def provision(self, sources: Sequence[str] | None = None) -> ProvisionReport:
        """
        Process every source in order.

        Args:
            sources: Identifiers to process instead of ``config.sources``;
                blank entries are skipped and the rest trimmed

        Returns:
            ProvisionReport with one result per non-blank source

        Raises:
            OutputDirectoryError: If the output directory cannot be created
        """
        identifiers = [s.strip() for s in (self.config.sources if sources is None else sources) if s.strip()]

        ensure_output_dir(self.config.output_dir)

        results: list[InstallationResult] = []
        async with self._download_client() as client:
            self._client = client
            try:
                for identifier in identifiers:
                    results.append(await self.provision_source(identifier))
            finally:
                self._client = self._http_client

        return ProvisionReport(results=results)

    @asynccontextmanager
    async def _download_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(follow_redirects=True, timeout=self.config.http_timeout) as client:
            yield client
