"""Protocol for plugin acquisition handlers.

The pipeline only depends on this interface; DirectDownloadSource and
GitRepositorySource are the two implementations it dispatches to.
"""

from pathlib import Path
from typing import Protocol
from typing import runtime_checkable


@runtime_checkable
class InstallSourceProtocol(Protocol):
    """Protocol for plugin sources.

    Example implementations:
    - DirectDownloadSource: single-file HTTP downloads
    - GitRepositorySource: shallow clone + build
    """

    uri: str

    async def install_to(self, output_dir: Path) -> Path:
        """Acquire the plugin and install it into the output directory.

        Args:
            output_dir: Existing plugin directory

        Returns:
            Path of the installed executable

        Raises:
            PluginProvisionError: If acquisition or installation fails
        """
        ...
