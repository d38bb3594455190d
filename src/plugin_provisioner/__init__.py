"""plugin-provisioner - Download or build executable plugins into a shared directory.

Public API exports. Callers inject policy (sources, output directory, build
command) through ProvisionerConfig.
"""

from .config import ProvisionerConfig
from .config import parse_sources
from .download import DirectDownloadSource
from .download import filename_from_url
from .exceptions import ArtifactNotFoundError
from .exceptions import BuildError
from .exceptions import CloneError
from .exceptions import ConfigError
from .exceptions import FetchError
from .exceptions import OutputDirectoryError
from .exceptions import PluginProvisionError
from .exceptions import WriteError
from .installer import ensure_output_dir
from .installer import install_artifact
from .locator import find_binary
from .locator import is_executable
from .pipeline import PluginProvisioner
from .protocols import InstallSourceProtocol
from .repository import GitRepositorySource
from .repository import repo_basename
from .schema import Artifact
from .schema import InstallationResult
from .schema import InstallStatus
from .schema import ProvisionReport
from .schema import SourceKind
from .schema import SourceSpec
from .schema import classify_source

__all__ = [
    # Configuration
    "ProvisionerConfig",
    "parse_sources",
    # Models
    "SourceKind",
    "SourceSpec",
    "classify_source",
    "Artifact",
    "InstallStatus",
    "InstallationResult",
    "ProvisionReport",
    # Pipeline
    "PluginProvisioner",
    "InstallSourceProtocol",
    # Sources
    "DirectDownloadSource",
    "filename_from_url",
    "GitRepositorySource",
    "repo_basename",
    # Locating and installing
    "find_binary",
    "is_executable",
    "install_artifact",
    "ensure_output_dir",
    # Exceptions
    "PluginProvisionError",
    "FetchError",
    "CloneError",
    "BuildError",
    "ArtifactNotFoundError",
    "WriteError",
    "ConfigError",
    "OutputDirectoryError",
]

__version__ = "0.1.0"
