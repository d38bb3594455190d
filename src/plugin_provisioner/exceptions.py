"""Plugin provisioning exceptions.

Each failure kind of the pipeline has its own class so callers can report it
without parsing messages. Per-source errors are recovered by the pipeline;
ConfigError (and OutputDirectoryError) abort the whole run.
"""


class PluginProvisionError(Exception):
    """Base exception for plugin provisioning."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (urls, paths, exit codes)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class FetchError(PluginProvisionError):
    """Download failed (transport error or non-success status)."""


class CloneError(PluginProvisionError):
    """Repository clone failed."""


class BuildError(PluginProvisionError):
    """Build tool exited with an error."""


class ArtifactNotFoundError(PluginProvisionError):
    """No executable found in the build workspace."""


class WriteError(PluginProvisionError):
    """Plugin could not be written into the output directory."""


class ConfigError(PluginProvisionError):
    """Configuration missing or invalid."""


class OutputDirectoryError(ConfigError):
    """Output directory could not be created."""
