"""Provisioner configuration.

The pipeline never reads the environment itself: callers build a
ProvisionerConfig and pass it in. ``from_env`` is the adapter used by the
command-line entry point.
"""

import logging
import os
import shlex
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from .exceptions import ConfigError
from .schema import DEFAULT_REPO_SUFFIX

logger = logging.getLogger(__name__)

ENV_SOURCES = "PLUGIN_SOURCES"
ENV_OUTPUT_DIR = "PLUGINS_DIR"
ENV_REPO_SUFFIX = "PLUGIN_REPO_SUFFIX"
ENV_BUILD_COMMAND = "PLUGIN_BUILD_COMMAND"
ENV_GIT = "PLUGIN_GIT"
ENV_WORKSPACE_PREFIX = "PLUGIN_WORKSPACE_PREFIX"
ENV_HTTP_TIMEOUT = "PLUGIN_HTTP_TIMEOUT"

DEFAULT_OUTPUT_DIR = Path("/plugins")


def parse_sources(raw: str) -> list[str]:
    """Split a comma-separated source list, trimming entries and dropping blanks.

    Args:
        raw: Configuration value, e.g. ``"https://a/tool, https://b/foo.git"``

    Returns:
        Source identifiers in configured order
    """
    return [entry.strip() for entry in raw.split(",") if entry.strip()]


class ProvisionerConfig(BaseModel):
    """
    Settings for one provisioning run (injected, never global).

    Attributes:
        sources: Source identifiers in processing order
        output_dir: Shared plugin directory that receives executables
        repo_suffix: Identifier suffix that marks a git repository
        build_command: Command run inside the cloned workspace
        git_executable: git binary used for shallow clones
        workspace_prefix: Prefix for ephemeral build directories
        http_timeout: Download timeout in seconds (None disables it)
    """

    model_config = ConfigDict(frozen=True)

    sources: list[str] = Field(default_factory=list)
    output_dir: Path = DEFAULT_OUTPUT_DIR
    repo_suffix: str = Field(default=DEFAULT_REPO_SUFFIX, min_length=1)
    build_command: list[str] = Field(default_factory=lambda: ["make"], min_length=1)
    git_executable: str = "git"
    workspace_prefix: str = "plugin-build-"
    http_timeout: float | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ProvisionerConfig":
        """
        Load configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (tests)

        Returns:
            ProvisionerConfig

        Raises:
            ConfigError: If PLUGIN_SOURCES is missing or blank, or a value is invalid
        """
        env = os.environ if environ is None else environ

        raw_sources = env.get(ENV_SOURCES, "")
        sources = parse_sources(raw_sources)
        if not sources:
            raise ConfigError(
                f"No {ENV_SOURCES} environment variable found",
                context={"variable": ENV_SOURCES},
            )

        values: dict[str, object] = {"sources": sources}
        if env.get(ENV_OUTPUT_DIR):
            values["output_dir"] = Path(env[ENV_OUTPUT_DIR])
        if env.get(ENV_REPO_SUFFIX):
            values["repo_suffix"] = env[ENV_REPO_SUFFIX]
        if env.get(ENV_BUILD_COMMAND):
            values["build_command"] = shlex.split(env[ENV_BUILD_COMMAND])
        if env.get(ENV_GIT):
            values["git_executable"] = env[ENV_GIT]
        if env.get(ENV_WORKSPACE_PREFIX):
            values["workspace_prefix"] = env[ENV_WORKSPACE_PREFIX]
        if env.get(ENV_HTTP_TIMEOUT):
            values["http_timeout"] = env[ENV_HTTP_TIMEOUT]

        try:
            config = cls.model_validate(values)
        except ValidationError as e:
            raise ConfigError(f"Invalid plugin configuration: {e}", context={"errors": e.errors()}) from e

        logger.debug(f"Loaded config: {len(config.sources)} sources, output_dir={config.output_dir}")
        return config
