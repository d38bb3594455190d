"""Command-line entry point: provision plugins listed in PLUGIN_SOURCES.

Exit status is non-zero only when the output directory cannot be set up;
per-source failures are logged and the run still exits 0.
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Mapping
from collections.abc import Sequence

from .config import ProvisionerConfig
from .exceptions import ConfigError
from .exceptions import OutputDirectoryError
from .pipeline import PluginProvisioner

logger = logging.getLogger("plugin_provisioner")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Request-level noise from the HTTP client
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="plugin-provisioner",
        description="Download or build the plugins listed in PLUGIN_SOURCES and install them into PLUGINS_DIR.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = ProvisionerConfig.from_env(environ)
    except ConfigError as e:
        if "errors" in e.context:
            logger.error(e.message)
        else:
            logger.info(f"{e.message}. Exiting.")
        return 0

    try:
        report = asyncio.run(PluginProvisioner(config).provision())
    except OutputDirectoryError as e:
        logger.error(e.message)
        return 1

    logger.info(f"Done: {report.summary()}")
    for result in report.failed:
        logger.info(f"  failed: {result.source} ({result.error_kind}: {result.reason})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
