"""Direct download source: fetch a single executable over HTTP."""

import logging
from pathlib import Path
from pathlib import PurePosixPath
from urllib.parse import unquote
from urllib.parse import urlparse

import httpx

from .exceptions import FetchError
from .installer import install_artifact
from .schema import Artifact

logger = logging.getLogger(__name__)


def filename_from_url(url: str) -> str:
    """Return the final path segment of a URL (query and fragment ignored).

    Raises:
        FetchError: If the URL path has no usable final segment
    """
    name = PurePosixPath(unquote(urlparse(url).path)).name
    if not name or name in (".", ".."):
        raise FetchError(f"Cannot derive a plugin file name from {url}", context={"url": url})
    return name


class DirectDownloadSource:
    """Download a plugin file and install it under its URL's file name.

    The response body is streamed into the installer chunk by chunk and the
    response is always released, whatever the outcome.
    """

    def __init__(self, url: str, client: httpx.AsyncClient):
        self.uri = url
        self.client = client

    async def install_to(self, output_dir: Path) -> Path:
        name = filename_from_url(self.uri)

        logger.info(f"  - Downloading {self.uri}...")
        try:
            async with self.client.stream("GET", self.uri) as response:
                if not response.is_success:
                    raise FetchError(
                        f"Bad status: {response.status_code} {response.reason_phrase}",
                        context={"url": self.uri, "status_code": response.status_code},
                    )
                artifact = Artifact(name=name, chunks=response.aiter_bytes())
                return await install_artifact(artifact, output_dir)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Download failed: {e}", context={"url": self.uri}) from e
