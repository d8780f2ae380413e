"""Stream remote sources to disk over HTTP."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import requests

from audioconv.errors import FetchError

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 1024 * 1024


@dataclass(slots=True)
class HttpSourceFetcher:
    """Download a URL into a staging file without buffering it in memory."""

    session: requests.Session = field(default_factory=requests.Session)
    timeout: tuple[float, float] = (10.0, 60.0)
    chunk_size: int = DOWNLOAD_CHUNK_SIZE

    def fetch(self, url: str, destination: Path) -> int:
        logger.info("Downloading source", extra={"destination": str(destination)})
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as error:
            raise FetchError(f"Source download failed: {error}") from error

        with response:
            if not response.ok:
                raise FetchError(
                    f"Source download failed with HTTP {response.status_code}",
                    status=response.status_code,
                )

            written = 0
            try:
                with destination.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if not chunk:
                            continue
                        handle.write(chunk)
                        written += len(chunk)
            except requests.RequestException as error:
                raise FetchError(f"Source download interrupted: {error}") from error
            except OSError as error:
                raise FetchError(f"Source could not be written to staging: {error}") from error

        logger.info("Source downloaded", extra={"destination": str(destination), "bytes": written})
        return written
