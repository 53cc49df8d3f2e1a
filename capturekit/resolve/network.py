# capturekit/resolve/network.py
from __future__ import annotations

import logging
from typing import BinaryIO, Optional

import requests

from capturekit.core.errors import FetchIOError, MalformedLocatorError

logger = logging.getLogger(__name__)

USER_AGENT = "capturekit/0.1"


class HttpStreamOpener:
    """
    Open a streaming HTTP(S) GET for a locator and hand back the raw body.

    The returned object is file-like (read/close); closing it releases the
    connection back to the session pool.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = USER_AGENT
        self.session = session
        self.timeout = timeout

    def open_read_stream(self, url: str) -> BinaryIO:
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            raise MalformedLocatorError(f"Cannot open {url!r}: {e}") from e
        except requests.RequestException as e:
            raise FetchIOError(f"Network error opening {url}: {e}") from e

        if response.status_code != 200:
            response.close()
            raise FetchIOError(f"Failed to download {url}: HTTP {response.status_code}")

        raw = response.raw
        # undo transfer compression so callers see the payload bytes
        raw.decode_content = True
        logger.debug("Opened %s (%s)", url, response.headers.get("Content-Type"))
        return raw
