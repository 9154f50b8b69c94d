"""HTTP sender for the DataDog mobile log intake."""

import logging
import time
import urllib.error
import urllib.request
from urllib.parse import urlencode

from justlog_datadog.models import encode_batch

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "us": "https://mobile-http-intake.logs.datadoghq.com/v1/input/",
    "eu": "https://mobile-http-intake.logs.datadoghq.eu/v1/input/",
    "gov": "https://logs.browser-intake-ddog-gov.com/v1/input/",
}


def resolve_endpoint(endpoint: str) -> str:
    """Map 'us' / 'eu' / 'gov' to the intake URL, or accept a custom http(s) URL.

    Raises ValueError for anything else.
    """
    endpoint = endpoint.strip()
    known = ENDPOINTS.get(endpoint.lower())
    if known:
        return known
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    raise ValueError(f"Unknown DataDog endpoint: {endpoint!r}")


class DataDogSender:
    """Posts one encoded log record per request. No retries."""

    def __init__(self, endpoint: str, client_token: str, source: str = "ios", timeout: float = 5.0):
        self._url = resolve_endpoint(endpoint)
        self._client_token = client_token
        self._source = source
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    def request_url(self, batch_time: int | None = None) -> str:
        if batch_time is None:
            batch_time = int(time.time())
        query = urlencode({"ddsource": self._source, "batch_time": str(batch_time)})
        return f"{self._url}{self._client_token}?{query}"

    def build_request(self, entry: dict) -> urllib.request.Request:
        body = encode_batch([entry])
        return urllib.request.Request(
            self.request_url(),
            data=body,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "Content-Length": str(len(body)),
            },
        )

    def send(self, entry: dict) -> bool:
        """Upload one encoded record. Returns True on a 2xx response."""
        request = self.build_request(entry)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                body = response.read()
                logger.debug("Upload response %d: %s", response.status, body[:200])
                return 200 <= response.status < 300
        except urllib.error.HTTPError as e:
            logger.error("Upload rejected with HTTP %d: %s", e.code, e.read()[:200])
            return False
        except (urllib.error.URLError, OSError) as e:
            logger.error("Upload error: %s", e)
            return False
