"""HTTP transport that hands finished sessions to the remote store."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from .errors import UploadError

logger = logging.getLogger(__name__)


class Uploader(Protocol):
    """Anything that can deliver one session payload, raising UploadError on failure."""

    def upload(self, payload: dict[str, Any]) -> None:
        ...


class HttpUploader:
    """
    POST session payloads to {worker_url}/api/sessions.

    Authenticated with a bearer token. Any transport error or non-2xx
    status becomes an UploadError.
    """

    def __init__(
        self,
        worker_url: str,
        token: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.worker_url = worker_url.rstrip("/")
        self.token = token
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {token}"},
        )

    def upload(self, payload: dict[str, Any]) -> None:
        url = f"{self.worker_url}/api/sessions"
        try:
            response = self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise UploadError("Upload failed", cause=e) from e

        if response.is_error:
            raise UploadError(f"Upload failed: HTTP {response.status_code}")
        logger.debug("uploaded session %s", payload.get("session", {}).get("id"))

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpUploader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["HttpUploader", "Uploader"]
