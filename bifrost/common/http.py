"""HTTP client with timeouts, JSON retries and streamed artifact downloads."""

from __future__ import annotations

import time
from dataclasses import dataclass
from types import TracebackType
from typing import IO, Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from bifrost.common.cancel import CancelToken, check_cancelled
from bifrost.common.constants import USER_AGENT
from bifrost.common.errors import DecodeError, FilesystemError, HttpStatusError, NetworkError, RetryableHttpError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
CHUNK_SIZE = 1024 * 128


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float | None = 20.0
    read: float | None = 120.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    multiplier: float = 1.0
    max_wait: float = 30.0


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, accept: str) -> dict[str, str]:
        return {"User-Agent": USER_AGENT, "Accept": accept}

    def _raise_for_status(self, response: requests.Response, url: str, *, retryable: bool) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        if retryable and status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status {status} from {url}", status_code=status)
        raise HttpStatusError(f"HTTP status {status} from {url}", status_code=status)

    def _send(self, url: str, *, accept: str, stream: bool) -> requests.Response:
        try:
            return self.session.request(
                method="GET",
                url=url,
                headers=self._headers(accept),
                timeout=(self.timeout.connect, self.timeout.read),
                stream=stream,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"Request to {url} failed") from exc

    def _request_json(self, url: str) -> Any:
        response = self._send(url, accept="application/json", stream=False)
        self._raise_for_status(response, url, retryable=True)
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"Invalid JSON payload from {url}") from exc

    def get_json(self, url: str, *, cancel: CancelToken | None = None) -> Any:
        @retry(
            # Backoff wakes early when the run is cancelled.
            sleep=time.sleep if cancel is None else cancel.wait,
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )
        def _wrapped() -> Any:
            check_cancelled(cancel)
            return self._request_json(url)

        return _wrapped()

    def fetch(self, url: str, out: IO[bytes], *, cancel: CancelToken | None = None) -> tuple[int, str | None]:
        """Stream the body of ``url`` into ``out``.

        Returns the number of bytes written and the response content type.
        Artifact downloads are never retried here; callers re-run the flow.
        """
        check_cancelled(cancel)
        response = self._send(url, accept="*/*", stream=True)
        try:
            self._raise_for_status(response, url, retryable=False)
            size = 0
            try:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    check_cancelled(cancel)
                    if not chunk:
                        continue
                    out.write(chunk)
                    size += len(chunk)
                out.flush()
            except requests.RequestException as exc:
                raise NetworkError(f"Download from {url} was interrupted") from exc
            except OSError as exc:
                raise FilesystemError(f"Could not write download from {url}") from exc
            return size, response.headers.get("Content-Type")
        finally:
            response.close()
