import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, Dict, Optional

import requests

from student_registry.errors import NetworkError, NetworkTimeout, NotConfigured

logger = logging.getLogger("registry.request")

PLACEHOLDER = "{SCRIPT_ID}"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRIES = 3
_BACKOFF_STEP = 1.0


class RequestClient:
    """
    POSTs JSON payloads to the registry endpoint.

    Every call has a wall-clock budget of `timeout` seconds covering connect
    and body read. A timed-out call raises NetworkTimeout straight away; any
    other failure is retried `retries` times, sleeping 1s, 2s, 3s between
    attempts.
    """

    def __init__(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT,
                 sleep: Callable[[float], None] = time.sleep, max_workers: int = 4):
        self.endpoint = endpoint or ""
        self.timeout = timeout
        self.token: Optional[str] = None
        self._sleep = sleep
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="registry-http")

    def is_configured(self, url: Optional[str] = None) -> bool:
        url = self.endpoint if url is None else url
        return bool(url) and PLACEHOLDER not in url

    def request(self, payload: Dict[str, Any], retries: int = DEFAULT_RETRIES) -> Dict[str, Any]:
        return self.send(self.endpoint, payload, retries=retries)

    def send(self, url: str, payload: Dict[str, Any], retries: int = 0) -> Dict[str, Any]:
        if not self.is_configured(url):
            logger.error("API not configured. Set REGISTRY_API_URL to the deployed endpoint")
            raise NotConfigured()

        body = json.dumps(payload)
        try:
            result = self._post_within_budget(url, body)
        except NetworkTimeout:
            logger.error("API request timeout after %.1fs (%s)", self.timeout, payload.get("action"))
            raise
        except NetworkError as e:
            if retries > 0:
                logger.warning("API request failed, retrying... (%d left): %s", retries, e.message)
                self._sleep(_BACKOFF_STEP * max(1, 4 - retries))
                return self.send(url, payload, retries - 1)
            logger.error("API request failed: %s", e.message)
            raise

        logger.debug("API response: %s", result)
        return result

    def close(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "RequestClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _post_within_budget(self, url: str, body: str) -> Dict[str, Any]:
        inflight: Dict[str, Any] = {}
        future = self._pool.submit(self._post_once, url, body, self._headers(), inflight)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            # closing the response unblocks a worker stuck reading the body
            resp = inflight.get("response")
            if resp is not None:
                resp.close()
            raise NetworkTimeout("Request timed out. Please check your connection.")

    def _post_once(self, url: str, body: str, headers: Dict[str, str],
                   inflight: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = requests.post(url, data=body, headers=headers, timeout=self.timeout, stream=True)
        except requests.exceptions.Timeout as e:
            raise NetworkTimeout("Request timed out. Please check your connection.") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error: {e}") from e

        if inflight is not None:
            inflight["response"] = resp
        try:
            if not 200 <= resp.status_code < 300:
                raise NetworkError(f"API error: {resp.status_code} {getattr(resp, 'reason', '')}".rstrip(),
                                   status=resp.status_code)
            try:
                data = resp.json()
            except requests.exceptions.Timeout as e:
                raise NetworkTimeout("Request timed out. Please check your connection.") from e
            except ValueError as e:
                raise NetworkError("API returned an invalid JSON body") from e
            except requests.exceptions.RequestException as e:
                raise NetworkError(f"Network error: {e}") from e
        finally:
            resp.close()
        if not isinstance(data, dict):
            raise NetworkError("API returned an unexpected response shape")
        return data
