"""Handles individual request execution and timing."""
import time
import logging
from typing import Optional, Tuple
import requests

from .models import BenchmarkConfig
from .exceptions import RequestError


# Configure logging
logger = logging.getLogger(__name__)


class RequestExecutor:
    """Handles individual request execution and timing."""

    def __init__(self, config: BenchmarkConfig):
        self.config = config

    def send_request(self, session: requests.Session, url: str, timeout: Optional[float] = None,
                     require_body: bool = True) -> Tuple[requests.Response, float]:
        """
        Send a single GET request and measure its wall-clock latency client-side.

        Args:
            session: Requests session.
            url: Full endpoint URL.
            timeout: Per-request timeout in seconds. If None, uses the probe timeout.
            require_body: Treat an empty response body as a failure.

        Returns:
            Tuple of (response, latency in seconds).

        Raises:
            RequestError: On connection error, timeout, non-2xx status or empty body.
        """
        timeout = timeout if timeout is not None else self.config.probe_timeout

        start_time = time.perf_counter()
        try:
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error(f"Request to {url} returned HTTP {status_code}")
            raise RequestError(f"Request to {url} returned HTTP {status_code}", cause=e,
                               status_code=status_code) from e
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise RequestError(f"Request to {url} failed", cause=e) from e
        end_time = time.perf_counter()

        if require_body and not response.content:
            raise RequestError(f"Request to {url} returned an empty body", status_code=response.status_code)

        return response, end_time - start_time
