"""Builds the HTTP session shared by every request of a run."""
import logging
from typing import Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cloudrun_perf import __version__
from .constants import BenchmarkConstants


# Configure logging
logger = logging.getLogger(__name__)


class RequestSessionManager:
    """Creates requests sessions for metrics fetching and latency probing."""

    USER_AGENT = f"cloudrun-perf/{__version__}"

    @staticmethod
    def retry_policy(max_retries: int) -> Retry:
        """urllib3 retry policy; a failed response is returned, not raised, once retries run out."""
        return Retry(
            total=max_retries,
            connect=max_retries,
            read=max_retries,
            backoff_factor=1,
            status_forcelist=BenchmarkConstants.RETRY_STATUS_FORCELIST,
            allowed_methods=frozenset(["GET"]),
            raise_on_status=False,
        )

    @classmethod
    def create_session(cls, max_retries: Optional[int] = None) -> requests.Session:
        """
        Create a session for one run.

        Retries default to zero so a failed probe request is reported as-is;
        callers opt in to a retry policy with ``max_retries``.
        """
        if max_retries is None:
            max_retries = BenchmarkConstants.DEFAULT_MAX_RETRIES
        session = requests.Session()
        session.headers["User-Agent"] = cls.USER_AGENT
        adapter = HTTPAdapter(max_retries=cls.retry_policy(max_retries))
        for prefix in ("http://", "https://"):
            session.mount(prefix, adapter)
        logger.debug(f"Created HTTP session with max_retries={max_retries}")
        return session
