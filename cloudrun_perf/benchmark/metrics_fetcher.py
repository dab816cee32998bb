"""Fetches and parses the metrics endpoint of a target."""
import logging
import math
from typing import Any, Dict, List, Optional, Tuple
import requests

from cloudrun_perf.const import (
    METRICS_PATH, STARTUP_TIME_FIELD, MEMORY_USED_FIELD, IMAGE_TYPE_FIELD,
    CONNECTION_POOL_FIELD, PROFILE_FIELD, INITIAL_RESPONSE_FIELD,
)
from .models import BenchmarkConfig, MetricSample, MetricValue, Target
from .request_executor import RequestExecutor
from .exceptions import FetchError, InvalidResponseFormatError, RequestError


# Configure logging
logger = logging.getLogger(__name__)


class MetricsFetcher:
    """Reads startup, memory and runtime details from a target's metrics endpoint."""

    # (dotted field path, unit, numeric)
    FIELDS: List[Tuple[str, str, bool]] = [
        (STARTUP_TIME_FIELD, "s", True),
        (MEMORY_USED_FIELD, "MB", True),
        (IMAGE_TYPE_FIELD, "", False),
        (CONNECTION_POOL_FIELD, "", False),
        (PROFILE_FIELD, "", False),
    ]

    def __init__(self, config: BenchmarkConfig, request_executor: RequestExecutor):
        self.config = config
        self.request_executor = request_executor

    def fetch(self, session: requests.Session, target: Target) -> List[MetricSample]:
        """
        Fetch the metrics payload of a target.

        Args:
            session: Requests session.
            target: Target to query.

        Returns:
            One MetricSample per known field plus the client-side response time.
            Fields missing from the payload are reported with value None.

        Raises:
            FetchError: If the endpoint fails or the payload is not a non-empty JSON object.
        """
        url = target.endpoint(METRICS_PATH)
        try:
            response, duration = self.request_executor.send_request(
                session, url, timeout=self.config.metrics_timeout, require_body=False)
        except RequestError as e:
            raise FetchError(f"Failed to collect metrics from {url}", target=target.name, cause=e) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidResponseFormatError(f"Metrics from {url} are not valid JSON",
                                             target=target.name, cause=e) from e

        if not isinstance(payload, dict) or not payload:
            raise InvalidResponseFormatError(f"Metrics from {url} are not a non-empty JSON object",
                                             target=target.name)

        samples = [self.extract(target.name, payload, path, unit, numeric) for path, unit, numeric in self.FIELDS]
        samples.append(MetricSample(target.name, INITIAL_RESPONSE_FIELD, duration, "s"))
        return samples

    @classmethod
    def unavailable(cls, target: Target) -> List[MetricSample]:
        """Samples for a target whose metrics could not be fetched."""
        samples = [MetricSample(target.name, path, None, unit) for path, unit, _ in cls.FIELDS]
        samples.append(MetricSample(target.name, INITIAL_RESPONSE_FIELD, None, "s"))
        return samples

    @classmethod
    def extract(cls, target_name: str, payload: Dict[str, Any], path: str, unit: str, numeric: bool) -> MetricSample:
        raw = cls._lookup(payload, path)
        value = cls._to_number(raw) if numeric else cls._to_text(raw)
        if value is None:
            logger.debug(f"{target_name}: metric '{path}' unavailable (raw value {raw!r})")
        return MetricSample(target_name, path, value, unit)

    @staticmethod
    def _lookup(payload: Dict[str, Any], path: str) -> Any:
        if path in payload:
            return payload[path]
        node: Any = payload
        for key in path.split("."):
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    @staticmethod
    def _to_number(raw: Any) -> Optional[float]:
        if isinstance(raw, bool):
            return None
        if isinstance(raw, (int, float)):
            value = float(raw)
        elif isinstance(raw, str):
            try:
                value = float(raw.strip())
            except ValueError:
                return None
        else:
            return None
        return value if math.isfinite(value) else None

    @staticmethod
    def _to_text(raw: Any) -> MetricValue:
        if raw is None or isinstance(raw, (dict, list)):
            return None
        text = str(raw).strip()
        return text or None
