"""Sequential latency probing of a target's workload endpoint."""
import time
import logging
from typing import List
import requests

from .models import BenchmarkConfig, LatencySample, Target
from .request_executor import RequestExecutor
from .exceptions import ProbeError, RequestError


# Configure logging
logger = logging.getLogger(__name__)


class LatencyProber:
    """Issues N sequential requests against one target and times each of them."""

    def __init__(self, config: BenchmarkConfig, request_executor: RequestExecutor):
        self.config = config
        self.request_executor = request_executor

    def probe(self, session: requests.Session, target: Target, request_count: int) -> List[LatencySample]:
        """
        Probe a target's workload endpoint.

        The sequence is all-or-nothing: the first failing request stops the
        probe and every sample gathered so far for the target is discarded.

        Args:
            session: Requests session.
            target: Target to probe.
            request_count: Number of sequential requests, at least 1.

        Returns:
            Latency samples in request order; index 0 is the cold request.

        Raises:
            ValueError: If request_count is not a positive integer.
            ProbeError: If any request in the sequence fails.
        """
        if isinstance(request_count, bool) or not isinstance(request_count, int) or request_count < 1:
            raise ValueError(f"request_count must be a positive integer, got {request_count!r}")

        url = target.endpoint(self.config.workload_path)
        samples: List[LatencySample] = []

        for index in range(request_count):
            if index and self.config.probe_delay:
                time.sleep(self.config.probe_delay)
            try:
                _, duration = self.request_executor.send_request(session, url, timeout=self.config.probe_timeout)
            except RequestError as e:
                logger.warning(f"{target.name}: request {index + 1}/{request_count} failed, "
                               f"discarding {len(samples)} collected samples")
                raise ProbeError(f"Request {index + 1} of {request_count} to {url} failed",
                                 target=target.name, cause=e, request_number=index + 1,
                                 status_code=e.status_code) from e
            samples.append(LatencySample(target.name, index, duration))
            logger.debug(f"{target.name}: request {index + 1}/{request_count} took {duration:.4f}s")

        return samples
