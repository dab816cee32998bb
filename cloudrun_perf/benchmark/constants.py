"""Constants for the benchmarking system."""
from typing import List, Tuple

from cloudrun_perf.const import (
    STARTUP_TIME_FIELD, MEMORY_USED_FIELD, INITIAL_RESPONSE_FIELD,
    COLD_LATENCY_FIELD, WARM_LATENCY_FIELD, WARM_P95_FIELD,
)


class BenchmarkConstants:
    """Centralized constants for benchmark configuration."""
    DEFAULT_REQUEST_COUNT = 10
    DEFAULT_METRICS_TIMEOUT = 10  # seconds
    DEFAULT_PROBE_TIMEOUT = 30  # seconds
    DEFAULT_PROBE_DELAY = 0.0  # seconds between probe requests
    DEFAULT_MAX_RETRIES = 0  # retries belong to the caller
    RETRY_STATUS_FORCELIST = [429, 500, 502, 503, 504]
    PERCENTILES = (50, 90, 95)

    # (field, label, unit) for every numeric metric the report ranks
    RANKED_METRICS: List[Tuple[str, str, str]] = [
        (STARTUP_TIME_FIELD, "Startup", "s"),
        (INITIAL_RESPONSE_FIELD, "Initial Response", "s"),
        (COLD_LATENCY_FIELD, "Cold Request", "s"),
        (WARM_LATENCY_FIELD, "Warm Average", "s"),
        (MEMORY_USED_FIELD, "Memory", "MB"),
    ]

    # Metrics charted by the visualization generator
    CHARTED_METRICS: List[Tuple[str, str]] = [
        (STARTUP_TIME_FIELD, "Startup (s)"),
        (COLD_LATENCY_FIELD, "Cold (s)"),
        (WARM_LATENCY_FIELD, "Warm avg (s)"),
        (WARM_P95_FIELD, "Warm p95 (s)"),
        (MEMORY_USED_FIELD, "Memory (MB)"),
    ]
