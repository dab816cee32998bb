"""Data models for the benchmarking system."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from cloudrun_perf.const import (
    DEFAULT_WORKLOAD_PATH, COLD_LATENCY_FIELD, WARM_LATENCY_FIELD, WARM_P95_FIELD,
)
from cloudrun_perf.shared.config import Config
from .constants import BenchmarkConstants
from .exceptions import BenchmarkError, ConfigurationError, FetchError, ProbeError


MetricValue = Union[float, str, None]


@dataclass
class BenchmarkConfig:
    """Configuration for the benchmark."""
    request_count: int = BenchmarkConstants.DEFAULT_REQUEST_COUNT
    workload_path: str = DEFAULT_WORKLOAD_PATH
    metrics_timeout: float = BenchmarkConstants.DEFAULT_METRICS_TIMEOUT
    probe_timeout: float = BenchmarkConstants.DEFAULT_PROBE_TIMEOUT
    probe_delay: float = BenchmarkConstants.DEFAULT_PROBE_DELAY
    max_retries: int = BenchmarkConstants.DEFAULT_MAX_RETRIES

    @classmethod
    def from_settings(cls, settings: Config, **overrides) -> "BenchmarkConfig":
        """Build a run configuration from settings, letting explicit overrides win."""
        values = {
            "request_count": settings.request_count,
            "workload_path": settings.workload_path,
            "metrics_timeout": settings.metrics_timeout,
            "probe_timeout": settings.probe_timeout,
            "probe_delay": settings.probe_delay,
            "max_retries": settings.max_retries,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass(frozen=True)
class Target:
    """One deployed service under comparison."""
    name: str
    url: str
    labels: Dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def display_name(self) -> str:
        return self.name.replace("_", "-")

    def endpoint(self, path: str) -> str:
        """Join the base URL and a path with exactly one slash between them."""
        return f"{self.url.rstrip('/')}/{path.lstrip('/')}"


@dataclass(frozen=True)
class MetricSample:
    """A named scalar reported for a target; ``value`` is None when unavailable."""
    target: str
    field: str
    value: MetricValue
    unit: str = ""

    @property
    def available(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class LatencySample:
    """Client-side duration of one probe request."""
    target: str
    index: int
    duration: float

    @property
    def is_cold(self) -> bool:
        return self.index == 0


@dataclass
class AggregateResult:
    """Mean of one metric over a group; ``mean`` is None when nothing was defined."""
    key: str
    mean: Optional[float]
    count: int


@dataclass
class LatencyResults:
    """Container for one target's cold/warm latency summary."""
    cold: float
    warm_mean: Optional[float]
    warm_count: int
    p50: Optional[float] = None
    p90: Optional[float] = None
    p95: Optional[float] = None


@dataclass
class GroupComparison:
    """Baseline group against candidate group for one metric."""
    dimension: str
    metric: str
    baseline: AggregateResult
    candidate: AggregateResult
    delta: Optional[float]
    speedup: Optional[float] = None
    scope: Optional[str] = None


class TargetOutcome(Enum):
    """Final state of a target in a run."""
    SUCCESS = "success"
    CONFIGURATION_ERROR = "configuration_error"
    FETCH_ERROR = "fetch_error"
    PROBE_ERROR = "probe_error"


@dataclass
class TargetResult:
    """One row of the results table."""
    target: Target
    metrics: Dict[str, MetricSample] = field(default_factory=dict)
    samples: List[LatencySample] = field(default_factory=list)
    latency: Optional[LatencyResults] = None
    errors: List[BenchmarkError] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.target.name

    @property
    def outcome(self) -> TargetOutcome:
        if any(isinstance(e, ConfigurationError) for e in self.errors):
            return TargetOutcome.CONFIGURATION_ERROR
        if any(isinstance(e, ProbeError) for e in self.errors):
            return TargetOutcome.PROBE_ERROR
        if any(isinstance(e, FetchError) for e in self.errors):
            return TargetOutcome.FETCH_ERROR
        return TargetOutcome.SUCCESS

    @property
    def succeeded(self) -> bool:
        return self.outcome is TargetOutcome.SUCCESS

    @property
    def warm_count(self) -> int:
        return self.latency.warm_count if self.latency else 0

    def value(self, metric: str) -> MetricValue:
        """Look up a metric field or a derived latency figure."""
        if metric == COLD_LATENCY_FIELD:
            return self.latency.cold if self.latency else None
        if metric == WARM_LATENCY_FIELD:
            return self.latency.warm_mean if self.latency else None
        if metric == WARM_P95_FIELD:
            return self.latency.p95 if self.latency else None
        sample = self.metrics.get(metric)
        return sample.value if sample else None

    def numeric(self, metric: str) -> Optional[float]:
        value = self.value(metric)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None

    def attribute(self, dimension: str) -> Optional[str]:
        """Categorical value of a dimension: configured label first, then a reported field."""
        if dimension in self.target.labels:
            return self.target.labels[dimension]
        value = self.value(dimension)
        return value if isinstance(value, str) else None


@dataclass
class RunResult:
    """Ordered results table for one run, keyed by target name."""
    request_count: int
    results: Dict[str, TargetResult] = field(default_factory=dict)

    def add(self, result: TargetResult) -> TargetResult:
        self.results[result.name] = result
        return result

    def __iter__(self) -> Iterator[TargetResult]:
        return iter(self.results.values())

    def __len__(self) -> int:
        return len(self.results)

    @property
    def failed_targets(self) -> List[str]:
        return [r.name for r in self if not r.succeeded]

    @property
    def succeeded(self) -> bool:
        return bool(self.results) and not self.failed_targets
