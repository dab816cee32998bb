"""Benchmark package initialization."""
from .models import (
    BenchmarkConfig, Target, MetricSample, LatencySample, AggregateResult, LatencyResults,
    GroupComparison, TargetOutcome, TargetResult, RunResult,
)
from .constants import BenchmarkConstants
from .exceptions import (
    BenchmarkError, ConfigurationError, RequestError, FetchError,
    InvalidResponseFormatError, ProbeError, AggregationError,
)
from .request_session_manager import RequestSessionManager
from .request_executor import RequestExecutor
from .metrics_fetcher import MetricsFetcher
from .latency_prober import LatencyProber
from .latency_analyzer import LatencyAnalyzer
from .aggregator import Aggregator
from .target_registry import TargetSource, StaticTargetSource, TerraformOutputSource, TargetRegistry
from .result_exporter import ResultExporter
from .visualization_generator import VisualizationGenerator
from .reporter import Reporter
from .service_benchmark import ServiceComparisonBenchmark
from .runner import BenchmarkRunner

__all__ = [
    'BenchmarkConfig',
    'Target',
    'MetricSample',
    'LatencySample',
    'AggregateResult',
    'LatencyResults',
    'GroupComparison',
    'TargetOutcome',
    'TargetResult',
    'RunResult',
    'BenchmarkConstants',
    'BenchmarkError',
    'ConfigurationError',
    'RequestError',
    'FetchError',
    'InvalidResponseFormatError',
    'ProbeError',
    'AggregationError',
    'RequestSessionManager',
    'RequestExecutor',
    'MetricsFetcher',
    'LatencyProber',
    'LatencyAnalyzer',
    'Aggregator',
    'TargetSource',
    'StaticTargetSource',
    'TerraformOutputSource',
    'TargetRegistry',
    'ResultExporter',
    'VisualizationGenerator',
    'Reporter',
    'ServiceComparisonBenchmark',
    'BenchmarkRunner'
]
