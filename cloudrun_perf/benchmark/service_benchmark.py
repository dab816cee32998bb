"""Main class for comparing deployed services target by target."""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import requests

from .models import BenchmarkConfig, RunResult, Target, TargetResult
from .request_session_manager import RequestSessionManager
from .request_executor import RequestExecutor
from .metrics_fetcher import MetricsFetcher
from .latency_prober import LatencyProber
from .latency_analyzer import LatencyAnalyzer
from .result_exporter import ResultExporter
from .visualization_generator import VisualizationGenerator
from .exceptions import ConfigurationError, FetchError, ProbeError


# Configure logging
logger = logging.getLogger(__name__)


class ServiceComparisonBenchmark:
    """Fetches metrics and probes latency for each target, one target at a time."""

    def __init__(self, config: BenchmarkConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session
        self.request_session_manager = RequestSessionManager()
        self.request_executor = RequestExecutor(config)
        self.metrics_fetcher = MetricsFetcher(config, self.request_executor)
        self.latency_prober = LatencyProber(config, self.request_executor)
        self.latency_analyzer = LatencyAnalyzer()
        self.result_exporter = ResultExporter()
        self.visualization_generator = VisualizationGenerator()

    def run(self, targets: Sequence[Target], request_count: Optional[int] = None,
            config_errors: Optional[Dict[str, ConfigurationError]] = None,
            order: Optional[Sequence[str]] = None) -> RunResult:
        """
        Run the comparison for every target.

        Args:
            targets: Resolved targets in registry order.
            request_count: Probe requests per target; defaults to the configured count.
            config_errors: Services that could not be resolved, recorded as failed rows.
            order: Registry order of all service names, used to interleave failed rows.

        Returns:
            RunResult holding one TargetResult per target and per configuration error.

        Raises:
            ValueError: If request_count is not a positive integer.
        """
        if request_count is None:
            request_count = self.config.request_count
        if request_count < 1:
            raise ValueError(f"request_count must be a positive integer, got {request_count!r}")
        session = self.session or self.request_session_manager.create_session(self.config.max_retries)
        run = RunResult(request_count=request_count)

        pending = {t.name: t for t in targets}
        config_errors = config_errors or {}
        names = list(order) if order else list(config_errors) + [t.name for t in targets]

        for name in names:
            if name in config_errors:
                error = config_errors[name]
                run.add(TargetResult(target=Target(name, ""), errors=[error]))
            elif name in pending:
                run.add(self.measure_target(session, pending.pop(name), request_count))

        # Targets missing from an explicit order still get measured
        for target in pending.values():
            run.add(self.measure_target(session, target, request_count))

        if run.failed_targets:
            logger.warning(f"Some services failed: {', '.join(run.failed_targets)}")
        return run

    def measure_target(self, session: requests.Session, target: Target, request_count: int) -> TargetResult:
        """Fetch metrics, then probe latency, for a single target."""
        result = TargetResult(target=target)
        logger.info(f"Testing service: {target.name}")

        try:
            samples = self.metrics_fetcher.fetch(session, target)
        except FetchError as e:
            logger.error(f"{target.name}: {e.message}")
            result.errors.append(e)
            samples = self.metrics_fetcher.unavailable(target)
        result.metrics = {s.field: s for s in samples}

        logger.info(f"{target.name}: probing /{self.config.workload_path.lstrip('/')} ({request_count} requests)")
        try:
            result.samples = self.latency_prober.probe(session, target, request_count)
        except ProbeError as e:
            logger.error(f"{target.name}: {e.message} - no average calculated")
            result.errors.append(e)
            result.samples = []
        result.latency = self.latency_analyzer.summarize(result.samples)

        if result.latency and result.latency.warm_mean is not None:
            logger.info(f"{target.name}: warm average {result.latency.warm_mean:.4f}s "
                        f"({result.latency.warm_count} requests)")
        return result

    def save_results(self, run: RunResult, output_path: Path) -> None:
        """Save the per-target summary to CSV."""
        self.result_exporter.save_results(run, output_path)

    def save_detailed_results_to_csv(self, run: RunResult, output_path: Path) -> None:
        """Save every latency sample to CSV."""
        self.result_exporter.save_detailed_results_to_csv(run, output_path)

    def load_results(self, summary_path: Path, detailed_path: Optional[Path] = None) -> RunResult:
        """Rebuild a RunResult from exported CSV files without contacting any service."""
        return self.result_exporter.load_results(summary_path, detailed_path)

    def plot_results(self, run: RunResult, bench_dir: Path) -> List[Path]:
        """Generate and save metric and latency charts."""
        return self.visualization_generator.generate_visualizations(run, bench_dir)
