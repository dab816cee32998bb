"""Benchmark runner to orchestrate a comparison run and manage its output."""
from pathlib import Path
from typing import Callable, Optional, Sequence, Union
import logging

from cloudrun_perf.const import SUMMARY_CSV_NAME, DETAILED_CSV_NAME
from cloudrun_perf.shared.config import Config
from .models import BenchmarkConfig, RunResult
from .service_benchmark import ServiceComparisonBenchmark
from .target_registry import StaticTargetSource, TargetRegistry, TargetSource, TerraformOutputSource
from .reporter import Reporter
from .exceptions import ConfigurationError


# Configure logging
logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """Resolves targets, runs the comparison, exports results and prints the report."""

    def __init__(self, settings: Config, config: Optional[BenchmarkConfig] = None,
                 filters: Optional[Sequence[str]] = None,
                 targets_file: Optional[Union[Path, str]] = None,
                 terraform_dir: Optional[Union[Path, str]] = None,
                 output_dir: Optional[Union[Path, str]] = None,
                 export: bool = True, charts: bool = False, load_only: bool = False,
                 output: Callable[[str], None] = print,
                 benchmark: Optional[ServiceComparisonBenchmark] = None):
        self.settings = settings
        self.config = config or BenchmarkConfig.from_settings(settings)
        self.filters = list(filters or [])
        self.targets_file = targets_file
        self.terraform_dir = Path(terraform_dir) if terraform_dir else settings.terraform_dir
        self.bench_dir = Path(output_dir) if output_dir else settings.output_dir
        self.export = export
        self.charts = charts
        self.load_only = load_only
        self.output = output
        self.registry = TargetRegistry(settings.services)
        self.reporter = Reporter(settings.comparisons)
        self.benchmark = benchmark or ServiceComparisonBenchmark(self.config)
        self.result: Optional[RunResult] = None

    def target_source(self) -> TargetSource:
        """Targets file first, then configured URLs, then Terraform outputs."""
        if self.targets_file:
            return StaticTargetSource.from_file(self.targets_file)
        if self.settings.targets:
            return StaticTargetSource(self.settings.targets)
        return TerraformOutputSource(self.terraform_dir)

    def run(self) -> int:
        """
        Run the complete comparison process.

        Returns:
            Process exit code: 0 only if every target succeeded.

        Raises:
            ValueError: If a filter names an unknown service.
        """
        summary_csv_path = self.bench_dir / SUMMARY_CSV_NAME
        detailed_csv_path = self.bench_dir / DETAILED_CSV_NAME

        try:
            if self.load_only:
                run = self._load(summary_csv_path, detailed_csv_path)
            else:
                run = self._measure()
        except ConfigurationError as e:
            logger.error(f"Benchmark failed: {e.message}")
            return 1

        self.result = run
        if not len(run):
            logger.error("No services to test")
            return 1

        if not self.load_only and self.export:
            self.bench_dir.mkdir(parents=True, exist_ok=True)
            self.benchmark.save_results(run, summary_csv_path)
            self.benchmark.save_detailed_results_to_csv(run, detailed_csv_path)

        if self.charts:
            self.bench_dir.mkdir(parents=True, exist_ok=True)
            self.benchmark.plot_results(run, self.bench_dir)

        self.output(self.reporter.render(run))

        if run.succeeded:
            logger.info("Benchmark completed successfully!")
            return 0
        logger.warning(f"Benchmark finished with {len(run.failed_targets)} failed service(s)")
        return 1

    def _measure(self) -> RunResult:
        # Validate filters before touching Terraform or a targets file
        selected = [d.name for d in self.registry.select(self.filters)]
        source = self.target_source()
        logger.info(f"Resolving {len(selected)} service(s)...")
        targets, errors = self.registry.resolve(source, self.filters)
        return self.benchmark.run(targets, self.config.request_count, errors, order=selected)

    def _load(self, summary_csv_path: Path, detailed_csv_path: Path) -> RunResult:
        if not summary_csv_path.exists():
            raise ConfigurationError(f"No exported results found at {summary_csv_path}")
        logger.info(f"Loading existing comparison results from: {summary_csv_path}")
        detailed = detailed_csv_path if detailed_csv_path.exists() else None
        return self.benchmark.load_results(summary_csv_path, detailed)
