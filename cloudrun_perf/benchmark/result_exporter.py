"""Handles exporting benchmark results to CSV and loading them back."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import pandas as pd

from cloudrun_perf.const import INITIAL_RESPONSE_FIELD, UNAVAILABLE_PLACEHOLDER
from .models import (
    LatencyResults, LatencySample, MetricSample, RunResult, Target, TargetOutcome, TargetResult,
)
from .metrics_fetcher import MetricsFetcher
from .exceptions import ConfigurationError, FetchError, ProbeError


# Configure logging
logger = logging.getLogger(__name__)

_OUTCOME_ERRORS = {
    TargetOutcome.CONFIGURATION_ERROR: ConfigurationError,
    TargetOutcome.FETCH_ERROR: FetchError,
    TargetOutcome.PROBE_ERROR: ProbeError,
}

_LATENCY_COLUMNS = {
    'cold_s': 'cold',
    'warm_avg_s': 'warm_mean',
    'p50_s': 'p50',
    'p90_s': 'p90',
    'p95_s': 'p95',
}


class ResultExporter:
    """Handles exporting benchmark results to CSV."""

    @staticmethod
    def _metric_columns() -> List[tuple]:
        columns = [(path, unit) for path, unit, _ in MetricsFetcher.FIELDS]
        columns.append((INITIAL_RESPONSE_FIELD, "s"))
        return columns

    @classmethod
    def to_dataframe(cls, run: RunResult) -> pd.DataFrame:
        """Flatten a run into one row per target."""
        rows = []
        for result in run:
            row: Dict[str, Any] = {
                'target': result.name,
                'url': result.target.url,
                'labels': json.dumps(result.target.labels, sort_keys=True),
                'outcome': result.outcome.value,
                'error': "; ".join(e.message for e in result.errors),
                'request_count': run.request_count,
            }
            for path, _ in cls._metric_columns():
                row[path] = result.value(path)
            latency = result.latency
            for column, attr in _LATENCY_COLUMNS.items():
                row[column] = getattr(latency, attr) if latency else None
            row['warm_count'] = result.warm_count
            rows.append(row)
        return pd.DataFrame(rows)

    @classmethod
    def save_results(cls, run: RunResult, output_path: Union[Path, str]) -> None:
        """
        Save the per-target summary to CSV.

        Args:
            run: Results of a run.
            output_path: Path to save CSV.
        """
        if not len(run):
            logger.warning("No results available for saving")
            return
        df = cls.to_dataframe(run)
        df.to_csv(output_path, index=False, na_rep=UNAVAILABLE_PLACEHOLDER)
        logger.info(f"CSV saved: {output_path}")

    @staticmethod
    def save_detailed_results_to_csv(run: RunResult, output_path: Union[Path, str]) -> None:
        """
        Save every latency sample to CSV for spreadsheet manipulation.

        Args:
            run: Results of a run.
            output_path: Path to save detailed results CSV.
        """
        all_test_data = []
        for result in run:
            for sample in result.samples:
                all_test_data.append({
                    'target': sample.target,
                    'test_number': sample.index,
                    'latency_ms': sample.duration * 1000,  # Convert to ms
                    'phase': 'cold' if sample.is_cold else 'warm',
                })

        if not all_test_data:
            logger.warning("No latency samples available for detailed CSV export")
            return

        df = pd.DataFrame(all_test_data)
        df.to_csv(output_path, index=False)
        logger.info(f"Detailed results saved to CSV: {output_path}")

    @classmethod
    def load_results(cls, input_path: Union[Path, str],
                     detailed_path: Optional[Union[Path, str]] = None) -> RunResult:
        """
        Load results from CSV without probing any service.

        Args:
            input_path: Summary CSV written by save_results.
            detailed_path: Optional detailed CSV written by save_detailed_results_to_csv.

        Returns:
            RunResult in the order the rows were saved.
        """
        df = pd.read_csv(input_path, na_values=[UNAVAILABLE_PLACEHOLDER], keep_default_na=True)
        samples = cls.load_detailed_results_from_csv(detailed_path) if detailed_path else {}
        request_count = int(df['request_count'].iloc[0]) if len(df) else 0
        run = RunResult(request_count=request_count)

        for _, row in df.iterrows():
            name = str(row['target'])
            labels = json.loads(row['labels']) if isinstance(row['labels'], str) else {}
            target = Target(name, cls._text(row['url']) or "", labels)
            result = TargetResult(target=target)

            for path, unit in cls._metric_columns():
                result.metrics[path] = MetricSample(name, path, cls._cell(row.get(path)), unit)

            cold = cls._number(row.get('cold_s'))
            if cold is not None:
                values = {attr: cls._number(row.get(column)) for column, attr in _LATENCY_COLUMNS.items()}
                values['warm_count'] = int(row.get('warm_count') or 0)
                result.latency = LatencyResults(**values)

            outcome = TargetOutcome(row['outcome'])
            if outcome in _OUTCOME_ERRORS:
                message = cls._text(row.get('error')) or outcome.value
                result.errors.append(_OUTCOME_ERRORS[outcome](message, target=name))

            result.samples = samples.get(name, [])
            run.add(result)

        logger.info(f"Results loaded from CSV: {input_path}")
        return run

    @staticmethod
    def load_detailed_results_from_csv(input_path: Union[Path, str]) -> Dict[str, List[LatencySample]]:
        """
        Load detailed latency samples from CSV.

        Returns:
            Samples per target name, in request order.
        """
        df = pd.read_csv(input_path)
        detailed_results: Dict[str, List[LatencySample]] = {}

        for _, row in df.sort_values(by=['target', 'test_number'], kind='stable').iterrows():
            sample = LatencySample(str(row['target']), int(row['test_number']), float(row['latency_ms']) / 1000)
            detailed_results.setdefault(sample.target, []).append(sample)

        logger.info(f"Detailed results loaded from CSV: {input_path}")
        return detailed_results

    @staticmethod
    def _cell(value: Any) -> Any:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        if isinstance(value, str):
            return value
        return float(value)

    @classmethod
    def _number(cls, value: Any) -> Optional[float]:
        value = cls._cell(value)
        return value if isinstance(value, float) else None

    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        value = cls._cell(value)
        return value if isinstance(value, str) else None
