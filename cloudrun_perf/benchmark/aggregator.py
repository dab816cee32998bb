"""Means, percentage deltas and group comparisons across targets."""
import logging
from typing import Dict, Iterable, List, Optional, Sequence
import numpy as np

from cloudrun_perf.shared.config import ComparisonSpec
from .models import AggregateResult, GroupComparison, TargetResult
from .exceptions import AggregationError


# Configure logging
logger = logging.getLogger(__name__)


class Aggregator:
    """Computes means and relative differences over target results."""

    @staticmethod
    def mean(values: Sequence[float]) -> float:
        """
        Arithmetic mean of a non-empty set of values.

        Raises:
            AggregationError: If values is empty.
        """
        if len(values) == 0:
            raise AggregationError("Cannot average an empty set of values")
        return float(np.mean(values))

    @staticmethod
    def percent_delta(baseline: Optional[float], candidate: Optional[float]) -> Optional[float]:
        """
        Relative improvement of candidate over baseline, in percent.

        Positive means the candidate is faster or smaller. Returns None when a
        value is unavailable or the baseline is zero.
        """
        if baseline is None or candidate is None or baseline == 0:
            return None
        return (baseline - candidate) / baseline * 100

    @staticmethod
    def speedup(baseline: Optional[float], candidate: Optional[float]) -> Optional[float]:
        """How many times smaller the candidate is than the baseline."""
        if baseline is None or candidate is None or candidate == 0:
            return None
        return baseline / candidate

    @classmethod
    def aggregate(cls, key: str, values: Iterable[Optional[float]]) -> AggregateResult:
        """Mean over the defined values only; undefined ones do not count."""
        defined = [v for v in values if v is not None]
        try:
            return AggregateResult(key=key, mean=cls.mean(defined), count=len(defined))
        except AggregationError:
            return AggregateResult(key=key, mean=None, count=0)

    @classmethod
    def group_means(cls, results: Iterable[TargetResult], dimension: str, metric: str) -> Dict[str, AggregateResult]:
        """
        Partition results by a categorical dimension and average a metric per group.

        Groups appear in first-seen order. Targets without a value for the
        dimension are left out of every group.

        Args:
            results: Target results in registry order.
            dimension: Target label or categorical metric field to group by.
            metric: Numeric metric to average.

        Returns:
            Mapping of group key to AggregateResult.
        """
        groups: Dict[str, List[Optional[float]]] = {}
        for result in results:
            key = result.attribute(dimension)
            if key is None:
                continue
            groups.setdefault(key, []).append(result.numeric(metric))
        return {key: cls.aggregate(key, values) for key, values in groups.items()}

    @classmethod
    def compare_groups(cls, results: Iterable[TargetResult], spec: ComparisonSpec) -> List[GroupComparison]:
        """
        Compare the baseline group against the candidate group for every metric in spec.

        With ``spec.within`` set the targets are first split by that dimension
        and each split is compared on its own, e.g. direct vs pooled per image type.
        """
        results = list(results)
        if spec.within:
            scopes: Dict[Optional[str], List[TargetResult]] = {}
            for result in results:
                scope = result.attribute(spec.within)
                if scope is not None:
                    scopes.setdefault(scope, []).append(result)
        else:
            scopes = {None: results}

        comparisons = []
        for scope, scoped in scopes.items():
            for metric in spec.metrics:
                groups = cls.group_means(scoped, spec.dimension, metric)
                baseline = groups.get(spec.baseline)
                candidate = groups.get(spec.candidate)
                if baseline is None or candidate is None:
                    logger.debug(f"Skipping {spec.dimension} comparison of {metric}"
                                 f"{f' within {scope}' if scope else ''}: group missing")
                    continue
                comparisons.append(GroupComparison(
                    dimension=spec.dimension,
                    metric=metric,
                    baseline=baseline,
                    candidate=candidate,
                    delta=cls.percent_delta(baseline.mean, candidate.mean),
                    speedup=cls.speedup(baseline.mean, candidate.mean),
                    scope=scope,
                ))
        return comparisons
