"""Analyzes and computes latency statistics."""
import logging
from typing import Dict, List, Optional, Sequence
import numpy as np

from .constants import BenchmarkConstants
from .models import LatencyResults, LatencySample


# Configure logging
logger = logging.getLogger(__name__)


class LatencyAnalyzer:
    """Analyzes and computes latency statistics."""

    @staticmethod
    def compute_percentiles(latencies: Sequence[float]) -> Dict[int, Optional[float]]:
        """
        Compute p50, p90, p95 percentiles.

        Args:
            latencies: List of latency measurements.

        Returns:
            Mapping of percentile to value; values are None for an empty input.
        """
        if not latencies:
            return {p: None for p in BenchmarkConstants.PERCENTILES}

        return {p: float(np.percentile(latencies, p)) for p in BenchmarkConstants.PERCENTILES}

    @classmethod
    def summarize(cls, samples: List[LatencySample]) -> Optional[LatencyResults]:
        """
        Summarize one target's complete probe sequence.

        The first sample is the cold request; the remaining ones are warm and
        feed the average and percentiles. A single-sample sequence has a cold
        figure but no warm figures.

        Args:
            samples: Latency samples in request order.

        Returns:
            LatencyResults, or None when there are no samples.
        """
        if not samples:
            return None

        ordered = sorted(samples, key=lambda s: s.index)
        warm = [s.duration for s in ordered[1:]]
        percentiles = cls.compute_percentiles(warm)

        return LatencyResults(
            cold=ordered[0].duration,
            warm_mean=float(np.mean(warm)) if warm else None,
            warm_count=len(warm),
            p50=percentiles[50],
            p90=percentiles[90],
            p95=percentiles[95],
        )
