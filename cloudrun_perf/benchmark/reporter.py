"""Renders the comparison table, rankings and group comparisons as text."""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from cloudrun_perf.const import (
    UNAVAILABLE_PLACEHOLDER, STARTUP_TIME_FIELD, MEMORY_USED_FIELD, IMAGE_TYPE_FIELD,
    CONNECTION_POOL_FIELD, PROFILE_FIELD, INITIAL_RESPONSE_FIELD, COLD_LATENCY_FIELD,
    WARM_LATENCY_FIELD, WARM_P95_FIELD,
)
from cloudrun_perf.shared.config import ComparisonSpec
from .constants import BenchmarkConstants
from .models import GroupComparison, MetricValue, RunResult, TargetResult
from .aggregator import Aggregator


# Configure logging
logger = logging.getLogger(__name__)

# (header, field, width, unit)
TABLE_COLUMNS = [
    ("Service", None, 28, ""),
    ("Image Type", IMAGE_TYPE_FIELD, 16, ""),
    ("Connection Pool", CONNECTION_POOL_FIELD, 20, ""),
    ("Profile", PROFILE_FIELD, 10, ""),
    ("Start (s)", STARTUP_TIME_FIELD, 10, "s"),
    ("Initial (s)", INITIAL_RESPONSE_FIELD, 11, "s"),
    ("Cold (s)", COLD_LATENCY_FIELD, 9, "s"),
    ("Warm (s)", WARM_LATENCY_FIELD, 9, "s"),
    ("p95 (s)", WARM_P95_FIELD, 9, "s"),
    ("Memory (MB)", MEMORY_USED_FIELD, 11, "MB"),
    ("Warm Reqs", None, 9, ""),
    ("Status", None, 19, ""),
]


@dataclass
class Ranking:
    """Lowest and highest value of a metric across targets."""
    metric: str
    label: str
    unit: str
    lowest: TargetResult
    lowest_value: float
    highest: TargetResult
    highest_value: float


class Reporter:
    """Renders run results; never fails on unavailable cells."""

    def __init__(self, comparisons: Optional[Sequence[ComparisonSpec]] = None):
        self.comparisons = list(comparisons or [])
        self.aggregator = Aggregator()

    @staticmethod
    def format_value(value: MetricValue, unit: str = "") -> str:
        if value is None:
            return UNAVAILABLE_PLACEHOLDER
        if isinstance(value, str):
            return value
        if unit == "MB":
            return f"{value:.1f}"
        return f"{value:.3f}"

    @staticmethod
    def rank(results: Iterable[TargetResult], metric: str, label: str = "", unit: str = "") -> Optional[Ranking]:
        """
        Find the targets with the lowest and highest value of a metric.

        Targets without a value are ignored; ties go to the first target in
        registry order.
        """
        lowest = highest = None
        lowest_value = highest_value = 0.0
        for result in results:
            value = result.numeric(metric)
            if value is None:
                continue
            if lowest is None or value < lowest_value:
                lowest, lowest_value = result, value
            if highest is None or value > highest_value:
                highest, highest_value = result, value
        if lowest is None:
            return None
        return Ranking(metric, label or metric, unit, lowest, lowest_value, highest, highest_value)

    def render_table(self, run: RunResult) -> str:
        header = " | ".join(f"{title:<{width}}" for title, _, width, _ in TABLE_COLUMNS)
        separator = "-+-".join("-" * width for _, _, width, _ in TABLE_COLUMNS)
        lines = [header, separator]
        for result in run:
            cells = []
            for title, field, width, unit in TABLE_COLUMNS:
                if title == "Service":
                    text = result.target.display_name
                elif title == "Warm Reqs":
                    text = str(result.warm_count)
                elif title == "Status":
                    text = result.outcome.value
                else:
                    text = self.format_value(result.value(field), unit)
                cells.append(f"{text:<{width}}")
            lines.append(" | ".join(cells).rstrip())
        return "\n".join(lines)

    def render_rankings(self, run: RunResult) -> str:
        lines = []
        for metric, label, unit in BenchmarkConstants.RANKED_METRICS:
            ranking = self.rank(run, metric, label, unit)
            if ranking is None:
                continue
            low_word, high_word = ("Lowest", "Highest") if unit == "MB" else ("Fastest", "Slowest")
            lines.append(f"  {low_word} {label}: {ranking.lowest.target.display_name} "
                         f"({self.format_value(ranking.lowest_value, unit)}{unit})")
            lines.append(f"  {high_word} {label}: {ranking.highest.target.display_name} "
                         f"({self.format_value(ranking.highest_value, unit)}{unit})")
        if not lines:
            lines.append(f"  {UNAVAILABLE_PLACEHOLDER} - no numeric metrics available")
        return "\n".join(lines)

    def describe_comparison(self, comparison: GroupComparison) -> str:
        unit = self._unit(comparison.metric)
        label = self._label(comparison.metric)
        base, cand = comparison.baseline, comparison.candidate
        scope = f"[{comparison.scope}] " if comparison.scope else ""
        means = (f"{base.key} {self.format_value(base.mean, unit)}{unit} (n={base.count}) vs "
                 f"{cand.key} {self.format_value(cand.mean, unit)}{unit} (n={cand.count})")

        if comparison.delta is None:
            return f"  {scope}{label}: {means} -> {UNAVAILABLE_PLACEHOLDER}"

        if comparison.delta == 0:
            verdict = f"no difference between {cand.key} and {base.key}"
        elif unit == "MB":
            direction = "less" if comparison.delta > 0 else "more"
            verdict = f"{cand.key} uses {abs(comparison.delta):.1f}% {direction} memory than {base.key}"
        elif comparison.delta > 0:
            verdict = f"{cand.key} is {comparison.delta:.2f}% faster than {base.key}"
            if comparison.speedup is not None:
                verdict += f" ({comparison.speedup:.2f}x)"
        else:
            verdict = f"{base.key} is {abs(comparison.delta):.2f}% faster than {cand.key}"
        return f"  {scope}{label}: {means} -> {verdict}"

    def render_comparisons(self, run: RunResult) -> str:
        lines = []
        for spec in self.comparisons:
            comparisons = self.aggregator.compare_groups(run, spec)
            title = f"{spec.candidate} vs {spec.baseline} by {spec.dimension}"
            if spec.within:
                title += f" within each {spec.within}"
            lines.append(f"{title}:")
            if not comparisons:
                lines.append(f"  {UNAVAILABLE_PLACEHOLDER} - both groups are needed for this comparison")
                continue
            lines.extend(self.describe_comparison(c) for c in comparisons)
        return "\n".join(lines)

    def render(self, run: RunResult) -> str:
        """Render the full report for a run."""
        sections = [
            self._section("Performance Comparison"),
            self.render_table(run),
            self._section("Key Performance Insights"),
            self.render_rankings(run),
        ]
        if self.comparisons:
            sections += [self._section("Group Comparisons"), self.render_comparisons(run)]

        sections.append(self._section("Test Configuration"))
        sections.append(f"  Requests per service: {run.request_count} (request 1 is cold, the rest are warm)")
        failed = run.failed_targets
        if failed:
            sections.append(f"  Failed services: {', '.join(name.replace('_', '-') for name in failed)}")
        return "\n".join(sections) + "\n"

    @staticmethod
    def _section(title: str) -> str:
        return f"\n{title}\n{'=' * len(title)}"

    @staticmethod
    def _unit(metric: str) -> str:
        for field, _, unit in BenchmarkConstants.RANKED_METRICS:
            if field == metric:
                return unit
        return "s"

    @staticmethod
    def _label(metric: str) -> str:
        for field, label, _ in BenchmarkConstants.RANKED_METRICS:
            if field == metric:
                return label
        return metric
