"""Generates visualizations from benchmark results."""
import logging
from pathlib import Path
from typing import List, Union
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from cloudrun_perf.const import METRICS_CHART_NAME, LATENCY_CHART_NAME
from .constants import BenchmarkConstants
from .models import RunResult


# Configure logging
logger = logging.getLogger(__name__)


class VisualizationGenerator:
    """Generates visualizations from benchmark results."""

    def plot_results(self, run: RunResult, output_path: Union[Path, str]) -> bool:
        """
        Generate and save one bar chart per metric, one bar per target.

        Args:
            run: Results of a run.
            output_path: Path to save plot.

        Returns:
            True if a chart was written.
        """
        rows = []
        for result in run:
            for field, label in BenchmarkConstants.CHARTED_METRICS:
                value = result.numeric(field)
                if value is not None:
                    rows.append({'service': result.target.display_name, 'metric': label, 'value': value})

        if not rows:
            logger.warning("No numeric metrics available. Skipping metrics chart.")
            return False

        df = pd.DataFrame(rows)
        metrics = [label for _, label in BenchmarkConstants.CHARTED_METRICS if label in set(df['metric'])]
        fig, axs = plt.subplots(1, len(metrics), figsize=(5 * len(metrics), 5), squeeze=False)

        for ax, metric in zip(axs[0], metrics):
            data = df[df['metric'] == metric]
            sns.barplot(data=data, x='service', y='value', hue='service', legend=False, ax=ax)
            ax.set_title(metric)
            ax.set_xlabel("")
            ax.set_ylabel(metric)
            ax.tick_params(axis='x', labelrotation=30)
            for bar, val in zip(ax.patches, data['value']):
                ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height(), f'{val:.3f}',
                        ha='center', va='bottom', fontsize=8)

        plt.tight_layout()
        plt.savefig(output_path)
        plt.close(fig)
        logger.info(f"Graph saved: {output_path}")
        return True

    def plot_latency_sequences(self, run: RunResult, output_path: Union[Path, str]) -> bool:
        """
        Plot per-request latency for every target with a complete probe sequence.

        Returns:
            True if a chart was written.
        """
        rows = [
            {'service': result.target.display_name, 'request': s.index + 1, 'latency_ms': s.duration * 1000}
            for result in run for s in result.samples
        ]
        if not rows:
            logger.warning("No latency samples available. Skipping latency chart.")
            return False

        df = pd.DataFrame(rows)
        fig, ax = plt.subplots(figsize=(12, 6))
        sns.lineplot(data=df, x='request', y='latency_ms', hue='service', marker='o', ax=ax)
        ax.set_title(f"Request Latency ({run.request_count} requests, request 1 is cold)")
        ax.set_xlabel("Request Number")
        ax.set_ylabel("Latency (ms)")
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        logger.info(f"Latency graph saved: {output_path}")
        return True

    def generate_visualizations(self, run: RunResult, bench_dir: Union[Path, str]) -> List[Path]:
        """
        Generate all charts for a run.

        Args:
            run: Results of a run.
            bench_dir: Directory to save visualizations.

        Returns:
            Paths of the charts that were written.
        """
        bench_dir = Path(bench_dir)
        written = []
        metrics_path = bench_dir / METRICS_CHART_NAME
        if self.plot_results(run, metrics_path):
            written.append(metrics_path)
        latency_path = bench_dir / LATENCY_CHART_NAME
        if self.plot_latency_sequences(run, latency_path):
            written.append(latency_path)
        return written
