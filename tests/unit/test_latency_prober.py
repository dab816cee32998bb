"""Unit tests for sequential latency probing and its summary."""

from unittest.mock import call, patch

import pytest
import requests

from cloudrun_perf.benchmark.exceptions import ProbeError
from cloudrun_perf.benchmark.latency_analyzer import LatencyAnalyzer
from cloudrun_perf.benchmark.latency_prober import LatencyProber
from cloudrun_perf.benchmark.models import BenchmarkConfig, LatencySample
from cloudrun_perf.benchmark.request_executor import RequestExecutor
from ..conftest import make_response
from ..test_const import HTTP_ERROR, JVM_DIRECT_URL, PROBE_DURATIONS


def perf_counter_for(durations):
    """perf_counter readings producing the given request durations."""
    readings = []
    for i, duration in enumerate(durations):
        start = 100.0 * (i + 1)
        readings += [start, start + duration]
    return readings


@pytest.fixture
def prober(benchmark_config):
    return LatencyProber(benchmark_config, RequestExecutor(benchmark_config))


class TestLatencyProber:
    """Test LatencyProber.probe."""

    def test_probe_collects_samples_in_order(self, prober, mock_session, jvm_target):
        mock_session.get.return_value = make_response()

        with patch('cloudrun_perf.benchmark.request_executor.time.perf_counter',
                   side_effect=perf_counter_for(PROBE_DURATIONS)):
            samples = prober.probe(mock_session, jvm_target, 5)

        assert [s.index for s in samples] == [0, 1, 2, 3, 4]
        assert [s.duration for s in samples] == pytest.approx(PROBE_DURATIONS)
        assert samples[0].is_cold and not samples[1].is_cold
        assert mock_session.get.call_count == 5
        mock_session.get.assert_called_with(f"{JVM_DIRECT_URL}/messages", timeout=3.0)

    def test_cold_and_warm_summary(self, prober, mock_session, jvm_target):
        mock_session.get.return_value = make_response()

        with patch('cloudrun_perf.benchmark.request_executor.time.perf_counter',
                   side_effect=perf_counter_for(PROBE_DURATIONS)):
            summary = LatencyAnalyzer.summarize(prober.probe(mock_session, jvm_target, 5))

        assert summary.cold == pytest.approx(1.0)
        assert summary.warm_mean == pytest.approx(0.5)
        assert summary.warm_count == 4

    def test_third_request_failure_discards_samples(self, prober, mock_session, jvm_target):
        ok = make_response()
        mock_session.get.side_effect = [ok, ok, make_response(status_code=HTTP_ERROR), ok, ok]

        with pytest.raises(ProbeError) as exc_info:
            prober.probe(mock_session, jvm_target, 5)

        assert exc_info.value.request_number == 3
        assert exc_info.value.status_code == HTTP_ERROR
        assert exc_info.value.target == jvm_target.name
        # The sequence stops at the failing request
        assert mock_session.get.call_count == 3

    def test_empty_body_fails_probe(self, prober, mock_session, jvm_target):
        mock_session.get.return_value = make_response(content=b"")

        with pytest.raises(ProbeError) as exc_info:
            prober.probe(mock_session, jvm_target, 2)

        assert exc_info.value.request_number == 1

    def test_connection_error_fails_probe(self, prober, mock_session, jvm_target):
        mock_session.get.side_effect = [make_response(), requests.ConnectionError("reset")]

        with pytest.raises(ProbeError) as exc_info:
            prober.probe(mock_session, jvm_target, 3)

        assert exc_info.value.request_number == 2

    def test_custom_workload_path(self, mock_session, jvm_target):
        config = BenchmarkConfig(workload_path="/api/items", probe_timeout=5.0)
        mock_session.get.return_value = make_response()

        LatencyProber(config, RequestExecutor(config)).probe(mock_session, jvm_target, 1)

        mock_session.get.assert_called_once_with(f"{JVM_DIRECT_URL}/api/items", timeout=5.0)

    @patch('cloudrun_perf.benchmark.latency_prober.time.sleep')
    def test_delay_between_requests(self, mock_sleep, mock_session, jvm_target):
        config = BenchmarkConfig(probe_delay=0.2)
        mock_session.get.return_value = make_response()

        LatencyProber(config, RequestExecutor(config)).probe(mock_session, jvm_target, 3)

        assert mock_sleep.call_args_list == [call(0.2), call(0.2)]

    @pytest.mark.parametrize("count", [0, -1, 2.5, True, "3"])
    def test_invalid_request_count(self, prober, mock_session, jvm_target, count):
        with pytest.raises(ValueError):
            prober.probe(mock_session, jvm_target, count)
        mock_session.get.assert_not_called()


class TestLatencyAnalyzer:
    """Test LatencyAnalyzer summaries and percentiles."""

    def test_compute_percentiles(self):
        percentiles = LatencyAnalyzer.compute_percentiles([0.1, 0.2, 0.3, 0.4, 0.5])
        assert percentiles[50] == pytest.approx(0.3)
        assert percentiles[95] == pytest.approx(0.48)

    def test_compute_percentiles_empty(self):
        assert LatencyAnalyzer.compute_percentiles([]) == {50: None, 90: None, 95: None}

    def test_single_sample_has_no_warm_figures(self):
        summary = LatencyAnalyzer.summarize([LatencySample("svc", 0, 0.8)])
        assert summary.cold == 0.8
        assert summary.warm_mean is None
        assert summary.warm_count == 0
        assert summary.p95 is None

    def test_no_samples(self):
        assert LatencyAnalyzer.summarize([]) is None

    def test_samples_ordered_by_index(self):
        samples = [LatencySample("svc", 1, 0.2), LatencySample("svc", 0, 2.0), LatencySample("svc", 2, 0.4)]
        summary = LatencyAnalyzer.summarize(samples)
        assert summary.cold == 2.0
        assert summary.warm_mean == pytest.approx(0.3)
