"""Unit tests for the per-target orchestration and the runner."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cloudrun_perf.const import MEMORY_USED_FIELD, STARTUP_TIME_FIELD
from cloudrun_perf.shared.config import Config
from cloudrun_perf.benchmark.exceptions import ConfigurationError
from cloudrun_perf.benchmark.models import BenchmarkConfig, Target, TargetOutcome
from cloudrun_perf.benchmark.runner import BenchmarkRunner
from cloudrun_perf.benchmark.service_benchmark import ServiceComparisonBenchmark
from ..conftest import make_response
from ..test_const import (
    HTTP_ERROR, JVM_DIRECT, JVM_POOLED, NATIVE_DIRECT, NATIVE_POOLED, JVM_DIRECT_URL, JVM_POOLED_URL,
    NATIVE_DIRECT_URL, JVM_METRICS, NATIVE_METRICS,
)


def routing_session(routes):
    """Mock session answering each URL prefix with a fixed response or exception."""
    session = MagicMock()

    def get(url, timeout=None):
        for prefix, response in routes.items():
            if url.startswith(prefix.rstrip('/')):
                if isinstance(response, dict):
                    response = response.get(url.rsplit('/', 1)[-1], make_response())
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected request to {url}")

    session.get.side_effect = get
    return session


class TestServiceComparisonBenchmark:
    """Test ServiceComparisonBenchmark.run."""

    def test_successful_target(self, benchmark_config, jvm_target):
        session = routing_session({JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)}})
        benchmark = ServiceComparisonBenchmark(benchmark_config, session=session)

        run = benchmark.run([jvm_target])

        result = run.results[JVM_DIRECT]
        assert result.outcome is TargetOutcome.SUCCESS
        assert result.value(STARTUP_TIME_FIELD) == 3.2
        assert len(result.samples) == 5
        assert result.latency.warm_count == 4
        assert run.succeeded

    def test_fetch_then_probe_per_target(self, benchmark_config, jvm_target, native_target):
        session = routing_session({
            JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)},
            NATIVE_DIRECT_URL: {"metrics": make_response(payload=NATIVE_METRICS)},
        })

        ServiceComparisonBenchmark(benchmark_config, session=session).run([jvm_target, native_target])

        urls = [c.args[0] for c in session.get.call_args_list]
        assert urls[0] == f"{JVM_DIRECT_URL}/metrics"
        assert urls[1:6] == [f"{JVM_DIRECT_URL}/messages"] * 5
        assert urls[6] == f"{NATIVE_DIRECT_URL.rstrip('/')}/metrics"

    def test_fetch_failure_still_probes(self, benchmark_config, jvm_target):
        session = routing_session({JVM_DIRECT_URL: {"metrics": make_response(status_code=HTTP_ERROR)}})

        run = ServiceComparisonBenchmark(benchmark_config, session=session).run([jvm_target])

        result = run.results[JVM_DIRECT]
        assert result.outcome is TargetOutcome.FETCH_ERROR
        assert result.value(MEMORY_USED_FIELD) is None
        assert result.latency.warm_mean is not None
        assert not run.succeeded

    def test_probe_failure_leaves_warm_unavailable(self, benchmark_config, jvm_target, native_target):
        session = routing_session({
            JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS),
                             "messages": make_response(status_code=HTTP_ERROR)},
            NATIVE_DIRECT_URL: {"metrics": make_response(payload=NATIVE_METRICS)},
        })

        run = ServiceComparisonBenchmark(benchmark_config, session=session).run([jvm_target, native_target])

        failed = run.results[JVM_DIRECT]
        assert failed.outcome is TargetOutcome.PROBE_ERROR
        assert failed.samples == []
        assert failed.latency is None
        assert failed.value(STARTUP_TIME_FIELD) == 3.2
        assert run.results[NATIVE_DIRECT].succeeded
        assert run.failed_targets == [JVM_DIRECT]

    def test_configuration_errors_keep_registry_order(self, benchmark_config, jvm_target, native_target):
        session = routing_session({
            JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)},
            NATIVE_DIRECT_URL: {"metrics": make_response(payload=NATIVE_METRICS)},
        })
        errors = {JVM_POOLED: ConfigurationError("no url", target=JVM_POOLED)}

        run = ServiceComparisonBenchmark(benchmark_config, session=session).run(
            [jvm_target, native_target], config_errors=errors, order=[JVM_DIRECT, JVM_POOLED, NATIVE_DIRECT])

        assert list(run.results) == [JVM_DIRECT, JVM_POOLED, NATIVE_DIRECT]
        assert run.results[JVM_POOLED].outcome is TargetOutcome.CONFIGURATION_ERROR
        assert not run.succeeded

    def test_request_count_override(self, benchmark_config, jvm_target):
        session = routing_session({JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)}})

        run = ServiceComparisonBenchmark(benchmark_config, session=session).run([jvm_target], request_count=2)

        assert run.request_count == 2
        assert len(run.results[JVM_DIRECT].samples) == 2

    @pytest.mark.parametrize("request_count", [0, -1])
    def test_explicit_non_positive_request_count_rejected(self, benchmark_config, jvm_target, mock_session,
                                                          request_count):
        with pytest.raises(ValueError, match="positive integer"):
            ServiceComparisonBenchmark(benchmark_config, session=mock_session).run([jvm_target], request_count)
        mock_session.get.assert_not_called()



class TestBenchmarkRunner:
    """Test BenchmarkRunner end to end with mocked HTTP."""

    @pytest.fixture
    def settings(self):
        return Config(targets={
            JVM_DIRECT: JVM_DIRECT_URL,
            JVM_POOLED: JVM_POOLED_URL,
            NATIVE_DIRECT: NATIVE_DIRECT_URL,
        })

    def runner(self, settings, session, **kwargs):
        config = BenchmarkConfig.from_settings(settings, request_count=3)
        output = []
        runner = BenchmarkRunner(settings, config, output=output.append,
                                 benchmark=ServiceComparisonBenchmark(config, session=session), **kwargs)
        return runner, output

    def test_one_configuration_error_fails_run(self, settings):
        session = routing_session({
            JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)},
            JVM_POOLED_URL: {"metrics": make_response(payload=JVM_METRICS)},
            NATIVE_DIRECT_URL: {"metrics": make_response(payload=NATIVE_METRICS)},
        })
        runner, output = self.runner(settings, session, filters=[JVM_DIRECT, JVM_POOLED, NATIVE_DIRECT, NATIVE_POOLED])

        exit_code = runner.run()

        assert exit_code == 1
        report = output[0]
        assert "jvm-cloud-sql " in report
        assert "native-cloud-sql " in report
        assert "configuration_error" in report
        assert runner.result.results[JVM_DIRECT].succeeded
        assert runner.result.results[NATIVE_DIRECT].succeeded
        assert not runner.result.results[NATIVE_POOLED].succeeded

    def test_full_success_exports_csv(self, settings):
        session = routing_session({
            JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)},
            NATIVE_DIRECT_URL: {"metrics": make_response(payload=NATIVE_METRICS)},
        })
        runner, output = self.runner(settings, session, filters=[JVM_DIRECT, NATIVE_DIRECT])

        assert runner.run() == 0
        assert Path("bench/service_comparison.csv").exists()
        assert Path("bench/service_latency_detail.csv").exists()
        assert "Native (GraalVM) vs JVM" in output[0]

    def test_no_export(self, settings):
        session = routing_session({JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)}})
        runner, _ = self.runner(settings, session, filters=[JVM_DIRECT], export=False)

        assert runner.run() == 0
        assert not Path("bench").exists()

    def test_load_only_rebuilds_report(self, settings):
        session = routing_session({JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)}})
        runner, _ = self.runner(settings, session, filters=[JVM_DIRECT])
        assert runner.run() == 0

        offline = MagicMock()
        reloaded, output = self.runner(settings, offline, load_only=True)

        assert reloaded.run() == 0
        offline.get.assert_not_called()
        assert "jvm-cloud-sql" in output[0]
        assert len(reloaded.result.results[JVM_DIRECT].samples) == 3

    def test_load_only_without_exports(self, settings):
        runner, output = self.runner(settings, MagicMock(), load_only=True)
        assert runner.run() == 1
        assert output == []

    def test_no_targets_is_failure(self):
        settings = Config(services=[], targets={JVM_DIRECT: JVM_DIRECT_URL})
        runner, output = self.runner(settings, MagicMock())
        assert runner.run() == 1

    def test_unknown_filter_raises(self, settings):
        runner, _ = self.runner(settings, MagicMock(), filters=["wasm"])
        with pytest.raises(ValueError):
            runner.run()

    def test_targets_file_wins_over_configuration(self, settings):
        Path("targets.json").write_text(json.dumps({JVM_DIRECT: "https://from-file.run.app"}))
        runner, _ = self.runner(settings, MagicMock(), targets_file="targets.json")
        assert runner.target_source().resolve_url(JVM_DIRECT) == "https://from-file.run.app"

    def test_terraform_source_without_static_targets(self):
        runner, _ = self.runner(Config(), MagicMock(), terraform_dir="infra")
        source = runner.target_source()
        assert source.terraform_dir == Path("infra")

    @patch('cloudrun_perf.benchmark.service_benchmark.VisualizationGenerator')
    def test_charts_flag(self, mock_generator, settings):
        session = routing_session({JVM_DIRECT_URL: {"metrics": make_response(payload=JVM_METRICS)}})
        runner, _ = self.runner(settings, session, filters=[JVM_DIRECT], charts=True, export=False)

        runner.run()

        mock_generator.return_value.generate_visualizations.assert_called_once()
