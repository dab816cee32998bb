"""Shared test configuration and fixtures for all tests."""

import os
from unittest.mock import MagicMock

import pytest
import requests

from cloudrun_perf.const import ENV_PREFIX, INITIAL_RESPONSE_FIELD
from cloudrun_perf.benchmark.models import (
    BenchmarkConfig, LatencyResults, MetricSample, RunResult, Target, TargetResult,
)
from cloudrun_perf.benchmark.metrics_fetcher import MetricsFetcher
from .test_const import (
    HTTP_SUCCESS, WORKLOAD_BODY, JVM_DIRECT, JVM_DIRECT_URL, NATIVE_DIRECT, NATIVE_DIRECT_URL,
)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run every test in an empty directory without CLOUDRUN_PERF_* variables."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)
    yield tmp_path


def make_response(status_code=HTTP_SUCCESS, payload=None, content=WORKLOAD_BODY):
    """Build a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error", response=response)
    return response


def make_result(name, labels=None, metrics=None, cold=None, warm=None, warm_count=0, errors=None):
    """Build a TargetResult with the given metric values and latency summary."""
    target = Target(name, f"https://{name}.example.com", labels or {})
    samples = {path: MetricSample(name, path, None, unit) for path, unit, _ in MetricsFetcher.FIELDS}
    samples[INITIAL_RESPONSE_FIELD] = MetricSample(name, INITIAL_RESPONSE_FIELD, None, "s")
    for path, value in (metrics or {}).items():
        samples[path] = MetricSample(name, path, value, samples.get(path, MetricSample(name, path, None)).unit)
    latency = LatencyResults(cold=cold, warm_mean=warm, warm_count=warm_count) if cold is not None else None
    return TargetResult(target=target, metrics=samples, latency=latency, errors=list(errors or []))


def make_run(*results, request_count=5):
    run = RunResult(request_count=request_count)
    for result in results:
        run.add(result)
    return run


@pytest.fixture
def mock_session():
    """Mock requests session fixture."""
    return MagicMock(spec=requests.Session)


@pytest.fixture
def benchmark_config():
    """Benchmark configuration with five probe requests."""
    return BenchmarkConfig(request_count=5, metrics_timeout=2.0, probe_timeout=3.0)


@pytest.fixture
def jvm_target():
    return Target(JVM_DIRECT, JVM_DIRECT_URL, {"runtime": "jvm", "pool": "direct"})


@pytest.fixture
def native_target():
    return Target(NATIVE_DIRECT, NATIVE_DIRECT_URL, {"runtime": "native", "pool": "direct"})
