import json
from pathlib import Path
from typing import Dict, Any, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cloudrun_perf.const import (
    CONFIG_FILE_NAME, ENV_PREFIX, DEFAULT_LOG_LEVEL, LIBRARY_LOG_LEVELS, DEFAULT_OUTPUT_DIR,
    DEFAULT_TERRAFORM_DIR, DEFAULT_SCALING_PAUSE, DEFAULT_WORKLOAD_PATH,
    STARTUP_TIME_FIELD, MEMORY_USED_FIELD, INITIAL_RESPONSE_FIELD, COLD_LATENCY_FIELD,
    WARM_LATENCY_FIELD, IMAGE_TYPE_FIELD, IMAGE_TYPE_JVM, IMAGE_TYPE_NATIVE,
)


def normalize_service_name(name: str) -> str:
    """Registry key for a service: Terraform output style, underscores instead of hyphens."""
    return name.strip().replace("-", "_")


class ServiceDefinition(BaseModel):
    """A service known to the registry, before its URL is resolved."""

    name: str
    labels: Dict[str, str] = Field(default_factory=dict)
    cloud_run_service: Optional[str] = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return normalize_service_name(value)


class ComparisonSpec(BaseModel):
    """Baseline vs candidate comparison across a categorical dimension.

    When ``within`` is set the comparison is repeated for every value of that
    second dimension, e.g. direct vs pooled connections per image type.
    """

    dimension: str
    baseline: str
    candidate: str
    within: Optional[str] = None
    metrics: List[str] = Field(default_factory=list)


def _default_services() -> List[ServiceDefinition]:
    return [
        ServiceDefinition(
            name="jvm_cloud_sql",
            labels={"runtime": "jvm", "pool": "direct"},
            cloud_run_service="hello-cloud-run-jvm-cloud-sql",
        ),
        ServiceDefinition(
            name="jvm_cloud_sql_pgbouncer",
            labels={"runtime": "jvm", "pool": "pgbouncer"},
            cloud_run_service="hello-cloud-run-jvm-cloud-sql-pgbouncer",
        ),
        ServiceDefinition(
            name="native_cloud_sql",
            labels={"runtime": "native", "pool": "direct"},
            cloud_run_service="native-hello-cloud-run-cloud-sql",
        ),
        ServiceDefinition(
            name="native_cloud_sql_pgbouncer",
            labels={"runtime": "native", "pool": "pgbouncer"},
            cloud_run_service="native-hello-cloud-run-cloud-sql-pgbouncer",
        ),
    ]


def _default_comparisons() -> List[ComparisonSpec]:
    return [
        ComparisonSpec(
            dimension=IMAGE_TYPE_FIELD,
            baseline=IMAGE_TYPE_JVM,
            candidate=IMAGE_TYPE_NATIVE,
            metrics=[STARTUP_TIME_FIELD, MEMORY_USED_FIELD, INITIAL_RESPONSE_FIELD, WARM_LATENCY_FIELD],
        ),
        ComparisonSpec(
            dimension="pool",
            baseline="direct",
            candidate="pgbouncer",
            within=IMAGE_TYPE_FIELD,
            metrics=[INITIAL_RESPONSE_FIELD, COLD_LATENCY_FIELD, WARM_LATENCY_FIELD],
        ),
    ]


class Config(BaseSettings):
    """Global configuration settings for the Cloud Run performance comparison."""

    services: List[ServiceDefinition] = Field(default_factory=_default_services)
    targets: Dict[str, str] = Field(default_factory=dict)
    comparisons: List[ComparisonSpec] = Field(default_factory=_default_comparisons)
    terraform_dir: Path = Path(DEFAULT_TERRAFORM_DIR)
    request_count: int = Field(default=10, gt=0)
    workload_path: str = DEFAULT_WORKLOAD_PATH
    metrics_timeout: float = Field(default=10.0, gt=0)
    probe_timeout: float = Field(default=30.0, gt=0)
    probe_delay: float = Field(default=0.0, ge=0)
    max_retries: int = Field(default=0, ge=0)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    gcp_project_id: Optional[str] = None
    gcp_region: Optional[str] = None
    scaling_pause: float = Field(default=DEFAULT_SCALING_PAUSE, ge=0)
    log_level: str = DEFAULT_LOG_LEVEL
    library_log_levels: Dict[str, str] = Field(default_factory=lambda: dict(LIBRARY_LOG_LEVELS))

    model_config = SettingsConfigDict(
        protected_namespaces=('settings_',),
        env_prefix=ENV_PREFIX,
    )

    @classmethod
    def load_config_from_json(cls) -> Dict[str, Any]:
        """Load configuration from config.json file."""
        config_path = Path(CONFIG_FILE_NAME)
        if config_path.exists():
            with open(config_path, 'r') as f:
                return json.load(f)
        return {}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """
        Customise the sources for settings.

        Order of precedence (highest to lowest):
        1. Environment variables
        2. Init settings (kwargs passed to constructor)
        3. JSON config file
        4. Default values
        """
        def json_source():
            return cls.load_config_from_json()

        return (
            env_settings,
            init_settings,
            json_source,
        )
