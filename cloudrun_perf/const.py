"""Constants for the Cloud Run performance comparison tool."""

# Logging configuration
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library log levels
LIBRARY_LOG_LEVELS = {
    "urllib3": "WARNING",
    "matplotlib": "WARNING",
    "PIL": "WARNING"
}

# Configuration file and environment
CONFIG_FILE_NAME = "config.json"
ENV_PREFIX = "CLOUDRUN_PERF_"

# Output files
DEFAULT_OUTPUT_DIR = "bench"
SUMMARY_CSV_NAME = "service_comparison.csv"
DETAILED_CSV_NAME = "service_latency_detail.csv"
METRICS_CHART_NAME = "service_metrics.png"
LATENCY_CHART_NAME = "service_latency.png"

# Terraform
DEFAULT_TERRAFORM_DIR = "terraform"
TERRAFORM_STATE_FILE = "terraform.tfstate"
TERRAFORM_URL_SUFFIX = "_url"
TERRAFORM_PROJECT_OUTPUT = "gcp_project_id"
TERRAFORM_REGION_OUTPUT = "gcp_region"
TERRAFORM_COMMAND_TIMEOUT = 60

# Google Cloud
DEFAULT_GCP_REGION = "asia-southeast1"
GCLOUD_COMMAND_TIMEOUT = 120
DEFAULT_SCALING_PAUSE = 1.0

# Metrics payload fields
STARTUP_TIME_FIELD = "startupTimeSeconds"
MEMORY_USED_FIELD = "memory.usedMB"
IMAGE_TYPE_FIELD = "imageType"
CONNECTION_POOL_FIELD = "connectionPool"
PROFILE_FIELD = "profile"
INITIAL_RESPONSE_FIELD = "initialResponseSeconds"

# Derived latency metrics
COLD_LATENCY_FIELD = "coldSeconds"
WARM_LATENCY_FIELD = "warmAvgSeconds"
WARM_P95_FIELD = "warmP95Seconds"

# Image types reported by the services
IMAGE_TYPE_JVM = "JVM"
IMAGE_TYPE_NATIVE = "Native (GraalVM)"

# Placeholder for unavailable values
UNAVAILABLE_PLACEHOLDER = "N/A"

# HTTP
METRICS_PATH = "metrics"
DEFAULT_WORKLOAD_PATH = "messages"
