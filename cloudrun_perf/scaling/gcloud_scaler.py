"""Updates and reads Cloud Run instance scaling through the gcloud CLI."""
import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from cloudrun_perf.const import (
    DEFAULT_GCP_REGION, GCLOUD_COMMAND_TIMEOUT, TERRAFORM_PROJECT_OUTPUT, TERRAFORM_REGION_OUTPUT,
)
from cloudrun_perf.benchmark.exceptions import ConfigurationError
from cloudrun_perf.benchmark.target_registry import TerraformOutputSource
from .scaling_spec import ScalingSpec


# Configure logging
logger = logging.getLogger(__name__)

DESCRIBE_FORMAT = (
    "value(metadata.annotations['run.googleapis.com/scalingMode'],"
    "metadata.annotations['run.googleapis.com/manualInstanceCount'],"
    "spec.template.metadata.annotations['autoscaling.knative.dev/minScale'],"
    "spec.template.metadata.annotations['autoscaling.knative.dev/maxScale'])"
)


@dataclass
class ScalingStatus:
    """Scaling configuration currently applied to a service."""
    mode: str = "automatic"
    manual_count: Optional[str] = None
    min_scale: str = "0"
    max_scale: str = "100"

    @classmethod
    def from_describe_output(cls, output: str) -> "ScalingStatus":
        fields = output.rstrip("\n").split("\t")
        fields += [""] * (4 - len(fields))
        mode, manual_count, min_scale, max_scale = (f.strip() for f in fields[:4])
        return cls(
            mode=mode or "automatic",
            manual_count=manual_count or None,
            min_scale=min_scale or "0",
            max_scale=max_scale or "100",
        )

    def lines(self) -> List[str]:
        lines = [f"Mode: {self.mode}"]
        if self.mode == "manual" and self.manual_count:
            lines.append(f"Manual Instance Count: {self.manual_count}")
        lines.append(f"Min Scale: {self.min_scale}")
        lines.append(f"Max Scale: {self.max_scale}")
        return lines


class GcloudScaler:
    """Thin wrapper around ``gcloud run services`` for one project and region."""

    def __init__(self, project: str, region: str, runner=subprocess.run):
        self.project = project
        self.region = region
        self.runner = runner

    @staticmethod
    def terraform_value(terraform: Optional[TerraformOutputSource], key: str) -> Optional[str]:
        """Value of a Terraform output, or None when there is no readable state."""
        if terraform is None:
            return None
        try:
            return terraform.output_value(key)
        except ConfigurationError as e:
            logger.debug(f"No {key} from terraform: {e.message}")
            return None

    @classmethod
    def resolve_project(cls, configured: Optional[str] = None,
                        terraform: Optional[TerraformOutputSource] = None, runner=subprocess.run) -> str:
        """
        Configured project id first, then the Terraform output, then the active gcloud project.

        Raises:
            ConfigurationError: If none of them yields a project id.
        """
        if configured:
            return configured
        project = cls.terraform_value(terraform, TERRAFORM_PROJECT_OUTPUT)
        if project:
            return project
        try:
            completed = runner(["gcloud", "config", "get-value", "project"],
                               capture_output=True, text=True, timeout=GCLOUD_COMMAND_TIMEOUT)
        except (OSError, subprocess.SubprocessError) as e:
            raise ConfigurationError(f"Unable to run gcloud: {e}", cause=e) from e
        project = (completed.stdout or "").strip() if completed.returncode == 0 else ""
        if not project:
            raise ConfigurationError(
                "Could not determine project ID; set CLOUDRUN_PERF_GCP_PROJECT_ID "
                "or run: gcloud config set project <project-id>")
        return project

    @classmethod
    def resolve_region(cls, configured: Optional[str] = None,
                       terraform: Optional[TerraformOutputSource] = None) -> str:
        """Configured region first, then the Terraform output, then the default region."""
        if configured:
            return configured
        return cls.terraform_value(terraform, TERRAFORM_REGION_OUTPUT) or DEFAULT_GCP_REGION

    def _scope_flags(self) -> List[str]:
        return [f"--project={self.project}", f"--region={self.region}"]

    def update_command(self, service: str, spec: ScalingSpec) -> List[str]:
        return (["gcloud", "beta", "run", "services", "update", service]
                + spec.gcloud_flags() + self._scope_flags() + ["--quiet"])

    def update(self, service: str, spec: ScalingSpec) -> bool:
        """Apply a scaling spec to a service; returns whether gcloud succeeded."""
        logger.info(f"[{service}] Updating scaling to: {spec}")
        try:
            completed = self.runner(self.update_command(service, spec),
                                    capture_output=True, text=True, timeout=GCLOUD_COMMAND_TIMEOUT)
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"[{service}] Failed to update: {e}")
            return False
        if completed.returncode != 0:
            logger.error(f"[{service}] Failed to update: {(completed.stderr or '').strip()}")
            return False
        logger.info(f"[{service}] Successfully updated")
        return True

    def describe(self, service: str) -> Optional[ScalingStatus]:
        """Read the current scaling configuration, or None if gcloud cannot describe the service."""
        command = (["gcloud", "run", "services", "describe", service]
                   + self._scope_flags() + [f"--format={DESCRIBE_FORMAT}"])
        try:
            completed = self.runner(command, capture_output=True, text=True, timeout=GCLOUD_COMMAND_TIMEOUT)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"[{service}] Could not retrieve scaling info: {e}")
            return None
        if completed.returncode != 0 or not (completed.stdout or "").strip():
            logger.warning(f"[{service}] Could not retrieve scaling info")
            return None
        return ScalingStatus.from_describe_output(completed.stdout)
