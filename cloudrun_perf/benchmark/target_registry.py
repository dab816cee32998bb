"""Resolves configured services into benchmark targets."""
import json
import logging
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from cloudrun_perf.const import (
    TERRAFORM_STATE_FILE, TERRAFORM_URL_SUFFIX, TERRAFORM_COMMAND_TIMEOUT,
)
from cloudrun_perf.shared.config import ServiceDefinition, normalize_service_name
from .models import Target
from .exceptions import ConfigurationError


# Configure logging
logger = logging.getLogger(__name__)


class TargetSource:
    """Supplies the base URL of a named service."""

    def resolve_url(self, name: str) -> str:
        """
        Return the base URL for a service.

        Raises:
            ConfigurationError: If the URL cannot be resolved.
        """
        raise NotImplementedError


class StaticTargetSource(TargetSource):
    """URLs from an in-memory mapping, typically configuration or a JSON file."""

    def __init__(self, urls: Mapping[str, str]):
        self.urls = {normalize_service_name(name): url for name, url in urls.items()}

    def resolve_url(self, name: str) -> str:
        url = (self.urls.get(normalize_service_name(name)) or "").strip()
        if not url:
            raise ConfigurationError(f"No URL configured for {name}", target=name)
        return url

    @classmethod
    def from_file(cls, path: Union[Path, str]) -> "StaticTargetSource":
        """
        Load URLs from a JSON file.

        Accepts either ``{"targets": [{"name": ..., "url": ...}, ...]}`` or a
        flat ``{"name": "url"}`` object.

        Raises:
            ConfigurationError: If the file cannot be read or has another shape.
        """
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Unable to read targets file {path}: {e}", cause=e) from e

        if isinstance(data, dict) and isinstance(data.get("targets"), list):
            urls = {}
            for entry in data["targets"]:
                if not isinstance(entry, dict) or "name" not in entry:
                    raise ConfigurationError(f"Invalid target entry in {path}: {entry!r}")
                urls[str(entry["name"])] = str(entry.get("url") or "")
            return cls(urls)
        if isinstance(data, dict) and all(isinstance(v, str) for v in data.values()):
            return cls(data)
        raise ConfigurationError(f"Unrecognised targets file format: {path}")


class TerraformOutputSource(TargetSource):
    """URLs from ``terraform output -json``, looked up as ``<name>_url``."""

    def __init__(self, terraform_dir: Union[Path, str], runner=subprocess.run):
        self.terraform_dir = Path(terraform_dir)
        self.runner = runner
        self._outputs: Optional[Dict[str, object]] = None
        self._error: Optional[ConfigurationError] = None

    def working_dir(self) -> Path:
        """Terraform directory, or the current directory when it holds the state file."""
        if (self.terraform_dir / TERRAFORM_STATE_FILE).exists():
            return self.terraform_dir
        if Path(TERRAFORM_STATE_FILE).exists():
            return Path(".")
        raise ConfigurationError(
            f"No {TERRAFORM_STATE_FILE} found in {self.terraform_dir} or the current directory; "
            "deploy the services first")

    def outputs(self) -> Dict[str, object]:
        """Read and cache all Terraform outputs."""
        if self._error is not None:
            raise self._error
        if self._outputs is None:
            try:
                self._outputs = self._load_outputs()
            except ConfigurationError as e:
                self._error = e
                raise
        return self._outputs

    def _load_outputs(self) -> Dict[str, object]:
        cwd = self.working_dir()
        try:
            completed = self.runner(
                ["terraform", "output", "-json"],
                cwd=str(cwd), capture_output=True, text=True, timeout=TERRAFORM_COMMAND_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise ConfigurationError(f"Unable to run terraform in {cwd}: {e}", cause=e) from e

        if completed.returncode != 0:
            raise ConfigurationError(f"terraform output failed in {cwd}: {completed.stderr.strip()}")

        try:
            outputs = json.loads(completed.stdout or "{}")
        except ValueError as e:
            raise ConfigurationError(f"terraform output returned invalid JSON: {e}", cause=e) from e
        if not isinstance(outputs, dict):
            raise ConfigurationError("terraform output returned an unexpected structure")
        return outputs

    def output_value(self, key: str) -> Optional[str]:
        """
        String value of a single Terraform output, or None when it is absent.

        Raises:
            ConfigurationError: If the outputs cannot be read at all.
        """
        output = self.outputs().get(key)
        value = output.get("value") if isinstance(output, dict) else output
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()

    def resolve_url(self, name: str) -> str:
        key = f"{normalize_service_name(name)}{TERRAFORM_URL_SUFFIX}"
        try:
            url = self.output_value(key)
        except ConfigurationError as e:
            raise ConfigurationError(e.message, target=name, cause=e) from e
        if url is None:
            raise ConfigurationError(f"{key} not found in terraform outputs", target=name)
        return url


class TargetRegistry:
    """Ordered set of services under comparison."""

    def __init__(self, definitions: Iterable[ServiceDefinition]):
        self.definitions: List[ServiceDefinition] = list(definitions)
        seen = set()
        duplicates = []
        for definition in self.definitions:
            if definition.name in seen:
                duplicates.append(definition.name)
            seen.add(definition.name)
        if duplicates:
            raise ConfigurationError(f"Duplicate service name(s): {', '.join(duplicates)}")

    def names(self) -> List[str]:
        return [d.name for d in self.definitions]

    def select(self, filters: Optional[Sequence[str]] = None) -> List[ServiceDefinition]:
        """
        Keep only the named services, in registry order.

        Raises:
            ValueError: If a filter names no known service.
        """
        if not filters:
            return list(self.definitions)
        wanted = [normalize_service_name(f) for f in filters]
        unknown = [f for f, w in zip(filters, wanted) if w not in self.names()]
        if unknown:
            raise ValueError(f"Unknown service(s): {', '.join(unknown)}; known: {', '.join(self.names())}")
        return [d for d in self.definitions if d.name in wanted]

    def resolve(self, source: TargetSource,
                filters: Optional[Sequence[str]] = None) -> Tuple[List[Target], Dict[str, ConfigurationError]]:
        """
        Resolve every selected service into a Target.

        Services whose URL cannot be resolved are left out of the returned
        targets and reported in the error mapping instead.

        Returns:
            Tuple of (targets in registry order, errors keyed by service name).
        """
        targets: List[Target] = []
        errors: Dict[str, ConfigurationError] = {}
        for definition in self.select(filters):
            try:
                url = source.resolve_url(definition.name)
            except ConfigurationError as e:
                logger.warning(f"Skipping {definition.name}: {e.message}")
                errors[definition.name] = e
                continue
            targets.append(Target(definition.name, url, dict(definition.labels)))
            logger.info(f"{definition.name}: {url}")
        return targets, errors
