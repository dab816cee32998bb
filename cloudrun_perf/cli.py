"""Command line interface: ``compare`` services and ``scale`` their instances."""
import time
from pathlib import Path
from typing import Optional, Tuple

import click
from pydantic import ValidationError

from cloudrun_perf.shared.config import Config
from cloudrun_perf.shared.logging import LoggingManager
from cloudrun_perf.benchmark import (
    BenchmarkConfig, BenchmarkRunner, ConfigurationError, TargetRegistry, TerraformOutputSource,
)
from cloudrun_perf.scaling import GcloudScaler, ScalingSpec, ScalingSpecError


LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False)


def _load_settings() -> Config:
    try:
        return Config()
    except (ValidationError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")


def _setup_logging(settings: Config, log_level: Optional[str]) -> None:
    LoggingManager.setup_logging(log_level or settings.log_level, settings.library_log_levels)


@click.group()
@click.version_option(package_name="cloudrun-perf")
def cli() -> None:
    """Compare cold start, latency and memory of deployed Cloud Run services."""


@cli.command()
@click.argument("targets", nargs=-1)
@click.option("-r", "--requests", "request_count", type=click.IntRange(min=1), default=None,
              help="Probe requests per service; the first is the cold request [default: 10]")
@click.option("--workload-path", default=None, help="Path probed for latency [default: messages]")
@click.option("--metrics-timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Timeout in seconds for the metrics request")
@click.option("--probe-timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Timeout in seconds for each probe request")
@click.option("--delay", "probe_delay", type=click.FloatRange(min=0), default=None,
              help="Seconds to wait between probe requests")
@click.option("--targets-file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="JSON file with service URLs, used instead of Terraform outputs")
@click.option("--terraform-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory holding the Terraform state")
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory for CSV exports and charts")
@click.option("--no-export", is_flag=True, help="Do not write CSV files")
@click.option("--charts", is_flag=True, help="Render matplotlib charts into the output directory")
@click.option("--load-only", is_flag=True, help="Report on previously exported CSVs without probing")
@click.option("--log-level", type=LOG_LEVELS, default=None)
def compare(targets: Tuple[str, ...], request_count: Optional[int], workload_path: Optional[str],
            metrics_timeout: Optional[float], probe_timeout: Optional[float], probe_delay: Optional[float],
            targets_file: Optional[Path], terraform_dir: Optional[Path], output_dir: Optional[Path],
            no_export: bool, charts: bool, load_only: bool, log_level: Optional[str]) -> None:
    """Fetch metrics and probe latency for every service, then print the comparison.

    TARGETS optionally restricts the run to the named services.
    """
    settings = _load_settings()
    _setup_logging(settings, log_level)

    config = BenchmarkConfig.from_settings(
        settings,
        request_count=request_count,
        workload_path=workload_path,
        metrics_timeout=metrics_timeout,
        probe_timeout=probe_timeout,
        probe_delay=probe_delay,
    )
    try:
        runner = BenchmarkRunner(
            settings,
            config,
            filters=targets,
            targets_file=targets_file,
            terraform_dir=terraform_dir,
            output_dir=output_dir,
            export=not no_export,
            charts=charts,
            load_only=load_only,
            output=click.echo,
        )
    except ConfigurationError as e:
        raise click.ClickException(e.message)
    try:
        exit_code = runner.run()
    except ValueError as e:
        raise click.UsageError(str(e))
    raise SystemExit(exit_code)


@cli.command()
@click.argument("value")
@click.argument("services", nargs=-1)
@click.option("--project", default=None,
              help="Google Cloud project id [default: configured, Terraform output or gcloud project]")
@click.option("--region", default=None,
              help="Cloud Run region [default: configured, Terraform output or asia-southeast1]")
@click.option("--terraform-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory holding the Terraform state")
@click.option("--log-level", type=LOG_LEVELS, default=None)
def scale(value: str, services: Tuple[str, ...], project: Optional[str], region: Optional[str],
          terraform_dir: Optional[Path], log_level: Optional[str]) -> None:
    """Set instance scaling for every service.

    VALUE is an exact instance count (manual scaling, e.g. 0 to force cold
    starts) or a MIN-MAX range (autoscaling, e.g. 0-100 to restore defaults).
    """
    settings = _load_settings()
    _setup_logging(settings, log_level)

    try:
        spec = ScalingSpec.parse(value)
    except ScalingSpecError as e:
        raise click.BadParameter(str(e), param_hint="VALUE")

    try:
        definitions = TargetRegistry(settings.services).select(services)
    except ConfigurationError as e:
        raise click.ClickException(e.message)
    except ValueError as e:
        raise click.UsageError(str(e))

    terraform = TerraformOutputSource(terraform_dir or settings.terraform_dir)
    try:
        project_id = GcloudScaler.resolve_project(project or settings.gcp_project_id, terraform)
    except ConfigurationError as e:
        raise click.ClickException(e.message)

    scaler = GcloudScaler(project_id, GcloudScaler.resolve_region(region or settings.gcp_region, terraform))
    names = [d.cloud_run_service or d.name.replace("_", "-") for d in definitions]

    click.echo("=" * 42)
    click.echo("Scale All Cloud Run Services")
    click.echo("=" * 42)
    click.echo(f"Project: {scaler.project}")
    click.echo(f"Region: {scaler.region}")
    click.echo(f"Scaling: {spec}")
    click.echo(f"Services: {len(names)} total")

    failed = []
    for i, name in enumerate(names):
        if i:
            time.sleep(settings.scaling_pause)
        if scaler.update(name, spec):
            click.echo(f"[{name}] Successfully updated")
        else:
            click.echo(f"[{name}] Failed to update")
            failed.append(name)

    click.echo("\nVerifying scaling configuration...")
    for name in names:
        click.echo(f"[{name}]:")
        status = scaler.describe(name)
        if status is None:
            click.echo("  Could not retrieve scaling info")
            continue
        for line in status.lines():
            click.echo(f"  {line}")

    click.echo("\nScaling Update Summary")
    click.echo(f"Successfully updated: {len(names) - len(failed)}/{len(names)} services")
    if failed:
        click.echo(f"Failed: {', '.join(failed)}")
        raise SystemExit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
