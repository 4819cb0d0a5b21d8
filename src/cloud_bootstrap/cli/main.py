"""Main CLI entry point."""

import sys
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from cloud_bootstrap import __version__
from cloud_bootstrap.config.parser import DEFAULT_CONFIG_FILE, ConfigValidationError, load_config
from cloud_bootstrap.orchestrator import BootstrapOrchestrator, ProvisionSummary, build_plan_report
from cloud_bootstrap.provisioners import FailurePolicy
from cloud_bootstrap.utils.aws_client import check_credentials, get_profile_info
from cloud_bootstrap.utils.errors import BootstrapError, CredentialError
from cloud_bootstrap.utils.logging import get_logger, setup_logging

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


def fail(message: str, error: Optional[BootstrapError] = None) -> NoReturn:
    """Print a fatal error to stderr and exit with status 1.

    When ``error`` is given, its rendered details and suggested fixes follow
    the headline.
    """
    err_console.print(f"[red]{escape(message)}[/red]")
    if error is not None:
        err_console.print(escape(error.to_user_message()), highlight=False)
    sys.exit(1)


@click.command()
@click.option('--config', 'config_path', default=DEFAULT_CONFIG_FILE, show_default=True,
              help='Path to configuration file')
@click.option('--dry-run', is_flag=True, help='Print the planned changes without calling AWS')
@click.option('--check-creds', is_flag=True, help='Only check AWS credentials and exit')
@click.option('--strict', is_flag=True, help='Abort on the first failed configuration step')
@click.option('--profile', help='AWS profile to use')
@click.option('--log-level', default='info', type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.option('--log-dir', type=click.Path(file_okay=False), help='Also write JSON-lines logs to this directory')
@click.version_option(__version__, prog_name='cloud-bootstrap')
def cli(config_path, dry_run, check_creds, strict, profile, log_level, log_dir):
    """Provision S3 buckets, ECR repositories, IAM users and RDS instances from YAML."""
    setup_logging(log_level, log_dir)

    try:
        config = load_config(config_path)
    except ConfigValidationError as e:
        fail(f"Failed to load configuration: {e}")

    if dry_run:
        console.print("Running in dry-run mode. No changes will be made.")
        console.print(build_plan_report(config).render(), markup=False, highlight=False)
        return

    console.print("Checking AWS credentials...")
    console.print(get_profile_info(), markup=False, highlight=False)

    try:
        arn = check_credentials(config.region, profile)
    except CredentialError as e:
        fail("AWS credential check failed", e)

    console.print(f"✅ AWS credentials validated. Authenticated as: {escape(arn)}\n")

    if check_creds:
        console.print("Credential check completed successfully.")
        return

    failure_policy = FailurePolicy.ABORT_ON_FIRST_ERROR if strict else FailurePolicy.CONTINUE_WITH_WARNINGS

    try:
        orchestrator = BootstrapOrchestrator.for_region(config.region, profile, failure_policy)
    except CredentialError as e:
        fail("Failed to initialize bootstrapper. Please check your AWS credentials and region configuration.", e)

    try:
        summary = orchestrator.provision(config)
    except BootstrapError as e:
        logger.debug(f"Error details: {e.to_dict()}")
        fail("Failed to provision resources", e)
    except Exception as e:
        logger.exception("Unexpected error during provisioning")
        fail(f"Unexpected error: {e}")

    _print_summary(summary)


def _print_summary(summary: ProvisionSummary) -> None:
    body = (
        f"Created: {len(summary.created)}\n"
        f"Updated: {len(summary.updated)}\n"
        f"Already present: {len(summary.unchanged)}"
    )

    if summary.warnings:
        console.print(Panel.fit(
            f"[yellow]⚠ Resources configured with {len(summary.warnings)} warning(s)[/yellow]\n\n{body}",
            title="Provisioning Complete",
            border_style="yellow"
        ))
        console.print("\n[bold]Warnings:[/bold]")
        for warning in summary.warnings:
            console.print(f"  [yellow]⚠[/yellow] {escape(warning)}")
    else:
        console.print(Panel.fit(
            f"[green]✅ All resources configured successfully.[/green]\n\n{body}",
            title="Provisioning Complete",
            border_style="green"
        ))


if __name__ == '__main__':
    cli()
