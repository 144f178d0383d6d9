"""
main.py — Command-Line Entry Point for the Server Order Automation

This module is the single top-level driver of the application. It wires the
collaborators together (credentials, API client, order profile, retry policy), runs
exactly one order workflow and turns its outcome into the process exit status.

Responsibilities:
    • Configure logging
    • Load credentials from the environment and select the order profile
    • Run the order workflow once, start to finish
    • Report the failing step and its cause, exit non-zero on any fatal condition

Exit codes:
    0 — order created and paid
    1 — the workflow failed (API error, unexpected response, no payment method,
        checkout retries exhausted)
    2 — configuration error (missing credentials, unknown profile or endpoint)
"""

from pathlib import Path

import click

from .clients import OvhApiClient
from .config import DEFAULT_PROFILE, PROFILES, ApiCredentials, OrderProfile, get_profile
from .errors import ConfigurationError, OrderError
from .logging_config import DEFAULT_LOG_FILE, get_logger, setup_logging
from .retry import DEFAULT_MAX_ATTEMPTS, CheckoutRetryPolicy
from .workflow import OrderWorkflow

log = get_logger(__name__)

EXIT_WORKFLOW_FAILED = 1
EXIT_CONFIGURATION_ERROR = 2


@click.command()
@click.option("--profile", "profile_name", type=click.Choice(sorted(PROFILES)),
              default=DEFAULT_PROFILE, show_default=True,
              help="Built-in order profile (server, configuration and options).")
@click.option("--profile-file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON file describing the order profile. Overrides --profile.")
@click.option("--max-attempts", type=click.IntRange(min=1), default=DEFAULT_MAX_ATTEMPTS,
              show_default=True, help="Checkout attempts before giving up.")
@click.option("--log-file", default=DEFAULT_LOG_FILE, show_default=True,
              help="Persistent log file. Use an empty value to disable it.")
@click.option("-v", "--verbose", is_flag=True, help="Log request bodies.")
@click.pass_context
def cli(ctx, profile_name, profile_file, max_attempts, log_file, verbose):
    """Order and pay for a dedicated server through the commerce API."""
    setup_logging(log_file or None, verbose)

    try:
        credentials = ApiCredentials.from_env()
        profile = OrderProfile.from_file(profile_file) if profile_file else get_profile(profile_name)
        client = OvhApiClient(credentials)
    except ConfigurationError as e:
        log.critical(f"Konfigurationsfehler: {e}")
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_CONFIGURATION_ERROR)

    with client:
        workflow = OrderWorkflow(client, profile, CheckoutRetryPolicy(max_attempts=max_attempts))
        try:
            receipt = workflow.run()
        except OrderError as e:
            step = e.step or "workflow"
            log.critical(f"Workflow abgebrochen im Schritt '{step}' (Status: {workflow.state.value}).")
            click.echo(f"Error: {step} failed: {e}", err=True)
            ctx.exit(EXIT_WORKFLOW_FAILED)

    click.echo(
        f"Order {receipt.order_id} has been successfully paid "
        f"(cart {receipt.cart_id}, item {receipt.item_id}, "
        f"payment method {receipt.payment_method.type} {receipt.payment_method.id})."
    )


if __name__ == "__main__":
    cli()
