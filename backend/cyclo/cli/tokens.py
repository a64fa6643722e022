"""Flask CLI commands for one-time token and revocation maintenance.

Meant to be scheduled (cron, k8s CronJob) rather than run by hand::

    flask tokens cleanup
    flask tokens sweep

``flask tokens list`` prints the revocation registry for inspection.
"""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from cyclo.api.deps import get_auth_service

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
@click.option("--verbose", is_flag=True, help="Enable verbose logging.")
def tokens_cli(verbose: bool) -> None:
    """Maintenance commands for stored and revoked tokens."""
    LOGGER.setLevel(logging.DEBUG if verbose else logging.INFO)


@tokens_cli.command("cleanup")
@with_appcontext
def cleanup_command() -> None:
    """Null expired verification/reset tokens and sweep expired revocations."""
    result = get_auth_service().cleanup_expired_tokens()
    if not result.success or result.error is not None:
        message = result.error.message if result.error else "cleanup failed"
        raise click.ClickException(message)
    data = result.data
    click.echo(
        "Cleared {verification_tokens_cleared} verification token(s), "
        "{reset_tokens_cleared} reset token(s); swept {revocations_swept} "
        "revocation(s).".format(**data)
    )


@tokens_cli.command("sweep")
@with_appcontext
def sweep_command() -> None:
    """Drop revocation entries whose tokens have expired."""
    swept = get_auth_service().sweep_revocations()
    LOGGER.debug("sweep finished", extra={"count": swept})
    click.echo(f"Swept {swept} revocation(s).")


@tokens_cli.command("list")
@click.option("--limit", type=int, default=50, show_default=True, help="Rows to print.")
@with_appcontext
def list_command(limit: int) -> None:
    """List revoked tokens by digest, oldest first."""
    entries = get_auth_service().revocation_entries()
    if not entries:
        click.echo("No revoked tokens.")
        return
    for entry in entries[:limit]:
        click.echo(
            f"{entry.digest[:16]}  revoked {entry.created_at.isoformat()}  "
            f"expires {entry.expires_at.isoformat()}"
        )
    if len(entries) > limit:
        click.echo(f"... and {len(entries) - limit} more.")
