"""Flask CLI commands for FinTrack."""

from __future__ import annotations

import sys

import click
from flask import current_app


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("fintrack-seed")
    def fintrack_seed() -> None:
        """Install default categories and a starter account for the owner."""

        from .extensions import get_session_factory
        from .services.accounts import seed_defaults

        created = seed_defaults(
            user_id=current_app.config["FINTRACK_OWNER_ID"],
            session_factory=get_session_factory(),
        )
        click.echo(
            f"Seeded {created['categories']} categories and {created['accounts']} accounts."
        )

    @app.cli.command("fintrack-reconcile")
    @click.option("--repair", is_flag=True, default=False, help="Overwrite drifted balances")
    def fintrack_reconcile(repair: bool) -> None:
        """Compare stored account balances with the ledger."""

        from .extensions import get_session_factory
        from .services.reconciliation import reconcile

        report = reconcile(
            user_id=current_app.config["FINTRACK_OWNER_ID"],
            session_factory=get_session_factory(),
            repair=repair,
        )
        for check in report.checks:
            status = "ok" if check.consistent else "DRIFT"
            click.echo(
                f"{check.name}: stored={check.stored_cents} computed={check.computed_cents} [{status}]"
            )
        if report.consistent:
            click.echo("All balances consistent.")
        elif report.repaired:
            click.echo(f"Repaired {len(report.drifted)} account(s).")
        else:
            click.echo(f"{len(report.drifted)} account(s) drifted; rerun with --repair.")
            sys.exit(1)

    @app.cli.command("fintrack-create-user")
    @click.argument("username")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    def fintrack_create_user(username: str, password: str) -> None:
        """Create a user profile with an argon2 password hash."""

        from .errors import ValidationError
        from .extensions import get_session_factory
        from .services.auth import create_user

        try:
            user = create_user(
                username=username, password=password, session_factory=get_session_factory()
            )
        except ValidationError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Created user {user.username} (id={user.id}).")
