"""Flask CLI commands for PropLedger."""

from __future__ import annotations

from pathlib import Path

import click

from .logging_config import get_logger

logger = get_logger("cli")


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("propledger-import")
    @click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
    @click.option("--source", default=None, help="Source tag stored on imported rows")
    @click.option("--user", "user_id", default="cli", show_default=True, help="Importing user id")
    def propledger_import(csv_path: Path, source: str | None, user_id: str) -> None:
        """Import a ledger CSV file and print the summary."""

        # Import here to avoid circular imports at module import time
        from .extensions import get_config, ledger_store
        from .services.auth import AuthSession
        from .services.importers import EmptyImportError, import_ledger_csv

        config = get_config()
        text = csv_path.read_text(encoding="utf-8-sig", errors="replace")
        try:
            report = import_ledger_csv(
                text,
                store=ledger_store(),
                session=AuthSession(user_id=user_id, token=""),
                source=source or config.IMPORT_SOURCE_TAG,
                batch_size=config.IMPORT_BATCH_SIZE,
            )
        except EmptyImportError as exc:
            logger.warning("CLI import found no rows", extra={"csv_path": str(csv_path)})
            raise click.ClickException(str(exc)) from exc
        click.echo(report.summary())
        if report.has_error:
            raise SystemExit(1)

    @app.cli.command("propledger-underwrite")
    @click.argument("property_id", type=int)
    def propledger_underwrite(property_id: int) -> None:
        """Print underwriting metrics for a property."""

        from .extensions import property_repository
        from .services.underwriting import compute_underwriting, default_underwriting

        repo = property_repository()
        prop = repo.get_by_id(property_id)
        if prop is None:
            raise click.ClickException(f"Property {property_id} was not found.")
        inputs = repo.get_underwriting(property_id) or default_underwriting(property_id)
        metrics = compute_underwriting(inputs, prop.square_footage)
        click.echo(f"{prop.address} [{prop.status}]")
        for key, value in metrics.to_dict().items():
            shown = "n/a" if value is None else f"{value:,.2f}"
            click.echo(f"  {key}: {shown}")
