"""Flask CLI commands for the workflow catalog."""

from __future__ import annotations

from pathlib import Path

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import CatalogError
from .ingestion import IngestionPipeline, load_category_table


@click.command("ingest")
@click.argument(
    "directory",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--categories",
    "categories_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON category table mapping file names to categories.",
)
@click.option("--workers", type=click.IntRange(min=1), help="Documents processed in parallel.")
@click.option("--batch-size", type=click.IntRange(min=1), help="Documents per progress checkpoint.")
@click.option("--recursive", is_flag=True, help="Also ingest documents in subdirectories.")
@with_appcontext
def ingest_command(
    directory: Path | None,
    categories_path: Path | None,
    workers: int | None,
    batch_size: int | None,
    recursive: bool,
) -> None:
    """Ingest a directory of workflow documents into the catalog."""

    app = current_app._get_current_object()
    directory = directory or Path(app.config["WORKFLOWS_DIR"])
    categories_path = categories_path or Path(app.config["CATEGORY_TABLE_PATH"])

    click.echo("Starting workflow ingestion...")
    try:
        category_table = load_category_table(categories_path)
        pipeline = IngestionPipeline(
            app, category_table, max_workers=workers, batch_size=batch_size
        )
        report = pipeline.run(
            directory,
            recursive=recursive,
            progress=lambda done, total: click.echo(
                f"Progress: {done}/{total} ({round(done / total * 100) if total else 100}%)"
            ),
        )
    except CatalogError as exc:
        message = f"{exc.message}: {exc.details}" if exc.details else exc.message
        raise click.ClickException(message) from exc

    if report.total == 0:
        raise click.ClickException(f"No workflow files found in {directory}")

    click.echo(
        f"Ingestion completed: total={report.total} processed={report.processed} "
        f"succeeded={report.succeeded} failed={len(report.failures)}"
    )
    for failure in report.failures:
        click.echo(f"  failed {failure.path}: {failure.error} ({failure.details})", err=True)

    if not report.ok:
        raise click.exceptions.Exit(1)
