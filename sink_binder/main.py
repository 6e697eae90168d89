from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer

from sink_binder.binder import PreparedStatementBinder, placeholder_order
from sink_binder.codec import read_records
from sink_binder.config import Settings, get_settings
from sink_binder.domain.metadata import FieldsMetadata
from sink_binder.domain.modes import InsertMode, PrimaryKeyMode
from sink_binder.encoders import GenericValueEncoder, RecordingEncoder
from sink_binder.errors import SinkBinderError
from sink_binder.infrastructure.db_factory import get_sync_connection, get_sync_pool
from sink_binder.infrastructure.statement import SqlStatementFactory
from sink_binder.reporter import BindPlan, print_plans
from sink_binder.statement import BufferedStatement
from sink_binder.utils.logging import configure_logging, get_logger
from sink_binder.writer import BufferedRecords

app = typer.Typer(help="Bind sink records to prepared SQL statements.")
log = get_logger(__name__)


def _split(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def _effective_settings(
    pk_mode: Optional[str] = None,
    pk_fields: Optional[str] = None,
    insert_mode: Optional[str] = None,
    delete_by_field: Optional[bool] = None,
    table: Optional[str] = None,
) -> Settings:
    overrides = {
        "pk_mode": PrimaryKeyMode(pk_mode) if pk_mode else None,
        "pk_fields": _split(pk_fields),
        "insert_mode": InsertMode(insert_mode) if insert_mode else None,
        "delete_by_field": delete_by_field,
        # Flag deletes ride on the delete switch.
        "delete_enabled": True if delete_by_field else None,
        "table_name": table,
    }
    updates = {key: value for key, value in overrides.items() if value is not None}
    settings = get_settings()
    return Settings(**{**settings.model_dump(), **updates}) if updates else settings


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"table={settings.table_name} pk_mode={settings.pk_mode.value} "
        f"pk_fields={','.join(settings.pk_fields) or '-'} insert_mode={settings.insert_mode.value} "
        f"delete_enabled={settings.delete_enabled} delete_by_field={settings.delete_by_field} "
        f"enum_sets={','.join(settings.enum_sets) or '-'} batch={settings.batch_size}"
    )


@app.command()
def explain(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Connect JSON-lines file."),
    pk_mode: Optional[str] = typer.Option(None, "--pk-mode", help="none, kafka, record_key or record_value."),
    pk_fields: Optional[str] = typer.Option(None, "--pk-fields", help="Comma-separated key columns."),
    insert_mode: Optional[str] = typer.Option(None, "--insert-mode", help="insert, upsert or update."),
    delete_by_field: Optional[bool] = typer.Option(
        None, "--delete-by-field/--no-delete-by-field", help="Treat deleted=true as a delete."
    ),
) -> None:
    """
    Show which value lands in which placeholder for every record in PATH.
    """
    encoder = RecordingEncoder(GenericValueEncoder())
    plans: List[BindPlan] = []
    try:
        settings = _effective_settings(pk_mode, pk_fields, insert_mode, delete_by_field)
        configure_logging(level=settings.log_level, json_logs=settings.log_json)
        with path.open("r", encoding="utf-8") as f:
            for record in read_records(f):
                schema_pair = record.schema_pair
                fields = FieldsMetadata.extract(
                    settings.table_name,
                    settings.pk_mode,
                    settings.pk_fields,
                    settings.fields_whitelist,
                    schema_pair,
                )
                binder = PreparedStatementBinder(
                    encoder,
                    BufferedStatement(),
                    settings.pk_mode,
                    schema_pair,
                    fields,
                    settings.insert_mode,
                    config=settings,
                )
                delete = binder.is_delete(record)
                binder.bind_record(record)
                plans.append(
                    BindPlan(
                        position=record.position(),
                        kind="delete" if delete else settings.insert_mode.value,
                        columns=placeholder_order(fields, settings.insert_mode, delete),
                        parameters=encoder.reset(),
                    )
                )
    except (SinkBinderError, ValueError) as exc:
        # pydantic's ValidationError is a ValueError.
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    print_plans(plans, title=f"Bind plan for {settings.table_name} ({settings.pk_mode.value})")


@app.command()
def load(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Connect JSON-lines file."),
    sql: str = typer.Option(..., "--sql", help="Insert/upsert/update statement with %s placeholders."),
    delete_sql: Optional[str] = typer.Option(None, "--delete-sql", help="Delete statement with %s placeholders."),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Connect to this DSN directly instead of the pool."),
) -> None:
    """
    Bind every record in PATH and write it through prepared-statement batches.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    total = 0
    # --dsn gets a dedicated, retried connection; otherwise borrow one from the shared pool.
    connection = get_sync_connection(dsn) if dsn else get_sync_pool().connection()
    with connection as conn:
        factory = SqlStatementFactory(conn, sql, delete_sql)
        buffer = BufferedRecords(settings.table_name, settings, GenericValueEncoder(), factory)
        try:
            with path.open("r", encoding="utf-8") as f:
                for record in read_records(f):
                    flushed = buffer.add(record)
                    if flushed:
                        conn.commit()
                        total += len(flushed)
            flushed = buffer.flush()
            conn.commit()
            total += len(flushed)
        except SinkBinderError as exc:
            conn.rollback()
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        finally:
            buffer.close()

    log.info("Load complete", extra={"table": settings.table_name, "records": total})
    typer.echo(f"Loaded {total} record(s) into {settings.table_name}.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
