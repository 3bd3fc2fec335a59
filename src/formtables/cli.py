from __future__ import annotations

import logging
from pathlib import Path

import typer

from formtables.config import Settings
from formtables.descriptors import DescriptorStore
from formtables.errors import FormsError
from formtables.ordering import sync_tables
from formtables.storage import init_backend

cli = typer.Typer(add_completion=False)


def _settings(forms_dir: Path | None) -> Settings:
    settings = Settings()
    if forms_dir is not None:
        settings.forms_dir = forms_dir
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return settings


def run_server(settings: Settings, host: str | None, port: int | None) -> None:
    import uvicorn

    from formtables.app import create_app

    resolved_host = host or settings.host
    resolved_port = port if port is not None else settings.port
    uvicorn.run(create_app(settings), host=resolved_host, port=resolved_port)


@cli.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
    forms_dir: Path | None = typer.Option(None, help="Directory holding the .f8p files"),
) -> None:
    ctx.obj = {"host": host, "port": port, "forms_dir": forms_dir}
    if ctx.invoked_subcommand is None:
        run_server(_settings(forms_dir), host, port)


@cli.command()
def run(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    base = ctx.obj or {}
    resolved_host = host or base.get("host")
    resolved_port = port if port is not None else base.get("port")
    run_server(_settings(base.get("forms_dir")), resolved_host, resolved_port)


@cli.command()
def sync(ctx: typer.Context) -> None:
    """Create or update the backend tables of every form."""
    settings = _settings((ctx.obj or {}).get("forms_dir"))
    try:
        order = sync_tables(DescriptorStore(settings.forms_dir), init_backend(settings))
    except FormsError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    for table in order:
        typer.echo(table)


@cli.command()
def forms(ctx: typer.Context) -> None:
    """List the forms found in the forms directory."""
    settings = _settings((ctx.obj or {}).get("forms_dir"))
    try:
        names = DescriptorStore(settings.forms_dir).list_forms()
    except FormsError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    for name in names:
        typer.echo(name)


if __name__ == "__main__":
    cli()
