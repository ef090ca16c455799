from __future__ import annotations

import json

import typer
import uvicorn

from resumind.api.app import create_app
from resumind.config import get_settings
from resumind.core.rate_limit import cleanup_expired_rate_limits
from resumind.db.base import iso_timestamp
from resumind.db.init import init_database
from resumind.db.repositories import Repository
from resumind.db.session import SessionLocal
from resumind.logging_config import configure_logging

app = typer.Typer(help="Resumind CLI")
user_app = typer.Typer(help="Manage user accounts")
session_app = typer.Typer(help="Issue session tokens")
rate_limit_app = typer.Typer(help="Rate limit maintenance")

app.add_typer(user_app, name="user")
app.add_typer(session_app, name="session")
app.add_typer(rate_limit_app, name="rate-limits")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize database tables and data directories."""
    configure_logging()
    tables = init_database()
    typer.echo(json.dumps({"ok": True, "tables": tables}, indent=2))


@user_app.command("create")
def user_create(
    email: str = typer.Option(..., "--email"),
    name: str = typer.Option("", "--name"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        if repo.get_user_by_email(email):
            typer.echo(f"User already exists: {email}", err=True)
            raise typer.Exit(code=1)
        user = repo.create_user(email=email, name=name)
        typer.echo(json.dumps({"id": user.id, "email": user.email}, indent=2))


@session_app.command("issue")
def session_issue(
    email: str = typer.Option(..., "--email"),
    ttl_min: int | None = typer.Option(None, "--ttl-min"),
) -> None:
    """Print a new bearer token for the user. The token is not stored in clear."""
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    with SessionLocal() as db:
        repo = Repository(db)
        user = repo.get_user_by_email(email)
        if user is None:
            typer.echo(f"Unknown user: {email}", err=True)
            raise typer.Exit(code=1)
        token, record = repo.issue_session(user.id, ttl_min or settings.session_ttl_min)
        typer.echo(
            json.dumps(
                {"token": token, "user_id": user.id, "expires_at": iso_timestamp(record.expires_at)},
                indent=2,
            )
        )


@rate_limit_app.command("cleanup")
def rate_limits_cleanup() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        deleted = cleanup_expired_rate_limits(db)
    typer.echo(json.dumps({"deleted": deleted}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
