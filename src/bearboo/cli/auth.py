"""CLI: bearboo auth login|register|logout|status|reset-password"""

from typing import Optional

import click
from rich.console import Console

from bearboo.auth import IDENTITY_URL, Auth
from bearboo.client import AsyncBearBoo
from bearboo.config import Config, load_config
from bearboo.models.session import AUTH_FAILURE_MESSAGES, AuthFailure, AuthResult
from bearboo.transport.http import HttpClient

console = Console()


def _load_config() -> Config:
    from bearboo.cli.main import _load_config
    return _load_config()


def _save_config(cfg: Config) -> None:
    from bearboo.cli.main import _save_config
    _save_config(cfg)


def _run(coro):
    from bearboo.cli.main import _run
    return _run(coro)


def _endpoints(api_key: Optional[str], database_url: Optional[str]) -> Config:
    cfg = _load_config()
    api_key = api_key or cfg.api_key or click.prompt("Firebase API key")
    database_url = database_url or cfg.database_url or click.prompt("Realtime Database URL")
    return cfg.model_copy(update={"api_key": api_key, "database_url": database_url})


def _report(result: AuthResult) -> None:
    failure = result.failure or AuthFailure.GENERIC
    console.print(f"[red]{result.message or AUTH_FAILURE_MESSAGES[failure]}[/red]")


@click.group()
def auth():
    """Authentication commands."""


@auth.command("login")
@click.option("--api-key", default=None, help="Firebase web API key")
@click.option("--database-url", default=None, help="Realtime Database URL")
def auth_login(api_key: Optional[str], database_url: Optional[str]):
    """Log in with email and password."""

    async def _login():
        cfg = _endpoints(api_key, database_url)
        email = click.prompt("Email")
        password = click.prompt("Password", hide_input=True)
        async with AsyncBearBoo(api_key=cfg.api_key, database_url=cfg.database_url) as client:
            with console.status("Logging in..."):
                result = await client.auth.login(email, password)
        if not result.success or result.user is None:
            _report(result)
            raise SystemExit(1)
        _save_config(cfg.model_copy(update={"user": result.user}))
        console.print(f"[green]Welcome back, {result.user.label}![/green] [dim](ID: {result.user.id})[/dim]")

    _run(_login())


@auth.command("register")
@click.option("--api-key", default=None, help="Firebase web API key")
@click.option("--database-url", default=None, help="Realtime Database URL")
def auth_register(api_key: Optional[str], database_url: Optional[str]):
    """Create an account."""

    async def _register():
        cfg = _endpoints(api_key, database_url)
        display_name = click.prompt("Display name")
        email = click.prompt("Email")
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)
        async with AsyncBearBoo(api_key=cfg.api_key, database_url=cfg.database_url) as client:
            with console.status("Creating account..."):
                result = await client.auth.register(email, password, display_name)
        if not result.success or result.user is None:
            _report(result)
            raise SystemExit(1)
        _save_config(cfg.model_copy(update={"user": result.user}))
        console.print(f"[green]Account created. Welcome, {result.user.label}![/green]")
        console.print(f"[dim]Share your ID with your partner: {result.user.id}[/dim]")

    _run(_register())


@auth.command("reset-password")
@click.argument("email")
@click.option("--api-key", default=None, help="Firebase web API key")
def auth_reset_password(email: str, api_key: Optional[str]):
    """Email a password reset link."""

    async def _reset():
        cfg = _load_config()
        key = api_key or cfg.api_key or click.prompt("Firebase API key")
        http = HttpClient(IDENTITY_URL, params={"key": key})
        try:
            result = await Auth(http).send_password_reset(email)
        finally:
            await http.close()
        if not result.success:
            _report(result)
            raise SystemExit(1)
        console.print("[green]Password reset email sent.[/green]")

    _run(_reset())


@auth.command("status")
def auth_status():
    """Show current auth status."""
    cfg = _load_config()
    if cfg.user:
        console.print(f"[green]Logged in[/green] as {cfg.user.label} <{cfg.user.email or 'unknown'}> (ID: {cfg.user.id})")
        if cfg.room_id:
            console.print(f"[dim]Room: {cfg.room_id}[/dim]")
    else:
        console.print("[yellow]Not logged in. Run `bearboo auth login`.[/yellow]")


@auth.command("logout")
def auth_logout():
    """Clear saved credentials (keeps endpoints and theme)."""
    cfg = load_config()
    _save_config(cfg.model_copy(update={"user": None, "room_id": None}))
    console.print("[green]Logged out.[/green]")
