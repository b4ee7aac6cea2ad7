"""OneTimeSecret CLI"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, NoReturn, TypeVar

import typer

from ots_client import (
    Credential,
    CredentialVault,
    OtsClient,
    OtsError,
    build_credential,
    get_settings,
)

T = TypeVar("T")

app = typer.Typer(
    name="ots",
    help="OneTimeSecret CLI - share secrets that can be read only once",
    no_args_is_help=True,
)


def get_vault() -> CredentialVault:
    """Vault used by all commands (platform keychain)"""
    return CredentialVault.from_settings(get_settings())


def build_client(credential: Credential) -> OtsClient:
    return OtsClient(credential, settings=get_settings())


def _fail(error: OtsError) -> NoReturn:
    typer.secho(f"Error [{error.code}]: {error.message}", fg=typer.colors.RED, bold=True)
    raise typer.Exit(1)


def _run(coro: Awaitable[T]) -> T:
    try:
        return asyncio.run(coro)
    except OtsError as e:
        _fail(e)


def _client_from_vault() -> OtsClient:
    try:
        credential = get_vault().load()
        if credential is None:
            typer.secho("Not configured. Run: ots login", fg=typer.colors.YELLOW)
            raise typer.Exit(1)
        return build_client(credential)
    except OtsError as e:
        _fail(e)


def _format_ts(value: int | None) -> str:
    if value is None:
        return "-"
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _secret_key_from(value: str) -> str:
    """Accept either a bare secret key or a full share link."""
    value = value.strip().rstrip("/")
    if "/secret/" in value:
        return value.rsplit("/secret/", 1)[1]
    return value


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for all commands"""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def login(
    identity: str = typer.Option(..., "--identity", "-u", prompt="Account email", help="Account identity (email)"),
    endpoint: str = typer.Option(
        get_settings().default_endpoint,
        "--endpoint",
        "-e",
        help="OneTimeSecret API endpoint",
    ),
    api_key: str = typer.Option(..., "--api-key", prompt="API key", hide_input=True, help="API key"),
    verify: bool = typer.Option(False, "--verify/--no-verify", help="Test the connection before saving"),
):
    """Save API credentials to the system keychain"""
    settings = get_settings()
    try:
        credential = build_credential(
            identity, api_key, endpoint, require_email=settings.require_email_identity
        )
    except OtsError as e:
        _fail(e)

    if verify:
        async def _verify() -> bool:
            async with build_client(credential) as client:
                return await client.test_connection()

        if not _run(_verify()):
            typer.secho(f"Error: {endpoint} did not accept the connection test", fg=typer.colors.RED, bold=True)
            raise typer.Exit(1)

    try:
        get_vault().save(credential)
    except OtsError as e:
        _fail(e)

    typer.secho(f"✓ Saved credentials for {credential.identity}", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  - Endpoint: {credential.endpoint}")
    typer.echo(f"  - API key: {credential.masked_key}")


@app.command()
def logout(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Remove stored credentials from the system keychain"""
    if not yes:
        confirm = typer.confirm("Remove stored OneTimeSecret credentials?", default=False)
        if not confirm:
            typer.echo("Cancelled")
            raise typer.Exit(0)

    try:
        get_vault().delete()
    except OtsError as e:
        _fail(e)
    typer.secho("✓ Credentials removed", fg=typer.colors.GREEN, bold=True)


@app.command()
def whoami():
    """Show the stored configuration"""
    try:
        credential = get_vault().load()
    except OtsError as e:
        _fail(e)

    if credential is None:
        typer.echo("Not configured. Run: ots login")
        raise typer.Exit(1)

    typer.echo(f"Identity: {credential.identity}")
    typer.echo(f"Endpoint: {credential.endpoint}")
    if credential.has_secret:
        typer.echo(f"API key:  {credential.masked_key}")
    else:
        typer.secho("API key:  not set", fg=typer.colors.YELLOW)


@app.command()
def test():
    """Test the connection to the API"""
    client = _client_from_vault()

    async def _test() -> bool:
        async with client:
            return await client.test_connection()

    if _run(_test()):
        typer.secho(f"✓ Connected to {client.base_url}", fg=typer.colors.GREEN, bold=True)
    else:
        typer.secho(f"✗ {client.base_url} did not respond with success", fg=typer.colors.RED, bold=True)
        raise typer.Exit(1)


@app.command()
def share(
    secret: str | None = typer.Argument(None, help="Secret to share (prompted if omitted)"),
    passphrase: str | None = typer.Option(None, "--passphrase", "-p", help="Passphrase required to read it"),
    ttl: int = typer.Option(3600, "--ttl", "-t", help="Lifetime in seconds"),
    recipient: str | None = typer.Option(None, "--recipient", "-r", help="Email address to notify"),
):
    """Share a secret and print its one-time link"""
    if secret is None:
        secret = typer.prompt("Secret", hide_input=True)
    client = _client_from_vault()

    async def _share():
        async with client:
            return await client.secrets.create_secret(
                secret, passphrase=passphrase, ttl=ttl, recipient=recipient
            )

    result = _run(_share())
    typer.secho("✓ Secret created", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  - Link: {result.link}")
    typer.echo(f"  - Metadata key: {result.metadata_key}")
    typer.echo(f"  - Expires in: {result.ttl if result.ttl is not None else ttl}s")


@app.command()
def get(
    secret_key: str = typer.Argument(..., help="Secret key or share link"),
    passphrase: str | None = typer.Option(None, "--passphrase", "-p", help="Passphrase, if one was set"),
):
    """Reveal a secret. It can only be read once."""
    client = _client_from_vault()
    key = _secret_key_from(secret_key)

    async def _get():
        async with client:
            return await client.secrets.retrieve_secret(key, passphrase=passphrase)

    result = _run(_get())
    typer.echo(result.value)


@app.command()
def status(
    metadata_key: str = typer.Argument(..., help="Metadata key returned by share"),
):
    """Show a secret's status without reading it"""
    client = _client_from_vault()

    async def _status():
        async with client:
            return await client.secrets.get_metadata(metadata_key)

    metadata = _run(_status())
    typer.echo(f"State:    {metadata.state}")
    typer.echo(f"TTL:      {metadata.ttl if metadata.ttl is not None else '-'}")
    typer.echo(f"Created:  {_format_ts(metadata.created)}")
    typer.echo(f"Updated:  {_format_ts(metadata.updated)}")
    if metadata.received is not None:
        typer.echo(f"Received: {_format_ts(metadata.received)}")
    if metadata.recipient:
        typer.echo(f"Recipient: {', '.join(metadata.recipient)}")


@app.command()
def recent():
    """List secrets shared recently from this account"""
    client = _client_from_vault()

    async def _recent():
        async with client:
            return await client.secrets.list_recent_metadata()

    records = _run(_recent())
    if not records:
        typer.echo("No recent secrets")
        return

    typer.secho(f"Recent secrets ({len(records)}):", bold=True)
    for record in records:
        typer.echo(f"  - {record.metadata_key}  {record.state:<9} created {_format_ts(record.created)}")


@app.command()
def burn(
    metadata_key: str = typer.Argument(..., help="Metadata key returned by share"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Burn a secret so it can no longer be read"""
    if not yes:
        confirm = typer.confirm(f"Burn secret '{metadata_key}'?", default=False)
        if not confirm:
            typer.echo("Cancelled")
            raise typer.Exit(0)

    client = _client_from_vault()

    async def _burn():
        async with client:
            return await client.secrets.delete_secret(metadata_key)

    metadata = _run(_burn())
    typer.secho(f"✓ Secret burned (state: {metadata.state})", fg=typer.colors.GREEN, bold=True)


@app.command()
def version():
    """Show CLI version"""
    from . import __version__
    typer.echo(f"OneTimeSecret CLI v{__version__}")


if __name__ == "__main__":
    app()
