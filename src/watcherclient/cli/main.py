"""watcher CLI - OpenStack Watcher client."""

import sys

import typer
from rich.table import Table

from watcherclient import __version__
from watcherclient.cli import utils
from watcherclient.cli.resource_commands import (
    action_app,
    action_plan_app,
    audit_app,
    audit_template_app,
    data_model_app,
    goal_app,
    strategy_app,
)
from watcherclient.infrastructure.config import ConfigManager

console = utils.console

app = typer.Typer(
    name="watcher",
    help="OpenStack Watcher infrastructure optimization client",
    no_args_is_help=True,
)

app.add_typer(audit_app, name="audit")
app.add_typer(audit_template_app, name="audit-template")
app.add_typer(action_plan_app, name="action-plan")
app.add_typer(action_app, name="action")
app.add_typer(goal_app, name="goal")
app.add_typer(strategy_app, name="strategy")
app.add_typer(data_model_app, name="data-model")


# ===== Version =====
@app.command()
def version() -> None:
    """Show watcherclient version."""
    console.print(f"[bold]watcherclient[/bold] version [cyan]{__version__}[/cyan]")


# ===== Authentication =====
@app.command("auth-info")
def auth_info() -> None:
    """Show the authenticated identity and token expiry."""
    with utils.client_session() as client:
        info = client.get_auth_info()
        endpoint = client.endpoint

    if info is None:
        console.print("[yellow]Auth info not available with a fixed token[/yellow]")
        console.print(f"Endpoint: {endpoint}")
        return

    table = Table(title="Authentication")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Endpoint", endpoint)
    table.add_row("Username", info.username or info.user_id or "-")
    table.add_row("Project", info.project_name or info.project_id or "-")
    table.add_row("Domain", info.domain_name or info.domain_id or "-")
    table.add_row("Token expiry", info.token_expiry.isoformat() if info.token_expiry else "unknown")
    if info.time_until_expiry is not None:
        table.add_row("Time until expiry", str(info.time_until_expiry).split(".")[0])
    table.add_row("Expired", "[red]yes[/red]" if info.is_expired else "[green]no[/green]")
    console.print(table)


@app.command("store-password")
def store_password(
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Keystone password"),
) -> None:
    """Save the Keystone password for OS_USERNAME@OS_AUTH_URL in the system keychain."""
    try:
        ConfigManager().set_password(password)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    console.print("[green]✓[/green] Password stored in keychain")


@app.command("clear-password")
def clear_password() -> None:
    """Remove the stored Keystone password from the system keychain."""
    try:
        ConfigManager().clear_password()
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    console.print("[green]✓[/green] Stored password removed")


# ===== Service =====
@app.command()
def ping() -> None:
    """Check that the Watcher API is reachable with the current credentials."""
    with utils.client_session() as client:
        client.ping()
        endpoint = client.endpoint
    console.print(f"[green]✓[/green] {endpoint} is reachable")


@app.command("api-versions")
def api_versions() -> None:
    """Show the API versions advertised by the service root."""
    with utils.client_session() as client:
        versions = client.get_version()
    console.print_json(data=versions)


# ===== Main Entry Point =====
def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
