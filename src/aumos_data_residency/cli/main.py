"""CLI entry point for aumos-data-residency.

Invoked as::

    aumos-residency [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_data_residency.cli.main

Commands
--------
- restrict set     Restrict where a directory's data may reside
- restrict get     Show the restriction on a directory
- restrict delete  Remove the restriction on a directory
- restrict list    List restrictions
- account token    Request an access token
- aliases          Show provider and region codes and their aliases
- version          Show version information
"""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aumos_data_residency.errors import ResidencyError

console = Console()
err_console = Console(stderr=True)

_API_CHOICE = click.Choice(["config", "locks", "placement"], case_sensitive=False)
_FORMAT_CHOICE = click.Choice(["table", "json"])

_BASE64_HELP = "DIRECTORY is already URL-safe base64 encoded."
_DECODE_HELP = "Show directories decoded instead of in their base64 wire form."


@dataclass
class _CliState:
    config_path: Path | None
    api_key: str | None


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-data-residency")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to residency.yaml (default: search the standard locations).",
)
@click.option("--api-key", "-A", default=None, help="Account API key (overrides config and environment).")
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, api_key: str | None, verbose: int) -> None:
    """Data residency CLI: restrict where directory data may be stored."""
    _configure_logging(verbose)
    ctx.obj = _CliState(
        config_path=Path(config_path) if config_path else None,
        api_key=api_key,
    )


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_data_residency import __version__

    console.print(
        Panel(
            f"[bold]aumos-data-residency[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Provider and region restrictions for control-plane data.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# aliases
# ---------------------------------------------------------------------------


@cli.command(name="aliases")
@click.option(
    "--axis",
    type=click.Choice(["provider", "region"]),
    default=None,
    help="Only show one axis.",
)
def aliases_command(axis: str | None) -> None:
    """Show provider and region codes and their aliases."""
    from aumos_data_residency.restrictions.aliases import AxisKind, aliases_for

    axes = [AxisKind(axis)] if axis else list(AxisKind)
    table = Table(title="Recognised Identifiers", box=box.SIMPLE)
    table.add_column("Axis", style="magenta")
    table.add_column("Code", style="cyan")
    table.add_column("Aliases")
    for kind in axes:
        for code, aliases in sorted(aliases_for(kind).items()):
            table.add_row(kind.value, code, ", ".join(aliases))
        table.add_row(kind.value, "all", "(every code)")
    console.print(table)


# ---------------------------------------------------------------------------
# account group
# ---------------------------------------------------------------------------


@cli.group(name="account")
def account_group() -> None:
    """Account and access token commands."""


@account_group.command(name="token")
@click.option("--json", "-j", "as_json", is_flag=True, help="Print token, tenant and subdomain as JSON.")
@click.pass_obj
def account_token_command(state: _CliState, as_json: bool) -> None:
    """Request a short-lived access token."""
    from aumos_data_residency.client.credentials import CredentialManager
    from aumos_data_residency.client.transport import HttpTransport

    try:
        config = _load_config(state)
        config.check_urls()
        manager = CredentialManager(
            config.require_api_key(),
            config.api.identity_url,
            transport=HttpTransport(
                timeout_seconds=config.api.timeout_seconds,
                allow_insecure_urls=config.danger_zone.allow_insecure_urls,
            ),
        )
        credential = manager.get_token()
    except ResidencyError as exc:
        _fail(exc)

    if as_json:
        click.echo(json.dumps(credential.to_dict()))
    else:
        click.echo(credential.token)


# ---------------------------------------------------------------------------
# restrict group
# ---------------------------------------------------------------------------


@cli.group(name="restrict")
def restrict_group() -> None:
    """Restrict the providers and regions where directory data may reside."""


@restrict_group.command(name="set")
@click.argument("api", type=_API_CHOICE)
@click.argument("directory")
@click.option("--provider", "-p", multiple=True, help="Allowed provider(s); comma list or repeat. Default: all.")
@click.option("--exclude-provider", "-P", multiple=True, help="Excluded provider(s); comma list or repeat.")
@click.option("--region", "-r", multiple=True, help="Allowed region(s); comma list or repeat. Default: all.")
@click.option("--exclude-region", "-R", multiple=True, help="Excluded region(s); comma list or repeat.")
@click.option("--base64", "-B", "already_encoded", is_flag=True, help=_BASE64_HELP)
@click.option("--dry-run", is_flag=True, help="Resolve and print the restriction without sending it.")
@click.option("--format", "-f", "output_format", type=_FORMAT_CHOICE, default="table", show_default=True)
@click.pass_obj
def restrict_set_command(
    state: _CliState,
    api: str,
    directory: str,
    provider: tuple[str, ...],
    exclude_provider: tuple[str, ...],
    region: tuple[str, ...],
    exclude_region: tuple[str, ...],
    already_encoded: bool,
    dry_run: bool,
    output_format: str,
) -> None:
    """Restrict where data under DIRECTORY of API may reside."""
    from aumos_data_residency.restrictions.records import build_restriction

    try:
        record = build_restriction(
            api.lower(),
            directory,
            provider=provider,
            exclude_provider=exclude_provider,
            region=region,
            exclude_region=exclude_region,
            already_encoded=already_encoded,
        )
        if not dry_run:
            _restriction_api(state).set_restriction(record)
    except ResidencyError as exc:
        _fail(exc)

    details = record.to_details()
    if output_format == "json":
        click.echo(
            json.dumps({"api": record.api.value, "directory": record.directory.wire, "details": details})
        )
        return

    if not details["providers_allowed"] or not details["regions_allowed"]:
        err_console.print(
            "[yellow]Warning:[/yellow] the restriction leaves no allowed provider or region."
        )
    verb = "Resolved" if dry_run else "Restricted"
    console.print(f"[green]{verb}[/green] {record.api.value}/[bold]{record.directory.wire}[/bold]")
    console.print(_details_table(details))


@restrict_group.command(name="get")
@click.argument("api", type=_API_CHOICE)
@click.argument("directory")
@click.option("--base64", "-B", "already_encoded", is_flag=True, help=_BASE64_HELP)
@click.option("--decode", "-D", "decode_output", is_flag=True, help=_DECODE_HELP)
@click.option("--format", "-f", "output_format", type=_FORMAT_CHOICE, default="table", show_default=True)
@click.pass_obj
def restrict_get_command(
    state: _CliState,
    api: str,
    directory: str,
    already_encoded: bool,
    decode_output: bool,
    output_format: str,
) -> None:
    """Show the restriction on DIRECTORY of API."""
    from aumos_data_residency.directory.codec import DirectoryId

    try:
        directory_id = DirectoryId.from_cli(directory, already_encoded=already_encoded)
        restriction = _restriction_api(state).get_restriction(api.lower(), directory_id)
        shown = restriction.directory_for_display(decode_output)
    except ResidencyError as exc:
        _fail(exc)

    if output_format == "json":
        payload = restriction.model_dump(mode="json")
        payload["directory"] = shown
        click.echo(json.dumps(payload))
        return

    console.print(
        Panel(
            f"API: [cyan]{restriction.api}[/cyan]\n"
            f"Directory: [bold]{shown}[/bold]\n"
            f"State: {restriction.state.value}",
            title="Restriction",
            border_style="blue",
        )
    )
    console.print(_details_table(restriction.details.model_dump()))


@restrict_group.command(name="delete")
@click.argument("api", type=_API_CHOICE)
@click.argument("directory")
@click.option("--base64", "-B", "already_encoded", is_flag=True, help=_BASE64_HELP)
@click.pass_obj
def restrict_delete_command(state: _CliState, api: str, directory: str, already_encoded: bool) -> None:
    """Remove the restriction on DIRECTORY of API."""
    from aumos_data_residency.directory.codec import DirectoryId

    try:
        directory_id = DirectoryId.from_cli(directory, already_encoded=already_encoded)
        _restriction_api(state).delete_restriction(api.lower(), directory_id)
    except ResidencyError as exc:
        _fail(exc)

    console.print(f"[green]Deleted[/green] restriction on {api.lower()}/[bold]{directory_id.wire}[/bold]")


@restrict_group.command(name="list")
@click.argument("api", type=_API_CHOICE, required=False)
@click.option("--decode", "-D", "decode_output", is_flag=True, help=_DECODE_HELP)
@click.option("--format", "-f", "output_format", type=_FORMAT_CHOICE, default="table", show_default=True)
@click.pass_obj
def restrict_list_command(state: _CliState, api: str | None, decode_output: bool, output_format: str) -> None:
    """List restrictions, for one API or all of them."""
    try:
        restrictions = _restriction_api(state).get_all_pages(api.lower() if api else None)
        rows = [(r, r.directory_for_display(decode_output)) for r in restrictions]
    except ResidencyError as exc:
        _fail(exc)

    if output_format == "json":
        payload = []
        for restriction, shown in rows:
            item = restriction.model_dump(mode="json")
            item["directory"] = shown
            payload.append(item)
        click.echo(json.dumps(payload))
        return

    if not rows:
        console.print("[yellow]No restrictions found.[/yellow]")
        return

    table = Table(title="Restrictions", box=box.SIMPLE)
    table.add_column("API", style="cyan")
    table.add_column("Directory", style="bold")
    table.add_column("State")
    table.add_column("Providers", style="magenta")
    table.add_column("Regions", style="magenta")
    for restriction, shown in rows:
        table.add_row(
            restriction.api,
            shown,
            restriction.state.value,
            ", ".join(restriction.details.providers_allowed),
            ", ".join(restriction.details.regions_allowed),
        )
    console.print(table)
    console.print(f"  Total restrictions: [cyan]{len(rows)}[/cyan]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    root = logging.getLogger("aumos_data_residency")
    root.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=err_console, show_path=False))


def _load_config(state: _CliState):
    from aumos_data_residency.config.loader import ConfigLoader

    loader = ConfigLoader()
    if state.config_path is not None:
        config = loader.load(state.config_path)
    else:
        config = loader.load_all()
    config = loader.apply_env(config)
    if state.api_key:
        config = config.model_copy(
            update={"account": config.account.model_copy(update={"api_key": state.api_key})}
        )
    return config


def _restriction_api(state: _CliState):
    from aumos_data_residency.convenience import ResidencyController

    return ResidencyController.from_config(_load_config(state)).api


def _details_table(details: dict[str, list[str]]) -> Table:
    table = Table(box=box.SIMPLE)
    table.add_column("Axis", style="cyan")
    table.add_column("Allowed", style="green")
    table.add_column("Denied", style="red")
    table.add_row(
        "providers",
        ", ".join(details.get("providers_allowed", [])) or "-",
        ", ".join(details.get("providers_denied", [])) or "-",
    )
    table.add_row(
        "regions",
        ", ".join(details.get("regions_allowed", [])) or "-",
        ", ".join(details.get("regions_denied", [])) or "-",
    )
    return table


def _fail(exc: ResidencyError) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
