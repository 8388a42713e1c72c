"""
Deploy CLI commands
"""
import typer
from pathlib import Path
from typing import Optional, Dict, Any, Tuple

from rich.table import Table

from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.exceptions import DeployError, ConfigError
from ...core.constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from ...core import load_ssh_config
from ...core.utils import split_patterns
from ...domain.deploy import DeployMode, DeployService, DeployTarget, DeploymentResult
from ...infrastructure.git import GitHistoryProvider
from ...infrastructure.remote import SSHRemoteChannel
from ...adapters.cli.connection import RemoteConnectionFactory
from ...adapters.cli.prompts import RichPromptProvider
from ...adapters.config.loader import ConfigLoader
from ...adapters.config.deploy_parser import parse_target

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()
prompt_provider = RichPromptProvider()

# Files listed per section in plan output
PLAN_LIST_LIMIT = 50


def register_deploy_commands(app: typer.Typer) -> None:
    """Register deploy and status commands directly on the main app"""
    app.command(name="deploy")(deploy_run)
    app.command(name="status")(status_run)


def deploy_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    revision: Optional[str] = typer.Option(
        None, "--revision", "-r", help="Revision to deploy (default: HEAD)"
    ),
    exclude: Optional[str] = typer.Option(
        None, "--exclude", "-x", help="Extra comma-separated exclusion patterns"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be transferred and deleted, change nothing"
    ),
):
    """
    Deploy changes since the last deployed revision

    Examples:
        rdeploy deploy deploy.toml
        rdeploy deploy deploy.toml --revision v1.2.0
        rdeploy deploy deploy.toml --exclude "*.map,docs/" --dry-run
    """
    overrides: Dict[str, Any] = {"revision": revision}
    if dry_run:
        overrides["dry_run"] = True
    _run(config_path, overrides, exclude)


def status_run(
    config_path: str = typer.Argument(..., help="Configuration file path (TOML)"),
    revision: Optional[str] = typer.Option(
        None, "--revision", "-r", help="Revision to compare (default: HEAD)"
    ),
):
    """
    Show the deployed revision and pending changes without deploying
    """
    _run(config_path, {"revision": revision, "dry_run": True}, None)


def _run(config_path: str, overrides: Dict[str, Any], exclude: Optional[str]) -> None:
    try:
        cfg, path = _load_config(config_path, overrides)
        target = parse_target(cfg, path)
        target.exclude.extend(split_patterns(exclude))
        params = _resolve_connection_params(cfg)

        result = execute(target, params)
        _print_result(result)

        if not result.ok:
            raise typer.Exit(result.exit_code)

    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    except DeployError as e:
        stderr_console.print(f"[red]Deploy Error:[/red] {e}")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Failed to deploy")
        stderr_console.print(f"[red]Error:[/red] Failed to deploy: {e}")
        raise typer.Exit(1)


def _load_config(config_path: str, overrides: Dict[str, Any]) -> Tuple[Dict[str, Any], Path]:
    path = Path(config_path).expanduser()
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")
    return ConfigLoader().load(toml_path=path, cli_overrides=overrides), path


def execute(target: DeployTarget, params: Dict[str, Any]) -> DeploymentResult:
    """Open the repository and the SSH session, then run one deployment"""
    history, scope = GitHistoryProvider.discover(target.local_dir)

    client = RemoteConnectionFactory().create(params)
    with client:
        stdout_console.print(
            f"[green]✓[/green] Connected to [cyan]{params['user']}@{params['host']}:{params['port']}[/cyan]"
        )
        channel = SSHRemoteChannel(client)
        target.remote_dir = channel.resolve_path(target.remote_dir)

        service = DeployService(
            history=history,
            channel=channel,
            scope=scope,
            on_plan=_print_plan if target.dry_run else None,
        )
        return service.deploy(target)


def _print_plan(mode: DeployMode, present, deleted, skipped) -> None:
    for label, style, paths in (
        ("transfer", "green", present),
        ("delete", "red", deleted),
        ("skip", "yellow", skipped),
    ):
        for p in paths[:PLAN_LIST_LIMIT]:
            stdout_console.print(f"  [{style}]{label:<8}[/{style}] {p}")
        if len(paths) > PLAN_LIST_LIMIT:
            stdout_console.print(f"  [{style}]{label:<8}[/{style}] … {len(paths) - PLAN_LIST_LIMIT} more")


def _print_result(result: DeploymentResult) -> None:
    table = Table(show_header=False, box=None)
    table.add_row("Mode", result.mode.value + (" (dry run)" if result.dry_run else ""))
    table.add_row("Revision", result.revision or "-")
    table.add_row("Previous", result.previous_revision or "none")
    table.add_row("Transferred", str(result.transferred_count))
    table.add_row("Deleted", str(result.deleted_count))
    table.add_row("Skipped", str(result.skipped_count))
    stdout_console.print(table)

    for warning in result.warnings:
        stdout_console.print(f"[yellow]⚠[/yellow] {warning}")

    if result.ok:
        stdout_console.print(f"[green]✓[/green] {result.status.value}")
    else:
        stderr_console.print(f"[red]✗[/red] {result.status.value}: {result.error}")


def _resolve_connection_params(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Resolve remote connection parameters from configuration.

    Supports:
    - ssh_config: Load configuration from ~/.ssh/config
    - host/user/port/password/key: Direct configuration
    - Missing parameters will prompt user for input
    """
    params: Dict[str, Any] = {}

    if "ssh_config" in cfg:
        entry = load_ssh_config(cfg["ssh_config"])
        params.update({k: v for k, v in entry.items() if v is not None})
        if entry.get("key_file"):
            params["key"] = entry["key_file"]

    for key in ("host", "user", "port", "password"):
        if key in cfg:
            params[key] = cfg[key]
    if "key" in cfg:
        params["key"] = cfg["key"]
    elif "key_file" in cfg:
        params["key"] = cfg["key_file"]
    params["timeout"] = cfg.get("timeout", DEFAULT_SSH_TIMEOUT)

    if not params.get("host"):
        params["host"] = prompt_provider.prompt("Enter remote host address")
    if not params.get("user"):
        params["user"] = prompt_provider.prompt("Enter SSH username", default="root")
    if "port" not in params:
        params["port"] = DEFAULT_SSH_PORT
    try:
        params["port"] = int(params["port"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid port: {params['port']!r}") from e

    if not params.get("password") and not params.get("key"):
        password_input = prompt_provider.prompt("Enter SSH password", password=True, default="")
        params["password"] = password_input if password_input else None

    return params
