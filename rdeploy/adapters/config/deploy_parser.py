"""
Deploy configuration parser
"""
from pathlib import Path
from typing import Dict, Any, List, Optional

from ...core.constants import DEFAULT_COMMAND_TIMEOUT, DEFAULT_REVISION
from ...core.exceptions import ConfigError
from ...core.utils import split_patterns
from ...domain.deploy import DeployTarget, HookCommand


def resolve_local_dir(cfg: Dict[str, Any], config_file_path: Optional[Path]) -> Path:
    """
    Resolve the local deployment root.

    Relative paths are taken relative to the configuration file directory
    (or the working directory without one).
    """
    local_dir = Path(str(cfg.get("local_dir", "."))).expanduser()
    if not local_dir.is_absolute() and config_file_path:
        local_dir = config_file_path.parent / local_dir
    return local_dir.resolve()


def parse_hooks(cfg: Dict[str, Any], key: str) -> List[HookCommand]:
    """
    Parse a hook list.

    Each entry is either a command string (run remotely) or a table with
    run, on ("remote" | "local") and timeout.
    """
    if key not in cfg:
        return []

    default_timeout = cfg.get("command_timeout", DEFAULT_COMMAND_TIMEOUT)
    entries = cfg[key]
    if isinstance(entries, (str, dict)):
        entries = [entries]
    if not isinstance(entries, list):
        raise ConfigError(f"{key} must be a list of commands")

    hooks = []
    for entry in entries:
        if isinstance(entry, str):
            entry = {"run": entry}
        if not isinstance(entry, dict) or not isinstance(entry.get("run"), str) or not entry["run"].strip():
            raise ConfigError(f"{key} entry needs a 'run' command: {entry!r}")

        on = entry.get("on", "remote")
        if on not in ("remote", "local"):
            raise ConfigError(f"{key} entry 'on' must be 'remote' or 'local', got: {on!r}")

        timeout = entry.get("timeout", default_timeout)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
            raise ConfigError(f"{key} entry timeout must be a positive number, got: {timeout!r}")

        hooks.append(HookCommand(run=entry["run"], on=on, timeout=float(timeout)))

    return hooks


def parse_target(cfg: Dict[str, Any], config_file_path: Optional[Path] = None) -> DeployTarget:
    """Build the deploy target from configuration"""
    remote_dir = cfg.get("remote_dir")
    if not isinstance(remote_dir, str) or not remote_dir.strip():
        raise ConfigError("remote_dir is required")
    remote_dir = remote_dir.strip()
    if remote_dir.rstrip("/") == "":
        raise ConfigError("remote_dir must not be the filesystem root")

    revision = str(cfg.get("revision") or DEFAULT_REVISION)

    return DeployTarget(
        local_dir=resolve_local_dir(cfg, config_file_path),
        remote_dir=remote_dir.rstrip("/"),
        revision=revision,
        exclude=split_patterns(cfg.get("exclude")),
        dry_run=bool(cfg.get("dry_run", False)),
        pre_deploy=parse_hooks(cfg, "pre_deploy"),
        post_deploy=parse_hooks(cfg, "post_deploy"),
    )
