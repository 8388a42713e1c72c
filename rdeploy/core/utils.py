"""
Core utility functions
"""
import re
import shlex
import posixpath
import paramiko
from pathlib import Path
from typing import Dict, Any, Iterable, List, Optional

from .constants import SSH_CONFIG_PATH, DEFAULT_SSH_PORT
from .exceptions import ConfigError


_REVISION_RE = re.compile(r"^[0-9a-f]{4,64}$")


# ============================================================
# SSH Config Management
# ============================================================

def load_ssh_config(hostname: str) -> Dict[str, Any]:
    """
    Load configuration for specified Host from ~/.ssh/config.

    Args:
        hostname: Host name in SSH configuration

    Returns:
        Dictionary containing host, user, port, key_file

    Raises:
        ConfigError: If ~/.ssh/config doesn't exist
    """
    config_path = Path(SSH_CONFIG_PATH).expanduser()
    if not config_path.exists():
        raise ConfigError(f"{SSH_CONFIG_PATH} does not exist")

    ssh_config = paramiko.SSHConfig.from_path(str(config_path))
    entry = ssh_config.lookup(hostname)

    return {
        "host": entry.get("hostname", hostname),
        "user": entry.get("user", None),
        "port": int(entry.get("port", DEFAULT_SSH_PORT)),
        "key_file": entry.get("identityfile", [None])[0],
    }


# ============================================================
# Revisions
# ============================================================

def is_revision(value: Optional[str]) -> bool:
    """Check if value looks like a full or abbreviated object id"""
    return bool(value) and _REVISION_RE.match(value) is not None


# ============================================================
# Path Utilities
# ============================================================

def normalize_relpath(path: str) -> str:
    """
    Normalize a path relative to the deployment root.

    Backslashes become forward slashes; leading "./" and "/" are dropped.
    """
    p = path.replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    p = p.lstrip("/")
    if p in ("", "."):
        return ""
    return posixpath.normpath(p)


def is_safe_relpath(path: str) -> bool:
    """Relative, non-empty, and never escapes or names its root"""
    if not path or path.startswith("/"):
        return False
    return not {"", ".", ".."} & set(path.split("/"))


def parent_dirs(path: str) -> List[str]:
    """Strict ancestors of a relative path, outermost first"""
    parts = path.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]


def remote_join(root: str, name: str) -> str:
    return posixpath.join(root.rstrip("/") or "/", name)


def quote_all(items: Iterable[str]) -> str:
    return " ".join(shlex.quote(i) for i in items)


def batched(items: List[str], size: int) -> Iterable[List[str]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def split_patterns(value: Any) -> List[str]:
    """
    Split user exclusion input.

    Accepts a comma-separated string or a list of patterns. Blank entries
    are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = list(value)
        for item in parts:
            if not isinstance(item, str):
                raise ConfigError(f"Exclude pattern must be a string, got: {item!r}")
    else:
        raise ConfigError(f"Unsupported exclude value: {value!r}")
    return [p.strip() for p in parts if p.strip()]
