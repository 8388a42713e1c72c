"""
Pre/post deploy command execution
"""
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ...core.exceptions import ChannelError, HookError
from ...core.interfaces import RemoteChannel
from ...core.logging import get_logger
from .models import HookCommand

logger = get_logger(__name__)


# ============================================================
# Command Execution
# ============================================================

def exec_local(cmd: str, cwd: Path, timeout: float) -> Tuple[str, str, int]:
    """
    Run a shell command locally.

    Raises:
        HookError: If the command cannot start or exceeds timeout
    """
    try:
        result = subprocess.run(
            cmd,
            shell=True,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise HookError(f"Command timed out after {timeout}s: {cmd}") from e
    except OSError as e:
        raise HookError(f"Cannot run command {cmd!r}: {e}") from e
    return result.stdout, result.stderr, result.returncode


def exec_remote(
    channel: RemoteChannel, cmd: str, remote_root: str, timeout: float
) -> Tuple[str, str, int]:
    """
    Run a shell command on the remote host inside remote_root.

    Raises:
        HookError: If the session fails or the command exceeds timeout
    """
    root = shlex.quote(remote_root)
    full_cmd = f"mkdir -p {root} && cd {root} && {cmd}"
    try:
        return channel.run(full_cmd, timeout=timeout)
    except TimeoutError as e:
        raise HookError(f"Remote command timed out after {timeout}s: {cmd}") from e
    except (OSError, ChannelError) as e:
        raise HookError(f"Remote command failed to run {cmd!r}: {e}") from e


def run_hook(
    hook: HookCommand,
    local_root: Path,
    remote_root: str,
    channel: Optional[RemoteChannel] = None,
) -> str:
    """
    Run one hook, returning its stdout.

    Raises:
        HookError: On non-zero exit, timeout or a failed session
    """
    logger.info(f"[run:{hook.on}] {hook.run}")
    if hook.on == "local":
        out, err, code = exec_local(hook.run, local_root, hook.timeout)
    else:
        if channel is None:
            raise HookError(f"No remote session for command: {hook.run}")
        out, err, code = exec_remote(channel, hook.run, remote_root, hook.timeout)

    if out.strip():
        logger.debug(out.rstrip())
    if code != 0:
        raise HookError(
            f"Command failed: {hook.run} (exit code: {code})"
            + (f"\nstderr:\n{err.rstrip()}" if err.strip() else "")
        )
    return out


def run_hooks(
    hooks: List[HookCommand],
    local_root: Path,
    remote_root: str,
    channel: Optional[RemoteChannel] = None,
) -> None:
    """Run hooks in order, stopping at the first failure"""
    for hook in hooks:
        run_hook(hook, local_root, remote_root, channel)


def run_hooks_best_effort(
    hooks: List[HookCommand],
    local_root: Path,
    remote_root: str,
    channel: Optional[RemoteChannel] = None,
) -> List[str]:
    """Run every hook; failures are logged and returned, never raised"""
    warnings = []
    for hook in hooks:
        try:
            run_hook(hook, local_root, remote_root, channel)
        except HookError as e:
            logger.warning(str(e))
            warnings.append(str(e))
    return warnings
