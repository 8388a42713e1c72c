"""
SSH-backed remote channel
"""
from pathlib import Path
from typing import Optional, Tuple

import paramiko

from ...core.client import RemoteClient
from ...core.exceptions import ChannelError
from ...core.interfaces import RemoteChannel
from ...core.logging import get_logger

logger = get_logger(__name__)


class SSHRemoteChannel(RemoteChannel):
    """
    RemoteChannel over a connected RemoteClient.

    paramiko protocol errors surface as ChannelError; SFTP file errors stay
    OSError (FileNotFoundError for missing files); command timeouts surface
    as TimeoutError.
    """

    def __init__(self, client: RemoteClient):
        self.client = client

    def run(self, cmd: str, timeout: Optional[float] = None) -> Tuple[str, str, int]:
        logger.debug(f"[exec] {cmd}")
        try:
            return self.client.exec_with_code(cmd, timeout=timeout)
        except paramiko.SSHException as e:
            raise ChannelError(f"Remote command failed: {e}") from e

    def upload(self, local: Path, remote: str) -> None:
        try:
            self.client.open_sftp().put(Path(local).as_posix(), remote)
        except paramiko.SSHException as e:
            raise ChannelError(f"Upload to {remote} failed: {e}") from e

    def read_text(self, remote: str) -> str:
        try:
            with self.client.open_sftp().open(remote, "r") as f:
                return f.read().decode("utf-8")
        except paramiko.SSHException as e:
            raise ChannelError(f"Read of {remote} failed: {e}") from e

    def write_text(self, remote: str, text: str) -> None:
        try:
            with self.client.open_sftp().open(remote, "w") as f:
                f.write(text.encode("utf-8"))
        except paramiko.SSHException as e:
            raise ChannelError(f"Write of {remote} failed: {e}") from e

    def rename(self, src: str, dst: str) -> None:
        try:
            self.client.open_sftp().posix_rename(src, dst)
        except paramiko.SSHException as e:
            raise ChannelError(f"Rename {src} → {dst} failed: {e}") from e

    def home(self) -> str:
        out, err, code = self.run('printf %s "$HOME"')
        home = out.strip()
        if code != 0 or not home:
            raise ChannelError(f"Cannot determine remote home directory: {err.strip() or 'HOME is empty'}")
        return home

    def resolve_path(self, path: str) -> str:
        """Expand a leading ~ to the remote $HOME"""
        if path == "~" or path.startswith("~/"):
            return self.home() + path[1:]
        return path
