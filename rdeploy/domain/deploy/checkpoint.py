"""
Remote deployment checkpoint
"""
import shlex
from typing import Optional

from ...core.constants import CHECKPOINT_FILE, CHECKPOINT_TMP_SUFFIX
from ...core.exceptions import ChannelError, CheckpointUnreadable, CheckpointWriteError
from ...core.interfaces import CheckpointStore, RemoteChannel
from ...core.logging import get_logger
from ...core.utils import is_revision, remote_join

logger = get_logger(__name__)


def parse_checkpoint(text: str) -> str:
    """Extract the revision from marker file content"""
    lines = text.strip().splitlines()
    revision = lines[0].strip() if lines else ""
    if len(lines) > 1 or not is_revision(revision):
        raise CheckpointUnreadable(f"Malformed checkpoint content: {text[:80]!r}")
    return revision


class RemoteCheckpointStore(CheckpointStore):
    """
    Single-line marker file under the remote deployment root.

    Writes go to a temp file that is renamed over the marker, so a reader
    sees either the old revision or the new one.
    """

    def __init__(self, channel: RemoteChannel, marker: str = CHECKPOINT_FILE):
        self.channel = channel
        self.marker = marker

    def path(self, remote_root: str) -> str:
        return remote_join(remote_root, self.marker)

    def read(self, remote_root: str) -> Optional[str]:
        path = self.path(remote_root)
        try:
            return parse_checkpoint(self.channel.read_text(path))
        except FileNotFoundError:
            logger.debug(f"No checkpoint at {path}")
        except CheckpointUnreadable as e:
            logger.warning(f"{e}; treating as no checkpoint")
        except (OSError, ChannelError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read checkpoint {path}: {e}; treating as no checkpoint")
        return None

    def write(self, remote_root: str, revision: str) -> None:
        if not is_revision(revision):
            raise CheckpointWriteError(f"Refusing to record malformed revision: {revision!r}")

        path = self.path(remote_root)
        tmp = path + CHECKPOINT_TMP_SUFFIX
        try:
            _, err, code = self.channel.run(f"mkdir -p {shlex.quote(remote_root)}")
            if code != 0:
                raise CheckpointWriteError(f"Cannot create {remote_root}: {err.strip()}")
            self.channel.write_text(tmp, revision + "\n")
            self.channel.rename(tmp, path)
        except (OSError, ChannelError) as e:
            raise CheckpointWriteError(f"Cannot write checkpoint {path}: {e}") from e
        logger.debug(f"Checkpoint {path} -> {revision}")
