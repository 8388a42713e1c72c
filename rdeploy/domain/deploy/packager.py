"""
Transfer packaging: stage present files as one archive, ship it, and
remove deleted files remotely
"""
import io
import shlex
import shutil
import tarfile
import tempfile
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Type

from ...core.constants import (
    ARCHIVE_PREFIX,
    ARCHIVE_SUFFIX,
    DELETE_BATCH_SIZE,
    GIT_MODE_EXECUTABLE,
    GIT_MODE_SYMLINK,
    REMOTE_STAGING_DIR,
)
from ...core.exceptions import (
    ChannelError,
    DeployError,
    HistoryError,
    PackagingError,
    RemoteDeletionError,
    TransferError,
)
from ...core.interfaces import ArchiveBuilder, HistoryProvider, RemoteChannel
from ...core.logging import get_logger
from ...core.utils import batched, is_safe_relpath, parent_dirs, quote_all, remote_join

logger = get_logger(__name__)


@dataclass(frozen=True)
class ArchiveHandle:
    """A staged archive waiting to be transmitted"""
    path: Path
    members: Tuple[str, ...]

    @property
    def size(self) -> int:
        return self.path.stat().st_size


class TarArchiveBuilder(ArchiveBuilder):
    """gzip tarball; git symlinks become symlink members, 100755 stays executable"""

    def build(self, files: Iterable[Tuple[str, str, bytes]], dest: Path) -> Path:
        mtime = int(time.time())
        try:
            with tarfile.open(dest, "w:gz") as tar:
                for path, mode, content in files:
                    info = tarfile.TarInfo(path)
                    info.mtime = mtime
                    if mode == GIT_MODE_SYMLINK:
                        info.type = tarfile.SYMTYPE
                        info.linkname = content.decode("utf-8", errors="surrogateescape")
                        tar.addfile(info)
                    else:
                        info.size = len(content)
                        info.mode = 0o755 if mode == GIT_MODE_EXECUTABLE else 0o644
                        tar.addfile(info, io.BytesIO(content))
        except (OSError, tarfile.TarError) as e:
            raise PackagingError(f"Failed to build archive {dest}: {e}") from e
        return dest


class TransferPackager:
    """
    Stages, transmits and removes files for one deployment run.

    Content is taken from history at the deployed revision, never from
    the working tree. Callers apply writes (transmit) before removals
    (remove_remote); only type swaps are cleared ahead of the writes.
    """

    def __init__(
        self,
        channel: RemoteChannel,
        builder: Optional[ArchiveBuilder] = None,
        staging_dir: Optional[Path] = None,
        remote_staging_dir: str = REMOTE_STAGING_DIR,
        delete_batch_size: int = DELETE_BATCH_SIZE,
    ):
        self.channel = channel
        self.builder = builder or TarArchiveBuilder()
        self.staging_dir = staging_dir
        self.remote_staging_dir = remote_staging_dir
        self.delete_batch_size = delete_batch_size

    # ============================================================
    # Staging
    # ============================================================

    def stage_present(
        self,
        paths: Iterable[str],
        history: HistoryProvider,
        revision: str,
        scope: str = "",
    ) -> Optional[ArchiveHandle]:
        """
        Build one archive holding exactly paths (relative to scope) as
        they are stored at revision.

        Returns None when there is nothing to stage.
        """
        members = tuple(sorted(set(paths)))
        if not members:
            return None

        unsafe = [p for p in members if not is_safe_relpath(p)]
        if unsafe:
            raise PackagingError(f"Refusing to package paths outside the root: {unsafe[:5]}")

        try:
            workdir = Path(tempfile.mkdtemp(prefix=ARCHIVE_PREFIX, dir=self.staging_dir))
        except OSError as e:
            raise PackagingError(f"Cannot create staging directory: {e}") from e

        dest = workdir / f"payload{ARCHIVE_SUFFIX}"
        try:
            self.builder.build(history.read_files(revision, scope, members), dest)
        except HistoryError as e:
            shutil.rmtree(workdir, ignore_errors=True)
            raise PackagingError(f"Cannot read files at {revision}: {e}") from e
        except PackagingError:
            shutil.rmtree(workdir, ignore_errors=True)
            raise

        handle = ArchiveHandle(path=dest, members=members)
        logger.info(f"Staged {len(members)} file(s) from {revision[:12]}, {handle.size} bytes")
        return handle

    def discard(self, handle: Optional[ArchiveHandle]) -> None:
        """Remove the local staging directory of handle"""
        if handle is not None:
            shutil.rmtree(handle.path.parent, ignore_errors=True)

    # ============================================================
    # Transfer
    # ============================================================

    def clear_type_changes(
        self, present: Sequence[str], deleted: Sequence[str], remote_root: str
    ) -> List[str]:
        """
        Remove remote entries that would block extraction.

        A deleted file whose path is now a directory (a -> a/b), or a
        directory whose path is now a file (a/b -> a), has to be gone
        before the archive lands. Returns the deleted paths this covers;
        they need no further removal.
        """
        present_files = set(present)
        present_dirs = {d for p in present for d in parent_dirs(p)}

        blockers = set()
        covered = []
        for path in deleted:
            if path in present_dirs:
                blockers.add(path)
                covered.append(path)
                continue
            owner = next((d for d in parent_dirs(path) if d in present_files), None)
            if owner is not None:
                blockers.add(owner)
                covered.append(path)

        if blockers:
            logger.info(f"Clearing {len(blockers)} path(s) that change between file and directory")
            self._remove(sorted(blockers), remote_root, TransferError)
        return sorted(covered)

    def transmit(self, handle: Optional[ArchiveHandle], remote_root: str) -> None:
        """
        Upload the archive and extract it into remote_root.

        Intermediate directories are created and existing files overwritten.
        A None handle is skipped entirely.
        """
        if handle is None:
            logger.debug("Nothing to transmit")
            return

        remote_archive = remote_join(
            self.remote_staging_dir, f"{ARCHIVE_PREFIX}{uuid.uuid4().hex}{ARCHIVE_SUFFIX}"
        )
        root = shlex.quote(remote_root)
        archive = shlex.quote(remote_archive)
        cmd = (
            f"mkdir -p {root} && tar -xzf {archive} -C {root}; "
            f"rc=$?; rm -f {archive}; exit $rc"
        )

        try:
            self.channel.upload(handle.path, remote_archive)
            logger.debug(f"[push] {handle.path} → {remote_archive}")
            _, err, code = self.channel.run(cmd)
        except (OSError, ChannelError) as e:
            raise TransferError(f"Transfer to {remote_root} failed: {e}") from e

        if code != 0:
            raise TransferError(
                f"Extracting archive into {remote_root} failed (exit code: {code}): {err.strip()}"
            )
        logger.info(f"Transferred {len(handle.members)} file(s) to {remote_root}")

    # ============================================================
    # Removal
    # ============================================================

    def remove_remote(self, paths: Iterable[str], remote_root: str) -> List[str]:
        """
        Remove paths (relative to remote_root) on the remote host.

        Already-absent paths are fine; a directory left where a file was
        tracked (a removed submodule) is removed with its contents.
        Returns the paths requested.
        """
        targets = sorted(set(paths))
        if not targets:
            return []
        self._remove(targets, remote_root, RemoteDeletionError)
        logger.info(f"Removed {len(targets)} path(s) from {remote_root}")
        return targets

    def _remove(
        self, targets: List[str], remote_root: str, error: Type[DeployError]
    ) -> None:
        unsafe = [p for p in targets if not is_safe_relpath(p)]
        if unsafe:
            raise error(f"Refusing to delete paths outside the root: {unsafe[:5]}")

        root = shlex.quote(remote_root)
        for batch in batched(targets, self.delete_batch_size):
            cmd = f"if [ -d {root} ]; then cd {root} && rm -rf -- {quote_all(batch)}; fi"
            try:
                _, err, code = self.channel.run(cmd)
            except (OSError, ChannelError) as e:
                raise error(f"Remote removal failed: {e}") from e
            if code != 0:
                raise error(f"Remote removal failed (exit code: {code}): {err.strip()}")
            for path in batch:
                logger.debug(f"[rm] {remote_join(remote_root, path)}")
