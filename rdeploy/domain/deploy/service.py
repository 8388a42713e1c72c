"""
Deploy domain service - orchestration
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ...core.constants import CHECKPOINT_FILE
from ...core.exceptions import (
    ChannelError,
    CheckpointWriteError,
    DeployError,
    HistoryError,
    HookError,
    PackagingError,
    RemoteDeletionError,
    TransferError,
)
from ...core.interfaces import CheckpointStore, HistoryProvider, RemoteChannel
from ...core.logging import get_logger
from .checkpoint import RemoteCheckpointStore
from .diff import RevisionDiffEngine
from .hooks import run_hooks, run_hooks_best_effort
from .ignore import IgnoreRuleSet, is_excluded
from .models import (
    DeploymentResult,
    DeployMode,
    DeployState,
    DeployStatus,
    DeployTarget,
    DiffResult,
)
from .packager import ArchiveHandle, TransferPackager

logger = get_logger(__name__)


@dataclass
class _Run:
    """Mutable bookkeeping for one run; frozen into a DeploymentResult at the end"""
    dry_run: bool
    state: DeployState = DeployState.INIT
    mode: DeployMode = DeployMode.NOOP
    revision: Optional[str] = None
    previous: Optional[str] = None
    transferred: Tuple[str, ...] = ()
    deleted: Tuple[str, ...] = ()
    skipped: Tuple[str, ...] = ()
    warnings: List[str] = field(default_factory=list)


def partition(
    diff: DiffResult, rules: IgnoreRuleSet
) -> Tuple[Tuple[str, ...], Tuple[str, ...], Tuple[str, ...]]:
    """Split a diff into (present, deleted, skipped) after applying rules"""
    present, deleted, skipped = [], [], []
    for entry in diff:
        if is_excluded(entry.path, rules):
            logger.debug(f"Ignoring (from rules): {entry.path}")
            skipped.append(entry.path)
        elif entry.kind.is_present:
            present.append(entry.path)
        else:
            deleted.append(entry.path)
    return tuple(present), tuple(deleted), tuple(skipped)


class DeployService:
    """
    Deploy service - pure orchestration.

    Sequence: pre-deploy hooks → checkpoint read → diff → filter →
    stage → transmit → remove → checkpoint write → post-deploy hooks.
    The checkpoint is written only when every earlier step succeeded, so
    a failed run is retried from the last good checkpoint.
    """

    def __init__(
        self,
        history: HistoryProvider,
        channel: RemoteChannel,
        scope: str = "",
        checkpoint_store: Optional[CheckpointStore] = None,
        packager: Optional[TransferPackager] = None,
        checkpoint_file: str = CHECKPOINT_FILE,
        on_state: Optional[Callable[[DeployState], None]] = None,
        on_plan: Optional[Callable[[DeployMode, Tuple[str, ...], Tuple[str, ...], Tuple[str, ...]], None]] = None,
    ):
        """
        Initialize deploy service.

        Args:
            history: Version control history
            channel: Open remote session
            scope: Local root relative to the repository top level
            checkpoint_store: Defaults to the remote marker file
            packager: Defaults to a tarball packager over channel
            checkpoint_file: Marker name, always excluded from transfer
            on_state: Callback on each state transition
            on_plan: Callback once the filtered plan is known
                (mode, present, deleted, skipped)
        """
        self.history = history
        self.channel = channel
        self.scope = scope
        self.checkpoint_file = checkpoint_file
        self.checkpoint_store = checkpoint_store or RemoteCheckpointStore(channel, checkpoint_file)
        self.packager = packager or TransferPackager(channel)
        self.engine = RevisionDiffEngine(history)
        self.on_state = on_state
        self.on_plan = on_plan

    def deploy(self, target: DeployTarget) -> DeploymentResult:
        """
        Execute one deployment run.

        Never raises for deployment failures; the returned result carries
        the terminal status.
        """
        run = _Run(dry_run=target.dry_run)
        local_root = Path(target.local_dir)
        remote_root = target.remote_dir
        handle: Optional[ArchiveHandle] = None

        try:
            # Step 1: Pre-deploy commands and the revision to deploy
            if target.pre_deploy and not target.dry_run:
                run_hooks(target.pre_deploy, local_root, remote_root, self.channel)
            run.revision = self.history.resolve(target.revision)

            # Step 2: Checkpoint
            run.previous = self.checkpoint_store.read(remote_root)
            self._enter(run, DeployState.CHECKPOINT_READ)
            logger.info(f"Deploying {run.revision} (previous: {run.previous or 'none'})")

            # Step 3: Diff
            diff = self.engine.diff(run.previous, run.revision, self.scope)
            run.mode = diff.mode
            self._enter(run, DeployState.DIFF_COMPUTED)

        except (HookError, HistoryError) as e:
            return self._fail(run, DeployStatus.FAILED_PRECHECK, e)

        try:
            if diff.mode is DeployMode.NOOP:
                # Step 4a: Nothing changed, keep the marker current
                self._enter(run, DeployState.NOOP)
                if self.on_plan:
                    self.on_plan(diff.mode, (), (), ())
                if target.dry_run:
                    return self._finish(run)
                self.checkpoint_store.write(remote_root, run.revision)
                self._enter(run, DeployState.CHECKPOINT_WRITTEN)
                return self._finish(run, target)

            # Step 4b: Filter
            rules = IgnoreRuleSet.load(local_root, target.exclude, self.checkpoint_file)
            present, deleted, skipped = partition(diff, rules)
            run.skipped = skipped
            logger.info(
                f"{diff.mode.value}: {len(present)} to transfer, "
                f"{len(deleted)} to delete, {len(skipped)} skipped"
            )
            if self.on_plan:
                self.on_plan(diff.mode, present, deleted, skipped)

            if target.dry_run:
                run.transferred, run.deleted = present, deleted
                return self._finish(run)

            # Step 5: Package and transfer (writes before removals)
            self._enter(run, DeployState.PACKAGING)
            handle = self.packager.stage_present(present, self.history, run.revision, self.scope)
            self._enter(run, DeployState.TRANSFERRING)
            cleared = self.packager.clear_type_changes(present, deleted, remote_root)
            self.packager.transmit(handle, remote_root)
            run.transferred = present

            # Step 6: Remove deleted files
            self._enter(run, DeployState.CLEANING)
            self.packager.remove_remote(set(deleted) - set(cleared), remote_root)
            run.deleted = deleted

            # Step 7: Record the deployed revision
            self.checkpoint_store.write(remote_root, run.revision)
            self._enter(run, DeployState.CHECKPOINT_WRITTEN)
            return self._finish(run, target)

        except (PackagingError, TransferError, ChannelError) as e:
            return self._fail(run, DeployStatus.FAILED_TRANSFER, e)
        except (RemoteDeletionError, CheckpointWriteError) as e:
            return self._fail(run, DeployStatus.FAILED_CLEANUP, e)
        finally:
            self.packager.discard(handle)

    # ============================================================
    # Helpers
    # ============================================================

    def _enter(self, run: _Run, state: DeployState) -> None:
        logger.debug(f"[state] {run.state.value} → {state.value}")
        run.state = state
        if self.on_state:
            self.on_state(state)

    def _finish(self, run: _Run, target: Optional[DeployTarget] = None) -> DeploymentResult:
        # Post-deploy commands never change the outcome
        if target is not None and target.post_deploy:
            run.warnings.extend(
                run_hooks_best_effort(
                    target.post_deploy, Path(target.local_dir), target.remote_dir, self.channel
                )
            )
        self._enter(run, DeployState.DONE)
        return self._result(run, DeployStatus.SUCCESS)

    def _fail(self, run: _Run, status: DeployStatus, error: DeployError) -> DeploymentResult:
        logger.error(f"Deployment failed in {run.state.value} ({status.value}): {error}")
        failed_in = run.state
        self._enter(run, DeployState.FAILED)
        return self._result(run, status, error=f"{failed_in.value}: {error}")

    def _result(
        self, run: _Run, status: DeployStatus, error: Optional[str] = None
    ) -> DeploymentResult:
        return DeploymentResult(
            mode=run.mode,
            status=status,
            state=run.state,
            revision=run.revision,
            previous_revision=run.previous,
            transferred=run.transferred,
            deleted=run.deleted,
            skipped=run.skipped,
            error=error,
            warnings=tuple(run.warnings),
            dry_run=run.dry_run,
        )
