"""
Deploy domain models
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional, Tuple


class ChangeKind(str, Enum):
    """Classification of a changed path"""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"

    @property
    def is_present(self) -> bool:
        return self is not ChangeKind.DELETED


class DeployMode(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"
    NOOP = "no-op"


class DeployStatus(str, Enum):
    SUCCESS = "success"
    FAILED_PRECHECK = "failed-precheck"
    FAILED_TRANSFER = "failed-transfer"
    FAILED_CLEANUP = "failed-cleanup"


class DeployState(str, Enum):
    """Orchestrator states, in happy-path order"""
    INIT = "init"
    CHECKPOINT_READ = "checkpoint-read"
    DIFF_COMPUTED = "diff-computed"
    NOOP = "noop"
    PACKAGING = "packaging"
    TRANSFERRING = "transferring"
    CLEANING = "cleaning"
    CHECKPOINT_WRITTEN = "checkpoint-written"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PathEntry:
    """A path relative to the deployment root and how it changed"""
    path: str
    kind: ChangeKind


@dataclass(frozen=True)
class DiffResult:
    """
    Output of the diff engine.

    Entries are sorted by path and each path appears once.
    """
    mode: DeployMode
    entries: Tuple[PathEntry, ...] = ()

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def present(self) -> List[str]:
        return [e.path for e in self.entries if e.kind.is_present]

    @property
    def deleted(self) -> List[str]:
        return [e.path for e in self.entries if e.kind is ChangeKind.DELETED]


@dataclass
class HookCommand:
    """
    Command run before or after a deployment.

    Attributes:
        run: Shell command line
        on: Where to run it - "remote" (inside the remote root) or "local"
            (inside the local root)
        timeout: Seconds before the command is aborted
    """
    run: str
    on: Literal["remote", "local"] = "remote"
    timeout: float = 300


@dataclass
class DeployTarget:
    """
    What to deploy and where.

    Attributes:
        local_dir: Local deployment root (inside a git working tree)
        remote_dir: Absolute remote deployment root
        revision: Ref to deploy, resolved against history
        exclude: User exclusion patterns, exclude-only
        dry_run: Plan only, never write to the remote
    """
    local_dir: Path
    remote_dir: str
    revision: str = "HEAD"
    exclude: List[str] = field(default_factory=list)
    dry_run: bool = False
    pre_deploy: List[HookCommand] = field(default_factory=list)
    post_deploy: List[HookCommand] = field(default_factory=list)


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of a single run; built once when the run ends"""
    mode: DeployMode
    status: DeployStatus
    state: DeployState
    revision: Optional[str] = None
    previous_revision: Optional[str] = None
    transferred: Tuple[str, ...] = ()
    deleted: Tuple[str, ...] = ()
    skipped: Tuple[str, ...] = ()
    error: Optional[str] = None
    warnings: Tuple[str, ...] = ()
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.status is DeployStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    @property
    def transferred_count(self) -> int:
        return len(self.transferred)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)
