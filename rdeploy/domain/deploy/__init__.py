"""
Deploy domain module
"""
from .models import (
    ChangeKind,
    DeployMode,
    DeployState,
    DeployStatus,
    DeploymentResult,
    DeployTarget,
    DiffResult,
    HookCommand,
    PathEntry,
)
from .ignore import IgnoreRule, IgnoreRuleSet, is_excluded
from .diff import RevisionDiffEngine
from .checkpoint import RemoteCheckpointStore
from .packager import ArchiveHandle, TarArchiveBuilder, TransferPackager
from .hooks import run_hook
from .service import DeployService

__all__ = [
    "ChangeKind",
    "DeployMode",
    "DeployState",
    "DeployStatus",
    "DeploymentResult",
    "DeployTarget",
    "DiffResult",
    "HookCommand",
    "PathEntry",
    "IgnoreRule",
    "IgnoreRuleSet",
    "is_excluded",
    "RevisionDiffEngine",
    "RemoteCheckpointStore",
    "ArchiveHandle",
    "TarArchiveBuilder",
    "TransferPackager",
    "run_hook",
    "DeployService",
]
