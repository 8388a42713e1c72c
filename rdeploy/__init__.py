"""
rdeploy - incremental git-driven deployment over SSH

Pushes a directory of a git working tree to a remote host, sending only
what changed since the last deployed revision:
- Diffs the deployed revision (recorded on the remote) against the current one
- Honors .gitignore plus user exclusion patterns
- Ships present files as one archive and removes deleted files remotely
- Records the new revision only after everything landed
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    RemoteClient,
    ClientConfig,
    load_ssh_config,
)

# Export domain models and services
from .domain.deploy import (
    ChangeKind,
    DeployMode,
    DeployStatus,
    DeploymentResult,
    DeployTarget,
    HookCommand,
    PathEntry,
    IgnoreRuleSet,
    is_excluded,
    RevisionDiffEngine,
    RemoteCheckpointStore,
    TransferPackager,
    DeployService,
)

# Export infrastructure
from .infrastructure.git import GitHistoryProvider
from .infrastructure.remote import SSHRemoteChannel

__all__ = [
    # Version
    "__version__",
    # Client
    "RemoteClient",
    "ClientConfig",
    "load_ssh_config",
    # Models
    "ChangeKind",
    "DeployMode",
    "DeployStatus",
    "DeploymentResult",
    "DeployTarget",
    "HookCommand",
    "PathEntry",
    # Engine
    "IgnoreRuleSet",
    "is_excluded",
    "RevisionDiffEngine",
    "RemoteCheckpointStore",
    "TransferPackager",
    "DeployService",
    # Infrastructure
    "GitHistoryProvider",
    "SSHRemoteChannel",
]
