"""
Unified exception definitions
"""


class DeployError(Exception):
    """Base exception class"""
    pass


class ConfigError(DeployError):
    """Configuration error"""
    pass


class ChannelError(DeployError):
    """Remote channel (SSH session) error"""
    pass


class HistoryError(DeployError):
    """Version control history error"""
    pass


class DiffUnavailable(HistoryError):
    """Referenced revision is not present in history"""
    pass


class CheckpointError(DeployError):
    """Checkpoint error"""
    pass


class CheckpointUnreadable(CheckpointError):
    """Checkpoint missing or malformed"""
    pass


class CheckpointWriteError(CheckpointError):
    """Checkpoint could not be written after content was transferred"""
    pass


class PackagingError(DeployError):
    """Archive staging error"""
    pass


class TransferError(DeployError):
    """Transfer error"""
    pass


class RemoteDeletionError(DeployError):
    """Remote removal error"""
    pass


class HookError(DeployError):
    """Pre/post deploy command error"""
    pass
