"""
Core infrastructure layer
"""
from .client import RemoteClient, ClientConfig
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import (
    ArchiveBuilder,
    CheckpointStore,
    ConnectionFactory,
    HistoryProvider,
    PromptProvider,
    RemoteChannel,
)
from .utils import load_ssh_config, is_revision, normalize_relpath, split_patterns

__all__ = [
    "RemoteClient",
    "ClientConfig",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "ArchiveBuilder",
    "CheckpointStore",
    "ConnectionFactory",
    "HistoryProvider",
    "PromptProvider",
    "RemoteChannel",
    "load_ssh_config",
    "is_revision",
    "normalize_relpath",
    "split_patterns",
]
