"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple


class HistoryProvider(ABC):
    """Version control history interface"""

    @abstractmethod
    def resolve(self, ref: str) -> str:
        """Resolve a ref (branch, tag, HEAD, short id) to a full revision"""
        pass

    @abstractmethod
    def has_revision(self, revision: str) -> bool:
        """Check if a revision is present in history"""
        pass

    @abstractmethod
    def list_files(self, revision: str, scope: str) -> List[str]:
        """List every file under scope at revision (repository-relative)"""
        pass

    @abstractmethod
    def changes(self, previous: str, current: str, scope: str) -> List[Tuple[str, str]]:
        """
        List (status, path) pairs changed between two revisions under scope.

        Status is a single letter: A, M, D or another git status letter.
        """
        pass

    @abstractmethod
    def read_files(self, revision: str, scope: str, paths: Iterable[str]) -> List[Tuple[str, str, bytes]]:
        """
        Read files as stored at revision.

        paths are relative to scope. Returns (path, mode, content) triples,
        mode being the git file mode ("100644", "100755", "120000").
        Raises HistoryError if a path is not a file at revision.
        """
        pass


class RemoteChannel(ABC):
    """Authenticated remote session interface"""

    @abstractmethod
    def run(self, cmd: str, timeout: Optional[float] = None) -> Tuple[str, str, int]:
        """Run a remote command, return (stdout, stderr, exit_code)"""
        pass

    @abstractmethod
    def upload(self, local: Path, remote: str) -> None:
        """Upload a local file to a remote path"""
        pass

    @abstractmethod
    def read_text(self, remote: str) -> str:
        """Read a remote text file, raising OSError if missing"""
        pass

    @abstractmethod
    def write_text(self, remote: str, text: str) -> None:
        """Write a remote text file"""
        pass

    @abstractmethod
    def rename(self, src: str, dst: str) -> None:
        """Rename a remote file, replacing dst"""
        pass


class CheckpointStore(ABC):
    """Deployment checkpoint storage interface"""

    @abstractmethod
    def read(self, remote_root: str) -> Optional[str]:
        """Read the last deployed revision, None if there is none"""
        pass

    @abstractmethod
    def write(self, remote_root: str, revision: str) -> None:
        """Record revision as deployed"""
        pass


class ArchiveBuilder(ABC):
    """Archive building interface"""

    @abstractmethod
    def build(self, files: Iterable[Tuple[str, str, bytes]], dest: Path) -> Path:
        """Pack (path, mode, content) triples into an archive at dest"""
        pass


class ConnectionFactory(ABC):
    """SSH connection factory interface"""

    @abstractmethod
    def create(self, params: Dict[str, Any]) -> Any:
        """Create and connect SSH client"""
        pass


class PromptProvider(ABC):
    """User prompt interface"""

    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass
