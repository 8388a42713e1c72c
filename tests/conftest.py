"""Shared fixtures and in-memory fakes for deploy tests."""

import tarfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from rdeploy.core.exceptions import CheckpointWriteError, HistoryError
from rdeploy.core.interfaces import CheckpointStore, HistoryProvider, RemoteChannel

R1 = "1111111111111111111111111111111111111111"
R2 = "2222222222222222222222222222222222222222"
R3 = "3333333333333333333333333333333333333333"


class FakeHistory(HistoryProvider):
    """History made of {revision: {path: content}} snapshots."""

    def __init__(
        self,
        snapshots: Dict[str, Dict[str, str]],
        head: str,
        modes: Optional[Dict[str, str]] = None,
    ):
        self.snapshots = snapshots
        self.head = head
        self.modes = modes or {}
        self.reads: List[Tuple[str, str]] = []

    def resolve(self, ref: str) -> str:
        if ref == "HEAD":
            return self.head
        if ref in self.snapshots:
            return ref
        raise HistoryError(f"Cannot resolve revision: {ref}")

    def has_revision(self, revision: str) -> bool:
        return revision in self.snapshots

    def _under(self, revision: str, scope: str) -> Dict[str, str]:
        prefix = scope.rstrip("/") + "/" if scope else ""
        return {p: c for p, c in self.snapshots[revision].items() if p.startswith(prefix)}

    def list_files(self, revision: str, scope: str) -> List[str]:
        return sorted(self._under(revision, scope))

    def changes(self, previous: str, current: str, scope: str) -> List[Tuple[str, str]]:
        old = self._under(previous, scope)
        new = self._under(current, scope)
        out = []
        for path in sorted(set(old) | set(new)):
            if path not in old:
                out.append(("A", path))
            elif path not in new:
                out.append(("D", path))
            elif old[path] != new[path]:
                out.append(("M", path))
        return out

    def read_files(self, revision: str, scope: str, paths) -> List[Tuple[str, str, bytes]]:
        prefix = scope.rstrip("/") + "/" if scope else ""
        tree = self.snapshots[revision]
        out = []
        for rel in paths:
            full = prefix + rel
            if full not in tree:
                raise HistoryError(f"{rel} is not a file at {revision}")
            self.reads.append((revision, rel))
            out.append((rel, self.modes.get(full, "100644"), tree[full].encode()))
        return out


class FakeChannel(RemoteChannel):
    """
    Records commands and uploads; remote files live in a dict.

    fail_on maps a command substring to (exit_code, stderr); raise_on maps
    a command substring to an exception instance.
    """

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.commands: List[str] = []
        self.timeouts: List[Optional[float]] = []
        self.uploads: Dict[str, List[str]] = {}
        self.contents: Dict[str, bytes] = {}
        self.links: Dict[str, str] = {}
        self.events: List[str] = []
        self.fail_on: Dict[str, Tuple[int, str]] = {}
        self.raise_on: Dict[str, Exception] = {}
        self.upload_error: Optional[Exception] = None
        self.write_error: Optional[Exception] = None

    def run(self, cmd: str, timeout: Optional[float] = None) -> Tuple[str, str, int]:
        self.commands.append(cmd)
        self.timeouts.append(timeout)
        self.events.append(f"run:{cmd}")
        for needle, exc in self.raise_on.items():
            if needle in cmd:
                raise exc
        for needle, (code, err) in self.fail_on.items():
            if needle in cmd:
                return "", err, code
        return "", "", 0

    def upload(self, local: Path, remote: str) -> None:
        if self.upload_error is not None:
            raise self.upload_error
        with tarfile.open(local, "r:gz") as tar:
            self.uploads[remote] = sorted(tar.getnames())
            for member in tar.getmembers():
                if member.issym():
                    self.links[member.name] = member.linkname
                elif member.isfile():
                    self.contents[member.name] = tar.extractfile(member).read()
        self.events.append(f"upload:{remote}")

    def read_text(self, remote: str) -> str:
        if remote not in self.files:
            raise FileNotFoundError(2, "No such file", remote)
        return self.files[remote]

    def write_text(self, remote: str, text: str) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.files[remote] = text

    def rename(self, src: str, dst: str) -> None:
        self.files[dst] = self.files.pop(src)

    @property
    def uploaded_paths(self) -> List[str]:
        return sorted(p for names in self.uploads.values() for p in names)


class MemoryCheckpointStore(CheckpointStore):
    """Checkpoint kept in a dict keyed by remote root."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})
        self.writes: List[Tuple[str, str]] = []
        self.fail_writes = False

    def read(self, remote_root: str) -> Optional[str]:
        return self.values.get(remote_root)

    def write(self, remote_root: str, revision: str) -> None:
        if self.fail_writes:
            raise CheckpointWriteError("disk full")
        self.writes.append((remote_root, revision))
        self.values[remote_root] = revision


def write_tree(root: Path, files: Dict[str, str]) -> None:
    """Materialize {relative path: content} under root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def store():
    return MemoryCheckpointStore()


@pytest.fixture
def local_root(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    return root
