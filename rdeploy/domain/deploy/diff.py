"""
Revision diff engine
"""
from typing import Dict, Optional

from ...core.exceptions import DiffUnavailable
from ...core.interfaces import HistoryProvider
from ...core.logging import get_logger
from ...core.utils import normalize_relpath
from .models import ChangeKind, DeployMode, DiffResult, PathEntry

logger = get_logger(__name__)

# Git status letters; anything else (T, U, X, ...) is treated as modified.
# Renames and copies never show up: history providers diff without rename
# detection, so a rename is a delete plus an add.
_STATUS_KINDS = {
    "A": ChangeKind.ADDED,
    "M": ChangeKind.MODIFIED,
    "D": ChangeKind.DELETED,
}


def scope_relative(path: str, scope: str) -> Optional[str]:
    """
    Rewrite a repository-relative path relative to scope.

    Returns None when the path lies outside scope.
    """
    path = normalize_relpath(path)
    scope = normalize_relpath(scope)
    if not scope:
        return path or None
    if path == scope or not path.startswith(scope + "/"):
        return None
    return path[len(scope) + 1:]


def _merge(entries: Dict[str, ChangeKind], path: str, kind: ChangeKind) -> None:
    seen = entries.get(path)
    if seen is None or seen is kind:
        entries[path] = kind
    else:
        # Reported twice with different kinds: the file exists on both sides
        entries[path] = ChangeKind.MODIFIED


def _to_result(mode: DeployMode, entries: Dict[str, ChangeKind]) -> DiffResult:
    return DiffResult(
        mode=mode,
        entries=tuple(PathEntry(p, entries[p]) for p in sorted(entries)),
    )


class RevisionDiffEngine:
    """
    Computes the classified path set between two revisions.

    Paths in the result are relative to scope (the deployment root inside
    the repository) and each path appears exactly once.
    """

    def __init__(self, history: HistoryProvider):
        self.history = history

    def diff(
        self,
        previous: Optional[str],
        current: str,
        scope: str = "",
    ) -> DiffResult:
        """
        Diff previous against current under scope.

        With no usable previous revision the result is in full mode and
        lists every file under scope at current as added.
        """
        if previous is not None and previous == current:
            return DiffResult(mode=DeployMode.NOOP)

        if previous is None:
            logger.info("No checkpoint, deploying everything")
            return self.full(current, scope)

        try:
            self._require(previous)
        except DiffUnavailable as e:
            logger.warning(f"{e}, falling back to full deployment")
            return self.full(current, scope)

        entries: Dict[str, ChangeKind] = {}
        for status, path in self.history.changes(previous, current, scope):
            rel = scope_relative(path, scope)
            if rel is None:
                continue
            kind = _STATUS_KINDS.get(status[:1].upper(), ChangeKind.MODIFIED)
            _merge(entries, rel, kind)

        mode = DeployMode.INCREMENTAL if entries else DeployMode.NOOP
        return _to_result(mode, entries)

    def full(self, current: str, scope: str = "") -> DiffResult:
        entries: Dict[str, ChangeKind] = {}
        for path in self.history.list_files(current, scope):
            rel = scope_relative(path, scope)
            if rel is not None:
                entries[rel] = ChangeKind.ADDED
        return _to_result(DeployMode.FULL, entries)

    def _require(self, revision: str) -> None:
        if not self.history.has_revision(revision):
            raise DiffUnavailable(f"Revision {revision} is not in history")
