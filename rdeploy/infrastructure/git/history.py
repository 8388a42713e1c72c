"""
Git-backed history provider
"""
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ...core.constants import DEFAULT_GIT_TIMEOUT, GIT_MODE_SUBMODULE
from ...core.exceptions import HistoryError
from ...core.interfaces import HistoryProvider
from ...core.logging import get_logger
from ...core.utils import is_revision

logger = get_logger(__name__)


def _split_z(output: str) -> List[str]:
    return [item for item in output.split("\0") if item]


def _parse_batch(output: bytes, objects: List[str]) -> Dict[str, bytes]:
    """Split `git cat-file --batch` output into {object id: content}"""
    contents = {}
    pos = 0
    for oid in objects:
        eol = output.find(b"\n", pos)
        header = output[pos:eol].decode("ascii", errors="replace").split() if eol >= 0 else []
        if len(header) != 3:
            raise HistoryError(f"Cannot read object {oid}: {' '.join(header) or 'truncated output'}")
        start = eol + 1
        end = start + int(header[2])
        contents[oid] = output[start:end]
        pos = end + 1
    return contents


class GitHistoryProvider(HistoryProvider):
    """
    Wraps the git CLI for a single repository.

    list_files and changes hand out paths relative to the repository
    top level; read_files takes and returns scope-relative paths.
    """

    def __init__(self, repo_dir: Path, timeout: float = DEFAULT_GIT_TIMEOUT):
        self.repo_dir = Path(repo_dir)
        self.timeout = timeout

    @classmethod
    def discover(cls, local_dir: Path) -> Tuple["GitHistoryProvider", str]:
        """
        Find the repository containing local_dir.

        Returns the provider and the scope (local_dir relative to the
        repository top level, "" for the top level itself).
        """
        local_dir = Path(local_dir).expanduser().resolve()
        if not local_dir.is_dir():
            raise HistoryError(f"Local directory does not exist: {local_dir}")

        probe = cls(local_dir)
        toplevel = Path(probe._git("rev-parse", "--show-toplevel").strip()).resolve()
        scope = local_dir.relative_to(toplevel).as_posix()
        if scope == ".":
            scope = ""
        logger.debug(f"Repository {toplevel}, scope {scope or '.'}")
        return cls(toplevel, timeout=probe.timeout), scope

    def _run(
        self,
        *args: str,
        check: bool = True,
        input: Optional[Union[str, bytes]] = None,
        binary: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run a git command in the repository directory"""
        text_kwargs = {} if binary else {"text": True, "encoding": "utf-8", "errors": "surrogateescape"}
        try:
            return subprocess.run(
                ["git", "--literal-pathspecs", *args],
                cwd=self.repo_dir,
                check=check,
                capture_output=True,
                input=input,
                timeout=self.timeout,
                **text_kwargs,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or "no stderr"
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            stderr = stderr.strip()
            raise HistoryError(f"git {' '.join(args)} failed ({e.returncode}): {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise HistoryError(f"git {' '.join(args)} timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise HistoryError("git executable not found") from e

    def _git(self, *args: str) -> str:
        return self._run(*args).stdout

    @staticmethod
    def _pathspec(scope: str) -> List[str]:
        return ["--", scope] if scope else []

    def resolve(self, ref: str) -> str:
        result = self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", check=False)
        revision = result.stdout.strip()
        if result.returncode != 0 or not is_revision(revision):
            raise HistoryError(f"Cannot resolve revision: {ref}")
        return revision

    def has_revision(self, revision: str) -> bool:
        if not is_revision(revision):
            return False
        result = self._run("cat-file", "-e", f"{revision}^{{commit}}", check=False)
        return result.returncode == 0

    def list_files(self, revision: str, scope: str) -> List[str]:
        out = self._git(
            "ls-tree", "-r", "-z", "--name-only", "--full-name",
            revision, *self._pathspec(scope),
        )
        return _split_z(out)

    def changes(self, previous: str, current: str, scope: str) -> List[Tuple[str, str]]:
        out = self._git(
            "diff", "--name-status", "-z", "--no-renames", "--no-ext-diff",
            previous, current, *self._pathspec(scope),
        )
        items = _split_z(out)
        if len(items) % 2:
            raise HistoryError(f"Unexpected git diff output: {out!r}")
        return [(items[i], items[i + 1]) for i in range(0, len(items), 2)]

    def read_files(
        self, revision: str, scope: str, paths: Iterable[str]
    ) -> List[Tuple[str, str, bytes]]:
        """
        Read paths (relative to scope) from the tree at revision.

        Submodule entries have no content in this repository and are
        skipped with a warning.
        """
        prefix = scope.rstrip("/") + "/" if scope else ""
        tree: Dict[str, Tuple[str, str]] = {}
        out = self._git("ls-tree", "-r", "-z", "--full-name", revision, *self._pathspec(scope))
        for record in _split_z(out):
            meta, _, path = record.partition("\t")
            mode, _, oid = meta.split(" ")
            if path.startswith(prefix):
                tree[path[len(prefix):]] = (mode, oid)

        wanted = []
        for rel in paths:
            if rel not in tree:
                raise HistoryError(f"{rel} is not a file at {revision}")
            mode, oid = tree[rel]
            if mode == GIT_MODE_SUBMODULE:
                logger.warning(f"Skipping submodule {rel}")
                continue
            wanted.append((rel, mode, oid))

        objects = sorted({oid for _, _, oid in wanted})
        if not objects:
            return []
        batch = self._run(
            "cat-file", "--batch", input=("\n".join(objects) + "\n").encode(), binary=True
        )
        contents = _parse_batch(batch.stdout, objects)
        return [(rel, mode, contents[oid]) for rel, mode, oid in wanted]
