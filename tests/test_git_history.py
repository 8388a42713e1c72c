"""Tests for the git history provider against real repositories."""

import os
import shutil
import subprocess

import pytest

from rdeploy.core.exceptions import HistoryError
from rdeploy.domain.deploy import DeployService, DeployTarget
from rdeploy.domain.deploy.diff import RevisionDiffEngine
from rdeploy.domain.deploy.models import DeployMode
from rdeploy.infrastructure.git import GitHistoryProvider

from conftest import MemoryCheckpointStore

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(repo, *args):
    return subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    ).stdout.strip()


def commit_all(repo, message):
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repo(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    git(root, "init", "-q")
    (root / "site").mkdir()
    (root / "site" / "index.html").write_text("v1")
    (root / "site" / "old.txt").write_text("old")
    (root / "README").write_text("readme")
    return root


class TestDiscover:
    """Locating the repository and scope."""

    def test_top_level(self, repo):
        commit_all(repo, "init")
        provider, scope = GitHistoryProvider.discover(repo)
        assert scope == ""
        assert provider.repo_dir == repo.resolve()

    def test_subdirectory_scope(self, repo):
        commit_all(repo, "init")
        provider, scope = GitHistoryProvider.discover(repo / "site")
        assert scope == "site"
        assert provider.repo_dir == repo.resolve()

    def test_not_a_repository(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(HistoryError):
            GitHistoryProvider.discover(plain)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(HistoryError):
            GitHistoryProvider.discover(tmp_path / "nope")


class TestQueries:
    """resolve, has_revision, list_files and changes."""

    def test_resolve_head_and_unknown_ref(self, repo):
        rev = commit_all(repo, "init")
        provider = GitHistoryProvider(repo)
        assert provider.resolve("HEAD") == rev
        with pytest.raises(HistoryError):
            provider.resolve("no-such-branch")

    def test_has_revision(self, repo):
        rev = commit_all(repo, "init")
        provider = GitHistoryProvider(repo)
        assert provider.has_revision(rev)
        assert not provider.has_revision("0" * 40)
        assert not provider.has_revision("not-a-sha")

    def test_list_files_scoped(self, repo):
        rev = commit_all(repo, "init")
        provider = GitHistoryProvider(repo)
        assert sorted(provider.list_files(rev, "site")) == ["site/index.html", "site/old.txt"]
        assert "README" in provider.list_files(rev, "")

    def test_changes_without_rename_detection(self, repo):
        r1 = commit_all(repo, "init")
        (repo / "site" / "index.html").write_text("v2")
        (repo / "site" / "old.txt").rename(repo / "site" / "new.txt")
        (repo / "README").write_text("changed")
        r2 = commit_all(repo, "second")

        changes = dict((path, status) for status, path in GitHistoryProvider(repo).changes(r1, r2, "site"))
        assert changes == {
            "site/index.html": "M",
            "site/new.txt": "A",
            "site/old.txt": "D",
        }

    def test_paths_with_spaces_and_unicode(self, repo):
        r1 = commit_all(repo, "init")
        (repo / "site" / "a file ü.txt").write_text("x")
        r2 = commit_all(repo, "second")
        changes = GitHistoryProvider(repo).changes(r1, r2, "site")
        assert changes == [("A", "site/a file ü.txt")]


class TestWithEngine:
    """End-to-end diffing through the engine."""

    def test_incremental_then_noop(self, repo):
        r1 = commit_all(repo, "init")
        (repo / "site" / "added.css").write_text("body{}")
        r2 = commit_all(repo, "second")

        provider, scope = GitHistoryProvider.discover(repo / "site")
        engine = RevisionDiffEngine(provider)

        result = engine.diff(r1, r2, scope)
        assert result.mode is DeployMode.INCREMENTAL
        assert result.present == ["added.css"]

        assert engine.diff(r2, r2, scope).mode is DeployMode.NOOP

    def test_full_relative_to_scope(self, repo):
        r1 = commit_all(repo, "init")
        provider, scope = GitHistoryProvider.discover(repo / "site")
        result = RevisionDiffEngine(provider).diff(None, r1, scope)
        assert result.mode is DeployMode.FULL
        assert result.present == ["index.html", "old.txt"]


class TestReadFiles:
    """Content as stored at a revision."""

    def test_reads_committed_content_not_working_tree(self, repo):
        rev = commit_all(repo, "init")
        (repo / "site" / "index.html").write_text("uncommitted")
        files = GitHistoryProvider(repo).read_files(rev, "site", ["index.html", "old.txt"])
        assert files == [("index.html", "100644", b"v1"), ("old.txt", "100644", b"old")]

    def test_modes_and_symlinks(self, repo):
        script = repo / "site" / "run.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o755)
        os.symlink("index.html", repo / "site" / "latest")
        rev = commit_all(repo, "init")

        files = {p: (m, c) for p, m, c in GitHistoryProvider(repo).read_files(rev, "site", ["run.sh", "latest"])}
        assert files["run.sh"] == ("100755", b"#!/bin/sh\n")
        assert files["latest"] == ("120000", b"index.html")

    def test_identical_content_shares_one_object(self, repo):
        (repo / "site" / "copy.txt").write_text("old")
        rev = commit_all(repo, "init")
        files = GitHistoryProvider(repo).read_files(rev, "site", ["old.txt", "copy.txt"])
        assert files == [("old.txt", "100644", b"old"), ("copy.txt", "100644", b"old")]

    def test_binary_content(self, repo):
        (repo / "site" / "logo.bin").write_bytes(b"\x00\xff\n\r\n")
        rev = commit_all(repo, "init")
        ((_, _, content),) = GitHistoryProvider(repo).read_files(rev, "site", ["logo.bin"])
        assert content == b"\x00\xff\n\r\n"

    def test_missing_path(self, repo):
        rev = commit_all(repo, "init")
        with pytest.raises(HistoryError, match="ghost.txt"):
            GitHistoryProvider(repo).read_files(rev, "site", ["ghost.txt"])


class TestDeployRevision:
    """Full runs against a real repository and an in-memory remote."""

    def deploy(self, repo, channel, store, revision="HEAD"):
        provider, scope = GitHistoryProvider.discover(repo / "site")
        service = DeployService(history=provider, channel=channel, scope=scope, checkpoint_store=store)
        return service.deploy(
            DeployTarget(local_dir=repo / "site", remote_dir="/srv/www", revision=revision)
        )

    def test_explicit_revision_ships_its_own_content(self, repo, channel):
        v1 = commit_all(repo, "init")
        git(repo, "tag", "v1")
        (repo / "site" / "index.html").write_text("v2")
        (repo / "site" / "old.txt").unlink()
        (repo / "site" / "new.txt").write_text("new")
        head = commit_all(repo, "second")
        store = MemoryCheckpointStore({"/srv/www": head})

        result = self.deploy(repo, channel, store, revision="v1")

        assert result.ok
        assert result.revision == v1
        assert result.transferred == ("index.html", "old.txt")
        assert result.deleted == ("new.txt",)
        assert channel.contents == {"index.html": b"v1", "old.txt": b"old"}
        assert store.values["/srv/www"] == v1

    def test_file_replaced_by_directory(self, repo, channel):
        r1 = commit_all(repo, "init")
        (repo / "site" / "old.txt").unlink()
        (repo / "site" / "old.txt").mkdir()
        (repo / "site" / "old.txt" / "inner.txt").write_text("inner")
        r2 = commit_all(repo, "swap")
        store = MemoryCheckpointStore({"/srv/www": r1})

        result = self.deploy(repo, channel, store)

        assert result.ok
        assert result.transferred == ("old.txt/inner.txt",)
        assert result.deleted == ("old.txt",)
        assert channel.commands[0] == "if [ -d /srv/www ]; then cd /srv/www && rm -rf -- old.txt; fi"
        assert channel.contents == {"old.txt/inner.txt": b"inner"}
        assert store.values["/srv/www"] == r2
