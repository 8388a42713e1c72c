"""Tests for the revision diff engine."""

from rdeploy.domain.deploy.diff import RevisionDiffEngine, scope_relative
from rdeploy.domain.deploy.models import ChangeKind, DeployMode

from conftest import R1, R2, FakeHistory


def engine(snapshots, head=R2):
    return RevisionDiffEngine(FakeHistory(snapshots, head))


class TestModes:
    """Mode selection."""

    def test_no_previous_lists_everything_as_added(self):
        result = engine({R1: {"a.txt": "1", "dir/b.txt": "1"}}, head=R1).diff(None, R1)
        assert result.mode is DeployMode.FULL
        assert [(e.path, e.kind) for e in result] == [
            ("a.txt", ChangeKind.ADDED),
            ("dir/b.txt", ChangeKind.ADDED),
        ]

    def test_same_revision_is_noop(self):
        result = engine({R1: {"a.txt": "1"}}, head=R1).diff(R1, R1)
        assert result.mode is DeployMode.NOOP
        assert len(result) == 0

    def test_unknown_previous_falls_back_to_full(self):
        deadbeef = "deadbeef" * 5
        result = engine({R2: {"a.txt": "2"}}).diff(deadbeef, R2)
        assert result.mode is DeployMode.FULL
        assert result.present == ["a.txt"]

    def test_no_changes_under_scope_is_noop(self):
        snapshots = {
            R1: {"site/a.txt": "1", "other/x": "1"},
            R2: {"site/a.txt": "1", "other/x": "2"},
        }
        result = engine(snapshots).diff(R1, R2, scope="site")
        assert result.mode is DeployMode.NOOP
        assert len(result) == 0


class TestIncremental:
    """Classification between two revisions."""

    def test_added_modified_deleted(self):
        snapshots = {
            R1: {"a.txt": "1", "old.txt": "1", "same.txt": "1"},
            R2: {"a.txt": "2", "c.txt": "1", "same.txt": "1"},
        }
        result = engine(snapshots).diff(R1, R2)
        assert result.mode is DeployMode.INCREMENTAL
        kinds = {e.path: e.kind for e in result}
        assert kinds == {
            "a.txt": ChangeKind.MODIFIED,
            "c.txt": ChangeKind.ADDED,
            "old.txt": ChangeKind.DELETED,
        }
        assert result.present == ["a.txt", "c.txt"]
        assert result.deleted == ["old.txt"]

    def test_rename_is_delete_plus_add(self):
        snapshots = {R1: {"old/name.txt": "x"}, R2: {"new/name.txt": "x"}}
        result = engine(snapshots).diff(R1, R2)
        assert result.present == ["new/name.txt"]
        assert result.deleted == ["old/name.txt"]

    def test_entries_are_unique_and_sorted(self):
        class Noisy(FakeHistory):
            def changes(self, previous, current, scope):
                return [("M", "b"), ("A", "a"), ("D", "b"), ("A", "b")]

        result = RevisionDiffEngine(Noisy({R1: {}, R2: {}}, R2)).diff(R1, R2)
        assert [e.path for e in result] == ["a", "b"]
        assert {e.path: e.kind for e in result}["b"] is ChangeKind.MODIFIED
        assert set(result.present).isdisjoint(result.deleted)

    def test_unusual_status_is_modified(self):
        class TypeChange(FakeHistory):
            def changes(self, previous, current, scope):
                return [("T", "link"), ("U", "conflicted")]

        result = RevisionDiffEngine(TypeChange({R1: {}, R2: {}}, R2)).diff(R1, R2)
        assert all(e.kind is ChangeKind.MODIFIED for e in result)


class TestScope:
    """Paths are rewritten relative to the deployment root."""

    def test_scope_relative(self):
        assert scope_relative("site/a.txt", "site") == "a.txt"
        assert scope_relative("site/sub/a.txt", "site/") == "sub/a.txt"
        assert scope_relative("sitemap.xml", "site") is None
        assert scope_relative("other/a.txt", "site") is None
        assert scope_relative("a.txt", "") == "a.txt"

    def test_full_listing_is_scoped(self):
        snapshots = {R1: {"site/a.txt": "1", "site/css/b.css": "1", "README": "1"}}
        result = engine(snapshots, head=R1).diff(None, R1, scope="site")
        assert result.present == ["a.txt", "css/b.css"]

    def test_changes_outside_scope_are_dropped(self):
        class Leaky(FakeHistory):
            def changes(self, previous, current, scope):
                return [("M", "site/a.txt"), ("M", "elsewhere/b.txt")]

        result = RevisionDiffEngine(Leaky({R1: {}, R2: {}}, R2)).diff(R1, R2, scope="site")
        assert result.present == ["a.txt"]
