"""Tests for the local/remote path index."""

from pathlib import Path

import pytest

from stall.path_index import Entry, InvalidEntryPath, PathPairIndex, has_file_name


class TestPathPairIndex:
    """PathPairIndex tests."""

    def test_insert_maps_both_directions(self):
        """Test that an inserted pair can be looked up from either side."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")

        assert index.get_by_local("a.txt") == Path("/r/a.txt")
        assert index.get_by_remote("/r/a.txt") == Path("a.txt")
        assert index.get_by_local(Path("a.txt")) == Path("/r/a.txt")

    def test_missing_lookups_return_none(self):
        """Test lookups of unknown paths."""
        index = PathPairIndex()

        assert index.get_by_local("nope") is None
        assert index.get_by_remote("/nope") is None
        assert index.remove_by_local("nope") is None
        assert index.remove_by_remote("/nope") is None

    def test_insert_reusing_local_replaces_old_pair(self):
        """Test that reusing a local path drops the old remote mapping."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")

        displaced = index.insert("a.txt", "/other/a.txt")

        assert displaced == [Entry(Path("a.txt"), Path("/r/a.txt"))]
        assert index.get_by_local("a.txt") == Path("/other/a.txt")
        assert index.get_by_remote("/r/a.txt") is None
        assert len(index) == 1

    def test_insert_reusing_remote_replaces_old_pair(self):
        """Test that reusing a remote path drops the old local mapping."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")

        displaced = index.insert("b.txt", "/r/a.txt")

        assert displaced == [Entry(Path("a.txt"), Path("/r/a.txt"))]
        assert index.get_by_remote("/r/a.txt") == Path("b.txt")
        assert index.get_by_local("a.txt") is None
        assert len(index) == 1

    def test_insert_reusing_both_paths_removes_two_pairs(self):
        """Test an insert that collides with two different entries."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")
        index.insert("b.txt", "/r/b.txt")

        displaced = index.insert("a.txt", "/r/b.txt")

        assert set(displaced) == {
            Entry(Path("a.txt"), Path("/r/a.txt")),
            Entry(Path("b.txt"), Path("/r/b.txt")),
        }
        assert list(index) == [Entry(Path("a.txt"), Path("/r/b.txt"))]

    def test_reinserting_same_pair_is_not_an_overwrite(self):
        """Test that inserting an identical pair displaces nothing."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")

        assert index.insert("a.txt", "/r/a.txt") == []
        assert len(index) == 1

    @pytest.mark.parametrize("bad", ["/", ".", "..", "dir/..", ""])
    def test_insert_rejects_paths_without_file_name(self, bad):
        """Test that paths without a file name are rejected."""
        index = PathPairIndex()

        with pytest.raises(InvalidEntryPath):
            index.insert(bad, "/r/a.txt")
        with pytest.raises(InvalidEntryPath):
            index.insert("a.txt", bad)

        assert index.is_empty()

    def test_remove_by_local_returns_pair(self):
        """Test removing by local path."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")

        removed = index.remove_by_local("a.txt")

        assert removed == Entry(Path("a.txt"), Path("/r/a.txt"))
        local, remote = removed
        assert local == Path("a.txt")
        assert remote == Path("/r/a.txt")
        assert index.is_empty()
        assert index.get_by_remote("/r/a.txt") is None

    def test_remove_by_remote_returns_pair(self):
        """Test removing by remote path."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")

        removed = index.remove_by_remote("/r/a.txt")

        assert removed == Entry(Path("a.txt"), Path("/r/a.txt"))
        assert index.is_empty()
        assert "a.txt" not in index

    def test_iteration_is_restartable(self):
        """Test that the index can be iterated more than once."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")
        index.insert("sub/b.txt", "/r/b.txt")

        first = set(index)
        second = set(index)

        assert first == second
        assert first == {
            Entry(Path("a.txt"), Path("/r/a.txt")),
            Entry(Path("sub/b.txt"), Path("/r/b.txt")),
        }

    def test_contains_checks_local_paths(self):
        """Test membership by local path."""
        index = PathPairIndex()
        index.insert("a.txt", "/r/a.txt")

        assert "a.txt" in index
        assert Path("a.txt") in index
        assert "/r/a.txt" not in index
        assert 42 not in index


def test_has_file_name():
    """Test file name detection."""
    assert has_file_name("a.txt")
    assert has_file_name("/r/a.txt")
    assert has_file_name(".bashrc")
    assert not has_file_name("/")
    assert not has_file_name("..")
    assert not has_file_name("a/..")
