"""End-to-end tests for the command line interface."""

import pytest
import yaml

from stall import __version__
from stall.main import build_parser, main

from conftest import BASE_MTIME


def stall_args(stall_dir, *args):
    return [*args, "--stall", str(stall_dir)]


def read_entries(stall_dir):
    return yaml.safe_load((stall_dir / ".stall").read_text())["entries"]


@pytest.fixture
def initialized(temp_dirs):
    """Initialized stall directory and a remote directory."""
    stall_dir, remote_dir = temp_dirs
    assert main(["init", str(stall_dir), "-q"]) == 0
    return stall_dir, remote_dir


class TestParser:
    """Argument parser tests."""

    def test_aliases(self):
        """Test that command aliases parse."""
        parser = build_parser()

        assert parser.parse_args(["rm", "a"]).command == "rm"
        assert parser.parse_args(["mv", "a", "b"]).command == "mv"

    def test_command_required(self):
        """Test that a command must be given."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_version(self, capsys):
        """Test the version flag."""
        with pytest.raises(SystemExit):
            main(["--version"])

        assert __version__ in capsys.readouterr().out

    def test_rename_with_many_files(self, tmp_path):
        """Test that --rename only works for a single file."""
        with pytest.raises(SystemExit):
            main(stall_args(tmp_path, "add", "/r/a", "/r/b", "--rename", "x"))


class TestMain:
    """Command line workflows."""

    def test_init(self, temp_dirs, capsys):
        """Test initializing a stall directory twice."""
        stall_dir, _ = temp_dirs

        assert main(["init", str(stall_dir)]) == 0
        assert read_entries(stall_dir) == []
        assert "Created new stall file" in capsys.readouterr().out

        assert main(["init", str(stall_dir)]) == 0
        assert "already exists" in capsys.readouterr().out

    def test_add_collect_and_second_collect(self, initialized, make_file, capsys):
        """Test adding a file, collecting it and collecting again."""
        stall_dir, remote_dir = initialized
        make_file(remote_dir / "a.txt", "remote", mtime=BASE_MTIME + 10)

        assert main(stall_args(stall_dir, "add", str(remote_dir / "a.txt"))) == 0
        assert read_entries(stall_dir) == [
            {"local": "a.txt", "remote": str(remote_dir / "a.txt")}
        ]

        assert main(stall_args(stall_dir, "collect")) == 0
        assert (stall_dir / "a.txt").read_text() == "remote"
        assert "Files copied: 1" in capsys.readouterr().out

        assert main(stall_args(stall_dir, "collect")) == 0
        out = capsys.readouterr().out
        assert "Files copied: 0" in out
        assert "same   same   skip" in out

    def test_dry_run_does_not_save(self, initialized):
        """Test that a dry run leaves the stall file alone."""
        stall_dir, remote_dir = initialized

        assert main(stall_args(stall_dir, "add", "-n", str(remote_dir / "a.txt"))) == 0

        assert read_entries(stall_dir) == []

    def test_rename_refuses_existing_target(self, initialized):
        """Test that rename needs --force to replace an entry."""
        stall_dir, remote_dir = initialized
        main(stall_args(stall_dir, "add", "-q", str(remote_dir / "a.txt"), str(remote_dir / "b.txt")))

        assert main(stall_args(stall_dir, "mv", "a.txt", "b.txt")) == 1
        assert len(read_entries(stall_dir)) == 2

        assert main(stall_args(stall_dir, "mv", "-f", "a.txt", "b.txt")) == 0
        assert read_entries(stall_dir) == [
            {"local": "b.txt", "remote": str(remote_dir / "a.txt")}
        ]

    def test_remove_with_delete(self, initialized, make_file):
        """Test removing an entry together with its stall copy."""
        stall_dir, remote_dir = initialized
        main(stall_args(stall_dir, "add", "-q", "--collect", str(make_file(remote_dir / "a.txt"))))
        assert (stall_dir / "a.txt").exists()

        assert main(stall_args(stall_dir, "rm", "--delete", "a.txt")) == 0

        assert read_entries(stall_dir) == []
        assert not (stall_dir / "a.txt").exists()

    def test_distribute_selected(self, initialized, make_file):
        """Test distributing a selected entry only."""
        stall_dir, remote_dir = initialized
        main(stall_args(stall_dir, "add", "-q", str(remote_dir / "a.txt"), str(remote_dir / "b.txt")))
        make_file(stall_dir / "a.txt")
        make_file(stall_dir / "b.txt")

        assert main(stall_args(stall_dir, "distribute", "-q", "b.txt")) == 0

        assert (remote_dir / "b.txt").exists()
        assert not (remote_dir / "a.txt").exists()

    def test_unknown_selection_fails(self, initialized):
        """Test that collecting an unknown entry fails."""
        stall_dir, remote_dir = initialized
        main(stall_args(stall_dir, "add", "-q", str(remote_dir / "a.txt")))

        assert main(stall_args(stall_dir, "collect", "-q", "nope.txt")) == 1

    def test_error_flag_promotes_stops(self, initialized, make_file):
        """Test that -e turns an unreadable remote into a failure."""
        stall_dir, remote_dir = initialized
        blocker = make_file(remote_dir / "blocker")
        main(stall_args(stall_dir, "add", "-q", str(blocker / "a.txt")))

        assert main(stall_args(stall_dir, "collect", "-q")) == 0
        assert main(stall_args(stall_dir, "collect", "-q", "-e")) == 1

    def test_status_of_empty_stall(self, initialized, capsys):
        """Test the message for an empty stall."""
        stall_dir, _ = initialized

        assert main(stall_args(stall_dir, "status")) == 0

        assert "No files in stall" in capsys.readouterr().out

    def test_missing_stall_file(self, temp_dirs):
        """Test running a command without a stall file."""
        stall_dir, _ = temp_dirs

        assert main(stall_args(stall_dir, "status")) == 1

    def test_list_format_stall_file(self, temp_dirs, make_file, capsys):
        """Test reading a plain list of remote paths."""
        stall_dir, remote_dir = temp_dirs
        remote = make_file(remote_dir / "hosts")
        (stall_dir / ".stall").write_text(f"# remote files\n{remote}\n")

        assert main(stall_args(stall_dir, "collect", "-s")) == 0

        assert (stall_dir / "hosts").exists()
        assert "absent exists copy   hosts" in capsys.readouterr().out

    def test_use_stall_file(self, temp_dirs, make_file):
        """Test an explicit stall file outside the stall directory."""
        stall_dir, remote_dir = temp_dirs
        stall_file = remote_dir / "list.stall"
        stall_file.write_text(f"{make_file(remote_dir / 'a.txt')}\n")

        assert main(stall_args(stall_dir, "collect", "-q", "-u", str(stall_file))) == 0

        assert (stall_dir / "a.txt").exists()

    def test_invalid_config(self, temp_dirs):
        """Test that a broken config file fails the run."""
        stall_dir, _ = temp_dirs
        (stall_dir / ".stall-config").write_text("sync:\n  mtime_tolerance: soon\n")

        assert main(stall_args(stall_dir, "status")) == 1

    def test_invalid_logging_config(self, temp_dirs, caplog):
        """Test that a bad log rotation size is reported as a config error."""
        stall_dir, _ = temp_dirs
        (stall_dir / ".stall-config").write_text(
            "logging:\n  file_path: stall.log\n  max_size_mb: big\n"
        )

        assert main(stall_args(stall_dir, "status")) == 1

        assert "Config error" in caplog.text
        assert "Unexpected error" not in caplog.text
