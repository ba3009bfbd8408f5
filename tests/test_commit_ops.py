"""Tests for single-commit and working tree operations."""

import subprocess
from pathlib import Path
from unittest.mock import Mock

import pytest

from git_rebase_pilot.commit_ops import CommitCommands, WorkingTreeCommands
from git_rebase_pilot.exceptions import GitCommandError


class TestCommitCommands:
    """Test cases for CommitCommands."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.git_ops = Mock()
        self.git_ops.run_git_command.return_value = subprocess.CompletedProcess(
            [], 0, "", ""
        )
        self.commands = CommitCommands(self.git_ops)

    def _args(self) -> list:
        return self.git_ops.run_git_command.call_args[0][0]

    def test_reword_last_commit(self) -> None:
        self.commands.reword_last_commit("new message")

        assert self._args() == [
            "commit",
            "--allow-empty",
            "--amend",
            "--only",
            "-m",
            "new message",
        ]

    def test_author(self) -> None:
        self.commands.reset_author()
        assert self._args()[-1] == "--reset-author"

        self.commands.set_author("Jo <jo@example.com>")
        assert self._args()[-1] == "--author=Jo <jo@example.com>"

    def test_create_fixup_commit(self) -> None:
        self.commands.create_fixup_commit("abc123")

        assert self._args() == ["commit", "--fixup=abc123"]

    def test_amend_head(self) -> None:
        self.commands.amend_head()

        assert self._args() == ["commit", "--amend", "--no-edit", "--allow-empty"]

    def test_failure_raises(self) -> None:
        self.git_ops.run_git_command.return_value = subprocess.CompletedProcess(
            [], 1, "", "nothing added to commit"
        )

        with pytest.raises(GitCommandError, match="nothing added"):
            self.commands.create_fixup_commit("abc123")


class TestWorkingTreeCommands:
    """Test cases for WorkingTreeCommands."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.git_ops = Mock()
        self.git_ops.run_git_command.return_value = subprocess.CompletedProcess(
            [], 0, "", ""
        )
        self.commands = WorkingTreeCommands(self.git_ops)

    def test_stage_and_checkout(self) -> None:
        self.commands.stage_file("-odd name")
        assert self.git_ops.run_git_command.call_args[0][0] == [
            "add",
            "--",
            "-odd name",
        ]

        self.commands.checkout_file("HEAD^", "a.py")
        assert self.git_ops.run_git_command.call_args[0][0] == [
            "checkout",
            "HEAD^",
            "--",
            "a.py",
        ]

    def test_remove_file(self, tmp_path: Path) -> None:
        self.git_ops.repo_path = tmp_path
        (tmp_path / "gone.txt").write_text("x")

        self.commands.remove_file("gone.txt")

        assert not (tmp_path / "gone.txt").exists()
