"""End-to-end tests against a real git repository.

git runs this package as its editor during these tests, so the package must be
importable from the child interpreter.
"""

import shutil
import subprocess
from pathlib import Path
from typing import List

import pytest

import git_rebase_pilot
from git_rebase_pilot.config import PilotConfig
from git_rebase_pilot.continuation import RebaseSession
from git_rebase_pilot.git_ops import GitOps
from git_rebase_pilot.models import Commit
from git_rebase_pilot.rebase_commands import RebaseCommands

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

SRC_DIR = str(Path(git_rebase_pilot.__file__).resolve().parent.parent)


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def repo(tmp_path: Path, monkeypatch) -> Path:
    """Repository with commits a (root), b and c (HEAD), each adding a file."""
    monkeypatch.setenv("PYTHONPATH", SRC_DIR)
    monkeypatch.delenv("GIT_REBASE_PILOT_EXECUTABLE", raising=False)
    monkeypatch.delenv("GIT_REBASE_PILOT_OVERRIDE_GPG", raising=False)

    git(tmp_path, "init", "-q")
    git(tmp_path, "config", "user.name", "Test User")
    git(tmp_path, "config", "user.email", "test@example.com")
    git(tmp_path, "config", "commit.gpgsign", "false")
    for name in ("a", "b", "c"):
        (tmp_path / f"{name}.txt").write_text(f"{name}\n")
        git(tmp_path, "add", f"{name}.txt")
        git(tmp_path, "commit", "-q", "-m", name)
    return tmp_path


class TestRebaseAgainstRealGit:
    """Test cases that run real rebases."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.session = RebaseSession()

    def _rebase(self, repo: Path) -> RebaseCommands:
        self.git_ops = GitOps(repo)
        return RebaseCommands(
            self.git_ops, config=PilotConfig(), session=self.session
        )

    def _names(self) -> List[str]:
        return [commit.name for commit in self.git_ops.get_commits()]

    def test_move_commit_up(self, repo: Path) -> None:
        rebase = self._rebase(repo)

        rebase.move_commit_up(self.git_ops.get_commits(), 1)

        assert self._names() == ["b", "c", "a"]
        assert not self.git_ops.is_rebase_in_progress()

    def test_move_commit_down(self, repo: Path) -> None:
        rebase = self._rebase(repo)

        rebase.move_commit_down(self.git_ops.get_commits(), 0)

        assert self._names() == ["b", "c", "a"]

    def test_reword_older_commit(self, repo: Path) -> None:
        rebase = self._rebase(repo)

        rebase.reword_commit(self.git_ops.get_commits(), 1, "b reworded")

        assert self._names() == ["c", "b reworded", "a"]
        assert not self.git_ops.is_rebase_in_progress()

    def test_fixup_into_previous(self, repo: Path) -> None:
        rebase = self._rebase(repo)

        rebase.interactive_rebase(self.git_ops.get_commits(), 0, "fixup")

        assert self._names() == ["b", "a"]
        assert git(repo, "show", "--name-only", "--format=", "HEAD").split() == [
            "b.txt",
            "c.txt",
        ]

    def test_amend_to_root_commit(self, repo: Path) -> None:
        """Test staged changes land in the first commit."""
        rebase = self._rebase(repo)
        (repo / "a.txt").write_text("a amended\n")
        git(repo, "add", "a.txt")

        commits = self.git_ops.get_commits()
        rebase.amend_to(commits[2])

        assert self._names() == ["c", "b", "a"]
        assert git(repo, "show", "HEAD~2:a.txt") == "a amended\n"

    def test_discard_file_added_by_commit(self, repo: Path) -> None:
        rebase = self._rebase(repo)

        rebase.discard_old_file_changes(self.git_ops.get_commits(), 1, "b.txt")

        assert self._names() == ["c", "b", "a"]
        assert git(repo, "ls-files").split() == ["a.txt", "c.txt"]

    def test_continue_without_rebase_is_harmless(self, repo: Path) -> None:
        rebase = self._rebase(repo)

        rebase.continue_rebase()
        rebase.abort_rebase()

    def test_reorder_paused_rebase(self, repo: Path) -> None:
        """Test editing the todo of a rebase stopped on an old commit."""
        rebase = self._rebase(repo)
        commits = self.git_ops.get_commits()

        rebase.begin_interactive_rebase_for_commit(commits, 2)
        assert self.git_ops.is_rebase_in_progress()

        rebase.move_todo_up(Commit(sha=commits[1].sha, name="b", action="pick"))
        rebase.continue_rebase()

        assert self._names() == ["b", "c", "a"]
        assert not self.git_ops.is_rebase_in_progress()
