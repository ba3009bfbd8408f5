"""Single-commit operations used between the phases of a rebase."""

import logging
import os
from pathlib import Path

from git_rebase_pilot.git_ops import GitCommand, GitOps

logger = logging.getLogger(__name__)


class CommitCommands:
    """Operations that rewrite HEAD or create a new commit."""

    def __init__(self, git_ops: GitOps) -> None:
        self.git_ops = git_ops

    def _commit(self, *args: str) -> None:
        GitCommand(self.git_ops, ["commit", *args]).run()

    def reword_last_commit(self, message: str) -> None:
        self._commit("--allow-empty", "--amend", "--only", "-m", message)

    def reset_author(self) -> None:
        self._commit("--allow-empty", "--only", "--no-edit", "--amend", "--reset-author")

    def set_author(self, value: str) -> None:
        """Set the author of HEAD.

        Args:
            value: Author in 'Name <email>' form
        """
        self._commit(
            "--allow-empty", "--only", "--no-edit", "--amend", f"--author={value}"
        )

    def create_fixup_commit(self, sha: str) -> None:
        self._commit(f"--fixup={sha}")

    def amend_head(self) -> None:
        self._commit("--amend", "--no-edit", "--allow-empty")


class WorkingTreeCommands:
    """Operations on files in the working tree and index."""

    def __init__(self, git_ops: GitOps) -> None:
        self.git_ops = git_ops

    def stage_file(self, file_name: str) -> None:
        GitCommand(self.git_ops, ["add", "--", file_name]).run()

    def checkout_file(self, ref: str, file_name: str) -> None:
        GitCommand(self.git_ops, ["checkout", ref, "--", file_name]).run()

    def remove_file(self, file_name: str) -> None:
        path = Path(self.git_ops.repo_path) / file_name
        logger.debug(f"Removing {path}")
        os.remove(path)
