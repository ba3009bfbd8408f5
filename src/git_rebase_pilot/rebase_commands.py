"""Interactive rebase operations driven without a human at git's editor prompts."""

import logging
from pathlib import Path
from typing import Callable, List, Optional

from git_rebase_pilot.commit_ops import CommitCommands, WorkingTreeCommands
from git_rebase_pilot.config import PilotConfig
from git_rebase_pilot.continuation import RebaseSession
from git_rebase_pilot.daemon import DAEMON_KIND_ENV_KEY, DaemonKind
from git_rebase_pilot.exceptions import (
    CommitIndexError,
    GitCommandError,
    RebaseConflictError,
    SigningRequiredError,
    is_no_rebase_in_progress_error,
)
from git_rebase_pilot.git_ops import GitCommand, GitOps
from git_rebase_pilot.instructions import (
    ChangeTodoAction,
    ChangeTodoActionsInstruction,
    MoveDownInstruction,
    MoveUpInstruction,
    PrependLinesInstruction,
    RebaseInstruction,
    build_payload,
)
from git_rebase_pilot import todo_file
from git_rebase_pilot.models import Commit, TodoAction, TodoLine, is_head_commit

logger = logging.getLogger(__name__)

ROOT = "--root"

# first release that accepts --rebase-merges
REBASE_MERGES_MIN_VERSION = (2, 22, 0)


def get_base_sha_or_root(commits: List[Commit], index: int) -> str:
    """Pick the commit after which an interactive rebase starts.

    The commit list is assumed to reach the initial commit, so an index past
    its end means the rebase has to start from the root.
    """
    if index < len(commits):
        return commits[index].sha
    return ROOT


def check_commit_index(commits: List[Commit], index: int) -> None:
    """Raise CommitIndexError unless index addresses a commit in commits."""
    if index < 0 or len(commits) - 1 < index:
        raise CommitIndexError(index, len(commits))


class RebaseCommands:
    """Builds and runs interactive rebases for commit-level edits."""

    def __init__(
        self,
        git_ops: GitOps,
        commit: Optional[CommitCommands] = None,
        working_tree: Optional[WorkingTreeCommands] = None,
        config: Optional[PilotConfig] = None,
        session: Optional[RebaseSession] = None,
    ) -> None:
        """Initialize rebase commands.

        Args:
            git_ops: Git operations handler
            commit: Single-commit operations, built from git_ops if omitted
            working_tree: Working tree operations, built from git_ops if omitted
            config: Runtime configuration, read from the environment if omitted
            session: Holder of the pending continuation for multi-phase workflows
        """
        self.git_ops = git_ops
        self.commit = commit if commit is not None else CommitCommands(git_ops)
        self.working_tree = (
            working_tree if working_tree is not None else WorkingTreeCommands(git_ops)
        )
        self.config = config if config is not None else PilotConfig.from_env()
        self.session = session if session is not None else RebaseSession()

    def reword_commit(self, commits: List[Commit], index: int, message: str) -> None:
        self.generic_amend(
            commits, index, lambda: self.commit.reword_last_commit(message)
        )

    def reword_commit_in_editor(self, commits: List[Commit], index: int) -> GitCommand:
        """Prepare a rebase that lets the user's own editor reword a commit.

        The returned command is not run; the caller runs it where an editor
        can be shown.
        """
        check_commit_index(commits, index)
        return self.prepare_interactive_rebase_command(
            get_base_sha_or_root(commits, index + 1),
            instruction=ChangeTodoActionsInstruction(
                [ChangeTodoAction(commits[index].sha, TodoAction.REWORD.value)]
            ),
        )

    def reset_commit_author(self, commits: List[Commit], index: int) -> None:
        self.generic_amend(commits, index, self.commit.reset_author)

    def set_commit_author(self, commits: List[Commit], index: int, value: str) -> None:
        self.generic_amend(commits, index, lambda: self.commit.set_author(value))

    def generic_amend(
        self, commits: List[Commit], index: int, f: Callable[[], None]
    ) -> None:
        """Run a HEAD-only operation against any commit in the list.

        HEAD is amended in place. Any other commit is brought to HEAD by an
        interactive rebase that stops on it, then the rebase is continued.
        """
        if is_head_commit(commits, index):
            # we've selected the top commit so no rebase is required
            f()
            return

        self._run_at_commit(commits, index, f)

    def _run_at_commit(
        self, commits: List[Commit], index: int, f: Callable[[], None]
    ) -> None:
        def amend_and_continue() -> None:
            f()
            self.continue_rebase()

        try:
            self.begin_interactive_rebase_for_commit(commits, index)
        except RebaseConflictError:
            # git stopped before reaching the commit; finish once the user
            # resolves and continues
            self.session.queue(amend_and_continue)
            raise

        # now the selected commit should be our head so we'll amend it
        amend_and_continue()

    def move_commit_down(self, commits: List[Commit], index: int) -> None:
        check_commit_index(commits, index)
        self._run_rebase_command(
            self.prepare_interactive_rebase_command(
                get_base_sha_or_root(commits, index + 2),
                instruction=MoveDownInstruction(commits[index].sha),
                override_editor=True,
            )
        )

    def move_commit_up(self, commits: List[Commit], index: int) -> None:
        check_commit_index(commits, index)
        self._run_rebase_command(
            self.prepare_interactive_rebase_command(
                get_base_sha_or_root(commits, index + 1),
                instruction=MoveUpInstruction(commits[index].sha),
                override_editor=True,
            )
        )

    def interactive_rebase(self, commits: List[Commit], index: int, action: str) -> None:
        """Change the todo action of one commit (squash, fixup, drop, edit, ...)."""
        check_commit_index(commits, index)
        action = str(action)
        base_index = index + 1
        if action in (TodoAction.SQUASH.value, TodoAction.FIXUP.value):
            # include the commit being squashed into
            base_index += 1

        self._run_rebase_command(
            self.prepare_interactive_rebase_command(
                get_base_sha_or_root(commits, base_index),
                instruction=ChangeTodoActionsInstruction(
                    [ChangeTodoAction(commits[index].sha, action)]
                ),
                override_editor=True,
            )
        )

    def edit_rebase(self, branch_ref: str) -> None:
        """Start a rebase onto branch_ref that stops before replaying anything."""
        self._run_rebase_command(
            self.prepare_interactive_rebase_command(
                branch_ref,
                instruction=PrependLinesInstruction(
                    [TodoLine(action=TodoAction.BREAK.value)]
                ),
            )
        )

    def rebase_branch(self, branch_name: str) -> None:
        self._run_rebase_command(self.prepare_interactive_rebase_command(branch_name))

    def _rebase_merges_supported(self) -> bool:
        return not self.git_ops.get_git_version().is_older_than(
            *REBASE_MERGES_MIN_VERSION
        )

    def prepare_interactive_rebase_command(
        self,
        base_sha_or_root: str,
        instruction: Optional[RebaseInstruction] = None,
        override_editor: bool = False,
    ) -> GitCommand:
        """Build the command for an interactive rebase.

        git is told to run this program as its sequence editor, and the
        instruction travels to that process in an environment variable.

        Args:
            base_sha_or_root: Commit to rebase after, or '--root'
            instruction: Change to apply to the generated todo, if any
            override_editor: Also replace the commit message editor

        Returns:
            The unexecuted command
        """
        ex = self.config.executable

        args = [
            "rebase",
            "--interactive",
            "--autostash",
            "--keep-empty",
            "--empty=keep",
            "--no-autosquash",
        ]
        if self._rebase_merges_supported():
            args.append("--rebase-merges")
        args.append(base_sha_or_root)

        cmd = GitCommand(self.git_ops, args)
        logger.debug(f"Prepared command: {cmd.to_string()}")

        git_sequence_editor = ex
        if instruction is not None:
            try:
                env, log_str = build_payload(instruction)
            except (TypeError, ValueError) as e:
                # the rebase still runs, with git's own todo left unedited
                logger.error(f"Failed to serialize rebase instructions: {e}")
                git_sequence_editor = "true"
            else:
                cmd.add_env_vars(**env)
                logger.info(log_str)
        else:
            git_sequence_editor = "true"

        cmd.add_env_vars(
            **{
                DAEMON_KIND_ENV_KEY: DaemonKind.INTERACTIVE_REBASE.value,
                "DEBUG": "TRUE" if self.config.debug else "FALSE",
                # git's messages are matched on, so pin them to English
                "LANG": "en_US.UTF-8",
                "LC_ALL": "en_US.UTF-8",
                "GIT_SEQUENCE_EDITOR": git_sequence_editor,
            }
        )

        if override_editor:
            cmd.add_env_vars(GIT_EDITOR=ex)

        return cmd

    def amend_to(self, commit: Commit) -> None:
        """Amend the given commit with whatever files are staged."""
        self.commit.create_fixup_commit(commit.sha)
        self.squash_all_above_fixup_commits(commit)

    def todo_file_path(self) -> Path:
        return self.git_ops.get_git_dir() / "rebase-merge" / todo_file.TODO_FILE_NAME

    def edit_rebase_todo(self, commit: Commit, action: str) -> None:
        """Set the action of a commit in the paused rebase's todo file."""
        todo_file.edit_rebase_todo(
            self.todo_file_path(), commit.sha, commit.action, action
        )

    def move_todo_down(self, commit: Commit) -> None:
        todo_file.move_todo_down(self.todo_file_path(), commit.sha, commit.action)

    def move_todo_up(self, commit: Commit) -> None:
        todo_file.move_todo_up(self.todo_file_path(), commit.sha, commit.action)

    def squash_all_above_fixup_commits(self, commit: Commit) -> None:
        """Squash every fixup! commit above the given one into its target."""
        sha_or_root = ROOT if commit.is_first_commit else f"{commit.sha}^"

        args = ["rebase", "--interactive"]
        if self._rebase_merges_supported():
            args.append("--rebase-merges")
        args.extend(["--autostash", "--autosquash", sha_or_root])

        self._run_skip_editor_command(GitCommand(self.git_ops, args))

    def _using_gpg(self) -> bool:
        if self.config.override_gpg:
            return False
        return self.git_ops.get_config_bool("commit.gpgSign")

    def begin_interactive_rebase_for_commit(
        self, commits: List[Commit], commit_index: int
    ) -> None:
        """Start a rebase that stops with the given commit at HEAD.

        Follow up with `continue_rebase` once the commit has been changed.

        Raises:
            CommitIndexError: If commit_index is not in commits
            SigningRequiredError: If the repository signs commits
        """
        check_commit_index(commits, commit_index)

        # signing may prompt for credentials, which the editor substitute
        # cannot answer
        if self._using_gpg():
            raise SigningRequiredError()

        self._run_rebase_command(
            self.prepare_interactive_rebase_command(
                get_base_sha_or_root(commits, commit_index + 1),
                instruction=ChangeTodoActionsInstruction(
                    [ChangeTodoAction(commits[commit_index].sha, TodoAction.EDIT.value)]
                ),
                override_editor=True,
            )
        )

    def generic_merge_or_rebase_action_cmd(
        self, command_type: str, command: str
    ) -> GitCommand:
        return GitCommand(self.git_ops, [command_type, f"--{command}"])

    def continue_rebase(self) -> None:
        self.generic_merge_or_rebase_action("rebase", "continue")

    def abort_rebase(self) -> None:
        self.generic_merge_or_rebase_action("rebase", "abort")

    def skip_rebase(self) -> None:
        self.generic_merge_or_rebase_action("rebase", "skip")

    def generic_merge_or_rebase_action(self, command_type: str, command: str) -> None:
        """Run continue, abort or skip for a merge or rebase.

        The editor is skipped wherever a commit gets made. After a successful
        rebase continue, a step queued on the session runs; an abort discards
        it.

        Args:
            command_type: 'merge' or 'rebase'
            command: 'continue', 'abort' or 'skip'
        """
        try:
            self._run_skip_editor_command(
                self.generic_merge_or_rebase_action_cmd(command_type, command)
            )
        except GitCommandError as e:
            if not is_no_rebase_in_progress_error(e):
                raise
            # our idea of the rebase state was stale; nothing left to resume
            logger.warning(str(e))
            self.session.on_abort()
            return

        if command_type == "rebase" and command == "continue":
            self.session.on_continue_succeeded()
        elif command == "abort":
            self.session.on_abort()

    def _run_skip_editor_command(self, cmd: GitCommand) -> None:
        ex = self.config.executable
        cmd.add_env_vars(
            **{
                DAEMON_KIND_ENV_KEY: DaemonKind.EXIT_IMMEDIATELY.value,
                "GIT_EDITOR": ex,
                "GIT_SEQUENCE_EDITOR": ex,
                "EDITOR": ex,
                "VISUAL": ex,
            }
        )
        self._run_rebase_command(cmd)

    def _run_rebase_command(self, cmd: GitCommand) -> None:
        try:
            cmd.run()
        except GitCommandError as e:
            conflicted_files = self._get_conflicted_files()
            if conflicted_files:
                raise RebaseConflictError(
                    e.command, e.returncode, e.stderr, conflicted_files
                ) from e
            raise

    def _get_conflicted_files(self) -> List[str]:
        """Get list of files with merge conflicts.

        Returns:
            List of file paths with conflicts
        """
        if not self.git_ops.is_rebase_in_progress():
            return []
        result = self.git_ops.run_git_command(["diff", "--name-only", "--diff-filter=U"])
        if result.returncode != 0:
            return []
        return [line.strip() for line in result.stdout.split("\n") if line.strip()]

    def discard_old_file_changes(
        self, commits: List[Commit], commit_index: int, file_name: str
    ) -> None:
        """Remove one file's changes from an old commit."""

        def discard() -> None:
            # cat-file fails if the file doesn't exist in the parent commit
            if self.git_ops.file_exists_at("HEAD^", file_name):
                self.working_tree.checkout_file("HEAD^", file_name)
            else:
                self.working_tree.remove_file(file_name)
                self.working_tree.stage_file(file_name)

            self.commit.amend_head()

        self._run_at_commit(commits, commit_index, discard)

    def cherry_pick_commits(self, commits: List[Commit]) -> None:
        """Replay the given commits (newest first) on top of HEAD."""
        todo_lines = self.build_todo_lines_single_action(commits, TodoAction.PICK.value)

        self._run_rebase_command(
            self.prepare_interactive_rebase_command(
                "HEAD", instruction=PrependLinesInstruction(todo_lines)
            )
        )

    def build_todo_lines(
        self, commits: List[Commit], f: Callable[[Commit, int], str]
    ) -> List[TodoLine]:
        return [TodoLine(action=f(commit, i), commit=commit) for i, commit in enumerate(commits)]

    def build_todo_lines_single_action(
        self, commits: List[Commit], action: str
    ) -> List[TodoLine]:
        return self.build_todo_lines(commits, lambda commit, i: action)
