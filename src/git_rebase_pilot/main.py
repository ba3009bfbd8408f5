"""CLI entry point for git-rebase-pilot."""

import argparse
import logging
import subprocess
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from git_rebase_pilot import __version__, todo_file
from git_rebase_pilot.exceptions import (
    ErrorReporter,
    GitRebasePilotError,
    RebaseConflictError,
    RepositoryStateError,
    UserCancelledError,
    handle_unexpected_error,
)
from git_rebase_pilot.git_ops import GitOps
from git_rebase_pilot.models import Commit, TodoAction
from git_rebase_pilot.rebase_commands import RebaseCommands, check_commit_index

ACTION_CHOICES = [
    TodoAction.PICK.value,
    TodoAction.REWORD.value,
    TodoAction.EDIT.value,
    TodoAction.SQUASH.value,
    TodoAction.FIXUP.value,
    TodoAction.DROP.value,
]


def _commit_at(commits: List[Commit], index: int) -> Commit:
    check_commit_index(commits, index)
    return commits[index]


def _show_todo(rebase: RebaseCommands) -> None:
    entries = todo_file.read_todo_file(rebase.todo_file_path())
    table = Table(title=todo_file.TODO_FILE_NAME)
    table.add_column("Action")
    table.add_column("Commit")
    table.add_column("Line")
    # newest first, like the commit list
    for entry in reversed(entries):
        if entry.is_comment:
            continue
        table.add_row(
            entry.action or "", (entry.sha or "")[:8], Text(entry.body.strip())
        )
    Console().print(table)


def _run_todo_command(args: argparse.Namespace, rebase: RebaseCommands) -> None:
    if args.todo_command == "show":
        _show_todo(rebase)
        return

    commit = Commit(sha=args.sha, name="", action=None)
    if args.todo_command == "set":
        rebase.edit_rebase_todo(commit, args.action)
    elif args.todo_command == "up":
        rebase.move_todo_up(commit)
    elif args.todo_command == "down":
        rebase.move_todo_down(commit)


def run_command(args: argparse.Namespace, git_ops: GitOps) -> None:
    """Dispatch a parsed command line to the rebase operations."""
    rebase = RebaseCommands(git_ops)

    if args.command == "continue":
        rebase.continue_rebase()
    elif args.command == "abort":
        rebase.abort_rebase()
    elif args.command == "skip":
        rebase.skip_rebase()
    elif args.command == "todo":
        _run_todo_command(args, rebase)
    elif args.command == "cherry-pick":
        rebase.cherry_pick_commits(git_ops.get_commits_by_sha(args.shas))
    elif args.command == "edit-from":
        rebase.edit_rebase(args.ref)
    else:
        commits = git_ops.get_commits(limit=args.limit)
        if args.command == "reword":
            rebase.reword_commit(commits, args.index, args.message)
        elif args.command == "author":
            if args.set:
                rebase.set_commit_author(commits, args.index, args.set)
            else:
                rebase.reset_commit_author(commits, args.index)
        elif args.command == "move-up":
            rebase.move_commit_up(commits, args.index)
        elif args.command == "move-down":
            rebase.move_commit_down(commits, args.index)
        elif args.command == "action":
            rebase.interactive_rebase(commits, args.index, args.action)
        elif args.command == "amend-to":
            rebase.amend_to(_commit_at(commits, args.index))
        elif args.command == "discard":
            rebase.discard_old_file_changes(commits, args.index, args.file)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-rebase-pilot",
        description="Reword, reorder, squash and edit commits without git's editor prompts",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log git commands and instructions"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=300,
        help="Number of commits to load from HEAD (default: 300)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    reword = subparsers.add_parser("reword", help="Change a commit message")
    reword.add_argument("index", type=int, help="Commit index, 0 is HEAD")
    reword.add_argument("-m", "--message", required=True)

    author = subparsers.add_parser("author", help="Reset or set a commit author")
    author.add_argument("index", type=int)
    author.add_argument("--set", metavar="'NAME <EMAIL>'", help="Author to set")

    for name, help_text in (
        ("move-up", "Swap a commit with the one above it"),
        ("move-down", "Swap a commit with the one below it"),
        ("amend-to", "Amend staged changes into a commit"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("index", type=int)

    action = subparsers.add_parser("action", help="Squash, fixup, drop or edit a commit")
    action.add_argument("index", type=int)
    action.add_argument("action", choices=ACTION_CHOICES)

    discard = subparsers.add_parser("discard", help="Drop a file's changes from a commit")
    discard.add_argument("index", type=int)
    discard.add_argument("file")

    cherry_pick = subparsers.add_parser("cherry-pick", help="Copy commits onto HEAD")
    cherry_pick.add_argument("shas", nargs="+", help="Commits, newest first")

    edit_from = subparsers.add_parser(
        "edit-from", help="Start a rebase onto a ref that stops immediately"
    )
    edit_from.add_argument("ref")

    for name in ("continue", "abort", "skip"):
        subparsers.add_parser(name, help=f"{name.capitalize()} the current rebase")

    todo = subparsers.add_parser("todo", help="Inspect or edit a paused rebase")
    todo_sub = todo.add_subparsers(dest="todo_command", required=True)
    todo_sub.add_parser("show")
    todo_set = todo_sub.add_parser("set")
    todo_set.add_argument("sha")
    todo_set.add_argument("action", choices=ACTION_CHOICES)
    for name in ("up", "down"):
        todo_sub.add_parser(name).add_argument("sha")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for git-rebase-pilot command."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        git_ops = GitOps()

        if not git_ops.is_git_available():
            error = RepositoryStateError(
                "Git is not installed or not available in PATH",
                recovery_suggestion="Please install git and ensure it's available in your PATH environment variable",
            )
            ErrorReporter.report_error(error)
            sys.exit(1)

        if not git_ops.is_git_repo():
            error = RepositoryStateError(
                "Not in a git repository",
                recovery_suggestion="Run this command from within a git repository",
            )
            ErrorReporter.report_error(error)
            sys.exit(1)

        run_command(args, git_ops)

    except RebaseConflictError as e:
        print("\n⚠️ Rebase conflicts detected:")
        for file_path in e.conflicted_files:
            print(f"  {file_path}")

        print("\nTo resolve conflicts:")
        print("1. Edit the conflicted files to resolve conflicts")
        print("2. Stage the resolved files: git add <files>")
        print("3. Continue the rebase: git-rebase-pilot continue")
        print("4. Or abort the rebase: git-rebase-pilot abort")
        sys.exit(1)
    except GitRebasePilotError as e:
        ErrorReporter.report_error(e)
        sys.exit(1)
    except KeyboardInterrupt:
        ErrorReporter.report_error(UserCancelledError("git-rebase-pilot operation"))
        sys.exit(130)
    except (subprocess.SubprocessError, OSError) as e:
        wrapped = handle_unexpected_error(
            e, "git operation", "Check git installation and repository state"
        )
        ErrorReporter.report_error(wrapped)
        sys.exit(1)


if __name__ == "__main__":
    main()
