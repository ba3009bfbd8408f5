"""Commit and todo line models shared by the rebase operations."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class TodoAction(str, Enum):
    """Commands understood in a git-rebase-todo file."""

    PICK = "pick"
    REWORD = "reword"
    EDIT = "edit"
    SQUASH = "squash"
    FIXUP = "fixup"
    EXEC = "exec"
    BREAK = "break"
    DROP = "drop"
    LABEL = "label"
    RESET = "reset"
    MERGE = "merge"
    UPDATE_REF = "update-ref"
    NOOP = "noop"

    def __str__(self) -> str:
        return self.value


# single letter forms git accepts in the todo file
ACTION_ABBREVIATIONS = {
    "p": TodoAction.PICK,
    "r": TodoAction.REWORD,
    "e": TodoAction.EDIT,
    "s": TodoAction.SQUASH,
    "f": TodoAction.FIXUP,
    "x": TodoAction.EXEC,
    "b": TodoAction.BREAK,
    "d": TodoAction.DROP,
    "l": TodoAction.LABEL,
    "t": TodoAction.RESET,
    "m": TodoAction.MERGE,
    "u": TodoAction.UPDATE_REF,
}

# actions whose first argument is a commit
COMMIT_ACTIONS = {
    TodoAction.PICK,
    TodoAction.REWORD,
    TodoAction.EDIT,
    TodoAction.SQUASH,
    TodoAction.FIXUP,
    TodoAction.DROP,
    TodoAction.MERGE,
}


def normalize_action(action: str) -> str:
    """Expand an abbreviated todo action to its full name."""
    action = action.strip().lower()
    if action in ACTION_ABBREVIATIONS:
        return ACTION_ABBREVIATIONS[action].value
    return action


@dataclass
class Commit:
    """A commit as seen by the caller's commit list (index 0 is HEAD)."""

    sha: str
    name: str
    action: Optional[str] = None
    is_first_commit: bool = False


def is_head_commit(commits: List[Commit], index: int) -> bool:
    """Return True if index refers to HEAD of a commit list that is not mid-rebase."""
    return index == 0 and len(commits) > 0 and not commits[0].action


@dataclass
class TodoLine:
    """A single line to inject into a generated rebase todo."""

    action: str
    commit: Optional[Commit] = None

    def to_string(self) -> str:
        action = str(self.action)
        if action == TodoAction.BREAK.value:
            return f"{action}\n"
        if self.commit is None:
            raise ValueError(f"todo line '{action}' requires a commit")
        return f"{action} {self.commit.sha} {self.commit.name}\n"
