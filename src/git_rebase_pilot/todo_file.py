"""Direct edits to the git-rebase-todo file of a paused or starting rebase.

Entries are addressed by commit sha, never by line number. Every line other
than the one being edited keeps its exact bytes, including comments, blank
lines and line terminators.

Up and down follow the commit list, which shows the newest commit at the top,
while the todo file lists the oldest commit first. Moving an entry up swaps it
with the next commit, break or update-ref line in the file, moving it down swaps
it with the previous one, so a commit can be moved across a branch ref. Comments
and the other commands without a commit (label, reset, exec) stay where they
are. At either end of the file a move does nothing.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from git_rebase_pilot.exceptions import TodoFileError
from git_rebase_pilot.instructions import ChangeTodoAction
from git_rebase_pilot.models import COMMIT_ACTIONS, TodoAction, normalize_action

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

TODO_FILE_NAME = "git-rebase-todo"

_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")
_ACTION_RE = re.compile(r"(\s*)(\S+)(.*)", re.DOTALL)
_COMMIT_ACTION_NAMES = {action.value for action in COMMIT_ACTIONS}
# lines without a commit that still take part in a move
_MOVABLE_NON_COMMIT_ACTIONS = {TodoAction.BREAK.value, TodoAction.UPDATE_REF.value}


@dataclass
class TodoEntry:
    """One physical line of the todo file."""

    body: str
    ending: str
    action: Optional[str] = None
    sha: Optional[str] = None

    @property
    def is_comment(self) -> bool:
        return self.action is None

    @property
    def is_movable(self) -> bool:
        return self.sha is not None or self.action in _MOVABLE_NON_COMMIT_ACTIONS

    def to_string(self) -> str:
        return self.body + self.ending


def parse_entry(line: str) -> TodoEntry:
    if line.endswith("\r\n"):
        body, ending = line[:-2], "\r\n"
    elif line.endswith("\n"):
        body, ending = line[:-1], "\n"
    else:
        body, ending = line, ""

    entry = TodoEntry(body=body, ending=ending)
    stripped = body.strip()
    if not stripped or stripped.startswith("#"):
        return entry

    tokens = stripped.split()
    entry.action = normalize_action(tokens[0])
    if entry.action not in _COMMIT_ACTION_NAMES:
        return entry

    args = tokens[1:]
    if entry.action == TodoAction.MERGE.value:
        # merge -C <sha> <label>; a bare "merge <label>" has no commit
        if len(args) >= 2 and args[0] in ("-C", "-c"):
            entry.sha = args[1]
        return entry

    for arg in args:
        if not arg.startswith("-"):
            entry.sha = arg
            break
    return entry


def read_todo_file(path: PathLike) -> List[TodoEntry]:
    """Read and parse a todo file.

    Raises:
        TodoFileError: If the file cannot be read
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise TodoFileError(str(path), None, f"failed to read todo file: {e}") from e
    return [parse_entry(line) for line in _LINE_RE.findall(content)]


def write_todo_file(path: PathLike, entries: Iterable[TodoEntry]) -> None:
    content = "".join(entry.to_string() for entry in entries)
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        raise TodoFileError(str(path), None, f"failed to write todo file: {e}") from e


def shas_match(a: str, b: str) -> bool:
    """Compare shas where either side may be abbreviated."""
    if not a or not b:
        return False
    return a.startswith(b) or b.startswith(a)


def find_entry_index(
    entries: List[TodoEntry], path: PathLike, sha: str, action: Optional[str]
) -> int:
    """Find the entry for sha, also matching action when one is given.

    The action check tells apart repeated shas (a pick and a later merge).

    Raises:
        TodoFileError: If no entry matches
    """
    wanted_action = normalize_action(str(action)) if action else None
    for i, entry in enumerate(entries):
        if entry.sha is None or not shas_match(entry.sha, sha):
            continue
        if wanted_action is None or entry.action == wanted_action:
            return i
    raise TodoFileError(str(path), sha, f"todo not found in {TODO_FILE_NAME}")


def _set_action(entry: TodoEntry, new_action: str) -> None:
    match = _ACTION_RE.match(entry.body)
    if match is None:
        return
    leading, _, rest = match.groups()
    entry.body = f"{leading}{new_action}{rest}"
    entry.action = normalize_action(new_action)


def _swap(entries: List[TodoEntry], i: int, j: int) -> None:
    # swap content only; line terminators stay in place
    first, second = entries[i], entries[j]
    entries[i] = TodoEntry(second.body, first.ending, second.action, second.sha)
    entries[j] = TodoEntry(first.body, second.ending, first.action, first.sha)


def _neighbour_index(entries: List[TodoEntry], index: int, step: int) -> Optional[int]:
    i = index + step
    while 0 <= i < len(entries):
        if entries[i].is_movable:
            return i
        i += step
    return None


def edit_rebase_todo(
    path: PathLike, sha: str, old_action: Optional[str], new_action: str
) -> None:
    """Set the action of the todo entry for sha.

    Args:
        path: Path of the git-rebase-todo file
        sha: Commit whose entry to change
        old_action: Action the entry currently has, None to match on sha only
        new_action: Action to write
    """
    entries = read_todo_file(path)
    index = find_entry_index(entries, path, sha, old_action)
    _set_action(entries[index], str(new_action))
    write_todo_file(path, entries)


def _move_todo(path: PathLike, sha: str, action: Optional[str], step: int) -> None:
    entries = read_todo_file(path)
    index = find_entry_index(entries, path, sha, action)
    destination = _neighbour_index(entries, index, step)
    if destination is None:
        logger.debug(f"Todo {sha} already at the edge of {path}, nothing to move")
        return
    _swap(entries, index, destination)
    write_todo_file(path, entries)


def move_todo_up(path: PathLike, sha: str, action: Optional[str]) -> None:
    """Move the entry for sha one commit towards HEAD (later in the file)."""
    _move_todo(path, sha, action, 1)


def move_todo_down(path: PathLike, sha: str, action: Optional[str]) -> None:
    """Move the entry for sha one commit away from HEAD (earlier in the file)."""
    _move_todo(path, sha, action, -1)


def prepend_todo_lines(path: PathLike, lines: str) -> None:
    """Insert pre-rendered todo lines at the top of the file."""
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            content = f.read()
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(lines + content)
    except (OSError, UnicodeDecodeError) as e:
        raise TodoFileError(str(path), None, f"failed to prepend todo lines: {e}") from e


def change_todo_actions(path: PathLike, changes: Iterable[ChangeTodoAction]) -> None:
    """Rewrite the action of freshly generated pick entries.

    Raises:
        TodoFileError: If any sha is missing, in which case nothing is written
    """
    entries = read_todo_file(path)
    for change in changes:
        index = find_entry_index(entries, path, change.sha, TodoAction.PICK.value)
        _set_action(entries[index], str(change.new_action))
    write_todo_file(path, entries)
