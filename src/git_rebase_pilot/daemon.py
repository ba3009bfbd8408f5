"""Editor substitute run by git in place of a text editor.

git invokes GIT_SEQUENCE_EDITOR / GIT_EDITOR with the path of the file to
edit. When this program is started that way, GIT_REBASE_PILOT_DAEMON_KIND
tells it which mode it is in:

* EXIT_IMMEDIATELY: leave the file untouched (continue, abort, skip, autosquash)
* INTERACTIVE_REBASE: apply the instructions payload to git-rebase-todo; any
  other file, such as a commit message, is accepted unchanged
"""

import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Sequence

from git_rebase_pilot import todo_file
from git_rebase_pilot.exceptions import GitRebasePilotError
from git_rebase_pilot.instructions import RebaseInstructions
from git_rebase_pilot.models import TodoAction

logger = logging.getLogger(__name__)

DAEMON_KIND_ENV_KEY = "GIT_REBASE_PILOT_DAEMON_KIND"


class DaemonKind(str, Enum):
    EXIT_IMMEDIATELY = "EXIT_IMMEDIATELY"
    INTERACTIVE_REBASE = "INTERACTIVE_REBASE"

    def __str__(self) -> str:
        return self.value


def get_daemon_kind(env: Mapping[str, str]) -> Optional[DaemonKind]:
    value = env.get(DAEMON_KIND_ENV_KEY)
    if not value:
        return None
    try:
        return DaemonKind(value)
    except ValueError:
        logger.warning(f"Unknown daemon kind {value!r}")
        return None


def apply_instructions(path: Path, instructions: RebaseInstructions) -> None:
    """Apply every non-empty facet of the payload to the todo file."""
    if instructions.lines_to_prepend:
        logger.debug(f"Prepending to {path}:\n{instructions.lines_to_prepend}")
        todo_file.prepend_todo_lines(path, instructions.lines_to_prepend)

    if instructions.change_todo_actions:
        todo_file.change_todo_actions(path, instructions.change_todo_actions)

    if instructions.sha_to_move_up:
        todo_file.move_todo_up(
            path, instructions.sha_to_move_up, TodoAction.PICK.value
        )

    if instructions.sha_to_move_down:
        todo_file.move_todo_down(
            path, instructions.sha_to_move_down, TodoAction.PICK.value
        )


def _handle_interactive_rebase(argv: Sequence[str], env: Mapping[str, str]) -> int:
    if not argv:
        logger.error("No file given to edit")
        return 1

    path = Path(argv[-1])
    if path.name != todo_file.TODO_FILE_NAME:
        # commit message editor: keep git's prepared message
        return 0

    instructions = RebaseInstructions.from_env(env)
    if instructions is None:
        return 0

    apply_instructions(path, instructions)
    return 0


def run_daemon(
    argv: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None
) -> int:
    """Run in editor-substitute mode.

    Args:
        argv: Arguments git passed to the editor, usually one file path
        env: Process environment

    Returns:
        Exit code; non-zero makes git abort the step
    """
    argv = sys.argv[1:] if argv is None else argv
    env = os.environ if env is None else env

    kind = get_daemon_kind(env)
    logger.debug(f"Editor substitute started in {kind} mode with {list(argv)}")

    if kind is None or kind == DaemonKind.EXIT_IMMEDIATELY:
        return 0

    try:
        return _handle_interactive_rebase(argv, env)
    except GitRebasePilotError as e:
        logger.error(f"Failed to apply rebase instructions: {e}")
        return 1


def main() -> None:
    level = logging.DEBUG if os.environ.get("DEBUG") == "TRUE" else logging.WARNING
    logging.basicConfig(level=level, format="git-rebase-pilot: %(message)s")
    sys.exit(run_daemon())
