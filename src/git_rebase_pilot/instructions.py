"""Instructions describing how the generated rebase todo should be changed.

A rebase command carries at most one instruction. The instruction is written
into a `RebaseInstructions` payload which travels to the editor-substitute
process as JSON in the GIT_REBASE_PILOT_INSTRUCTIONS environment variable.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from git_rebase_pilot.exceptions import InstructionsError
from git_rebase_pilot.models import TodoLine

INSTRUCTIONS_ENV_KEY = "GIT_REBASE_PILOT_INSTRUCTIONS"


@dataclass
class ChangeTodoAction:
    sha: str
    new_action: str


@dataclass
class RebaseInstructions:
    """Wire payload shared with the editor-substitute process."""

    lines_to_prepend: str = ""
    change_todo_actions: List[ChangeTodoAction] = field(default_factory=list)
    sha_to_move_up: str = ""
    sha_to_move_down: str = ""

    def to_json(self) -> str:
        payload = {
            "LinesToPrependToRebaseTODO": self.lines_to_prepend,
            "ChangeTodoActions": [
                {"Sha": change.sha, "NewAction": str(change.new_action)}
                for change in self.change_todo_actions
            ],
            "ShaToMoveUp": self.sha_to_move_up,
            "ShaToMoveDown": self.sha_to_move_down,
        }
        return json.dumps(payload, separators=(",", ":"))

    @classmethod
    def from_json(cls, data: str) -> "RebaseInstructions":
        """Decode a payload produced by `to_json`.

        Raises:
            InstructionsError: If the payload is not valid
        """
        try:
            raw = json.loads(data)
            if not isinstance(raw, dict):
                raise ValueError("payload is not an object")
            return cls(
                lines_to_prepend=raw.get("LinesToPrependToRebaseTODO") or "",
                change_todo_actions=[
                    ChangeTodoAction(sha=item["Sha"], new_action=item["NewAction"])
                    for item in raw.get("ChangeTodoActions") or []
                ],
                sha_to_move_up=raw.get("ShaToMoveUp") or "",
                sha_to_move_down=raw.get("ShaToMoveDown") or "",
            )
        except (ValueError, KeyError, TypeError) as e:
            raise InstructionsError(f"Invalid rebase instructions: {e}") from e

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> Optional["RebaseInstructions"]:
        data = env.get(INSTRUCTIONS_ENV_KEY)
        if not data:
            return None
        return cls.from_json(data)


def todo_lines_to_string(todo_lines: Sequence[TodoLine]) -> str:
    """Render todo lines built newest-first in git's oldest-first order."""
    return "".join(line.to_string() for line in reversed(todo_lines))


class RebaseInstruction:
    """Base class for the instructions a rebase command can carry."""

    def serialize(self, instructions: RebaseInstructions) -> str:
        """Add our data to the payload and return a description for the log."""
        raise NotImplementedError


@dataclass
class PrependLinesInstruction(RebaseInstruction):
    todo_lines: List[TodoLine]

    def serialize(self, instructions: RebaseInstructions) -> str:
        todo_str = todo_lines_to_string(self.todo_lines)
        instructions.lines_to_prepend = todo_str
        return f"Creating TODO file for interactive rebase: \n\n{todo_str}"


@dataclass
class ChangeTodoActionsInstruction(RebaseInstruction):
    actions: List[ChangeTodoAction]

    def serialize(self, instructions: RebaseInstructions) -> str:
        instructions.change_todo_actions = list(self.actions)
        change_todo_str = "\n".join(
            f"{change.sha}:{change.new_action!s}" for change in self.actions
        )
        return f"Changing TODO actions: {change_todo_str}"


@dataclass
class MoveDownInstruction(RebaseInstruction):
    sha: str

    def serialize(self, instructions: RebaseInstructions) -> str:
        instructions.sha_to_move_down = self.sha
        return f"Moving TODO down: {self.sha}"


@dataclass
class MoveUpInstruction(RebaseInstruction):
    sha: str

    def serialize(self, instructions: RebaseInstructions) -> str:
        instructions.sha_to_move_up = self.sha
        return f"Moving TODO up: {self.sha}"


def build_payload(instruction: RebaseInstruction) -> tuple[Dict[str, str], str]:
    """Serialize one instruction into environment variables for the child process.

    Returns:
        Tuple of (env vars to add, log description)
    """
    instructions = RebaseInstructions()
    log_str = instruction.serialize(instructions)
    return {INSTRUCTIONS_ENV_KEY: instructions.to_json()}, log_str
