"""Exception hierarchy and error reporting for git-rebase-pilot."""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape

# git prints this (locale pinned to English, capitalised in newer releases) when
# continue/abort/skip is issued without an active rebase
NO_REBASE_IN_PROGRESS = "no rebase in progress"


class GitRebasePilotError(Exception):
    """Base class for all errors raised by git-rebase-pilot."""

    def __init__(
        self, message: str, recovery_suggestion: Optional[str] = None
    ) -> None:
        """Initialize error.

        Args:
            message: Human readable error message
            recovery_suggestion: Optional hint on how to recover
        """
        super().__init__(message)
        self.message = message
        self.recovery_suggestion = recovery_suggestion


class GitCommandError(GitRebasePilotError):
    """Raised when a git subprocess exits non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            stderr or f"'{command}' exited with status {returncode}"
        )


class RebaseConflictError(GitCommandError):
    """Raised when git pauses a rebase because of conflicts that need user resolution."""

    def __init__(
        self, command: str, returncode: int, stderr: str, conflicted_files: List[str]
    ) -> None:
        """Initialize conflict error.

        Args:
            command: The git command that stopped
            returncode: Its exit status
            stderr: Its error output
            conflicted_files: List of files with conflicts
        """
        super().__init__(command, returncode, stderr)
        self.conflicted_files = conflicted_files
        self.recovery_suggestion = (
            "Resolve the conflicts, stage the files and continue the rebase"
        )


class CommitIndexError(GitRebasePilotError):
    """Raised when a commit index falls outside the commit sequence."""

    def __init__(self, index: int, commit_count: int) -> None:
        self.index = index
        self.commit_count = commit_count
        super().__init__(
            f"index {index} outside of range of commits ({commit_count} commits)"
        )


class SigningRequiredError(GitRebasePilotError):
    """Raised when an automated rebase is attempted with commit signing enabled."""

    def __init__(self) -> None:
        super().__init__(
            "Feature not available for repositories that sign commits",
            recovery_suggestion="Disable commit.gpgSign or set GIT_REBASE_PILOT_OVERRIDE_GPG=1",
        )


class TodoFileError(GitRebasePilotError):
    """Raised when the on-disk rebase todo cannot be read, parsed or edited."""

    def __init__(self, path: str, sha: Optional[str], message: str) -> None:
        self.path = path
        self.sha = sha
        target = f" (sha {sha})" if sha else ""
        super().__init__(f"{path}{target}: {message}")


class InstructionsError(GitRebasePilotError):
    """Raised when a rebase instructions payload cannot be encoded or decoded."""


class RepositoryStateError(GitRebasePilotError):
    """Raised when the repository is not in a state we can work with."""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        super().__init__(message, recovery_suggestion)
        self.current_state = current_state


class UserCancelledError(GitRebasePilotError):
    """Raised when the user interrupts an operation."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} cancelled by user")


def is_no_rebase_in_progress_error(error: BaseException) -> bool:
    """Return True if the error means git had no rebase to continue or abort."""
    text = error.stderr if isinstance(error, GitCommandError) else str(error)
    return NO_REBASE_IN_PROGRESS in text.lower()


def handle_unexpected_error(
    error: Exception, context: str, recovery_suggestion: Optional[str] = None
) -> GitRebasePilotError:
    """Wrap an unexpected exception in a GitRebasePilotError.

    Args:
        error: The original exception
        context: Description of what was being done
        recovery_suggestion: Optional hint on how to recover

    Returns:
        Wrapped error, or the original if it is already one of ours
    """
    if isinstance(error, GitRebasePilotError):
        return error
    wrapped = GitRebasePilotError(
        f"Unexpected error during {context}: {error}", recovery_suggestion
    )
    wrapped.__cause__ = error
    return wrapped


class ErrorReporter:
    """Formats errors for the terminal."""

    console = Console(stderr=True, highlight=False)

    @classmethod
    def report_error(cls, error: GitRebasePilotError) -> None:
        cls.console.print(f"[bold red]Error:[/bold red] {escape(error.message)}")
        current_state = getattr(error, "current_state", None)
        if current_state:
            cls.console.print(f"  Current state: {escape(current_state)}")
        if error.recovery_suggestion:
            cls.console.print(f"  [yellow]Suggestion:[/yellow] {escape(error.recovery_suggestion)}")
