"""Git operations module for running git commands and reading repository state."""

import logging
import os
import re
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from git_rebase_pilot.exceptions import GitCommandError, handle_unexpected_error
from git_rebase_pilot.models import Commit

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


@dataclass(frozen=True, order=True)
class GitVersion:
    """Parsed `git --version` output."""

    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, output: str) -> "GitVersion":
        """Parse output such as 'git version 2.39.2 (Apple Git-143)'.

        Raises:
            ValueError: If no version number is present
        """
        match = _VERSION_RE.search(output)
        if not match:
            raise ValueError(f"Unrecognised git version string: {output!r}")
        major, minor, patch = match.groups()
        return cls(int(major), int(minor), int(patch or 0))

    def is_older_than(self, major: int, minor: int, patch: int = 0) -> bool:
        return self < GitVersion(major, minor, patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class GitOps:
    """Handles git operations for repository analysis and validation."""

    def __init__(self, repo_path: Optional[Path] = None) -> None:
        """Initialize GitOps with optional repository path.

        Args:
            repo_path: Path to git repository. Defaults to current directory.
        """
        self.repo_path = repo_path if repo_path is not None else Path.cwd()
        self._version: Optional[GitVersion] = None

    def _run_git_command(self, *args: str) -> tuple[bool, str]:
        """Run a git command and return success status and output.

        Args:
            *args: Git command arguments

        Returns:
            Tuple of (success, output/error_message)
        """
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=False,
            )
            return (
                result.returncode == 0,
                result.stdout.strip() or result.stderr.strip(),
            )
        except (subprocess.SubprocessError, FileNotFoundError) as e:
            return False, f"Git command failed: {e}"

    def is_git_available(self) -> bool:
        success, _ = self._run_git_command("--version")
        return success

    def is_git_repo(self) -> bool:
        """Check if current directory is inside a git repository.

        Returns:
            True if in a git repository, False otherwise
        """
        success, _ = self._run_git_command("rev-parse", "--git-dir")
        return success

    def get_git_dir(self) -> Path:
        """Get the absolute path of the repository's .git directory.

        Raises:
            GitCommandError: If not inside a git repository
        """
        success, output = self._run_git_command("rev-parse", "--absolute-git-dir")
        if not success:
            raise GitCommandError("git rev-parse --absolute-git-dir", 1, output)
        return Path(output)

    def get_git_version(self) -> GitVersion:
        """Get the installed git version, cached after the first call."""
        if self._version is None:
            success, output = self._run_git_command("--version")
            if not success:
                raise GitCommandError("git --version", 1, output)
            self._version = GitVersion.parse(output)
            logger.debug(f"Detected git version {self._version}")
        return self._version

    def get_config_bool(self, key: str) -> bool:
        """Read a boolean git config value, False when unset."""
        success, output = self._run_git_command("config", "--get", "--bool", key)
        return success and output == "true"

    def file_exists_at(self, ref: str, file_name: str) -> bool:
        """Check whether a path exists in the given revision."""
        success, _ = self._run_git_command("cat-file", "-e", f"{ref}:{file_name}")
        return success

    def is_rebase_in_progress(self) -> bool:
        try:
            git_dir = self.get_git_dir()
        except GitCommandError:
            return False
        return (git_dir / "rebase-merge").exists() or (
            git_dir / "rebase-apply"
        ).exists()

    def get_commits(self, limit: int = 300) -> List[Commit]:
        """Load commits reachable from HEAD, newest first.

        Args:
            limit: Maximum number of commits to load

        Returns:
            List of commits with index 0 being HEAD
        """
        return self._log_commits(f"--max-count={limit}")

    def get_commits_by_sha(self, shas: List[str]) -> List[Commit]:
        """Load the given commits, keeping the order they were given in."""
        return self._log_commits("--no-walk=unsorted", *shas)

    def _log_commits(self, *args: str) -> List[Commit]:
        success, output = self._run_git_command(
            "log", "--format=%H%x00%P%x00%s", *args
        )
        if not success:
            raise GitCommandError("git log", 1, output)

        commits = []
        for line in output.split("\n"):
            if not line.strip():
                continue
            sha, parents, subject = line.split("\x00", 2)
            commits.append(
                Commit(sha=sha, name=subject, is_first_commit=not parents.strip())
            )
        return commits

    def run_git_command(
        self,
        args: list[str],
        env: dict[str, str] | None = None,
        timeout: Optional[float] = 300,
    ) -> subprocess.CompletedProcess[str]:
        """Run a git command and return the complete result.

        Args:
            args: Git command arguments (without 'git')
            env: Optional environment variables
            timeout: Seconds before giving up, None to wait indefinitely

        Returns:
            CompletedProcess with stdout, stderr, and return code
        """
        cmd = ["git"] + args
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                env=env,
                timeout=timeout,
            )
            return result
        except subprocess.TimeoutExpired as e:
            return subprocess.CompletedProcess(
                args=cmd,
                returncode=124,  # timeout exit code
                stdout=e.stdout.decode() if isinstance(e.stdout, bytes) else "",
                stderr=f"Command timed out after {timeout} seconds: {e}",
            )
        except (OSError, PermissionError, FileNotFoundError) as e:
            # File system or permission errors
            return subprocess.CompletedProcess(
                args=cmd,
                returncode=1,
                stdout="",
                stderr=f"System error: {e}",
            )
        except Exception as e:
            # Unexpected errors - wrap for better reporting
            wrapped = handle_unexpected_error(e, f"git command: {' '.join(cmd)}")
            return subprocess.CompletedProcess(
                args=cmd,
                returncode=1,
                stdout="",
                stderr=str(wrapped),
            )


@dataclass
class GitCommand:
    """An unexecuted git invocation together with the environment it needs.

    Environment variables added here are layered over the parent process
    environment when the command runs.
    """

    git_ops: GitOps
    args: List[str]
    env: Dict[str, str] = field(default_factory=dict)

    def add_env_vars(self, **env: str) -> "GitCommand":
        self.env.update(env)
        return self

    def to_string(self) -> str:
        return shlex.join(["git", *self.args])

    def full_env(self) -> Dict[str, str]:
        return {**os.environ, **self.env}

    def run(self) -> str:
        """Run the command to completion.

        Rebases can pause on editors or hooks, so no timeout is applied.

        Returns:
            Captured stdout

        Raises:
            GitCommandError: If git exits non-zero
        """
        logger.debug(f"RunCommand: {self.to_string()}")
        result = self.git_ops.run_git_command(
            self.args, env=self.full_env(), timeout=None
        )
        if result.returncode != 0:
            raise GitCommandError(
                self.to_string(),
                result.returncode,
                (result.stderr or result.stdout).strip(),
            )
        return result.stdout
