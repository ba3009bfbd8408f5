"""Tests for configuration and error helpers."""

import sys

from git_rebase_pilot.config import PilotConfig, default_self_command
from git_rebase_pilot.exceptions import (
    ErrorReporter,
    GitCommandError,
    GitRebasePilotError,
    RepositoryStateError,
    handle_unexpected_error,
    is_no_rebase_in_progress_error,
)


class TestPilotConfig:
    """Test cases for PilotConfig."""

    def test_defaults(self) -> None:
        config = PilotConfig.from_env({})

        assert not config.debug
        assert not config.override_gpg
        assert config.executable == default_self_command()

    def test_self_command_runs_this_interpreter(self) -> None:
        assert default_self_command().endswith(" -m git_rebase_pilot")
        assert sys.executable in default_self_command()

    def test_from_env(self) -> None:
        config = PilotConfig.from_env(
            {
                "GIT_REBASE_PILOT_DEBUG": "true",
                "GIT_REBASE_PILOT_EXECUTABLE": "/opt/pilot",
                "GIT_REBASE_PILOT_OVERRIDE_GPG": "1",
            }
        )

        assert config.debug
        assert config.override_gpg
        assert config.executable == "/opt/pilot"

    def test_falsy_values(self) -> None:
        config = PilotConfig.from_env(
            {"GIT_REBASE_PILOT_DEBUG": "0", "GIT_REBASE_PILOT_OVERRIDE_GPG": "no"}
        )

        assert not config.debug
        assert not config.override_gpg


class TestErrorHelpers:
    """Test cases for error classification and wrapping."""

    def test_no_rebase_in_progress(self) -> None:
        assert is_no_rebase_in_progress_error(
            GitCommandError("git rebase --continue", 128, "fatal: No rebase in progress?")
        )
        assert is_no_rebase_in_progress_error(Exception("no rebase in progress"))
        assert not is_no_rebase_in_progress_error(
            GitCommandError("git rebase --continue", 1, "error: could not apply abc")
        )

    def test_command_error_message(self) -> None:
        assert str(GitCommandError("git log", 128, "")) == (
            "'git log' exited with status 128"
        )

    def test_handle_unexpected_error(self) -> None:
        original = OSError("disk full")

        wrapped = handle_unexpected_error(original, "git operation", "Free some space")

        assert isinstance(wrapped, GitRebasePilotError)
        assert "disk full" in wrapped.message
        assert wrapped.recovery_suggestion == "Free some space"
        assert wrapped.__cause__ is original

    def test_handle_unexpected_error_keeps_ours(self) -> None:
        error = GitRebasePilotError("already ours")

        assert handle_unexpected_error(error, "anything") is error

    def test_report_error(self, capsys) -> None:
        """Test messages with brackets are printed literally."""
        ErrorReporter.report_error(
            RepositoryStateError(
                "bad [state]", current_state="detached", recovery_suggestion="checkout"
            )
        )

        err = capsys.readouterr().err
        assert "bad [state]" in err
        assert "detached" in err
        assert "checkout" in err
