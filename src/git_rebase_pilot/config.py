"""Environment-derived configuration for git-rebase-pilot."""

import os
import shlex
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

DEBUG_ENV_KEY = "GIT_REBASE_PILOT_DEBUG"
EXECUTABLE_ENV_KEY = "GIT_REBASE_PILOT_EXECUTABLE"
OVERRIDE_GPG_ENV_KEY = "GIT_REBASE_PILOT_OVERRIDE_GPG"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(env: Mapping[str, str], key: str) -> bool:
    return env.get(key, "").strip().lower() in _TRUTHY


def default_self_command() -> str:
    """Shell command that re-runs this program, used as git's editor hook."""
    return f"{shlex.quote(sys.executable)} -m git_rebase_pilot"


@dataclass
class PilotConfig:
    """Runtime configuration.

    Attributes:
        debug: Passed on to child processes as DEBUG=TRUE
        executable: Command git runs in place of an editor
        override_gpg: Allow automated rebases even when commit signing is on
    """

    debug: bool = False
    executable: str = ""
    override_gpg: bool = False

    def __post_init__(self) -> None:
        if not self.executable:
            self.executable = default_self_command()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "PilotConfig":
        """Build configuration from environment variables.

        Args:
            env: Mapping to read from. Defaults to os.environ.
        """
        env = os.environ if env is None else env
        return cls(
            debug=_env_flag(env, DEBUG_ENV_KEY),
            executable=env.get(EXECUTABLE_ENV_KEY, "").strip(),
            override_gpg=_env_flag(env, OVERRIDE_GPG_ENV_KEY),
        )
