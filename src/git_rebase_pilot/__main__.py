"""Entry point for `python -m git_rebase_pilot`.

git launches this module as its editor; the daemon kind variable tells that
case apart from a user running the command line interface.
"""

import os

from git_rebase_pilot.daemon import DAEMON_KIND_ENV_KEY


def run() -> None:
    if os.environ.get(DAEMON_KIND_ENV_KEY):
        from git_rebase_pilot.daemon import main as daemon_main

        daemon_main()
    else:
        from git_rebase_pilot.main import main

        main()


if __name__ == "__main__":
    run()
