"""
Execution of a single hook item.
"""

import logging
import os
import shlex
import subprocess
from typing import List, Optional, Sequence

from repohooks.pipeline.ignore import IgnoreFilter
from repohooks.pipeline.models import DecisionSession, HookItem
from repohooks.pipeline.trust import Decision, TrustStore

logger = logging.getLogger(__name__)

DEFAULT_SHELL = ["sh"]

# Exit codes used when a hook cannot be started at all, as a shell reports them
EXIT_CANNOT_EXECUTE = 126
EXIT_NOT_FOUND = 127


def read_shebang(path: str) -> Optional[List[str]]:
    """Return the interpreter command from a ``#!`` line, if the file has one."""
    try:
        with open(path, "rb") as f:
            first_line = f.readline(1024)
    except OSError:
        return None

    if not first_line.startswith(b"#!"):
        return None
    command = first_line[2:].decode("utf-8", errors="replace").strip()
    return shlex.split(command) or None


def build_command(item: HookItem, args: Sequence[str]) -> List[str]:
    """Build the argv used to run a hook item."""
    if item.executable:
        return [item.path] + list(args)
    interpreter = read_shebang(item.path) or DEFAULT_SHELL
    return interpreter + [item.path] + list(args)


class HookExecutor:
    """Runs hook items that pass the ignore rules and the trust check."""

    def __init__(self, repo_root: str, ignore_filter: IgnoreFilter, trust_store: TrustStore):
        self.repo_root = repo_root
        self.ignore_filter = ignore_filter
        self.trust_store = trust_store

    def run(self, item: HookItem, args: Sequence[str], session: DecisionSession) -> int:
        """
        Run one hook item.

        Args:
            item: The hook item.
            args: Arguments Git passed to the hook slot.
            session: Trust decisions of the current invocation.

        Returns:
            The hook's exit code, or 0 if it was ignored or skipped.
        """
        if self.ignore_filter.is_ignored(item.path, item.trigger):
            return 0

        if not os.path.isfile(item.path):
            logger.debug(f"Hook file disappeared: {item.path}")
            return 0

        if self.trust_store.decide(item, session) == Decision.SKIP:
            return 0

        command = build_command(item, args)
        logger.debug(f"Executing {item.origin.value} hook: {' '.join(command)}")

        try:
            completed = subprocess.run(command, cwd=self.repo_root)
        except FileNotFoundError as e:
            logger.error(f"! Could not run {item.path}: {e}")
            return EXIT_NOT_FOUND
        except OSError as e:
            logger.error(f"! Could not run {item.path}: {e}")
            return EXIT_CANNOT_EXECUTE

        returncode = completed.returncode
        if returncode < 0:
            # Killed by a signal, reported the way a shell would
            returncode = 128 - returncode
        if returncode != 0:
            logger.debug(f"Hook {item.path} exited with {returncode}")
        return returncode
