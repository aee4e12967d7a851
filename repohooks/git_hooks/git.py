"""
Thin wrapper around the git command line.

Every git invocation made by the pipeline goes through :class:`GitRunner`
so that failures surface as :class:`GitCommandError` and tests can swap in a
recording fake.
"""

import logging
import os
import subprocess
from typing import List, Optional

from repohooks.pipeline.error_handling import GitCommandError

logger = logging.getLogger(__name__)


class GitRunner:
    """Runs git commands relative to a repository path."""

    def __init__(self, repo_path: Optional[str] = None, executable: str = "git"):
        """
        Initialize the GitRunner.

        Args:
            repo_path: Working directory for git commands. If None, the current directory is used.
            executable: Name or path of the git binary.
        """
        self.repo_path = repo_path or os.getcwd()
        self.executable = executable

    def run(self, args: List[str], cwd: Optional[str] = None) -> str:
        """
        Run a git command and return its output.

        Args:
            args: Git arguments, without the leading ``git``.
            cwd: Directory to run in. Defaults to the repository path.

        Returns:
            Standard output of the command, stripped.

        Raises:
            GitCommandError: If git is missing or exits with a non-zero status.
        """
        command = [self.executable] + list(args)
        logger.debug(f"Running: {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                cwd=cwd or self.repo_path,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
            )
        except OSError as e:
            raise GitCommandError(
                f"Could not run {command[0]}",
                returncode=127,
                original_exception=e,
            )

        if result.returncode != 0:
            raise GitCommandError(
                f"git {' '.join(args)} failed with exit code {result.returncode}",
                returncode=result.returncode,
                output=result.stdout.strip(),
                context={"cwd": cwd or self.repo_path},
            )
        return result.stdout.strip()

    def toplevel(self) -> str:
        """Return the root of the working tree."""
        return self.run(["rev-parse", "--show-toplevel"])

    def git_dir(self) -> str:
        """Return the absolute path of the repository's private metadata directory."""
        git_dir = self.run(["rev-parse", "--git-dir"])
        return os.path.abspath(os.path.join(self.repo_path, git_dir))

    def is_repository(self) -> bool:
        """Check whether the repository path is inside a git work tree."""
        try:
            return self.run(["rev-parse", "--is-inside-work-tree"]) == "true"
        except GitCommandError:
            return False
