"""
Ignore rules for hook items.

Patterns come from the repository-wide ``.githooks/.ignore`` file followed by
the trigger-scoped ``.githooks/<trigger>/.ignore`` file and are matched
against the hook's file name with shell-glob semantics.
"""

import fnmatch
import logging
import os
from typing import List, Optional

logger = logging.getLogger(__name__)


def read_patterns(path: str) -> List[str]:
    """Read glob patterns from an ignore file, skipping blanks and comments."""
    if not os.path.isfile(path):
        return []

    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
    except OSError as e:
        logger.warning(f"Could not read ignore file {path}: {e}")
        return []

    return [line for line in lines if line and not line.startswith("#")]


class IgnoreFilter:
    """Decides whether a hook item is excluded by the repository's ignore files."""

    def __init__(self, repo_root: str, hooks_dir_name: str = ".githooks", ignore_file: str = ".ignore"):
        self.repo_root = repo_root
        self.hooks_dir = os.path.join(repo_root, hooks_dir_name)
        self.ignore_file = ignore_file

    def patterns(self, trigger_name: str) -> List[str]:
        """Build the effective rule set for a trigger, repository-wide patterns first."""
        return (
            read_patterns(os.path.join(self.hooks_dir, self.ignore_file))
            + read_patterns(os.path.join(self.hooks_dir, trigger_name, self.ignore_file))
        )

    def matching_pattern(self, hook_path: str, trigger_name: str) -> Optional[str]:
        """Return the first pattern matching the hook's file name, if any."""
        filename = os.path.basename(hook_path)
        for pattern in self.patterns(trigger_name):
            if fnmatch.fnmatchcase(filename, pattern):
                return pattern
        return None

    def is_ignored(self, hook_path: str, trigger_name: str) -> bool:
        pattern = self.matching_pattern(hook_path, trigger_name)
        if pattern is not None:
            logger.debug(f"Ignoring {hook_path} (matches '{pattern}')")
            return True
        return False
