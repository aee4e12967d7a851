#!/usr/bin/env python3
"""
Git hook installer module.

This module installs the hook entry points into a repository's hooks
directory. A hook that was already in a slot is kept next to it with the
legacy suffix so it keeps running before the repository's own hooks.
"""

import logging
import os
import stat
import sys
from pathlib import Path
from typing import Dict, List, Optional

from repohooks.database.config_store import (
    GLOBAL,
    LOCAL,
    PREVIOUS_SEARCH_DIR_KEY,
    SINGLE_INSTALL_KEY,
    ConfigStore,
    GitConfigStore,
)
from repohooks.git_hooks.git import GitRunner
from repohooks.git_hooks.hooks import HOOK_MARKER, MANAGED_HOOK_NAMES, render_hook
from repohooks.pipeline.error_handling import GitCommandError

logger = logging.getLogger(__name__)

DEFAULT_LEGACY_SUFFIX = ".replaced.githook"


class GitHookInstaller:
    """Installs the hook entry points into one repository."""

    def __init__(
        self,
        repo_path: Optional[str] = None,
        legacy_suffix: str = DEFAULT_LEGACY_SUFFIX,
        python: str = sys.executable,
        git: Optional[GitRunner] = None,
    ):
        """
        Initialize the GitHookInstaller.

        Args:
            repo_path: Path to the Git repository. If None, the current directory is used.
            legacy_suffix: Suffix for hooks that were in place before installation.
            python: Interpreter the entry points should run.
            git: Git runner for the repository.
        """
        self.repo_path = repo_path or os.getcwd()
        self.legacy_suffix = legacy_suffix
        self.python = python
        self.git = git or GitRunner(self.repo_path)
        self.hooks_dir = self._get_hooks_dir()

    def _get_hooks_dir(self) -> Path:
        """
        Get the path to the Git hooks directory.

        Returns:
            Path to the Git hooks directory.
        """
        try:
            git_dir = self.git.git_dir()
        except GitCommandError:
            raise ValueError(f"Not a Git repository: {self.repo_path}")

        return Path(git_dir) / "hooks"

    def _is_our_hook(self, hook_path: Path) -> bool:
        """
        Check if a hook file is one of our hooks.

        Args:
            hook_path: Path to the hook file.

        Returns:
            True if the hook is one of our hooks, False otherwise.
        """
        try:
            with open(hook_path, "r", errors="replace") as f:
                return HOOK_MARKER in f.read()
        except OSError:
            return False

    def _write_hook(self, hook_name: str, content: str) -> str:
        """
        Write a hook file and make it executable, preserving a foreign hook.

        Args:
            hook_name: Name of the hook (e.g., "pre-commit").
            content: Content of the hook script.

        Returns:
            Path to the created hook file.
        """
        hook_path = self.hooks_dir / hook_name

        if hook_path.exists() and not self._is_our_hook(hook_path):
            replaced_path = self.hooks_dir / f"{hook_name}{self.legacy_suffix}"
            os.replace(hook_path, replaced_path)
            logger.info(f"Kept the existing {hook_name} hook as {replaced_path.name}")

        with open(hook_path, "w") as f:
            f.write(content)

        hook_path.chmod(hook_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        return str(hook_path)

    def install_all_hooks(self, hook_names: Optional[List[str]] = None) -> List[str]:
        """
        Install the entry point into every managed hook slot.

        Args:
            hook_names: Hook slots to install; defaults to all managed hooks.

        Returns:
            List of paths to the installed hook files.
        """
        self.hooks_dir.mkdir(parents=True, exist_ok=True)
        content = render_hook(self.python)

        installed_hooks = []
        for hook_name in hook_names or MANAGED_HOOK_NAMES:
            installed_hooks.append(self._write_hook(hook_name, content))

        logger.info(f"Hooks installed into {self.repo_path}")
        return installed_hooks

    def check_hook_status(self) -> Dict[str, bool]:
        """
        Check the status of the hooks.

        Returns:
            Dictionary with hook names as keys and boolean indicating if they are installed.
        """
        hooks = {}
        for hook_name in MANAGED_HOOK_NAMES:
            hook_path = self.hooks_dir / hook_name
            hooks[hook_name] = hook_path.exists() and self._is_our_hook(hook_path)
        return hooks

    def legacy_hooks(self) -> List[str]:
        """List the replaced hooks that still run before the repository's hooks."""
        return sorted(
            str(path) for path in self.hooks_dir.glob(f"*{self.legacy_suffix}")
            if path.is_file()
        )


def find_repositories(start_dir: str) -> List[str]:
    """
    Find the working trees of all Git repositories below a directory.

    Args:
        start_dir: Directory to search.

    Returns:
        Sorted list of repository root directories.
    """
    roots = []
    for root, dirs, _ in os.walk(start_dir):
        if ".git" in dirs:
            roots.append(root)
            dirs.remove(".git")
    return sorted(roots)


def install_hooks(repo_path: Optional[str] = None, single: bool = False,
                  config_store: Optional[ConfigStore] = None) -> List[str]:
    """
    Install all hooks into one repository.

    Args:
        repo_path: Path to the Git repository. If None, the current directory is used.
        single: Mark the repository as a single-repository installation.
        config_store: Settings store; defaults to the repository's git config.

    Returns:
        List of paths to the installed hook files.
    """
    installer = GitHookInstaller(repo_path)
    installed = installer.install_all_hooks()
    if single:
        config_store = config_store or GitConfigStore(installer.git)
        config_store.set(SINGLE_INSTALL_KEY, "yes", LOCAL)
    return installed


def install_into_repositories(start_dir: str, config_store: ConfigStore) -> Dict[str, bool]:
    """
    Install the hooks into every repository found under ``start_dir``.

    The search directory is remembered as the default for the next run.

    Args:
        start_dir: Directory to search for repositories.
        config_store: Settings store for the remembered search directory.

    Returns:
        Dictionary of repository roots and whether installation succeeded.

    Raises:
        ValueError: If ``start_dir`` is not a directory.
    """
    start_dir = os.path.abspath(os.path.expanduser(start_dir))
    if not os.path.isdir(start_dir):
        raise ValueError(f"'{start_dir}' is not a directory")

    config_store.set(PREVIOUS_SEARCH_DIR_KEY, start_dir, GLOBAL)

    results = {}
    for repo_root in find_repositories(start_dir):
        try:
            GitHookInstaller(repo_root).install_all_hooks()
            results[repo_root] = True
        except (ValueError, OSError) as e:
            logger.error(f"! Failed to install hooks into {repo_root}: {e}")
            results[repo_root] = False
    return results


def check_hooks_status(repo_path: Optional[str] = None) -> Dict[str, bool]:
    """
    Check the status of the hooks.

    Args:
        repo_path: Path to the Git repository. If None, the current directory is used.

    Returns:
        Dictionary with hook names as keys and boolean indicating if they are installed.
    """
    installer = GitHookInstaller(repo_path)
    return installer.check_hook_status()
