#!/usr/bin/env python3
"""
Git hook trigger script.

This script is called by the installed hook entry points. It runs every hook
defined for the trigger and exits with the first failing hook's exit code,
which makes Git abort the operation.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence

from repohooks.config import ConfigManager
from repohooks.database.config_store import ConfigStore, GitConfigStore
from repohooks.git_hooks.git import GitRunner
from repohooks.pipeline.error_handling import ConfigError, GitCommandError
from repohooks.pipeline.logging import init_logging, init_logging_from_config
from repohooks.pipeline.models import HookTrigger
from repohooks.pipeline.orchestrator import create_pipeline
from repohooks.pipeline.prompts import Prompter
from repohooks.pipeline.updates import UpdateChecker

logger = logging.getLogger("repohooks.git_hooks.trigger")


def find_repo_root(repo_path: Optional[str] = None) -> str:
    """Return the working tree root, falling back to the given or current directory."""
    path = repo_path or os.getcwd()
    try:
        return GitRunner(path).toplevel() or path
    except GitCommandError:
        return path


def run_trigger(
    trigger_name: str,
    args: Sequence[str],
    repo_path: Optional[str] = None,
    hook_dir: Optional[str] = None,
    config: Optional[ConfigManager] = None,
    config_store: Optional[ConfigStore] = None,
    prompter: Optional[Prompter] = None,
) -> int:
    """
    Run all hooks for a trigger in a repository.

    Args:
        trigger_name: Name of the Git hook (e.g. pre-commit).
        args: Arguments Git passed to the hook.
        repo_path: Path inside the repository. Defaults to the current directory.
        hook_dir: Directory of the hook entry points, for legacy hooks.
        config: Application configuration.
        config_store: Settings store; defaults to git config.
        prompter: Operator prompter; defaults to the terminal.

    Returns:
        Exit code for the Git hook.
    """
    config = config or ConfigManager()
    repo_root = find_repo_root(repo_path)
    git = GitRunner(repo_root)
    config_store = config_store or GitConfigStore(git)

    pipeline = create_pipeline(
        repo_root,
        config,
        hook_dir=hook_dir,
        config_store=config_store,
        prompter=prompter,
        git=git,
        update_checker=UpdateChecker(config_store),
    )
    return pipeline.run(HookTrigger(trigger_name, tuple(args)))


def main(argv: Optional[List[str]] = None):
    """Main entry point for the git hook trigger script."""
    parser = argparse.ArgumentParser(description="Run the repository hooks for a Git trigger")
    parser.add_argument("--hook-dir", help="Directory of the Git hook entry points")
    parser.add_argument("--repo-path", help="Path to the Git repository")
    parser.add_argument("hook_type", help="Name of the Git hook, e.g. pre-commit")
    parser.add_argument("hook_args", nargs=argparse.REMAINDER, help="Arguments passed by Git")

    args = parser.parse_args(argv)

    try:
        config = ConfigManager()
        init_logging_from_config(config)
    except ConfigError as e:
        init_logging()
        logger.error(str(e))
        logger.warning("Continuing with the default configuration")
        config = ConfigManager(config={})

    exit_code = run_trigger(
        args.hook_type,
        args.hook_args,
        repo_path=args.repo_path,
        hook_dir=args.hook_dir,
        config=config,
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
