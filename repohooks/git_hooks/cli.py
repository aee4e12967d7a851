#!/usr/bin/env python3
"""
CLI tool for managing repository hooks.

This module provides a command-line interface for installing the hook entry
points, running triggers by hand, refreshing shared hook repositories and
reviewing or changing trust decisions.
"""

import argparse
import logging
import os
import sys

import tabulate

from repohooks.config import ConfigManager
from repohooks.database.checksum_store import ChecksumStore, RecordStatus, fingerprint_file
from repohooks.database.config_store import DISABLE_KEY, GLOBAL, LOCAL, PREVIOUS_SEARCH_DIR_KEY, GitConfigStore
from repohooks.git_hooks.git import GitRunner
from repohooks.git_hooks.installer import GitHookInstaller, install_hooks, install_into_repositories
from repohooks.git_hooks.trigger import find_repo_root, run_trigger
from repohooks.pipeline.error_handling import HookError
from repohooks.pipeline.logging import init_logging_from_config
from repohooks.pipeline.prompts import TerminalPrompter
from repohooks.pipeline.resolver import TriggerResolver
from repohooks.pipeline.shared import SharedRepoEntry, SharedRepositoryResolver
from repohooks.pipeline.trust import TrustStore

logger = logging.getLogger("repohooks.git_hooks.cli")


class Repository:
    """The repository a command operates on, with its stores."""

    def __init__(self, repo_path, config: ConfigManager):
        self.config = config
        self.root = find_repo_root(repo_path)
        self.git = GitRunner(self.root)
        self.config_store = GitConfigStore(self.git)

    def checksum_store(self) -> ChecksumStore:
        return ChecksumStore(os.path.join(self.git.git_dir(), self.config.checksum_file_name))

    def trust_store(self) -> TrustStore:
        return TrustStore(
            self.root,
            self.checksum_store(),
            self.config_store,
            TerminalPrompter(interactive=self.config.interactive),
            hooks_dir_name=self.config.hooks_dir_name,
            trust_all_marker=self.config.trust_all_marker,
        )

    def shared_resolver(self) -> SharedRepositoryResolver:
        return SharedRepositoryResolver(
            self.config.shared_cache_dir,
            refresh_triggers=self.config.refresh_triggers,
        )

    def trigger_resolver(self) -> TriggerResolver:
        return TriggerResolver(
            self.root,
            self.config_store,
            self.shared_resolver(),
            hooks_dir_name=self.config.hooks_dir_name,
            shared_list_file=self.config.shared_list_file,
            legacy_suffix=self.config.legacy_suffix,
        )


def install_command(args, config):
    """
    Install the hook entry points.

    Args:
        args: Command-line arguments.
        config: Application configuration.
    """
    if args.search_dir is not None:
        repository = Repository(args.repo_path, config)
        search_dir = args.search_dir or repository.config_store.get(PREVIOUS_SEARCH_DIR_KEY, GLOBAL) or "~"
        results = install_into_repositories(search_dir, repository.config_store)
        for repo_root, ok in results.items():
            logger.info(f"  {repo_root}: {'installed' if ok else 'failed'}")
        return 0 if all(results.values()) else 1

    installed_hooks = install_hooks(args.repo_path, single=args.single)
    logger.info(f"Successfully installed Git hooks: {', '.join(os.path.basename(h) for h in installed_hooks)}")
    return 0


def status_command(args, config):
    """
    Check the status of the hook entry points.

    Args:
        args: Command-line arguments.
        config: Application configuration.
    """
    installer = GitHookInstaller(args.repo_path, legacy_suffix=config.legacy_suffix)
    hook_status = installer.check_hook_status()

    logger.info("Git hook status:")
    for hook_name, installed in hook_status.items():
        status = "Installed" if installed else "Not installed"
        logger.info(f"  {hook_name}: {status}")

    for legacy_hook in installer.legacy_hooks():
        logger.info(f"  Replaced hook still running first: {legacy_hook}")

    if all(hook_status.values()):
        logger.info("All hooks are installed.")
    else:
        missing_hooks = [hook for hook, installed in hook_status.items() if not installed]
        logger.warning(f"Some hooks are missing: {', '.join(missing_hooks)}")
        logger.info("Run 'repohooks install' to install missing hooks.")
    return 0


def run_command(args, config):
    """Run the hooks of a trigger by hand, including a replaced legacy hook."""
    repository = Repository(args.repo_path, config)
    hook_dir = os.path.join(repository.git.git_dir(), "hooks")
    return run_trigger(args.trigger, args.trigger_args, repo_path=repository.root, hook_dir=hook_dir, config=config)


def _declared_shared_urls(repository):
    resolver = repository.trigger_resolver()
    return resolver.global_shared_urls() + resolver.local_shared_urls()


def shared_list_command(args, config):
    """List the declared shared hook repositories and their mirrors."""
    repository = Repository(args.repo_path, config)
    shared = repository.shared_resolver()
    active = set(shared.active_mirrors(_declared_shared_urls(repository)))
    trigger_resolver = repository.trigger_resolver()

    rows = []
    for source, urls in (("global", trigger_resolver.global_shared_urls()),
                         ("local", trigger_resolver.local_shared_urls())):
        for url in urls:
            entry = SharedRepoEntry.from_url(url)
            mirror = shared.mirror_path(entry)
            if mirror in active:
                state = "active"
            elif shared.has_mirror(entry):
                state = "origin mismatch"
            else:
                state = "not cloned"
            rows.append([source, url, entry.name, state])

    if not rows:
        logger.info("No shared hook repositories are declared.")
        return 0

    print(tabulate.tabulate(rows, headers=["Source", "URL", "Mirror", "State"], tablefmt="simple"))
    return 0


def shared_update_command(args, config):
    """Clone or pull every declared shared hook repository."""
    repository = Repository(args.repo_path, config)
    urls = _declared_shared_urls(repository)
    if not urls:
        logger.info("No shared hook repositories are declared.")
        return 0

    mirrors = {SharedRepoEntry.from_url(url).name for url in urls}
    refreshed = repository.shared_resolver().refresh(urls)
    logger.info(f"Updated {len(refreshed)} of {len(mirrors)} shared hook repositories")
    return 0 if len(refreshed) == len(mirrors) else 1


def _current_state(record):
    if record.status == RecordStatus.DISABLED:
        return "disabled"
    if not os.path.isfile(record.path):
        return "missing"
    try:
        return "trusted" if fingerprint_file(record.path) == record.fingerprint else "changed"
    except OSError:
        return "unreadable"


def trust_list_command(args, config):
    """Show the latest trust decision for every known hook file."""
    repository = Repository(args.repo_path, config)
    records = repository.checksum_store().records()
    if not records:
        logger.info("No trust decisions have been recorded yet.")
        return 0

    rows = [
        [path, record.status.value, record.fingerprint or "", _current_state(record)]
        for path, record in sorted(records.items())
    ]
    print(tabulate.tabulate(rows, headers=["Hook", "Status", "Checksum", "Current"], tablefmt="simple"))
    return 0


def trust_history_command(args, config):
    """Show every recorded decision for one hook file."""
    repository = Repository(args.repo_path, config)
    history = repository.checksum_store().history(os.path.abspath(args.path))
    if not history:
        logger.info(f"No decisions recorded for {args.path}")
        return 0

    rows = [[number, record.status.value, record.fingerprint or ""]
            for number, record in enumerate(history, start=1)]
    print(tabulate.tabulate(rows, headers=["#", "Status", "Checksum"], tablefmt="simple"))
    return 0


def trust_accept_command(args, config):
    """Accept the current content of a hook file."""
    record = Repository(args.repo_path, config).trust_store().accept_path(args.path)
    logger.info(f"Accepted {record.path}")
    return 0


def trust_disable_command(args, config):
    """Disable a hook file until it is accepted again."""
    record = Repository(args.repo_path, config).trust_store().disable_path(args.path)
    logger.info(f"Disabled {record.path}")
    return 0


def toggle_command(args, config):
    """Switch all hooks of the repository (or globally) off or on."""
    repository = Repository(args.repo_path, config)
    scope = GLOBAL if args.global_scope else LOCAL
    if args.command == "disable":
        repository.config_store.set(DISABLE_KEY, "Y", scope)
        logger.info("Hooks are now disabled")
    else:
        repository.config_store.unset(DISABLE_KEY, scope)
        logger.info("Hooks are now enabled")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="repohooks",
        description="Repository hooks with content trust checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Install the hook entry points into the current repository
  repohooks install

  # Install into every repository under ~/src
  repohooks install --search-dir ~/src

  # Fetch or update shared hook repositories
  repohooks shared update

  # Re-enable a disabled hook
  repohooks trust accept .githooks/pre-commit/lint
""",
    )
    parser.add_argument("--repo-path", help="Path to the Git repository. If not specified, the current directory is used.")
    parser.add_argument("--config", help="Path to the configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    install_parser = subparsers.add_parser("install", help="Install the hook entry points")
    install_parser.add_argument("--single", action="store_true", help="Mark this repository as a single-repository install")
    install_parser.add_argument("--search-dir", nargs="?", const="",
                                help="Install into every repository under this directory")
    install_parser.set_defaults(func=install_command)

    status_parser = subparsers.add_parser("status", help="Check the status of the hook entry points")
    status_parser.set_defaults(func=status_command)

    run_parser = subparsers.add_parser("run", help="Run the hooks of a trigger")
    run_parser.add_argument("trigger", help="Trigger name, e.g. pre-commit")
    run_parser.add_argument("trigger_args", nargs=argparse.REMAINDER, help="Arguments for the hooks")
    run_parser.set_defaults(func=run_command)

    shared_parser = subparsers.add_parser("shared", help="Manage shared hook repositories")
    shared_subparsers = shared_parser.add_subparsers(dest="shared_command")
    shared_subparsers.add_parser("list", help="List shared hook repositories").set_defaults(func=shared_list_command)
    shared_subparsers.add_parser("update", help="Clone or pull shared hook repositories").set_defaults(
        func=shared_update_command)

    trust_parser = subparsers.add_parser("trust", help="Review and change trust decisions")
    trust_subparsers = trust_parser.add_subparsers(dest="trust_command")
    trust_subparsers.add_parser("list", help="Show trust decisions").set_defaults(func=trust_list_command)
    for name, func, help_text in (
        ("history", trust_history_command, "Show all decisions for a hook file"),
        ("accept", trust_accept_command, "Accept the current content of a hook file"),
        ("disable", trust_disable_command, "Disable a hook file"),
    ):
        sub = trust_subparsers.add_parser(name, help=help_text)
        sub.add_argument("path", help="Path of the hook file")
        sub.set_defaults(func=func)

    for name, help_text in (("disable", "Disable all hooks"), ("enable", "Enable hooks again")):
        toggle_parser = subparsers.add_parser(name, help=help_text)
        toggle_parser.add_argument("--global", dest="global_scope", action="store_true",
                                   help="Apply to all repositories of the current user")
        toggle_parser.set_defaults(func=toggle_command)

    return parser


def main(argv=None):
    """Main entry point for the hooks CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = ConfigManager(args.config)
        init_logging_from_config(config)
        exit_code = args.func(args, config)
    except (HookError, ValueError, OSError) as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
