"""
Pipeline orchestrator running every stage of a trigger in order, stopping at
the first failing hook.
"""
import logging
import os
from typing import Optional

from repohooks.config import ConfigManager
from repohooks.database.checksum_store import ChecksumStore
from repohooks.database.config_store import DISABLE_KEY, ConfigStore, GitConfigStore
from repohooks.git_hooks.git import GitRunner
from repohooks.pipeline.error_handling import HookExecutionError
from repohooks.pipeline.executor import HookExecutor
from repohooks.pipeline.ignore import IgnoreFilter
from repohooks.pipeline.models import DecisionSession, ExecutionPlan, HookTrigger
from repohooks.pipeline.prompts import Prompter, TerminalPrompter
from repohooks.pipeline.resolver import TriggerResolver
from repohooks.pipeline.shared import SharedRepositoryResolver
from repohooks.pipeline.trust import TrustStore
from repohooks.pipeline.updates import UpdateChecker

DISABLE_ENV = "GITHOOKS_DISABLE"


class HookPipeline:
    """
    Runs the hooks of a trigger: legacy, global shared, local shared, then
    local hooks, strictly sequentially.
    """

    def __init__(
        self,
        resolver: TriggerResolver,
        executor: HookExecutor,
        config_store: ConfigStore,
        update_checker: Optional[UpdateChecker] = None,
    ):
        """
        Initialize the hook pipeline.

        Args:
            resolver: Builds the stages for a trigger
            executor: Runs individual hook items
            config_store: Settings store, consulted for the disable switch
            update_checker: Optional daily update notifier
        """
        self.resolver = resolver
        self.executor = executor
        self.config_store = config_store
        self.update_checker = update_checker
        self.logger = logging.getLogger(__name__)

    def is_disabled(self) -> bool:
        """Check whether hooks are switched off by environment or configuration."""
        if os.environ.get(DISABLE_ENV):
            return True
        return (self.config_store.get(DISABLE_KEY) or "").upper() == "Y"

    def _run_stages(self, trigger: HookTrigger, stages, session: DecisionSession) -> None:
        for stage in stages:
            if stage.items:
                self.logger.debug(f"Running {len(stage)} {stage.origin.value} hook(s) for {trigger.name}")
            for item in stage.items:
                exit_code = self.executor.run(item, trigger.args, session)
                if exit_code != 0:
                    raise HookExecutionError(
                        f"Hook {item.path} failed with exit code {exit_code}",
                        exit_code=exit_code,
                        context={"trigger": trigger.name, "origin": item.origin.value},
                    )

    def _execute(self, trigger: HookTrigger, stages) -> int:
        session = DecisionSession()
        try:
            self._run_stages(trigger, stages, session)
        except HookExecutionError as e:
            self.logger.error(f"! {e.message}")
            return e.exit_code
        return 0

    def run(self, trigger: HookTrigger) -> int:
        """
        Execute all hooks for a trigger.

        Stages are resolved lazily so nothing after a failing hook is
        touched.

        Args:
            trigger: The trigger and its Git-supplied arguments

        Returns:
            0 if every hook succeeded or was skipped, otherwise the exit code
            of the first failing hook
        """
        if self.is_disabled():
            self.logger.debug("Hooks are disabled")
            return 0

        if self.update_checker is not None:
            self.update_checker.check(trigger.name)

        return self._execute(trigger, self.resolver.iter_stages(trigger.name))

    def run_plan(self, plan: ExecutionPlan) -> int:
        """Execute an already resolved plan."""
        if self.is_disabled():
            return 0
        return self._execute(plan.trigger, plan.stages)


def create_pipeline(
    repo_root: str,
    config: ConfigManager,
    hook_dir: Optional[str] = None,
    config_store: Optional[ConfigStore] = None,
    prompter: Optional[Prompter] = None,
    git: Optional[GitRunner] = None,
    git_dir: Optional[str] = None,
    update_checker: Optional[UpdateChecker] = None,
    shared_resolver: Optional[SharedRepositoryResolver] = None,
) -> HookPipeline:
    """
    Wire up a hook pipeline for one repository.

    Args:
        repo_root: Root of the repository's working tree
        config: Application configuration
        hook_dir: Directory of the Git hook entry points (for legacy hooks)
        config_store: Settings store; defaults to git config
        prompter: Operator prompter; defaults to the terminal
        git: Git runner for the repository
        git_dir: Repository metadata directory; looked up with git if omitted
        update_checker: Optional daily update notifier
        shared_resolver: Shared repository resolver; defaults to the configured cache

    Returns:
        The configured pipeline
    """
    repo_root = os.path.abspath(repo_root)
    git = git or GitRunner(repo_root)
    config_store = config_store or GitConfigStore(git)
    prompter = prompter or TerminalPrompter(interactive=config.interactive)
    git_dir = git_dir or git.git_dir()

    checksums = ChecksumStore(os.path.join(git_dir, config.checksum_file_name))
    trust_store = TrustStore(
        repo_root,
        checksums,
        config_store,
        prompter,
        hooks_dir_name=config.hooks_dir_name,
        trust_all_marker=config.trust_all_marker,
    )
    ignore_filter = IgnoreFilter(repo_root, config.hooks_dir_name, config.ignore_file)
    shared_resolver = shared_resolver or SharedRepositoryResolver(
        config.shared_cache_dir,
        refresh_triggers=config.refresh_triggers,
    )
    resolver = TriggerResolver(
        repo_root,
        config_store,
        shared_resolver,
        hook_dir=hook_dir,
        hooks_dir_name=config.hooks_dir_name,
        shared_list_file=config.shared_list_file,
        legacy_suffix=config.legacy_suffix,
    )
    executor = HookExecutor(repo_root, ignore_filter, trust_store)
    return HookPipeline(resolver, executor, config_store, update_checker=update_checker)
