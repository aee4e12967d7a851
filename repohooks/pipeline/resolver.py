"""
Trigger resolution: which hook items run for a trigger, and in what order.

Stages are consulted in a fixed order: the legacy hook that occupied the Git
hook slot before installation, hooks from globally declared shared
repositories, hooks from repository-declared shared repositories, and
finally the repository's own ``.githooks`` hooks.
"""

import logging
import os
from typing import Iterator, List, Optional, Set

from repohooks.database.config_store import GLOBAL, SHARED_REPOS_KEY, ConfigStore
from repohooks.pipeline.discovery import discover_hooks, is_executable
from repohooks.pipeline.models import ExecutionPlan, HookItem, HookOrigin, HookTrigger, Stage
from repohooks.pipeline.shared import SharedRepositoryResolver, parse_shared_list, read_shared_list_file

logger = logging.getLogger(__name__)


class TriggerResolver:
    """Builds the execution plan for a trigger in one repository."""

    def __init__(
        self,
        repo_root: str,
        config_store: ConfigStore,
        shared_resolver: SharedRepositoryResolver,
        hook_dir: Optional[str] = None,
        hooks_dir_name: str = ".githooks",
        shared_list_file: str = ".shared",
        legacy_suffix: str = ".replaced.githook",
    ):
        """
        Initialize the TriggerResolver.

        Args:
            repo_root: Root of the repository's working tree.
            config_store: Settings store for the global shared list.
            shared_resolver: Resolver for shared repository mirrors.
            hook_dir: Directory holding the Git hook entry points, where a
                replaced legacy hook lives. None disables the legacy stage.
            hooks_dir_name: Name of the repository hook directory.
            shared_list_file: Name of the repository shared list file.
            legacy_suffix: Suffix appended to a replaced legacy hook.
        """
        self.repo_root = os.path.abspath(repo_root)
        self.config_store = config_store
        self.shared_resolver = shared_resolver
        self.hook_dir = os.path.abspath(hook_dir) if hook_dir else None
        self.hooks_dir = os.path.join(self.repo_root, hooks_dir_name)
        self.shared_list_path = os.path.join(self.hooks_dir, shared_list_file)
        self.legacy_suffix = legacy_suffix

    def legacy_items(self, trigger_name: str) -> List[HookItem]:
        if not self.hook_dir:
            return []
        path = os.path.join(self.hook_dir, f"{trigger_name}{self.legacy_suffix}")
        if not is_executable(path):
            return []
        return [HookItem(path=path, trigger=trigger_name, origin=HookOrigin.LEGACY, executable=True)]

    def global_shared_urls(self) -> List[str]:
        return parse_shared_list(self.config_store.get(SHARED_REPOS_KEY, GLOBAL))

    def local_shared_urls(self) -> List[str]:
        return read_shared_list_file(self.shared_list_path)

    def iter_stages(self, trigger_name: str) -> Iterator[Stage]:
        """
        Yield stages one at a time, in execution order.

        Each stage is resolved only when requested, so a failure in an
        earlier stage prevents later stages (and their mirror refreshes)
        from being touched at all.
        """
        refreshed: Set[str] = set()
        yield Stage(HookOrigin.LEGACY, tuple(self.legacy_items(trigger_name)))
        yield Stage(
            HookOrigin.SHARED_GLOBAL,
            tuple(self.shared_resolver.materialize(
                self.global_shared_urls(), trigger_name, HookOrigin.SHARED_GLOBAL, refreshed
            )),
        )
        yield Stage(
            HookOrigin.SHARED_LOCAL,
            tuple(self.shared_resolver.materialize(
                self.local_shared_urls(), trigger_name, HookOrigin.SHARED_LOCAL, refreshed
            )),
        )
        yield Stage(HookOrigin.LOCAL, tuple(discover_hooks(self.hooks_dir, trigger_name, HookOrigin.LOCAL)))

    def resolve(self, trigger: HookTrigger) -> ExecutionPlan:
        """Resolve every stage up front."""
        return ExecutionPlan(trigger=trigger, stages=list(self.iter_stages(trigger.name)))
