"""
Key/value access to persistent per-user and per-repository settings.

The pipeline never calls ``git config`` directly; it receives a
:class:`ConfigStore` so tests can substitute :class:`InMemoryConfigStore`.
"""

import logging
from typing import Dict, Optional

from repohooks.git_hooks.git import GitRunner
from repohooks.pipeline.error_handling import GitCommandError

logger = logging.getLogger(__name__)

GLOBAL = "global"
LOCAL = "local"

# Setting keys
TRUST_ALL_KEY = "githooks.trust.all"
SHARED_REPOS_KEY = "githooks.shared"
DISABLE_KEY = "githooks.disable"
AUTOUPDATE_ENABLED_KEY = "githooks.autoupdate.enabled"
AUTOUPDATE_LAST_RUN_KEY = "githooks.autoupdate.lastrun"
PREVIOUS_SEARCH_DIR_KEY = "githooks.previous.searchdir"
SINGLE_INSTALL_KEY = "githooks.single.install"


class ConfigStore:
    """Interface for a scoped key/value settings store.

    ``scope`` is ``"global"``, ``"local"`` or ``None``. Reading with ``None``
    returns the effective value (local overrides global); writing with
    ``None`` writes to the local scope.
    """

    def get(self, key: str, scope: Optional[str] = None) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, scope: Optional[str] = None) -> None:
        raise NotImplementedError

    def unset(self, key: str, scope: Optional[str] = None) -> None:
        raise NotImplementedError


class GitConfigStore(ConfigStore):
    """Settings stored in git configuration files."""

    def __init__(self, git: Optional[GitRunner] = None):
        self.git = git or GitRunner()

    @staticmethod
    def _scope_args(scope: Optional[str]):
        if scope == GLOBAL:
            return ["--global"]
        if scope == LOCAL:
            return ["--local"]
        return []

    def get(self, key: str, scope: Optional[str] = None) -> Optional[str]:
        try:
            return self.git.run(["config"] + self._scope_args(scope) + ["--get", key])
        except GitCommandError as e:
            # Exit code 1 means the key is not set
            if e.returncode != 1:
                logger.warning(f"Could not read git config {key}: {e.output or e.message}")
            return None

    def set(self, key: str, value: str, scope: Optional[str] = None) -> None:
        self.git.run(["config"] + self._scope_args(scope) + [key, value])

    def unset(self, key: str, scope: Optional[str] = None) -> None:
        try:
            self.git.run(["config"] + self._scope_args(scope) + ["--unset", key])
        except GitCommandError as e:
            # Exit code 5 means the key was not set
            if e.returncode != 5:
                raise


class InMemoryConfigStore(ConfigStore):
    """Settings held in memory, for tests and dry runs."""

    def __init__(
        self,
        global_values: Optional[Dict[str, str]] = None,
        local_values: Optional[Dict[str, str]] = None,
    ):
        self.values: Dict[str, Dict[str, str]] = {
            GLOBAL: dict(global_values or {}),
            LOCAL: dict(local_values or {}),
        }

    def get(self, key: str, scope: Optional[str] = None) -> Optional[str]:
        if scope is not None:
            return self.values[scope].get(key)
        if key in self.values[LOCAL]:
            return self.values[LOCAL][key]
        return self.values[GLOBAL].get(key)

    def set(self, key: str, value: str, scope: Optional[str] = None) -> None:
        self.values[scope or LOCAL][key] = value

    def unset(self, key: str, scope: Optional[str] = None) -> None:
        self.values[scope or LOCAL].pop(key, None)
