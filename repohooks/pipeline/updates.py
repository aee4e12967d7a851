"""
Daily update notifier.

After a commit, at most once a day, checks whether a newer release of the
hook runner is available and tells the operator. Fetching the latest
version is delegated to a callable supplied by the caller.
"""

import logging
import time
from typing import Callable, Optional

from repohooks import __version__
from repohooks.database.config_store import (
    AUTOUPDATE_ENABLED_KEY,
    AUTOUPDATE_LAST_RUN_KEY,
    GLOBAL,
    LOCAL,
    SINGLE_INSTALL_KEY,
    ConfigStore,
)
from repohooks.pipeline.error_handling import GitCommandError

logger = logging.getLogger(__name__)

UPDATE_CHECK_TRIGGER = "post-commit"
ONE_DAY = 86400


def is_newer(current: str, latest: Optional[str]) -> bool:
    """Return True if ``latest`` sorts after ``current``."""
    return bool(latest) and not current >= latest


class UpdateChecker:
    """Decides when an update check is due and reports available updates."""

    def __init__(
        self,
        config_store: ConfigStore,
        fetch_latest_version: Optional[Callable[[], Optional[str]]] = None,
        current_version: str = __version__,
        clock: Callable[[], float] = time.time,
    ):
        self.config_store = config_store
        self.fetch_latest_version = fetch_latest_version
        self.current_version = current_version
        self.clock = clock

    def is_due(self, trigger_name: str) -> bool:
        if trigger_name != UPDATE_CHECK_TRIGGER:
            return False

        if self.config_store.get(AUTOUPDATE_ENABLED_KEY) != "Y":
            return False

        last_run = self.config_store.get(AUTOUPDATE_LAST_RUN_KEY, GLOBAL)
        try:
            last_run_time = int(last_run) if last_run else 0
        except ValueError:
            last_run_time = 0

        return self.clock() - last_run_time >= ONE_DAY

    def check(self, trigger_name: str) -> Optional[str]:
        """
        Run the update check if it is due.

        Returns:
            The newer version when one is available, otherwise None.
        """
        if not self.is_due(trigger_name):
            return None

        try:
            self.config_store.set(AUTOUPDATE_LAST_RUN_KEY, str(int(self.clock())), GLOBAL)
        except GitCommandError as e:
            logger.warning(f"! Could not save {AUTOUPDATE_LAST_RUN_KEY}: {e.output or e.message}")
            return None

        if self.fetch_latest_version is None:
            logger.debug("No update source configured")
            return None

        logger.info("^ Checking for updates ...")
        try:
            latest = self.fetch_latest_version()
        except Exception as e:
            logger.warning(f"! Failed to check for updates: {e}")
            return None

        if not is_newer(self.current_version, latest):
            return None

        scope = "" if self.config_store.get(SINGLE_INSTALL_KEY, LOCAL) == "yes" else " --global"
        logger.info(f"* There is a new update available: Version {latest}")
        logger.info("  If you would like to disable auto-updates, run:")
        logger.info(f"    $ git config{scope} {AUTOUPDATE_ENABLED_KEY} N")
        return latest
