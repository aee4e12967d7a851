"""
Trust decisions for hook items.

Before a hook runs, its content fingerprint is compared with the last
decision recorded in the repository's checksum store. New or changed hooks
need the operator's consent; disabled hooks are skipped until the operator
records a new decision for them.
"""

import logging
import os
from enum import Enum
from typing import Optional

from repohooks.database.checksum_store import ChecksumStore, RecordStatus, fingerprint_file
from repohooks.database.config_store import LOCAL, TRUST_ALL_KEY, ConfigStore
from repohooks.pipeline.error_handling import GitCommandError, TrustStoreError
from repohooks.pipeline.models import DecisionSession, HookItem
from repohooks.pipeline.prompts import Prompter

logger = logging.getLogger(__name__)

TRUST_ALL_QUESTION = "  Do you want to allow running every current and future hooks? [y/N] "
ACCEPT_QUESTION = "  Do you accept the changes? (Yes, all, no, disable) [Y/a/n/d] "

MAX_PROMPT_ATTEMPTS = 3


class Decision(str, Enum):
    RUN = "run"
    SKIP = "skip"


class Answer(str, Enum):
    """Operator choices for a new or changed hook."""
    ACCEPT = "accept"
    ACCEPT_ALL = "accept-all"
    DECLINE = "decline"
    DISABLE = "disable"


ANSWERS = {
    "": Answer.ACCEPT,
    "y": Answer.ACCEPT,
    "yes": Answer.ACCEPT,
    "a": Answer.ACCEPT_ALL,
    "all": Answer.ACCEPT_ALL,
    "n": Answer.DECLINE,
    "no": Answer.DECLINE,
    "d": Answer.DISABLE,
    "disable": Answer.DISABLE,
}


def parse_answer(raw: str) -> Optional[Answer]:
    return ANSWERS.get(raw.strip().lower())


class TrustStore:
    """Decision engine over a repository's checksum store."""

    def __init__(
        self,
        repo_root: str,
        checksums: ChecksumStore,
        config_store: ConfigStore,
        prompter: Prompter,
        hooks_dir_name: str = ".githooks",
        trust_all_marker: str = "trust-all",
    ):
        self.repo_root = repo_root
        self.checksums = checksums
        self.config_store = config_store
        self.prompter = prompter
        self.trust_all_marker_path = os.path.join(repo_root, hooks_dir_name, trust_all_marker)

    def is_trusted_repository(self, session: DecisionSession) -> bool:
        """
        Check whether the repository asked for, and got, blanket trust.

        The operator is asked at most once per session; the answer is
        persisted in the repository-local configuration when one is given.
        """
        if not os.path.exists(self.trust_all_marker_path):
            return False

        if session.trust_all is not None:
            return session.trust_all

        value = self.config_store.get(TRUST_ALL_KEY, LOCAL)
        if value is not None:
            session.trust_all = value.upper() == "Y"
            return session.trust_all

        logger.warning("! This repository wants you to trust all current and future hooks without prompting")
        answer = self.prompter.ask(TRUST_ALL_QUESTION)
        if answer is None:
            logger.info("  No terminal available, not trusting all hooks for this run")
            session.trust_all = False
            return False

        session.trust_all = answer.strip().lower() in ("y", "yes")
        try:
            self.config_store.set(TRUST_ALL_KEY, "Y" if session.trust_all else "N", LOCAL)
        except GitCommandError as e:
            logger.warning(f"! Could not save {TRUST_ALL_KEY}: {e.output or e.message}")
        return session.trust_all

    def _ask(self) -> Optional[Answer]:
        for _ in range(MAX_PROMPT_ATTEMPTS):
            raw = self.prompter.ask(ACCEPT_QUESTION)
            if raw is None:
                return None
            answer = parse_answer(raw)
            if answer is not None:
                return answer
            logger.warning(f"  Unrecognised answer: {raw!r}")
        return None

    def decide(self, item: HookItem, session: DecisionSession) -> Decision:
        """
        Decide whether a hook item may run now.

        Args:
            item: The hook item about to run.
            session: Decisions taken earlier in the same invocation.

        Returns:
            Decision.RUN or Decision.SKIP.
        """
        if self.is_trusted_repository(session):
            return Decision.RUN

        try:
            fingerprint = fingerprint_file(item.path)
        except OSError as e:
            logger.warning(f"! Could not read {item.path}: {e}")
            return Decision.SKIP

        record = self.checksums.latest(item.path)

        if record is not None and record.status == RecordStatus.DISABLED:
            logger.info(f"* Skipping disabled {item.path}")
            logger.info(f"  Run `repohooks trust accept {item.path}` to enable it again")
            return Decision.SKIP

        if record is not None and record.fingerprint == fingerprint:
            return Decision.RUN

        message = "New hook file found" if record is None else "Hook file changed"
        logger.warning(f"? {message}: {item.path}")

        if session.accept_all:
            logger.info("  Already accepted")
            self._record_accept(item.path, fingerprint)
            return Decision.RUN

        answer = self._ask()
        if answer is None:
            logger.info(f"* Not running {item.path} without confirmation")
            return Decision.SKIP

        if answer == Answer.DECLINE:
            logger.info(f"* Not running {item.path}")
            return Decision.SKIP

        if answer == Answer.DISABLE:
            try:
                self.checksums.disable(item.path)
            except TrustStoreError as e:
                logger.error(str(e))
                logger.info(f"* Not running {item.path}")
                return Decision.SKIP
            logger.info(f"* Disabled {item.path}")
            logger.info(f"  Run `repohooks trust accept {item.path}` to enable it again")
            return Decision.SKIP

        if answer == Answer.ACCEPT_ALL:
            session.accept_all = True

        self._record_accept(item.path, fingerprint)
        return Decision.RUN

    def _record_accept(self, path: str, fingerprint: str) -> None:
        # Consent holds for this run; without a record the next run prompts again
        try:
            self.checksums.accept(path, fingerprint)
        except TrustStoreError as e:
            logger.error(str(e))

    def accept_path(self, path: str):
        """Record the current content of ``path`` as accepted."""
        path = os.path.abspath(path)
        return self.checksums.accept(path, fingerprint_file(path))

    def disable_path(self, path: str):
        """Record ``path`` as disabled."""
        return self.checksums.disable(os.path.abspath(path))
