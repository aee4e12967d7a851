"""
Shared hook repositories.

Shared repositories are declared as clone URLs, globally in git config or
per repository in ``.githooks/.shared``. Each one is mirrored under a cache
directory keyed by a normalized name. Mirrors are only cloned or pulled on a
refresh trigger (``post-merge`` or the manual shared trigger), so ordinary
hook invocations never touch the network.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set

from repohooks.database.locking import file_lock
from repohooks.git_hooks.git import GitRunner
from repohooks.pipeline.discovery import discover_hooks
from repohooks.pipeline.error_handling import GitCommandError, SharedRepositoryError, safe_execute
from repohooks.pipeline.models import HookItem, HookOrigin

logger = logging.getLogger(__name__)

OWNER_REPO_PATTERN = re.compile(r".*[:/](.+/.+)\.git")
NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")
LIST_SEPARATORS = re.compile(r"[,\n]")

SHARED_HOOKS_SUBDIR = ".githooks"


def normalize_name(url: str) -> str:
    """
    Derive the local mirror name for a clone URL.

    ``git@host:org/repo.git`` and ``https://host/org/repo.git`` both become
    ``org_repo``. URLs without an ``owner/repo.git`` part are normalized whole.
    """
    name = OWNER_REPO_PATTERN.sub(r"\1", url, count=1)
    return NON_ALPHANUMERIC.sub("_", name)


def parse_shared_list(text: Optional[str]) -> List[str]:
    """Split a comma- or newline-separated URL list, dropping blanks and comments."""
    if not text:
        return []

    urls = []
    for part in LIST_SEPARATORS.split(text):
        url = part.strip()
        if url and not url.startswith("#"):
            urls.append(url)
    return urls


def read_shared_list_file(path: str) -> List[str]:
    """Read a ``.shared`` file; a missing or unreadable file declares nothing."""
    if not os.path.isfile(path):
        return []
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return parse_shared_list(f.read())
    except OSError as e:
        logger.warning(f"Could not read shared repository list {path}: {e}")
        return []


@dataclass(frozen=True)
class SharedRepoEntry:
    """A declared shared repository."""
    url: str
    name: str

    @classmethod
    def from_url(cls, url: str) -> "SharedRepoEntry":
        return cls(url=url, name=normalize_name(url))


class SharedRepositoryResolver:
    """Maintains mirrors of shared hook repositories and lists their hooks."""

    def __init__(
        self,
        cache_dir: str,
        git: Optional[GitRunner] = None,
        refresh_triggers: Sequence[str] = ("post-merge", ".githooks.shared.trigger"),
    ):
        """
        Initialize the SharedRepositoryResolver.

        Args:
            cache_dir: Directory holding one mirror per normalized name.
            git: Runner used for clone, pull and origin lookups.
            refresh_triggers: Triggers that update mirrors before discovery.
        """
        self.cache_dir = os.path.abspath(os.path.expanduser(cache_dir))
        self.git = git or GitRunner(self.cache_dir)
        self.refresh_triggers = tuple(refresh_triggers)

    def is_refresh_trigger(self, trigger_name: str) -> bool:
        return trigger_name in self.refresh_triggers

    def mirror_path(self, entry: SharedRepoEntry) -> str:
        return os.path.join(self.cache_dir, entry.name)

    def has_mirror(self, entry: SharedRepoEntry) -> bool:
        return os.path.isdir(os.path.join(self.mirror_path(entry), ".git"))

    @safe_execute(SharedRepositoryError, default_value=False)
    def refresh_mirror(self, entry: SharedRepoEntry) -> bool:
        """
        Pull an existing mirror or clone a missing one.

        Failures are logged and reported as False; they never abort a run.
        """
        os.makedirs(self.cache_dir, exist_ok=True)
        mirror = self.mirror_path(entry)

        with file_lock(os.path.join(self.cache_dir, f".{entry.name}.lock")):
            if self.has_mirror(entry):
                logger.info(f"* Updating shared hooks from: {entry.url}")
                action, args, cwd = "Update", ["pull"], mirror
            else:
                logger.info(f"* Retrieving shared hooks from: {entry.url}")
                action, args, cwd = "Clone", ["clone", entry.url, entry.name], self.cache_dir

            try:
                self.git.run(args, cwd=cwd)
            except GitCommandError as e:
                raise SharedRepositoryError(
                    f"! {action} failed, git {args[0]} output:\n{e.output}",
                    original_exception=e,
                    context={"url": entry.url},
                )
        return True

    def refresh(self, urls: Iterable[str], seen: Optional[Set[str]] = None) -> List[SharedRepoEntry]:
        """
        Refresh every declared mirror, one after another.

        Args:
            urls: Declared clone URLs.
            seen: Mirror names already fetched in this invocation. Names are
                added as they are attempted so each mirror is fetched once.

        Returns:
            The entries that were fetched successfully.
        """
        seen = set() if seen is None else seen
        refreshed = []
        for url in urls:
            entry = SharedRepoEntry.from_url(url)
            if entry.name in seen:
                continue
            seen.add(entry.name)
            if self.refresh_mirror(entry):
                refreshed.append(entry)
        return refreshed

    def origin_url(self, mirror: str) -> Optional[str]:
        try:
            return self.git.run(["config", "--get", "remote.origin.url"], cwd=mirror) or None
        except GitCommandError:
            return None

    def active_mirrors(self, urls: Sequence[str]) -> List[str]:
        """
        List the mirror directories that take part in hook discovery.

        A mirror counts only when it exists and its origin URL is one of the
        declared URLs. Mirrors follow declaration order and appear once.
        """
        declared = set(urls)
        mirrors: List[str] = []
        for url in urls:
            entry = SharedRepoEntry.from_url(url)
            mirror = self.mirror_path(entry)
            if mirror in mirrors or not self.has_mirror(entry):
                continue

            origin = self.origin_url(mirror)
            if origin not in declared:
                logger.debug(f"Skipping mirror {mirror}: origin {origin} is not declared")
                continue
            mirrors.append(mirror)
        return mirrors

    def materialize(
        self,
        urls: Sequence[str],
        trigger_name: str,
        origin: HookOrigin,
        seen: Optional[Set[str]] = None,
    ) -> List[HookItem]:
        """
        Resolve the hook items provided by a list of shared repositories.

        Args:
            urls: Declared clone URLs.
            trigger_name: Trigger being executed.
            origin: Origin to stamp on the items (global or local shared).
            seen: Mirror names already fetched in this invocation.

        Returns:
            Hook items from every active mirror, in declaration order.
        """
        urls = list(urls)
        if not urls:
            return []

        if self.is_refresh_trigger(trigger_name):
            self.refresh(urls, seen)

        items: List[HookItem] = []
        for mirror in self.active_mirrors(urls):
            hooks_root = os.path.join(mirror, SHARED_HOOKS_SUBDIR)
            if not os.path.isdir(hooks_root):
                hooks_root = mirror
            items.extend(discover_hooks(hooks_root, trigger_name, origin))
        return items
