#!/usr/bin/env python3
"""
Checksum store for trusted hook files.

The store is an append-only log kept in the repository's git directory, one
record per line::

    <md5-hex> <absolute-path>
    disabled> <absolute-path>

The latest line for a path is authoritative. Records are never rewritten;
a later decision is appended and supersedes the earlier one.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from repohooks.database.locking import append_line
from repohooks.pipeline.error_handling import TrustStoreError

logger = logging.getLogger(__name__)

DISABLED_MARKER = "disabled>"


class RecordStatus(str, Enum):
    """Trust status of a checksum record."""
    ACCEPTED = "accepted"
    DISABLED = "disabled"


@dataclass(frozen=True)
class ChecksumRecord:
    """One line of the checksum store."""
    path: str
    fingerprint: Optional[str]
    status: RecordStatus

    def to_line(self) -> str:
        if self.status == RecordStatus.DISABLED:
            return f"{DISABLED_MARKER} {self.path}"
        return f"{self.fingerprint} {self.path}"

    @classmethod
    def from_line(cls, line: str) -> Optional["ChecksumRecord"]:
        """Parse a store line, returning None for blank or malformed lines."""
        line = line.rstrip("\r\n")
        if not line.strip():
            return None

        head, sep, path = line.partition(" ")
        if not sep or not path or not head:
            return None

        if head == DISABLED_MARKER:
            return cls(path=path, fingerprint=None, status=RecordStatus.DISABLED)
        return cls(path=path, fingerprint=head, status=RecordStatus.ACCEPTED)


def fingerprint_file(path: str, chunk_size: int = 65536) -> str:
    """Compute the content fingerprint of a hook file."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ChecksumStore:
    """Append-only log of trust decisions for one repository."""

    def __init__(self, store_path: str):
        """
        Initialize the ChecksumStore.

        Args:
            store_path: Path of the checksum file inside the git directory.
        """
        self.store_path = store_path
        self._latest: Optional[Dict[str, ChecksumRecord]] = None

    def _read_log(self) -> List[ChecksumRecord]:
        if not os.path.exists(self.store_path):
            return []

        try:
            with open(self.store_path, "r", encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except OSError as e:
            # An unreadable store means re-prompting, never silent trust
            logger.warning(f"Could not read checksum store {self.store_path}: {e}")
            return []

        records = []
        for number, line in enumerate(lines, start=1):
            record = ChecksumRecord.from_line(line)
            if record is None:
                if line.strip():
                    logger.warning(f"Ignoring malformed line {number} in {self.store_path}")
                continue
            records.append(record)
        return records

    def _replay(self) -> Dict[str, ChecksumRecord]:
        latest: Dict[str, ChecksumRecord] = {}
        for record in self._read_log():
            latest[record.path] = record
        return latest

    def records(self) -> Dict[str, ChecksumRecord]:
        """Return the authoritative record for every known path."""
        if self._latest is None:
            self._latest = self._replay()
        return dict(self._latest)

    def latest(self, path: str) -> Optional[ChecksumRecord]:
        """Return the most recent record for ``path``, if any."""
        if self._latest is None:
            self._latest = self._replay()
        return self._latest.get(path)

    def history(self, path: str) -> List[ChecksumRecord]:
        """Return every record ever appended for ``path``, oldest first."""
        return [record for record in self._read_log() if record.path == path]

    def append(self, record: ChecksumRecord) -> None:
        """
        Durably append a record.

        Raises:
            TrustStoreError: If the store cannot be written.
        """
        try:
            append_line(self.store_path, record.to_line())
        except OSError as e:
            raise TrustStoreError(
                f"Could not write to checksum store {self.store_path}",
                original_exception=e,
                context={"path": record.path},
            )

        if self._latest is not None:
            self._latest[record.path] = record
        logger.debug(f"Recorded {record.status.value} checksum for {record.path}")

    def accept(self, path: str, fingerprint: str) -> ChecksumRecord:
        record = ChecksumRecord(path=path, fingerprint=fingerprint, status=RecordStatus.ACCEPTED)
        self.append(record)
        return record

    def disable(self, path: str) -> ChecksumRecord:
        record = ChecksumRecord(path=path, fingerprint=None, status=RecordStatus.DISABLED)
        self.append(record)
        return record
