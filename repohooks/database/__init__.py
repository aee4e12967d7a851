"""
Persistent state for the hook runner: trust decisions and settings.
"""

from repohooks.database.checksum_store import ChecksumRecord, ChecksumStore, RecordStatus
from repohooks.database.config_store import ConfigStore, GitConfigStore, InMemoryConfigStore

__all__ = [
    'ChecksumRecord',
    'ChecksumStore',
    'RecordStatus',
    'ConfigStore',
    'GitConfigStore',
    'InMemoryConfigStore',
]
