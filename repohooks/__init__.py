"""
Repository-shipped Git hooks with content trust checks.

Hooks kept under a repository's ``.githooks`` directory, and hooks from shared
hook repositories, run on Git events once the operator has accepted their
current content.
"""

__version__ = "1.0.0"
