"""
Hook item discovery within a hooks directory.
"""

import os
from typing import List

from repohooks.pipeline.models import HookItem, HookOrigin


def is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def discover_hooks(parent: str, trigger_name: str, origin: HookOrigin) -> List[HookItem]:
    """
    Find the hook items for a trigger under ``parent``.

    ``<parent>/<trigger>`` is either a single hook file or a directory of
    hook files. Directory entries are returned sorted by name; hidden
    entries and subdirectories are not hooks.

    Args:
        parent: Directory holding per-trigger hooks.
        trigger_name: Name of the trigger.
        origin: Origin to stamp on the discovered items.

    Returns:
        Hook items in execution order. Empty if nothing is defined.
    """
    target = os.path.abspath(os.path.join(parent, trigger_name))

    if os.path.isdir(target):
        paths = [
            os.path.join(target, name)
            for name in sorted(os.listdir(target))
            if not name.startswith(".")
        ]
    elif os.path.isfile(target):
        paths = [target]
    else:
        return []

    return [
        HookItem(path=path, trigger=trigger_name, origin=origin, executable=is_executable(path))
        for path in paths
        if os.path.isfile(path)
    ]
