#!/usr/bin/env python3
"""
Git hook entry-point template.

The same script is installed into every managed hook slot of a repository's
hooks directory. It hands over to the trigger module with the slot's name and
the arguments Git passed.
"""

import shlex
import sys

from repohooks import __version__

# Marker line identifying hooks written by this tool
HOOK_MARKER = "# Managed by repohooks"

# The Git hook slots managed by the installer
MANAGED_HOOK_NAMES = [
    "applypatch-msg", "pre-applypatch", "post-applypatch",
    "pre-commit", "prepare-commit-msg", "commit-msg", "post-commit",
    "pre-rebase", "post-checkout", "post-merge", "pre-push",
    "pre-receive", "update", "post-receive", "post-update",
    "push-to-checkout", "pre-auto-gc", "post-rewrite", "sendemail-validate",
]

BASE_HOOK_TEMPLATE = """#!/bin/sh
{marker}
# Runs the hooks in this repository's .githooks folder and in the
# configured shared hook repositories.
#
# Version: {version}

exec {python} -m repohooks.git_hooks.trigger --hook-dir "$(dirname "$0")" "$(basename "$0")" "$@"
"""


def render_hook(python: str = sys.executable) -> str:
    """Render the entry-point script for the given Python interpreter."""
    return BASE_HOOK_TEMPLATE.format(
        marker=HOOK_MARKER,
        version=__version__,
        python=shlex.quote(python),
    )
