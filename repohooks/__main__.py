"""Allow running the CLI with ``python -m repohooks``."""

from repohooks.git_hooks.cli import main

main()
