"""
Operator prompts.

Hooks run with stdin attached to whatever Git gives them, so questions are
asked on the controlling terminal. When no terminal is available the
prompter returns None and callers fall back to their safe default.
"""

import logging
import sys
from typing import Optional

logger = logging.getLogger(__name__)

TTY_PATH = "/dev/tty"


class Prompter:
    """Asks the operator a question and returns the raw answer."""

    def ask(self, question: str) -> Optional[str]:
        raise NotImplementedError


class TerminalPrompter(Prompter):
    """Prompts on the controlling terminal."""

    def __init__(self, interactive: bool = True, tty_path: str = TTY_PATH):
        self.interactive = interactive
        self.tty_path = tty_path

    def ask(self, question: str) -> Optional[str]:
        if not self.interactive:
            return None

        try:
            with open(self.tty_path, "r+") as tty:
                tty.write(question)
                tty.flush()
                answer = tty.readline()
        except OSError:
            if not sys.stdin.isatty():
                logger.debug("No terminal available for prompting")
                return None
            try:
                answer = input(question)
            except EOFError:
                return None

        return answer.strip()
