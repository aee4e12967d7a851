"""
Shared fixtures for the test suite: scripted prompts, a recording git fake
and helpers for writing hook files.
"""

import os
import shlex
import shutil

from repohooks.database.config_store import GLOBAL, InMemoryConfigStore
from repohooks.pipeline.error_handling import GitCommandError
from repohooks.pipeline.prompts import Prompter

GIT_AVAILABLE = shutil.which("git") is not None


class ScriptedPrompter(Prompter):
    """Answers questions from a list; None once the list is exhausted."""

    def __init__(self, answers=()):
        self.answers = list(answers)
        self.questions = []

    def ask(self, question):
        self.questions.append(question)
        if not self.answers:
            return None
        return self.answers.pop(0)


class FakeGit:
    """
    Stands in for GitRunner in shared repository tests.

    Clones create a mirror with the files registered for the URL; origin
    lookups answer from the mirrors it knows about.
    """

    def __init__(self, origins=None, clone_files=None, fail=()):
        self.calls = []
        self.origins = dict(origins or {})
        self.clone_files = dict(clone_files or {})
        self.fail = set(fail)

    def run(self, args, cwd=None):
        args = list(args)
        self.calls.append((args, cwd))

        if args[0] in self.fail:
            raise GitCommandError(f"git {args[0]} failed", returncode=128, output="fatal: unable to access")

        if args[0] == "clone":
            url, name = args[1], args[2]
            mirror = os.path.join(cwd, name)
            make_mirror(mirror, url, self.clone_files.get(url, {}))
            self.origins[mirror] = url
            return ""

        if args[:3] == ["config", "--get", "remote.origin.url"]:
            if cwd in self.origins:
                return self.origins[cwd]
            raise GitCommandError("key not set", returncode=1)

        return ""

    def network_calls(self):
        return [args for args, _ in self.calls if args[0] in ("clone", "pull")]


def write_file(path, content, executable=False):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)
    os.chmod(path, 0o755 if executable else 0o644)
    return path


def recording_hook(log_path, label, exit_code=0):
    """Script that appends ``label`` to ``log_path`` and exits with ``exit_code``."""
    return (
        "#!/bin/sh\n"
        f"echo {shlex.quote(label)} >> {shlex.quote(log_path)}\n"
        f"exit {exit_code}\n"
    )


def read_log(log_path):
    if not os.path.exists(log_path):
        return []
    with open(log_path) as f:
        return f.read().split()


def make_mirror(mirror, url, files=None):
    """Create a fake shared repository checkout with the given hook files."""
    os.makedirs(os.path.join(mirror, ".git"), exist_ok=True)
    for relative_path, content in (files or {}).items():
        write_file(os.path.join(mirror, relative_path), content, executable=True)
    return mirror


class ReadOnlyGlobalStore(InMemoryConfigStore):
    """Settings store whose global scope cannot be written, like a locked ~/.gitconfig."""

    def set(self, key, value, scope=None):
        if scope == GLOBAL:
            raise GitCommandError(
                "git config failed", returncode=255,
                output="error: could not lock config file ~/.gitconfig: Permission denied",
            )
        super().set(key, value, scope)
