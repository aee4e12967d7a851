#!/usr/bin/env python3
"""
Tests for running a single hook item.
"""

import os
import shutil
import tempfile
import unittest

from repohooks.pipeline.executor import HookExecutor, build_command, read_shebang
from repohooks.pipeline.ignore import IgnoreFilter
from repohooks.pipeline.models import DecisionSession, HookItem, HookOrigin
from repohooks.pipeline.trust import Decision
from tests.helpers import read_log, recording_hook, write_file


class StaticTrust:
    """Trust store stand-in returning a fixed decision."""

    def __init__(self, decision=Decision.RUN):
        self.decision = decision
        self.decided = []

    def decide(self, item, session):
        self.decided.append(item.path)
        return self.decision


class BuildCommandTestCase(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def _item(self, path, executable):
        return HookItem(path=path, trigger="commit-msg", origin=HookOrigin.LOCAL, executable=executable)

    def test_executable_runs_directly(self):
        path = write_file(os.path.join(self.test_dir, "hook"), "#!/bin/sh\n", executable=True)
        self.assertEqual(build_command(self._item(path, True), ["msg"]), [path, "msg"])

    def test_shebang_interpreter(self):
        path = write_file(os.path.join(self.test_dir, "hook"), "#!/usr/bin/env python3 -u\nprint()\n")
        self.assertEqual(read_shebang(path), ["/usr/bin/env", "python3", "-u"])
        self.assertEqual(build_command(self._item(path, False), ["msg"]), ["/usr/bin/env", "python3", "-u", path, "msg"])

    def test_fallback_to_sh(self):
        path = write_file(os.path.join(self.test_dir, "hook"), "exit 0\n")
        self.assertIsNone(read_shebang(path))
        self.assertEqual(build_command(self._item(path, False), []), ["sh", path])


class HookExecutorTestCase(unittest.TestCase):
    """Test the ignore, trust and exit code handling of the executor."""

    def setUp(self):
        self.repo_root = tempfile.mkdtemp()
        self.log_path = os.path.join(self.repo_root, "run.log")
        self.trust = StaticTrust()
        self.executor = HookExecutor(self.repo_root, IgnoreFilter(self.repo_root), self.trust)

    def tearDown(self):
        shutil.rmtree(self.repo_root)

    def _hook(self, name, content, executable=False):
        path = write_file(os.path.join(self.repo_root, ".githooks", "pre-commit", name), content, executable)
        return HookItem(path=path, trigger="pre-commit", origin=HookOrigin.LOCAL, executable=executable)

    def test_exit_code_is_returned(self):
        item = self._hook("check", recording_hook(self.log_path, "check", exit_code=3))

        self.assertEqual(self.executor.run(item, (), DecisionSession()), 3)
        self.assertEqual(read_log(self.log_path), ["check"])

    def test_arguments_are_passed_through(self):
        item = self._hook("args", f"echo \"$1\" >> '{self.log_path}'\n")

        self.assertEqual(self.executor.run(item, ("first-arg",), DecisionSession()), 0)
        self.assertEqual(read_log(self.log_path), ["first-arg"])

    def test_runs_in_repository_root(self):
        item = self._hook("cwd", f"pwd > '{self.log_path}'\n")

        self.executor.run(item, (), DecisionSession())

        with open(self.log_path) as f:
            self.assertEqual(os.path.realpath(f.read().strip()), os.path.realpath(self.repo_root))

    def test_ignored_hook_skips_trust(self):
        write_file(os.path.join(self.repo_root, ".githooks", ".ignore"), "check\n")
        item = self._hook("check", recording_hook(self.log_path, "check", exit_code=1))

        self.assertEqual(self.executor.run(item, (), DecisionSession()), 0)
        self.assertEqual(self.trust.decided, [])
        self.assertEqual(read_log(self.log_path), [])

    def test_skipped_hook_does_not_run(self):
        self.trust.decision = Decision.SKIP
        item = self._hook("check", recording_hook(self.log_path, "check", exit_code=1))

        self.assertEqual(self.executor.run(item, (), DecisionSession()), 0)
        self.assertEqual(read_log(self.log_path), [])

    def test_missing_file_is_skipped(self):
        item = HookItem(path=os.path.join(self.repo_root, "gone"), trigger="pre-commit",
                        origin=HookOrigin.LOCAL, executable=False)

        self.assertEqual(self.executor.run(item, (), DecisionSession()), 0)
        self.assertEqual(self.trust.decided, [])

    def test_missing_interpreter(self):
        item = self._hook("check", "#!/nonexistent/interpreter\nexit 0\n")

        with self.assertLogs("repohooks.pipeline.executor", level="ERROR"):
            self.assertEqual(self.executor.run(item, (), DecisionSession()), 127)

    def test_killed_by_signal(self):
        item = self._hook("check", "kill -TERM $$\n")

        self.assertEqual(self.executor.run(item, (), DecisionSession()), 128 + 15)


if __name__ == "__main__":
    unittest.main()
