#!/usr/bin/env python3
"""
Tests for the repohooks command-line interface.
"""

import io
import logging
import os
import shutil
import subprocess
import tempfile
import unittest
from contextlib import redirect_stdout

from repohooks.git_hooks.cli import create_parser, main
from tests.helpers import GIT_AVAILABLE, write_file


class ParserTestCase(unittest.TestCase):

    def test_run_keeps_hook_arguments(self):
        args = create_parser().parse_args(["run", "commit-msg", ".git/COMMIT_EDITMSG", "--flag"])
        self.assertEqual(args.trigger, "commit-msg")
        self.assertEqual(args.trigger_args, [".git/COMMIT_EDITMSG", "--flag"])

    def test_install_search_dir_without_value(self):
        args = create_parser().parse_args(["install", "--search-dir"])
        self.assertEqual(args.search_dir, "")
        self.assertIsNone(create_parser().parse_args(["install"]).search_dir)

    def test_global_toggle(self):
        args = create_parser().parse_args(["disable", "--global"])
        self.assertTrue(args.global_scope)

    def test_no_command(self):
        with redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main([])
        self.assertEqual(ctx.exception.code, 1)


@unittest.skipUnless(GIT_AVAILABLE, "git is not installed")
class CommandTestCase(unittest.TestCase):
    """Run CLI commands against a temporary repository."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.repo_path = os.path.join(self.test_dir, "repo")
        os.makedirs(self.repo_path)
        subprocess.run(["git", "init", "-q"], cwd=self.repo_path, check=True)
        self.base_args = ["--repo-path", self.repo_path, "--config", os.path.join(self.test_dir, "none.yaml")]

    def tearDown(self):
        package_logger = logging.getLogger("repohooks")
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)
        package_logger.propagate = True
        shutil.rmtree(self.test_dir)

    def _main(self, *argv):
        output = io.StringIO()
        with redirect_stdout(output):
            with self.assertRaises(SystemExit) as ctx:
                main(self.base_args + list(argv))
        return ctx.exception.code, output.getvalue()

    def _git_config(self, key):
        result = subprocess.run(["git", "config", "--local", "--get", key], cwd=self.repo_path,
                                stdout=subprocess.PIPE, text=True)
        return result.stdout.strip()

    def test_disable_and_enable(self):
        self.assertEqual(self._main("disable")[0], 0)
        self.assertEqual(self._git_config("githooks.disable"), "Y")

        self.assertEqual(self._main("enable")[0], 0)
        self.assertEqual(self._git_config("githooks.disable"), "")

    def test_trust_accept_list_and_history(self):
        hook = write_file(os.path.join(self.repo_path, ".githooks", "pre-commit"), "#!/bin/sh\nexit 0\n")

        self.assertEqual(self._main("trust", "disable", hook)[0], 0)
        self.assertEqual(self._main("trust", "accept", hook)[0], 0)

        code, output = self._main("trust", "list")
        self.assertEqual(code, 0)
        self.assertIn(hook, output)
        self.assertIn("trusted", output)

        code, output = self._main("trust", "history", hook)
        self.assertEqual(code, 0)
        self.assertIn("disabled", output)
        self.assertIn("accepted", output)

    def test_trust_accept_missing_file(self):
        code, _ = self._main("trust", "accept", os.path.join(self.repo_path, "missing"))
        self.assertEqual(code, 1)

    def test_run_includes_replaced_hook(self):
        marker = os.path.join(self.test_dir, "legacy-ran")
        legacy = write_file(
            os.path.join(os.path.realpath(self.repo_path), ".git", "hooks", "pre-commit.replaced.githook"),
            f"#!/bin/sh\ntouch '{marker}'\n",
            executable=True,
        )
        self.assertEqual(self._main("trust", "accept", legacy)[0], 0)

        self.assertEqual(self._main("run", "pre-commit")[0], 0)
        self.assertTrue(os.path.exists(marker))

    def test_install_and_status(self):
        self.assertEqual(self._main("install")[0], 0)
        self.assertEqual(self._main("status")[0], 0)
        self.assertTrue(os.access(os.path.join(self.repo_path, ".git", "hooks", "pre-commit"), os.X_OK))


if __name__ == "__main__":
    unittest.main()
