#!/usr/bin/env python3
"""
Tests for running every stage of a trigger end to end.
"""

import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from repohooks.config import ConfigManager
from repohooks.database.checksum_store import ChecksumStore, RecordStatus
from repohooks.database.config_store import (
    AUTOUPDATE_ENABLED_KEY,
    DISABLE_KEY,
    GLOBAL,
    SHARED_REPOS_KEY,
    TRUST_ALL_KEY,
    InMemoryConfigStore,
)
from repohooks.pipeline.models import HookTrigger
from repohooks.pipeline.orchestrator import DISABLE_ENV, create_pipeline
from repohooks.pipeline.shared import SharedRepositoryResolver
from repohooks.pipeline.updates import UpdateChecker
from tests.helpers import (
    FakeGit,
    ReadOnlyGlobalStore,
    ScriptedPrompter,
    make_mirror,
    read_log,
    recording_hook,
    write_file,
)

GLOBAL_URL = "git@example.com:org/global-hooks.git"
LOCAL_URL = "git@example.com:org/local-hooks.git"


class HookPipelineTestCase(unittest.TestCase):
    """Test the pipeline over a repository on disk."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.repo_root = os.path.join(self.test_dir, "repo")
        self.git_dir = os.path.join(self.repo_root, ".git")
        self.hook_dir = os.path.join(self.git_dir, "hooks")
        self.cache_dir = os.path.join(self.test_dir, "cache")
        self.log_path = os.path.join(self.test_dir, "order.log")
        os.makedirs(self.hook_dir)
        os.makedirs(self.cache_dir)

        self.config = ConfigManager(config={"shared": {"cache_dir": self.cache_dir}})
        self.config_store = InMemoryConfigStore()
        self.git = FakeGit()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def _pipeline(self, answers=(), update_checker=None):
        self.prompter = ScriptedPrompter(answers)
        return create_pipeline(
            self.repo_root,
            self.config,
            hook_dir=self.hook_dir,
            config_store=self.config_store,
            prompter=self.prompter,
            git_dir=self.git_dir,
            update_checker=update_checker,
            shared_resolver=SharedRepositoryResolver(self.cache_dir, git=self.git),
        )

    def _local_hook(self, relative_path, label, exit_code=0):
        return write_file(
            os.path.join(self.repo_root, ".githooks", relative_path),
            recording_hook(self.log_path, label, exit_code),
            executable=True,
        )

    def _shared_mirror(self, url, name, label, exit_code=0):
        mirror = os.path.join(self.cache_dir, name)
        make_mirror(mirror, url, {"pre-commit": recording_hook(self.log_path, label, exit_code)})
        self.git.origins[mirror] = url

    def _checksums(self):
        return ChecksumStore(os.path.join(self.git_dir, ".githooks.checksum"))

    def _setup_all_stages(self, local_shared_exit=0):
        write_file(os.path.join(self.hook_dir, "pre-commit.replaced.githook"),
                   recording_hook(self.log_path, "legacy"), executable=True)
        self.config_store.set(SHARED_REPOS_KEY, GLOBAL_URL, GLOBAL)
        self._shared_mirror(GLOBAL_URL, "org_global_hooks", "global")
        write_file(os.path.join(self.repo_root, ".githooks", ".shared"), LOCAL_URL + "\n")
        self._shared_mirror(LOCAL_URL, "org_local_hooks", "shared-local", local_shared_exit)
        self._local_hook("pre-commit", "local")

    def test_stages_run_in_order(self):
        self._setup_all_stages()

        exit_code = self._pipeline(["a"]).run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 0)
        self.assertEqual(read_log(self.log_path), ["legacy", "global", "shared-local", "local"])
        self.assertEqual(len(self.prompter.questions), 1)
        self.assertEqual(len(self._checksums().records()), 4)

    def test_failing_shared_hook_stops_local_hooks(self):
        self._setup_all_stages(local_shared_exit=2)

        exit_code = self._pipeline(["a"]).run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 2)
        self.assertEqual(read_log(self.log_path), ["legacy", "global", "shared-local"])

    def test_directory_of_hooks_fails_on_first_error(self):
        self._local_hook("pre-commit/a", "a", exit_code=0)
        self._local_hook("pre-commit/b", "b", exit_code=1)
        self._local_hook("pre-commit/c", "c", exit_code=0)
        self._pipeline(["a"]).run(HookTrigger("pre-commit"))
        os.remove(self.log_path)

        exit_code = self._pipeline().run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 1)
        self.assertEqual(read_log(self.log_path), ["a", "b"])
        self.assertEqual(self.prompter.questions, [])

    def test_declined_new_hook_exits_zero(self):
        self._local_hook("pre-commit", "local", exit_code=1)

        exit_code = self._pipeline(["n"]).run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 0)
        self.assertEqual(read_log(self.log_path), [])
        self.assertEqual(self._checksums().records(), {})

    def test_accepted_hook_runs_without_prompt_next_time(self):
        self._local_hook("pre-commit", "local")
        self._pipeline(["y"]).run(HookTrigger("pre-commit"))

        exit_code = self._pipeline().run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 0)
        self.assertEqual(read_log(self.log_path), ["local", "local"])
        self.assertEqual(self.prompter.questions, [])

    def test_disabled_hook_is_skipped(self):
        hook = self._local_hook("pre-commit", "local", exit_code=1)
        self._pipeline(["d"]).run(HookTrigger("pre-commit"))

        exit_code = self._pipeline(["y"]).run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 0)
        self.assertEqual(read_log(self.log_path), [])
        self.assertEqual(self.prompter.questions, [])
        self.assertEqual(self._checksums().latest(hook).status, RecordStatus.DISABLED)

    def test_ignored_hook_is_never_prompted(self):
        self._local_hook("pre-commit/lint", "lint", exit_code=1)
        write_file(os.path.join(self.repo_root, ".githooks", "pre-commit", ".ignore"), "lint\n")

        exit_code = self._pipeline(["y"]).run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 0)
        self.assertEqual(self.prompter.questions, [])

    def test_trust_all_runs_new_hooks(self):
        write_file(os.path.join(self.repo_root, ".githooks", "trust-all"), "")
        self.config_store.set(TRUST_ALL_KEY, "Y")
        self._local_hook("pre-commit", "local")

        exit_code = self._pipeline().run(HookTrigger("pre-commit"))

        self.assertEqual(exit_code, 0)
        self.assertEqual(read_log(self.log_path), ["local"])
        self.assertEqual(self.prompter.questions, [])

    def test_post_merge_clones_but_pre_commit_does_not(self):
        write_file(os.path.join(self.repo_root, ".githooks", ".shared"), LOCAL_URL + "\n")

        self._pipeline().run(HookTrigger("pre-commit"))
        self.assertEqual(self.git.network_calls(), [])

        self._pipeline().run(HookTrigger("post-merge"))
        self.assertEqual(self.git.network_calls(), [["clone", LOCAL_URL, "org_local_hooks"]])

    def test_failure_before_shared_stage_skips_refresh(self):
        write_file(os.path.join(self.hook_dir, "post-merge.replaced.githook"),
                   recording_hook(self.log_path, "legacy", exit_code=1), executable=True)
        write_file(os.path.join(self.repo_root, ".githooks", ".shared"), LOCAL_URL + "\n")

        exit_code = self._pipeline(["y"]).run(HookTrigger("post-merge"))

        self.assertEqual(exit_code, 1)
        self.assertEqual(self.git.network_calls(), [])

    def test_trigger_arguments_reach_hooks(self):
        write_file(os.path.join(self.repo_root, ".githooks", "commit-msg"),
                   f"echo \"$1\" >> '{self.log_path}'\n")

        self._pipeline(["y"]).run(HookTrigger("commit-msg", (".git/COMMIT_EDITMSG",)))

        self.assertEqual(read_log(self.log_path), [".git/COMMIT_EDITMSG"])

    def test_resolved_plan_can_be_run(self):
        self._local_hook("pre-commit", "local", exit_code=5)
        pipeline = self._pipeline(["y"])

        plan = pipeline.resolver.resolve(HookTrigger("pre-commit"))

        self.assertEqual(pipeline.run_plan(plan), 5)

    def test_disabled_by_config(self):
        self._local_hook("pre-commit", "local", exit_code=1)
        self.config_store.set(DISABLE_KEY, "y", GLOBAL)

        self.assertEqual(self._pipeline(["y"]).run(HookTrigger("pre-commit")), 0)
        self.assertEqual(self.prompter.questions, [])

    def test_disabled_by_environment(self):
        self._local_hook("pre-commit", "local", exit_code=1)

        with patch.dict(os.environ, {DISABLE_ENV: "1"}):
            self.assertEqual(self._pipeline(["y"]).run(HookTrigger("pre-commit")), 0)
        self.assertEqual(read_log(self.log_path), [])

    def test_update_check_runs_before_hooks(self):
        checker = MagicMock(spec=UpdateChecker)

        self._pipeline(update_checker=checker).run(HookTrigger("post-commit"))

        checker.check.assert_called_once_with("post-commit")

    def test_unwritable_global_config_does_not_block_post_commit_hooks(self):
        self.config_store = ReadOnlyGlobalStore(global_values={AUTOUPDATE_ENABLED_KEY: "Y"})
        self._local_hook("post-commit", "local")
        checker = UpdateChecker(self.config_store, fetch_latest_version=lambda: "9.0.0")

        exit_code = self._pipeline(["y"], update_checker=checker).run(HookTrigger("post-commit"))

        self.assertEqual(exit_code, 0)
        self.assertEqual(read_log(self.log_path), ["local"])


if __name__ == "__main__":
    unittest.main()
