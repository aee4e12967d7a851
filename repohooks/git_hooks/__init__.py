"""
Git hooks module for the hook runner.

This module provides the Git integration: the git command wrapper, hook
entry-point installation, the trigger entry point and the command-line tool.
"""
