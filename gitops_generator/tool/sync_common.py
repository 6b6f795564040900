"""Common flags for the commands that synchronize a remote gitops repository."""

import logging
import pathlib
from argparse import ArgumentParser, BooleanOptionalAction
from typing import Any

from gitops_generator.config import SyncConfig, read_config
from gitops_generator.exceptions import InputException
from gitops_generator.fs import OsFilesystem
from gitops_generator.remote import validate_remote

_LOGGER = logging.getLogger(__name__)


def add_sync_flags(args: ArgumentParser) -> None:
    """Add the flags that select the remote repository and how to sync it."""
    args.add_argument(
        "--remote",
        type=str,
        default=None,
        help="Remote https url of the gitops repository, may include an access token",
    )
    args.add_argument(
        "--output-path",
        type=pathlib.Path,
        default=None,
        help="Directory the gitops repository is cloned into",
    )
    args.add_argument(
        "--config",
        type=pathlib.Path,
        default=None,
        help="YAML file with the branch, context and doPush settings",
    )
    args.add_argument(
        "--branch",
        type=str,
        default=None,
        help="Branch to commit to, overrides the config file",
    )
    args.add_argument(
        "--context",
        type=str,
        default=None,
        help="Directory in the repository with the gitops resources",
    )
    args.add_argument(
        "--push",
        default=None,
        action=BooleanOptionalAction,
        help="Commit and push the changes to the remote",
    )


def build_config(**kwargs: Any) -> SyncConfig:
    """Build the sync config from the config file and command line overrides."""
    config = read_config(path) if (path := kwargs.get("config")) else SyncConfig()
    if branch := kwargs.get("branch"):
        config.branch = branch
    if (context := kwargs.get("context")) is not None:
        config.context = context
    if (push := kwargs.get("push")) is not None:
        config.do_push = push
    _LOGGER.debug("Using sync config %s", config)
    return config


def sync_target(**kwargs: Any) -> tuple[str, str]:
    """Return the validated remote and the output path for a sync command."""
    remote = kwargs.get("remote")
    output_path = kwargs.get("output_path")
    if not remote or output_path is None:
        raise InputException("--remote and --output-path are required to sync")
    validate_remote(remote)
    path = str(output_path.absolute())
    OsFilesystem().mkdir_all(path)
    return remote, path
