"""Command line tool for printing the commit id of a local repository."""

import pathlib
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from gitops_generator import gitops


class CommitIdAction:
    """Gitops-generator commit-id action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "commit-id",
                help="Print the commit id of HEAD in a local repository",
            ),
        )
        args.add_argument(
            "--path",
            type=pathlib.Path,
            default=pathlib.Path("."),
            help="Path of the local repository",
        )
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        path: pathlib.Path,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Action implementation."""
        print(gitops.Gen().get_commit_id_from_repo(str(path)))
