"""Command line tool for checking a remote gitops repository url."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from gitops_generator.remote import sanitize_error_message, validate_remote


class ValidateRemoteAction:
    """Gitops-generator validate-remote action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "validate-remote",
                help="Check that a remote is an https url of a supported git host",
            ),
        )
        args.add_argument("remote", type=str, help="Remote url to check")
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        remote: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Action implementation."""
        validate_remote(remote)
        print(f"{sanitize_error_message(remote)} is valid")
