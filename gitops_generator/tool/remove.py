"""Command line tool for removing a component from a gitops repository."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from gitops_generator import gitops

from .sync_common import add_sync_flags, build_config, sync_target


class RemoveAction:
    """Gitops-generator remove action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "remove",
                help="Remove a component from a gitops repository",
                description=(
                    "Delete the component directory, regenerate the parent "
                    "kustomization and push the change."
                ),
            ),
        )
        args.add_argument(
            "--name",
            type=str,
            required=True,
            help="Name of the component to remove",
        )
        add_sync_flags(args)
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        name: str,
        **kwargs,
    ) -> None:
        """Action implementation."""
        remote, output_path = sync_target(**kwargs)
        config = build_config(**kwargs)
        gitops.Gen().remove_and_push(
            output_path,
            remote,
            name,
            config.branch,
            config.context,
            config.do_push,
        )
