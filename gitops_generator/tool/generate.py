"""Command line tool for generating the base resources of a component."""

import logging
import pathlib
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from gitops_generator import generate, gitops
from gitops_generator.fs import OsFilesystem
from gitops_generator.kustomize import BASE_DIR, COMPONENTS_DIR
from gitops_generator.manifest import read_options

from .format import STDOUT, open_file, print_documents
from .sync_common import add_sync_flags, build_config, sync_target

_LOGGER = logging.getLogger(__name__)


class GenerateAction:
    """Gitops-generator generate action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "generate",
                help="Generate the base resources of a component",
                description=(
                    "Generate the Deployment, Service and Route of a component. "
                    "The resources are printed, written to a local gitops "
                    "directory with --path, or pushed with --remote."
                ),
            ),
        )
        args.add_argument(
            "--options",
            type=pathlib.Path,
            required=True,
            help="YAML file describing the component",
        )
        args.add_argument(
            "--path",
            type=pathlib.Path,
            default=None,
            help="Local gitops directory to write the component resources to",
        )
        args.add_argument(
            "--output-file",
            type=str,
            default=STDOUT,
            help="Output file for the resources when not writing to a repository",
        )
        add_sync_flags(args)
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        options: pathlib.Path,
        path: pathlib.Path | None,
        output_file: str,
        **kwargs,
    ) -> None:
        """Action implementation."""
        component = read_options(options)
        if kwargs.get("remote"):
            remote, output_path = sync_target(**kwargs)
            config = build_config(**kwargs)
            gitops.Gen().clone_generate_and_push(
                output_path,
                remote,
                component,
                config.branch,
                config.context,
                config.do_push,
            )
            return

        if path is not None:
            root_folder = str(path)
            output_folder = str(path / COMPONENTS_DIR / component.name / BASE_DIR)
            generate.generate(OsFilesystem(), root_folder, output_folder, component)
            _LOGGER.info("Generated %s", output_folder)
            return

        docs = [
            doc
            for manifest_file in generate.classify_resources(component)
            for doc in manifest_file.documents
        ]
        with open_file(output_file, "w") as file:
            print_documents(docs, file)
