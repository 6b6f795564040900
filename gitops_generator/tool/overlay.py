"""Command line tool for generating the environment overlay of a component."""

import logging
import pathlib
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from gitops_generator import generate, gitops
from gitops_generator.exceptions import InputException
from gitops_generator.fs import OsFilesystem
from gitops_generator.kustomize import COMPONENTS_DIR
from gitops_generator.manifest import read_options

from .sync_common import add_sync_flags, build_config, sync_target

_LOGGER = logging.getLogger(__name__)


class OverlayAction:
    """Gitops-generator overlay action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "overlay",
                help="Generate the overlay of a component for an environment",
                description=(
                    "Generate a Deployment patch for an environment and add it "
                    "to the overlay kustomization, keeping any existing patches."
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
            "--environment",
            type=str,
            required=True,
            help="Name of the environment of the overlay",
        )
        args.add_argument(
            "--image",
            type=str,
            required=True,
            help="Container image deployed to the environment",
        )
        args.add_argument(
            "--namespace",
            type=str,
            default=None,
            help="Namespace of the environment, defaults to the component namespace",
        )
        args.add_argument(
            "--application",
            type=str,
            default=None,
            help="Directory the repository is cloned into, defaults to the application",
        )
        args.add_argument(
            "--path",
            type=pathlib.Path,
            default=None,
            help="Local gitops directory holding the component base",
        )
        add_sync_flags(args)
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        options: pathlib.Path,
        environment: str,
        image: str,
        path: pathlib.Path | None,
        **kwargs,
    ) -> None:
        """Action implementation."""
        component = read_options(options)
        namespace = kwargs.get("namespace") or component.namespace
        if kwargs.get("remote"):
            remote, output_path = sync_target(**kwargs)
            config = build_config(**kwargs)
            gitops.Gen().generate_overlays_and_push(
                output_path,
                True,
                remote,
                component,
                kwargs.get("application") or component.application,
                environment,
                image,
                namespace,
                config.branch,
                config.context,
                config.do_push,
            )
            return

        if path is None:
            raise InputException("One of --path or --remote is required")
        output_folder = str(
            path / COMPONENTS_DIR / component.name / gitops.OVERLAYS_DIR / environment
        )
        generate.generate_overlays(
            OsFilesystem(), str(path), output_folder, component, image, namespace
        )
        _LOGGER.info("Generated %s", output_folder)
