"""Command line tool for generating and synchronizing gitops repositories."""

import argparse
import logging
import sys
import traceback

from gitops_generator.exceptions import GitOpsException
from gitops_generator.remote import sanitize_error_message

from . import commit_id, generate, overlay, remove, validate_remote

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for generating gitops repositories.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    generate.GenerateAction.register(subparsers)
    overlay.OverlayAction.register(subparsers)
    remove.RemoveAction.register(subparsers)
    commit_id.CommitIdAction.register(subparsers)
    validate_remote.ValidateRemoteAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Gitops-generator command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        action.run(**vars(args))
    except GitOpsException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print(
            "gitops-generator error:",
            sanitize_error_message(str(err)),
            file=sys.stderr,
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
