"""Test helpers for gitops-generator tools."""

from gitops_generator.command import Command

GITOPS_GENERATOR_BIN = "gitops-generator"


def run_command(args: list[str], env: dict[str, str] | None = None) -> str:
    return Command([GITOPS_GENERATOR_BIN] + args, env=env).run().decode()
