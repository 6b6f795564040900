"""Library for formatting output."""

from collections.abc import Generator
from contextlib import contextmanager
import sys
from typing import Any, TextIO

import yaml

STDOUT = "/dev/stdout"


@contextmanager
def open_file(output_file: str, mode: str) -> Generator[TextIO, None, None]:
    """Open the output file, writing to stdout for `-` or `/dev/stdout`."""
    if output_file in ("-", STDOUT):
        yield sys.stdout
        return
    with open(output_file, mode) as file:
        yield file


def print_documents(docs: list[dict[str, Any]], file: TextIO = sys.stdout) -> None:
    """Print the objects as a stream of YAML documents."""
    print(
        yaml.safe_dump_all(docs, sort_keys=True, explicit_start=True),
        end="",
        file=file,
    )
