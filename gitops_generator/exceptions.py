"""Exceptions related to gitops-generator."""

__all__ = [
    "GitOpsException",
    "InputException",
    "KustomizationParseError",
    "InvalidRemoteError",
    "CommandException",
    "UnsupportedCommandError",
    "FilesystemException",
    "ReadOnlyFilesystemError",
    "GenerateException",
    "RepositoryExistsError",
]


class GitOpsException(Exception):
    """Generic base exception used for this library."""


class InputException(GitOpsException):
    """Raised when the input files or values are not formatted as expected."""


class KustomizationParseError(InputException):
    """Raised when an existing kustomization file does not have the expected shape."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"failed to unmarshal data in {path!r}: {message}")
        self.path = path


class InvalidRemoteError(InputException):
    """Raised when a remote git url is not an allowed https url."""


class CommandException(GitOpsException):
    """Raised when there is a failure running a subcommand."""

    def __init__(self, message: str, output: bytes = b"") -> None:
        super().__init__(message)
        self.output = output


class UnsupportedCommandError(CommandException):
    """Raised when an executor is asked to run a command it does not support."""


class FilesystemException(GitOpsException):
    """Raised when a filesystem operation fails."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class ReadOnlyFilesystemError(FilesystemException):
    """Raised for any mutating call on a read-only filesystem."""


class GenerateException(GitOpsException):
    """Raised when the gitops resources could not be generated."""


class RepositoryExistsError(GitOpsException):
    """Raised when a remote repository to create already exists."""
