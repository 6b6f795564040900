"""Library for reading and writing the files of a gitops repository.

All generators take a `Filesystem` so that the same code can write to local
disk, to an in-memory tree in tests, or fail every write to exercise error
handling:

```python
from gitops_generator import fs

memory = fs.MemoryFilesystem()
memory.mkdir_all("/tmp/gitops/components")
memory.write_file("/tmp/gitops/kustomization.yaml", b"kind: Kustomization\n")
assert memory.exists("/tmp/gitops/kustomization.yaml")
```
"""

from abc import ABC, abstractmethod
import logging
import os
import posixpath
import tempfile
from pathlib import Path

from .exceptions import FilesystemException, ReadOnlyFilesystemError

__all__ = [
    "Filesystem",
    "OsFilesystem",
    "MemoryFilesystem",
    "ReadOnlyFilesystem",
]

_LOGGER = logging.getLogger(__name__)


class Filesystem(ABC):
    """A path addressed tree of directories and files."""

    @abstractmethod
    def mkdir_all(self, path: str) -> None:
        """Create the directory and any missing parents."""

    @abstractmethod
    def write_file(self, path: str, data: bytes) -> None:
        """Write the file contents, replacing any existing file."""

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        """Return the contents of the file."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at the path."""

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Return True if the path is an existing directory."""

    @abstractmethod
    def list_dir(self, path: str) -> list[str]:
        """Return the sorted names of the entries in the directory."""

    @abstractmethod
    def temp_dir(self, prefix: str) -> str:
        """Create a new temporary directory and return its path."""


class OsFilesystem(Filesystem):
    """Filesystem backed by the local disk."""

    def mkdir_all(self, path: str) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise FilesystemException(path, str(err)) from err

    def write_file(self, path: str, data: bytes) -> None:
        try:
            Path(path).write_bytes(data)
        except OSError as err:
            raise FilesystemException(path, str(err)) from err

    def read_file(self, path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as err:
            raise FilesystemException(path, str(err)) from err

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def list_dir(self, path: str) -> list[str]:
        try:
            return sorted(os.listdir(path))
        except OSError as err:
            raise FilesystemException(path, str(err)) from err

    def temp_dir(self, prefix: str) -> str:
        try:
            return tempfile.mkdtemp(prefix=prefix)
        except OSError as err:
            raise FilesystemException(prefix, str(err)) from err


def _clean(path: str) -> str:
    """Normalize a path so that equivalent spellings share one key."""
    return posixpath.normpath(posixpath.join("/", path))


class MemoryFilesystem(Filesystem):
    """Filesystem that only lives in memory, used for tests."""

    def __init__(self) -> None:
        """Initialize MemoryFilesystem with only the root directory."""
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}
        self._temp_count = 0

    def _add_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent not in self._dirs:
            self._dirs.add(parent)
            parent = posixpath.dirname(parent)

    def mkdir_all(self, path: str) -> None:
        key = _clean(path)
        if key in self._files:
            raise FilesystemException(path, f"mkdir {path}: not a directory")
        self._dirs.add(key)
        self._add_parents(key)

    def write_file(self, path: str, data: bytes) -> None:
        key = _clean(path)
        if key in self._dirs:
            raise FilesystemException(path, f"open {path}: is a directory")
        self._add_parents(key)
        self._files[key] = bytes(data)

    def read_file(self, path: str) -> bytes:
        key = _clean(path)
        if key not in self._files:
            raise FilesystemException(path, f"open {path}: file does not exist")
        return self._files[key]

    def exists(self, path: str) -> bool:
        key = _clean(path)
        return key in self._files or key in self._dirs

    def is_dir(self, path: str) -> bool:
        return _clean(path) in self._dirs

    def list_dir(self, path: str) -> list[str]:
        key = _clean(path)
        if key not in self._dirs:
            raise FilesystemException(path, f"open {path}: file does not exist")
        names = {
            posixpath.basename(entry)
            for entry in (*self._files, *self._dirs)
            if entry != key and posixpath.dirname(entry) == key
        }
        return sorted(names)

    def temp_dir(self, prefix: str) -> str:
        self._temp_count += 1
        path = posixpath.join("/tmp", f"{prefix}{self._temp_count}")
        self.mkdir_all(path)
        return path


class ReadOnlyFilesystem(Filesystem):
    """Filesystem that rejects every mutation.

    Reads are served from the wrapped filesystem, an empty in-memory one by
    default.
    """

    def __init__(self, base: Filesystem | None = None) -> None:
        """Initialize ReadOnlyFilesystem."""
        self._base = base if base is not None else MemoryFilesystem()

    def _reject(self, op: str, path: str) -> ReadOnlyFilesystemError:
        _LOGGER.debug("Rejecting %s of %s on read-only filesystem", op, path)
        return ReadOnlyFilesystemError(path, f"{op} {path}: read-only file system")

    def mkdir_all(self, path: str) -> None:
        raise self._reject("mkdir", path)

    def write_file(self, path: str, data: bytes) -> None:
        raise self._reject("open", path)

    def read_file(self, path: str) -> bytes:
        return self._base.read_file(path)

    def exists(self, path: str) -> bool:
        return self._base.exists(path)

    def is_dir(self, path: str) -> bool:
        return self._base.is_dir(path)

    def list_dir(self, path: str) -> list[str]:
        return self._base.list_dir(path)

    def temp_dir(self, prefix: str) -> str:
        raise self._reject("mkdir", prefix)
