"""Library for reconciling kustomize `kustomization.yaml` files.

Generated files are merged into an existing kustomization rather than
replacing it, so entries that an operator added by hand survive every
regeneration:

```python
from gitops_generator import kustomize

k = kustomize.Kustomization()
k.add_resources("service.yaml", "deployment.yaml", "service.yaml")
assert k.resources == ["deployment.yaml", "service.yaml"]

k.merge_patches(
    original=[kustomize.Patch(path="a.yaml"), kustomize.Patch(path="b.yaml")],
    generated=["b.yaml", "c.yaml"],
)
assert k.patch_files == ["c.yaml", "a.yaml", "b.yaml"]
```

The `resources` and `bases` lists are sets: always deduplicated and sorted.
The `patches` list is ordered, since kustomize applies patches in sequence.
"""

from dataclasses import dataclass, field
import logging
import posixpath
from typing import Any

import yaml
from mashumaro import field_options
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import KustomizationParseError
from .fs import Filesystem
from .manifest import BaseManifest

__all__ = [
    "Kustomization",
    "Patch",
    "read_kustomization",
    "write_kustomization",
    "generate_parent_kustomize",
]

_LOGGER = logging.getLogger(__name__)

KUSTOMIZE_API_VERSION = "kustomize.config.k8s.io/v1beta1"
KUSTOMIZE_KIND = "Kustomization"
KUSTOMIZE_FILE_NAME = "kustomization.yaml"
COMPONENTS_DIR = "components"
BASE_DIR = "base"

_KNOWN_KEYS = {"apiVersion", "kind", "resources", "bases", "patches", "commonLabels"}


def remove_duplicates_and_sort(values: list[str]) -> list[str]:
    """Return the unique values in lexicographic order."""
    return sorted(set(values))


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_str_map(value: Any) -> bool:
    return isinstance(value, dict) and all(
        isinstance(key, str) and isinstance(item, str) for key, item in value.items()
    )


@dataclass
class Patch(BaseManifest):
    """A kustomize patch entry.

    Entries written by this library only reference a file by path, while an
    existing kustomization may also hold inline patches with a target.
    """

    path: str | None = None
    """Relative path of the patch file."""

    patch: str | None = None
    """Inline patch contents."""

    target: dict[str, Any] | None = None
    """Selector of the resources the patch applies to."""

    options: dict[str, Any] | None = None
    """Patch options e.g. allowNameChange."""

    @classmethod
    def parse_doc(cls, doc: Any) -> "Patch":
        """Parse a patch entry, accepting a bare path string."""
        if isinstance(doc, str):
            return cls(path=doc)
        return cls.from_dict(doc)


@dataclass
class Kustomization(BaseManifest):
    """A structural representation of the kustomize file format."""

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=KUSTOMIZE_API_VERSION
    )
    """The apiVersion of the kustomization."""

    kind: str = KUSTOMIZE_KIND
    """The kind of the object."""

    resources: list[str] = field(default_factory=list)
    """Resource files or directories, sorted and deduplicated."""

    bases: list[str] = field(default_factory=list)
    """Base directories, sorted and deduplicated."""

    patches: list[Patch] = field(default_factory=list)
    """Patches in the order they are applied."""

    common_labels: dict[str, str] = field(
        metadata=field_options(alias="commonLabels"), default_factory=dict
    )
    """Labels added to all resources."""

    extra: dict[str, Any] = field(metadata={"serialize": "omit"}, default_factory=dict)
    """Any other fields of an existing file, written back unchanged."""

    def __post_serialize__(self, d: dict[str, Any]) -> dict[str, Any]:
        # Omit empty fields, like the kustomize cli does
        return {**self.extra, **{k: v for k, v in d.items() if v}}

    def add_resources(self, *paths: str) -> None:
        """Add resources, keeping the list deduplicated and sorted."""
        self.resources = remove_duplicates_and_sort([*self.resources, *paths])

    def add_bases(self, *paths: str) -> None:
        """Add bases, keeping the list deduplicated and sorted."""
        self.bases = remove_duplicates_and_sort([*self.bases, *paths])

    def add_patches(self, *paths: str) -> None:
        """Add patch files, deduplicating and sorting all patch paths.

        Inline patches without a path are dropped, use `merge_patches` to
        preserve them.
        """
        files = remove_duplicates_and_sort([*self.patch_files, *paths])
        self.patches = [Patch(path=path) for path in files]

    def merge_patches(self, original: list[Patch], generated: list[str]) -> None:
        """Merge generated patch files with the patches of an existing file.

        Generated files not already present come first, in generated order,
        followed by every original patch in its original order.
        """
        original_files = {patch.path for patch in original if patch.path}
        new_files: list[str] = []
        for path in generated:
            if path not in original_files and path not in new_files:
                new_files.append(path)
        self.patches = [Patch(path=path) for path in new_files] + list(original)

    @property
    def patch_files(self) -> list[str]:
        """Return the paths of all file patches, in order."""
        return [patch.path for patch in self.patches if patch.path]

    @classmethod
    def parse_doc(cls, doc: Any, path: str = KUSTOMIZE_FILE_NAME) -> "Kustomization":
        """Parse a Kustomization from a kustomization file document."""
        if doc is None:
            return cls()
        if not isinstance(doc, dict):
            raise KustomizationParseError(path, f"expected a mapping, got {doc!r}")
        try:
            patches = [Patch.parse_doc(patch) for patch in doc.get("patches") or ()]
        except (TypeError, AttributeError, MissingField, InvalidFieldValue) as err:
            raise KustomizationParseError(path, f"invalid patches: {err}") from err
        for key in ("resources", "bases"):
            value = doc.get(key)
            if value is not None and not _is_str_list(value):
                raise KustomizationParseError(
                    path, f"{key} must be a list of strings, got {value!r}"
                )
        labels = doc.get("commonLabels")
        if labels is not None and not _is_str_map(labels):
            raise KustomizationParseError(
                path, f"commonLabels must map strings to strings, got {labels!r}"
            )
        known = {
            key: value
            for key, value in doc.items()
            if key in _KNOWN_KEYS and key != "patches" and value is not None
        }
        try:
            kustomization = cls.from_dict(known)
        except (MissingField, InvalidFieldValue) as err:
            raise KustomizationParseError(path, str(err)) from err
        kustomization.patches = patches
        kustomization.extra = {
            key: value for key, value in doc.items() if key not in _KNOWN_KEYS
        }
        return kustomization

    @classmethod
    def parse_yaml(
        cls, content: str, path: str = KUSTOMIZE_FILE_NAME
    ) -> "Kustomization":
        """Parse a serialized kustomization file."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise KustomizationParseError(path, str(err)) from err
        return cls.parse_doc(doc, path)

    def yaml(self) -> str:
        """Return the YAML file contents with keys in sorted order."""
        return yaml.safe_dump(self.to_dict(), sort_keys=True)


def read_kustomization(fs: Filesystem, path: str) -> Kustomization:
    """Read the kustomization file, or return an empty one if it is missing."""
    if not fs.exists(path):
        return Kustomization()
    content = fs.read_file(path).decode("utf-8")
    return Kustomization.parse_yaml(content, path)


def write_kustomization(
    fs: Filesystem, path: str, kustomization: Kustomization
) -> None:
    """Write the kustomization file, always with the kustomize apiVersion and kind."""
    kustomization.api_version = KUSTOMIZE_API_VERSION
    kustomization.kind = KUSTOMIZE_KIND
    _LOGGER.debug("Writing kustomization %s", path)
    fs.write_file(path, kustomization.yaml().encode("utf-8"))


def generate_parent_kustomize(fs: Filesystem, gitops_folder: str) -> None:
    """Regenerate the parent kustomization from the components on disk.

    Every directory under `components/` contributes its `base` directory to
    the resources. Unlike `Kustomization.add_resources` on an existing file,
    this is a full rescan: the file only lists components that still exist.
    """
    components_folder = posixpath.join(gitops_folder, COMPONENTS_DIR)
    kustomization = Kustomization()
    if fs.is_dir(components_folder):
        for name in fs.list_dir(components_folder):
            if fs.is_dir(posixpath.join(components_folder, name)):
                kustomization.add_resources(
                    posixpath.join(COMPONENTS_DIR, name, BASE_DIR)
                )
    _LOGGER.info(
        "Regenerated parent kustomization in %s with %d components",
        gitops_folder,
        len(kustomization.resources),
    )
    write_kustomization(
        fs, posixpath.join(gitops_folder, KUSTOMIZE_FILE_NAME), kustomization
    )
