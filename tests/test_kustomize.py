"""Tests for the kustomization reconciler."""

import pytest
import yaml

from gitops_generator.exceptions import InputException, KustomizationParseError
from gitops_generator.fs import MemoryFilesystem
from gitops_generator.kustomize import (
    KUSTOMIZE_API_VERSION,
    Kustomization,
    Patch,
    generate_parent_kustomize,
    read_kustomization,
    write_kustomization,
)

KUSTOMIZATION = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
namespace: test-namespace
resources:
- service.yaml
- deployment.yaml
patches:
- path: b.yaml
- a.yaml
- patch: |-
    - op: replace
      path: /spec/replicas
      value: 2
  target:
    kind: Deployment
configMapGenerator:
- name: config
  literals:
  - FOO=BAR
"""


def test_add_resources_sorted_and_deduplicated() -> None:
    """Test that resources behave like a sorted set."""
    kustomization = Kustomization()
    kustomization.add_resources("service.yaml", "deployment.yaml", "service.yaml")
    assert kustomization.resources == ["deployment.yaml", "service.yaml"]

    kustomization.add_resources("deployment.yaml", "route.yaml")
    assert kustomization.resources == ["deployment.yaml", "route.yaml", "service.yaml"]

    kustomization.add_resources("deployment.yaml", "route.yaml")
    assert kustomization.resources == ["deployment.yaml", "route.yaml", "service.yaml"]


def test_add_bases() -> None:
    """Test that bases behave like a sorted set."""
    kustomization = Kustomization(bases=["../../base"])
    kustomization.add_bases("../../base", "../common")
    assert kustomization.bases == ["../../base", "../common"]


def test_add_patches() -> None:
    """Test the plain patch helper sorts patch files."""
    kustomization = Kustomization(patches=[Patch(path="b.yaml")])
    kustomization.add_patches("a.yaml", "b.yaml")
    assert kustomization.patch_files == ["a.yaml", "b.yaml"]


@pytest.mark.parametrize(
    ("original", "generated", "expected"),
    [
        (["A", "B"], ["B", "C"], ["C", "A", "B"]),
        ([], ["deployment-patch.yaml"], ["deployment-patch.yaml"]),
        (
            ["deployment-patch.yaml"],
            ["deployment-patch.yaml"],
            ["deployment-patch.yaml"],
        ),
        (["x.yaml"], [], ["x.yaml"]),
        (
            ["z.yaml", "a.yaml"],
            ["c.yaml", "b.yaml"],
            ["c.yaml", "b.yaml", "z.yaml", "a.yaml"],
        ),
        ([], ["b.yaml", "b.yaml"], ["b.yaml"]),
    ],
)
def test_merge_patches(
    original: list[str], generated: list[str], expected: list[str]
) -> None:
    """Test new generated patches are listed ahead of the original patches."""
    kustomization = Kustomization()
    kustomization.merge_patches([Patch(path=path) for path in original], generated)
    assert kustomization.patch_files == expected


def test_merge_patches_keeps_inline_patches() -> None:
    """Test that inline patches keep their position among the original patches."""
    inline = Patch(
        patch="- op: remove\n  path: /spec/replicas\n",
        target={"kind": "Deployment"},
    )
    kustomization = Kustomization()
    kustomization.merge_patches([inline, Patch(path="a.yaml")], ["a.yaml", "b.yaml"])
    assert kustomization.patches == [Patch(path="b.yaml"), inline, Patch(path="a.yaml")]


def test_parse_kustomization() -> None:
    """Test parsing a kustomization with inline patches and unknown fields."""
    kustomization = Kustomization.parse_yaml(KUSTOMIZATION)
    assert kustomization.resources == ["service.yaml", "deployment.yaml"]
    assert kustomization.patch_files == ["b.yaml", "a.yaml"]
    assert kustomization.patches[2].target == {"kind": "Deployment"}
    assert kustomization.extra == {
        "namespace": "test-namespace",
        "configMapGenerator": [{"name": "config", "literals": ["FOO=BAR"]}],
    }


def test_unknown_fields_written_back() -> None:
    """Test that fields added by hand survive a read and write."""
    kustomization = Kustomization.parse_yaml(KUSTOMIZATION)
    kustomization.add_resources("route.yaml")

    doc = yaml.safe_load(kustomization.yaml())
    assert doc["namespace"] == "test-namespace"
    assert doc["configMapGenerator"] == [{"name": "config", "literals": ["FOO=BAR"]}]
    assert doc["resources"] == ["deployment.yaml", "route.yaml", "service.yaml"]
    assert doc["patches"][:2] == [{"path": "b.yaml"}, {"path": "a.yaml"}]
    assert doc["patches"][2]["target"] == {"kind": "Deployment"}


def test_yaml_output() -> None:
    """Test the serialized form omits empty fields and sorts keys."""
    kustomization = Kustomization()
    kustomization.add_resources("service.yaml", "deployment.yaml")
    assert kustomization.yaml() == (
        "apiVersion: kustomize.config.k8s.io/v1beta1\n"
        "kind: Kustomization\n"
        "resources:\n"
        "- deployment.yaml\n"
        "- service.yaml\n"
    )


def test_yaml_output_patches() -> None:
    """Test generated patches are written as path entries."""
    kustomization = Kustomization()
    kustomization.add_bases("../../base")
    kustomization.merge_patches([], ["deployment-patch.yaml"])
    assert kustomization.yaml() == (
        "apiVersion: kustomize.config.k8s.io/v1beta1\n"
        "bases:\n"
        "- ../../base\n"
        "kind: Kustomization\n"
        "patches:\n"
        "- path: deployment-patch.yaml\n"
    )


@pytest.mark.parametrize(
    "content",
    [
        "- a\n- b\n",
        "resources: [\n",
        "patches:\n- 5\n",
        "resources: foo\n",
        "resources: [1, a]\n",
        "resources: 8\n",
        "bases: base\n",
        "commonLabels: [a]\n",
        "commonLabels:\n  app: 5\n",
    ],
    ids=[
        "list",
        "invalid-yaml",
        "invalid-patch",
        "resources-string",
        "resources-mixed",
        "resources-int",
        "bases-string",
        "labels-list",
        "labels-int-value",
    ],
)
def test_parse_invalid(content: str) -> None:
    """Test a kustomization that does not have the expected shape."""
    with pytest.raises(
        KustomizationParseError, match="failed to unmarshal data"
    ) as exc_info:
        Kustomization.parse_yaml(content, "/gitops/kustomization.yaml")
    assert exc_info.value.path == "/gitops/kustomization.yaml"
    assert isinstance(exc_info.value, InputException)


def test_parse_empty() -> None:
    """Test an empty file is an empty kustomization."""
    assert Kustomization.parse_yaml("") == Kustomization()


def test_read_missing_kustomization(memory_fs: MemoryFilesystem) -> None:
    """Test reading a kustomization that does not exist yet."""
    path = "/gitops/kustomization.yaml"
    assert read_kustomization(memory_fs, path) == Kustomization()


def test_write_kustomization(memory_fs: MemoryFilesystem) -> None:
    """Test that a written kustomization always has the kustomize kind."""
    kustomization = Kustomization(api_version="v1", kind="Other", resources=["a.yaml"])
    write_kustomization(memory_fs, "/gitops/kustomization.yaml", kustomization)

    written = read_kustomization(memory_fs, "/gitops/kustomization.yaml")
    assert written.api_version == KUSTOMIZE_API_VERSION
    assert written.kind == "Kustomization"
    assert written.resources == ["a.yaml"]


def test_generate_parent_kustomize(memory_fs: MemoryFilesystem) -> None:
    """Test the parent kustomization lists the components on disk."""
    memory_fs.write_file("/gitops/components/b/base/deployment.yaml", b"")
    memory_fs.write_file("/gitops/components/a/base/deployment.yaml", b"")
    memory_fs.write_file("/gitops/components/README.md", b"")
    write_kustomization(
        memory_fs,
        "/gitops/kustomization.yaml",
        Kustomization(resources=["components/removed/base"]),
    )

    generate_parent_kustomize(memory_fs, "/gitops")

    kustomization = read_kustomization(memory_fs, "/gitops/kustomization.yaml")
    assert kustomization.resources == ["components/a/base", "components/b/base"]


def test_generate_parent_kustomize_no_components(memory_fs: MemoryFilesystem) -> None:
    """Test the parent kustomization after the last component was removed."""
    memory_fs.mkdir_all("/gitops")
    generate_parent_kustomize(memory_fs, "/gitops")

    kustomization = read_kustomization(memory_fs, "/gitops/kustomization.yaml")
    assert kustomization.resources == []
