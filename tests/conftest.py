"""Fixtures for gitops-generator tests."""

import pytest

from gitops_generator.fs import MemoryFilesystem
from gitops_generator.manifest import GeneratorOptions

from . import APPLICATION, COMPONENT, IMAGE, NAMESPACE


@pytest.fixture(name="memory_fs")
def memory_fs_fixture() -> MemoryFilesystem:
    """Fixture for an empty in-memory filesystem."""
    return MemoryFilesystem()


@pytest.fixture(name="options")
def options_fixture() -> GeneratorOptions:
    """Fixture for a component that serves traffic on a port."""
    return GeneratorOptions(
        name=COMPONENT,
        namespace=NAMESPACE,
        application=APPLICATION,
        container_image=IMAGE,
        target_port=8080,
    )
