"""Representation of the inputs used to generate a component's gitops resources.

`GeneratorOptions` describes a single component of an application: its
identity, its container and optionally an explicit bundle of kubernetes
resources. Options are usually built in code, but may also be read from a
YAML file using the camelCase field names:

```yaml
name: test-component
namespace: test-namespace
application: test-application
containerImage: quay.io/test/test-image:latest
targetPort: 8080
baseEnvVar:
- name: FOO
  value: BAR
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "read_options",
    "EnvVar",
    "GitSource",
    "KubernetesResources",
    "GeneratorOptions",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_CREATED_BY = "application-service"

Document = dict[str, Any]
"""An opaque kubernetes object, serialized as a single YAML document."""


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all option objects."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class EnvVar(BaseManifest):
    """An environment variable for the component container."""

    name: str
    """Name of the environment variable."""

    value: str | None = None
    """Literal value of the variable."""

    value_from: dict[str, Any] | None = field(
        metadata=field_options(alias="valueFrom"), default=None
    )
    """Source for the value of the variable e.g. a secretKeyRef."""


@dataclass
class GitSource(BaseManifest):
    """Location of the gitops repository for a component."""

    url: str
    """The url of the repository."""


def _check_document(kind: str, doc: Any) -> None:
    """Assert that the resource can be written as a YAML document."""
    if not isinstance(doc, dict):
        raise InputException(f"Invalid {kind} resource, expected a mapping: {doc!r}")
    try:
        yaml.safe_dump(doc)
    except yaml.YAMLError as err:
        raise InputException(
            f"Invalid {kind} resource is not serializable: {err}"
        ) from err


@dataclass
class KubernetesResources(BaseManifest):
    """Explicit kubernetes resources supplied for a component."""

    deployments: list[Document] = field(default_factory=list)
    """Deployment objects."""

    services: list[Document] = field(default_factory=list)
    """Service objects."""

    routes: list[Document] = field(default_factory=list)
    """Openshift Route objects."""

    ingresses: list[Document] = field(default_factory=list)
    """Ingress objects."""

    others: list[Document] = field(default_factory=list)
    """Any other objects, written as-is to the aggregate resource file."""

    def __post_init__(self) -> None:
        for kind, docs in (
            ("deployment", self.deployments),
            ("service", self.services),
            ("route", self.routes),
            ("ingress", self.ingresses),
            ("other", self.others),
        ):
            for doc in docs:
                _check_document(kind, doc)

    def __bool__(self) -> bool:
        """Return True if at least one resource of any kind was supplied."""
        return any(
            (self.deployments, self.services, self.routes, self.ingresses, self.others)
        )


@dataclass
class GeneratorOptions(BaseManifest):
    """Options describing a component to generate gitops resources for."""

    name: str
    """The name of the component."""

    namespace: str = ""
    """The namespace the component is deployed to."""

    application: str = ""
    """The name of the application that owns the component."""

    route: str = ""
    """Optional hostname for the generated Route."""

    container_image: str = field(
        metadata=field_options(alias="containerImage"), default=""
    )
    """The container image of the component."""

    target_port: int = field(metadata=field_options(alias="targetPort"), default=0)
    """The port the container listens on, or 0 when it does not serve traffic."""

    secret: str = ""
    """Name of an image pull secret."""

    replicas: int = 0
    """Number of replicas, treated as 1 when not set."""

    resources: dict[str, Any] = field(default_factory=dict)
    """Container resource requirements with `limits` and `requests`."""

    base_env_var: list[EnvVar] = field(
        metadata=field_options(alias="baseEnvVar"), default_factory=list
    )
    """Environment variables shared by every environment."""

    k8s_labels: dict[str, str] = field(
        metadata=field_options(alias="k8sLabels"), default_factory=dict
    )
    """Labels replacing the default set of component labels."""

    kubernetes_resources: KubernetesResources = field(
        metadata=field_options(alias="kubernetesResources"),
        default_factory=KubernetesResources,
    )
    """Explicit resources to write instead of generating them."""

    overlay_env_var: list[EnvVar] = field(
        metadata=field_options(alias="overlayEnvVar"), default_factory=list
    )
    """Environment variables specific to an environment overlay."""

    git_source: GitSource | None = field(
        metadata=field_options(alias="gitSource"), default=None
    )
    """The gitops repository of the component."""

    created_by: str = field(
        metadata=field_options(alias="createdBy"), default=DEFAULT_CREATED_BY
    )
    """Value of the created-by label on generated resources."""

    @classmethod
    def parse_doc(cls, doc: Any) -> "GeneratorOptions":
        """Parse GeneratorOptions from a deserialized YAML document."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid options, expected a mapping: {doc!r}")
        if not doc.get("name"):
            raise InputException(f"Invalid options missing name: {doc}")
        try:
            return cls.from_dict(doc)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid options: {err}") from err

    @classmethod
    def parse_yaml(cls, content: str) -> "GeneratorOptions":
        """Parse serialized options."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise InputException(f"Unable to parse options: {err}") from err
        return cls.parse_doc(doc)

    @property
    def replica_count(self) -> int:
        """Number of replicas for the generated Deployment."""
        return max(1, self.replicas)


def read_options(options_path: Path) -> GeneratorOptions:
    """Return the options stored in a YAML file."""
    try:
        content = options_path.read_text()
    except OSError as err:
        raise InputException(f"Unable to read options {options_path}: {err}") from err
    if not content:
        raise InputException(f"Options file {options_path} is empty")
    _LOGGER.debug("Read options from %s", options_path)
    return GeneratorOptions.parse_yaml(content)
