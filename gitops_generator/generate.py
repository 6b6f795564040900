"""Library for generating the kustomize base and overlays of a component.

The base of a component holds its Deployment, Service and Route. These are
either taken from the explicit `KubernetesResources` in the options or
generated from the container details:

```python
from gitops_generator import fs, generate
from gitops_generator.manifest import GeneratorOptions

options = GeneratorOptions(
    name="frontend",
    namespace="shop",
    application="shop",
    container_image="quay.io/shop/frontend:latest",
    target_port=8080,
)
generate.generate(
    fs.OsFilesystem(), "gitops", "gitops/components/frontend/base", options
)
```

An overlay is a strategic merge patch of the base Deployment for a single
environment, listed in the overlay kustomization ahead of any patches that
were added by hand.
"""

from collections.abc import Mapping
import copy
from dataclasses import dataclass, field
import logging
import posixpath
from typing import Any

import yaml

from .exceptions import FilesystemException, GenerateException
from .fs import Filesystem
from .kustomize import (
    KUSTOMIZE_FILE_NAME,
    Kustomization,
    read_kustomization,
    write_kustomization,
)
from .manifest import Document, EnvVar, GeneratorOptions

__all__ = [
    "generate",
    "generate_overlays",
    "generate_deployment",
    "generate_service",
    "generate_route",
    "generate_deployment_patch",
]

_LOGGER = logging.getLogger(__name__)

DEPLOYMENT_FILE_NAME = "deployment.yaml"
SERVICE_FILE_NAME = "service.yaml"
ROUTE_FILE_NAME = "route.yaml"
OTHER_FILE_NAME = "other_resources.yaml"
DEPLOYMENT_PATCH_FILE_NAME = "deployment-patch.yaml"
DOCUMENT_SEPARATOR = "---\n"

CONTAINER_NAME = "container-image"
PULL_POLICY_ALWAYS = "Always"
HEALTH_CHECK_INITIAL_DELAY_SECONDS = 10
HEALTH_CHECK_PERIOD_SECONDS = 10
ROUTE_WEIGHT = 100
MANAGED_BY = "kustomize"
BASE_RELATIVE_PATH = "../../base"

NAME_LABEL = "app.kubernetes.io/name"
INSTANCE_LABEL = "app.kubernetes.io/instance"
PART_OF_LABEL = "app.kubernetes.io/part-of"
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
CREATED_BY_LABEL = "app.kubernetes.io/created-by"


@dataclass
class ManifestFile:
    """One or more kubernetes objects written to a single file."""

    name: str
    """Name of the file relative to the output folder."""

    documents: list[Document] = field(default_factory=list)
    """The objects in the file."""

    def content(self) -> str:
        """Return the file contents, separating multiple documents."""
        if len(self.documents) == 1 and self.name != OTHER_FILE_NAME:
            return _dump(self.documents[0])
        return "".join(_dump(doc) + DOCUMENT_SEPARATOR for doc in self.documents)


def _dump(doc: Document) -> str:
    return yaml.safe_dump(doc, sort_keys=True)


def get_labels(options: GeneratorOptions) -> dict[str, str]:
    """Return the labels for a generated resource."""
    if options.k8s_labels:
        return dict(options.k8s_labels)
    return {
        NAME_LABEL: options.name,
        INSTANCE_LABEL: options.name,
        PART_OF_LABEL: options.application,
        MANAGED_BY_LABEL: MANAGED_BY,
        CREATED_BY_LABEL: options.created_by,
    }


def get_match_labels(options: GeneratorOptions) -> dict[str, str]:
    """Return the selector labels, independent of any custom labels."""
    return {INSTANCE_LABEL: options.name}


def _metadata(
    name: str, namespace: str, labels: dict[str, str] | None = None
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = labels
    return metadata


def _env(env_vars: list[EnvVar]) -> list[dict[str, Any]]:
    return [env.to_dict() for env in env_vars]


def generate_deployment(options: GeneratorOptions) -> Document:
    """Generate the default Deployment of a component."""
    container: dict[str, Any] = {
        "name": CONTAINER_NAME,
        "imagePullPolicy": PULL_POLICY_ALWAYS,
    }
    if options.container_image:
        container["image"] = options.container_image
    if options.target_port:
        container["ports"] = [{"containerPort": options.target_port}]
        container["readinessProbe"] = {
            "initialDelaySeconds": HEALTH_CHECK_INITIAL_DELAY_SECONDS,
            "periodSeconds": HEALTH_CHECK_PERIOD_SECONDS,
            "tcpSocket": {"port": options.target_port},
        }
        container["livenessProbe"] = {
            "initialDelaySeconds": HEALTH_CHECK_INITIAL_DELAY_SECONDS,
            "periodSeconds": HEALTH_CHECK_PERIOD_SECONDS,
            "httpGet": {"port": options.target_port, "path": "/"},
        }
    if options.base_env_var:
        container["env"] = _env(options.base_env_var)
    if options.resources:
        container["resources"] = copy.deepcopy(options.resources)

    pod_spec: dict[str, Any] = {"containers": [container]}
    if options.secret:
        pod_spec["imagePullSecrets"] = [{"name": options.secret}]

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(options.name, options.namespace, get_labels(options)),
        "spec": {
            "replicas": options.replica_count,
            "selector": {"matchLabels": get_match_labels(options)},
            "template": {
                "metadata": {"labels": get_match_labels(options)},
                "spec": pod_spec,
            },
        },
    }


def generate_service(options: GeneratorOptions) -> Document:
    """Generate the default Service of a component."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(options.name, options.namespace, get_labels(options)),
        "spec": {
            "selector": get_match_labels(options),
            "ports": [
                {"port": options.target_port, "targetPort": options.target_port}
            ],
        },
    }


def generate_route(options: GeneratorOptions) -> Document:
    """Generate the default Route of a component."""
    spec: dict[str, Any] = {
        "port": {"targetPort": options.target_port},
        "tls": {
            "insecureEdgeTerminationPolicy": "Redirect",
            "termination": "edge",
        },
        "to": {"kind": "Service", "name": options.name, "weight": ROUTE_WEIGHT},
    }
    if options.route:
        spec["host"] = options.route
    return {
        "apiVersion": "route.openshift.io/v1",
        "kind": "Route",
        "metadata": _metadata(options.name, options.namespace, get_labels(options)),
        "spec": spec,
    }


def classify_resources(options: GeneratorOptions) -> list[ManifestFile]:
    """Decide the file of every resource of the component.

    The first Deployment, Service and Route each get their own file. Every
    other resource goes to the aggregate file in the order Deployments,
    Services, Routes, Ingresses then Others.
    """
    resources = options.kubernetes_resources
    deployments = resources.deployments or [generate_deployment(options)]
    services = resources.services
    routes = resources.routes
    if options.target_port:
        services = services or [generate_service(options)]
        routes = routes or [generate_route(options)]

    files: list[ManifestFile] = []
    others: list[Document] = []
    for name, docs in (
        (DEPLOYMENT_FILE_NAME, deployments),
        (SERVICE_FILE_NAME, services),
        (ROUTE_FILE_NAME, routes),
    ):
        if docs:
            files.append(ManifestFile(name, [docs[0]]))
            others.extend(docs[1:])
    others.extend(resources.ingresses)
    others.extend(resources.others)
    if others:
        files.append(ManifestFile(OTHER_FILE_NAME, others))
    return files


def _mkdir_all(fs: Filesystem, path: str) -> None:
    try:
        fs.mkdir_all(path)
    except FilesystemException as err:
        raise FilesystemException(
            path, f"failed to MkDirAll for path {path!r}: {err}"
        ) from err


def _write_file(fs: Filesystem, path: str, content: str) -> None:
    try:
        fs.write_file(path, content.encode("utf-8"))
    except FilesystemException as err:
        raise FilesystemException(
            path, f"failed to write file {path!r}: {err}"
        ) from err


def generate(
    fs: Filesystem, root_folder: str, output_folder: str, options: GeneratorOptions
) -> None:
    """Generate the base resources of a component in the output folder.

    The output folder kustomization lists every file written. When a root
    folder is given, the output folder is also added to the resources of the
    root kustomization.
    """
    _mkdir_all(fs, output_folder)
    files = classify_resources(options)
    for manifest_file in files:
        _LOGGER.debug("Writing %s for component %s", manifest_file.name, options.name)
        path = posixpath.join(output_folder, manifest_file.name)
        _write_file(fs, path, manifest_file.content())

    kustomization_path = posixpath.join(output_folder, KUSTOMIZE_FILE_NAME)
    kustomization = Kustomization()
    kustomization.add_resources(*(manifest_file.name for manifest_file in files))
    write_kustomization(fs, kustomization_path, kustomization)

    if root_folder:
        update_parent_kustomize(fs, root_folder, output_folder)


def update_parent_kustomize(
    fs: Filesystem, root_folder: str, output_folder: str
) -> None:
    """Add the output folder to the resources of the root kustomization."""
    parent_path = posixpath.join(root_folder, KUSTOMIZE_FILE_NAME)
    kustomization = read_kustomization(fs, parent_path)
    kustomization.add_resources(posixpath.relpath(output_folder, root_folder))
    write_kustomization(fs, parent_path, kustomization)


def merge_env(base: list[EnvVar], overlay: list[EnvVar]) -> list[EnvVar]:
    """Return the base variables overridden and extended by the overlay.

    A variable with the same name as a base variable replaces it in place,
    new names are appended.
    """
    merged = list(base)
    index = {env.name: i for i, env in enumerate(merged)}
    for env in overlay:
        if (i := index.get(env.name)) is not None:
            merged[i] = env
        else:
            index[env.name] = len(merged)
            merged.append(env)
    return merged


def generate_deployment_patch(
    options: GeneratorOptions, image_name: str, container_name: str, namespace: str
) -> Document:
    """Generate the strategic merge patch of the Deployment for an environment."""
    container: dict[str, Any] = {"name": container_name, "image": image_name}
    if env := merge_env(options.base_env_var, options.overlay_env_var):
        container["env"] = _env(env)
    if options.resources:
        container["resources"] = copy.deepcopy(options.resources)
    spec: dict[str, Any] = {"template": {"spec": {"containers": [container]}}}
    if options.replicas:
        spec["replicas"] = options.replicas
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(options.name, namespace),
        "spec": spec,
    }


def base_container_name(fs: Filesystem, output_folder: str) -> str:
    """Return the name of the first container of the base Deployment."""
    path = posixpath.normpath(
        posixpath.join(output_folder, BASE_RELATIVE_PATH, DEPLOYMENT_FILE_NAME)
    )
    try:
        content = fs.read_file(path)
    except FilesystemException as err:
        raise FilesystemException(
            path, f"failed to read base deployment {path!r}: {err}"
        ) from err
    try:
        doc = yaml.safe_load(content)
        return str(doc["spec"]["template"]["spec"]["containers"][0]["name"])
    except (yaml.YAMLError, KeyError, IndexError, TypeError) as err:
        raise GenerateException(
            f"failed to find a container in base deployment {path!r}: {err}"
        ) from err


def generate_overlays(
    fs: Filesystem,
    gitops_folder: str,
    output_folder: str,
    options: GeneratorOptions,
    image_name: str,
    namespace: str,
    component_generated_resources: Mapping[str, list[str]] | None = None,
) -> None:
    """Generate the overlay of a component for a single environment.

    The overlay kustomization keeps every existing patch in order. Newly
    generated patches, meaning the Deployment patch and any patches recorded
    for the component in `component_generated_resources`, are listed first.
    """
    _mkdir_all(fs, output_folder)
    container_name = base_container_name(fs, output_folder)
    patch = generate_deployment_patch(options, image_name, container_name, namespace)
    _write_file(
        fs, posixpath.join(output_folder, DEPLOYMENT_PATCH_FILE_NAME), _dump(patch)
    )

    kustomization_path = posixpath.join(output_folder, KUSTOMIZE_FILE_NAME)
    kustomization = read_kustomization(fs, kustomization_path)
    generated = [DEPLOYMENT_PATCH_FILE_NAME]
    if component_generated_resources:
        generated.extend(component_generated_resources.get(options.name, []))
    kustomization.merge_patches(list(kustomization.patches), generated)
    kustomization.add_bases(BASE_RELATIVE_PATH)
    _LOGGER.debug(
        "Overlay %s for component %s has patches %s",
        output_folder,
        options.name,
        kustomization.patch_files,
    )
    write_kustomization(fs, kustomization_path, kustomization)
