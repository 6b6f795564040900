"""
gitops-generator writes the kustomize resources of application components
into a gitops repository and keeps the repository in sync.

The library is made of three layers:
  - `generate` classifies or synthesizes the Deployment, Service and Route of
    a component and writes the base and environment overlays
  - `kustomize` reconciles the `kustomization.yaml` files with any entries
    that were added by hand
  - `gitops` clones the repository, regenerates a component and commits and
    pushes only when something changed
"""

__all__ = [
    "command",
    "config",
    "exceptions",
    "fs",
    "generate",
    "gitops",
    "kustomize",
    "manifest",
    "remote",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
