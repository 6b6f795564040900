"""Configuration for synchronizing a gitops repository.

The settings shared by every sync operation can be read from a YAML file:

```yaml
branch: main
context: /
doPush: true
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import yaml
from mashumaro import field_options
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException
from .gitops import DEFAULT_BRANCH, DEFAULT_CONTEXT
from .manifest import BaseManifest

__all__ = [
    "SyncConfig",
    "read_config",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class SyncConfig(BaseManifest):
    """Settings of the gitops repository a component is synchronized to."""

    branch: str = DEFAULT_BRANCH
    """The branch to commit to, created when it does not exist."""

    context: str = DEFAULT_CONTEXT
    """Directory within the repository that holds the gitops resources."""

    do_push: bool = field(metadata=field_options(alias="doPush"), default=True)
    """Commit and push the changes, otherwise only write them to the clone."""

    @classmethod
    def parse_doc(cls, doc: Any) -> "SyncConfig":
        """Parse a SyncConfig from a deserialized YAML document."""
        if doc is None:
            return cls()
        if not isinstance(doc, dict):
            raise InputException(f"Invalid config, expected a mapping: {doc!r}")
        try:
            config = cls.from_dict(doc)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid config: {err}") from err
        if not config.branch:
            raise InputException("Invalid config, branch must not be empty")
        return config


def read_config(config_path: Path) -> SyncConfig:
    """Return the sync config stored in a YAML file."""
    try:
        doc = yaml.safe_load(config_path.read_text())
    except OSError as err:
        raise InputException(f"Unable to read config {config_path}: {err}") from err
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse config {config_path}: {err}") from err
    _LOGGER.debug("Read sync config from %s", config_path)
    return SyncConfig.parse_doc(doc)
