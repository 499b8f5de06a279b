"""Safe YAML loading for configuration files.

Used by the ``from_yaml()`` factories of
[Pool][handbook.core.pool.Pool] and [Database][handbook.core.database.Database].
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load a YAML mapping with ``yaml.safe_load``.

    Args:
        config_path: Path to the YAML file.

    Returns:
        The parsed mapping, or ``{}`` for an empty file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the document is not a mapping at the top level.
        yaml.YAMLError: If the file is not valid YAML.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path}: expected a mapping, got {type(data).__name__}")
    return data
