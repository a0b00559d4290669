"""YAML configuration loading for weavefeed.

Loads pipeline configuration files with ``yaml.safe_load`` so untrusted
YAML cannot instantiate arbitrary Python objects. Used by
[FeedPipeline.from_yaml()][weavefeed.pipeline.FeedPipeline.from_yaml] and
the CLI ``--config`` flag.

Examples:
    ```python
    from weavefeed.core.yaml import load_yaml

    config = load_yaml("config/feed.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file into a mapping.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        The parsed top-level mapping; an empty dict for an empty file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid YAML or its top level
            is not a mapping.

    Warning:
        The structure is not validated here. Pass the result to
        [PipelineConfig][weavefeed.pipeline.PipelineConfig] for schema
        validation.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config root in {config_path} must be a mapping, got {type(data).__name__}"
        )
    return data
