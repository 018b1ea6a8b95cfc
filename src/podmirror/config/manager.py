"""Configuration loading for podmirror sync runs."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from podmirror.config.schema import SyncConfig
from podmirror.utils.errors import ConfigNotFoundError, InvalidConfigError

logger = logging.getLogger(__name__)


def load_sync_config(path: Path) -> SyncConfig:
    """Load and validate a sync configuration document.

    The document is parsed as YAML, so JSON configuration files load as-is.

    Args:
        path: Path to the configuration document

    Returns:
        Validated SyncConfig instance

    Raises:
        ConfigNotFoundError: If the file doesn't exist
        InvalidConfigError: If the file can't be read, parsed or validated
    """
    if not path.exists():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InvalidConfigError(f"Could not read configuration {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfigError(
            f"Invalid configuration in {path}: expected a mapping at the top level"
        )

    try:
        config = SyncConfig(**data)
    except ValidationError as e:
        raise InvalidConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.debug(
        "Loaded %d playlist(s) and %d podcast set(s) from %s",
        len(config.playlists),
        len(config.podcasts),
        path,
    )
    return config
