"""
Helper settings.

Defaults live on the ``HelperSettings`` dataclass; a ``settings.yaml`` file
can override any of them.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path("settings.yaml")


@dataclass
class HelperSettings:
    """Configuration shared by the sandbox helpers."""

    cache_dir: str = ".solc_cache"
    binary_url_template: str = (
        "https://binaries.soliditylang.org/{platform}/solc-{platform}-{version}"
    )
    fetch_timeout: Optional[float] = None
    optimize: bool = True
    optimizer_runs: int = 200
    poll_interval: float = 1.0


def load_settings(path: Optional[Union[str, Path]] = None) -> HelperSettings:
    """Load settings from a YAML file, falling back to defaults.

    Args:
        path: YAML file to read. Defaults to ``settings.yaml`` in the
              working directory.

    Returns:
        HelperSettings with any known keys from the file applied.
    """
    settings_path = Path(path) if path else DEFAULT_SETTINGS_PATH
    settings = HelperSettings()

    if not settings_path.exists():
        logger.debug(f"No settings file at {settings_path}, using defaults")
        return settings

    with open(settings_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {settings_path} must contain a mapping")

    known = {f.name for f in fields(HelperSettings)}
    for key, value in data.items():
        if key in known:
            setattr(settings, key, value)
        else:
            logger.debug(f"Ignoring unknown setting {key!r}")

    return settings
