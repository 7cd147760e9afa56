import logging
import os
from typing import Optional

import click
import yaml

from pvdfr.config.models import ProvisionConfig
from pvdfr.config.settings import config

logger = logging.getLogger(__name__)


def find_config_file(path: Optional[str] = None) -> Optional[str]:
    """Return the first provisioning file found, or None when defaults apply.

    An explicit path must exist. Otherwise the search order is ``./pvdfr.yaml``,
    ``~/.config/pvdfr/config.yaml`` and ``/etc/pvdfr/config.yaml``.
    """
    if path:
        if not os.path.exists(path):
            raise click.FileError(path, hint="Configuration file not found.")
        return path

    for candidate in config.config_search_paths:
        if os.path.exists(candidate):
            return candidate
    return None


def load_config(path: Optional[str] = None) -> ProvisionConfig:
    config_path = find_config_file(path)
    if config_path is None:
        logger.info("No configuration file found, using defaults")
        return ProvisionConfig()

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return ProvisionConfig.model_validate(data)
