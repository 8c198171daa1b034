"""
Load the jobs config file (JSON). Read fresh on every tick; nothing is cached.
"""
import json
import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from cronhouse.core.cron.errors import ConfigError
from cronhouse.core.cron.models import ConfigFile

logger = logging.getLogger(__name__)


def load_config_file(path: Union[str, Path]) -> ConfigFile:
    """Read and validate the config file. Raises ConfigError on any read/decode failure."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"config file {path} is not valid JSON: {e}") from e
    try:
        config = ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"config file {path} has an invalid shape: {e}") from e
    logger.debug("Loaded %s jobs from %s", len(config.jobs), path)
    return config
