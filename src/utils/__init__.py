# Utils package
import logging
import os
from typing import Dict, Optional

TRUE_VALUES = {"1", "true", "yes", "on"}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def as_bool(value: Optional[str], default: bool = False) -> bool:
    """Interpret a config or environment string as a boolean."""
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def read_config_file(config_path: str) -> Dict[str, str]:
    """Read a ``key = value`` file, skipping blank lines and ``#`` comments.

    A missing file yields an empty mapping.
    """
    config: Dict[str, str] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    config[key.strip()] = value.strip()
    return config


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
