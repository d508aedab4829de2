"""
Environment file loading.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from dotenv import dotenv_values

from .errors import MissingFileError

logger = logging.getLogger(__name__)


def load_env_file(path: str | Path) -> Dict[str, str]:
    """
    Read KEY=VALUE pairs from an environment file.

    Comments, blank lines and keys without a value are skipped. Quoted
    values keep their inner spaces. The process environment is not touched.

    Args:
        path: Path to the environment file

    Returns:
        Mapping of keys to string values

    Raises:
        MissingFileError: If the file does not exist
    """
    env_path = Path(path)
    if not env_path.is_file():
        raise MissingFileError(f"Environment file '{env_path}' not found!")

    raw = dotenv_values(env_path, interpolate=False)
    values = {k: v.strip("\r") for k, v in raw.items() if v is not None}
    logger.debug(f"Loaded {len(values)} keys from {env_path}")
    return values
