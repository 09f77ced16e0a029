"""
Engine configuration parameters for sealbid.

Defines input limits, the reputation admin and operational paths.
Values can be overridden through SEALBID_* environment variables,
optionally loaded from a dotenv file. The scoring rules (score range and
weight divisor) are fixed and cannot be overridden.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


ENV_PREFIX = "SEALBID_"

# Fixed scoring rules
MAX_SCORE = 100  # Scores are integers in [0, MAX_SCORE]
WEIGHT_DIVISOR = 100  # weight = 1 + reputation // WEIGHT_DIVISOR

_FIXED = {
    "MAX_SCORE": MAX_SCORE,
    "WEIGHT_DIVISOR": WEIGHT_DIVISOR,
}


@dataclass
class EngineConfig:
    """Engine-wide configuration parameters"""

    # Bound on the finalize candidate list
    max_candidates: int = 50

    # Input limits
    max_title_length: int = 128
    max_summary_length: int = 1024
    max_uri_length: int = 256
    max_salt_length: int = 64

    # Account allowed to set vendor reputation directly
    admin: Optional[str] = None

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))

    def ensure_dirs(self) -> None:
        """Create necessary directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.log_dir.mkdir(exist_ok=True, parents=True)


_INT_FIELDS = (
    "max_candidates",
    "max_title_length",
    "max_summary_length",
    "max_uri_length",
    "max_salt_length",
)


def load_config(env_file: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional dotenv file to load before reading SEALBID_* variables

    Returns:
        EngineConfig instance

    Raises:
        ValueError: A SEALBID_* variable tries to change a fixed scoring rule
    """
    if env_file:
        load_dotenv(env_file, override=False)

    for name, fixed in _FIXED.items():
        raw = os.environ.get(ENV_PREFIX + name)
        if raw is not None and int(raw) != fixed:
            raise ValueError(f"{ENV_PREFIX}{name} is fixed at {fixed}, got {raw}")

    config = EngineConfig()

    for name in _INT_FIELDS:
        raw = os.environ.get(ENV_PREFIX + name.upper())
        if raw is not None:
            setattr(config, name, int(raw))

    admin = os.environ.get(ENV_PREFIX + "ADMIN")
    if admin:
        config.admin = admin

    data_dir = os.environ.get(ENV_PREFIX + "DATA_DIR")
    if data_dir:
        config.data_dir = Path(data_dir).expanduser()

    log_dir = os.environ.get(ENV_PREFIX + "LOG_DIR")
    if log_dir:
        config.log_dir = Path(log_dir).expanduser()

    return config
