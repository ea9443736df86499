"""
Settings for the tour statistics job.

Values come from the environment (a local .env is loaded if present).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

from .calculations import DEFAULT_TOP_K

load_dotenv()

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data/raw")
    output_path: Path = Path("current-tour-stats.json")
    top_k: int = DEFAULT_TOP_K
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> 'Settings':
        top_k_raw = os.getenv("TOURSTATS_TOP_K", str(DEFAULT_TOP_K))
        try:
            top_k = int(top_k_raw)
        except ValueError:
            raise ValueError(f"TOURSTATS_TOP_K must be an integer, got {top_k_raw!r}")
        if top_k < 1:
            raise ValueError(f"TOURSTATS_TOP_K must be positive, got {top_k}")

        return cls(
            data_dir=Path(os.getenv("TOURSTATS_DATA_DIR", "data/raw")),
            output_path=Path(os.getenv("TOURSTATS_OUTPUT_PATH", "current-tour-stats.json")),
            top_k=top_k,
            log_level=os.getenv("TOURSTATS_LOG_LEVEL", "INFO").upper()
        )


def setup_logging(level: str = "INFO"):
    """Configure root logging for a job run."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format=LOG_FORMAT)
