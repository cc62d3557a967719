from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Analysis settings pulled from HEXDOM_* environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Domain Analysis Configuration
    max_walk_steps: Optional[int] = Field(
        default=None, ge=1,
        description="Hex edges a single edge walk may cover (default: six per cell)",
    )
    max_domain_vertices: Optional[int] = Field(
        default=None, ge=1,
        description="Vertices a single domain may collect before it is abandoned",
    )
    coord_tolerance: float = Field(
        default=1e-3, gt=0,
        description="Coordinate match tolerance, as a fraction of the hex spacing",
    )
    trace_neighbour_paths: bool = Field(
        default=False,
        description="Also trace the edge between the two other domains at each vertex",
    )

    class Config:
        env_prefix = "HEXDOM_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
