"""MTOCalc configuration management.

Loads configuration from environment variables with sensible defaults.
Weighting defaults reproduce the standard effort model
(diameter^1.5, 0.1 per linear foot, 0.5 / 1.0 fallbacks).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class IngestionConfig:
    """Spreadsheet ingestion limits."""

    max_file_size_mb: float = 50.0
    max_rows: int = 50000
    chunk_size: int = 1000  # Rows per validation chunk
    synonyms_path: Path | None = None  # Optional YAML with extra header synonyms


@dataclass
class WeightingConfig:
    """Installation-effort weight model."""

    diameter_exponent: float = 1.5
    linear_feet_factor: float = 0.1
    fallback_weight: float = 0.5
    threaded_fallback_weight: float = 1.0
    allocation_precision: int = 4  # Decimal places for budgeted hours


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "console"  # json or console

    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    weighting: WeightingConfig = field(default_factory=WeightingConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - LOG_LEVEL, LOG_FORMAT
        - MAX_FILE_SIZE_MB, MAX_ROWS, VALIDATION_CHUNK_SIZE, COLUMN_SYNONYMS_PATH
        - WEIGHT_DIAMETER_EXPONENT, WEIGHT_LINEAR_FEET_FACTOR

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        synonyms_path = os.getenv("COLUMN_SYNONYMS_PATH")
        chunk_size = int(os.getenv("VALIDATION_CHUNK_SIZE", "1000"))
        if chunk_size < 1:
            raise ValueError("VALIDATION_CHUNK_SIZE must be at least 1")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "console"),
            ingestion=IngestionConfig(
                max_file_size_mb=float(os.getenv("MAX_FILE_SIZE_MB", "50")),
                max_rows=int(os.getenv("MAX_ROWS", "50000")),
                chunk_size=chunk_size,
                synonyms_path=Path(synonyms_path) if synonyms_path else None,
            ),
            weighting=WeightingConfig(
                diameter_exponent=float(os.getenv("WEIGHT_DIAMETER_EXPONENT", "1.5")),
                linear_feet_factor=float(os.getenv("WEIGHT_LINEAR_FEET_FACTOR", "0.1")),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
