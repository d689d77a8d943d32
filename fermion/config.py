import logging
import os
from typing import List

from dotenv import load_dotenv

from fermion.constants import DEFAULT_MASK_PATTERN, DEFAULT_MAX_MASK_DEPTH, DEFAULT_SENSITIVE_NAMES


load_dotenv()


def _split_names(raw: str | None) -> List[str]:
    if not raw:
        return list(DEFAULT_SENSITIVE_NAMES)
    return [name.strip() for name in raw.split(",") if name.strip()]


class Config:
    """Application configuration loaded from environment variables.

    Values are read once at import time; tests override them by setting the
    environment before importing the application.
    """

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./fermion.db")
    MASK_PATTERN: str = os.getenv("FERMION_MASK_PATTERN", DEFAULT_MASK_PATTERN)
    SENSITIVE_NAMES: List[str] = _split_names(os.getenv("FERMION_SENSITIVE_NAMES"))
    MAX_MASK_DEPTH: int = int(os.getenv("FERMION_MAX_MASK_DEPTH", DEFAULT_MAX_MASK_DEPTH))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> None:
        if not cls.MASK_PATTERN:
            raise ValueError("FERMION_MASK_PATTERN must not be empty")
        if cls.MAX_MASK_DEPTH <= 0:
            raise ValueError("FERMION_MAX_MASK_DEPTH must be a positive integer")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging and attach the sensitive-data filter to its handlers."""
    from fermion.masking import SensitiveDataFilter

    logging.basicConfig(
        level=level or Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
            handler.addFilter(SensitiveDataFilter())
