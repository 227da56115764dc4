"""
Configuration for the order registry.

Loads a .env file from the working directory when present (local dev), then
reads settings from the environment. The OpenAI client picks up
OPENAI_API_KEY on its own.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path(".order_registry")
    extraction_model: str = "gpt-4o"
    summary_model: str = "gpt-4o-mini"
    log_level: str = "INFO"
    log_dir: Path | None = None

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> "Settings":
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        log_dir = os.getenv("ORDER_REGISTRY_LOG_DIR")
        return cls(
            data_dir=Path(os.getenv("ORDER_REGISTRY_DATA_DIR", cls.data_dir)),
            extraction_model=os.getenv("ORDER_REGISTRY_EXTRACTION_MODEL", cls.extraction_model),
            summary_model=os.getenv("ORDER_REGISTRY_SUMMARY_MODEL", cls.summary_model),
            log_level=os.getenv("ORDER_REGISTRY_LOG_LEVEL", cls.log_level).upper(),
            log_dir=Path(log_dir) if log_dir else None,
        )
