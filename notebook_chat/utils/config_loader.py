from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


# will return the root directory of the package => notebook_chat
def _package_root() -> Path:
    return Path(__file__).resolve().parents[1]


def load_config(config_path: str | None = None) -> dict:
    env_path = os.getenv("CONFIG_PATH", None)

    if config_path is None:
        config_path = env_path or str(_package_root() / "config" / "config.yaml")

    path = Path(config_path)

    if not path.is_absolute():
        path = _package_root().parent / path
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at {path}")
    with open(path, "r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


class CacheSettings(BaseModel):
    backend: Literal["memory", "file", "redis"] = "memory"
    file_dir: Path = Path("data/store")
    storage_key: str = "processedDocuments"
    key_storage_key: str = "encryption_key"
    max_bytes: Optional[int] = None


class ExtractionSettings(BaseModel):
    min_pdf_text_chars: int = Field(default=50, ge=0)
    max_ocr_pages: int = Field(default=10, ge=1)
    ocr_dpi: int = Field(default=150, ge=36)
    max_concurrency: int = Field(default=4, ge=1)


class OCRSettings(BaseModel):
    model: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    max_tokens: int = 4000
    temperature: float = 0.0
    max_concurrency: int = Field(default=4, ge=1)


class HostedLLMSettings(BaseModel):
    model_name: str = "llama-3.3-70b-versatile"
    temperature: float = 0.7
    max_tokens: int = 4000


class LocalLLMSettings(BaseModel):
    server_url: str = "http://localhost:8000"
    model_name: str = "llama-3.2-8b"
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: float = 120.0


class LLMSettings(BaseModel):
    provider: Literal["hosted", "local"] = "hosted"
    history_limit: int = Field(default=10, ge=0)
    hosted: HostedLLMSettings = HostedLLMSettings()
    local: LocalLLMSettings = LocalLLMSettings()


class RedisSettings(BaseModel):
    host: str = "localhost"
    port: int = 6379
    db: int = 0


class AppSettings(BaseModel):
    cache: CacheSettings = CacheSettings()
    extraction: ExtractionSettings = ExtractionSettings()
    ocr: OCRSettings = OCRSettings()
    llm: LLMSettings = LLMSettings()
    redis: RedisSettings = RedisSettings()


def load_settings(config_path: str | None = None) -> AppSettings:
    """Load the YAML config and validate it into typed settings sections."""
    return AppSettings(**load_config(config_path))
