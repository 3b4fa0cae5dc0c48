"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_KEY: str = ""
    API_BASE_URL: str = "https://api.openai.com/v1"
    MODEL_NAME: str = "gpt-4.1-mini"
    CLASSIFIER_TIMEOUT_SECONDS: float = 60.0

    SNAPSHOT_TIMEOUT_SECONDS: float = 5.0
    EXTRACTION_TIMEOUT_SECONDS: float = 10.0
    EXTRACTION_USER_AGENT: str = "BookmarkSorter/1.0"

    ROOT_FOLDER_ID: str = "1"
    ROOT_FOLDER_ALIASES: List[str] = ["书签栏", "Bookmarks Bar"]
    PROMPT_EXAMPLES: str = "en"

    DATABASE_URL: str = "sqlite:///data/bookmarks.db"
    INIT_RUN: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


S = Settings()
