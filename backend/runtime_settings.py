"""Helpers to resolve the effective runtime configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from settings import S


DEFAULT_MODEL_NAME = "gpt-4.1-mini"
PROMPT_EXAMPLE_SETS = ("en", "zh")


@dataclass(frozen=True)
class ClassifierSettings:
    """Read-only view of the remote classifier configuration."""

    api_key: str = ""
    api_base_url: str = ""
    model_name: str = ""

    @property
    def complete(self) -> bool:
        return bool(self.api_key.strip() and self.api_base_url.strip())

    @property
    def effective_model(self) -> str:
        return self.model_name.strip() or DEFAULT_MODEL_NAME


def resolve_classifier_settings() -> ClassifierSettings:
    """Return the classifier settings from the environment configuration."""

    return ClassifierSettings(
        api_key=(S.API_KEY or "").strip(),
        api_base_url=(S.API_BASE_URL or "").strip(),
        model_name=(S.MODEL_NAME or "").strip(),
    )


def resolve_root_folder_id() -> str:
    """Return the folder id new categories are created under."""

    value = str(S.ROOT_FOLDER_ID or "").strip()
    return value or "1"


def resolve_root_aliases() -> Tuple[str, ...]:
    """Return the names a classifier may use for the root container."""

    aliases = [str(alias).strip() for alias in S.ROOT_FOLDER_ALIASES or [] if str(alias).strip()]
    return tuple(aliases)


def resolve_prompt_examples() -> str:
    """Return the worked-example set for the prompt: ``en`` or ``zh``."""

    value = str(S.PROMPT_EXAMPLES or "").strip().lower()
    return value if value in PROMPT_EXAMPLE_SETS else "en"
