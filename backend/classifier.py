from __future__ import annotations

import logging
import time
from typing import Any, Dict

import httpx

from prompting import build_user_message
from runtime_settings import ClassifierSettings
from settings import S


logger = logging.getLogger(__name__)


class ClassificationError(Exception):
    """Base class for failures while asking the remote classifier."""


class ConfigurationMissingError(ClassificationError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "API key or base URL is not set. Configure API_KEY and API_BASE_URL before classifying."
        )


class ClassificationHttpError(ClassificationError):
    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API call failed with status {status_code}: {body}")


class ClassificationEmptyResultError(ClassificationError):
    def __init__(self) -> None:
        super().__init__("LLM did not return a valid category.")


class ClassificationTransportError(ClassificationError):
    pass


def build_completions_url(base_url: str) -> str:
    return f"{base_url.strip().rstrip('/')}/chat/completions"


def build_request_payload(title: str, prompt: str, settings: ClassifierSettings) -> Dict[str, Any]:
    return {
        "model": settings.effective_model,
        "messages": [
            {"role": "system", "content": prompt},
            {"role": "user", "content": build_user_message(title)},
        ],
        "temperature": 0,
    }


def _first_choice_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content.strip() if isinstance(content, str) else ""


async def classify(title: str, prompt: str, settings: ClassifierSettings) -> str:
    """Ask the chat-completions endpoint for a category path.

    Returns the trimmed path exactly as produced by the model; stripping
    root aliases is left to the path resolver.
    """

    if not settings.complete:
        raise ConfigurationMissingError()

    url = build_completions_url(settings.api_base_url)
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.api_key}",
    }
    payload = build_request_payload(title, prompt, settings)
    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(timeout=S.CLASSIFIER_TIMEOUT_SECONDS) as client:
            response = await client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as exc:
        raise ClassificationTransportError(f"Classifier request to {url} failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        body = response.text
        logger.warning("Classifier responded with status %s", response.status_code)
        raise ClassificationHttpError(response.status_code, body)

    try:
        data = response.json()
    except ValueError as exc:
        raise ClassificationEmptyResultError() from exc

    category = _first_choice_content(data)
    if not category:
        raise ClassificationEmptyResultError()

    logger.info(
        "Classified %r with %s in %.2fs",
        title,
        payload["model"],
        time.perf_counter() - start,
    )
    logger.debug("Classifier response: %s", category)
    return category
