"""
Chat-completion intent extractor.
Works with any OpenAI-compatible endpoint (Groq, OpenAI).
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from media_discovery.core.exceptions import IntentExtractionError
from media_discovery.models.schemas import Intent

logger = logging.getLogger(__name__)

PROVIDER_BASE_URLS: Dict[str, str] = {
    "groq": "https://api.groq.com/openai/v1",
    "openai": "https://api.openai.com/v1",
}

SYSTEM_PROMPT = """You extract search intent for a movie and TV discovery engine.
Reply with ONLY a JSON object, no prose, using exactly these keys:
{
  "titles": [string],            // titles the user names explicitly
  "people": [string],            // actors or directors the user names
  "genres": [string],            // e.g. "comedy", "science fiction"
  "moods": [string],             // e.g. "feel-good", "dark", "mind-bending", "cozy"
  "yearFrom": integer or null,
  "yearTo": integer or null,
  "runtimeMaxMinutes": integer or null,
  "mediaTypes": ["movie" | "tv"],
  "requestedCount": integer or null,
  "originalLanguage": ISO 639-1 code or null,
  "isRequestingSuggestions": boolean  // true unless the user looks up one specific title
}
"the 90s" means yearFrom 1990 and yearTo 1999. "under 2 hours" means runtimeMaxMinutes 120.
Use empty lists for anything not mentioned."""


def extract_json_object(content: str) -> Dict[str, Any]:
    """Strip markdown fences and parse the outermost JSON object."""
    text = content.strip()
    if "```" in text:
        for part in text.split("```"):
            part = part.strip()
            if part.startswith("json"):
                text = part[4:].strip()
                break
            if part.startswith("{"):
                text = part
                break

    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise IntentExtractionError("no JSON object in model output")
    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise IntentExtractionError(f"invalid JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise IntentExtractionError("model output is not an object")
    return parsed


class ChatCompletionIntentExtractor:
    """
    IntentExtractor backed by a chat-completion model.

    Raises IntentExtractionError on transport errors, non-2xx responses,
    empty content or output that does not validate into an Intent.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        provider: str = "groq",
        base_url: Optional[str] = None,
        timeout_sec: float = 8.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        resolved_url = base_url or PROVIDER_BASE_URLS.get(provider)
        if not resolved_url:
            raise ValueError(f"Unknown LLM provider: {provider}")
        self._api_key = api_key
        self._model = model
        self._provider = provider
        self._client = client or httpx.AsyncClient(base_url=resolved_url, timeout=timeout_sec)

    @property
    def provider(self) -> str:
        return self._provider

    async def extract(self, query: str) -> Intent:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "temperature": 0.1,
            "max_tokens": 500,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            response = await self._client.post("/chat/completions", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise IntentExtractionError(str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise IntentExtractionError(f"{self._provider} returned HTTP {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"].get("content") or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise IntentExtractionError("unexpected response shape") from e
        if not content.strip():
            raise IntentExtractionError("empty model output")

        data = extract_json_object(content)
        try:
            intent = Intent.model_validate(data)
        except PydanticValidationError as e:
            raise IntentExtractionError(f"output failed validation: {e.error_count()} errors") from e

        logger.debug(f"Extracted intent via {self._provider}: {intent.model_dump(mode='json')}")
        return intent

    async def aclose(self) -> None:
        await self._client.aclose()
