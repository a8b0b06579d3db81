"""Text generation against the configured LLM backend.

Supports:
- OpenAI-compatible chat completions (OpenAI, SiliconFlow/DeepSeek, ...)
- Google generative-language (Gemini)
- Anthropic messages

Every call is a single user turn, non-streaming.
"""

import logging
import os

import httpx

from flowsmith.errors import ConfigurationError, UpstreamServiceError
from flowsmith.models.llm_config import LLMConfig, LLMProvider

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_TIMEOUT = 60.0
DEFAULT_MAX_TOKENS = 4096

# LLM client instances (lazily initialized), keyed by (base_url, api key)
_openai_clients: dict = {}
_anthropic_clients: dict = {}


def _api_key(config: LLMConfig) -> str:
    api_key = os.getenv(config.api_key_env)
    if not api_key:
        raise ConfigurationError(f"{config.api_key_env} environment variable not set")
    return api_key


def _get_openai_client(config: LLMConfig):
    """Get or create an OpenAI client for the config's host."""
    api_key = _api_key(config)
    key = (config.base_url, api_key)
    if key not in _openai_clients:
        import openai
        _openai_clients[key] = openai.AsyncOpenAI(api_key=api_key, base_url=config.base_url)
    return _openai_clients[key]


def _get_anthropic_client(config: LLMConfig):
    """Get or create an Anthropic client."""
    api_key = _api_key(config)
    key = (config.base_url, api_key)
    if key not in _anthropic_clients:
        import anthropic
        _anthropic_clients[key] = anthropic.AsyncAnthropic(api_key=api_key, base_url=config.base_url)
    return _anthropic_clients[key]


async def _call_openai(prompt: str, config: LLMConfig) -> str:
    """Call an OpenAI-compatible chat completions endpoint."""
    client = _get_openai_client(config)

    try:
        params = {
            "model": config.model_name,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": config.temperature,
            "stream": False,
        }
        if config.max_tokens:
            params["max_tokens"] = config.max_tokens

        response = await client.chat.completions.create(**params)
        return response.choices[0].message.content or ""
    except Exception as e:
        raise UpstreamServiceError(f"OpenAI API error: {str(e)}") from e


async def _call_gemini(
    prompt: str,
    config: LLMConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Call the Gemini generateContent endpoint."""
    api_key = _api_key(config)
    base_url = (config.base_url or GEMINI_API_BASE).rstrip("/")
    url = f"{base_url}/models/{config.model_name}:generateContent"
    body = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": config.temperature,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": config.max_tokens or DEFAULT_MAX_TOKENS,
        },
    }

    try:
        async with httpx.AsyncClient(timeout=GEMINI_TIMEOUT, transport=transport) as client:
            response = await client.post(url, json=body, headers={"x-goog-api-key": api_key})
    except httpx.RequestError as e:
        raise UpstreamServiceError(f"Gemini API error: {e}") from e

    if response.is_error:
        try:
            message = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        logger.error("Gemini API error %s: %s", response.status_code, response.text)
        raise UpstreamServiceError(f"Gemini API error: {message or response.reason_phrase}")

    data = response.json()
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as e:
        raise UpstreamServiceError("Gemini API error: response has no candidates") from e
    return "".join(part.get("text", "") for part in parts)


async def _call_anthropic(prompt: str, config: LLMConfig) -> str:
    """Call the Anthropic messages API."""
    client = _get_anthropic_client(config)

    try:
        response = await client.messages.create(
            model=config.model_name,
            max_tokens=config.max_tokens or DEFAULT_MAX_TOKENS,
            temperature=config.temperature,
            messages=[{"role": "user", "content": prompt}],
        )
    except Exception as e:
        raise UpstreamServiceError(f"Anthropic API error: {str(e)}") from e

    if not response.content:
        return ""
    return "".join(
        block.text for block in response.content
        if hasattr(block, "text")
    )


async def generate_text(prompt: str, config: LLMConfig) -> str:
    """Send ``prompt`` to the backend ``config`` names and return the text.

    Raises:
        ConfigurationError: the backend's API key is not set
        UpstreamServiceError: the backend failed or was unreachable
    """
    if config.provider == LLMProvider.openai:
        return await _call_openai(prompt, config)
    elif config.provider == LLMProvider.gemini:
        return await _call_gemini(prompt, config)
    elif config.provider == LLMProvider.anthropic:
        return await _call_anthropic(prompt, config)
    raise ConfigurationError(f"Unsupported provider: {config.provider}")
