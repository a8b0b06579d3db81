"""LLM backend configuration.

Exactly one configuration is active at a time; it decides which backend
serves text generation for every user. Only privileged users may switch it.
"""

from enum import Enum

from pydantic import BaseModel


class LLMProvider(str, Enum):
    """Supported text-generation backends."""

    openai = "openai"  # any OpenAI-compatible chat completions endpoint
    gemini = "gemini"
    anthropic = "anthropic"


class LLMConfig(BaseModel):
    """
    llm config data model
    """

    model_config = {"extra": "forbid", "protected_namespaces": ()}

    # id
    config_id: str
    name: str  # e.g., "deepseek", "gemini"
    description: str | None = None

    provider: LLMProvider
    model_name: str  # "deepseek-ai/DeepSeek-V3", "gemini-1.5-pro", etc.
    base_url: str | None = None  # override for OpenAI-compatible hosts
    api_key_env: str  # name of the environment variable holding the key
    temperature: float = 0.7
    max_tokens: int | None = None

    active: bool = False

    created_at: str
    updated_at: str


class GenerateRequest(BaseModel):
    """Request model for a single text-generation call."""

    content: str
    prompt_template: str | None = None


class GenerateResponse(BaseModel):
    result: str
