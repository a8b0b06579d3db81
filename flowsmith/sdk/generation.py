"""Client for the server's text-generation endpoint.

The server decides which LLM backend answers; the client only sends the
content (and optionally a template for the server to fill).
"""

from __future__ import annotations

from flowsmith.models.llm_config import GenerateResponse, LLMConfig
from flowsmith.sdk.client import ApiClient


class TextGenerationClient(ApiClient):

    async def generate(self, content: str, prompt_template: str | None = None) -> str:
        """Return the generated text for ``content``.

        Raises:
            UpstreamServiceError: the backend failed or was unreachable
        """
        body: dict = {"content": content}
        if prompt_template is not None:
            body["prompt_template"] = prompt_template
        data = await self._request("POST", "/generate", json=body)
        return GenerateResponse.model_validate(data).result

    async def __call__(self, prompt: str) -> str:
        return await self.generate(prompt)

    async def active_config(self) -> LLMConfig:
        data = await self._request("GET", "/llm-configs/active")
        return LLMConfig.model_validate(data)
