"""API route for text generation.

Proxies a single prompt to whichever LLM backend is active. Provider keys
stay on the server; clients only ever see ``{result}`` or ``{error}``.
"""

import logging
import time

from fastapi import APIRouter, Depends

from flowsmith.graph.execution import substitute_input
from flowsmith.models.llm_config import GenerateRequest, GenerateResponse
from flowsmith_server import llm, llm_config_db
from flowsmith_server.auth import require_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate")
async def generate(
    request: GenerateRequest,
    user_id: str = Depends(require_user_id),
) -> GenerateResponse:
    """Generate text for ``content``.

    If a prompt template is given, ``content`` is substituted for its
    ``{{input}}`` placeholder first.
    """
    prompt = request.content
    if request.prompt_template:
        prompt = substitute_input(request.prompt_template, request.content)

    config = llm_config_db.get_active_config()

    start_time = time.time()
    result = await llm.generate_text(prompt, config)
    latency_ms = (time.time() - start_time) * 1000
    logger.info(
        "user %s generated %d chars with %s in %.0f ms",
        user_id,
        len(result),
        config.name,
        latency_ms,
    )
    return GenerateResponse(result=result)
