"""API routes for LLM backend configurations.

Everyone can see which backend is active; only administrators can switch it.
"""

import logging

from fastapi import APIRouter, Depends

from flowsmith.models.llm_config import LLMConfig
from flowsmith_server import llm_config_db
from flowsmith_server.auth import require_admin, require_user_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/llm-configs")
def list_llm_configs(user_id: str = Depends(require_user_id)) -> list[LLMConfig]:
    """List all LLM configurations, by name."""
    return llm_config_db.list_configs()


@router.get("/llm-configs/active")
def get_active_llm_config(user_id: str = Depends(require_user_id)) -> LLMConfig:
    """Get the configuration currently serving text generation."""
    return llm_config_db.get_active_config()


@router.post("/llm-configs/{config_id}/activate")
def activate_llm_config(config_id: str, user_id: str = Depends(require_admin)) -> LLMConfig:
    """Make a configuration the active one for all users."""
    config = llm_config_db.set_active(config_id)
    logger.info("user %s switched the active LLM to %s", user_id, config.name)
    return config
