"""SQLite storage for LLM backend configurations."""

import sqlite3

from flowsmith.errors import NotFoundError
from flowsmith.models.llm_config import LLMConfig, LLMProvider
from flowsmith.utils.identifiers import generate_config_id, utc_timestamp
from flowsmith_server.flow_db import connect


# seeded on first start; deepseek is served through SiliconFlow's
# OpenAI-compatible endpoint
DEFAULT_CONFIGS = [
    {
        "name": "deepseek",
        "description": "DeepSeek V3 via SiliconFlow (OpenAI-compatible)",
        "provider": LLMProvider.openai,
        "model_name": "deepseek-ai/DeepSeek-V3",
        "base_url": "https://api.siliconflow.cn/v1",
        "api_key_env": "SILICONFLOW_API_KEY",
        "max_tokens": 4096,
        "active": True,
    },
    {
        "name": "gpt",
        "description": "OpenAI GPT-4o mini",
        "provider": LLMProvider.openai,
        "model_name": "gpt-4o-mini",
        "base_url": None,
        "api_key_env": "OPENAI_API_KEY",
        "max_tokens": None,
        "active": False,
    },
    {
        "name": "gemini",
        "description": "Google Gemini 1.5 Pro",
        "provider": LLMProvider.gemini,
        "model_name": "gemini-1.5-pro",
        "base_url": None,
        "api_key_env": "GEMINI_API_KEY",
        "max_tokens": 4096,
        "active": False,
    },
]


def init_db() -> None:
    with connect() as conn:
        conn.execute(
            """
            create table if not exists llm_configs (
                config_id text primary key,
                name text not null unique,
                description text,
                provider text not null,
                model_name text not null,
                base_url text,
                api_key_env text not null,
                temperature real not null,
                max_tokens integer,
                active integer not null default 0,
                created_at text not null,
                updated_at text not null
            )
            """
        )
        conn.commit()
    if not list_configs():
        for entry in DEFAULT_CONFIGS:
            now = utc_timestamp()
            insert_config(
                LLMConfig(
                    config_id=generate_config_id(),
                    temperature=0.7,
                    created_at=now,
                    updated_at=now,
                    **entry,
                )
            )


def _row_to_config(row: sqlite3.Row) -> LLMConfig:
    data = dict(row)
    data["active"] = bool(data["active"])
    return LLMConfig.model_validate(data)


def insert_config(config: LLMConfig) -> None:
    with connect() as conn:
        conn.execute(
            """
            insert into llm_configs (
                config_id, name, description, provider, model_name, base_url,
                api_key_env, temperature, max_tokens, active, created_at, updated_at
            )
            values (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                config.config_id,
                config.name,
                config.description,
                config.provider.value,
                config.model_name,
                config.base_url,
                config.api_key_env,
                config.temperature,
                config.max_tokens,
                int(config.active),
                config.created_at,
                config.updated_at,
            ),
        )
        conn.commit()


def list_configs() -> list[LLMConfig]:
    with connect() as conn:
        rows = conn.execute("select * from llm_configs order by name").fetchall()
    return [_row_to_config(row) for row in rows]


def get_config(config_id: str) -> LLMConfig:
    with connect() as conn:
        row = conn.execute(
            "select * from llm_configs where config_id = ?",
            (config_id,),
        ).fetchone()
    if not row:
        raise NotFoundError(f"LLM config not found: {config_id}")
    return _row_to_config(row)


def get_active_config() -> LLMConfig:
    with connect() as conn:
        row = conn.execute(
            "select * from llm_configs where active = 1 limit 1"
        ).fetchone()
    if not row:
        raise NotFoundError("No active LLM configuration")
    return _row_to_config(row)


def set_active(config_id: str) -> LLMConfig:
    """make one config the active one and deactivate all others."""
    with connect() as conn:
        exists = conn.execute(
            "select 1 from llm_configs where config_id = ?",
            (config_id,),
        ).fetchone()
        if not exists:
            raise NotFoundError(f"LLM config not found: {config_id}")
        now = utc_timestamp()
        conn.execute(
            "update llm_configs set active = 0, updated_at = ? where active = 1 and config_id != ?",
            (now, config_id),
        )
        conn.execute(
            "update llm_configs set active = 1, updated_at = ? where config_id = ?",
            (now, config_id),
        )
        conn.commit()
    return get_config(config_id)
