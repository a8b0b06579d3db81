"""database initialization helpers."""

from flowsmith_server.flow_db import init_db as init_flow_db
from flowsmith_server.llm_config_db import init_db as init_llm_config_db


def init_all() -> None:
    """initialize all sqlite tables."""
    init_flow_db()
    init_llm_config_db()
