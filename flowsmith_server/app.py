"""FastAPI application serving flows and text generation."""

import logging
import os
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flowsmith.errors import FlowsmithError
from flowsmith_server.db import init_all
from flowsmith_server import flow_db
from flowsmith_server.flow_routes import router as flow_router
from flowsmith_server.generation_routes import router as generation_router
from flowsmith_server.llm_config_routes import router as llm_config_router

load_dotenv()  # load environment variables from .env file

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("flowsmith_server.app")

# CORS origins - configurable via environment variable
# Use comma-separated values for multiple origins, or "*" for all (development only)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database tables on startup."""
    init_all()
    yield


app = FastAPI(
    title="Flowsmith API",
    description="API server for flow persistence and LLM text processing",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FlowsmithError)
async def handle_flowsmith_error(request: Request, exc: FlowsmithError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


# include routes
app.include_router(flow_router, prefix="/api")
app.include_router(generation_router, prefix="/api")
app.include_router(llm_config_router, prefix="/api")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "flow_db": str(flow_db.db_path()),
        "endpoints": {
            "flows": "/api/flows",
            "generate": "/api/generate",
            "llm_configs": "/api/llm-configs",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
