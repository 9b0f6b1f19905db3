"""
FastAPI service exposing the model selector hooks.

Hosts that cannot load the router in-process call these endpoints from
their before-agent-start, after-tool-call and session-end hooks.
"""

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from api.routes import health, hooks
from model_selector.config import load_config
from model_selector.plugin import ModelSelectorPlugin
from model_selector.utils.logging import setup_logging

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - build the plugin once per process."""
    logger = setup_logging()
    app.state.plugin = ModelSelectorPlugin.from_config(load_config())
    logger.info("Model selector API started")
    yield
    logger.info("Model selector API shutting down")


app = FastAPI(
    title="Model Selector API",
    description="Session-scoped model routing hooks for conversational agents",
    version="3.0.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["Health"])
app.include_router(hooks.router, tags=["Hooks"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
