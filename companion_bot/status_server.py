"""
Liveness endpoint for external uptime monitors

Answers regardless of whether a game session is running.
"""
import asyncio
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from .logging_config import get_logger

logger = get_logger(__name__)

StateProvider = Callable[[], str]


def create_app(state_provider: Optional[StateProvider] = None) -> FastAPI:
    app = FastAPI(title="Companion Bot")

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Bot is running!\n"

    @app.get("/health")
    def health():
        state = state_provider() if state_provider else None
        return {"ok": True, "session": state}

    return app


def serve(app: FastAPI, port: int, host: str = "0.0.0.0") -> asyncio.Task:
    """Run uvicorn on the current loop as a background task"""
    config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
    server = uvicorn.Server(config)
    logger.info("HTTP server running", port=port)
    return asyncio.create_task(server.serve(), name="status-server")
