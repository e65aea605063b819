"""
Hybrid Recommendation API — FastAPI app factory.

Use: uvicorn rec_server:app
Or:  from rec_server import create_app
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import configure_logging, get_config
from .routes import register_routes
from .state import AppState, build_state

logger = logging.getLogger(__name__)


def create_app(state: Optional[AppState] = None, run_background: bool = True) -> FastAPI:
    """
    Build FastAPI app with CORS and routes.

    state: pre-built AppState (tests inject one over in-memory stores);
    built from the environment at startup when omitted.
    run_background: start the trending scheduler and session sweep in lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "rec", None) is None:
            config = get_config()
            configure_logging(config.log_level)
            app.state.rec = build_state(config)
        if run_background:
            await app.state.rec.start()
        logger.info("[startup] Hybrid Recommendation API ready (data_source=%s)", app.state.rec.data_source)
        try:
            yield
        finally:
            await app.state.rec.stop()

    app = FastAPI(
        title="Hybrid Recommendation API",
        description="Blended collaborative, content-based, trending and diversity recommendations",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.rec = state
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    return app
