"""Pacer web server -- FastAPI backend exposing the difficulty service over REST.

Run with:
    uvicorn web.server:app --reload
    # or
    python -m web.server
"""

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from web.routers import difficulty

logger = logging.getLogger("pacer.web")


# --- Lifecycle (graceful shutdown) ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Pacer web server starting up (data dir: %s)", difficulty.data_dir())
    yield
    logger.info(
        "Pacer web server shutting down -- releasing %d players",
        difficulty.active_players(),
    )
    difficulty.reset_state()


app = FastAPI(
    title="Pacer",
    description="Dynamic difficulty adjustment service",
    lifespan=lifespan,
)


# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get(
        "PACER_CORS_ORIGINS", "http://localhost:3000,http://localhost:8000"
    ).split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every HTTP request with method, path, status, and duration."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


# --- Mount routers ---
app.include_router(difficulty.router)


# --- Health Check ---

@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "ok",
        "service": "pacer",
        "active_players": difficulty.active_players(),
    }


# --- Run directly ---

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("web.server:app", host="0.0.0.0", port=8000, reload=True)
