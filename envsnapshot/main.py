"""FastAPI application setup for the environment snapshot service."""

from fastapi import FastAPI

from .api import router as api_router

app = FastAPI(title="Environment Snapshot")


@app.get("/healthz")
def healthz():
    """Liveness probe; does not touch upstream providers."""
    return {"status": "ok"}


app.include_router(api_router, prefix="/v1")
