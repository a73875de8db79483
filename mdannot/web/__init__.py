"""FastAPI application serving shares and the annotation engine."""

from __future__ import annotations

from fastapi import FastAPI  # type: ignore[import-not-found]

from .routes import engine, share

app = FastAPI(title="mdannot")
app.include_router(share.router)
app.include_router(engine.router)
