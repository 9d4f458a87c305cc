# src/familyspots/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and enables CORS for a local browser front-end.
Business logic lives in `familyspots.api.routes` and `familyspots.directory`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from familyspots.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="Family Spots API", version="0.1.0")

# CORS (dev-friendly): allow a local front-end (e.g. http://localhost:8080) to call this API.
# Configure via env:
# - FAMILYSPOTS_CORS_ORIGINS="http://localhost:8080,http://127.0.0.1:8080"
# - FAMILYSPOTS_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("FAMILYSPOTS_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("FAMILYSPOTS_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}
