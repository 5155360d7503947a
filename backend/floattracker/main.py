"""
main.py — FastAPI Application Entrypoint

Purpose:
- Initialize logging from settings.
- Register API routers.
- Define the root-level health endpoint.
- Provide `app` object used by ASGI server (uvicorn).

This file should stay clean — no business logic here.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from floattracker.api.v1 import tickers
from floattracker.core.config import settings
from floattracker.core.logging import configure_logging

# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Float Tracker Backend",
    description="SEC filing extraction and share-float history backend",
    version="0.1.0",
)

# -----------------------------------------------------------------------------
# CORS (the dashboard calls the API from the browser)
# -----------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------------------------------------------------------
# Router Registration
# -----------------------------------------------------------------------------

app.include_router(tickers.router, prefix="/api/v1")

# -----------------------------------------------------------------------------
# Health Check
# -----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "ok", "message": "Float tracker backend running"}
