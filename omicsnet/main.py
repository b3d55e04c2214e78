"""FastAPI application entrypoint for the omicsnet engine."""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import reset_services, router as api_router
from .api.routes import API_VERSION
from .config import DEFAULT_TELEMETRY_CONFIG
from .telemetry import configure_telemetry

LOGGER = logging.getLogger(__name__)


API_DESCRIPTION = """
The omicsnet API serves a synthetic multi-omics network (transcripts,
proteins, metabolites and lipids across four time points) and simulates how
reference drug treatments perturb it.  The service exposes endpoints to:

* read the reference taxonomy and drug table (`/taxonomy`, `/drugs`)
* fetch the baseline network (`/network`)
* apply a drug perturbation (`/perturb`)
* ask free-text questions about the baseline or a perturbed graph (`/query`)
* summarise drug effects per pathway and omics layer (`/summary`)

Use the OpenAPI schema for complete request/response examples.
"""


telemetry = configure_telemetry(DEFAULT_TELEMETRY_CONFIG)


app = FastAPI(title="omicsnet API", description=API_DESCRIPTION, version=API_VERSION)
telemetry.instrument_app(app)


origins = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


reset_services()


app.include_router(api_router)


@app.get("/")
def read_root() -> dict[str, str]:
    """Basic liveness probe used by the frontend shell."""

    return {"status": "ok", "version": API_VERSION}


__all__ = ["app"]
