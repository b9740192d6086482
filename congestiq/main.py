"""FastAPI application setup for the CongestiQ backend."""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import CORS_HEADERS, router as api_router
from .config import settings
from utils.logging_utils import setup_logging

setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="congestiq")

app = FastAPI(title="CongestiQ Traffic Intelligence")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=[h.strip() for h in CORS_HEADERS["Access-Control-Allow-Headers"].split(",")],
)

# API routes
app.include_router(api_router, prefix="/v1")
