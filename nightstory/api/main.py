"""FastAPI application for the Night Story generator."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nightstory.logging import configure_logging
from .routes import sessions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    configure_logging(json_format=os.getenv("LOG_FORMAT", "json") == "json")
    logger.info("Night Story API started")
    yield


app = FastAPI(
    title="Night Story API",
    description="""
Generate a bedtime story and a matching cover from a short questionnaire.

## Features
- **Story**: Children's exact names, a theme companion, checked and regenerated up to 3 times
- **Cover**: Your photo placed on a 16:10 cover without cropping, or an illustrated cover

## Workflow
1. POST `/sessions` with the questionnaire answers
2. Poll GET `/sessions/{id}` until both phases leave `pending`
3. POST `/sessions/{id}/new` to start over
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
