#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
RealEcho – FastAPI pronunciation assessment + coaching hand-off
---------------------------------------------------------------

• Assessment: Azure Speech pronunciation assessment (unscripted, phoneme granularity, IPA, prosody)
• Long recordings: continuous recognition, one result per speech segment, merged into one report
• Coaching: up to 3 weakest words handed to an ElevenLabs conversational agent
• Storage: SQLite (reports are written once and read back for coaching)

Endpoints (Assessments):
  - POST   /assessments                    → assess a base64 recording (any container ffmpeg reads)
  - POST   /assessments/chunks             → aggregate raw segment results collected by a live client
  - GET    /assessments?limit=...          → most recent reports
  - GET    /assessments/{public_id}        → report details
  - GET    /assessments/{public_id}/coaching → problem words, agent prompt and first message

Endpoints (Coaching):
  - GET    /conversation-token             → signed ElevenLabs conversation URL
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from realecho import config, time_utils
from realecho.db import db_manager
from realecho.errors import DataContractError, EmptyInputError, SpeechServiceError
from realecho.repositories import AssessmentRepository
from realecho.schemas import (
    AssessmentOut,
    AssessmentSummaryOut,
    AudioAssessmentRequest,
    ChunksAssessmentRequest,
    CoachingContextOut,
    ConversationTokenOut,
)
from realecho.services.assessment_service import AssessmentService
from realecho.services.audio_service import AudioService, AudioServiceError
from realecho.services.coaching_service import CoachingService, CoachingTokenError
from realecho.services.speech_service import SpeechAssessmentService
from realecho.utils.b64 import b64_to_temp_audio_file

# ---------------------------------
# Configuration
# ---------------------------------
DB = config.DB_PATH

# Time helper re-exported so tests can freeze the clock
utc_now = time_utils.utc_now

load_dotenv()

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize database schema using the current database path."""
    db_manager.set_path(DB)
    db_manager.initialize()


def get_assessment_repository() -> AssessmentRepository:
    return AssessmentRepository(db_manager)


def get_audio_service() -> AudioService:
    return AudioService()


def get_speech_service() -> SpeechAssessmentService:
    return SpeechAssessmentService()


def get_assessment_service(
    repo: AssessmentRepository = Depends(get_assessment_repository),
    audio_service: AudioService = Depends(get_audio_service),
) -> AssessmentService:
    return AssessmentService(
        repo,
        lambda: utc_now(),
        audio_service,
        get_speech_service,
    )


def get_coaching_service() -> CoachingService:
    return CoachingService()


def _assessment_http_error(exc: Exception) -> HTTPException:
    """Map assessment failures to the HTTP errors the client shows to the learner."""
    if isinstance(exc, EmptyInputError):
        return HTTPException(status_code=422, detail=str(exc) or "No speech detected.")
    if isinstance(exc, DataContractError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, SpeechServiceError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, AudioServiceError):
        return HTTPException(status_code=400, detail=f"Could not read audio: {exc}")
    if isinstance(exc, EnvironmentError):
        return HTTPException(status_code=500, detail=str(exc))
    return HTTPException(status_code=500, detail="Internal error while assessing pronunciation")


# ---------------
# FastAPI (app)
# ---------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan hook: ensure database is initialized before serving requests."""
    init_db()
    yield


app = FastAPI(
    title="RealEcho API",
    version="1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Endpoints – Assessments
# ------------------------
@app.post("/assessments", response_model=AssessmentOut, status_code=201)
def assess_recording(
    req: AudioAssessmentRequest,
    assessment_service: AssessmentService = Depends(get_assessment_service),
):
    """Assess an uploaded recording end to end and store the report."""
    audio_path = b64_to_temp_audio_file(req.audio_b64)
    logger.info("Audio saved temporarily to %s", audio_path)
    try:
        return assessment_service.assess_upload(audio_path)
    except (EmptyInputError, DataContractError, SpeechServiceError, AudioServiceError, EnvironmentError) as exc:
        logger.warning("Assessment failed: %s", exc)
        raise _assessment_http_error(exc) from exc
    except Exception as exc:
        logger.exception("Unexpected error during pronunciation assessment")
        raise _assessment_http_error(exc) from exc
    finally:
        try:
            os.remove(audio_path)
        except OSError:
            logger.warning("Could not remove temporary file %s", audio_path)


@app.post("/assessments/chunks", response_model=AssessmentOut, status_code=201)
def assess_chunks(
    req: ChunksAssessmentRequest,
    assessment_service: AssessmentService = Depends(get_assessment_service),
):
    """Merge the per-segment results a live recognizer delivered, in arrival order."""
    try:
        return assessment_service.assess_chunks(req.chunks)
    except (EmptyInputError, DataContractError) as exc:
        raise _assessment_http_error(exc) from exc


@app.get("/assessments", response_model=List[AssessmentSummaryOut])
def list_assessments(
    limit: int = Query(20, ge=1, le=200),
    assessment_service: AssessmentService = Depends(get_assessment_service),
):
    """List the most recent reports, newest first."""
    return assessment_service.list_recent(limit)


@app.get("/assessments/{public_id}", response_model=AssessmentOut)
def get_assessment(
    public_id: str,
    assessment_service: AssessmentService = Depends(get_assessment_service),
):
    """Fetch a stored report by public UUID."""
    return assessment_service.get(public_id)


@app.get("/assessments/{public_id}/coaching", response_model=CoachingContextOut)
def get_coaching_context(
    public_id: str,
    assessment_service: AssessmentService = Depends(get_assessment_service),
):
    """Return the words to drill (falling back to the first transcript words) and the agent prompts."""
    return assessment_service.coaching_context(public_id)


# ------------------------
# Endpoints – Coaching
# ------------------------
@app.get("/conversation-token", response_model=ConversationTokenOut)
def conversation_token(
    coaching_service: CoachingService = Depends(get_coaching_service),
):
    """Get a signed URL so the browser can open a websocket session with the voice agent."""
    try:
        return coaching_service.get_signed_url()
    except EnvironmentError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except CoachingTokenError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


# ------------------------
# Healthcheck
# ------------------------
@app.get("/health")
def health():
    """Simple health check endpoint with current UTC timestamp."""
    return {"status": "ok", "utc": utc_now().isoformat()}


# ------------------------
# Local execution
# ------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api:app", host=config.API_HOST, port=config.API_PORT, reload=config.API_RELOAD)
