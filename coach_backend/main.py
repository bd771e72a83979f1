# coach_backend/main.py
"""
FastAPI service hosting live pose-coach sessions in memory.

Run:
    uvicorn coach_backend.main:app --host 0.0.0.0 --port 8000 --reload

Nothing is persisted here: the summary returned by ``/sessions/{id}/end`` is
the caller's to store.
"""

import logging
import threading
import uuid
from typing import Dict, Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pose_coach.config import LOG_LEVEL
from pose_coach.exercises import ExerciseProfile, available_exercises, get_profile
from pose_coach.session import ExerciseSession, SessionClosedError

from .config import CORS_ALLOW_ORIGINS, MAX_ACTIVE_SESSIONS
from .llm_agent import analyze_session_with_llm
from .models import (
    CoachingRequest,
    CoachingResponse,
    EndSessionRequest,
    ErrorResponse,
    ExerciseInfo,
    FeedbackResponse,
    FrameRequest,
    JointRangeOut,
    QualityResponse,
    RecommendationOut,
    SessionSummaryResponse,
    StartSessionRequest,
    StartSessionResponse,
)
from .utils import generate_fallback_coaching

logger = logging.getLogger("coach_backend")
logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")


# ============================================================================
# In-memory session store
# ============================================================================

class SessionStore:
    """Live sessions by id. Each session has its own lock so frames for one
    session are processed one at a time (sync endpoints run in a threadpool)."""

    def __init__(self, max_sessions: int = MAX_ACTIVE_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, Tuple[ExerciseSession, threading.Lock]] = {}
        self._lock = threading.Lock()

    def create(self, exercise: str) -> Optional[Tuple[str, ExerciseSession]]:
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                return None
            session_id = uuid.uuid4().hex
            session = ExerciseSession(exercise)
            self._sessions[session_id] = (session, threading.Lock())
            return session_id, session

    def get(self, session_id: str) -> Optional[Tuple[ExerciseSession, threading.Lock]]:
        with self._lock:
            return self._sessions.get(session_id)

    def pop(self, session_id: str) -> Optional[Tuple[ExerciseSession, threading.Lock]]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


sessions = SessionStore()


app = FastAPI(title="Rehab Pose Coach API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _session_not_found(session_id: str) -> JSONResponse:
    logger.warning("Unknown session id %s", session_id)
    return JSONResponse(
        status_code=404,
        content={
            "error_code": "SESSION_NOT_FOUND",
            "message": f"No active session with id '{session_id}'.",
        },
    )


def _exercise_info(profile: ExerciseProfile) -> ExerciseInfo:
    return ExerciseInfo(
        id=profile.exercise.value,
        name=profile.name,
        description=profile.description,
        difficulty=profile.difficulty,
        key_points=list(profile.key_points),
    )


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/")
def health_check():
    return {"status": "ok", "active_sessions": len(sessions)}


@app.get("/exercises", response_model=list[ExerciseInfo])
def list_exercises():
    return [_exercise_info(get_profile(e["id"])) for e in available_exercises()]


@app.post(
    "/sessions",
    response_model=StartSessionResponse,
    responses={503: {"model": ErrorResponse}},
)
def start_session(req: StartSessionRequest):
    created = sessions.create(req.exercise)
    if created is None:
        logger.warning("Refusing new session: %d already active", sessions.max_sessions)
        return JSONResponse(
            status_code=503,
            content={
                "error_code": "TOO_MANY_SESSIONS",
                "message": "Too many active sessions. End one and try again.",
            },
        )
    session_id, session = created
    logger.info("Created session %s for %s", session_id, session.exercise_id)
    return StartSessionResponse(
        session_id=session_id,
        exercise=session.exercise_id,
        profile=_exercise_info(session.profile),
        tracked=not session.profile.is_noop,
    )


@app.post(
    "/sessions/{session_id}/frames",
    response_model=FeedbackResponse,
    responses={404: {"model": ErrorResponse}},
)
def submit_frame(session_id: str, req: FrameRequest):
    entry = sessions.get(session_id)
    if entry is None:
        return _session_not_found(session_id)
    session, lock = entry

    with lock:
        previous = session.buffer.latest
        try:
            event = session.process_frame(req.landmarks, req.timestamp)
        except SessionClosedError:
            # Ended by a concurrent /end after this request looked it up
            return _session_not_found(session_id)
        # Rejected frames are not buffered; don't echo the previous frame's angles
        latest = session.buffer.latest
        angles = latest.angles if latest is not None and latest is not previous else None
        return FeedbackResponse(
            message=event.message,
            severity=event.severity.value,
            visual_cue=event.visual_cue.value,
            audio_cue=event.audio_cue.value if event.audio_cue else None,
            primary_angle=event.primary_angle,
            rep_completed=event.rep_completed,
            rep_count=session.rep_count,
            phase=session.phase.value,
            angles=angles.as_dict() if angles is not None else None,
        )


@app.get(
    "/sessions/{session_id}/quality",
    response_model=QualityResponse,
    responses={404: {"model": ErrorResponse}},
)
def session_quality(session_id: str):
    entry = sessions.get(session_id)
    if entry is None:
        return _session_not_found(session_id)
    session, lock = entry

    with lock:
        try:
            quality = session.quality()
        except SessionClosedError:
            return _session_not_found(session_id)
        return QualityResponse(
            overall_score=quality.overall_score,
            grade=quality.grade,
            label=quality.label,
            form_score=quality.form_score,
            symmetry_score=quality.symmetry_score,
            consistency_score=quality.consistency_score,
            frame_count=quality.frame_count,
            rep_count=session.rep_count,
        )


@app.post(
    "/sessions/{session_id}/end",
    response_model=SessionSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
def end_session(session_id: str, req: Optional[EndSessionRequest] = None):
    entry = sessions.pop(session_id)
    if entry is None:
        return _session_not_found(session_id)
    session, lock = entry

    with lock:
        try:
            recommendations = session.recommendations()
            summary = session.end(req.duration_seconds if req else None)
        except SessionClosedError:
            return _session_not_found(session_id)

    return SessionSummaryResponse(
        exercise_name=summary.exercise_name,
        rep_count=summary.rep_count,
        overall_score=summary.overall_score,
        grade=summary.grade,
        range_of_motion=summary.range_of_motion,
        duration_seconds=summary.duration_seconds,
        rom_by_joint={
            name: JointRangeOut(min=r.min, max=r.max, rom=r.rom)
            for name, r in summary.rom_by_joint.items()
        },
        recommendations=[
            RecommendationOut(type=r.type, message=r.message, priority=r.priority)
            for r in recommendations
        ],
    )


@app.post("/coach", response_model=CoachingResponse)
def coach_session(req: CoachingRequest):
    summary = req.model_dump()
    result = analyze_session_with_llm(summary)
    if result is None:
        return CoachingResponse(**generate_fallback_coaching(summary), source="rules")
    return CoachingResponse(
        exercise=str(result["exercise"]),
        main_issue=result.get("main_issue"),
        severity=str(result["severity"]),
        message=str(result["message"]),
        source="llm",
    )
