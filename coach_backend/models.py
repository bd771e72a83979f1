# coach_backend/models.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class ExerciseInfo(BaseModel):
    id: str
    name: str
    description: str
    difficulty: str
    key_points: List[str] = []


class StartSessionRequest(BaseModel):
    exercise: str = Field(..., description="Exercise id, e.g. 'knee-bends'")


class StartSessionResponse(BaseModel):
    session_id: str
    exercise: str
    profile: ExerciseInfo
    tracked: bool = Field(..., description="False when the exercise is unknown (no-op profile)")


class FrameRequest(BaseModel):
    landmarks: List[List[float]] = Field(
        ..., description="33 landmarks x 4 values (x, y, z, visibility)"
    )
    timestamp: Optional[float] = Field(None, description="Capture time in seconds")


class FeedbackResponse(BaseModel):
    message: str
    severity: str
    visual_cue: str
    audio_cue: Optional[str] = None
    primary_angle: Optional[int] = None
    rep_completed: bool = False
    rep_count: int
    phase: str
    angles: Optional[Dict[str, Optional[int]]] = None


class QualityResponse(BaseModel):
    overall_score: int
    grade: Optional[str] = None
    label: str
    form_score: Optional[float] = None
    symmetry_score: Optional[float] = None
    consistency_score: Optional[float] = None
    frame_count: int
    rep_count: int


class EndSessionRequest(BaseModel):
    duration_seconds: Optional[float] = Field(
        None, ge=0, description="Elapsed time from the client's session timer"
    )


class JointRangeOut(BaseModel):
    min: int
    max: int
    rom: int


class RecommendationOut(BaseModel):
    type: str
    message: str
    priority: str


class SessionSummaryResponse(BaseModel):
    exercise_name: str
    rep_count: int
    overall_score: int
    grade: Optional[str] = None
    range_of_motion: int
    duration_seconds: float
    rom_by_joint: Dict[str, JointRangeOut] = {}
    recommendations: List[RecommendationOut] = []


class CoachingRequest(BaseModel):
    exercise_name: str
    rep_count: int
    overall_score: int = Field(..., ge=0, le=100)
    grade: Optional[str] = None
    range_of_motion: int
    duration_seconds: float


class CoachingResponse(BaseModel):
    exercise: str
    main_issue: Optional[str] = None
    severity: str
    message: str
    source: str = Field("llm", description="'llm' or 'rules'")


class ErrorResponse(BaseModel):
    error_code: str
    message: str
