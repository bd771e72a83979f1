"""
Real-time rehabilitation exercise coaching from pose landmarks.

Stages per frame:
    1. Joint angles from 33 MediaPipe landmarks
    2. Rep phase state machine (per-exercise hysteresis)
    3. Real-time feedback (severity, visual cue, audio cue on errors)
    4. Rolling frame buffer
At session end: form quality score + grade and range of motion.
"""

from .exercises import Exercise, ExerciseProfile, get_profile, resolve_exercise
from .feedback import AudioCue, FeedbackEvent, FeedbackState, Severity, VisualCue, generate_feedback
from .frame_buffer import FrameBuffer, FrameRecord
from .pose_utils import AngleSet, Landmark, angle_between, calculate_angles
from .rep_logic import RepCounter, RepPhase, RepState
from .scoring import FormQuality, RangeOfMotion, calculate_form_quality, track_range_of_motion
from .session import ExerciseSession, SessionClosedError, SessionSummary

__all__ = [
    "AngleSet",
    "AudioCue",
    "Exercise",
    "ExerciseProfile",
    "ExerciseSession",
    "FeedbackEvent",
    "FeedbackState",
    "FormQuality",
    "FrameBuffer",
    "FrameRecord",
    "Landmark",
    "RangeOfMotion",
    "RepCounter",
    "RepPhase",
    "RepState",
    "SessionClosedError",
    "SessionSummary",
    "Severity",
    "VisualCue",
    "angle_between",
    "calculate_angles",
    "calculate_form_quality",
    "generate_feedback",
    "get_profile",
    "resolve_exercise",
    "track_range_of_motion",
]
