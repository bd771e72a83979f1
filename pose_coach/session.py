# pose_coach/session.py
"""
Per-session pipeline: pose frame -> angles -> rep phase -> feedback ->
frame buffer, and the end-of-session summary.

One frame is processed at a time; the caller must not feed the same session
from several threads at once.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .config import FRAME_BUFFER_CAPACITY, MIN_LANDMARK_VISIBILITY, TIMESTAMP_EPSILON
from .exercises import (
    Exercise,
    ExerciseProfile,
    StartingPositionCheck,
    get_profile,
    primary_angle,
    validate_starting_position,
)
from .feedback import FeedbackEvent, FeedbackState, generate_feedback
from .frame_buffer import FrameBuffer, FrameRecord, TimestampSequencer
from .pose_utils import AngleSet, calculate_angles
from .rep_logic import RepCounter, RepPhase
from .scoring import (
    FormQuality,
    JointRange,
    RangeOfMotion,
    Recommendation,
    calculate_form_quality,
    session_recommendations,
    track_range_of_motion,
)

logger = logging.getLogger(__name__)


class SessionClosedError(RuntimeError):
    """Raised when a session is used after ``end()``."""


@dataclass(frozen=True)
class SessionSummary:
    exercise_name: str
    rep_count: int
    overall_score: int
    grade: Optional[str]
    range_of_motion: int
    duration_seconds: float
    rom_by_joint: Dict[str, JointRange] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        """Payload handed to the persistence collaborator."""
        return {
            "exerciseName": self.exercise_name,
            "repCount": self.rep_count,
            "overallScore": self.overall_score,
            "grade": self.grade,
            "rangeOfMotion": self.range_of_motion,
            "durationSeconds": self.duration_seconds,
            "romByJoint": {
                name: {"min": r.min, "max": r.max, "rom": r.rom}
                for name, r in self.rom_by_joint.items()
            },
        }


class ExerciseSession:
    """
    Live tracking state for one exercise session.

    Usage:
        session = ExerciseSession("knee-bends")
        for landmarks in stream:
            event = session.process_frame(landmarks)
        summary = session.end()
    """

    def __init__(
        self,
        exercise: Union[str, Exercise],
        capacity: Optional[int] = None,
        min_visibility: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.exercise_id = exercise.value if isinstance(exercise, Exercise) else str(exercise)
        self.profile: ExerciseProfile = get_profile(exercise)
        self.min_visibility = MIN_LANDMARK_VISIBILITY if min_visibility is None else min_visibility
        self._clock = clock

        self.buffer = FrameBuffer(capacity or FRAME_BUFFER_CAPACITY)
        self._counter = RepCounter(self.profile)
        self._feedback_state = FeedbackState()
        self._timestamps = TimestampSequencer(TIMESTAMP_EPSILON)
        self._first_timestamp: Optional[float] = None
        self._clock_timed = False
        self._last_event: Optional[FeedbackEvent] = None
        self._closed = False

        logger.info("Session started: exercise=%s (profile=%s)",
                    self.exercise_id, self.profile.exercise.value)

    # ---------- live state ----------

    @property
    def rep_count(self) -> int:
        return self._counter.rep_count

    @property
    def phase(self) -> RepPhase:
        return self._counter.phase

    @property
    def last_feedback(self) -> Optional[FeedbackEvent]:
        return self._last_event

    @property
    def last_angles(self) -> Optional[AngleSet]:
        latest = self.buffer.latest
        return latest.angles if latest else None

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"session for {self.exercise_id!r} has already ended")

    def _next_timestamp(self, timestamp: Optional[float]) -> float:
        """
        The clock only stands in for missing timestamps when the stream
        started without them; inside a caller-timed stream a bad timestamp
        becomes the previous one plus epsilon.
        """
        if timestamp is None or not math.isfinite(timestamp):
            if self._timestamps.last is None or self._clock_timed:
                self._clock_timed = True
                timestamp = self._clock()
            else:
                timestamp = self._timestamps.last
        timestamp = self._timestamps.next(float(timestamp))
        if self._first_timestamp is None:
            self._first_timestamp = timestamp
        return timestamp

    def process_frame(self, frame: Any, timestamp: Optional[float] = None) -> FeedbackEvent:
        """
        Run one pose frame through the pipeline.

        Frames without exactly 33 landmarks are not buffered and do not move
        the rep counter; the returned feedback asks the user to adjust their
        position.
        """
        self._check_open()

        angles = calculate_angles(frame, self.min_visibility)
        if angles is not None:
            self._counter.update(primary_angle(angles, self.profile))

        event, self._feedback_state = generate_feedback(angles, self.profile, self._feedback_state)
        self._last_event = event

        if angles is not None:
            record = FrameRecord(angles=angles, feedback=event,
                                 timestamp=self._next_timestamp(timestamp))
            self.buffer.append(record)
        return event

    # ---------- aggregation ----------

    def quality(self) -> FormQuality:
        self._check_open()
        return calculate_form_quality(self.buffer.records(), self.profile)

    def _range_of_motion(self, records) -> RangeOfMotion:
        rom = track_range_of_motion(records, self.profile.sides or None)
        if self.profile.is_noop:
            # Untracked exercises report per-joint ranges but no session ROM
            return RangeOfMotion(by_joint=rom.by_joint)
        return rom

    def range_of_motion(self) -> RangeOfMotion:
        self._check_open()
        return self._range_of_motion(self.buffer.records())

    def recommendations(self) -> List[Recommendation]:
        self._check_open()
        records = self.buffer.records()
        quality = calculate_form_quality(records, self.profile)
        return session_recommendations(quality, records, self.profile)

    def check_starting_position(self) -> StartingPositionCheck:
        """Validate the most recent buffered pose as a starting position."""
        self._check_open()
        return validate_starting_position(self.last_angles, self.profile)

    def end(self, duration_seconds: Optional[float] = None) -> SessionSummary:
        """
        Close the session and build its summary.

        duration_seconds normally comes from the caller's session timer; when
        omitted it is the span between the first and last buffered frames.
        """
        self._check_open()
        records = self.buffer.records()
        quality = calculate_form_quality(records, self.profile)
        rom = self._range_of_motion(records)

        if duration_seconds is None:
            last = self._timestamps.last
            first = self._first_timestamp
            duration_seconds = (last - first) if first is not None and last is not None else 0.0

        summary = SessionSummary(
            exercise_name=self.exercise_id,
            rep_count=self.rep_count,
            overall_score=quality.overall_score,
            grade=quality.grade,
            range_of_motion=int(round(rom.max_rom)),
            duration_seconds=round(float(duration_seconds), 3),
            rom_by_joint=rom.by_joint,
        )
        logger.info(
            "Session ended: exercise=%s reps=%d score=%d grade=%s rom=%d",
            summary.exercise_name, summary.rep_count, summary.overall_score,
            summary.grade, summary.range_of_motion,
        )

        self.buffer.clear()
        self._counter.reset()
        self._feedback_state = FeedbackState()
        self._closed = True
        return summary
