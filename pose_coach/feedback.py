# pose_coach/feedback.py
"""
Real-time feedback generator.

Turns one frame's joint angles into a FeedbackEvent: a message, a severity,
a visual cue token for the renderer and, for errors only, an audio cue token.
The generator keeps no hidden state; everything carried between frames lives
in ``FeedbackState``, which the caller passes in and gets back each frame.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .exercises import ExerciseProfile, primary_angle
from .pose_utils import AngleSet
from .rep_logic import RepPhase, advance_phase

# Primary-angle change (deg/frame) below which the movement counts as stalled
STALL_STEP = 2

ADJUST_POSITION_MESSAGE = "Adjust your position so your whole body is visible"
REP_COMPLETE_MESSAGE = "Great! One more"
SLOW_DOWN_MESSAGE = "Slow down and control the movement"


class Severity(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


class VisualCue(str, Enum):
    GOOD = "good"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    ADJUST = "adjust"
    NEUTRAL = "neutral"


class AudioCue(str, Enum):
    FORM_CORRECTION = "form-correction"
    POSTURE_ALERT = "posture-alert"


@dataclass(frozen=True)
class FeedbackEvent:
    message: str
    severity: Severity
    visual_cue: VisualCue
    audio_cue: Optional[AudioCue] = None
    primary_angle: Optional[int] = None
    rep_completed: bool = False

    def __post_init__(self):
        # Audible cues are reserved for errors
        if self.audio_cue is not None and self.severity is not Severity.ERROR:
            raise ValueError(
                f"audio cue {self.audio_cue.value!r} requires error severity, "
                f"got {self.severity.value!r}"
            )

    def as_dict(self) -> dict:
        return {
            "message": self.message,
            "severity": self.severity.value,
            "visualCue": self.visual_cue.value,
            "audioCue": self.audio_cue.value if self.audio_cue else None,
            "primaryAngle": self.primary_angle,
            "repCompleted": self.rep_completed,
        }


@dataclass(frozen=True)
class FeedbackState:
    """What the generator needs from the previous frame."""
    previous_angles: Optional[AngleSet] = None
    phase: RepPhase = RepPhase.START


def classify_deviation(deviation: int, profile: ExerciseProfile) -> Severity:
    """Severity band for a distance (deg) outside the ideal range."""
    magnitude = abs(deviation)
    if magnitude == 0:
        return Severity.OK
    if magnitude <= profile.tolerance:
        return Severity.WARNING
    return Severity.ERROR


def _form_event(
    deviation: int,
    profile: ExerciseProfile,
    angle: int,
) -> FeedbackEvent:
    severity = classify_deviation(deviation, profile)
    if severity is Severity.OK:
        return FeedbackEvent("Good form! Hold it there", Severity.OK, VisualCue.GOOD,
                             primary_angle=angle)

    message = profile.cue_more if deviation > 0 else profile.cue_less
    if severity is Severity.WARNING:
        return FeedbackEvent(message, Severity.WARNING, VisualCue.WARNING,
                             primary_angle=angle)
    return FeedbackEvent(message, Severity.ERROR, VisualCue.ERROR,
                         audio_cue=AudioCue.FORM_CORRECTION, primary_angle=angle)


def _moving_toward_rest(angle: int, previous: Optional[int], profile: ExerciseProfile) -> bool:
    if previous is None:
        return False
    step = angle - previous
    return step < 0 if profile.inverted else step > 0


def generate_feedback(
    angles: Optional[AngleSet],
    profile: ExerciseProfile,
    state: Optional[FeedbackState] = None,
) -> Tuple[FeedbackEvent, FeedbackState]:
    """
    Produce feedback for the current frame.

    Args:
        angles: This frame's angles, or None when the frame was rejected.
        profile: Active exercise profile.
        state: State returned for the previous frame (None on the first).

    Returns:
        (event, next_state). Always returns a message, including for
        rejected frames ("adjust position").
    """
    state = state or FeedbackState()

    angle = primary_angle(angles, profile)
    if angles is None or angle is None:
        event = FeedbackEvent(ADJUST_POSITION_MESSAGE, Severity.WARNING, VisualCue.ADJUST)
        # Keep the last good angles so speed checks resume cleanly
        return event, state

    if profile.is_noop:
        event = FeedbackEvent(
            "Exercise not recognised - move freely, no form tracking",
            Severity.OK,
            VisualCue.NEUTRAL,
            primary_angle=angle,
        )
        return event, FeedbackState(angles, state.phase)

    previous = primary_angle(state.previous_angles, profile)
    phase, completed = advance_phase(state.phase, angle, profile)
    next_state = FeedbackState(angles, phase)

    # Posture safety outranks everything else
    for rule in profile.posture:
        if rule.is_violated(angles):
            event = FeedbackEvent(rule.message, Severity.ERROR, VisualCue.ERROR,
                                  audio_cue=AudioCue.POSTURE_ALERT,
                                  primary_angle=angle, rep_completed=completed)
            return event, next_state

    if completed:
        event = FeedbackEvent(REP_COMPLETE_MESSAGE, Severity.OK, VisualCue.SUCCESS,
                              primary_angle=angle, rep_completed=True)
    elif profile.at_rest(angle):
        message = "Ready - begin the next rep" if phase is RepPhase.HIGH else "Good starting position"
        event = FeedbackEvent(message, Severity.OK, VisualCue.GOOD, primary_angle=angle)
    else:
        deviation = profile.deviation(angle)
        returning = _moving_toward_rest(angle, previous, profile)
        stalled = previous is not None and abs(angle - previous) < STALL_STEP

        if deviation <= 0:
            event = _form_event(deviation, profile, angle)
        elif phase is RepPhase.LOW and returning:
            event = FeedbackEvent("Good, now return slowly", Severity.OK, VisualCue.GOOD,
                                  primary_angle=angle)
        elif returning or stalled:
            event = _form_event(deviation, profile, angle)
        else:
            event = FeedbackEvent("Keep going", Severity.OK, VisualCue.GOOD, primary_angle=angle)

    if (
        event.severity is Severity.OK
        and not event.rep_completed
        and previous is not None
        and abs(angle - previous) > profile.max_step
    ):
        event = FeedbackEvent(SLOW_DOWN_MESSAGE, Severity.WARNING, VisualCue.WARNING,
                              primary_angle=angle)

    return event, next_state
