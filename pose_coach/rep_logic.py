# pose_coach/rep_logic.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .exercises import ExerciseProfile

logger = logging.getLogger(__name__)


class RepPhase(str, Enum):
    START = "start"
    LOW = "low"      # excursion away from rest (flexed / lifted)
    HIGH = "high"    # back at rest after a counted rep


@dataclass
class RepState:
    phase: RepPhase = RepPhase.START
    rep_count: int = 0


def advance_phase(
    phase: RepPhase,
    angle: Optional[int],
    profile: ExerciseProfile,
) -> Tuple[RepPhase, bool]:
    """
    Single hysteresis step shared by rep counting and feedback.

    Returns (new_phase, completed). A rep completes only on the LOW -> HIGH
    transition, so the angle must have crossed threshold_low before a
    threshold_high crossing counts. Jitter inside the band never changes
    the phase. Missing angles and the no-op profile leave the phase as is.
    """
    if angle is None or profile.is_noop:
        return phase, False

    if profile.in_excursion(angle) and phase is not RepPhase.LOW:
        return RepPhase.LOW, False
    if profile.at_rest(angle) and phase is RepPhase.LOW:
        return RepPhase.HIGH, True
    return phase, False


def update_rep_state(
    state: RepState,
    angle: Optional[int],
    profile: ExerciseProfile,
) -> bool:
    """
    Apply one frame's primary angle to the state.

    Returns True when this frame completed a rep (rep_count was incremented).
    """
    phase, completed = advance_phase(state.phase, angle, profile)
    if phase is not state.phase:
        logger.debug("Phase %s -> %s at %s deg", state.phase.value, phase.value, angle)
    state.phase = phase
    if completed:
        state.rep_count += 1
    return completed


class RepCounter:
    """Per-session rep counter bound to one exercise profile."""

    def __init__(self, profile: ExerciseProfile):
        self.profile = profile
        self.state = RepState()

    @property
    def rep_count(self) -> int:
        return self.state.rep_count

    @property
    def phase(self) -> RepPhase:
        return self.state.phase

    def update(self, angle: Optional[int]) -> bool:
        return update_rep_state(self.state, angle, self.profile)

    def reset(self) -> None:
        self.state = RepState()
