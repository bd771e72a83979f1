# pose_coach/exercises.py
"""
Exercise profile registry.

Each supported exercise is a member of the closed ``Exercise`` enum and owns
exactly one static ``ExerciseProfile``. Identifiers that do not resolve to a
known exercise map to ``Exercise.UNKNOWN``, whose profile tracks no joint and
contributes nothing to counting or scoring.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .pose_utils import AngleSet

logger = logging.getLogger(__name__)


class Exercise(str, Enum):
    KNEE_BENDS = "knee-bends"
    LEG_RAISES = "leg-raises"
    STANDING_MARCH = "standing-march"
    HIP_FLEXION = "hip-flexion"
    SHOULDER_RAISES = "shoulder-raises"
    ELBOW_FLEXION = "elbow-flexion"
    SQUATS = "squats"
    UNKNOWN = "unknown"


# Names used by older clients
EXERCISE_ALIASES: Dict[str, Exercise] = {
    "knee-bend": Exercise.KNEE_BENDS,
    "leg-raise": Exercise.LEG_RAISES,
    "arm-raise": Exercise.SHOULDER_RAISES,
    "elbow-flex": Exercise.ELBOW_FLEXION,
    "squat": Exercise.SQUATS,
}

# Degrees from rest allowed for a valid starting position
START_TOLERANCE = 20


@dataclass(frozen=True)
class PostureRule:
    """
    Safety limits on secondary joints, checked every frame.

    require="both": every listed joint must stay inside the limits.
    require="either": at least one must (e.g. the standing leg while the
    other one lifts).
    """
    joints: Tuple[str, ...]
    message: str
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    require: str = "both"

    def _outside(self, value: int) -> int:
        if self.minimum is not None and value < self.minimum:
            return self.minimum - value
        if self.maximum is not None and value > self.maximum:
            return value - self.maximum
        return 0

    def deviation(self, angles: AngleSet) -> int:
        """Degrees outside the limits, 0 when satisfied or unmeasurable."""
        values = [angles.get(j) for j in self.joints]
        outs = [self._outside(v) for v in values if v is not None]
        if not outs:
            return 0
        if self.require == "either":
            return min(outs)
        return max(outs)

    def is_violated(self, angles: AngleSet) -> bool:
        return self.deviation(angles) > 0


@dataclass(frozen=True)
class ExerciseProfile:
    """
    Static per-exercise parameters.

    threshold_low / threshold_high are the rep hysteresis band. For normal
    profiles the movement flexes the joint (angle falls): dropping below
    threshold_low starts the excursion, rising above threshold_high again
    completes the rep. ``inverted`` profiles move the other way: rising
    above threshold_high starts the excursion, falling below threshold_low
    completes it.

    ideal_range is the target band for the primary angle at the bottom (or
    top) of the movement; tolerance is how far outside it still counts as a
    warning rather than an error. max_step is the largest per-frame change
    of the primary angle considered controlled.
    """
    exercise: Exercise
    name: str
    description: str = ""
    difficulty: str = "Easy"
    joint: Optional[str] = None
    rest_angle: int = 180
    threshold_low: int = 0
    threshold_high: int = 180
    inverted: bool = False
    ideal_range: Tuple[int, int] = (0, 180)
    tolerance: int = 20
    max_step: int = 25
    cue_more: str = ""
    cue_less: str = ""
    posture: Tuple[PostureRule, ...] = ()
    key_points: Tuple[str, ...] = ()

    @property
    def is_noop(self) -> bool:
        return self.joint is None

    @property
    def sides(self) -> Tuple[str, ...]:
        """(left, right) angle names of the tracked joint."""
        if self.joint is None:
            return ()
        return (f"left_{self.joint}", f"right_{self.joint}")

    def at_rest(self, angle: int) -> bool:
        """True when the angle sits on the rest side of the hysteresis band."""
        if self.inverted:
            return angle < self.threshold_low
        return angle > self.threshold_high

    def in_excursion(self, angle: int) -> bool:
        """True when the angle is past the excursion threshold."""
        if self.inverted:
            return angle > self.threshold_high
        return angle < self.threshold_low

    def deviation(self, angle: int) -> int:
        """
        Signed distance from ideal_range along the direction of movement.

        Positive: not enough movement (short of the band).
        Negative: too much movement (past the band).
        """
        lo, hi = self.ideal_range
        if lo <= angle <= hi:
            return 0
        if self.inverted:
            return lo - angle if angle < lo else -(angle - hi)
        return angle - hi if angle > hi else -(lo - angle)


# ---------- Posture rules ----------

_STANDING_LEG_STRAIGHT = PostureRule(
    joints=("left_knee", "right_knee"),
    minimum=150,
    require="either",
    message="Keep your standing leg straight",
)

_CHEST_UP = PostureRule(
    joints=("left_hip", "right_hip"),
    minimum=60,
    message="Keep your chest up",
)


# ---------- Per-exercise profiles ----------

EXERCISE_PROFILES: Dict[Exercise, ExerciseProfile] = {
    Exercise.KNEE_BENDS: ExerciseProfile(
        exercise=Exercise.KNEE_BENDS,
        name="Knee Bends",
        description="Bend and straighten your knees",
        joint="knee",
        rest_angle=180,
        threshold_low=100,
        threshold_high=155,
        ideal_range=(70, 100),
        tolerance=20,
        cue_more="Bend your knees a little more",
        cue_less="Don't bend your knees so far",
        posture=(_CHEST_UP,),
        key_points=(
            "Keep your feet hip-width apart",
            "Push your knees out over your toes",
            "Keep your chest up",
        ),
    ),
    Exercise.SQUATS: ExerciseProfile(
        exercise=Exercise.SQUATS,
        name="Squats",
        description="Full body lower limb engagement",
        difficulty="Medium",
        joint="knee",
        rest_angle=180,
        threshold_low=100,
        threshold_high=155,
        ideal_range=(60, 100),
        tolerance=20,
        cue_more="Squat a little deeper",
        cue_less="Don't squat so deep",
        posture=(PostureRule(
            joints=("left_hip", "right_hip"),
            minimum=45,
            message="Keep your chest up",
        ),),
        key_points=(
            "Keep your weight on your heels",
            "Lower until your thighs are parallel",
            "Keep your back neutral",
        ),
    ),
    Exercise.LEG_RAISES: ExerciseProfile(
        exercise=Exercise.LEG_RAISES,
        name="Leg Raises",
        description="Lift your leg while standing",
        difficulty="Medium",
        joint="hip",
        rest_angle=180,
        threshold_low=110,
        threshold_high=160,
        ideal_range=(90, 110),
        tolerance=20,
        cue_more="Lift your leg higher",
        cue_less="Lower your leg slightly",
        posture=(_STANDING_LEG_STRAIGHT,),
        key_points=(
            "Keep the lifting leg straight",
            "Stand tall and hold onto support if needed",
        ),
    ),
    Exercise.STANDING_MARCH: ExerciseProfile(
        exercise=Exercise.STANDING_MARCH,
        name="Standing March",
        description="Lift knees alternately while standing",
        joint="hip",
        rest_angle=180,
        threshold_low=110,
        threshold_high=160,
        ideal_range=(70, 110),
        tolerance=20,
        cue_more="Lift your knee higher",
        cue_less="Lower your knee slightly",
        posture=(_STANDING_LEG_STRAIGHT,),
        key_points=(
            "Maintain an upright posture throughout",
            "Lift knees to approximately hip height",
            "Keep a steady, controlled rhythm",
            "Engage your core muscles",
            "Breathe steadily - exhale as you lift",
            "Avoid leaning backward",
            "Keep your arms relaxed at your sides",
        ),
    ),
    Exercise.HIP_FLEXION: ExerciseProfile(
        exercise=Exercise.HIP_FLEXION,
        name="Hip Flexion",
        description="Flex your hip joint",
        joint="hip",
        rest_angle=180,
        threshold_low=110,
        threshold_high=160,
        ideal_range=(80, 110),
        tolerance=20,
        cue_more="Bring your knee up further",
        cue_less="Don't pull your knee so high",
        posture=(_STANDING_LEG_STRAIGHT,),
        key_points=(
            "Keep your back straight",
            "Move slowly through the full range",
        ),
    ),
    Exercise.SHOULDER_RAISES: ExerciseProfile(
        exercise=Exercise.SHOULDER_RAISES,
        name="Shoulder Raises",
        description="Raise your arms to shoulder height",
        joint="shoulder",
        rest_angle=0,
        threshold_low=40,
        threshold_high=80,
        inverted=True,
        ideal_range=(80, 100),
        tolerance=20,
        cue_more="Raise your arms higher",
        cue_less="Stop at shoulder height",
        posture=(PostureRule(
            joints=("left_elbow", "right_elbow"),
            minimum=140,
            message="Keep your arms straight",
        ),),
        key_points=(
            "Keep your arms straight",
            "Raise to shoulder height only",
            "Don't shrug your shoulders",
        ),
    ),
    Exercise.ELBOW_FLEXION: ExerciseProfile(
        exercise=Exercise.ELBOW_FLEXION,
        name="Elbow Flexion",
        description="Bend and straighten your elbow",
        joint="elbow",
        rest_angle=180,
        threshold_low=90,
        threshold_high=150,
        ideal_range=(35, 70),
        tolerance=20,
        cue_more="Bend your elbow further",
        cue_less="Ease off the curl slightly",
        posture=(PostureRule(
            joints=("left_shoulder", "right_shoulder"),
            maximum=45,
            message="Keep your elbows at your sides",
        ),),
        key_points=(
            "Keep your upper arm still",
            "Fully straighten between reps",
        ),
    ),
    Exercise.UNKNOWN: ExerciseProfile(
        exercise=Exercise.UNKNOWN,
        name="Unknown Exercise",
        description="No tracking available for this exercise",
    ),
}


# ---------- Lookup ----------

def resolve_exercise(identifier: Union[str, Exercise, None]) -> Exercise:
    """Map an identifier (or legacy alias) to an Exercise; never raises."""
    if isinstance(identifier, Exercise):
        return identifier
    key = (identifier or "").strip().lower().replace("_", "-").replace(" ", "-")
    if key in EXERCISE_ALIASES:
        return EXERCISE_ALIASES[key]
    try:
        exercise = Exercise(key)
    except ValueError:
        exercise = Exercise.UNKNOWN
    if exercise is Exercise.UNKNOWN:
        logger.warning("Unknown exercise %r; using no-op profile", identifier)
    return exercise


def get_profile(exercise: Union[str, Exercise, None]) -> ExerciseProfile:
    return EXERCISE_PROFILES[resolve_exercise(exercise)]


def primary_angle(angles: Optional[AngleSet], profile: ExerciseProfile) -> Optional[int]:
    """
    Angle driving rep detection for this frame.

    Of the left/right candidates, picks the one furthest from the profile's
    rest angle (ties go to the left side). A missing side falls back to the
    other; None when both are missing. The no-op profile always returns 0.
    """
    if profile.is_noop:
        return 0
    if angles is None:
        return None

    left_name, right_name = profile.sides
    left = angles.get(left_name)
    right = angles.get(right_name)
    if left is None:
        return right
    if right is None:
        return left
    if abs(right - profile.rest_angle) > abs(left - profile.rest_angle):
        return right
    return left


def available_exercises() -> List[Dict[str, str]]:
    """Metadata for every trackable exercise (UNKNOWN excluded)."""
    return [
        {
            "id": p.exercise.value,
            "name": p.name,
            "description": p.description,
            "difficulty": p.difficulty,
        }
        for p in EXERCISE_PROFILES.values()
        if not p.is_noop
    ]


def exercise_tips(exercise: Union[str, Exercise, None]) -> List[str]:
    return list(get_profile(exercise).key_points)


# ---------- Starting position ----------

@dataclass(frozen=True)
class StartingPositionCheck:
    is_valid: bool
    details: Dict[str, bool]
    message: str


def validate_starting_position(
    angles: Optional[AngleSet],
    profile: ExerciseProfile,
) -> StartingPositionCheck:
    """
    Check the user is at rest before the first rep: both tracked joints within
    START_TOLERANCE of the rest angle and no posture rule violated.
    """
    if angles is None:
        return StartingPositionCheck(
            is_valid=False,
            details={},
            message="Step back so your whole body is visible",
        )

    details: Dict[str, bool] = {}
    for name in profile.sides:
        value = angles.get(name)
        details[name] = value is not None and abs(value - profile.rest_angle) <= START_TOLERANCE
    for rule in profile.posture:
        details["posture"] = details.get("posture", True) and not rule.is_violated(angles)

    invalid = [k for k, ok in details.items() if not ok]
    if not invalid:
        return StartingPositionCheck(
            is_valid=True,
            details=details,
            message="Perfect starting position! Ready to begin.",
        )
    return StartingPositionCheck(
        is_valid=False,
        details=details,
        message="Adjust your position: " + ", ".join(k.replace("_", " ") for k in invalid),
    )
