# pose_coach/scoring.py
"""
End-of-session aggregation over the frame buffer.

- Form quality: deviation from the ideal band, bilateral symmetry and
  motion consistency, combined into a 0-100 score and a letter grade.
- Range of motion: per-joint min / max of the observed angles.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .exercises import ExerciseProfile, primary_angle
from .frame_buffer import FrameRecord
from .pose_utils import JOINT_NAMES
from .rep_logic import RepPhase, advance_phase

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Scoring configuration
# ---------------------------------------------------------------------------
# Relative weight of each component in the overall score
SCORE_WEIGHTS: Dict[str, float] = {
    "form": 0.5,
    "symmetry": 0.25,
    "consistency": 0.25,
}

# Per-frame penalty: degrees of primary deviation outweigh posture deviation
PRIMARY_WEIGHT: float = 1.0
POSTURE_WEIGHT: float = 0.5

# (minimum score, letter, label), checked top-down
GRADE_TABLE: Tuple[Tuple[int, str, str], ...] = (
    (90, "A", "Excellent"),
    (80, "B", "Good"),
    (70, "C", "Fair"),
    (60, "D", "Needs Improvement"),
    (0, "F", "Needs Attention"),
)
NO_DATA_LABEL = "No Data"

SYMMETRY_TARGET = 70
CONSISTENCY_TARGET = 60


@dataclass(frozen=True)
class FormQuality:
    overall_score: int
    grade: Optional[str]
    label: str
    form_score: Optional[float] = None
    symmetry_score: Optional[float] = None
    consistency_score: Optional[float] = None
    average_primary_angle: Optional[float] = None
    frame_count: int = 0


@dataclass(frozen=True)
class JointRange:
    min: int
    max: int

    @property
    def rom(self) -> int:
        return self.max - self.min


@dataclass(frozen=True)
class RangeOfMotion:
    by_joint: Dict[str, JointRange]
    max_rom: int = 0
    max_rom_joint: Optional[str] = None


@dataclass(frozen=True)
class Recommendation:
    type: str        # "warning" | "success"
    message: str
    priority: str    # "high" | "medium" | "low"


def grade_for(score: float) -> Tuple[str, str]:
    """(letter, label) for a 0-100 score, per GRADE_TABLE."""
    for cutoff, letter, label in GRADE_TABLE:
        if score >= cutoff:
            return letter, label
    return GRADE_TABLE[-1][1], GRADE_TABLE[-1][2]


def _excursion_frames(
    records: Sequence[FrameRecord],
    profile: ExerciseProfile,
) -> Tuple[List[FrameRecord], List[int], List[int]]:
    """
    Replay the rep hysteresis over the records.

    Returns (excursion records, their primary angles, all primary angles).
    A frame belongs to the excursion while the replayed phase is LOW.
    """
    phase = RepPhase.START
    excursion: List[FrameRecord] = []
    excursion_angles: List[int] = []
    all_angles: List[int] = []
    for record in records:
        angle = primary_angle(record.angles, profile)
        if angle is None:
            continue
        all_angles.append(angle)
        phase, _ = advance_phase(phase, angle, profile)
        if phase is RepPhase.LOW:
            excursion.append(record)
            excursion_angles.append(angle)
    return excursion, excursion_angles, all_angles


def _mean(values: Iterable[Optional[int]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return float(np.mean(present))


def _symmetry_score(records: Sequence[FrameRecord], profile: ExerciseProfile) -> Optional[float]:
    left_name, right_name = profile.sides
    avg_left = _mean(r.angles.get(left_name) for r in records)
    avg_right = _mean(r.angles.get(right_name) for r in records)
    if avg_left is None or avg_right is None:
        return None
    return max(0.0, 100.0 - abs(avg_left - avg_right) * 2)


def _frame_penalty(record: FrameRecord, angle: int, profile: ExerciseProfile) -> float:
    posture = sum(rule.deviation(record.angles) for rule in profile.posture)
    penalty = PRIMARY_WEIGHT * abs(profile.deviation(angle)) + POSTURE_WEIGHT * posture
    return min(100.0, penalty)


def _no_data(frame_count: int) -> FormQuality:
    return FormQuality(overall_score=0, grade=None, label=NO_DATA_LABEL, frame_count=frame_count)


def calculate_form_quality(
    records: Sequence[FrameRecord],
    profile: ExerciseProfile,
) -> FormQuality:
    """
    Score the buffered frames for one exercise.

    Args:
        records: Frame records, oldest first (typically ``FrameBuffer.records()``).
        profile: Exercise the records were captured for.

    Returns:
        FormQuality. Empty input, the no-op profile or frames without a
        usable primary angle give score 0 with no grade.
    """
    records = list(records)
    if not records or profile.is_noop:
        return _no_data(len(records))

    excursion, excursion_angles, all_angles = _excursion_frames(records, profile)
    if not all_angles:
        return _no_data(len(records))

    if excursion:
        penalties = [
            _frame_penalty(record, angle, profile)
            for record, angle in zip(excursion, excursion_angles)
        ]
        form = 100.0 - float(np.mean(penalties))
        variance = float(np.var(excursion_angles))
    else:
        # Never reached the working range: judge how far short it stayed
        deepest = min(all_angles, key=lambda a: abs(profile.deviation(a)))
        form = max(0.0, 100.0 - PRIMARY_WEIGHT * abs(profile.deviation(deepest)))
        variance = float(np.var(all_angles))

    consistency = max(0.0, 100.0 - variance / 2)
    symmetry = _symmetry_score(records, profile)

    components = {"form": form, "symmetry": symmetry, "consistency": consistency}
    available = {k: v for k, v in components.items() if v is not None}
    total_weight = sum(SCORE_WEIGHTS[k] for k in available)
    overall = sum(SCORE_WEIGHTS[k] * v for k, v in available.items()) / total_weight
    overall_score = int(np.clip(np.floor(overall + 0.5), 0, 100))

    logger.debug(
        "Form quality for %s: form=%.1f symmetry=%s consistency=%.1f overall=%d",
        profile.exercise.value, form, symmetry, consistency, overall_score,
    )
    letter, label = grade_for(overall_score)
    return FormQuality(
        overall_score=overall_score,
        grade=letter,
        label=label,
        form_score=round(form, 1),
        symmetry_score=round(symmetry, 1) if symmetry is not None else None,
        consistency_score=round(consistency, 1),
        average_primary_angle=round(float(np.mean(excursion_angles or all_angles)), 1),
        frame_count=len(records),
    )


def track_range_of_motion(
    records: Sequence[FrameRecord],
    joints: Optional[Sequence[str]] = None,
) -> RangeOfMotion:
    """
    Per-joint min / max over the records.

    Missing (None) and zero angles are skipped so a default never drags the
    minimum down. ``max_rom`` is taken over ``joints`` when given, otherwise
    over every joint.
    """
    lows: Dict[str, int] = {}
    highs: Dict[str, int] = {}
    for record in records:
        for name in JOINT_NAMES:
            value = record.angles.get(name)
            if not value:
                continue
            if name not in lows or value < lows[name]:
                lows[name] = value
            if name not in highs or value > highs[name]:
                highs[name] = value

    by_joint = {name: JointRange(lows[name], highs[name]) for name in lows}

    candidates = [j for j in (joints or JOINT_NAMES) if j in by_joint]
    if not candidates:
        return RangeOfMotion(by_joint=by_joint)
    best = max(candidates, key=lambda j: by_joint[j].rom)
    return RangeOfMotion(by_joint=by_joint, max_rom=by_joint[best].rom, max_rom_joint=best)


def session_recommendations(
    quality: FormQuality,
    records: Sequence[FrameRecord],
    profile: ExerciseProfile,
) -> List[Recommendation]:
    """Rule-based, post-session suggestions derived from the scores."""
    if quality.grade is None:
        return []

    recommendations: List[Recommendation] = []
    excursion, _, _ = _excursion_frames(records, profile)

    if not excursion:
        recommendations.append(Recommendation(
            type="warning",
            message=f"No full repetitions detected. {profile.cue_more}",
            priority="high",
        ))
    elif quality.average_primary_angle is not None:
        avg_dev = profile.deviation(int(round(quality.average_primary_angle)))
        if avg_dev > 0:
            recommendations.append(Recommendation(
                type="warning",
                message=f"Work on reaching the full range: {profile.cue_more.lower()}",
                priority="high",
            ))
        elif avg_dev < 0:
            recommendations.append(Recommendation(
                type="warning",
                message=f"Control the end of the movement: {profile.cue_less.lower()}",
                priority="high",
            ))

    if quality.symmetry_score is not None and quality.symmetry_score < SYMMETRY_TARGET:
        recommendations.append(Recommendation(
            type="warning",
            message="Work on balancing your left and right sides",
            priority="medium",
        ))

    if quality.consistency_score is not None and quality.consistency_score < CONSISTENCY_TARGET:
        recommendations.append(Recommendation(
            type="warning",
            message="Try to maintain a more consistent rhythm",
            priority="medium",
        ))

    if not recommendations and quality.overall_score >= GRADE_TABLE[1][0]:
        recommendations.append(Recommendation(
            type="success",
            message="Excellent form! You're performing this exercise very well.",
            priority="low",
        ))

    return recommendations
