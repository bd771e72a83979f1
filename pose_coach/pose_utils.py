# pose_coach/pose_utils.py

import logging
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

import numpy as np

from .config import MIN_LANDMARK_VISIBILITY, NUM_LANDMARKS

logger = logging.getLogger(__name__)


class PoseLandmark(IntEnum):
    """MediaPipe pose landmark indices (33-point topology)."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


@dataclass(frozen=True)
class Landmark:
    """One tracked body point in normalized camera space."""
    x: float
    y: float
    z: float
    visibility: float = 1.0


@dataclass(frozen=True)
class AngleSet:
    """
    Joint angles (integer degrees, 0-180) for a single frame.

    A value of None means the angle could not be computed for this frame
    (zero-length limb vector, or a landmark under the visibility gate).
    """
    left_knee: Optional[int] = None
    right_knee: Optional[int] = None
    left_hip: Optional[int] = None
    right_hip: Optional[int] = None
    left_elbow: Optional[int] = None
    right_elbow: Optional[int] = None
    left_shoulder: Optional[int] = None
    right_shoulder: Optional[int] = None
    left_ankle: Optional[int] = None
    right_ankle: Optional[int] = None

    def get(self, name: str) -> Optional[int]:
        if name not in JOINT_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def as_dict(self) -> Dict[str, Optional[int]]:
        return {name: getattr(self, name) for name in JOINT_NAMES}

    def __iter__(self) -> Iterator[Tuple[str, Optional[int]]]:
        return iter(self.as_dict().items())


JOINT_NAMES: Tuple[str, ...] = tuple(f.name for f in fields(AngleSet))

# Joint name -> (first point, vertex, third point)
ANGLE_TRIPLES: Dict[str, Tuple[PoseLandmark, PoseLandmark, PoseLandmark]] = {
    # Knee: hip - knee - ankle
    "left_knee": (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE),
    "right_knee": (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE),
    # Hip: shoulder - hip - knee
    "left_hip": (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE),
    "right_hip": (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE),
    # Elbow: shoulder - elbow - wrist
    "left_elbow": (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
    "right_elbow": (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
    # Shoulder: elbow - shoulder - hip
    "left_shoulder": (PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP),
    "right_shoulder": (PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP),
    # Ankle: knee - ankle - foot index
    "left_ankle": (PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE, PoseLandmark.LEFT_FOOT_INDEX),
    "right_ankle": (PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE, PoseLandmark.RIGHT_FOOT_INDEX),
}


def angle_between(a, b, c) -> Optional[int]:
    """
    Returns the angle (in whole degrees) at point b formed by points a-b-c.

    Points are (x, y, z) sequences. Returns None when either limb vector has
    zero length or a coordinate is not finite, so a missing landmark never
    turns into a NaN or an arbitrary angle.
    """
    a = np.asarray(a, dtype=float)[:3]
    b = np.asarray(b, dtype=float)[:3]
    c = np.asarray(c, dtype=float)[:3]

    v1 = a - b
    v2 = c - b

    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)
    if not (np.isfinite(n1) and np.isfinite(n2)) or n1 == 0.0 or n2 == 0.0:
        return None

    cosang = np.dot(v1, v2) / (n1 * n2)
    cosang = np.clip(cosang, -1.0, 1.0)
    angle = np.degrees(np.arccos(cosang))
    # Half-up rounding keeps 0.5 boundaries stable (round() is banker's).
    return int(np.floor(angle + 0.5))


def _landmark_row(lm: Any) -> Sequence[float]:
    if hasattr(lm, "x"):
        return (lm.x, lm.y, lm.z, getattr(lm, "visibility", 1.0))
    return lm


def as_pose_array(frame: Any) -> Optional[np.ndarray]:
    """
    Convert a pose frame to a (33, 4) float array of [x, y, z, visibility].

    Accepts Landmark-like objects, (x, y, z, visibility) sequences or an
    array. Returns None for anything that is not exactly 33 landmarks.
    """
    if frame is None:
        return None
    try:
        rows = [_landmark_row(lm) for lm in frame]
        arr = np.asarray(rows, dtype=float)
    except (TypeError, ValueError):
        return None

    if arr.shape != (NUM_LANDMARKS, 4):
        return None
    return arr


def calculate_angles(
    frame: Any,
    min_visibility: float = MIN_LANDMARK_VISIBILITY,
) -> Optional[AngleSet]:
    """
    Compute all tracked joint angles for one pose frame.

    Returns None (no detection this frame) when the frame does not hold
    exactly 33 landmarks. With min_visibility > 0, joints whose landmark
    triple contains a point below that visibility come back as None.
    """
    arr = as_pose_array(frame)
    if arr is None:
        logger.debug("Rejected pose frame: expected %d landmarks", NUM_LANDMARKS)
        return None

    values: Dict[str, Optional[int]] = {}
    for name, (i1, i2, i3) in ANGLE_TRIPLES.items():
        triple = arr[[i1, i2, i3]]
        if min_visibility > 0.0 and np.any(triple[:, 3] < min_visibility):
            values[name] = None
            continue
        values[name] = angle_between(triple[0], triple[1], triple[2])

    return AngleSet(**values)
