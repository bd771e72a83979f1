"""Synthetic MediaPipe-style poses with chosen joint angles."""

import math
from typing import List, Optional

import numpy as np

from pose_coach.pose_utils import PoseLandmark as P

SEGMENT = 0.15


def _rotate(v: np.ndarray, degrees: float) -> np.ndarray:
    t = math.radians(degrees)
    return np.array([
        v[0] * math.cos(t) - v[1] * math.sin(t),
        v[0] * math.sin(t) + v[1] * math.cos(t),
    ])


def make_landmarks(
    knee: float = 180,
    right_knee: Optional[float] = None,
    shoulder: float = 0,
    right_shoulder: Optional[float] = None,
    elbow: float = 180,
    right_elbow: Optional[float] = None,
    visibility: float = 1.0,
) -> List[List[float]]:
    """
    Build a (33, 4) list pose, standing upright facing the camera.

    Hips are straight (180). The knee angle bends the shin, the shoulder
    angle lifts the upper arm away from the torso and the elbow angle bends
    the forearm. Right-side values default to the left-side ones.
    """
    right_knee = knee if right_knee is None else right_knee
    right_shoulder = shoulder if right_shoulder is None else right_shoulder
    right_elbow = elbow if right_elbow is None else right_elbow

    lm = np.zeros((33, 4))
    lm[:, :2] = [0.5, 0.1]
    lm[:, 3] = visibility

    for side, x, k, s, e in (
        ("LEFT", 0.4, knee, shoulder, elbow),
        ("RIGHT", 0.6, right_knee, right_shoulder, right_elbow),
    ):
        shoulder_pt = np.array([x, 0.2])
        hip = np.array([x, 0.5])
        knee_pt = np.array([x, 0.7])

        # Shin leaves the knee at angle k from the thigh
        up = np.array([0.0, -1.0])
        ankle = knee_pt + SEGMENT * _rotate(up, k)

        # Upper arm leaves the shoulder at angle s from the torso
        down = np.array([0.0, 1.0])
        upper = _rotate(down, s)
        elbow_pt = shoulder_pt + SEGMENT * upper
        wrist = elbow_pt + SEGMENT * _rotate(-upper, e)

        lm[P[f"{side}_SHOULDER"], :2] = shoulder_pt
        lm[P[f"{side}_HIP"], :2] = hip
        lm[P[f"{side}_KNEE"], :2] = knee_pt
        lm[P[f"{side}_ANKLE"], :2] = ankle
        lm[P[f"{side}_FOOT_INDEX"], :2] = ankle + np.array([0.05, 0.0])
        lm[P[f"{side}_ELBOW"], :2] = elbow_pt
        lm[P[f"{side}_WRIST"], :2] = wrist

    return lm.tolist()
