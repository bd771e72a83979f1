# pose_coach/config.py
"""
Runtime configuration for the pose coach core.

Values are read once from the environment (a ``.env`` file in the working
directory is honoured) and fall back to the defaults below.
"""

import os

import dotenv

dotenv.load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


# ---------- Frame buffer ----------
# Last N frame records kept for scoring (~30 s at 30 fps).
FRAME_BUFFER_CAPACITY: int = _env_int("POSE_COACH_BUFFER_CAPACITY", 1000)

# Seconds added to a non-increasing upstream timestamp.
TIMESTAMP_EPSILON: float = _env_float("POSE_COACH_TIMESTAMP_EPSILON", 0.001)

# ---------- Landmarks ----------
NUM_LANDMARKS: int = 33

# 0.0 disables visibility gating: every joint produces an angle.
MIN_LANDMARK_VISIBILITY: float = _env_float("POSE_COACH_MIN_VISIBILITY", 0.0)

# ---------- Logging ----------
LOG_LEVEL: str = os.getenv("POSE_COACH_LOG_LEVEL", "INFO").upper()
