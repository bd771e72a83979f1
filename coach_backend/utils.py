"""
Rule-based coaching used when the LLM is unavailable.
"""

from typing import Dict


def generate_fallback_coaching(summary: Dict) -> Dict:
    """Produce a coaching response dict from a session summary without an LLM.

    Args:
        summary: Session summary fields (``exercise_name``, ``rep_count``,
            ``overall_score``, ``grade``, ...).

    Returns:
        Dict with ``exercise``, ``main_issue``, ``severity`` and ``message``.
    """
    exercise = summary.get("exercise_name") or "unknown"
    reps = int(summary.get("rep_count") or 0)
    grade = summary.get("grade")

    if grade is None:
        return {
            "exercise": exercise,
            "main_issue": "no_data",
            "severity": "high",
            "message": "We couldn't see you clearly. Check your camera position and try again.",
        }
    if reps == 0:
        return {
            "exercise": exercise,
            "main_issue": "few_reps",
            "severity": "medium",
            "message": "Try a few full repetitions next time, at your own pace.",
        }
    if grade in ("A", "B"):
        return {
            "exercise": exercise,
            "main_issue": None,
            "severity": "none",
            "message": f"Great work on those {reps} reps. Keep that steady form.",
        }
    if grade in ("C", "D"):
        return {
            "exercise": exercise,
            "main_issue": "form",
            "severity": "low",
            "message": "Good effort. Next time, move slowly through the full range.",
        }
    return {
        "exercise": exercise,
        "main_issue": "form",
        "severity": "medium",
        "message": "Take it slower next time and focus on controlled movement.",
    }
