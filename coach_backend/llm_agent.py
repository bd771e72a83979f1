# coach_backend/llm_agent.py   short spoken coaching line for a finished session

import json
import logging
from typing import Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_groq import ChatGroq

from .config import GROQ_API_KEY, GROQ_MODEL_NAME, LLM_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_llm: Optional[ChatGroq] = None

SYSTEM_PROMPT = (
    "You are a friendly physiotherapy assistant voice inside a home rehab app.\n\n"
    "Your job: after EACH exercise session, give one short, clear spoken line that "
    "feels like a physiotherapist talking directly to the patient.\n\n"
    "Important style rules:\n"
    "- Sound warm, calm and encouraging. Patients may be in pain or recovering.\n"
    "- Talk directly to the patient as \"you\".\n"
    "- Keep the message VERY short: ideally 8-15 words, never more than 20.\n"
    "- No emojis, no hashtags, no medical diagnoses.\n"
    "- Never mention JSON, fields, data, scores as numbers, or that you are an AI.\n\n"
    "You receive the numeric summary of ONE finished session.\n"
    "You MUST respond with a SINGLE JSON object ONLY, no commentary, no markdown.\n\n"
    "JSON format:\n"
    "{\n"
    '  \"exercise\": string,          // exercise id\n'
    '  \"main_issue\": string | null, // e.g., \"low_range\", \"few_reps\", \"form\" or null\n'
    '  \"severity\": \"none\" | \"low\" | \"medium\" | \"high\",\n'
    '  \"message\": string            // short spoken feedback\n'
    "}\n\n"
    "Signals you get in the session JSON:\n"
    "- exercise_name: knee-bends, leg-raises, standing-march, hip-flexion, "
    "shoulder-raises, elbow-flexion, squats\n"
    "- rep_count: completed repetitions\n"
    "- overall_score: form quality 0..100 (bigger = better)\n"
    "- grade: A..F letter, or null when there was no usable data\n"
    "- range_of_motion: largest joint range of motion in degrees\n"
    "- duration_seconds: session length\n\n"
    "Guidelines for feedback:\n"
    "- Grade A or B -> severity=\"none\" and a short, warm reinforcement.\n"
    "- Grade C or D -> mention one thing to focus on next time.\n"
    "- Grade F or null -> gently suggest checking camera position or slowing down.\n"
    "- rep_count of 0 -> encourage them to try a few full repetitions.\n"
    "- Always keep the message short, natural, and easy to speak aloud.\n"
)


def _get_llm() -> Optional[ChatGroq]:
    """Build the Groq client on first use; None when no API key is configured."""
    global _llm
    if _llm is None and GROQ_API_KEY:
        _llm = ChatGroq(
            api_key=GROQ_API_KEY,
            model=GROQ_MODEL_NAME,
            temperature=0.2,
            max_retries=1,
            timeout=LLM_TIMEOUT_SECONDS,
        )
    return _llm


def _parse_llm_json(raw: str) -> Optional[Dict]:
    """First JSON object in a model reply: bare, fenced, or wrapped in prose."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text[:4].lower() == "json":
            text = text[4:]

    candidates = [text]
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def analyze_session_with_llm(summary: Dict) -> Optional[Dict]:
    """
    Calls the Groq LLM and returns the parsed JSON dict.
    If the LLM is not configured or fails for ANY reason -> return None and
    let the caller fall back to rule-based coaching.
    """
    llm = _get_llm()
    if llm is None:
        logger.info("No GROQ_API_KEY configured; skipping LLM coaching.")
        return None

    exercise = summary.get("exercise_name") or "unknown"
    messages = [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(
            content=(
                f"Exercise: {exercise}\n"
                f"Session JSON: {json.dumps(summary, ensure_ascii=False)}"
            )
        ),
    ]

    try:
        resp = llm.invoke(messages)
    except Exception as e:
        logger.warning("LLM call failed: %s", e)
        return None

    raw = resp.content if hasattr(resp, "content") else str(resp)
    parsed = _parse_llm_json(raw)
    if not isinstance(parsed, dict) or not parsed.get("message"):
        logger.error("Could not parse LLM JSON. Raw: %r", raw)
        return None

    parsed.setdefault("exercise", exercise)
    parsed.setdefault("severity", "none")
    parsed.setdefault("main_issue", None)
    return parsed
