"""Tests for LLM coaching and the rule-based fallback."""

import pytest

from coach_backend import llm_agent
from coach_backend.llm_agent import _parse_llm_json, analyze_session_with_llm
from coach_backend.utils import generate_fallback_coaching


class FakeLLM:

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error

    def invoke(self, messages):
        if self.error:
            raise self.error
        return type("Reply", (), {"content": self.content})()


SUMMARY = {
    "exercise_name": "squats",
    "rep_count": 5,
    "overall_score": 74,
    "grade": "C",
    "range_of_motion": 80,
    "duration_seconds": 31.5,
}


class TestParseLLMJson:

    def test_plain(self):
        assert _parse_llm_json('{"message": "hi"}') == {"message": "hi"}

    def test_fenced(self):
        raw = '```json\n{"message": "hi", "severity": "low"}\n```'
        assert _parse_llm_json(raw)["severity"] == "low"

    def test_embedded_in_prose(self):
        assert _parse_llm_json('Sure! {"message": "hi"} Hope that helps')["message"] == "hi"

    def test_garbage(self):
        assert _parse_llm_json("no json here") is None


class TestAnalyzeSession:

    def test_no_api_key(self, monkeypatch):
        monkeypatch.setattr(llm_agent, "_get_llm", lambda: None)
        assert analyze_session_with_llm(SUMMARY) is None

    def test_fills_defaults(self, monkeypatch):
        fake = FakeLLM('{"message": "Nice and slow next time."}')
        monkeypatch.setattr(llm_agent, "_get_llm", lambda: fake)
        result = analyze_session_with_llm(SUMMARY)
        assert result == {
            "message": "Nice and slow next time.",
            "exercise": "squats",
            "severity": "none",
            "main_issue": None,
        }

    def test_call_failure(self, monkeypatch):
        fake = FakeLLM(error=TimeoutError("slow"))
        monkeypatch.setattr(llm_agent, "_get_llm", lambda: fake)
        assert analyze_session_with_llm(SUMMARY) is None

    def test_unparseable_reply(self, monkeypatch):
        monkeypatch.setattr(llm_agent, "_get_llm", lambda: FakeLLM("I can't help with that"))
        assert analyze_session_with_llm(SUMMARY) is None


class TestFallbackCoaching:

    @pytest.mark.parametrize("overrides, issue, severity", [
        ({"grade": None, "overall_score": 0}, "no_data", "high"),
        ({"rep_count": 0}, "few_reps", "medium"),
        ({"grade": "A"}, None, "none"),
        ({"grade": "C"}, "form", "low"),
        ({"grade": "F"}, "form", "medium"),
    ])
    def test_branches(self, overrides, issue, severity):
        result = generate_fallback_coaching({**SUMMARY, **overrides})
        assert result["main_issue"] == issue
        assert result["severity"] == severity
        assert result["exercise"] == "squats"
        assert result["message"]
