"""End-to-end tests for a pose coach session."""

import pytest

from pose_coach.feedback import ADJUST_POSITION_MESSAGE, REP_COMPLETE_MESSAGE, VisualCue
from pose_coach.rep_logic import RepPhase
from pose_coach.session import ExerciseSession, SessionClosedError
from tests.pose_factory import make_landmarks


def knee_bend_session(knees, **kwargs):
    session = ExerciseSession("knee-bends", **kwargs)
    events = [session.process_frame(make_landmarks(knee=k), timestamp=i * 0.5)
              for i, k in enumerate(knees)]
    return session, events


class TestExerciseSession:

    def test_one_knee_bend(self):
        session, events = knee_bend_session([180, 85, 175])
        assert session.rep_count == 1
        assert session.phase is RepPhase.HIGH
        assert events[-1].message == REP_COMPLETE_MESSAGE

        summary = session.end()
        assert summary.exercise_name == "knee-bends"
        assert summary.rep_count == 1
        assert summary.range_of_motion == 95
        assert summary.duration_seconds == 1.0
        assert summary.grade is not None

    def test_several_reps(self):
        session, _ = knee_bend_session([180, 160, 130, 100, 85, 100, 130, 160, 175] * 3)
        assert session.rep_count == 3
        quality = session.quality()
        assert quality.frame_count == 27
        assert 0 <= quality.overall_score <= 100

    def test_invalid_frame_is_not_buffered(self):
        session, _ = knee_bend_session([180, 85])
        event = session.process_frame([[0.5, 0.5, 0.0, 1.0]] * 12)
        assert event.message == ADJUST_POSITION_MESSAGE
        assert event.visual_cue is VisualCue.ADJUST
        assert len(session.buffer) == 2
        assert session.phase is RepPhase.LOW
        assert session.last_angles.left_knee == 85

    def test_buffer_is_bounded(self):
        session, _ = knee_bend_session([180, 85, 175] * 10, capacity=8)
        assert len(session.buffer) == 8
        assert session.rep_count == 10

    def test_duplicate_timestamps_stay_increasing(self):
        session = ExerciseSession("knee-bends")
        for _ in range(3):
            session.process_frame(make_landmarks(), timestamp=5.0)
        stamps = [r.timestamp for r in session.buffer.records()]
        assert stamps[0] == 5.0
        assert stamps[1] > stamps[0] and stamps[2] > stamps[1]

    def test_clock_used_without_timestamp(self):
        ticks = iter([100.0, 102.0, 104.0])
        session = ExerciseSession("knee-bends", clock=lambda: next(ticks))
        for knee in (180, 85, 175):
            session.process_frame(make_landmarks(knee=knee))
        assert session.end().duration_seconds == 4.0

    def test_missing_timestamps_inside_a_timed_stream(self):
        session = ExerciseSession("knee-bends", clock=lambda: 1.7e9)
        for knee, ts in zip((180, 130, 85, 130, 175), (0.0, 0.5, float("nan"), None, 1.5)):
            session.process_frame(make_landmarks(knee=knee), timestamp=ts)
        stamps = [r.timestamp for r in session.buffer.records()]
        assert stamps[2] == pytest.approx(0.501)
        assert stamps[3] == pytest.approx(0.502)
        assert stamps[4] == 1.5
        assert session.end().duration_seconds == 1.5

    def test_explicit_duration(self):
        session, _ = knee_bend_session([180, 85, 175])
        assert session.end(duration_seconds=42.1234).duration_seconds == 42.123

    def test_unknown_exercise(self):
        session = ExerciseSession("jumping-jacks")
        assert session.profile.is_noop
        for knee in (180, 85, 175):
            session.process_frame(make_landmarks(knee=knee))
        summary = session.end()
        assert summary.exercise_name == "jumping-jacks"
        assert summary.rep_count == 0
        assert summary.overall_score == 0
        assert summary.grade is None
        assert summary.range_of_motion == 0
        assert summary.rom_by_joint["left_knee"].rom == 95

    def test_starting_position(self):
        session, _ = knee_bend_session([180])
        assert session.check_starting_position().is_valid
        session.process_frame(make_landmarks(knee=120))
        assert not session.check_starting_position().is_valid

    def test_visibility_gate(self):
        session = ExerciseSession("knee-bends", min_visibility=0.5)
        event = session.process_frame(make_landmarks(knee=85, visibility=0.2))
        assert event.message == ADJUST_POSITION_MESSAGE
        assert session.rep_count == 0

    def test_closed_session(self):
        session, _ = knee_bend_session([180, 85, 175])
        session.end()
        with pytest.raises(SessionClosedError):
            session.process_frame(make_landmarks())
        with pytest.raises(SessionClosedError):
            session.end()
        with pytest.raises(SessionClosedError):
            session.quality()


class TestSessionSummary:

    def test_as_dict(self):
        session, _ = knee_bend_session([180, 85, 175])
        payload = session.end().as_dict()
        assert set(payload) == {
            "exerciseName", "repCount", "overallScore", "grade",
            "rangeOfMotion", "durationSeconds", "romByJoint",
        }
        assert payload["romByJoint"]["left_knee"] == {"min": 85, "max": 180, "rom": 95}
