"""Tests for the rep phase state machine."""

import pytest

from pose_coach.exercises import get_profile
from pose_coach.rep_logic import RepCounter, RepPhase, RepState, advance_phase, update_rep_state


def count_reps(exercise, angles):
    counter = RepCounter(get_profile(exercise))
    for angle in angles:
        counter.update(angle)
    return counter


class TestRepCounting:

    @pytest.mark.parametrize("angles, expected", [
        ([180, 90, 180], 1),
        ([180, 90, 120, 90, 180], 1),       # bounce inside the band
        ([180, 130, 180], 0),               # never crossed threshold_low
        ([180, 90, 180, 90, 180, 90, 180], 3),
        ([90, 180], 1),                     # starting mid-rep still counts once
        ([180, 90, 150, 100, 150], 0),      # never got back to rest
    ])
    def test_knee_bends(self, angles, expected):
        assert count_reps("knee-bends", angles).rep_count == expected

    def test_missing_angles_are_skipped(self):
        counter = count_reps("knee-bends", [180, None, 90, None, None, 180])
        assert counter.rep_count == 1
        assert counter.phase is RepPhase.HIGH

    def test_inverted_shoulder_raises(self):
        counter = count_reps("shoulder-raises", [10, 60, 95, 70, 20])
        assert counter.rep_count == 1
        # Half raise never reaches the excursion
        assert count_reps("shoulder-raises", [10, 60, 30]).rep_count == 0

    def test_noop_profile_never_counts(self):
        counter = count_reps("unknown", [180, 10, 180, 10, 180])
        assert counter.rep_count == 0
        assert counter.phase is RepPhase.START

    def test_reset(self):
        counter = count_reps("knee-bends", [180, 90, 180])
        counter.reset()
        assert counter.rep_count == 0
        assert counter.phase is RepPhase.START


class TestAdvancePhase:

    def test_transitions(self):
        profile = get_profile("knee-bends")
        assert advance_phase(RepPhase.START, 170, profile) == (RepPhase.START, False)
        assert advance_phase(RepPhase.START, 95, profile) == (RepPhase.LOW, False)
        assert advance_phase(RepPhase.LOW, 130, profile) == (RepPhase.LOW, False)
        assert advance_phase(RepPhase.LOW, 160, profile) == (RepPhase.HIGH, True)
        assert advance_phase(RepPhase.HIGH, 170, profile) == (RepPhase.HIGH, False)
        assert advance_phase(RepPhase.HIGH, 95, profile) == (RepPhase.LOW, False)

    def test_thresholds_are_strict(self):
        profile = get_profile("knee-bends")
        assert advance_phase(RepPhase.START, 100, profile) == (RepPhase.START, False)
        assert advance_phase(RepPhase.LOW, 155, profile) == (RepPhase.LOW, False)

    def test_update_rep_state(self):
        profile = get_profile("elbow-flexion")
        state = RepState()
        assert not update_rep_state(state, 80, profile)
        assert update_rep_state(state, 170, profile)
        assert state.rep_count == 1
