"""Tests for joint angle computation from pose landmarks."""

import math

import numpy as np
import pytest

from pose_coach.pose_utils import (
    JOINT_NAMES,
    AngleSet,
    Landmark,
    angle_between,
    as_pose_array,
    calculate_angles,
)
from tests.pose_factory import make_landmarks


# ============================================================================
# Test: angle_between
# ============================================================================

class TestAngleBetween:

    def test_right_angle(self):
        assert angle_between([1, 0, 0], [0, 0, 0], [0, 1, 0]) == 90

    def test_colinear_opposite_is_180(self):
        assert angle_between([-1, 0, 0], [0, 0, 0], [1, 0, 0]) == 180

    def test_colinear_same_direction_is_0(self):
        assert angle_between([1, 0, 0], [0, 0, 0], [2, 0, 0]) == 0

    def test_zero_length_vector_is_missing(self):
        assert angle_between([0, 0, 0], [0, 0, 0], [1, 0, 0]) is None

    def test_non_finite_coordinate_is_missing(self):
        assert angle_between([math.nan, 0, 0], [0, 0, 0], [1, 0, 0]) is None

    def test_uses_only_xyz(self):
        # A trailing visibility value must not change the angle
        assert angle_between([1, 0, 0, 0.2], [0, 0, 0, 0.9], [0, 1, 0, 0.1]) == 90

    def test_result_is_integer_in_range(self):
        rng = np.random.RandomState(7)
        for _ in range(200):
            a, b, c = rng.randn(3, 3)
            angle = angle_between(a, b, c)
            assert isinstance(angle, int)
            assert 0 <= angle <= 180


# ============================================================================
# Test: calculate_angles
# ============================================================================

class TestCalculateAngles:

    def test_standing_pose(self):
        angles = calculate_angles(make_landmarks())
        assert angles.left_knee == 180
        assert angles.right_knee == 180
        assert angles.left_hip == 180
        assert angles.left_elbow == 180
        assert angles.left_shoulder == 0

    @pytest.mark.parametrize("knee", [45, 85, 90, 120, 160])
    def test_knee_angle(self, knee):
        angles = calculate_angles(make_landmarks(knee=knee))
        assert angles.left_knee == knee
        assert angles.right_knee == knee

    def test_sides_independent(self):
        angles = calculate_angles(make_landmarks(knee=100, right_knee=150))
        assert angles.left_knee == 100
        assert angles.right_knee == 150

    def test_shoulder_and_elbow(self):
        angles = calculate_angles(make_landmarks(shoulder=90, elbow=60))
        assert angles.left_shoulder == 90
        assert angles.left_elbow == 60

    @pytest.mark.parametrize("count", [0, 1, 32, 34])
    def test_wrong_landmark_count_is_rejected(self, count):
        frame = [[0.5, 0.5, 0.0, 1.0]] * count
        assert calculate_angles(frame) is None

    def test_none_and_garbage_are_rejected(self):
        assert calculate_angles(None) is None
        assert calculate_angles("not a pose") is None
        assert calculate_angles([[1, 2], [3]]) is None

    def test_accepts_landmark_objects(self):
        frame = [Landmark(*row) for row in make_landmarks(knee=90)]
        assert calculate_angles(frame).left_knee == 90

    def test_accepts_numpy_array(self):
        frame = np.asarray(make_landmarks(knee=120))
        np.testing.assert_array_equal(as_pose_array(frame), frame)
        assert calculate_angles(frame).left_knee == 120

    def test_visibility_gate(self):
        frame = make_landmarks(knee=90, visibility=0.3)
        # Gating off by default
        assert calculate_angles(frame).left_knee == 90
        gated = calculate_angles(frame, min_visibility=0.5)
        assert all(value is None for _, value in gated)


# ============================================================================
# Test: AngleSet
# ============================================================================

class TestAngleSet:

    def test_get_known_and_unknown(self):
        angles = AngleSet(left_knee=90)
        assert angles.get("left_knee") == 90
        assert angles.get("right_knee") is None
        with pytest.raises(KeyError):
            angles.get("left_wrist")

    def test_as_dict_covers_all_joints(self):
        assert list(AngleSet().as_dict()) == list(JOINT_NAMES)
        assert len(JOINT_NAMES) == 10
