import pytest

from formcoach.client.pose_utils import (
    Keypoint,
    angle_between,
    combine_sides,
    joint_angle,
    smooth,
)

from tests.helpers import squat_pose


def test_right_angle():
    assert angle_between((1, 0), (0, 0), (0, 1)) == pytest.approx(90.0)


def test_straight_line_is_180():
    assert angle_between((-1, 0), (0, 0), (1, 0)) == pytest.approx(180.0)


def test_angle_is_symmetric_in_outer_points():
    a, v, c = (3.0, 7.5), (1.0, 2.0), (-4.0, 0.5)
    assert angle_between(a, v, c) == pytest.approx(angle_between(c, v, a))


def test_zero_length_vector_returns_zero():
    assert angle_between((1, 1), (1, 1), (5, 2)) == 0.0
    assert angle_between((5, 2), (1, 1), (1, 1)) == 0.0


def test_missing_point_returns_zero():
    assert angle_between(None, (0, 0), (1, 1)) == 0.0


def test_float_overshoot_is_clamped():
    # nearly collinear vectors can push the cosine just past 1.0
    assert angle_between((1e8, 1.0), (0, 0), (1e8, 1.0 + 1e-9)) == pytest.approx(0.0, abs=1e-3)


@pytest.mark.parametrize("window", [1, 3, 5])
def test_smooth_keeps_window_and_returns_mean_of_tail(window):
    values = [170, 150, 120, 95, 85, 90, 120]
    buffer = []
    for i, v in enumerate(values, start=1):
        result = smooth(v, buffer, window)
        assert len(buffer) <= window
        tail = values[max(0, i - window):i]
        assert result == pytest.approx(sum(tail) / len(tail))


def test_joint_angle_reads_knee():
    angle, score = joint_angle(squat_pose(100), "knee", "left")
    assert angle == pytest.approx(100.0)
    assert score == pytest.approx(0.9)


def test_joint_angle_missing_or_low_score_keypoint():
    kps = squat_pose(100)
    del kps["left_ankle"]
    assert joint_angle(kps, "knee", "left") is None

    kps = squat_pose(100)
    kps["right_hip"] = Keypoint("right_hip", 300.0, 100.0, 0.1)
    assert joint_angle(kps, "knee", "right") is None


def test_combine_sides_averages_usable_readings():
    assert combine_sides([(100.0, 0.8), None]) == (100.0, 0.8)
    angle, score = combine_sides([(100.0, 0.8), (120.0, 0.6)])
    assert angle == pytest.approx(110.0)
    assert score == pytest.approx(0.7)
    assert combine_sides([None, None]) is None
