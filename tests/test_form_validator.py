import pytest

from formcoach.client.exercises import EXERCISE_PROFILES, get_exercise_profile
from formcoach.client.form_validator import (
    GOOD_FORM_MESSAGE,
    NO_CRITERIA_MESSAGE,
    validate_form,
)

SQUAT = EXERCISE_PROFILES["squat"]


def test_up_phase_boundary_is_inclusive():
    limit = SQUAT.up - SQUAT.tolerance
    assert validate_form(limit - 1, None, SQUAT, "up").is_correct is False
    assert validate_form(limit, None, SQUAT, "up").is_correct is True


def test_up_phase_message_names_delta_and_target():
    result = validate_form(135, None, SQUAT, "up")
    assert "10°" in result.message
    assert "145°" in result.message


def test_down_phase_boundary():
    limit = SQUAT.down + SQUAT.tolerance
    assert validate_form(limit, None, SQUAT, "down").is_correct is True
    result = validate_form(limit + 5, None, SQUAT, "down")
    assert result.is_correct is False
    assert "Go lower" in result.message
    assert "5°" in result.message


@pytest.mark.parametrize("phase", ["going_up", "going_down", "neutral"])
def test_transition_phases_are_not_judged(phase):
    result = validate_form(10, 10, SQUAT, phase)
    assert result.is_correct is True
    assert result.message == GOOD_FORM_MESSAGE


def test_secondary_failure_overrides_primary_message():
    result = validate_form(130, 120, SQUAT, "down")
    assert result.is_correct is False
    assert result.message == SQUAT.secondary.down_message


def test_secondary_failure_alone_fails():
    result = validate_form(165, 140, SQUAT, "up")
    assert result.is_correct is False
    assert result.message == SQUAT.secondary.up_message


def test_secondary_within_tolerance_passes():
    result = validate_form(85, 80 + SQUAT.secondary.tolerance, SQUAT, "down")
    assert result.is_correct is True
    assert result.message == GOOD_FORM_MESSAGE


def test_unknown_exercise_fails_closed():
    profile = get_exercise_profile("burpee")
    assert profile is None
    result = validate_form(170, None, profile, "up")
    assert result.is_correct is False
    assert result.has_criteria is False
    assert result.message == NO_CRITERIA_MESSAGE
