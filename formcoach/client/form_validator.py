# formcoach/client/form_validator.py

from dataclasses import dataclass
from typing import Optional

from formcoach.client.exercises import ExerciseProfile

GOOD_FORM_MESSAGE = "Good form!"
NO_CRITERIA_MESSAGE = "No criteria available for this exercise"


@dataclass
class ValidationResult:
    is_correct: bool
    message: str
    has_criteria: bool = True


def validate_form(
    primary_angle: float,
    secondary_angle: Optional[float],
    profile: Optional[ExerciseProfile],
    phase: str,
) -> ValidationResult:
    """
    Judge the current pose against the exercise thresholds.

    Only the "up" and "down" phases are judged. A secondary constraint
    failure wins over the primary message; the two are never combined.
    Without a profile the check fails closed.
    """
    if profile is None:
        return ValidationResult(False, NO_CRITERIA_MESSAGE, has_criteria=False)

    if phase not in ("up", "down"):
        return ValidationResult(True, GOOD_FORM_MESSAGE)

    is_correct = True
    message = GOOD_FORM_MESSAGE
    joint = profile.primary_joint

    if phase == "up":
        target = profile.up - profile.tolerance
        if primary_angle < target:
            is_correct = False
            message = (
                f"Extend your {joint} more: {round(target - primary_angle)}° "
                f"short of {round(target)}°"
            )
    else:
        target = profile.down + profile.tolerance
        if primary_angle > target:
            is_correct = False
            message = (
                f"Go lower: bend your {joint} {round(primary_angle - target)}° "
                f"more to reach {round(target)}°"
            )

    secondary = profile.secondary
    if secondary is not None and secondary_angle is not None:
        expected = secondary.expected(phase)
        if abs(secondary_angle - expected) > secondary.tolerance:
            is_correct = False
            message = secondary.message(phase)

    return ValidationResult(is_correct, message)
