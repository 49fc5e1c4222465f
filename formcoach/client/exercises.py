# formcoach/client/exercises.py

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class JointConstraint:
    """
    Auxiliary joint checked for form only (never drives rep counting).
    `up` / `down` are the expected angles in that phase.
    """
    joint: str
    up: float
    down: float
    tolerance: float
    up_message: str
    down_message: str

    def expected(self, phase: str) -> Optional[float]:
        if phase == "up":
            return self.up
        if phase == "down":
            return self.down
        return None

    def message(self, phase: str) -> str:
        return self.up_message if phase == "up" else self.down_message


@dataclass(frozen=True)
class ExerciseProfile:
    exercise_id: str
    name: str
    primary_joint: str
    up: float                  # primary angle above this = "up"
    down: float                # primary angle below this = "down"
    tolerance: float
    secondary: Optional[JointConstraint] = None
    lock_limb: bool = False    # track a single side chosen once per session
    transition_split: Optional[float] = None   # None -> midpoint of down/up

    @property
    def split_angle(self) -> float:
        if self.transition_split is not None:
            return self.transition_split
        return (self.up + self.down) / 2.0


# ----------------- Per-exercise thresholds (degrees) -----------------
EXERCISE_PROFILES: Dict[str, ExerciseProfile] = {
    "squat": ExerciseProfile(
        exercise_id="squat",
        name="Squat",
        primary_joint="knee",
        up=160.0,
        down=90.0,
        tolerance=15.0,
        # torso-to-thigh angle
        secondary=JointConstraint(
            joint="hip",
            up=170.0,
            down=80.0,
            tolerance=15.0,
            up_message="Stand up straighter",
            down_message="Keep your chest up and sit your hips back",
        ),
    ),
    "pushup": ExerciseProfile(
        exercise_id="pushup",
        name="Push-up",
        primary_joint="elbow",
        up=160.0,
        down=90.0,
        tolerance=10.0,
        # upper arm vs torso
        secondary=JointConstraint(
            joint="shoulder",
            up=10.0,
            down=30.0,
            tolerance=15.0,
            up_message="Keep your arms under your shoulders",
            down_message="Tuck your elbows closer to your body",
        ),
        lock_limb=True,
    ),
    "lunge": ExerciseProfile(
        exercise_id="lunge",
        name="Lunge",
        primary_joint="knee",
        up=160.0,
        down=90.0,
        tolerance=15.0,
        secondary=JointConstraint(
            joint="hip",
            up=170.0,
            down=90.0,
            tolerance=15.0,
            up_message="Drive your hips forward at the top",
            down_message="Keep your torso upright",
        ),
    ),
}


def get_exercise_profile(exercise_id: Optional[str]) -> Optional[ExerciseProfile]:
    # No default profile: unknown exercises must fail closed
    if not exercise_id:
        return None
    return EXERCISE_PROFILES.get(exercise_id)


def list_exercises() -> List[ExerciseProfile]:
    return list(EXERCISE_PROFILES.values())
