# formcoach/client/rep_logic.py

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from formcoach.client.exercises import ExerciseProfile
from formcoach.client.pose_utils import Keypoint, SIDES, joint_angle

logger = logging.getLogger(__name__)

# Below this pose confidence the state machine freezes
CONFIDENCE_THRESHOLD = 0.6

PHASE_NEUTRAL = "neutral"
PHASE_DOWN = "down"
PHASE_GOING_DOWN = "going_down"
PHASE_UP = "up"
PHASE_GOING_UP = "going_up"


class RepStage(str, Enum):
    START = "START"
    DOWN = "DOWN"
    GOING_UP = "GOING_UP"
    UP = "UP"
    GOING_DOWN = "GOING_DOWN"
    COUNTED = "COUNTED"     # transient, never stored


@dataclass
class RepState:
    exercise_id: Optional[str] = None
    stage: RepStage = RepStage.START
    angle_buffer: List[float] = field(default_factory=list)
    last_angle: Optional[float] = None
    locked_limb: Optional[str] = None     # "left" / "right", chosen once per session
    rep_count: int = 0


@dataclass
class RepUpdate:
    stage: RepStage
    phase: str
    rep_complete: bool


def label_phase(angle: float, profile: ExerciseProfile) -> str:
    """Angle-banded phase label, independent of the current stage."""
    if angle < profile.down:
        return PHASE_DOWN
    if angle > profile.up:
        return PHASE_UP
    return PHASE_GOING_UP if angle > profile.split_angle else PHASE_GOING_DOWN


def next_stage(
    stage: RepStage,
    angle: float,
    confidence: float,
    profile: ExerciseProfile,
) -> Tuple[RepStage, str, bool]:
    """
    One tick of the rep state machine.

    Returns (next_stage, phase, rep_complete). A rep completes only on the
    GOING_UP -> UP edge. At most one transition happens per tick: an angle
    that jumps over the transition band moves DOWN -> GOING_UP (or
    UP -> GOING_DOWN) first.
    """
    if stage == RepStage.COUNTED:
        stage = RepStage.START

    if confidence < CONFIDENCE_THRESHOLD:
        return stage, PHASE_NEUTRAL, False

    phase = label_phase(angle, profile)
    below = angle < profile.down
    above = angle > profile.up
    rep_complete = False

    if stage == RepStage.START:
        if below:
            stage = RepStage.DOWN

    elif stage == RepStage.DOWN:
        if not below:
            stage = RepStage.GOING_UP

    elif stage == RepStage.GOING_UP:
        if above:
            stage = RepStage.UP
            rep_complete = True
        elif below:
            # aborted rep
            stage = RepStage.DOWN

    elif stage == RepStage.UP:
        if not above:
            stage = RepStage.GOING_DOWN

    elif stage == RepStage.GOING_DOWN:
        if below:
            stage = RepStage.DOWN
        elif above:
            stage = RepStage.UP

    if stage == RepStage.COUNTED:
        stage = RepStage.START

    return stage, phase, rep_complete


def update_rep_state(
    state: RepState,
    angle: float,
    confidence: float,
    profile: ExerciseProfile,
) -> RepUpdate:
    """Advance `state` in place by one frame."""
    stage, phase, rep_complete = next_stage(state.stage, angle, confidence, profile)

    if stage != state.stage:
        logger.debug("stage %s -> %s at %.1f deg", state.stage.value, stage.value, angle)

    state.stage = stage
    state.last_angle = angle
    if rep_complete:
        state.rep_count += 1
        logger.info("rep %d completed (%s)", state.rep_count, profile.exercise_id)

    return RepUpdate(stage=stage, phase=phase, rep_complete=rep_complete)


def choose_limb(keypoints: Dict[str, Keypoint], joint: str) -> Optional[str]:
    """
    Pick the better-tracked side for `joint` among the sides whose angle can
    actually be measured. Returns None when neither side is usable, so the
    caller can retry on a later frame.
    """
    scores = {}
    for side in SIDES:
        reading = joint_angle(keypoints, joint, side)
        if reading is not None:
            scores[side] = reading[1]
    if not scores:
        return None
    # ties go to the left side
    return max(SIDES, key=lambda side: scores.get(side, -1.0))
