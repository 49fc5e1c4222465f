# formcoach/client/pose_utils.py

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Keypoint:
    name: str
    x: float
    y: float
    score: float


# Joint name -> (first outer point, vertex, second outer point), without the side prefix
JOINT_TRIPLES: Dict[str, Tuple[str, str, str]] = {
    "knee": ("hip", "knee", "ankle"),
    "elbow": ("shoulder", "elbow", "wrist"),
    "hip": ("shoulder", "hip", "knee"),
    "shoulder": ("elbow", "shoulder", "hip"),
}

SIDES = ("left", "right")

# Keypoints below this score are treated as not detected
MIN_KEYPOINT_SCORE = 0.3


def angle_between(a, b, c) -> float:
    """
    Returns the angle (in degrees) at point b formed by points a-b-c.
    Returns 0.0 when a point is missing or either vector has zero length.
    """
    if a is None or b is None or c is None:
        return 0.0

    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    c = np.asarray(c, dtype=float)

    v1 = a - b
    v2 = c - b

    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)
    if n1 == 0.0 or n2 == 0.0:
        return 0.0

    cosang = np.dot(v1, v2) / (n1 * n2)
    cosang = np.clip(cosang, -1.0, 1.0)
    return float(np.degrees(np.arccos(cosang)))


def smooth(value: float, buffer: List[float], window_size: int) -> float:
    """
    Moving average over the last `window_size` readings.
    `buffer` is mutated in place; the oldest reading is evicted first.
    """
    buffer.append(float(value))
    while len(buffer) > window_size:
        buffer.pop(0)
    return float(np.mean(buffer))


def visible(keypoints: Dict[str, Keypoint], name: str,
            min_score: float = MIN_KEYPOINT_SCORE) -> Optional[Keypoint]:
    kp = keypoints.get(name)
    if kp is None or kp.score < min_score:
        return None
    return kp


def joint_angle(
    keypoints: Dict[str, Keypoint],
    joint: str,
    side: str,
    min_score: float = MIN_KEYPOINT_SCORE,
) -> Optional[Tuple[float, float]]:
    """
    Angle of `joint` on one side of the body plus the mean score of the
    three keypoints used. None if any of them is missing or unreliable,
    or if the geometry is degenerate.
    """
    names = [f"{side}_{part}" for part in JOINT_TRIPLES[joint]]
    points = [visible(keypoints, n, min_score) for n in names]
    if any(p is None for p in points):
        return None

    first, vertex, last = points
    angle = angle_between((first.x, first.y), (vertex.x, vertex.y), (last.x, last.y))
    if angle == 0.0:
        return None

    return angle, float(np.mean([p.score for p in points]))


def combine_sides(readings: Sequence[Optional[Tuple[float, float]]]) -> Optional[Tuple[float, float]]:
    """Average the usable (angle, score) readings of both sides."""
    usable = [r for r in readings if r is not None]
    if not usable:
        return None
    angles, scores = zip(*usable)
    return float(np.mean(angles)), float(np.mean(scores))
