import math

from formcoach.client.pose_utils import Keypoint


def _at(origin, length, angle_deg, flip_y=False):
    """Point at `length` from `origin`, `angle_deg` away from the vertical axis."""
    rad = math.radians(angle_deg)
    dy = math.cos(rad) * length
    return origin[0] + math.sin(rad) * length, origin[1] + (-dy if flip_y else dy)


def squat_pose(knee, hip=None, score=0.9):
    """Both legs with the given knee angle; hip angle defaults to the knee angle."""
    hip = knee if hip is None else hip
    kps = {}
    for side, x0 in (("left", 100.0), ("right", 300.0)):
        hip_pt = (x0, 100.0)
        knee_pt = (x0, 200.0)
        # knee -> hip points straight up, ankle swings away by `knee` degrees
        ankle_pt = _at(knee_pt, 100.0, knee, flip_y=True)
        # hip -> knee points straight down, shoulder swings away by `hip` degrees
        shoulder_pt = _at(hip_pt, 100.0, hip)
        for name, pt in (("shoulder", shoulder_pt), ("hip", hip_pt),
                         ("knee", knee_pt), ("ankle", ankle_pt)):
            kps[f"{side}_{name}"] = Keypoint(f"{side}_{name}", pt[0], pt[1], score)
    return kps


def pushup_pose(elbow, shoulder=20.0, left_score=0.9, right_score=0.9):
    kps = {}
    for side, x0, score in (("left", 100.0, left_score), ("right", 300.0, right_score)):
        shoulder_pt = (x0, 100.0)
        elbow_pt = (x0, 200.0)
        wrist_pt = _at(elbow_pt, 100.0, elbow, flip_y=True)
        hip_pt = _at(shoulder_pt, 100.0, shoulder)
        for name, pt in (("shoulder", shoulder_pt), ("elbow", elbow_pt),
                         ("wrist", wrist_pt), ("hip", hip_pt)):
            kps[f"{side}_{name}"] = Keypoint(f"{side}_{name}", pt[0], pt[1], score)
    return kps

