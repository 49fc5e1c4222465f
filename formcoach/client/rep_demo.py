# formcoach/client/rep_demo.py

import logging
import os
import time

os.environ['TF_CPP_MIN_LOG_LEVEL'] = '3'

import cv2
import mediapipe as mp

from formcoach.client.config import settings
from formcoach.client.exercises import list_exercises
from formcoach.client.feedback import AdvisoryClient
from formcoach.client.pose_utils import Keypoint
from formcoach.client.session import DetectionSession
from formcoach.client.speech import Pyttsx3Narrator, SpeechQueue

logger = logging.getLogger(__name__)

# MediaPipe drawing helpers
mp_drawing = mp.solutions.drawing_utils
mp_pose = mp.solutions.pose

WINDOW_TITLE = "FormCoach"

# MediaPipe landmark index -> keypoint name
LANDMARK_NAMES = {
    11: "left_shoulder",
    12: "right_shoulder",
    13: "left_elbow",
    14: "right_elbow",
    15: "left_wrist",
    16: "right_wrist",
    23: "left_hip",
    24: "right_hip",
    25: "left_knee",
    26: "right_knee",
    27: "left_ankle",
    28: "right_ankle",
}


class PoseEstimator:
    def __init__(self):
        self.pose = mp_pose.Pose(
            static_image_mode=False,
            model_complexity=1,
            enable_segmentation=False,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )

    def process(self, frame_bgr):
        """
        Input: BGR frame from OpenCV.
        Output:
          - keypoints: {name: Keypoint} in pixel coordinates, empty if nobody detected
          - landmarks: pose_landmarks (for drawing), or None
        """
        h, w, _ = frame_bgr.shape
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.pose.process(rgb)

        if not results.pose_landmarks:
            return {}, None

        lm = results.pose_landmarks.landmark
        keypoints = {
            name: Keypoint(name, lm[idx].x * w, lm[idx].y * h, float(lm[idx].visibility))
            for idx, name in LANDMARK_NAMES.items()
        }
        return keypoints, results.pose_landmarks

    def close(self):
        self.pose.close()


def choose_exercise():
    profiles = list_exercises()
    print("Select exercise to track:")
    for i, profile in enumerate(profiles, start=1):
        print(f"  {i}. {profile.name}")
    choice = input(f"Enter 1-{len(profiles)}: ").strip()
    try:
        profile = profiles[int(choice) - 1]
    except (ValueError, IndexError):
        profile = profiles[0]
    print(f"\nYou selected: {profile.name}\n")
    return profile.exercise_id


def draw_overlay(frame, session, exercise_id):
    cv2.putText(frame, f"Exercise: {exercise_id}", (20, 30),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (200, 255, 200), 2)
    cv2.putText(frame, f"Reps: {session.rep_count}", (20, 60),
                cv2.FONT_HERSHEY_SIMPLEX, 0.9, (0, 255, 0), 2)
    cv2.putText(frame, f"Phase: {session.phase}", (20, 90),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 255), 2)

    if session.rep_just_completed():
        cv2.putText(frame, "Rep complete!", (20, 120),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 255, 0), 2)

    event = session.last_event
    if event is not None:
        color = (0, 200, 0) if event.is_correct else (0, 0, 255)
        cv2.putText(frame, event.message, (20, frame.shape[0] - 60),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)

    if session.advice:
        cv2.putText(frame, session.advice, (20, frame.shape[0] - 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 200, 255), 2)


def main():
    logging.basicConfig(level=settings.log_level)

    # 1) Choose exercise
    exercise_id = choose_exercise()

    # 2) Start camera
    cap = cv2.VideoCapture(0)
    if not cap.isOpened():
        logger.error("Could not open camera.")
        return

    # 3) Pose estimator, narration and the detection session
    pose_estimator = PoseEstimator()
    speech = SpeechQueue(Pyttsx3Narrator())
    session = DetectionSession(
        exercise_id,
        speech,
        request_feedback=AdvisoryClient().request_feedback,
    )

    # 4) 5-second countdown before tracking
    countdown_seconds = 5
    countdown_start = time.time()
    countdown_done = False

    print(f"Get into position... starting in {countdown_seconds} seconds.")

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break

            display_frame = frame.copy()

            # ---------- PHASE 1: Countdown ----------
            if not countdown_done:
                remaining = countdown_seconds - int(time.time() - countdown_start)
                if remaining > 0:
                    cv2.putText(display_frame, f"Get ready: {remaining}", (60, 100),
                                cv2.FONT_HERSHEY_SIMPLEX, 1.2, (0, 255, 255), 3)
                else:
                    countdown_done = True
                    print("Go! Tracking reps now.")

                cv2.imshow(WINDOW_TITLE, display_frame)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
                continue

            # ---------- PHASE 2: Pose + rep tracking ----------
            keypoints, landmarks = pose_estimator.process(frame)

            if landmarks:
                mp_drawing.draw_landmarks(
                    display_frame,
                    landmarks,
                    mp_pose.POSE_CONNECTIONS,
                    landmark_drawing_spec=mp_drawing.DrawingSpec(
                        color=(0, 255, 0), thickness=2, circle_radius=2
                    ),
                    connection_drawing_spec=mp_drawing.DrawingSpec(
                        color=(255, 0, 0), thickness=2
                    ),
                )

            session.process_frame(keypoints)
            draw_overlay(display_frame, session, exercise_id)

            cv2.imshow(WINDOW_TITLE, display_frame)
            if cv2.waitKey(1) & 0xFF == ord('q'):
                break
    finally:
        session.stop()
        pose_estimator.close()
        cap.release()
        cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
