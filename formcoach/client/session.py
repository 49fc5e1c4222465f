# formcoach/client/session.py

import itertools
import logging
import time
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

from formcoach.backend.models import AdvisoryPayload
from formcoach.client.config import settings
from formcoach.client.exercises import get_exercise_profile
from formcoach.client.feedback import AdvisoryWorker, FeedbackArbiter, FeedbackEvent
from formcoach.client.form_validator import validate_form
from formcoach.client.pose_utils import Keypoint, SIDES, combine_sides, joint_angle, smooth
from formcoach.client.rep_logic import (
    CONFIDENCE_THRESHOLD,
    PHASE_NEUTRAL,
    RepState,
    choose_limb,
    update_rep_state,
)
from formcoach.client.speech import SpeechQueue

logger = logging.getLogger(__name__)

PHASE_HISTORY_SIZE = 5
REP_PULSE_SECONDS = 2.0

NOT_VISIBLE_MESSAGE = "Position yourself in camera view"
LOW_CONFIDENCE_MESSAGE = "Hold on, I can't see you clearly"

_tickets = itertools.count(1)


class DetectionSession:
    """
    One exercise set: owns the rep state, the angle buffer and the feedback
    history, and runs the whole pipeline once per video frame.

    Changing exercise means `stop()` and a new session.
    """

    def __init__(
        self,
        exercise_id: str,
        speech: SpeechQueue,
        request_feedback: Optional[Callable[[AdvisoryPayload], str]] = None,
        window_size: int = settings.smoothing_window,
        clock: Callable[[], float] = time.time,
    ):
        self.profile = get_exercise_profile(exercise_id)
        if self.profile is None:
            logger.warning("No exercise profile for %r, form checks will fail closed", exercise_id)

        self.exercise_id = exercise_id
        self.speech = speech
        self.window_size = window_size
        self._clock = clock

        self.state = RepState(exercise_id=exercise_id)
        self.arbiter = FeedbackArbiter()

        self.active = True
        self.phase = PHASE_NEUTRAL
        self.phase_history: List[str] = []
        self.last_event: Optional[FeedbackEvent] = None
        self.advice: Optional[str] = None
        self._rep_pulse_until: Optional[float] = None

        # guards active/_ticket against the advisory worker thread
        self._lock = Lock()
        self._ticket: Optional[int] = next(_tickets)
        self._worker: Optional[AdvisoryWorker] = None
        if request_feedback is not None:
            self._worker = AdvisoryWorker(request_feedback, self.on_advice)

    # ---------- outputs ----------

    @property
    def rep_count(self) -> int:
        return self.state.rep_count

    def rep_just_completed(self, now: Optional[float] = None) -> bool:
        if self._rep_pulse_until is None:
            return False
        if now is None:
            now = self._clock()
        return now < self._rep_pulse_until

    # ---------- per frame ----------

    def process_frame(self, keypoints: Dict[str, Keypoint], now: Optional[float] = None) -> Optional[FeedbackEvent]:
        """
        Run one frame through the pipeline. Returns None when the session is
        stopped or nobody was detected (rep state is left untouched).
        """
        if not self.active or not keypoints:
            return None
        if now is None:
            now = self._clock()

        if self.profile is None:
            result = validate_form(0.0, None, None, PHASE_NEUTRAL)
            event = FeedbackEvent(result.message, result.is_correct, PHASE_NEUTRAL, now)
            return self._publish(event, False, now)

        reading = self._primary_reading(keypoints)
        if reading is None:
            # no usable angle: keep it out of the moving average
            event = FeedbackEvent(NOT_VISIBLE_MESSAGE, True, PHASE_NEUTRAL, now)
            return self._publish(event, False, now)

        raw_angle, confidence = reading
        if confidence < CONFIDENCE_THRESHOLD:
            # frozen: the unreliable angle never reaches the moving average
            event = FeedbackEvent(LOW_CONFIDENCE_MESSAGE, True, PHASE_NEUTRAL, now)
            return self._publish(event, False, now)

        angle = smooth(raw_angle, self.state.angle_buffer, self.window_size)
        update = update_rep_state(self.state, angle, confidence, self.profile)

        result = validate_form(angle, self._secondary_angle(keypoints), self.profile, update.phase)
        message = result.message
        if update.rep_complete:
            self._rep_pulse_until = now + REP_PULSE_SECONDS
            if result.is_correct:
                message = f"Rep {self.state.rep_count} complete. Great job!"
            else:
                message = f"Rep {self.state.rep_count} complete. {result.message}"

        logger.debug("angle %.1f conf %.2f phase %s reps %d",
                     angle, confidence, update.phase, self.state.rep_count)

        event = FeedbackEvent(message, result.is_correct, update.phase, now)
        return self._publish(event, update.rep_complete, now)

    def _publish(self, event: FeedbackEvent, rep_complete: bool, now: float) -> FeedbackEvent:
        if event.phase != self.phase:
            self.phase_history = (self.phase_history + [event.phase])[-PHASE_HISTORY_SIZE:]
        self.phase = event.phase
        self.last_event = event

        payload = self.arbiter.observe(
            event,
            rep_complete,
            self.exercise_id,
            self.profile.name if self.profile else None,
            self.state.rep_count,
            now,
        )
        if payload is not None and self._worker is not None:
            self._worker.submit(self._ticket, payload)

        self.speech.offer(event.message, rep_complete=rep_complete, is_correct=event.is_correct, now=now)
        return event

    # ---------- joint readings ----------

    def _side(self, keypoints: Dict[str, Keypoint]) -> Optional[str]:
        # one-shot choice, kept for the whole session
        if self.state.locked_limb is None:
            self.state.locked_limb = choose_limb(keypoints, self.profile.primary_joint)
            if self.state.locked_limb is not None:
                logger.info("tracking %s side for %s", self.state.locked_limb, self.exercise_id)
        return self.state.locked_limb

    def _reading(self, keypoints: Dict[str, Keypoint], joint: str) -> Optional[Tuple[float, float]]:
        if self.profile.lock_limb:
            side = self._side(keypoints)
            if side is None:
                return None
            return joint_angle(keypoints, joint, side)
        return combine_sides([joint_angle(keypoints, joint, side) for side in SIDES])

    def _primary_reading(self, keypoints):
        return self._reading(keypoints, self.profile.primary_joint)

    def _secondary_angle(self, keypoints) -> Optional[float]:
        if self.profile.secondary is None:
            return None
        reading = self._reading(keypoints, self.profile.secondary.joint)
        return reading[0] if reading else None

    # ---------- advisory results ----------

    def on_advice(self, ticket: int, payload: AdvisoryPayload, text: str):
        """Called from the advisory worker thread."""
        with self._lock:
            if not self.active or ticket != self._ticket:
                logger.debug("discarding late advice: %s", text)
                return
            self.advice = text
            is_correct = self.last_event.is_correct if self.last_event else True
            self.speech.offer(text, rep_complete=payload.rep_complete, is_correct=is_correct)

    # ---------- teardown ----------

    def stop(self):
        """Stop consuming frames, drop in-flight advice, silence narration."""
        with self._lock:
            if not self.active:
                return
            self.active = False
            self._ticket = None
            self.speech.cancel()
        if self._worker is not None:
            self._worker.stop(timeout=0.0)
        logger.info("session %s stopped after %d reps", self.exercise_id, self.state.rep_count)
