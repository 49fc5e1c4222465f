# formcoach/client/speech.py

import logging
import time
from collections import deque
from threading import Lock, Thread
from typing import Callable, Deque, Optional

import pyttsx3

from formcoach.client.config import settings

logger = logging.getLogger(__name__)

# Routine chatter is spoken at most this often (seconds)
ROUTINE_INTERVAL = 5.0
# Form must be wrong this long before it may skip the routine debounce
PERSISTENT_ERROR_AFTER = 1.0

DoneCallback = Callable[[Optional[Exception]], None]


class Pyttsx3Narrator:
    """
    Speaks each message in its own short-lived thread with a fresh
    pyttsx3 engine, so the camera loop never blocks.
    `on_done` is always called once per `speak`, with the error if any.
    """

    def __init__(self, rate: int = settings.tts_rate):
        self.rate = rate
        self._engine = None

    def speak(self, text: str, on_done: DoneCallback):
        Thread(target=self._speak, args=(text, on_done), daemon=True).start()

    def _speak(self, text: str, on_done: DoneCallback):
        error = None
        try:
            engine = pyttsx3.init()
            self._engine = engine
            engine.setProperty("rate", self.rate)
            engine.say(text)
            engine.runAndWait()
            engine.stop()
        except Exception as e:
            error = e
        finally:
            self._engine = None
            on_done(error)

    def cancel(self):
        engine = self._engine
        if engine is not None:
            try:
                engine.stop()
            except Exception as e:
                logger.warning("TTS stop failed: %s", e)


class SpeechQueue:
    """
    FIFO of narration strings. At most one utterance is in flight; the next
    one starts from the previous one's completion callback.
    """

    def __init__(
        self,
        narrator,
        routine_interval: float = ROUTINE_INTERVAL,
        persistent_error_after: float = PERSISTENT_ERROR_AFTER,
        clock: Callable[[], float] = time.time,
    ):
        self.narrator = narrator
        self.routine_interval = routine_interval
        self.persistent_error_after = persistent_error_after
        self._clock = clock

        self._lock = Lock()
        self._pending: Deque[str] = deque()
        self.speaking = False
        self.last_spoken: Optional[str] = None
        self._last_spoken_time: Optional[float] = None
        self._incorrect_since: Optional[float] = None
        self._utterance = 0

    @property
    def pending(self):
        with self._lock:
            return list(self._pending)

    def offer(
        self,
        text: Optional[str],
        rep_complete: bool = False,
        is_correct: bool = True,
        now: Optional[float] = None,
    ) -> bool:
        """
        Called once per frame with the current feedback. Returns True if the
        text was queued for narration.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            if is_correct:
                self._incorrect_since = None
            elif self._incorrect_since is None:
                self._incorrect_since = now

            if not text or text == self.last_spoken:
                return False

            persistent_error = (
                self._incorrect_since is not None
                and now - self._incorrect_since >= self.persistent_error_after
            )
            routine_due = (
                self._last_spoken_time is None
                or now - self._last_spoken_time >= self.routine_interval
            )
            if not (rep_complete or persistent_error or routine_due):
                return False

            if persistent_error:
                # one narration per continuous second of bad form
                self._incorrect_since = now

            self._pending.append(text)
            self.last_spoken = text
            self._last_spoken_time = now

        self._pump()
        return True

    def _pump(self):
        with self._lock:
            if self.speaking or not self._pending:
                return
            text = self._pending.popleft()
            self.speaking = True
            self._utterance += 1
            utterance = self._utterance

        logger.debug("speaking: %s", text)
        try:
            self.narrator.speak(text, lambda error: self._on_done(utterance, text, error))
        except Exception as e:
            self._on_done(utterance, text, e)

    def _on_done(self, utterance: int, text: str, error: Optional[Exception]):
        with self._lock:
            if utterance != self._utterance:
                # finished after cancel(); a newer utterance owns the flag
                return
            self.speaking = False

        if error is not None:
            logger.warning("TTS error, dropping %r: %s", text, error)
        self._pump()

    def cancel(self):
        """Drop everything pending and stop the current utterance."""
        with self._lock:
            self._pending.clear()
            was_speaking = self.speaking
            self.speaking = False
            self._utterance += 1
            self._incorrect_since = None

        if was_speaking:
            self.narrator.cancel()
