# formcoach/client/feedback.py

import logging
from dataclasses import dataclass
from queue import Queue
from threading import Thread
from typing import Callable, List, Optional

import requests

from formcoach.backend.models import FALLBACK_MESSAGE, AdvisoryPayload
from formcoach.client.config import settings

logger = logging.getLogger(__name__)

# Minimum seconds between two advisory requests
ADVISORY_INTERVAL = 10.0
MAX_FORM_ISSUES = 3


@dataclass
class FeedbackEvent:
    message: str
    is_correct: bool
    phase: str
    timestamp: float


class FormIssuesHistory:
    """Most recent distinct form problems, oldest first."""

    def __init__(self, capacity: int = MAX_FORM_ISSUES):
        self.capacity = capacity
        self._items: List[str] = []

    def add(self, message: str) -> bool:
        if message in self._items:
            return False
        self._items.append(message)
        while len(self._items) > self.capacity:
            self._items.pop(0)
        return True

    def snapshot(self) -> List[str]:
        return list(self._items)

    def reset(self):
        self._items.clear()

    def __len__(self):
        return len(self._items)


class FeedbackArbiter:
    """
    Decides when the advisory coach is worth asking.

    A request goes out only if `min_interval` seconds have passed since the
    previous one AND something interesting happened this frame: a rep was
    completed or the form is currently incorrect.
    """

    def __init__(self, min_interval: float = ADVISORY_INTERVAL):
        self.min_interval = min_interval
        self.issues = FormIssuesHistory()
        self.last_request_time: Optional[float] = None

    def reset(self):
        self.issues.reset()
        self.last_request_time = None

    def observe(
        self,
        event: FeedbackEvent,
        rep_complete: bool,
        exercise: str,
        exercise_name: Optional[str],
        rep_count: int,
        now: float,
    ) -> Optional[AdvisoryPayload]:
        if not event.is_correct:
            self.issues.add(event.message)

        interesting = rep_complete or not event.is_correct
        if not interesting:
            return None
        if self.last_request_time is not None and now - self.last_request_time < self.min_interval:
            return None

        self.last_request_time = now
        return AdvisoryPayload(
            exercise=exercise,
            exercise_name=exercise_name,
            phase=event.phase,
            form_issues=self.issues.snapshot(),
            is_correct=event.is_correct,
            rep_complete=rep_complete,
            rep_count=rep_count,
        )


class AdvisoryClient:
    """HTTP client for the advisory backend. Never raises."""

    def __init__(self, url: str = settings.backend_url, timeout: float = settings.advisory_timeout):
        self.url = url
        self.timeout = timeout

    def request_feedback(self, payload: AdvisoryPayload) -> str:
        try:
            resp = requests.post(self.url, json=payload.model_dump(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Advisory request failed: %s", e)
            return FALLBACK_MESSAGE

        if resp.status_code != 200:
            logger.warning("Advisory backend error: %s %s", resp.status_code, resp.text)
            return FALLBACK_MESSAGE

        try:
            message = resp.json().get("message", "")
        except ValueError:
            logger.warning("Advisory backend returned invalid JSON")
            return FALLBACK_MESSAGE

        return message or FALLBACK_MESSAGE


class AdvisoryWorker:
    """
    Runs advisory requests in a background thread so the frame loop
    never waits on the network. Results are handed to `on_result` together
    with the ticket and payload they were submitted with.
    """

    def __init__(
        self,
        request: Callable[[AdvisoryPayload], str],
        on_result: Callable[[int, AdvisoryPayload, str], None],
    ):
        self._request = request
        self._on_result = on_result
        self._queue: Queue = Queue()
        self._thread: Optional[Thread] = None

    def start(self):
        if self._thread is None:
            self._thread = Thread(target=self._run, daemon=True)
            self._thread.start()

    def submit(self, ticket: int, payload: AdvisoryPayload):
        self.start()
        self._queue.put((ticket, payload))   # returns instantly

    def stop(self, timeout: float = 2.0):
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join(timeout=timeout)
        self._thread = None

    def _run(self):
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    break
                ticket, payload = item
                try:
                    message = self._request(payload)
                except Exception as e:
                    logger.warning("Advisory worker exception: %s", e)
                    message = FALLBACK_MESSAGE
                self._on_result(ticket, payload, message)
            finally:
                self._queue.task_done()
