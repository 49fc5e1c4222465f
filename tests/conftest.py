import pytest


class FakeNarrator:
    """Records speak() calls; completion is triggered by the test."""

    def __init__(self):
        self.spoken = []
        self.cancelled = 0
        self._callbacks = []

    def speak(self, text, on_done):
        self.spoken.append(text)
        self._callbacks.append(on_done)

    def finish(self, error=None):
        self._callbacks.pop(0)(error)

    def cancel(self):
        self.cancelled += 1


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def narrator():
    return FakeNarrator()


@pytest.fixture
def clock():
    return FakeClock()
