from formcoach.client.speech import SpeechQueue


def test_three_quick_strings_never_overlap(narrator):
    speech = SpeechQueue(narrator)
    assert speech.offer("Rep 1 complete", rep_complete=True, now=0.00)
    assert speech.offer("Rep 2 complete", rep_complete=True, now=0.05)
    assert speech.offer("Rep 3 complete", rep_complete=True, now=0.10)

    assert narrator.spoken == ["Rep 1 complete"]
    assert speech.speaking is True
    assert speech.pending == ["Rep 2 complete", "Rep 3 complete"]

    narrator.finish()
    assert narrator.spoken == ["Rep 1 complete", "Rep 2 complete"]
    narrator.finish()
    narrator.finish()
    assert narrator.spoken == ["Rep 1 complete", "Rep 2 complete", "Rep 3 complete"]
    assert speech.speaking is False
    assert speech.pending == []


def test_duplicate_of_last_spoken_is_dropped(narrator):
    speech = SpeechQueue(narrator)
    assert speech.offer("Good form!", now=0.0)
    narrator.finish()
    assert not speech.offer("Good form!", rep_complete=True, now=10.0)
    assert narrator.spoken == ["Good form!"]


def test_routine_messages_are_debounced(narrator):
    speech = SpeechQueue(narrator)
    assert speech.offer("Good form!", now=0.0)
    narrator.finish()
    assert not speech.offer("Lowering", now=2.0)
    assert not speech.offer("Lowering", now=4.9)
    assert speech.offer("Lowering", now=5.0)
    assert narrator.spoken == ["Good form!", "Lowering"]


def test_persistent_error_skips_debounce(narrator):
    speech = SpeechQueue(narrator)
    speech.offer("Good form!", now=0.0)
    narrator.finish()

    # a one-frame misread is not narrated
    assert not speech.offer("Keep your chest up", is_correct=False, now=0.5)
    assert not speech.offer("Good form!", is_correct=True, now=0.6)

    assert not speech.offer("Keep your chest up", is_correct=False, now=1.0)
    assert not speech.offer("Keep your chest up", is_correct=False, now=1.9)
    assert speech.offer("Keep your chest up", is_correct=False, now=2.0)
    assert narrator.spoken[-1] == "Keep your chest up"


def test_failed_utterance_is_dropped_and_queue_continues(narrator):
    speech = SpeechQueue(narrator)
    speech.offer("one", rep_complete=True, now=0.0)
    speech.offer("two", rep_complete=True, now=0.0)

    narrator.finish(RuntimeError("audio device busy"))
    assert narrator.spoken == ["one", "two"]
    narrator.finish()
    assert speech.speaking is False
    assert speech.pending == []


def test_speak_raising_does_not_stall(narrator):
    class BrokenNarrator:
        def __init__(self):
            self.calls = 0

        def speak(self, text, on_done):
            self.calls += 1
            raise OSError("no driver")

        def cancel(self):
            pass

    broken = BrokenNarrator()
    speech = SpeechQueue(broken)
    speech.offer("one", rep_complete=True, now=0.0)
    speech.offer("two", rep_complete=True, now=0.0)
    assert broken.calls == 2
    assert speech.speaking is False


def test_cancel_drops_pending_and_ignores_late_completion(narrator):
    speech = SpeechQueue(narrator)
    speech.offer("one", rep_complete=True, now=0.0)
    speech.offer("two", rep_complete=True, now=0.0)

    speech.cancel()
    assert narrator.cancelled == 1
    assert speech.pending == []
    assert speech.speaking is False

    speech.offer("three", rep_complete=True, now=1.0)
    assert narrator.spoken == ["one", "three"]

    # completion of the cancelled utterance must not free the new one
    narrator.finish()
    assert speech.speaking is True
    narrator.finish()
    assert speech.speaking is False
