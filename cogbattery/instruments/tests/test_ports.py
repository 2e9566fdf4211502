import queue
import random

import pytest

from cogbattery.instruments.exceptions import SessionCancelled
from cogbattery.instruments.helpers.stroop import StroopEngine
from cogbattery.instruments.ports import CANCEL
from cogbattery.instruments.ports import QueueResponsePort
from cogbattery.instruments.ports import Response
from cogbattery.instruments.session import TrialSpec
from cogbattery.instruments.tests.ports import DIRECTION_TO_KEY


class FakeClock:
    def __init__(self, start=100.0):
        self.value = start

    def __call__(self):
        return self.value


def _spec():
    return TrialSpec(instrument_id="stroop", phase="main", condition="control", number=1, stimulus={})


class TestQueueResponsePort:
    def test_bare_values_are_stamped_on_receipt(self):
        events = queue.Queue()
        events.put("ArrowLeft")
        port = QueueResponsePort(events=events, clock=FakeClock(5.0))
        assert port.await_response(("ArrowLeft",)) == Response("ArrowLeft", 5.0)

    def test_responses_keep_their_timestamp(self):
        port = QueueResponsePort(clock=FakeClock())
        port.events.put(Response((10, 20), 42.0))
        assert port.await_response(("click",)) == Response((10, 20), 42.0)

    def test_past_deadline_returns_none(self):
        port = QueueResponsePort(clock=FakeClock(100.0))
        port.events.put("ArrowLeft")
        assert port.await_response(("ArrowLeft",), deadline=99.0) is None

    def test_empty_queue_times_out(self):
        port = QueueResponsePort(clock=FakeClock(100.0))
        assert port.await_response(("ArrowLeft",), deadline=100.01) is None

    def test_cancel_raises(self):
        port = QueueResponsePort()
        port.events.put(CANCEL)
        with pytest.raises(SessionCancelled):
            port.await_response(("click",))

    def test_present_and_feedback_reach_callbacks(self):
        presented = []
        messages = []
        port = QueueResponsePort(
            on_present=presented.append, on_feedback=messages.append, clock=FakeClock(7.0)
        )
        spec = _spec()
        assert port.present(spec) == 7.0
        port.feedback("hello")
        assert presented == [spec]
        assert messages == ["hello"]

    def test_stroop_keys_before_the_arrow_are_ignored(self):
        engine = StroopEngine(random.Random("queue"))
        spec = next(engine.trial_specs())
        key = DIRECTION_TO_KEY[spec.stimulus["direction"]]
        port = QueueResponsePort(clock=FakeClock(0.0))
        port.events.put(Response(key, 0.2))
        port.events.put(Response(key, 0.6))

        trial = engine.administer(spec, port)

        assert trial.timestamp_end == 0.6
        assert trial.reaction_time_ms == pytest.approx(100)
