"""A deterministic ResponsePort for driving engines in tests."""

from collections import deque

from cogbattery.instruments.exceptions import SessionCancelled
from cogbattery.instruments.helpers.corsi import expected_sequence
from cogbattery.instruments.helpers.stroop import KEY_TO_DIRECTION
from cogbattery.instruments.ports import CANCEL
from cogbattery.instruments.ports import Response


class ScriptedPort:
    """
    Replays scripted input on a fake clock.

    ``responder(spec)`` returns the values to deliver for that trial. Every
    delivered value advances the clock by ``step_s``; an exhausted script, or
    a step that would overrun the deadline, yields None. Fixations and timed
    presentations (``fixation_ms``, ``presentation_ms``) are played out before
    input is delivered unless ``play_presentation`` is False.
    """

    def __init__(self, responder, step_s=0.5, play_presentation=True):
        self.responder = responder
        self.step_s = step_s
        self.play_presentation = play_presentation
        self.clock = 0.0
        self.pending = deque()
        self.presented = []
        self.messages = []
        self.controller = None
        self.phases = []

    def now(self):
        return self.clock

    def present(self, spec):
        self.presented.append(spec)
        if self.controller is not None:
            self.phases.append(self.controller.phase)
        self.pending = deque(self.responder(spec))
        onset = self.clock
        if self.play_presentation:
            self.clock += spec.stimulus.get("fixation_ms", 0) / 1000
            self.clock += spec.stimulus.get("presentation_ms", 0) / 1000
        return onset

    def await_response(self, accepted_inputs, deadline=None):
        if deadline is not None and self.clock + self.step_s > deadline:
            self.clock = max(self.clock, deadline)
            return None
        if not self.pending:
            return None
        value = self.pending.popleft()
        if value is CANCEL:
            raise SessionCancelled("scripted navigation away")
        self.clock += self.step_s
        return Response(value, self.clock)

    def feedback(self, message):
        self.messages.append(message)


DIRECTION_TO_KEY = {direction: key for key, direction in KEY_TO_DIRECTION.items()}


def stroop_responder(spec):
    return [DIRECTION_TO_KEY[spec.stimulus["direction"]]]


def trail_responder(spec):
    nodes = sorted(spec.stimulus["nodes"], key=lambda n: n["target_index"])
    return [(n["x"], n["y"]) for n in nodes]


def corsi_responder(spec):
    return expected_sequence(spec.stimulus["sequence"], spec.stimulus["direction"])


def five_point_responder(spec):
    return [0, 1, "complete"]


def responder_for(instrument_id):
    return {
        "stroop": stroop_responder,
        "trail_making": trail_responder,
        "corsi_blocks": corsi_responder,
        "five_point": five_point_responder,
    }[instrument_id]
