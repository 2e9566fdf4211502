"""Stimulus generation and response scoring for the visual (spatial) Stroop task."""

from cogbattery.instruments.base import MAIN
from cogbattery.instruments.base import PRACTICE
from cogbattery.instruments.base import InstrumentEngine
from cogbattery.instruments.exceptions import StimulusLoadFailure
from cogbattery.instruments.helpers.metrics.stroop import compute_stroop_summary
from cogbattery.instruments.registry import INSTRUMENT_REGISTRY

DIRECTIONS = ("left", "right", "up", "down")
CENTER = "center"
CONTROL = "control"
EXPERIMENTAL = "experimental"
FIXATION_MS = 500

KEY_TO_DIRECTION = {
    "ArrowLeft": "left",
    "ArrowRight": "right",
    "ArrowUp": "up",
    "ArrowDown": "down",
}
ACCEPTED_KEYS = tuple(KEY_TO_DIRECTION)


def generate_stroop_trials(condition: str, count: int, rng) -> list[dict]:
    """
    Build a shuffled, direction-balanced block of Stroop stimuli.

    Every direction appears count / 4 times. Control stimuli are always shown
    at the centre; experimental stimuli get a position drawn independently
    of the direction, so congruency arises by chance (1 in 4).

    Raises StimulusLoadFailure when *count* cannot be balanced across directions.
    """
    if count % len(DIRECTIONS):
        raise StimulusLoadFailure(
            f"{count} trials cannot be balanced across {len(DIRECTIONS)} directions"
        )
    stimuli = []
    for direction in DIRECTIONS * (count // len(DIRECTIONS)):
        if condition == CONTROL:
            position = CENTER
            congruent = None
        else:
            position = rng.choice(DIRECTIONS)
            congruent = position == direction
        stimuli.append(
            {
                "direction": direction,
                "position": position,
                "congruent": congruent,
                "fixation_ms": FIXATION_MS,
            }
        )
    rng.shuffle(stimuli)
    return stimuli


def score_stroop_response(stimulus: dict, key) -> bool | None:
    """
    Return whether *key* matches the stimulus direction.

    Position never matters. Returns None for input that maps to no direction;
    such input is ignored rather than scored.
    """
    if not isinstance(key, str):
        return None
    direction = KEY_TO_DIRECTION.get(key)
    if direction is None:
        return None
    return direction == stimulus["direction"]


class StroopEngine(InstrumentEngine):
    instrument_id = "stroop"

    def trial_specs(self):
        meta = INSTRUMENT_REGISTRY[self.instrument_id]
        for phase, counts in ((PRACTICE, meta["practice_trials"]), (MAIN, meta["main_trials"])):
            for condition in (CONTROL, EXPERIMENTAL):
                block = generate_stroop_trials(condition, counts[condition], self.rng)
                for number, stimulus in enumerate(block, start=1):
                    yield self._spec(phase, condition, number, stimulus)

    def administer(self, spec, port, deadline=None):
        # The arrow appears once the fixation cross has been shown.
        onset = port.present(spec) + spec.stimulus.get("fixation_ms", 0) / 1000
        while True:
            response = port.await_response(ACCEPTED_KEYS, deadline)
            if response is None:
                # Only reachable when a caller imposes a deadline; Stroop itself is uncapped.
                return self._trial(spec, {"key": None}, False, None, onset, port.now())
            if response.timestamp < onset:
                continue
            correct = score_stroop_response(spec.stimulus, response.value)
            if correct is not None:
                break
        return self._trial(
            spec,
            {"key": response.value, "direction": KEY_TO_DIRECTION[response.value]},
            correct,
            (response.timestamp - onset) * 1000,
            onset,
            response.timestamp,
        )

    def reduce(self, trials):
        return compute_stroop_summary(trials)
