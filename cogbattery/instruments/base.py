"""Base class shared by the four instrument engines.

An engine bundles an instrument's stimulus generator, response validator
and metrics reducer behind the three calls the phase controller makes.
One engine instance belongs to exactly one session.
"""

from __future__ import annotations

import random
from typing import Iterator

from cogbattery.instruments.ports import ResponsePort
from cogbattery.instruments.registry import INSTRUMENT_REGISTRY
from cogbattery.instruments.session import Trial
from cogbattery.instruments.session import TrialPhase
from cogbattery.instruments.session import TrialSpec


class InstrumentEngine:
    instrument_id: str = ""

    def __init__(self, rng: random.Random):
        self.rng = rng

    @property
    def metadata(self) -> dict:
        return INSTRUMENT_REGISTRY[self.instrument_id]

    @property
    def has_practice(self) -> bool:
        return self.metadata["has_practice"]

    @property
    def time_limit_s(self) -> float | None:
        """Countdown applied to the scored phase, or None for untimed instruments."""
        return self.metadata["time_limit_s"]

    def trial_specs(self) -> Iterator[TrialSpec]:
        """Yield every trial of the session in order, generating material lazily."""
        raise NotImplementedError

    def administer(self, spec: TrialSpec, port: ResponsePort, deadline: float | None = None) -> Trial:
        """Present *spec* through *port*, validate responses and return the finished trial."""
        raise NotImplementedError

    def reduce(self, trials: list[dict]) -> dict:
        """Fold raw trial dicts into the instrument's metrics record."""
        raise NotImplementedError

    def _spec(self, phase: str, condition: str, number: int, stimulus: dict) -> TrialSpec:
        return TrialSpec(
            instrument_id=self.instrument_id,
            phase=phase,
            condition=condition,
            number=number,
            stimulus=stimulus,
        )

    def _trial(self, spec: TrialSpec, response: dict, correct: bool, reaction_time_ms, start, end) -> Trial:
        return Trial(
            phase=spec.phase,
            condition=spec.condition,
            stimulus=spec.stimulus,
            response=response,
            correct=correct,
            reaction_time_ms=reaction_time_ms,
            timestamp_start=start,
            timestamp_end=end,
        )


PRACTICE = TrialPhase.PRACTICE
MAIN = TrialPhase.MAIN
