"""
The state machine that walks one participant through one instrument.

    INSTRUCTIONS -> (PRACTICE) -> RUNNING -> SAVING -> RESULTS
                        |            |         |
                        +--------> ERROR <-----+

The controller is generic: everything instrument-specific lives in the
engine returned by ``get_engine``. It pulls trial material from the engine,
administers each trial through the response port and, once the required
number of scored trials exists (or the countdown runs out), hands the
reduced metrics to the result store.
"""

from __future__ import annotations

import logging
import random

from django.utils import timezone

from cogbattery.instruments.engines import get_engine
from cogbattery.instruments.exceptions import ParticipantRequired
from cogbattery.instruments.exceptions import PersistenceFailure
from cogbattery.instruments.exceptions import PhaseTransitionError
from cogbattery.instruments.exceptions import SessionCancelled
from cogbattery.instruments.exceptions import StimulusLoadFailure
from cogbattery.instruments.ports import ResponsePort
from cogbattery.instruments.registry import required_main_trials
from cogbattery.instruments.session import Phase
from cogbattery.instruments.session import Session
from cogbattery.instruments.session import TrialPhase

logger = logging.getLogger(__name__)

TRANSITIONS = {
    Phase.INSTRUCTIONS: {Phase.PRACTICE, Phase.RUNNING, Phase.RESULTS},
    Phase.PRACTICE: {Phase.RUNNING, Phase.ERROR, Phase.INSTRUCTIONS},
    Phase.RUNNING: {Phase.SAVING, Phase.ERROR, Phase.INSTRUCTIONS},
    Phase.SAVING: {Phase.RESULTS, Phase.ERROR},
    Phase.RESULTS: {Phase.INSTRUCTIONS},
    Phase.ERROR: {Phase.SAVING, Phase.INSTRUCTIONS},
}


class PhaseController:
    def __init__(self, instrument_id: str, participant_id, port: ResponsePort, store=None, seed=None):
        if store is None:
            from cogbattery.results.store import get_result_store  # local import avoids app-registry import

            store = get_result_store()
        self.instrument_id = instrument_id
        self.participant_id = participant_id
        self.port = port
        self.store = store
        self.seed = seed
        self.phase = Phase.INSTRUCTIONS
        self.session: Session | None = None
        self.metrics: dict | None = None
        self.last_error: Exception | None = None
        self._pending_save: tuple | None = None
        self._retake_requested = False

    def _transition(self, target):
        if target not in TRANSITIONS[self.phase]:
            raise PhaseTransitionError(f"{self.instrument_id}: cannot go from {self.phase} to {target}")
        self.phase = target
        if self.session is not None:
            self.session.phase = target

    def _require(self, phase, action):
        if self.phase != phase:
            raise PhaseTransitionError(f"{self.instrument_id}: {action}() is not allowed during {self.phase}")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def start(self):
        """
        Run a session to completion and return its metrics.

        Returns the stored metrics unchanged when the participant already has a
        result and no retake was requested. Returns None when the session ends
        in ERROR or is cancelled.
        """
        self._require(Phase.INSTRUCTIONS, "start")
        if not self.participant_id:
            raise ParticipantRequired(f"A participant id is required to start {self.instrument_id}")

        if not self._retake_requested:
            previous = self.store.has_previous_result(self.participant_id, self.instrument_id)
            if previous is not None:
                self.metrics = previous
                self._transition(Phase.RESULTS)
                return self.metrics
        self._retake_requested = False

        if self.seed is not None:
            self.session = Session(self.instrument_id, self.participant_id, random_seed=self.seed)
        else:
            self.session = Session(self.instrument_id, self.participant_id)
        engine = get_engine(self.instrument_id, random.Random(self.session.random_seed))
        logger.info(
            "Starting %s for participant %s (seed %s)",
            self.instrument_id,
            self.participant_id,
            self.session.random_seed,
        )

        try:
            self._run(engine)
        except StimulusLoadFailure as exc:
            logger.exception("Could not generate %s material", self.instrument_id)
            self.last_error = exc
            self._transition(Phase.ERROR)
            return None
        except SessionCancelled:
            logger.info("Participant %s left %s mid-session", self.participant_id, self.instrument_id)
            self._discard()
            return None

        self.session.completed_at = timezone.now()
        raw_trials = self.session.raw_trials()
        self._pending_save = (
            self.participant_id,
            self.instrument_id,
            engine.reduce(raw_trials),
            raw_trials,
            self.session.completed_at.isoformat(),
        )
        return self._save()

    def retake(self):
        self._require(Phase.RESULTS, "retake")
        self.session = None
        self.metrics = None
        self._retake_requested = True
        self._transition(Phase.INSTRUCTIONS)

    def retry(self):
        """Re-issue a failed save, or drop a session whose material could not be generated."""
        self._require(Phase.ERROR, "retry")
        if self._pending_save is not None:
            return self._save()
        self._discard()
        return None

    def cancel(self):
        if self.phase == Phase.SAVING:
            raise PhaseTransitionError(f"{self.instrument_id}: cannot cancel while saving")
        if self.session is not None:
            logger.info("Discarding %s session for participant %s", self.instrument_id, self.participant_id)
        self._discard()

    # ------------------------------------------------------------------

    def _run(self, engine):
        specs = engine.trial_specs()
        self._transition(Phase.PRACTICE if engine.has_practice else Phase.RUNNING)
        required = required_main_trials(self.instrument_id)
        deadline = None

        for spec in specs:
            if spec.phase == TrialPhase.MAIN:
                if self.phase == Phase.PRACTICE:
                    self._transition(Phase.RUNNING)
                if deadline is None and engine.time_limit_s:
                    deadline = self.port.now() + engine.time_limit_s
            trial = engine.administer(spec, self.port, deadline if spec.phase == TrialPhase.MAIN else None)
            self.session.append(trial)

            if len(self.session.main_trials) >= required:
                break
            if deadline is not None and self.port.now() >= deadline:
                logger.info("%s countdown expired for participant %s", self.instrument_id, self.participant_id)
                break

    def _save(self):
        self._transition(Phase.SAVING)
        try:
            self.store.save(*self._pending_save)
        except PersistenceFailure as exc:
            logger.exception(
                "Saving %s result for participant %s failed", self.instrument_id, self.participant_id
            )
            self.last_error = exc
            self._transition(Phase.ERROR)
            return None

        self.metrics = self._pending_save[2]
        self._pending_save = None
        self.last_error = None
        logger.info("Completed %s for participant %s", self.instrument_id, self.participant_id)
        self._transition(Phase.RESULTS)
        return self.metrics

    def _discard(self):
        self.session = None
        self._pending_save = None
        self.last_error = None
        if self.phase != Phase.INSTRUCTIONS:
            self._transition(Phase.INSTRUCTIONS)
