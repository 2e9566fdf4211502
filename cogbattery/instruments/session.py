"""In-memory session state for one run of one instrument.

Nothing here touches the ORM: a Session lives only as long as the
participant stays on the instrument and is handed to the result store as
plain dicts once it completes.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from django.db.models import TextChoices
from django.utils import timezone


class Phase(TextChoices):
    INSTRUCTIONS = "instructions", "Instructions"
    PRACTICE = "practice", "Practice"
    RUNNING = "running", "Running"
    SAVING = "saving", "Saving"
    RESULTS = "results", "Results"
    ERROR = "error", "Error"


class TrialPhase(TextChoices):
    PRACTICE = "practice", "Practice"
    MAIN = "main", "Main"


@dataclass(frozen=True)
class TrialSpec:
    """The material for one trial, as handed to the renderer through the response port."""

    instrument_id: str
    phase: str
    condition: str
    number: int
    stimulus: dict[str, Any]

    @property
    def is_practice(self) -> bool:
        return self.phase == TrialPhase.PRACTICE


@dataclass(frozen=True)
class Trial:
    phase: str
    condition: str
    stimulus: dict[str, Any]
    response: dict[str, Any]
    correct: bool
    reaction_time_ms: float | None
    timestamp_start: float
    timestamp_end: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Session:
    instrument_id: str
    participant_id: str
    random_seed: str = field(default_factory=lambda: str(uuid.uuid4()))
    phase: str = Phase.INSTRUCTIONS
    trials: list[Trial] = field(default_factory=list)
    started_at: Any = field(default_factory=timezone.now)
    completed_at: Any = None

    def append(self, trial: Trial) -> None:
        self.trials.append(trial)

    @property
    def main_trials(self) -> list[Trial]:
        return [t for t in self.trials if t.phase == TrialPhase.MAIN]

    def raw_trials(self) -> list[dict[str, Any]]:
        """Return every trial, practice included, as JSON-serializable dicts."""
        return [t.as_dict() for t in self.trials]
