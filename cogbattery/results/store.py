"""
Result stores: where a completed session's metrics and raw trials end up.

Every store offers the same two calls the phase controller makes:

    save(participant_id, instrument_id, metrics, raw_trials, completed_at_iso)
    has_previous_result(participant_id, instrument_id) -> metrics | None

Saving is an upsert: a participant keeps one result per instrument and a
retake replaces it.
"""

import logging

from django.conf import settings
from django.db import DatabaseError
from django.db import transaction
from django.utils.dateparse import parse_datetime
from django.utils.module_loading import import_string

from cogbattery.instruments.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)

DEFAULT_RESULT_STORE = "cogbattery.results.store.DjangoResultStore"


def _as_datetime(value):
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            raise PersistenceFailure(f"Unparseable completion time: {value!r}")
        return parsed
    return value


class DjangoResultStore:
    def save(self, participant_id, instrument_id, metrics, raw_trials, completed_at):
        from cogbattery.results.models import InstrumentResult  # local import avoids circular

        try:
            with transaction.atomic():
                previous = InstrumentResult.objects.filter(
                    participant_id=participant_id, instrument_id=instrument_id
                ).first()
                result, created = InstrumentResult.objects.update_or_create(
                    participant_id=participant_id,
                    instrument_id=instrument_id,
                    defaults={
                        "metrics": metrics,
                        "raw_trials": raw_trials,
                        "completed_at": _as_datetime(completed_at),
                        "attempt_count": previous.attempt_count + 1 if previous else 1,
                    },
                )
        except DatabaseError as exc:
            raise PersistenceFailure(
                f"Could not save {instrument_id} result for participant {participant_id}"
            ) from exc
        logger.debug("%s %s", "Created" if created else "Updated", result)
        return result

    def has_previous_result(self, participant_id, instrument_id):
        from cogbattery.results.models import InstrumentResult  # local import avoids circular

        try:
            return (
                InstrumentResult.objects.filter(participant_id=participant_id, instrument_id=instrument_id)
                .values_list("metrics", flat=True)
                .first()
            )
        except DatabaseError as exc:
            raise PersistenceFailure(
                f"Could not look up {instrument_id} result for participant {participant_id}"
            ) from exc


class InMemoryResultStore:
    """Dict-backed store for tests and for running the engine without a database."""

    def __init__(self):
        self.records = {}

    def save(self, participant_id, instrument_id, metrics, raw_trials, completed_at):
        key = (participant_id, instrument_id)
        previous = self.records.get(key)
        self.records[key] = {
            "participant_id": participant_id,
            "instrument_id": instrument_id,
            "metrics": metrics,
            "raw_trials": raw_trials,
            "completed_at": completed_at,
            "attempt_count": previous["attempt_count"] + 1 if previous else 1,
        }
        return self.records[key]

    def has_previous_result(self, participant_id, instrument_id):
        record = self.records.get((participant_id, instrument_id))
        return dict(record["metrics"]) if record else None


def get_result_store():
    """Instantiate the store named by ``settings.COGBATTERY_RESULT_STORE``."""
    return import_string(getattr(settings, "COGBATTERY_RESULT_STORE", DEFAULT_RESULT_STORE))()
