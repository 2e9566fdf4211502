import factory
from django.utils import timezone
from factory.django import DjangoModelFactory

from cogbattery.results.models import InstrumentResult


class InstrumentResultFactory(DjangoModelFactory):
    participant_id = factory.Sequence(lambda n: f"participant-{n}")
    instrument_id = "stroop"
    metrics = factory.LazyFunction(lambda: {"accuracy": 95.0})
    raw_trials = factory.LazyFunction(list)
    completed_at = factory.LazyFunction(timezone.now)

    class Meta:
        model = InstrumentResult
