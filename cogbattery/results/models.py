from uuid import uuid4

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import CharField
from django.db.models import DateTimeField
from django.db.models import JSONField
from django.db.models import Model
from django.db.models import PositiveIntegerField
from django.db.models import UUIDField

from cogbattery.instruments.registry import INSTRUMENT_REGISTRY


class InstrumentResult(Model):
    """The latest completed run of one instrument by one participant."""

    id = UUIDField(primary_key=True, default=uuid4, editable=False)
    participant_id = CharField(max_length=64)
    instrument_id = CharField(max_length=50)
    metrics = JSONField(default=dict, blank=True)
    raw_trials = JSONField(default=list, blank=True)
    completed_at = DateTimeField()
    attempt_count = PositiveIntegerField(default=1)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["participant_id", "instrument_id"],
                name="unique_result_per_participant_instrument",
            ),
        ]

    def clean(self):
        if self.instrument_id not in INSTRUMENT_REGISTRY:
            raise ValidationError(
                {"instrument_id": f"'{self.instrument_id}' is not a registered instrument."}
            )

    def __str__(self) -> str:
        return f"{self.instrument_id} \u2013 {self.participant_id}"
