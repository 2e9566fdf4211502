import uuid

from django.db import migrations
from django.db import models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="InstrumentResult",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("participant_id", models.CharField(max_length=64)),
                ("instrument_id", models.CharField(max_length=50)),
                ("metrics", models.JSONField(blank=True, default=dict)),
                ("raw_trials", models.JSONField(blank=True, default=list)),
                ("completed_at", models.DateTimeField()),
                ("attempt_count", models.PositiveIntegerField(default=1)),
            ],
        ),
        migrations.AddConstraint(
            model_name="instrumentresult",
            constraint=models.UniqueConstraint(
                fields=("participant_id", "instrument_id"),
                name="unique_result_per_participant_instrument",
            ),
        ),
    ]
