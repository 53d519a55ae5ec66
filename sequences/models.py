from django.db import models


class DisplaySequence(models.Model):
    """Per-entity counter backing human-readable display IDs.

    Values only ever move forward. A rolled back insert leaves a gap.
    """
    name = models.CharField(max_length=100, unique=True)
    last_value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'display_sequences'
        ordering = ['name']

    def __str__(self):
        return f"{self.name}: {self.last_value}"
