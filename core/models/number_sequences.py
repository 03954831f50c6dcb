from django.db import models


class CodeSequence(models.Model):
    """
    Satu baris counter per (entity, cabang, tanggal).

    Baris ini dikunci (select_for_update) setiap kali nomor baru diambil,
    sehingga dua request bersamaan tidak pernah membaca counter yang sama.
    """
    entity_type = models.CharField(max_length=20)          # "STT", "LOADING", dll.
    branch_code = models.CharField(max_length=3)
    period = models.DateField()

    last_number = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "core_code_sequences"
        constraints = [
            models.UniqueConstraint(
                fields=["entity_type", "branch_code", "period"], name="uniq_code_sequence_scope"
            ),
        ]

    def __str__(self):
        return f"{self.entity_type}/{self.branch_code}/{self.period:%Y-%m-%d} → {self.last_number}"
