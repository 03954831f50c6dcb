from django.db import models

from .base import DocumentItem, WorkflowDocument


class Return(WorkflowDocument):
    class Status(models.TextChoices):
        PROSES = "PROSES", "Proses"
        SAMPAI = "SAMPAI", "Sampai"

    CODE_FIELD = "id_retur"

    id_retur = models.CharField(max_length=30, unique=True, editable=False)
    tanggal_kirim = models.DateField(null=True, blank=True)
    tanggal_sampai = models.DateField(null=True, blank=True)
    tanda_terima = models.CharField(max_length=120, blank=True, default="")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PROSES, db_index=True)

    stts = models.ManyToManyField("shipments.Shipment", through="ReturnItem", related_name="returns")

    class Meta(WorkflowDocument.Meta):
        db_table = "operations_returns"


class ReturnItem(DocumentItem):
    retur = models.ForeignKey(Return, on_delete=models.CASCADE, related_name="items")

    class Meta(DocumentItem.Meta):
        db_table = "operations_return_items"
        constraints = [
            models.UniqueConstraint(fields=["retur", "shipment"], name="uniq_return_item"),
        ]
