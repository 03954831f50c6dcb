from django.conf import settings
from django.db import models

from .base import DocumentItem, WorkflowDocument


class Loading(WorkflowDocument):
    """Muat antar cabang: STT dari cabang_muat diangkut truck ke cabang_bongkar."""

    class Status(models.TextChoices):
        MUAT = "MUAT", "Muat"
        BERANGKAT = "BERANGKAT", "Berangkat"
        SAMPAI = "SAMPAI", "Sampai"

    ACTIVE_STATUSES = (Status.MUAT, Status.BERANGKAT)
    CODE_FIELD = "id_muat"

    id_muat = models.CharField(max_length=30, unique=True, editable=False)
    cabang_bongkar = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="+")
    antrian_truck = models.ForeignKey("fleet.TruckQueue", on_delete=models.PROTECT, related_name="loadings")
    # terisi selama muat aktif; unique → satu antrian hanya mendukung satu muat aktif
    active_queue = models.OneToOneField(
        "fleet.TruckQueue", on_delete=models.PROTECT, null=True, blank=True, editable=False,
        related_name="active_loading",
    )
    checker = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")

    waktu_berangkat = models.DateTimeField(null=True, blank=True)
    waktu_sampai = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.MUAT, db_index=True)

    stts = models.ManyToManyField("shipments.Shipment", through="LoadingItem", related_name="loadings")

    class Meta(WorkflowDocument.Meta):
        db_table = "operations_loadings"

    @property
    def cabang_muat(self):
        return self.cabang


class LoadingItem(DocumentItem):
    loading = models.ForeignKey(Loading, on_delete=models.CASCADE, related_name="items")

    class Meta(DocumentItem.Meta):
        db_table = "operations_loading_items"
        constraints = [
            models.UniqueConstraint(fields=["loading", "shipment"], name="uniq_loading_item"),
        ]
