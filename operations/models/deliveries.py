from django.conf import settings
from django.db import models

from .base import DocumentItem, WorkflowDocument


class Delivery(WorkflowDocument):
    """Lansir: antar STT dari cabang tujuan ke penerima."""

    class Status(models.TextChoices):
        LANSIR = "LANSIR", "Lansir"
        TERKIRIM = "TERKIRIM", "Terkirim"
        BELUM_SELESAI = "BELUM_SELESAI", "Belum Selesai"

    ACTIVE_STATUSES = (Status.LANSIR,)
    CODE_FIELD = "id_lansir"

    id_lansir = models.CharField(max_length=30, unique=True, editable=False)
    antrian_kendaraan = models.ForeignKey(
        "fleet.VehicleQueue", on_delete=models.PROTECT, related_name="deliveries"
    )
    active_queue = models.OneToOneField(
        "fleet.VehicleQueue", on_delete=models.PROTECT, null=True, blank=True, editable=False,
        related_name="active_delivery",
    )
    checker = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    admin = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")

    berangkat = models.DateTimeField(null=True, blank=True)
    sampai = models.DateTimeField(null=True, blank=True)
    estimasi_lansir = models.CharField(max_length=60, blank=True, default="")
    kilometer_berangkat = models.PositiveIntegerField(null=True, blank=True)
    kilometer_pulang = models.PositiveIntegerField(null=True, blank=True)
    nama_penerima = models.CharField(max_length=120, blank=True, default="")

    status = models.CharField(max_length=15, choices=Status.choices, default=Status.LANSIR, db_index=True)

    stts = models.ManyToManyField("shipments.Shipment", through="DeliveryItem", related_name="deliveries")

    class Meta(WorkflowDocument.Meta):
        db_table = "operations_deliveries"

    @property
    def is_terminal(self) -> bool:
        return self.status != self.Status.LANSIR


class DeliveryItem(DocumentItem):
    delivery = models.ForeignKey(Delivery, on_delete=models.CASCADE, related_name="items")

    class Meta(DocumentItem.Meta):
        db_table = "operations_delivery_items"
        constraints = [
            models.UniqueConstraint(fields=["delivery", "shipment"], name="uniq_delivery_item"),
        ]
