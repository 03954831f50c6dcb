from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel
from .base import DocumentItem, WorkflowDocument


class PickupRequest(TimeStampedModel):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        FINISH = "FINISH", "Selesai"
        CANCELLED = "CANCELLED", "Batal"

    no_request = models.CharField(max_length=30, unique=True, editable=False)
    tanggal = models.DateField()
    pengirim = models.ForeignKey("core.Customer", on_delete=models.PROTECT, related_name="pickup_requests")
    alamat_pengambilan = models.CharField(max_length=255)
    tujuan = models.CharField(max_length=120)
    jumlah_colly = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    estimasi_pengambilan = models.CharField(max_length=60, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)
    pickup = models.ForeignKey(
        "operations.Pickup", on_delete=models.SET_NULL, null=True, blank=True, related_name="requests"
    )

    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="+")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")

    class Meta:
        db_table = "operations_pickup_requests"
        ordering = ["-tanggal", "-id"]

    def __str__(self):
        return self.no_request


class Pickup(WorkflowDocument):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        BERANGKAT = "BERANGKAT", "Berangkat"
        SELESAI = "SELESAI", "Selesai"
        CANCELLED = "CANCELLED", "Batal"

    CODE_FIELD = "no_pengambilan"

    no_pengambilan = models.CharField(max_length=30, unique=True, editable=False)
    tanggal = models.DateField()
    pengirim = models.ForeignKey("core.Customer", on_delete=models.PROTECT, related_name="pickups")
    supir = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    kenek = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    kendaraan = models.ForeignKey("fleet.Vehicle", on_delete=models.PROTECT, related_name="pickups")

    alamat_pengambilan = models.CharField(max_length=255)
    tujuan = models.CharField(max_length=120)
    jumlah_colly = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    estimasi_pengambilan = models.CharField(max_length=60, blank=True, default="")

    waktu_berangkat = models.DateTimeField(null=True, blank=True)
    waktu_pulang = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)

    stts = models.ManyToManyField("shipments.Shipment", through="PickupItem", related_name="pickups")

    class Meta(WorkflowDocument.Meta):
        db_table = "operations_pickups"


class PickupItem(DocumentItem):
    pickup = models.ForeignKey(Pickup, on_delete=models.CASCADE, related_name="items")
    # satu STT hanya boleh ada di satu pickup
    shipment = models.OneToOneField("shipments.Shipment", on_delete=models.PROTECT, related_name="pickup_item")

    class Meta(DocumentItem.Meta):
        db_table = "operations_pickup_items"
