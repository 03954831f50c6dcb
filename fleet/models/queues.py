from django.conf import settings
from django.db import models

from core.models import TimeStampedModel
from .vehicles import VehicleType


class ResourceQueue(TimeStampedModel):
    """
    Antrian kendaraan di satu cabang.

    MENUNGGU → (aktif) → (selesai). `active_key` terisi selama antrian
    menunggu/aktif dan dikosongkan saat selesai; unique index di kolom ini
    memastikan satu kendaraan hanya punya satu antrian hidup per cabang.
    """
    ST_WAITING = "MENUNGGU"
    ST_ACTIVE = None   # diisi subclass
    ST_DONE = None
    VEHICLE_TYPE = None
    KIND = None
    DOCUMENTS = None   # related_name dokumen workflow yang memakai antrian ini

    kendaraan = models.ForeignKey("fleet.Vehicle", on_delete=models.PROTECT, related_name="+")
    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="+")

    supir = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    no_telp = models.CharField(max_length=30, blank=True, default="")
    kenek = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    no_telp_kenek = models.CharField(max_length=30, blank=True, default="")

    urutan = models.PositiveIntegerField(editable=False)
    active_key = models.CharField(max_length=50, null=True, blank=True, unique=True, editable=False)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")

    class Meta:
        abstract = True
        ordering = ["cabang", "urutan"]

    def __str__(self):
        return f"#{self.urutan} {self.kendaraan} [{self.status}]"

    @classmethod
    def live_statuses(cls):
        return (cls.ST_WAITING, cls.ST_ACTIVE)

    @property
    def is_live(self) -> bool:
        return self.status in self.live_statuses()

    def make_active_key(self) -> str:
        return f"{self.kendaraan_id}:{self.cabang_id}"


class TruckQueue(ResourceQueue):
    class Status(models.TextChoices):
        MENUNGGU = "MENUNGGU", "Menunggu"
        MUAT = "MUAT", "Muat"
        BERANGKAT = "BERANGKAT", "Berangkat"

    ST_ACTIVE = Status.MUAT
    ST_DONE = Status.BERANGKAT
    VEHICLE_TYPE = VehicleType.ANTAR_CABANG
    KIND = "truck"
    DOCUMENTS = "loadings"

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.MENUNGGU, db_index=True)

    class Meta(ResourceQueue.Meta):
        db_table = "fleet_truck_queues"
        verbose_name = "Antrian truck"


class VehicleQueue(ResourceQueue):
    class Status(models.TextChoices):
        MENUNGGU = "MENUNGGU", "Menunggu"
        LANSIR = "LANSIR", "Lansir"
        KEMBALI = "KEMBALI", "Kembali"

    ST_ACTIVE = Status.LANSIR
    ST_DONE = Status.KEMBALI
    VEHICLE_TYPE = VehicleType.LANSIR
    KIND = "vehicle"
    DOCUMENTS = "deliveries"

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.MENUNGGU, db_index=True)

    class Meta(ResourceQueue.Meta):
        db_table = "fleet_vehicle_queues"
        verbose_name = "Antrian kendaraan"


class QueueSequence(models.Model):
    """Counter `urutan` per (jenis antrian, cabang); nomor yang sudah dipakai tidak pernah dipakai ulang."""

    kind = models.CharField(max_length=20)   # "truck" / "vehicle"
    cabang = models.ForeignKey("core.Branch", on_delete=models.CASCADE, related_name="+")
    last_urutan = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "fleet_queue_sequences"
        constraints = [
            models.UniqueConstraint(fields=["kind", "cabang"], name="uniq_queue_sequence"),
        ]
