from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class ShipmentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    MUAT = "MUAT", "Muat"
    TRANSIT = "TRANSIT", "Transit"
    LANSIR = "LANSIR", "Lansir"
    TERKIRIM = "TERKIRIM", "Terkirim"
    RETURN = "RETURN", "Retur"


class PaymentType(models.TextChoices):
    CASH = "CASH", "Cash"
    COD = "COD", "Cash on Delivery"
    CAD = "CAD", "Cash after Delivery"


class KodePenerus(models.TextChoices):
    K70 = "70", "70"
    K71 = "71", "71"
    K72 = "72", "72"
    K73 = "73", "73"


class Shipment(TimeStampedModel):
    """STT (surat tanda terima): satu kiriman yang dilacak dari pickup sampai terkirim."""

    no_stt = models.CharField(max_length=30, unique=True, editable=False)
    barcode = models.CharField(max_length=30, blank=True, default="")

    cabang_asal = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="stt_asal")
    cabang_tujuan = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="stt_tujuan")
    pengirim = models.ForeignKey("core.Customer", on_delete=models.PROTECT, related_name="stt_dikirim")
    penerima = models.ForeignKey("core.Customer", on_delete=models.PROTECT, related_name="stt_diterima")

    nama_barang = models.CharField(max_length=200)
    komoditi = models.CharField(max_length=100, blank=True, default="")
    packing = models.CharField(max_length=100, blank=True, default="")
    jumlah_colly = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    berat = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0.1"))]
    )
    harga_per_kilo = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    harga = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    keterangan = models.TextField(blank=True, default="")

    kode_penerus = models.CharField(max_length=2, choices=KodePenerus.choices, default=KodePenerus.K70)
    payment_type = models.CharField(max_length=4, choices=PaymentType.choices)

    status = models.CharField(
        max_length=10, choices=ShipmentStatus.choices, default=ShipmentStatus.PENDING, db_index=True
    )

    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="stt_milik")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="stt_created"
    )

    class Meta:
        db_table = "shipments_stt"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        return self.no_stt or f"STT#{self.pk}"

    @property
    def is_terminal(self) -> bool:
        return self.status in (ShipmentStatus.TERKIRIM, ShipmentStatus.RETURN)
