from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum

from core.models import TimeStampedModel


class CollectionStatus(models.TextChoices):
    BELUM_LUNAS = "BELUM_LUNAS", "Belum Lunas"
    LUNAS = "LUNAS", "Lunas"


class CustomerRole(models.TextChoices):
    PENGIRIM = "pengirim", "Pengirim"
    PENERIMA = "penerima", "Penerima"


class Collection(TimeStampedModel):
    """
    Penagihan: kumpulan STT TERKIRIM milik satu pelanggan.
    total_tagihan dibekukan saat dibuat (jumlah harga STT).
    """

    no_penagihan = models.CharField(max_length=30, unique=True, editable=False)
    pelanggan = models.ForeignKey("core.Customer", on_delete=models.PROTECT, related_name="collections")
    tipe_pelanggan = models.CharField(max_length=10, choices=CustomerRole.choices)
    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="collections")

    total_tagihan = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), validators=[MinValueValidator(0)]
    )
    status = models.CharField(
        max_length=12, choices=CollectionStatus.choices, default=CollectionStatus.BELUM_LUNAS, db_index=True
    )
    tanggal_bayar = models.DateField(null=True, blank=True)
    overdue = models.BooleanField(default=False)
    keterangan = models.TextField(blank=True, default="")

    stts = models.ManyToManyField(
        "shipments.Shipment", through="CollectionItem", through_fields=("collection", "shipment"),
        related_name="collections",
    )

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")

    class Meta:
        db_table = "billing_collections"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.no_penagihan

    @property
    def is_paid(self) -> bool:
        return self.status == CollectionStatus.LUNAS

    @property
    def total_bayar(self) -> Decimal:
        return self.payments.aggregate(s=Sum("jumlah"))["s"] or Decimal("0.00")

    @property
    def sisa_tagihan(self) -> Decimal:
        return max(self.total_tagihan - self.total_bayar, Decimal("0.00"))


class CollectionItem(models.Model):
    collection = models.ForeignKey(Collection, on_delete=models.CASCADE, related_name="items")
    shipment = models.ForeignKey("shipments.Shipment", on_delete=models.PROTECT, related_name="+")
    position = models.PositiveIntegerField(default=0)
    harga = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # terisi selama penagihan BELUM_LUNAS; unique → satu STT hanya di satu penagihan terbuka
    open_shipment = models.OneToOneField(
        "shipments.Shipment", on_delete=models.PROTECT, null=True, blank=True, editable=False,
        related_name="open_collection_item",
    )

    class Meta:
        db_table = "billing_collection_items"
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(fields=["collection", "shipment"], name="uniq_collection_item"),
        ]


class CollectionPayment(models.Model):
    collection = models.ForeignKey(Collection, on_delete=models.CASCADE, related_name="payments")
    termin = models.PositiveIntegerField()
    tanggal = models.DateField()
    jumlah = models.DecimalField(max_digits=18, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "billing_collection_payments"
        ordering = ["termin"]
        constraints = [
            models.UniqueConstraint(fields=["collection", "termin"], name="uniq_collection_termin"),
        ]

    def __str__(self):
        return f"{self.collection} termin {self.termin}"
