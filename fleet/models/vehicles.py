from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class VehicleType(models.TextChoices):
    LANSIR = "lansir", "Lansir"
    ANTAR_CABANG = "antar_cabang", "Antar Cabang"


class Vehicle(TimeStampedModel):
    no_polisi = models.CharField(max_length=20, unique=True)
    nama_kendaraan = models.CharField(max_length=100)
    tipe = models.CharField(max_length=20, choices=VehicleType.choices)
    grup = models.CharField(max_length=50, blank=True, default="")

    # kru default, dipakai kalau antrian tidak menyebut supir/kenek
    supir = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="kendaraan_supir"
    )
    no_telepon_supir = models.CharField(max_length=30, blank=True, default="")
    kenek = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="kendaraan_kenek",
    )
    no_telepon_kenek = models.CharField(max_length=30, blank=True, default="")

    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="vehicles")

    class Meta:
        db_table = "fleet_vehicles"
        ordering = ["no_polisi"]

    def __str__(self):
        return f"{self.no_polisi} ({self.nama_kendaraan})"
