from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Branch(TimeStampedModel):
    nama_cabang = models.CharField(max_length=120)
    # kode 3 huruf untuk penomoran; kosong -> 3 huruf pertama nama cabang
    kode = models.CharField(max_length=3, blank=True, default="")

    alamat = models.CharField(max_length=255, blank=True, default="")
    kelurahan = models.CharField(max_length=100, blank=True, default="")
    kecamatan = models.CharField(max_length=100, blank=True, default="")
    kota = models.CharField(max_length=100, blank=True, default="")
    provinsi = models.CharField(max_length=100, blank=True, default="")

    penanggung_jawab = models.CharField(max_length=120, blank=True, default="")
    telepon = models.CharField(max_length=30, blank=True, default="")
    email = models.EmailField(blank=True, default="")

    class Meta:
        db_table = "core_branches"
        ordering = ["nama_cabang"]

    def __str__(self):
        return self.nama_cabang

    @property
    def code(self) -> str:
        return (self.kode or self.nama_cabang[:3]).upper()


class Customer(TimeStampedModel):
    class Tipe(models.TextChoices):
        PENGIRIM = "pengirim", "Pengirim"
        PENERIMA = "penerima", "Penerima"
        KEDUANYA = "keduanya", "Pengirim & Penerima"

    nama = models.CharField(max_length=120, db_index=True)
    tipe = models.CharField(max_length=10, choices=Tipe.choices, default=Tipe.KEDUANYA, db_index=True)
    perusahaan = models.CharField(max_length=120, blank=True, default="")

    alamat = models.CharField(max_length=255, blank=True, default="")
    kelurahan = models.CharField(max_length=100, blank=True, default="")
    kecamatan = models.CharField(max_length=100, blank=True, default="")
    kota = models.CharField(max_length=100, blank=True, default="")
    provinsi = models.CharField(max_length=100, blank=True, default="")
    telepon = models.CharField(max_length=30, blank=True, default="", db_index=True)
    email = models.EmailField(blank=True, default="")

    cabang = models.ForeignKey(Branch, on_delete=models.PROTECT, related_name="customers")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        db_table = "core_customers"
        ordering = ["nama"]

    def __str__(self):
        return self.nama
