import json
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class LedgerEntry(TimeStampedModel):
    """
    Baris buku kas/bank. Append-only:

        saldo[n] = saldo[n-1] + debet[n] - kredit[n]   (per scope)

    `urutan` = posisi baris dalam scope-nya. debet/kredit tidak bisa diubah
    setelah dibuat; koreksi lewat transaksi baru.
    """
    LEDGER = None
    SCOPE_FIELDS = ()
    LOCKED_FIELDS = {"debet", "kredit", "saldo", "urutan"}
    META_FIELDS = {"tanggal", "keterangan"}

    tanggal = models.DateField()
    keterangan = models.CharField(max_length=255)
    debet = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), validators=[MinValueValidator(0)]
    )
    kredit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), validators=[MinValueValidator(0)]
    )
    saldo = models.DecimalField(max_digits=18, decimal_places=2, editable=False)
    urutan = models.PositiveIntegerField(editable=False)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")

    class Meta:
        abstract = True
        ordering = ["urutan"]

    def __str__(self):
        return f"{self.tanggal} {self.keterangan} ({self.saldo})"

    def scope_values(self) -> dict:
        return {f: getattr(self, f"{f}_id" if f == "cabang" else f) for f in self.SCOPE_FIELDS}

    def scope_key(self) -> str:
        # JSON list: bagian scope yang berisi "|" atau "," tidak bisa bertabrakan
        values = [str(v) for v in self.scope_values().values()]
        return json.dumps(values, ensure_ascii=False) if values else "*"

    @property
    def is_locked(self) -> bool:
        return False


class BranchCash(LedgerEntry):
    class TipeKas(models.TextChoices):
        AWAL = "Awal", "Kas Awal"
        AKHIR = "Akhir", "Kas Akhir"
        KECIL = "Kecil", "Kas Kecil"
        REKENING = "Rekening", "Rekening"
        TANGAN = "Tangan", "Kas di Tangan"

    LEDGER = "branch_cash"
    SCOPE_FIELDS = ("cabang",)
    LOCKED_FIELDS = LedgerEntry.LOCKED_FIELDS | {"cabang"}
    META_FIELDS = LedgerEntry.META_FIELDS | {"tipe_kas"}

    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="kas_cabang")
    tipe_kas = models.CharField(max_length=10, choices=TipeKas.choices)

    class Meta(LedgerEntry.Meta):
        db_table = "accounting_branch_cash"
        verbose_name = "Kas cabang"
        constraints = [
            models.UniqueConstraint(fields=["cabang", "urutan"], name="uniq_branch_cash_urutan"),
        ]


class HeadquarterCash(LedgerEntry):
    class TipeKas(models.TextChoices):
        AWAL = "Awal", "Kas Awal"
        AKHIR = "Akhir", "Kas Akhir"
        KECIL = "Kecil", "Kas Kecil"
        REKENING = "Rekening", "Rekening"
        DITANGAN = "Ditangan", "Kas di Tangan"
        BANTUAN = "Bantuan", "Bantuan"

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        MERGED = "MERGED", "Merged"

    LEDGER = "headquarter_cash"
    LOCKED_FIELDS = LedgerEntry.LOCKED_FIELDS | {"status"}
    META_FIELDS = LedgerEntry.META_FIELDS | {"tipe_kas"}

    tipe_kas = models.CharField(max_length=10, choices=TipeKas.choices)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT, db_index=True)

    class Meta(LedgerEntry.Meta):
        db_table = "accounting_headquarter_cash"
        verbose_name = "Kas pusat"
        constraints = [
            models.UniqueConstraint(fields=["urutan"], name="uniq_headquarter_cash_urutan"),
        ]

    @property
    def is_locked(self) -> bool:
        return self.status == self.Status.MERGED


class BankStatement(LedgerEntry):
    class Status(models.TextChoices):
        UNVALIDATED = "UNVALIDATED", "Belum Divalidasi"
        VALIDATED = "VALIDATED", "Tervalidasi"

    LEDGER = "bank_statement"
    SCOPE_FIELDS = ("bank", "no_rekening", "cabang")
    LOCKED_FIELDS = LedgerEntry.LOCKED_FIELDS | {"bank", "no_rekening", "cabang", "status"}

    bank = models.CharField(max_length=60)
    no_rekening = models.CharField(max_length=40)
    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="mutasi_bank")
    status = models.CharField(
        max_length=12, choices=Status.choices, default=Status.UNVALIDATED, db_index=True
    )

    class Meta(LedgerEntry.Meta):
        db_table = "accounting_bank_statements"
        verbose_name = "Mutasi rekening"
        constraints = [
            models.UniqueConstraint(
                fields=["bank", "no_rekening", "cabang", "urutan"], name="uniq_bank_statement_urutan"
            ),
        ]

    @property
    def is_locked(self) -> bool:
        return self.status == self.Status.VALIDATED


class LedgerHead(models.Model):
    """
    Saldo berjalan per (buku, scope). Baris ini dikunci setiap append
    sehingga dua transaksi bersamaan di scope yang sama tidak menghitung
    saldo dari baris sebelumnya yang sama.
    """

    ledger = models.CharField(max_length=30)
    scope_key = models.CharField(max_length=255)
    saldo = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    jumlah_entri = models.PositiveIntegerField(default=0)
    last_entry_id = models.BigIntegerField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "accounting_ledger_heads"
        constraints = [
            models.UniqueConstraint(fields=["ledger", "scope_key"], name="uniq_ledger_head"),
        ]

    def __str__(self):
        return f"{self.ledger}[{self.scope_key}] = {self.saldo}"
