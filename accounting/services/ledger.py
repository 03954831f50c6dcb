# accounting/services/ledger.py
"""
Buku kas cabang, kas pusat, dan mutasi rekening.

Setiap append mengunci LedgerHead untuk scope-nya, menghitung saldo dari
saldo terakhir di head, menyimpan baris baru, lalu memajukan head. Baris
lama tidak pernah diubah nilainya: debet/kredit terkunci sejak dibuat.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Sum

from accounting.models import BankStatement, HeadquarterCash, LedgerHead
from core.exceptions import AlreadyValidated, FieldLocked, Immutable, InvalidTransition
from core.models import Branch
from core.services.lookups import _d, get_or_404

logger = logging.getLogger("cargotrack.accounting")


def _lock_head(model, entry) -> LedgerHead:
    head, created = LedgerHead.objects.select_for_update().get_or_create(
        ledger=model.LEDGER, scope_key=entry.scope_key()
    )
    if created:
        # scope lama tanpa head: lanjutkan dari baris terakhir yang ada
        last = model.objects.filter(**entry.scope_values()).order_by("-urutan").first()
        if last is not None:
            head.saldo = last.saldo
            head.jumlah_entri = last.urutan
            head.last_entry_id = last.pk
    return head


@transaction.atomic
def append(model, *, tanggal, keterangan, user, debet=0, kredit=0, **fields):
    """
    Tambah satu baris ke buku `model` (BranchCash / HeadquarterCash / BankStatement).
    `fields` berisi scope (cabang, bank, no_rekening) dan klasifikasi (tipe_kas).
    """
    debet, kredit = _d(debet), _d(kredit)
    if debet < 0 or kredit < 0:
        raise ValidationError("Debet dan kredit tidak boleh negatif")
    if not (keterangan or "").strip():
        raise ValidationError("Keterangan harus diisi")

    if "cabang" in fields:
        fields["cabang"] = get_or_404(Branch, fields["cabang"], "Cabang")

    entry = model(tanggal=tanggal, keterangan=keterangan.strip(), debet=debet, kredit=kredit, user=user, **fields)
    head = _lock_head(model, entry)

    entry.saldo = head.saldo + debet - kredit
    entry.urutan = head.jumlah_entri + 1
    entry.full_clean()
    entry.save()

    head.saldo = entry.saldo
    head.jumlah_entri = entry.urutan
    head.last_entry_id = entry.pk
    head.save()

    logger.info("%s[%s] #%s +%s -%s = %s", model.LEDGER, head.scope_key, entry.urutan, debet, kredit, entry.saldo)
    return entry


@transaction.atomic
def update_entry(entry, **changes):
    """
    Ubah metadata (tanggal, keterangan, tipe_kas). Baris yang sudah
    divalidasi/merged → Immutable; debet, kredit, atau scope berubah → FieldLocked.
    """
    model = type(entry)
    entry = get_or_404(model, entry, model._meta.verbose_name.capitalize(), lock=True)

    if entry.is_locked:
        raise Immutable(f"{model._meta.verbose_name.capitalize()} berstatus {entry.get_status_display()} tidak dapat diubah")

    unknown = set(changes) - model.META_FIELDS - model.LOCKED_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dikenal: {', '.join(sorted(unknown))}")

    for field in sorted(set(changes) & model.LOCKED_FIELDS):
        current = getattr(entry, f"{field}_id" if field == "cabang" else field)
        value = changes[field]
        if field == "cabang":
            value = getattr(value, "pk", value)
        elif field in ("debet", "kredit", "saldo"):
            value = _d(value)
        if value != current:
            raise FieldLocked(f"Perubahan nilai {field} tidak diizinkan, silakan buat transaksi baru")

    meta = {k: v for k, v in changes.items() if k in model.META_FIELDS}
    if not meta:
        return entry
    for field, value in meta.items():
        setattr(entry, field, value)
    entry.full_clean()
    entry.save(update_fields=[*meta.keys(), "updated_at"])
    return entry


@transaction.atomic
def mark_validated(entry):
    """UNVALIDATED → VALIDATED, satu arah. Setelah ini baris tidak bisa diubah."""
    entry = get_or_404(BankStatement, entry, "Mutasi rekening", lock=True)
    if entry.status == BankStatement.Status.VALIDATED:
        raise AlreadyValidated()

    updated = BankStatement.objects.filter(
        pk=entry.pk, status=BankStatement.Status.UNVALIDATED
    ).update(status=BankStatement.Status.VALIDATED)
    if updated != 1:
        raise AlreadyValidated()

    entry.status = BankStatement.Status.VALIDATED
    logger.info("Mutasi rekening %s #%s divalidasi", entry.no_rekening, entry.urutan)
    return entry


@transaction.atomic
def mark_merged(entry):
    """DRAFT → MERGED untuk kas pusat; tidak bisa kembali ke DRAFT."""
    entry = get_or_404(HeadquarterCash, entry, "Kas pusat", lock=True)
    if entry.status == HeadquarterCash.Status.MERGED:
        raise InvalidTransition("Transaksi kas pusat dengan status MERGED tidak dapat diubah")

    HeadquarterCash.objects.filter(pk=entry.pk).update(status=HeadquarterCash.Status.MERGED)
    entry.status = HeadquarterCash.Status.MERGED
    logger.info("Kas pusat #%s merged", entry.urutan)
    return entry


def balance(model, **scope) -> Decimal:
    """Saldo terakhir buku `model` untuk scope tertentu (0 kalau belum ada transaksi)."""
    if "cabang" in scope:
        scope["cabang"] = getattr(scope["cabang"], "pk", scope["cabang"])
    sample = model(**{f"{k}_id" if k == "cabang" else k: v for k, v in scope.items()})
    head = LedgerHead.objects.filter(ledger=model.LEDGER, scope_key=sample.scope_key()).first()
    if head is not None:
        return head.saldo
    last = model.objects.filter(**sample.scope_values()).order_by("-urutan").first()
    return last.saldo if last else Decimal("0.00")


def entries(model, *, date_from=None, date_to=None, **scope):
    qs = model.objects.filter(**scope)
    if date_from:
        qs = qs.filter(tanggal__gte=date_from)
    if date_to:
        qs = qs.filter(tanggal__lte=date_to)
    return qs.order_by("urutan")


def bank_summary(cabang=None):
    """
    Ringkasan per rekening: total debet/kredit, jumlah mutasi, saldo terakhir.
    """
    qs = BankStatement.objects.all()
    if cabang is not None:
        qs = qs.filter(cabang=cabang)

    rows = list(
        qs.values("bank", "no_rekening", "cabang")
        .annotate(total_debet=Sum("debet"), total_kredit=Sum("kredit"), jumlah_mutasi=Count("id"))
        .order_by("bank", "no_rekening", "cabang")
    )
    for row in rows:
        last = (
            BankStatement.objects
            .filter(bank=row["bank"], no_rekening=row["no_rekening"], cabang=row["cabang"])
            .order_by("-urutan")
            .first()
        )
        row["saldo"] = last.saldo
    return rows
