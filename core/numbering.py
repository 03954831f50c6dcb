# core/numbering.py
import logging
from dataclasses import dataclass
from datetime import date

from django.apps import apps
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import DuplicateCode
from core.models.number_sequences import CodeSequence

logger = logging.getLogger("cargotrack.numbering")


@dataclass(frozen=True)
class CodeFormat:
    prefix: str
    date_format: str      # strftime: "%y%m%d" (YYMMDD) atau "%d%m%y" (DDMMYY)
    model: str            # "app_label.Model" pemilik kode, untuk seeding counter
    field: str


CODE_FORMATS = {
    "STT": CodeFormat("", "%y%m%d", "shipments.Shipment", "no_stt"),
    "PICKUP": CodeFormat("PKP", "%y%m%d", "operations.Pickup", "no_pengambilan"),
    "REQUEST": CodeFormat("REQ", "%d%m%y", "operations.PickupRequest", "no_request"),
    "LOADING": CodeFormat("MT", "%y%m%d", "operations.Loading", "id_muat"),
    "DELIVERY": CodeFormat("LN", "%y%m%d", "operations.Delivery", "id_lansir"),
    "RETURN": CodeFormat("RT", "%y%m%d", "operations.Return", "id_retur"),
    "COLLECTION": CodeFormat("INV", "%y%m%d", "billing.Collection", "no_penagihan"),
}


def _branch_code(branch) -> str:
    if isinstance(branch, str):
        return branch[:3].upper()
    return branch.code


def code_stem(entity_type: str, branch, on_date: date) -> str:
    """Bagian kode sebelum counter, mis. "MT-JKT-230601-"."""
    fmt = CODE_FORMATS[entity_type]
    parts = [fmt.prefix] if fmt.prefix else []
    parts += [_branch_code(branch), on_date.strftime(fmt.date_format)]
    return "-".join(parts) + "-"


def format_code(entity_type: str, branch, on_date: date, counter: int) -> str:
    return f"{code_stem(entity_type, branch, on_date)}{counter:04d}"


def _existing_max(entity_type: str, stem: str) -> int:
    """Counter tertinggi yang sudah ada di tabel pemilik (data lama / import)."""
    fmt = CODE_FORMATS[entity_type]
    model = apps.get_model(fmt.model)
    codes = model.objects.filter(**{f"{fmt.field}__startswith": stem}).values_list(fmt.field, flat=True)
    best = 0
    for code in codes:
        tail = code[len(stem):]
        if tail.isdigit():
            best = max(best, int(tail))
    return best


def next_code(entity_type: str, branch, on_date: date | None = None) -> str:
    """
    Ambil nomor berikutnya untuk (entity, cabang, tanggal).

    Counter disimpan di CodeSequence dan dinaikkan di bawah row lock,
    jadi N panggilan bersamaan menghasilkan N nomor berurutan tanpa celah.
    """
    if entity_type not in CODE_FORMATS:
        raise ValueError(f"Unknown entity type: {entity_type}")
    on_date = on_date or timezone.localdate()
    branch_code = _branch_code(branch)
    stem = code_stem(entity_type, branch_code, on_date)

    with transaction.atomic():
        seq, created = CodeSequence.objects.select_for_update().get_or_create(
            entity_type=entity_type,
            branch_code=branch_code,
            period=on_date,
        )
        if created:
            seq.last_number = _existing_max(entity_type, stem)

        seq.last_number += 1
        seq.save(update_fields=["last_number", "updated_at"])

    return f"{stem}{seq.last_number:04d}"


def allocate(entity_type: str, branch, create, *, on_date: date | None = None, attempts: int | None = None):
    """
    Jalankan `create(code)` dengan nomor baru; kalau insert bentrok di kolom
    kode (IntegrityError), ulangi dengan counter baru. Setelah percobaan
    terakhir gagal, DuplicateCode dilempar ke pemanggil.
    """
    from core.services.core_settings import code_retry_attempts

    attempts = attempts or code_retry_attempts()
    last_code = None
    for attempt in range(1, attempts + 1):
        code = next_code(entity_type, branch, on_date)
        try:
            with transaction.atomic():
                return create(code)
        except IntegrityError:
            if not _code_taken(entity_type, code):
                raise
            last_code = code
            logger.warning("Nomor %s bentrok (percobaan %s/%s), ambil nomor baru", code, attempt, attempts)

    raise DuplicateCode(f"Nomor {last_code} bentrok setelah {attempts} percobaan")


def _code_taken(entity_type: str, code: str) -> bool:
    fmt = CODE_FORMATS[entity_type]
    model = apps.get_model(fmt.model)
    return model.objects.filter(**{fmt.field: code}).exists()
