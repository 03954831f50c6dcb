# operations/services/returns.py
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.exceptions import InvalidTransition
from core.models import Branch
from core.numbering import allocate
from core.services.lookups import get_or_404, get_user
from operations.models import Return, ReturnItem
from operations.services.common import advance_document, attach_items, lock_document
from shipments.models import ShipmentStatus as S
from shipments.services.status import ensure_status, lock_shipments, transition_batch

logger = logging.getLogger("cargotrack.operations")

# STT yang sudah retur atau sudah terkirim tidak bisa diretur
RETURNABLE = {S.PENDING, S.MUAT, S.TRANSIT, S.LANSIR}

RETURN_FIELDS = {"tanggal_kirim", "keterangan"}


@transaction.atomic
def create_return(*, cabang, stts, user, tanggal_kirim=None, keterangan="", on_date=None):
    branch = get_or_404(Branch, cabang, "Cabang")
    user = get_user(user, "User")

    shipments = lock_shipments(stts)
    ensure_status(shipments, RETURNABLE, "STT {no_stt} berstatus {status}, tidak bisa diretur")

    def _create(code):
        return Return.objects.create(
            id_retur=code,
            cabang=branch,
            tanggal_kirim=tanggal_kirim or timezone.localdate(),
            keterangan=keterangan,
            status=Return.Status.PROSES,
            created_by=user,
        )

    retur = allocate("RETURN", branch, _create, on_date=on_date)
    attach_items(ReturnItem, "retur", retur, shipments)
    transition_batch(
        shipments, S.RETURN, sources=RETURNABLE, user=user,
        location=branch.nama_cabang, notes=keterangan or "Retur", source_ref=retur.id_retur,
    )

    logger.info("Retur %s dibuat: %s STT", retur.id_retur, len(shipments))
    return retur


@transaction.atomic
def receive_return(retur, *, tanda_terima, tanggal_sampai=None):
    """PROSES → SAMPAI, wajib tanda terima."""
    if not (tanda_terima or "").strip():
        raise ValidationError("Tanda terima harus diisi")

    retur = lock_document(Return, retur, "Retur")
    return advance_document(
        retur, Return.Status.PROSES, Return.Status.SAMPAI,
        tanda_terima=tanda_terima.strip(), tanggal_sampai=tanggal_sampai or timezone.localdate(),
    )


@transaction.atomic
def update_return(retur, **changes):
    unknown = set(changes) - RETURN_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")
    retur = lock_document(Return, retur, "Retur")
    if retur.status == Return.Status.SAMPAI and "tanggal_kirim" in changes:
        raise InvalidTransition(f"Retur {retur} sudah sampai, tanggal kirim tidak dapat diubah")
    for field, value in changes.items():
        setattr(retur, field, value)
    retur.full_clean(exclude=["id_retur"])
    retur.save(update_fields=[*changes.keys(), "updated_at"])
    return retur


def returns_for_shipment(stt):
    return Return.objects.filter(items__shipment=stt).select_related("cabang").order_by("-created_at", "-id")
