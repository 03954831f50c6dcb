# shipments/services/status.py
"""
Mesin status STT.

    PENDING → MUAT → TRANSIT → LANSIR → TERKIRIM
    PENDING/TRANSIT → LANSIR (lansir langsung di cabang tujuan)
    semua status non-terminal → RETURN

TERKIRIM dan RETURN terminal untuk pergerakan. Perubahan status selalu
berlaku untuk satu batch sekaligus: dikunci, dicek, lalu satu UPDATE
bersyarat. Kalau jumlah baris yang berubah tidak sama dengan isi batch,
seluruh transaksi dibatalkan.
"""
import logging

from django.db import transaction
from django.utils import timezone

from core.exceptions import EmptyBatch, InvalidTransition, NotFound
from shipments.models import Shipment, ShipmentStatus, ShipmentTracking

logger = logging.getLogger("cargotrack.shipments")

S = ShipmentStatus

ALLOWED_TRANSITIONS = {
    S.PENDING: {S.MUAT, S.LANSIR, S.RETURN},
    S.MUAT: {S.TRANSIT, S.RETURN},
    S.TRANSIT: {S.LANSIR, S.RETURN},
    S.LANSIR: {S.TERKIRIM, S.RETURN},
    S.TERKIRIM: set(),
    S.RETURN: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _pk(item):
    return item.pk if isinstance(item, Shipment) else int(item)


def lock_shipments(items) -> list[Shipment]:
    """
    Kunci STT (select_for_update) sesuai urutan input, tanpa duplikat.
    EmptyBatch kalau kosong, NotFound kalau ada id yang tidak ada.
    """
    ids = list(dict.fromkeys(_pk(i) for i in (items or [])))
    if not ids:
        raise EmptyBatch()

    rows = {s.pk: s for s in Shipment.objects.select_for_update().filter(pk__in=ids)}
    missing = [i for i in ids if i not in rows]
    if missing:
        raise NotFound(f"STT dengan ID {missing[0]} tidak ditemukan")
    return [rows[i] for i in ids]


def ensure_status(shipments, sources, message="STT {no_stt} berstatus {status}"):
    for stt in shipments:
        if stt.status not in sources:
            raise InvalidTransition(message.format(no_stt=stt.no_stt, status=stt.get_status_display()))


@transaction.atomic
def transition_batch(shipments, target, *, sources=None, user=None, location="", notes="", source_ref=""):
    """
    Pindahkan semua STT ke `target`. `sources` membatasi status asal
    (default: semua status yang boleh menuju `target`).
    """
    if not shipments:
        raise EmptyBatch()
    if sources is None:
        sources = {src for src, targets in ALLOWED_TRANSITIONS.items() if target in targets}
    sources = {s for s in sources if can_transition(s, target)}

    for stt in shipments:
        if stt.status not in sources:
            raise InvalidTransition(
                f"STT {stt.no_stt} tidak bisa diubah dari {stt.get_status_display()} ke {S(target).label}"
            )

    ids = [stt.pk for stt in shipments]
    now = timezone.now()
    updated = Shipment.objects.filter(pk__in=ids, status__in=sources).update(status=target, updated_at=now)
    if updated != len(ids):
        raise InvalidTransition("Status STT berubah oleh proses lain, silakan ulangi")

    ShipmentTracking.objects.bulk_create([
        ShipmentTracking(
            shipment=stt,
            status=target,
            location=location or stt.cabang.nama_cabang,
            notes=notes,
            source_ref=source_ref,
            event_time=now,
            user=user,
        )
        for stt in shipments
    ])

    for stt in shipments:
        stt.status = target
        stt.updated_at = now

    logger.info("%s STT → %s (%s)", len(ids), target, source_ref or "-")
    return shipments
