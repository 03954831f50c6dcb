# operations/services/common.py
"""
Langkah bersama untuk dokumen operasional:

    1. batch tidak kosong, semua STT ada (dikunci)
    2. status STT sesuai status asal yang diizinkan
    3. antrian (muat/lansir) ada, kelas kendaraan cocok, belum dipakai dokumen aktif
    4. nomor dokumen dari CodeSequence
    5-6. buat dokumen lalu pindahkan status STT dan antrian dalam satu transaksi

Semua fungsi di sini dipanggil dari service yang sudah `transaction.atomic`.
"""
import logging

from django.core.exceptions import ValidationError
from django.utils import timezone

from core.exceptions import InUse, InvalidTransition
from core.services.lookups import get_or_404

logger = logging.getLogger("cargotrack.operations")


def attach_items(item_model, doc_field, doc, shipments, start=0):
    item_model.objects.bulk_create([
        item_model(**{doc_field: doc}, shipment=stt, position=start + i)
        for i, stt in enumerate(shipments)
    ])


def ensure_destination(shipments, cabang, message):
    for stt in shipments:
        if stt.cabang_tujuan_id != cabang.pk:
            raise ValidationError(message.format(no_stt=stt.no_stt, cabang=cabang))


def claim_queue(queue_model, queue, *, doc_model, doc_fk, label):
    """
    Kunci antrian dan pastikan bisa dipakai dokumen baru:
    kelas kendaraan sesuai, status MENUNGGU, tidak terikat dokumen aktif.
    """
    queue = get_or_404(queue_model, queue, label, lock=True)

    if queue.kendaraan.tipe != queue_model.VEHICLE_TYPE:
        raise ValidationError(
            f"Kendaraan {queue.kendaraan.no_polisi} bukan kendaraan {queue_model.VEHICLE_TYPE.label}"
        )

    active = doc_model.objects.filter(**{doc_fk: queue, "status__in": doc_model.ACTIVE_STATUSES})
    if active.exists():
        raise InUse(f"{label} sudah digunakan di dokumen lain")

    if queue.status != queue_model.ST_WAITING:
        raise InvalidTransition(f"{label} berstatus {queue.get_status_display()}, harus Menunggu")
    return queue


def lock_document(model, doc, label):
    return get_or_404(model, doc, label, lock=True)


def advance_document(doc, source, target, **fields):
    """
    Ubah status dokumen `source` → `target` dengan UPDATE bersyarat.
    Dokumen yang tidak sedang di `source` → InvalidTransition, tanpa efek samping.
    """
    model = type(doc)
    if doc.status != source:
        raise InvalidTransition(
            f"{doc} berstatus {doc.get_status_display()}, harus {model.Status(source).label}"
        )

    fields.update(status=target, updated_at=timezone.now())
    updated = model.objects.filter(pk=doc.pk, status=source).update(**fields)
    if updated != 1:
        raise InvalidTransition(f"Status {doc} berubah oleh proses lain, silakan ulangi")

    for k, v in fields.items():
        setattr(doc, k, v)
    logger.info("%s %s → %s", doc, source, target)
    return doc


def shipments_in(doc, status):
    """STT dokumen yang masih berstatus `status`, terkunci, urut sesuai input."""
    from shipments.services.status import lock_shipments

    items = list(doc.items.values_list("shipment_id", flat=True).order_by("position", "id"))
    if not items:
        return []
    moving = [stt for stt in lock_shipments(items) if stt.status == status]
    skipped = len(items) - len(moving)
    if skipped:
        logger.warning("%s: %s STT tidak lagi berstatus %s, dilewati", doc, skipped, status)
    return moving
