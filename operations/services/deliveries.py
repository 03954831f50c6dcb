# operations/services/deliveries.py
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import InUse, InvalidTransition
from core.models import Branch
from core.numbering import allocate
from core.services.lookups import get_or_404, get_user
from fleet.models import VehicleQueue
from fleet.services import queues
from operations.models import Delivery, DeliveryItem
from operations.services.common import (
    advance_document, attach_items, claim_queue, ensure_destination, lock_document, shipments_in,
)
from shipments.models import ShipmentStatus as S
from shipments.services.status import ensure_status, lock_shipments, transition_batch

logger = logging.getLogger("cargotrack.operations")

DELIVERABLE = {S.PENDING, S.TRANSIT}

DELIVERY_FIELDS = {"checker", "admin", "estimasi_lansir", "kilometer_berangkat", "keterangan"}


@transaction.atomic
def create_delivery(*, cabang, antrian_kendaraan, stts, checker, admin, user,
                    estimasi_lansir="", kilometer_berangkat=None, keterangan="", on_date=None):
    branch = get_or_404(Branch, cabang, "Cabang")
    checker = get_user(checker, "Checker")
    admin = get_user(admin, "Admin")
    user = get_user(user, "User")

    shipments = lock_shipments(stts)
    ensure_status(shipments, DELIVERABLE, "STT {no_stt} berstatus {status}, tidak bisa dilansir")
    ensure_destination(shipments, branch, "STT {no_stt} bukan tujuan cabang {cabang}")

    queue = claim_queue(
        VehicleQueue, antrian_kendaraan, doc_model=Delivery, doc_fk="antrian_kendaraan",
        label="Antrian kendaraan",
    )

    def _create(code):
        return Delivery.objects.create(
            id_lansir=code,
            cabang=branch,
            antrian_kendaraan=queue,
            active_queue=queue,
            checker=checker,
            admin=admin,
            berangkat=timezone.now(),
            estimasi_lansir=estimasi_lansir,
            kilometer_berangkat=kilometer_berangkat,
            keterangan=keterangan,
            status=Delivery.Status.LANSIR,
            created_by=user,
        )

    try:
        delivery = allocate("DELIVERY", branch, _create, on_date=on_date)
    except IntegrityError:
        if not Delivery.objects.filter(active_queue=queue).exists():
            raise
        raise InUse("Antrian kendaraan sudah digunakan di lansir lain")

    attach_items(DeliveryItem, "delivery", delivery, shipments)
    transition_batch(
        shipments, S.LANSIR, sources=DELIVERABLE, user=user,
        location=branch.nama_cabang, notes=f"Dilansir dengan {queue.kendaraan.no_polisi}",
        source_ref=delivery.id_lansir,
    )
    queues.assign(VehicleQueue, queue)

    logger.info("Lansir %s dibuat: %s STT, kendaraan %s", delivery.id_lansir, len(shipments), queue.kendaraan.no_polisi)
    return delivery


def _close(delivery, target, *, kilometer_pulang=None, **fields):
    advance_document(
        delivery, Delivery.Status.LANSIR, target,
        sampai=timezone.now(), kilometer_pulang=kilometer_pulang, active_queue=None, **fields,
    )
    queues.complete(VehicleQueue, delivery.antrian_kendaraan_id)
    return delivery


@transaction.atomic
def finish_delivery(delivery, *, nama_penerima, user=None, kilometer_pulang=None):
    """LANSIR → TERKIRIM: STT TERKIRIM, kendaraan KEMBALI."""
    if not (nama_penerima or "").strip():
        raise ValidationError("Nama penerima harus diisi")

    delivery = lock_document(Delivery, delivery, "Lansir")
    _close(delivery, Delivery.Status.TERKIRIM, kilometer_pulang=kilometer_pulang, nama_penerima=nama_penerima.strip())

    delivered = shipments_in(delivery, S.LANSIR)
    if delivered:
        transition_batch(
            delivered, S.TERKIRIM, sources={S.LANSIR}, user=user,
            location=delivery.cabang.nama_cabang, notes=f"Diterima oleh {delivery.nama_penerima}",
            source_ref=delivery.id_lansir,
        )
    return delivery


@transaction.atomic
def mark_unfinished(delivery, *, keterangan, user=None, kilometer_pulang=None):
    """
    LANSIR → BELUM_SELESAI. Kendaraan KEMBALI, STT tetap LANSIR
    sampai dialihkan lewat retur.
    """
    if not (keterangan or "").strip():
        raise ValidationError("Keterangan harus diisi")

    delivery = lock_document(Delivery, delivery, "Lansir")
    return _close(delivery, Delivery.Status.BELUM_SELESAI, kilometer_pulang=kilometer_pulang, keterangan=keterangan.strip())


def update_delivery_status(delivery, status, *, user=None, nama_penerima="", keterangan="", kilometer_pulang=None):
    if status == Delivery.Status.TERKIRIM:
        return finish_delivery(delivery, nama_penerima=nama_penerima, user=user, kilometer_pulang=kilometer_pulang)
    if status == Delivery.Status.BELUM_SELESAI:
        return mark_unfinished(delivery, keterangan=keterangan, user=user, kilometer_pulang=kilometer_pulang)
    raise InvalidTransition(f"Status lansir tidak valid: {status}")


@transaction.atomic
def update_delivery(delivery, **changes):
    """
    Ubah data pendukung lansir. Status dan penerima hanya lewat
    finish_delivery / mark_unfinished.
    """
    unknown = set(changes) - DELIVERY_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")
    delivery = lock_document(Delivery, delivery, "Lansir")
    for field in ("checker", "admin"):
        if field in changes:
            changes[field] = get_user(changes[field], field.capitalize())
    for field, value in changes.items():
        setattr(delivery, field, value)
    delivery.full_clean(exclude=["id_lansir", "active_queue"])
    delivery.save(update_fields=[*changes.keys(), "updated_at"])
    return delivery


def deliveries_for_shipment(stt):
    return (
        Delivery.objects.filter(items__shipment=stt)
        .select_related("cabang", "antrian_kendaraan__kendaraan")
        .order_by("-created_at", "-id")
    )


def deliveries_for_vehicle(kendaraan, status=None):
    qs = Delivery.objects.filter(antrian_kendaraan__kendaraan=kendaraan).select_related("cabang", "antrian_kendaraan")
    if status:
        if status not in Delivery.Status.values:
            raise ValidationError("Status lansir tidak valid")
        qs = qs.filter(status=status)
    return qs.order_by("-created_at", "-id")
