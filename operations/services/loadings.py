# operations/services/loadings.py
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import InUse, InvalidTransition
from core.models import Branch
from core.numbering import allocate
from core.services.lookups import get_or_404, get_user
from fleet.models import TruckQueue
from fleet.services import queues
from operations.models import Loading, LoadingItem
from operations.services.common import (
    advance_document, attach_items, claim_queue, ensure_destination, lock_document, shipments_in,
)
from shipments.models import ShipmentStatus as S
from shipments.services.status import ensure_status, lock_shipments, transition_batch

logger = logging.getLogger("cargotrack.operations")

LOADABLE = {S.PENDING}

# status muat hanya lewat depart_loading / arrive_loading
LOADING_FIELDS = {"checker", "keterangan"}


@transaction.atomic
def create_loading(*, cabang_muat, cabang_bongkar, antrian_truck, stts, checker, user,
                   keterangan="", on_date=None):
    """
    Buat muat baru: STT PENDING dengan cabang tujuan = cabang bongkar
    naik ke truck. Loading MUAT, STT MUAT, antrian MUAT.
    """
    muat = get_or_404(Branch, cabang_muat, "Cabang muat")
    bongkar = get_or_404(Branch, cabang_bongkar, "Cabang bongkar")
    checker = get_user(checker, "Checker")
    user = get_user(user, "User")

    shipments = lock_shipments(stts)
    ensure_status(shipments, LOADABLE, "STT {no_stt} berstatus {status}, tidak bisa dimuat")
    ensure_destination(
        shipments, bongkar, "STT {no_stt} memiliki cabang tujuan yang berbeda dengan cabang bongkar {cabang}"
    )

    queue = claim_queue(
        TruckQueue, antrian_truck, doc_model=Loading, doc_fk="antrian_truck", label="Antrian truck"
    )

    def _create(code):
        return Loading.objects.create(
            id_muat=code,
            cabang=muat,
            cabang_bongkar=bongkar,
            antrian_truck=queue,
            active_queue=queue,
            checker=checker,
            keterangan=keterangan,
            status=Loading.Status.MUAT,
            created_by=user,
        )

    try:
        loading = allocate("LOADING", muat, _create, on_date=on_date)
    except IntegrityError:
        if not Loading.objects.filter(active_queue=queue).exists():
            raise
        raise InUse("Antrian truck sudah digunakan di muat lain")

    attach_items(LoadingItem, "loading", loading, shipments)
    transition_batch(
        shipments, S.MUAT, sources=LOADABLE, user=user,
        location=muat.nama_cabang, notes=f"Dimuat ke {queue.kendaraan.no_polisi}", source_ref=loading.id_muat,
    )
    queues.assign(TruckQueue, queue)

    logger.info("Muat %s dibuat: %s STT, truck %s", loading.id_muat, len(shipments), queue.kendaraan.no_polisi)
    return loading


@transaction.atomic
def depart_loading(loading, *, user=None):
    """MUAT → BERANGKAT: STT jadi TRANSIT, antrian truck BERANGKAT."""
    loading = lock_document(Loading, loading, "Muat")
    advance_document(loading, Loading.Status.MUAT, Loading.Status.BERANGKAT, waktu_berangkat=timezone.now())

    moving = shipments_in(loading, S.MUAT)
    if moving:
        transition_batch(
            moving, S.TRANSIT, sources={S.MUAT}, user=user,
            location=loading.cabang.nama_cabang,
            notes=f"Berangkat ke {loading.cabang_bongkar.nama_cabang}",
            source_ref=loading.id_muat,
        )
    queues.complete(TruckQueue, loading.antrian_truck_id)
    return loading


@transaction.atomic
def arrive_loading(loading, *, user=None):
    """BERANGKAT → SAMPAI; antrian dilepas dari muat ini."""
    loading = lock_document(Loading, loading, "Muat")
    return advance_document(
        loading, Loading.Status.BERANGKAT, Loading.Status.SAMPAI,
        waktu_sampai=timezone.now(), active_queue=None,
    )


def update_loading_status(loading, status, *, user=None):
    handlers = {
        Loading.Status.BERANGKAT: depart_loading,
        Loading.Status.SAMPAI: arrive_loading,
    }
    handler = handlers.get(status)
    if handler is None:
        raise InvalidTransition(f"Status muat tidak valid: {status}")
    return handler(loading, user=user)


@transaction.atomic
def update_loading(loading, **changes):
    """Ubah checker / keterangan. Status, cabang, dan antrian tidak lewat sini."""
    unknown = set(changes) - LOADING_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")
    loading = lock_document(Loading, loading, "Muat")
    if "checker" in changes:
        changes["checker"] = get_user(changes["checker"], "Checker")
    for field, value in changes.items():
        setattr(loading, field, value)
    loading.save(update_fields=[*changes.keys(), "updated_at"])
    return loading


def loadings_for_shipment(stt):
    return (
        Loading.objects.filter(items__shipment=stt)
        .select_related("cabang", "cabang_bongkar", "antrian_truck__kendaraan")
        .order_by("-created_at", "-id")
    )


def loadings_for_vehicle(kendaraan):
    """Semua muat yang memakai kendaraan ini, lewat antrian truck mana pun."""
    return (
        Loading.objects.filter(antrian_truck__kendaraan=kendaraan)
        .select_related("cabang", "cabang_bongkar", "antrian_truck")
        .order_by("-created_at", "-id")
    )
