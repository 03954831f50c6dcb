# operations/services/pickups.py
"""
Pengambilan barang ke pengirim (PKP) dan request pengambilan (REQ).

Pickup tidak mengubah status STT: STT yang dibuat atau ditempel ke pickup
tetap PENDING sampai dimuat / dilansir.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import Immutable, InUse, InvalidTransition, NotFound
from core.models import Branch, Customer
from core.numbering import allocate
from core.services.lookups import get_or_404, get_user
from fleet.models import Vehicle
from operations.models import Pickup, PickupItem, PickupRequest
from operations.services.common import advance_document, attach_items, lock_document
from shipments.models import ShipmentStatus as S
from shipments.services.intake import create_shipment
from shipments.services.status import ensure_status, lock_shipments

logger = logging.getLogger("cargotrack.operations")

REQUEST_FIELDS = {"tanggal", "alamat_pengambilan", "tujuan", "jumlah_colly", "estimasi_pengambilan", "notes"}
PICKUP_FIELDS = {
    "tanggal", "supir", "kenek", "kendaraan", "alamat_pengambilan", "tujuan",
    "jumlah_colly", "estimasi_pengambilan", "keterangan",
}


# ---------------------------------------------------------------------------
# Request pengambilan
# ---------------------------------------------------------------------------

@transaction.atomic
def create_request(*, cabang, pengirim, alamat_pengambilan, tujuan, jumlah_colly, user,
                   tanggal=None, estimasi_pengambilan="", notes="", on_date=None):
    branch = get_or_404(Branch, cabang, "Cabang")
    sender = get_or_404(Customer, pengirim, "Pengirim")
    user = get_user(user, "User")

    def _create(code):
        req = PickupRequest(
            no_request=code,
            tanggal=tanggal or timezone.localdate(),
            pengirim=sender,
            alamat_pengambilan=alamat_pengambilan,
            tujuan=tujuan,
            jumlah_colly=jumlah_colly,
            estimasi_pengambilan=estimasi_pengambilan,
            notes=notes,
            cabang=branch,
            created_by=user,
        )
        req.full_clean(exclude=["no_request", "pickup"])
        req.save()
        return req

    req = allocate("REQUEST", branch, _create, on_date=on_date)
    logger.info("Request pengambilan %s dibuat", req.no_request)
    return req


def _editable_request(req):
    req = get_or_404(PickupRequest, req, "Request pengambilan", lock=True)
    if req.status == PickupRequest.Status.FINISH:
        raise Immutable("Request pengambilan yang sudah selesai tidak dapat diubah")
    return req


@transaction.atomic
def update_request(req, **changes):
    unknown = set(changes) - REQUEST_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")
    req = _editable_request(req)
    for field, value in changes.items():
        setattr(req, field, value)
    req.full_clean(exclude=["no_request", "pickup"])
    req.save(update_fields=[*changes.keys(), "updated_at"])
    return req


@transaction.atomic
def cancel_request(req):
    req = _editable_request(req)
    if req.status != PickupRequest.Status.PENDING:
        raise InvalidTransition(f"Request {req.no_request} berstatus {req.get_status_display()}")
    req.status = PickupRequest.Status.CANCELLED
    req.save(update_fields=["status", "updated_at"])
    return req


@transaction.atomic
def delete_request(req):
    req = _editable_request(req)
    logger.info("Request pengambilan %s dihapus", req.no_request)
    req.delete()


def pending_requests(cabang=None):
    qs = PickupRequest.objects.filter(status=PickupRequest.Status.PENDING).select_related("pengirim")
    if cabang is not None:
        qs = qs.filter(cabang=cabang)
    return qs.order_by("tanggal", "id")


# ---------------------------------------------------------------------------
# Pickup
# ---------------------------------------------------------------------------

@transaction.atomic
def create_pickup(*, cabang, pengirim, supir, kendaraan, alamat_pengambilan, tujuan, jumlah_colly, user,
                  kenek=None, tanggal=None, estimasi_pengambilan="", keterangan="", request=None,
                  stts=None, on_date=None):
    """
    Buat pickup PENDING. Kalau dibuat dari request, request ikut
    ditandai FINISH dan terhubung ke pickup ini.
    """
    branch = get_or_404(Branch, cabang, "Cabang")
    sender = get_or_404(Customer, pengirim, "Pengirim")
    vehicle = get_or_404(Vehicle, kendaraan, "Kendaraan")
    driver = get_user(supir, "Supir")
    helper = get_user(kenek, "Kenek") if kenek else None
    user = get_user(user, "User")

    if not (alamat_pengambilan or "").strip():
        raise ValidationError("Alamat pengambilan harus diisi")

    req = None
    if request is not None:
        req = get_or_404(PickupRequest, request, "Request pengambilan", lock=True)
        if req.status != PickupRequest.Status.PENDING:
            raise InvalidTransition(f"Request {req.no_request} berstatus {req.get_status_display()}")

    def _create(code):
        pickup = Pickup(
            no_pengambilan=code,
            tanggal=tanggal or timezone.localdate(),
            cabang=branch,
            pengirim=sender,
            supir=driver,
            kenek=helper,
            kendaraan=vehicle,
            alamat_pengambilan=alamat_pengambilan,
            tujuan=tujuan,
            jumlah_colly=jumlah_colly,
            estimasi_pengambilan=estimasi_pengambilan,
            keterangan=keterangan,
            created_by=user,
        )
        pickup.full_clean(exclude=["no_pengambilan"])
        pickup.save()
        return pickup

    pickup = allocate("PICKUP", branch, _create, on_date=on_date)

    if req is not None:
        req.status = PickupRequest.Status.FINISH
        req.pickup = pickup
        req.save(update_fields=["status", "pickup", "updated_at"])

    if stts:
        add_shipments(pickup, stts)

    logger.info("Pickup %s dibuat untuk %s", pickup.no_pengambilan, sender)
    return pickup


def _open_pickup(pickup):
    pickup = lock_document(Pickup, pickup, "Pengambilan")
    if pickup.status in (Pickup.Status.SELESAI, Pickup.Status.CANCELLED):
        raise InvalidTransition(f"Pengambilan {pickup} sudah {pickup.get_status_display()}")
    return pickup


@transaction.atomic
def update_pickup(pickup, **changes):
    unknown = set(changes) - PICKUP_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")
    pickup = _open_pickup(pickup)
    if "kendaraan" in changes:
        changes["kendaraan"] = get_or_404(Vehicle, changes["kendaraan"], "Kendaraan")
    for field in ("supir", "kenek"):
        if changes.get(field):
            changes[field] = get_user(changes[field], field.capitalize())
    for field, value in changes.items():
        setattr(pickup, field, value)
    pickup.full_clean(exclude=["no_pengambilan"])
    pickup.save(update_fields=[*changes.keys(), "updated_at"])
    return pickup


@transaction.atomic
def add_shipments(pickup, stts):
    """Tempel STT PENDING ke pickup. Satu STT hanya boleh di satu pickup."""
    pickup = _open_pickup(pickup)
    shipments = lock_shipments(stts)
    ensure_status(shipments, {S.PENDING}, "STT {no_stt} berstatus {status}, tidak bisa diambil")

    taken = PickupItem.objects.filter(shipment__in=shipments).select_related("pickup", "shipment").first()
    if taken:
        raise InUse(f"STT {taken.shipment.no_stt} sudah ada di pengambilan {taken.pickup}")

    start = pickup.items.count()
    try:
        with transaction.atomic():
            attach_items(PickupItem, "pickup", pickup, shipments, start=start)
    except IntegrityError:
        raise InUse("STT sudah ada di pengambilan lain")

    logger.info("Pickup %s: +%s STT", pickup, len(shipments))
    return pickup


@transaction.atomic
def remove_shipment(pickup, stt):
    pickup = _open_pickup(pickup)
    stt_id = getattr(stt, "pk", stt)
    deleted, _ = PickupItem.objects.filter(pickup=pickup, shipment_id=stt_id).delete()
    if not deleted:
        raise NotFound("STT tidak ditemukan di pengambilan ini")
    return pickup


@transaction.atomic
def intake_shipment(pickup, *, user, **stt_fields):
    """Buat STT baru dari barang yang diambil lalu tempel ke pickup."""
    pickup = _open_pickup(pickup)
    stt_fields.setdefault("cabang_asal", pickup.cabang)
    stt_fields.setdefault("pengirim", pickup.pengirim)
    stt = create_shipment(user=user, **stt_fields)
    attach_items(PickupItem, "pickup", pickup, [stt], start=pickup.items.count())
    return stt


@transaction.atomic
def depart_pickup(pickup):
    pickup = lock_document(Pickup, pickup, "Pengambilan")
    return advance_document(
        pickup, Pickup.Status.PENDING, Pickup.Status.BERANGKAT, waktu_berangkat=timezone.now()
    )


@transaction.atomic
def finish_pickup(pickup):
    pickup = lock_document(Pickup, pickup, "Pengambilan")
    return advance_document(
        pickup, Pickup.Status.BERANGKAT, Pickup.Status.SELESAI, waktu_pulang=timezone.now()
    )


@transaction.atomic
def cancel_pickup(pickup):
    pickup = lock_document(Pickup, pickup, "Pengambilan")
    return advance_document(pickup, Pickup.Status.PENDING, Pickup.Status.CANCELLED)


@transaction.atomic
def delete_pickup(pickup):
    pickup = lock_document(Pickup, pickup, "Pengambilan")
    if pickup.items.exists():
        raise InUse("Tidak dapat menghapus pengambilan yang memiliki STT terkait")
    logger.info("Pickup %s dihapus", pickup)
    pickup.delete()
