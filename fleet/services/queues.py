# fleet/services/queues.py
"""
Antrian truck (antar cabang) dan kendaraan lansir.

Semua fungsi menerima kelas antrian (TruckQueue / VehicleQueue) supaya
aturan yang sama berlaku untuk keduanya:

    enqueue  : MENUNGGU baru, gagal AlreadyQueued kalau kendaraan masih hidup di cabang itu
    assign   : MENUNGGU → aktif (MUAT / LANSIR)
    complete : aktif → selesai (BERANGKAT / KEMBALI), kendaraan boleh antri lagi
    remove   : hapus antrian yang belum pernah dipakai dokumen
"""
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from core.exceptions import AlreadyQueued, InUse, InvalidTransition
from core.models import Branch
from core.services.lookups import get_or_404, get_user
from fleet.models import QueueSequence, ResourceQueue, Vehicle

logger = logging.getLogger("cargotrack.fleet")

CREW_FIELDS = {"supir", "kenek", "no_telp", "no_telp_kenek"}


def _next_urutan(queue_model, cabang) -> int:
    seq, _ = QueueSequence.objects.select_for_update().get_or_create(kind=queue_model.KIND, cabang=cabang)
    seq.last_urutan += 1
    seq.save(update_fields=["last_urutan"])
    return seq.last_urutan


def get_queue(queue_model, queue, *, lock=False):
    label = queue_model._meta.verbose_name.capitalize()
    return get_or_404(queue_model, queue, label, lock=lock)


@transaction.atomic
def enqueue(queue_model, *, kendaraan, cabang, user, supir=None, kenek=None, no_telp=None, no_telp_kenek=None):
    # kunci kendaraan dulu: dua enqueue untuk kendaraan yang sama antri di sini
    vehicle = get_or_404(Vehicle, kendaraan, "Kendaraan", lock=True)
    branch = get_or_404(Branch, cabang, "Cabang")
    user = get_user(user, "User")

    live = queue_model.objects.filter(
        kendaraan=vehicle, cabang=branch, status__in=queue_model.live_statuses()
    )
    if live.exists():
        raise AlreadyQueued(f"Kendaraan {vehicle.no_polisi} sudah dalam antrian")

    # kru default dari kendaraan
    if supir is None:
        supir, no_telp = vehicle.supir, no_telp or vehicle.no_telepon_supir
    if kenek is None:
        kenek, no_telp_kenek = vehicle.kenek, no_telp_kenek or vehicle.no_telepon_kenek

    queue = queue_model(
        kendaraan=vehicle,
        cabang=branch,
        supir=supir,
        no_telp=no_telp or "",
        kenek=kenek,
        no_telp_kenek=no_telp_kenek or "",
        status=queue_model.ST_WAITING,
        urutan=_next_urutan(queue_model, branch),
        created_by=user,
    )
    queue.active_key = queue.make_active_key()
    try:
        with transaction.atomic():
            queue.save()
    except IntegrityError:
        raise AlreadyQueued(f"Kendaraan {vehicle.no_polisi} sudah dalam antrian")

    logger.info("%s %s masuk antrian %s #%s", queue_model.__name__, vehicle.no_polisi, branch, queue.urutan)
    return queue


def _move(queue_model, queue, *, source, target, clear_key=False):
    queue = get_queue(queue_model, queue, lock=True)
    if queue.status != source:
        raise InvalidTransition(
            f"Antrian {queue.kendaraan.no_polisi} berstatus {queue.get_status_display()}, "
            f"harus {queue_model.Status(source).label}"
        )

    fields = {"status": target}
    if clear_key:
        fields["active_key"] = None
    updated = queue_model.objects.filter(pk=queue.pk, status=source).update(**fields)
    if updated != 1:
        raise InvalidTransition("Status antrian berubah oleh proses lain, silakan ulangi")

    for k, v in fields.items():
        setattr(queue, k, v)
    logger.info("%s #%s %s → %s", queue_model.__name__, queue.urutan, source, target)
    return queue


@transaction.atomic
def assign(queue_model, queue):
    return _move(queue_model, queue, source=queue_model.ST_WAITING, target=queue_model.ST_ACTIVE)


@transaction.atomic
def complete(queue_model, queue):
    return _move(
        queue_model, queue, source=queue_model.ST_ACTIVE, target=queue_model.ST_DONE, clear_key=True
    )


def documents_for(queue: ResourceQueue):
    return getattr(queue, queue.DOCUMENTS).all()


@transaction.atomic
def remove(queue_model, queue):
    queue = get_queue(queue_model, queue, lock=True)
    if documents_for(queue).exists():
        raise InUse("Tidak dapat menghapus antrian yang sedang digunakan")
    logger.info("%s #%s (%s) dihapus", queue_model.__name__, queue.urutan, queue.kendaraan.no_polisi)
    queue.delete()


@transaction.atomic
def update_crew(queue_model, queue, **changes):
    """Ganti supir/kenek; hanya selama antrian masih MENUNGGU."""
    unknown = set(changes) - CREW_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")

    queue = get_queue(queue_model, queue, lock=True)
    if queue.status != queue_model.ST_WAITING:
        raise InvalidTransition("Kru hanya bisa diganti selama antrian MENUNGGU")

    for field, value in changes.items():
        setattr(queue, field, value)
    queue.save(update_fields=[*changes.keys(), "updated_at"])
    return queue


def queues_for_branch(queue_model, cabang, status=None):
    branch = get_or_404(Branch, cabang, "Cabang")
    qs = queue_model.objects.filter(cabang=branch).select_related("kendaraan", "supir", "kenek")
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("urutan")


def next_waiting(queue_model, cabang):
    """Antrian MENUNGGU paling depan di cabang, atau None kalau kosong."""
    return queues_for_branch(queue_model, cabang, queue_model.ST_WAITING).first()
