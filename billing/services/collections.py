# billing/services/collections.py
"""
Penagihan (collection) STT terkirim.

Satu STT hanya boleh ada di satu penagihan BELUM_LUNAS. Aturan ini
dipegang oleh kolom unik `CollectionItem.open_shipment`, bukan hanya oleh
query pengecekan, jadi tetap berlaku kalau dua penagihan dibuat bersamaan.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from billing.models import Collection, CollectionItem, CollectionPayment, CollectionStatus, CustomerRole
from core.exceptions import AlreadyPaid, NonPositiveAmount, OwnershipMismatch, ShipmentAlreadyBilled
from core.models import Branch, Customer
from core.numbering import allocate
from core.services.core_settings import allow_rebill_paid
from core.services.lookups import _d, get_or_404, get_user
from shipments.models import ShipmentStatus
from shipments.services.status import lock_shipments

logger = logging.getLogger("cargotrack.billing")

# total, status, dan tanggal bayar hanya berubah lewat add_payment
COLLECTION_FIELDS = {"overdue", "keterangan"}


def _check_ownership(shipments, customer, role):
    field = "pengirim_id" if role == CustomerRole.PENGIRIM else "penerima_id"
    for stt in shipments:
        if getattr(stt, field) != customer.pk:
            raise OwnershipMismatch(f"STT {stt.no_stt} bukan milik {CustomerRole(role).label.lower()} ini")


def _check_not_billed(shipments):
    taken = (
        CollectionItem.objects
        .filter(open_shipment__in=shipments)
        .select_related("collection", "shipment")
        .first()
    )
    if taken:
        raise ShipmentAlreadyBilled(
            f"STT {taken.shipment.no_stt} sudah ditagih di penagihan {taken.collection.no_penagihan}"
        )

    if allow_rebill_paid():
        return
    paid = (
        CollectionItem.objects
        .filter(shipment__in=shipments, collection__status=CollectionStatus.LUNAS)
        .select_related("collection", "shipment")
        .first()
    )
    if paid:
        raise ShipmentAlreadyBilled(
            f"STT {paid.shipment.no_stt} sudah lunas di penagihan {paid.collection.no_penagihan}"
        )


@transaction.atomic
def create_collection(*, pelanggan, tipe_pelanggan, stts, user, cabang=None, on_date=None):
    customer = get_or_404(Customer, pelanggan, "Pelanggan")
    if tipe_pelanggan not in CustomerRole.values:
        raise ValidationError("Tipe pelanggan (pengirim/penerima) harus diisi")
    branch = get_or_404(Branch, cabang, "Cabang") if cabang is not None else customer.cabang
    user = get_user(user, "User")

    shipments = lock_shipments(stts)
    _check_ownership(shipments, customer, tipe_pelanggan)
    _check_not_billed(shipments)
    for stt in shipments:
        if stt.status != ShipmentStatus.TERKIRIM:
            raise ValidationError(f"STT {stt.no_stt} belum terkirim, tidak bisa ditagih")

    total = sum((stt.harga for stt in shipments), Decimal("0.00"))

    def _create(code):
        return Collection.objects.create(
            no_penagihan=code,
            pelanggan=customer,
            tipe_pelanggan=tipe_pelanggan,
            cabang=branch,
            total_tagihan=total,
            created_by=user,
        )

    collection = allocate("COLLECTION", branch, _create, on_date=on_date)

    try:
        with transaction.atomic():
            CollectionItem.objects.bulk_create([
                CollectionItem(collection=collection, shipment=stt, open_shipment=stt, position=i, harga=stt.harga)
                for i, stt in enumerate(shipments)
            ])
    except IntegrityError:
        raise ShipmentAlreadyBilled("STT sudah ditagih di penagihan lain")

    logger.info("Penagihan %s dibuat: %s STT, total %s", collection.no_penagihan, len(shipments), total)
    return collection


@transaction.atomic
def add_payment(collection, jumlah, *, tanggal=None, user=None):
    """
    Tambah termin pembayaran. Begitu total bayar >= total tagihan,
    status jadi LUNAS (tidak bisa kembali) dan STT dilepas dari penagihan terbuka.
    """
    collection = get_or_404(Collection, collection, "Penagihan", lock=True)
    if collection.is_paid:
        raise AlreadyPaid(f"Penagihan {collection.no_penagihan} sudah lunas")

    jumlah = _d(jumlah)
    if jumlah <= 0:
        raise NonPositiveAmount()

    tanggal = tanggal or timezone.localdate()
    payment = CollectionPayment.objects.create(
        collection=collection,
        termin=collection.payments.count() + 1,
        tanggal=tanggal,
        jumlah=jumlah,
        created_by=user,
    )

    if collection.total_bayar >= collection.total_tagihan:
        collection.status = CollectionStatus.LUNAS
        collection.tanggal_bayar = tanggal
        collection.overdue = False
        collection.save(update_fields=["status", "tanggal_bayar", "overdue", "updated_at"])
        collection.items.update(open_shipment=None)
        logger.info("Penagihan %s lunas (termin %s)", collection.no_penagihan, payment.termin)
    else:
        logger.info(
            "Penagihan %s termin %s: %s, sisa %s",
            collection.no_penagihan, payment.termin, jumlah, collection.sisa_tagihan,
        )
    return payment


@transaction.atomic
def update_collection(collection, **changes):
    unknown = set(changes) - COLLECTION_FIELDS
    if unknown:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")
    collection = get_or_404(Collection, collection, "Penagihan", lock=True)
    if collection.is_paid and changes.get("overdue"):
        raise AlreadyPaid(f"Penagihan {collection.no_penagihan} sudah lunas")
    for field, value in changes.items():
        setattr(collection, field, value)
    collection.save(update_fields=[*changes.keys(), "updated_at"])
    return collection


def set_overdue(collection, overdue=True):
    return update_collection(collection, overdue=overdue)


def collections_for_customer(pelanggan, status=None):
    qs = Collection.objects.filter(pelanggan=pelanggan).select_related("cabang")
    if status:
        if status not in CollectionStatus.values:
            raise ValidationError("Status tidak valid")
        qs = qs.filter(status=status)
    return qs
